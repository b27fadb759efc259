"""
Library Lending Engine.

Tracks which catalog entries are available, records loans, computes return
deadlines and detects overdue items, keeping a book's availability and its
loan records consistent under concurrent requests.

Key Components:
- models: Pydantic models for catalog entries and loan records
- database: SQLAlchemy schema, catalog/loan stores and units of work
- lending: inventory guard and loan lifecycle manager
- clock: injectable source of the current date
- config: configuration management with pydantic-settings
- tools: MCP tools exposing the lifecycle to clients
"""

__version__ = "0.1.0"

from .clock import Clock, FixedClock, SystemClock
from .lending import LoanLifecycleManager

__all__ = [
    "Clock",
    "FixedClock",
    "LoanLifecycleManager",
    "SystemClock",
    "__version__",
]
