"""
Library Lending Engine models.

Pydantic v2 models for the two entities the engine coordinates:

- BookEntry: a catalog row with a single ``available`` flag
- LoanRecord: one borrowing event and its resolution
"""

from .book import BookEntry
from .loan import LoanRecord, LoanStatus, resolve_return_status

__all__ = [
    "BookEntry",
    "LoanRecord",
    "LoanStatus",
    "resolve_return_status",
]
