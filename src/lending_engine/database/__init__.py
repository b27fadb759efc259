"""
Database package for the Library Lending Engine.

This package provides:
- SQLAlchemy schema definitions (schema.py)
- The catalog and loan stores (catalog_repository.py, loan_repository.py)
- Engine, session and unit-of-work management (session.py)
- Sample catalog generation (seed.py)
"""

from .catalog_repository import CatalogRepository
from .loan_repository import LoanRepository
from .repository import (
    BaseRepository,
    DuplicateError,
    RepositoryException,
    StoreError,
)
from .schema import Base, Book, LoanRecord
from .session import (
    DatabaseManager,
    UnitOfWork,
    get_db_manager,
    reset_db_manager,
)

__all__ = [
    "Base",
    "BaseRepository",
    "Book",
    "CatalogRepository",
    "DatabaseManager",
    "DuplicateError",
    "LoanRecord",
    "LoanRepository",
    "RepositoryException",
    "StoreError",
    "UnitOfWork",
    "get_db_manager",
    "reset_db_manager",
]
