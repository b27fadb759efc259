"""
The borrowing lifecycle and inventory consistency engine.

- InventoryGuard: atomic claim/release of a book's availability
- LoanLifecycleManager: borrow, return and overdue-sweep transitions
"""

from .errors import (
    AlreadyReturned,
    BookNotFound,
    BookUnavailable,
    ConflictError,
    LendingError,
    LoanNotFound,
    NotFoundError,
)
from .inventory import Claim, InventoryGuard
from .lifecycle import LoanLifecycleManager

__all__ = [
    "AlreadyReturned",
    "BookNotFound",
    "BookUnavailable",
    "Claim",
    "ConflictError",
    "InventoryGuard",
    "LendingError",
    "LoanLifecycleManager",
    "LoanNotFound",
    "NotFoundError",
]
