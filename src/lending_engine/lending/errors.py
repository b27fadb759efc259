"""
Business errors raised by the lending engine.

All of these are expected, recoverable conditions. Callers translate them
into user-facing messages; the engine never retries on their behalf.

    LendingError
    ├── NotFoundError      BookNotFound, LoanNotFound
    └── ConflictError      BookUnavailable, AlreadyReturned

Store failures are not part of this hierarchy. They arrive as
``lending_engine.database.StoreError`` and pass through unmodified.
"""


class LendingError(Exception):
    """Base exception for lending operations."""


class NotFoundError(LendingError):
    """A referenced book or loan does not exist."""


class ConflictError(LendingError):
    """The requested transition conflicts with the current state."""


class BookNotFound(NotFoundError):
    def __init__(self, book_id: int):
        self.book_id = book_id
        super().__init__(f"Book {book_id} not found")


class LoanNotFound(NotFoundError):
    def __init__(self, loan_id: int):
        self.loan_id = loan_id
        super().__init__(f"Loan {loan_id} not found")


class BookUnavailable(ConflictError):
    """The book is already on loan; the claim was denied."""

    def __init__(self, book_id: int, title: str | None = None):
        self.book_id = book_id
        self.title = title
        label = f"'{title}'" if title else f"Book {book_id}"
        super().__init__(f"{label} is not available")


class AlreadyReturned(ConflictError):
    """The loan is already closed; its return date is kept as recorded."""

    def __init__(self, loan_id: int, status: str):
        self.loan_id = loan_id
        self.status = status
        super().__init__(f"Loan {loan_id} has already been returned (status: {status})")
