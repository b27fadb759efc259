"""
Loan models for the Library Lending Engine.

A ``LoanRecord`` is the history of one borrowing event and its resolution.
Records are created by a successful borrow, changed only by a return or by
the overdue sweep, and never deleted.

Status lifecycle::

    BORROWED --return (on time)--> RETURNED
    BORROWED --return (late)-----> RETURNED_LATE
    BORROWED --sweep-------------> OVERDUE --return--> RETURNED_LATE

RETURNED and RETURNED_LATE are terminal.
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LoanStatus(str, Enum):
    """Status of a loan record."""

    BORROWED = "BORROWED"
    RETURNED = "RETURNED"
    RETURNED_LATE = "RETURNED_LATE"
    OVERDUE = "OVERDUE"

    @classmethod
    def active(cls) -> tuple["LoanStatus", ...]:
        """Statuses that keep the referenced book unavailable."""
        return (cls.BORROWED, cls.OVERDUE)

    @classmethod
    def terminal(cls) -> tuple["LoanStatus", ...]:
        return (cls.RETURNED, cls.RETURNED_LATE)


def resolve_return_status(return_deadline: date, returned_on: date) -> LoanStatus:
    """Pick the terminal status for a return made on ``returned_on``.

    Returning on the deadline itself is on time.
    """
    if returned_on > return_deadline:
        return LoanStatus.RETURNED_LATE
    return LoanStatus.RETURNED


class LoanRecord(BaseModel):
    """
    Represents one loan of a catalog entry to a borrower.

    Borrower identity is issued and validated outside the engine; it is
    stored here as an opaque string.
    """

    id: int | None = Field(
        default=None,
        description="Loan identifier assigned by the store",
        ge=1,
    )

    borrower_id: str = Field(
        ...,
        description="Opaque identity of the borrower",
        min_length=1,
        max_length=100,
        examples=["user", "member-0042"],
    )

    book_id: int = Field(
        ...,
        description="Catalog identifier of the borrowed book",
        ge=1,
    )

    borrow_date: date = Field(
        ...,
        description="Date the book was borrowed",
    )

    return_deadline: date = Field(
        ...,
        description="Last day the book can be returned on time",
    )

    actual_return_date: date | None = Field(
        default=None,
        description="Date the book came back, absent until returned",
    )

    status: LoanStatus = Field(
        default=LoanStatus.BORROWED,
        description="Current status of the loan",
    )

    version: int = Field(
        default=0,
        description="Incremented on every status transition",
        ge=0,
    )

    created_at: datetime | None = Field(
        default=None,
        description="When this record was created",
    )

    updated_at: datetime | None = Field(
        default=None,
        description="When this record was last updated",
    )

    @model_validator(mode="after")
    def validate_dates(self) -> "LoanRecord":
        """Validate date relationships."""
        if self.return_deadline <= self.borrow_date:
            raise ValueError("Return deadline must be after borrow date")

        if self.actual_return_date and self.actual_return_date < self.borrow_date:
            raise ValueError("Return date cannot be before borrow date")

        return self

    @property
    def is_active(self) -> bool:
        """True while the loan holds the book (BORROWED or OVERDUE)."""
        return self.status in LoanStatus.active()

    @property
    def is_terminal(self) -> bool:
        return self.status in LoanStatus.terminal()

    @property
    def loan_period_days(self) -> int:
        return (self.return_deadline - self.borrow_date).days

    def is_past_deadline(self, today: date) -> bool:
        return today > self.return_deadline

    def days_overdue(self, today: date) -> int:
        """Days past the deadline, measured at return for closed loans."""
        end_date = self.actual_return_date or today
        return max(0, (end_date - self.return_deadline).days)

    model_config = ConfigDict(
        # Serialize status as its plain string value
        use_enum_values=True,
        populate_by_name=True,
        validate_default=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "borrower_id": "member-0042",
                "book_id": 7,
                "borrow_date": "2024-03-01",
                "return_deadline": "2024-03-15",
                "actual_return_date": None,
                "status": "BORROWED",
                "version": 0,
            }
        },
    )
