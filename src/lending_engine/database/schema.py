"""
SQLAlchemy database schema for the Library Lending Engine.

Two tables back the engine:

1. ``books`` - the catalog, with the ``available`` flag the inventory guard
   claims and releases
2. ``loan_records`` - append-only loan history referencing ``books``

Both tables carry a ``version`` column. Availability flips and loan status
transitions are issued as conditional UPDATE statements that bump it, so a
concurrent writer that lost the race affects zero rows instead of silently
overwriting the winner.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from ..models.loan import LoanStatus

# Base class for all SQLAlchemy models
Base = declarative_base()


class Book(Base):
    """
    Books table - the library catalog.

    ``available`` is owned by the inventory guard. Every other writer leaves
    it untouched.
    """

    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False)
    author = Column(String(200), nullable=False)
    isbn = Column(String(17), nullable=False, unique=True)
    genre = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    available = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    loans = relationship("LoanRecord", back_populates="book")

    __table_args__ = (
        Index("idx_book_title", "title"),
        Index("idx_book_author", "author"),
        Index("idx_book_availability", "available"),
        CheckConstraint("quantity >= 1", name="check_quantity_positive"),
        CheckConstraint("version >= 0", name="check_book_version_non_negative"),
    )


class LoanRecord(Base):
    """
    Loan records table - one row per borrowing event.

    Rows are never deleted. At most one row per book may be in an active
    status (BORROWED or OVERDUE) at any instant.
    """

    __tablename__ = "loan_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    borrower_id = Column(String(100), nullable=False)
    book_id = Column(Integer, ForeignKey("books.id"), nullable=False)
    borrow_date = Column(Date, nullable=False)
    return_deadline = Column(Date, nullable=False)
    actual_return_date = Column(Date, nullable=True)
    status = Column(Enum(LoanStatus), nullable=False, default=LoanStatus.BORROWED)
    version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    book = relationship("Book", back_populates="loans")

    __table_args__ = (
        Index("idx_loan_borrower", "borrower_id"),
        Index("idx_loan_book", "book_id"),
        Index("idx_loan_status", "status"),
        Index("idx_loan_deadline", "return_deadline"),
        CheckConstraint("return_deadline > borrow_date", name="check_deadline_after_borrow"),
        CheckConstraint(
            "actual_return_date IS NULL OR actual_return_date >= borrow_date",
            name="check_return_not_before_borrow",
        ),
        CheckConstraint("version >= 0", name="check_loan_version_non_negative"),
    )
