"""
Loan store for the Library Lending Engine.

Keyed storage of ``LoanRecord`` rows. Records are appended by ``save`` and
moved between statuses by ``transition``, a conditional UPDATE that only
succeeds while the row is still in one of the expected statuses. Concurrent
returns and sweeps on the same loan therefore cannot overwrite each other.
There is no delete: loan history is append-only.
"""

import logging
from collections.abc import Iterable
from datetime import date

from sqlalchemy import and_, desc, select, update

from ..models.loan import LoanRecord, LoanStatus
from .repository import BaseRepository, safe_flush, safe_query
from .schema import LoanRecord as LoanDB

logger = logging.getLogger(__name__)

# Fields that change after a loan is created
MUTABLE_FIELDS = ("status", "actual_return_date")


class LoanRepository(BaseRepository[LoanDB, LoanRecord]):
    """Repository for loan records."""

    @property
    def model_class(self):
        return LoanDB

    @property
    def response_schema(self):
        return LoanRecord

    def get_by_borrower(self, borrower_id: str) -> list[LoanRecord]:
        """Borrower history, most recent borrow date first."""
        query = (
            select(LoanDB)
            .where(LoanDB.borrower_id == borrower_id)
            .order_by(desc(LoanDB.borrow_date), desc(LoanDB.id))
        )
        return self._fetch_all(query, "Failed to get loans by borrower")

    def get_by_status(self, status: LoanStatus | Iterable[LoanStatus]) -> list[LoanRecord]:
        """Loans in the given status (or any of several), oldest first."""
        statuses = [status] if isinstance(status, LoanStatus) else list(status)
        query = select(LoanDB).where(LoanDB.status.in_(statuses)).order_by(LoanDB.id)
        return self._fetch_all(query, "Failed to get loans by status")

    def get_active_for_book(self, book_id: int) -> LoanRecord | None:
        """The BORROWED or OVERDUE loan holding ``book_id``, if any."""
        query = (
            select(LoanDB)
            .where(and_(LoanDB.book_id == book_id, LoanDB.status.in_(LoanStatus.active())))
            .execution_options(populate_existing=True)
        )
        result = safe_query(
            self.session,
            lambda s: s.execute(query).scalars().first(),
            "Failed to get active loan for book",
        )
        if result is None:
            return None
        return self._to_response_model(result)

    def get_due_before(self, cutoff: date, status: LoanStatus = LoanStatus.BORROWED) -> list[LoanRecord]:
        """Loans in ``status`` whose deadline falls strictly before ``cutoff``."""
        query = (
            select(LoanDB)
            .where(and_(LoanDB.status == status, LoanDB.return_deadline < cutoff))
            .order_by(LoanDB.return_deadline, LoanDB.id)
        )
        return self._fetch_all(query, "Failed to get loans past deadline")

    def save(self, loan: LoanRecord) -> LoanRecord | None:
        """
        Append a new loan, or write the mutable fields of an existing one.

        Returns:
            The stored loan, or None if ``loan.id`` does not exist

        Raises:
            StoreError: On database errors
        """
        if loan.id is None:
            db_obj = LoanDB(
                **loan.model_dump(
                    exclude={"id", "version", "created_at", "updated_at"},
                ),
                version=0,
            )
            self.session.add(db_obj)
            safe_flush(self.session, "create loan")
            self.session.refresh(db_obj)
            return self._to_response_model(db_obj)

        db_obj = self._get_row(loan.id)
        if db_obj is None:
            return None

        for field in MUTABLE_FIELDS:
            setattr(db_obj, field, getattr(loan, field))
        db_obj.version = db_obj.version + 1

        safe_flush(self.session, "update loan")
        self.session.refresh(db_obj)
        return self._to_response_model(db_obj)

    def transition(
        self,
        loan_id: int,
        from_statuses: Iterable[LoanStatus],
        to_status: LoanStatus,
        actual_return_date: date | None = None,
    ) -> bool:
        """
        Move a loan to ``to_status`` only if it is still in ``from_statuses``.

        Issued as one conditional UPDATE that also bumps ``version``.

        Returns:
            True if exactly one row changed
        """
        loans = LoanDB.__table__
        values = {"status": to_status, "version": loans.c.version + 1}
        if actual_return_date is not None:
            values["actual_return_date"] = actual_return_date

        statement = (
            update(loans)
            .where(and_(loans.c.id == loan_id, loans.c.status.in_(list(from_statuses))))
            .values(**values)
        )
        result = safe_query(
            self.session,
            lambda s: s.execute(statement),
            "Failed to transition loan",
        )
        return result.rowcount == 1
