"""
Loan lifecycle manager for the Library Lending Engine.

Orchestrates the three state transitions of a loan:

1. **Borrow**: claim the book through the inventory guard, then append a
   BORROWED loan with ``return_deadline = today + loan period``
2. **Return**: close the loan as RETURNED or RETURNED_LATE and release the
   book, including loans the sweep already marked OVERDUE
3. **Sweep**: promote BORROWED loans past their deadline to OVERDUE without
   touching availability

Each operation runs inside exactly one unit of work. A caller may pass its
own ``uow`` to group several operations; the caller then owns the commit.
Without one, the manager opens a unit of work per call and commits it before
returning.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from datetime import date, timedelta

from ..clock import Clock, SystemClock
from ..config import get_config
from ..database.session import DatabaseManager, UnitOfWork
from ..models.book import BookEntry
from ..models.loan import LoanRecord, LoanStatus, resolve_return_status
from .errors import AlreadyReturned, BookNotFound, LoanNotFound
from .inventory import InventoryGuard

logger = logging.getLogger(__name__)


class LoanLifecycleManager:
    """
    Borrow, return and overdue-sweep transitions over the catalog and loan stores.

    Args:
        db_manager: Source of units of work
        clock: Supplies ``today`` when an operation is not given a date
        loan_period_days: Overrides the configured loan period
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        clock: Clock | None = None,
        loan_period_days: int | None = None,
    ):
        self.db_manager = db_manager
        self.clock = clock or SystemClock()
        if loan_period_days is None:
            loan_period_days = get_config().loan_period_days
        self.loan_period = timedelta(days=loan_period_days)

    @contextmanager
    def _scope(self, uow: UnitOfWork | None) -> Generator[UnitOfWork, None, None]:
        if uow is not None:
            yield uow
            return
        with self.db_manager.unit_of_work() as own:
            yield own

    def _today(self, today: date | None) -> date:
        return self.clock.today() if today is None else today

    # === Transitions ===

    def borrow(
        self,
        borrower_id: str,
        book_id: int,
        today: date | None = None,
        uow: UnitOfWork | None = None,
    ) -> LoanRecord:
        """
        Lend ``book_id`` to ``borrower_id``.

        The book's availability flips to false exactly once per successful
        call, in the same transaction that appends the loan.

        Raises:
            BookNotFound: If the book is not catalogued
            BookUnavailable: If the book is already on loan
            ValueError: If ``borrower_id`` is empty or longer than 100 characters;
                raised before the book is claimed
        """
        today = self._today(today)

        with self._scope(uow) as work:
            book = work.catalog.get(book_id)
            if book is None:
                raise BookNotFound(book_id)

            # Validate before claiming
            pending = LoanRecord(
                borrower_id=borrower_id,
                book_id=book_id,
                borrow_date=today,
                return_deadline=today + self.loan_period,
                status=LoanStatus.BORROWED,
            )

            InventoryGuard(work.catalog).try_claim(book_id)
            loan = work.loans.save(pending)

        logger.info(
            "Loan %s: book %s lent to %s, due %s",
            loan.id,
            book_id,
            borrower_id,
            loan.return_deadline.isoformat(),
        )
        return loan

    def return_loan(
        self,
        loan_id: int,
        today: date | None = None,
        uow: UnitOfWork | None = None,
    ) -> LoanRecord:
        """
        Close a loan and make its book available again.

        Returning on the deadline itself is on time; any later day is late.
        A loan that is already RETURNED or RETURNED_LATE is left untouched.

        Raises:
            LoanNotFound: If the loan does not exist
            AlreadyReturned: If the loan is already closed
            ValueError: If ``today`` is before the borrow date
        """
        today = self._today(today)

        with self._scope(uow) as work:
            loan = work.loans.get(loan_id)
            if loan is None:
                raise LoanNotFound(loan_id)
            if loan.is_terminal:
                raise AlreadyReturned(loan_id, loan.status)
            if today < loan.borrow_date:
                raise ValueError(
                    f"Return date {today.isoformat()} is before borrow date "
                    f"{loan.borrow_date.isoformat()}"
                )

            status = resolve_return_status(loan.return_deadline, today)
            if not work.loans.transition(
                loan_id, LoanStatus.active(), status, actual_return_date=today
            ):
                # Another caller closed the loan between our read and write
                current = work.loans.get(loan_id)
                raise AlreadyReturned(loan_id, current.status)

            InventoryGuard(work.catalog).release(loan.book_id)
            returned = work.loans.get(loan_id)

        logger.info(
            "Loan %s: book %s returned on %s as %s",
            loan_id,
            returned.book_id,
            today.isoformat(),
            returned.status,
        )
        return returned

    def sweep_overdue(
        self,
        today: date | None = None,
        uow: UnitOfWork | None = None,
    ) -> list[LoanRecord]:
        """
        Mark BORROWED loans whose deadline has passed as OVERDUE.

        Availability is not touched: the books have been unavailable since
        they were borrowed. Running the sweep again on the same day changes
        nothing, since OVERDUE loans no longer match.

        Returns:
            The loans moved to OVERDUE by this run
        """
        today = self._today(today)
        swept: list[LoanRecord] = []

        with self._scope(uow) as work:
            candidates = work.loans.get_due_before(today, status=LoanStatus.BORROWED)
            for loan in candidates:
                if work.loans.transition(loan.id, [LoanStatus.BORROWED], LoanStatus.OVERDUE):
                    swept.append(work.loans.get(loan.id))
                else:
                    logger.debug("Loan %s changed status during sweep, skipped", loan.id)

        logger.info(
            "Overdue sweep for %s: %d of %d candidate loans marked overdue",
            today.isoformat(),
            len(swept),
            len(candidates),
        )
        return swept

    # === Queries ===

    def get_loan(self, loan_id: int, uow: UnitOfWork | None = None) -> LoanRecord:
        """
        Raises:
            LoanNotFound: If the loan does not exist
        """
        with self._scope(uow) as work:
            loan = work.loans.get(loan_id)
        if loan is None:
            raise LoanNotFound(loan_id)
        return loan

    def get_history(self, borrower_id: str, uow: UnitOfWork | None = None) -> list[LoanRecord]:
        """Loans of one borrower, most recent borrow date first."""
        with self._scope(uow) as work:
            return work.loans.get_by_borrower(borrower_id)

    def get_active(self, uow: UnitOfWork | None = None) -> list[LoanRecord]:
        """Loans currently in status BORROWED."""
        with self._scope(uow) as work:
            return work.loans.get_by_status(LoanStatus.BORROWED)

    def get_overdue(self, uow: UnitOfWork | None = None) -> list[LoanRecord]:
        with self._scope(uow) as work:
            return work.loans.get_by_status(LoanStatus.OVERDUE)

    def get_all(self, uow: UnitOfWork | None = None) -> list[LoanRecord]:
        with self._scope(uow) as work:
            return work.loans.get_all()

    def get_available_books(self, uow: UnitOfWork | None = None) -> list[BookEntry]:
        with self._scope(uow) as work:
            return work.catalog.get_available()

    def search_books(self, keyword: str, uow: UnitOfWork | None = None) -> list[BookEntry]:
        """Catalog entries whose title or author contains ``keyword``, ignoring case."""
        with self._scope(uow) as work:
            return work.catalog.search(keyword)
