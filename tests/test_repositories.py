"""
Tests for the catalog and loan stores.

These tests cover:
1. Catalog CRUD, search and ISBN lookup
2. Availability as a conditional write owned by the inventory guard
3. Loan appends, status queries and conditional transitions
4. Error mapping to DuplicateError and RepositoryException
"""

from datetime import date, timedelta

import pytest

from lending_engine.database import DuplicateError, RepositoryException
from lending_engine.models import BookEntry, LoanRecord, LoanStatus

BORROWED_ON = date(2024, 3, 1)


def new_loan(book_id: int, borrower_id: str = "member-1", borrowed_on: date = BORROWED_ON, **extra):
    return LoanRecord(
        borrower_id=borrower_id,
        book_id=book_id,
        borrow_date=borrowed_on,
        return_deadline=borrowed_on + timedelta(days=14),
        **extra,
    )


class TestCatalogRepository:
    def test_save_new_entry(self, db_manager):
        with db_manager.unit_of_work() as uow:
            saved = uow.catalog.save(
                BookEntry(
                    title="Emma",
                    author="Jane Austen",
                    isbn="978-0-14-143958-7",
                    genre="fiction",
                    available=False,
                    version=5,
                )
            )

        assert saved.id is not None
        assert saved.isbn == "9780141439587"
        assert saved.available is True
        assert saved.version == 0
        assert saved.created_at is not None

    def test_update_keeps_availability(self, db_manager, manager, sample_book):
        manager.borrow("member-1", sample_book.id, today=BORROWED_ON)

        with db_manager.unit_of_work() as uow:
            current = uow.catalog.get(sample_book.id)
            edited = current.model_copy(update={"title": "The Great Gatsby (Annotated)", "available": True})
            updated = uow.catalog.save(edited)

        assert updated.title == "The Great Gatsby (Annotated)"
        assert updated.available is False
        assert updated.version == current.version

    def test_update_missing_entry(self, db_manager, sample_book):
        ghost = sample_book.model_copy(update={"id": 999})

        with db_manager.unit_of_work() as uow:
            assert uow.catalog.save(ghost) is None

    def test_duplicate_isbn(self, db_manager, sample_book):
        with pytest.raises(DuplicateError):
            with db_manager.unit_of_work() as uow:
                uow.catalog.save(
                    BookEntry(
                        title="Gatsby Again",
                        author="Someone Else",
                        isbn=sample_book.isbn,
                        genre="Fiction",
                    )
                )

    def test_get_by_isbn_normalizes(self, db_manager, sample_book):
        with db_manager.unit_of_work() as uow:
            found = uow.catalog.get_by_isbn("978 0743 27356-5")
            missing = uow.catalog.get_by_isbn("9780000000000")

        assert found.id == sample_book.id
        assert missing is None

    def test_search_title_and_author(self, db_manager, sample_books):
        with db_manager.unit_of_work() as uow:
            by_title = uow.catalog.search("hobbit")
            by_author = uow.catalog.search("ORWELL")
            nothing = uow.catalog.search("dostoevsky")

        assert [book.title for book in by_title] == ["The Hobbit"]
        assert [book.title for book in by_author] == ["1984"]
        assert nothing == []

    def test_get_all_ordering(self, db_manager, sample_books):
        with db_manager.unit_of_work() as uow:
            by_id = uow.catalog.get_all()
            by_title_desc = uow.catalog.get_all(order_by="title", order_desc=True)

        assert [book.id for book in by_id] == sorted(book.id for book in sample_books)
        assert [book.title for book in by_title_desc] == ["To Kill a Mockingbird", "The Hobbit", "1984"]

    def test_exists(self, db_manager, sample_book):
        with db_manager.unit_of_work() as uow:
            assert uow.catalog.exists(sample_book.id) is True
            assert uow.catalog.exists(sample_book.id + 100) is False

    def test_delete_unlent_entry(self, db_manager, sample_book):
        with db_manager.unit_of_work() as uow:
            assert uow.catalog.delete(sample_book.id) is True
            assert uow.catalog.delete(sample_book.id) is False

    def test_delete_refused_with_loan_history(self, db_manager, manager, sample_book):
        loan = manager.borrow("member-1", sample_book.id, today=BORROWED_ON)
        manager.return_loan(loan.id, today=BORROWED_ON + timedelta(days=1))

        with pytest.raises(RepositoryException, match="loan history"):
            with db_manager.unit_of_work() as uow:
                uow.catalog.delete(sample_book.id)

    def test_set_availability_conditional(self, db_manager, sample_book):
        with db_manager.unit_of_work() as uow:
            assert uow.catalog.set_availability(sample_book.id, False, expected=True) is True
            assert uow.catalog.set_availability(sample_book.id, False, expected=True) is False
            book = uow.catalog.get(sample_book.id)

        assert book.available is False
        assert book.version == 1

    def test_set_availability_unconditional(self, db_manager, sample_book):
        with db_manager.unit_of_work() as uow:
            assert uow.catalog.set_availability(sample_book.id, True) is True
            assert uow.catalog.set_availability(999, True) is False

    def test_get_available(self, db_manager, sample_books):
        with db_manager.unit_of_work() as uow:
            uow.catalog.set_availability(sample_books[2].id, False, expected=True)
            titles = [book.title for book in uow.catalog.get_available()]

        assert titles == ["1984", "To Kill a Mockingbird"]


class TestLoanRepository:
    def test_append_loan(self, db_manager, sample_book):
        with db_manager.unit_of_work() as uow:
            saved = uow.loans.save(new_loan(sample_book.id))

        assert saved.id is not None
        assert saved.status == LoanStatus.BORROWED
        assert saved.version == 0

    def test_save_updates_mutable_fields_only(self, db_manager, sample_book):
        with db_manager.unit_of_work() as uow:
            saved = uow.loans.save(new_loan(sample_book.id))
            changed = saved.model_copy(
                update={
                    "status": LoanStatus.RETURNED,
                    "actual_return_date": BORROWED_ON + timedelta(days=3),
                    "borrower_id": "someone-else",
                }
            )
            updated = uow.loans.save(changed)

        assert updated.status == LoanStatus.RETURNED
        assert updated.actual_return_date == BORROWED_ON + timedelta(days=3)
        assert updated.borrower_id == "member-1"
        assert updated.version == 1

    def test_save_missing_loan(self, db_manager, sample_book):
        with db_manager.unit_of_work() as uow:
            assert uow.loans.save(new_loan(sample_book.id, id=404)) is None

    def test_get_by_borrower_order(self, db_manager, sample_books):
        with db_manager.unit_of_work() as uow:
            oldest = uow.loans.save(new_loan(sample_books[0].id, borrowed_on=BORROWED_ON))
            newest = uow.loans.save(
                new_loan(sample_books[1].id, borrowed_on=BORROWED_ON + timedelta(days=9))
            )
            same_day = uow.loans.save(new_loan(sample_books[2].id, borrowed_on=BORROWED_ON))
            uow.loans.save(new_loan(sample_books[2].id, borrower_id="member-2"))

        with db_manager.unit_of_work() as uow:
            history = uow.loans.get_by_borrower("member-1")

        assert [loan.id for loan in history] == [newest.id, same_day.id, oldest.id]

    def test_get_by_status(self, db_manager, sample_books):
        with db_manager.unit_of_work() as uow:
            borrowed = uow.loans.save(new_loan(sample_books[0].id))
            overdue = uow.loans.save(new_loan(sample_books[1].id, status=LoanStatus.OVERDUE))
            uow.loans.save(
                new_loan(
                    sample_books[2].id,
                    status=LoanStatus.RETURNED,
                    actual_return_date=BORROWED_ON,
                )
            )

            only_borrowed = uow.loans.get_by_status(LoanStatus.BORROWED)
            active = uow.loans.get_by_status(LoanStatus.active())

        assert [loan.id for loan in only_borrowed] == [borrowed.id]
        assert [loan.id for loan in active] == [borrowed.id, overdue.id]

    def test_get_active_for_book(self, db_manager, sample_book):
        with db_manager.unit_of_work() as uow:
            assert uow.loans.get_active_for_book(sample_book.id) is None
            loan = uow.loans.save(new_loan(sample_book.id))
            assert uow.loans.get_active_for_book(sample_book.id).id == loan.id

    def test_get_due_before_is_strict(self, db_manager, sample_books):
        with db_manager.unit_of_work() as uow:
            early = uow.loans.save(new_loan(sample_books[0].id, borrowed_on=BORROWED_ON))
            uow.loans.save(new_loan(sample_books[1].id, borrowed_on=BORROWED_ON + timedelta(days=1)))

            deadline = BORROWED_ON + timedelta(days=14)
            on_deadline = uow.loans.get_due_before(deadline)
            day_after = uow.loans.get_due_before(deadline + timedelta(days=1))

        assert on_deadline == []
        assert [loan.id for loan in day_after] == [early.id]

    def test_transition_is_conditional(self, db_manager, sample_book):
        returned_on = BORROWED_ON + timedelta(days=2)
        with db_manager.unit_of_work() as uow:
            loan = uow.loans.save(new_loan(sample_book.id))

            assert uow.loans.transition(
                loan.id, LoanStatus.active(), LoanStatus.RETURNED, actual_return_date=returned_on
            )
            assert not uow.loans.transition(loan.id, [LoanStatus.BORROWED], LoanStatus.OVERDUE)

            current = uow.loans.get(loan.id)

        assert current.status == LoanStatus.RETURNED
        assert current.actual_return_date == returned_on
        assert current.version == 1
