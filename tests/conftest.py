"""Test configuration and fixtures for the Library Lending Engine.

1. Isolated databases - every test gets its own SQLite file under tmp_path
2. Configuration isolation - env-driven settings are reset around each test
3. Controlled time - a FixedClock pinned to DAY_ZERO drives every lifecycle call
4. Invariant checking - a fixture that verifies availability matches active loans
"""

from collections.abc import Callable, Generator
from datetime import date
from pathlib import Path

import pytest
from sqlalchemy import select

from lending_engine.clock import FixedClock
from lending_engine.config import reset_config
from lending_engine.database import DatabaseManager, reset_db_manager
from lending_engine.database.schema import Book as BookDB
from lending_engine.database.schema import LoanRecord as LoanDB
from lending_engine.lending import LoanLifecycleManager
from lending_engine.models import BookEntry, LoanStatus

DAY_ZERO = date(2024, 3, 1)


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "concurrency: tests that exercise concurrent callers against a file database"
    )


# === Environment and Configuration ===


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Point configuration at a throwaway database and clear cached singletons."""
    for key in ("LENDING_ENGINE_LOAN_PERIOD_DAYS", "LENDING_ENGINE_DEBUG", "LENDING_ENGINE_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("LENDING_ENGINE_DATABASE_PATH", str(tmp_path / "configured.db"))
    reset_config()
    reset_db_manager()

    yield

    reset_db_manager()
    reset_config()


# === Database Fixtures ===


@pytest.fixture
def test_db_path(tmp_path: Path) -> Path:
    return tmp_path / "test_lending.db"


@pytest.fixture
def test_database_url(test_db_path: Path) -> str:
    return f"sqlite:///{test_db_path}"


@pytest.fixture
def db_manager(test_database_url: str) -> Generator[DatabaseManager, None, None]:
    """A database manager over a fresh file database with the schema created."""
    manager = DatabaseManager(test_database_url, busy_timeout=30.0)
    manager.init_database()
    yield manager
    manager.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(DAY_ZERO)


@pytest.fixture
def manager(db_manager: DatabaseManager, clock: FixedClock) -> LoanLifecycleManager:
    return LoanLifecycleManager(db_manager, clock=clock, loan_period_days=14)


# === Test Data Fixtures ===


@pytest.fixture
def sample_book(db_manager: DatabaseManager) -> BookEntry:
    """One available catalog entry."""
    with db_manager.unit_of_work() as uow:
        return uow.catalog.save(
            BookEntry(
                title="The Great Gatsby",
                author="F. Scott Fitzgerald",
                isbn="978-0-7432-7356-5",
                genre="fiction",
            )
        )


@pytest.fixture
def sample_books(db_manager: DatabaseManager) -> list[BookEntry]:
    """Three available catalog entries."""
    entries = [
        BookEntry(title="To Kill a Mockingbird", author="Harper Lee", isbn="9780061120084", genre="Fiction"),
        BookEntry(title="1984", author="George Orwell", isbn="9780451524935", genre="Science Fiction"),
        BookEntry(title="The Hobbit", author="J.R.R. Tolkien", isbn="9780547928227", genre="Fantasy"),
    ]
    with db_manager.unit_of_work() as uow:
        return [uow.catalog.save(entry) for entry in entries]


# === Invariant Checking ===


@pytest.fixture
def check_invariant(db_manager: DatabaseManager) -> Callable[[], None]:
    """
    Return a callable asserting, for every book, that ``available`` is false
    exactly when one loan referencing it is BORROWED or OVERDUE.
    """

    def _check() -> None:
        with db_manager.session_scope() as session:
            books = session.execute(select(BookDB)).scalars().all()
            for book in books:
                active = (
                    session.execute(
                        select(LoanDB).where(
                            LoanDB.book_id == book.id,
                            LoanDB.status.in_(LoanStatus.active()),
                        )
                    )
                    .scalars()
                    .all()
                )
                assert len(active) <= 1, f"Book {book.id} has {len(active)} active loans"
                assert book.available == (len(active) == 0), (
                    f"Book {book.id} available={book.available} with {len(active)} active loan(s)"
                )

    return _check
