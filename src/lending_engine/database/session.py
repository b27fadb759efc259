"""
Database session management for the Library Lending Engine.

This module owns the SQLAlchemy engine and hands out units of work. A
``UnitOfWork`` is the explicit transaction boundary for one borrow, return
or sweep:

- it opens one session and binds the catalog and loan stores to it
- it commits when the block finishes cleanly
- it rolls back on any exception and re-raises it

Nothing commits implicitly. A claim that succeeded but whose loan record
could not be written is rolled back together with the record.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from ..config import get_config
from .catalog_repository import CatalogRepository
from .loan_repository import LoanRepository
from .repository import safe_commit
from .schema import Base

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Transaction scope for one lending operation.

    Usage::

        with db_manager.unit_of_work() as uow:
            book = uow.catalog.get(book_id)
            ...
        # committed here, or rolled back if the block raised
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self.session: Session | None = None
        self.catalog: CatalogRepository | None = None
        self.loans: LoanRepository | None = None

    def __enter__(self) -> "UnitOfWork":
        self.session = self._session_factory()
        self.catalog = CatalogRepository(self.session)
        self.loans = LoanRepository(self.session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                self.commit()
                logger.debug("Unit of work committed")
            else:
                logger.debug("Unit of work rolled back after %s", exc_type.__name__)
                self.rollback()
        finally:
            self.session.close()

    def commit(self) -> None:
        safe_commit(self.session, "commit unit of work")

    def rollback(self) -> None:
        self.session.rollback()


class DatabaseManager:
    """
    Manages the database engine, sessions and units of work.

    SQLite on disk uses SQLAlchemy's default connection pool so that every
    concurrent caller gets its own connection and its own transaction.
    In-memory SQLite keeps exactly one connection alive, since each new
    connection would otherwise see an empty database. The pool hands it to
    one session at a time: a unit of work holds it from its first statement
    until commit or rollback, and concurrent callers queue for it.
    """

    def __init__(self, database_url: str | None = None, busy_timeout: float | None = None):
        """
        Initialize the database manager.

        Args:
            database_url: SQLAlchemy database URL. If None, uses the configured path.
            busy_timeout: Seconds a SQLite writer waits on a locked database.
        """
        config = get_config()
        if database_url is None:
            db_path = config.database_path

            if not db_path.is_absolute():
                db_path = Path.cwd() / db_path

            db_path.parent.mkdir(exist_ok=True, parents=True)

            database_url = f"sqlite:///{db_path}"
            logger.info("Using SQLite database at: %s", db_path)

        self.database_url = database_url
        self.busy_timeout = busy_timeout if busy_timeout is not None else config.sqlite_busy_timeout
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def is_in_memory(self) -> bool:
        return self.database_url.startswith("sqlite") and (
            ":memory:" in self.database_url or self.database_url.rstrip("/") == "sqlite:"
        )

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            if self.database_url.startswith("sqlite"):
                connect_args = {"check_same_thread": False, "timeout": self.busy_timeout}
                if self.is_in_memory:
                    self._engine = create_engine(
                        self.database_url,
                        poolclass=QueuePool,
                        pool_size=1,
                        max_overflow=0,
                        pool_timeout=self.busy_timeout,
                        connect_args=connect_args,
                        echo=False,
                    )
                else:
                    self._engine = create_engine(
                        self.database_url,
                        connect_args=connect_args,
                        echo=False,
                    )

                @event.listens_for(self._engine, "connect")
                def set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ARG001
                    cursor = dbapi_connection.cursor()
                    cursor.execute("PRAGMA foreign_keys=ON")
                    cursor.close()
            else:
                self._engine = create_engine(
                    self.database_url,
                    pool_size=10,
                    max_overflow=20,
                    pool_pre_ping=True,
                    echo=False,
                )

            logger.info("Database engine created: %s", self._engine.url)

        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._session_factory

    def create_session(self) -> Session:
        """Create a new database session. The caller must close it."""
        return self.session_factory()

    def unit_of_work(self) -> UnitOfWork:
        """Create a unit of work; enter it with ``with`` to start the transaction."""
        return UnitOfWork(self.session_factory)

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a plain transactional session.

        Committed on success, rolled back and re-raised on error.
        """
        session = self.create_session()
        try:
            yield session
            session.commit()
        except Exception:
            logger.exception("Database error, rolling back")
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self, drop_existing: bool = False) -> None:
        """
        Create the schema.

        Args:
            drop_existing: If True, drop all tables before creating
        """
        if drop_existing:
            logger.warning("Dropping all existing tables...")
            Base.metadata.drop_all(bind=self.engine)

        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database initialization complete")

    def verify_connection(self) -> bool:
        """Return True if a trivial query succeeds."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database connection verified")
            return True
        except SQLAlchemyError:
            logger.exception("Database connection failed")
            return False

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine:
            self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None


_db_manager: DatabaseManager | None = None


def get_db_manager(database_url: str | None = None) -> DatabaseManager:
    """
    Get the process-wide database manager.

    Args:
        database_url: Database URL (only used on first call)
    """
    global _db_manager  # noqa: PLW0603 - Singleton pattern for database manager

    if _db_manager is None:
        _db_manager = DatabaseManager(database_url)

    return _db_manager


def reset_db_manager() -> None:
    """Dispose of and forget the process-wide database manager."""
    global _db_manager  # noqa: PLW0603

    if _db_manager is not None:
        _db_manager.close()
    _db_manager = None

