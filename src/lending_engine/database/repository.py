"""
Repository pattern implementation for the Library Lending Engine.

The catalog and loan stores are repositories over SQLAlchemy sessions that
return Pydantic models. They never commit: the unit of work that owns the
session decides when a borrow, return or sweep becomes durable, so each of
those operations is all-or-nothing.

Store failures (I/O, connectivity, constraint violations) surface as
``StoreError``. The lending engine passes them through without
interpretation.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import asc, desc, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .schema import Base

logger = logging.getLogger(__name__)

# Type variables for generic repository
ModelType = TypeVar("ModelType", bound=Base)
ResponseSchemaType = TypeVar("ResponseSchemaType", bound=BaseModel)
T = TypeVar("T")


class RepositoryException(Exception):
    """Base exception for repository operations."""


class StoreError(RepositoryException):
    """Raised when the backing store fails; opaque to the lending engine."""


class DuplicateError(RepositoryException):
    """Raised when attempting to create a duplicate entity."""


def safe_query(session: Session, query_func: Callable[[Session], T], error_msg: str) -> T:
    """
    Execute a query, converting database failures into ``StoreError``.

    Args:
        session: The database session
        query_func: Function that performs the query
        error_msg: Context for the raised error

    Returns:
        Query result

    Raises:
        StoreError: If the query fails
    """
    try:
        return query_func(session)
    except SQLAlchemyError as e:
        logger.exception("Query failed")
        raise StoreError(f"{error_msg}: {e!s}") from e


def safe_flush(session: Session, operation: str) -> None:
    """
    Flush pending changes so generated ids and constraints are checked now.

    Raises:
        DuplicateError: On unique constraint violations
        StoreError: On any other database failure
    """
    try:
        session.flush()
    except IntegrityError as e:
        raise DuplicateError(f"Database operation '{operation}' conflicts: {e.orig}") from e
    except SQLAlchemyError as e:
        raise StoreError(f"Database operation '{operation}' failed: {e!s}") from e


def safe_commit(session: Session, operation: str) -> None:
    """Commit the session, rolling back and raising ``StoreError`` on failure."""
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StoreError(f"Database operation '{operation}' failed: {e!s}") from e


class BaseRepository(ABC, Generic[ModelType, ResponseSchemaType]):
    """
    Abstract base repository providing keyed reads.

    Reads always repopulate identity-map objects from the database, because
    availability flips and status transitions are issued as conditional
    UPDATE statements that bypass the ORM.
    """

    def __init__(self, session: Session):
        """Initialize repository with database session."""
        self.session = session

    @property
    @abstractmethod
    def model_class(self) -> type[ModelType]:
        """Return the SQLAlchemy model class."""

    @property
    @abstractmethod
    def response_schema(self) -> type[ResponseSchemaType]:
        """Return the Pydantic response schema."""

    def _to_response_model(self, db_obj: ModelType) -> ResponseSchemaType:
        """Convert database model to Pydantic response model."""
        return self.response_schema.model_validate(db_obj, from_attributes=True)

    def _fetch_all(self, query, error_msg: str) -> list[ResponseSchemaType]:
        query = query.execution_options(populate_existing=True)
        results = safe_query(self.session, lambda s: s.execute(query).scalars().all(), error_msg)
        return [self._to_response_model(item) for item in results]

    def _get_row(self, id: int) -> ModelType | None:
        query = (
            select(self.model_class)
            .where(self.model_class.id == id)
            .execution_options(populate_existing=True)
        )
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            f"Failed to get {self.model_class.__name__} by ID",
        )

    def get(self, id: int) -> ResponseSchemaType | None:
        """
        Get entity by ID.

        Returns:
            Pydantic model or None if not found

        Raises:
            StoreError: On database errors
        """
        db_obj = self._get_row(id)
        if db_obj is None:
            return None
        return self._to_response_model(db_obj)

    def get_all(self, order_by: str | None = None, order_desc: bool = False) -> list[ResponseSchemaType]:
        """Get all entities, optionally sorted by a column name."""
        query = select(self.model_class)

        if order_by and hasattr(self.model_class, order_by):
            order_field = getattr(self.model_class, order_by)
            query = query.order_by(desc(order_field) if order_desc else asc(order_field))
        else:
            query = query.order_by(asc(self.model_class.id))

        return self._fetch_all(query, f"Failed to get all {self.model_class.__name__} rows")

    def exists(self, id: int) -> bool:
        query = select(func.count()).select_from(self.model_class).where(self.model_class.id == id)
        count = safe_query(self.session, lambda s: s.execute(query).scalar(), "Failed to check existence")
        return bool(count)
