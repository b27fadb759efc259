"""
Catalog store for the Library Lending Engine.

Keyed storage of ``BookEntry`` rows. Descriptive fields are written through
``save``; the ``available`` flag is written only through
``set_availability``, a conditional UPDATE that the inventory guard uses to
claim and release books atomically.
"""

import logging

from sqlalchemy import and_, func, or_, select, update

from ..models.book import BookEntry
from .repository import (
    BaseRepository,
    RepositoryException,
    safe_flush,
    safe_query,
)
from .schema import Book as BookDB
from .schema import LoanRecord as LoanDB

logger = logging.getLogger(__name__)

# Columns a catalog edit may touch. ``available`` and ``version`` belong to
# the inventory guard.
DESCRIPTIVE_FIELDS = ("title", "author", "isbn", "genre", "quantity")


class CatalogRepository(BaseRepository[BookDB, BookEntry]):
    """Repository for catalog entries."""

    @property
    def model_class(self):
        return BookDB

    @property
    def response_schema(self):
        return BookEntry

    def get_available(self) -> list[BookEntry]:
        """Get every entry that can currently be borrowed, ordered by title."""
        query = select(BookDB).where(BookDB.available.is_(True)).order_by(BookDB.title, BookDB.id)
        return self._fetch_all(query, "Failed to get available books")

    def get_by_isbn(self, isbn: str) -> BookEntry | None:
        normalized_isbn = isbn.replace("-", "").replace(" ", "")
        query = (
            select(BookDB)
            .where(BookDB.isbn == normalized_isbn)
            .execution_options(populate_existing=True)
        )
        result = safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            "Failed to get book by ISBN",
        )
        if result is None:
            return None
        return self._to_response_model(result)

    def search(self, keyword: str) -> list[BookEntry]:
        """Case-insensitive match on title or author."""
        term = f"%{keyword.strip()}%"
        query = (
            select(BookDB)
            .where(or_(BookDB.title.ilike(term), BookDB.author.ilike(term)))
            .order_by(BookDB.title, BookDB.id)
        )
        return self._fetch_all(query, "Failed to search books")

    def save(self, entry: BookEntry) -> BookEntry | None:
        """
        Insert a new entry or update the descriptive fields of an existing one.

        New entries always start available: they have no loans yet. For
        existing entries, ``available`` and ``version`` on the given model are
        ignored.

        Returns:
            The stored entry, or None if ``entry.id`` does not exist

        Raises:
            DuplicateError: If the ISBN is already catalogued
            StoreError: On other database errors
        """
        if entry.id is None:
            db_obj = BookDB(
                **entry.model_dump(include=set(DESCRIPTIVE_FIELDS)),
                available=True,
                version=0,
            )
            self.session.add(db_obj)
            safe_flush(self.session, "create book")
            self.session.refresh(db_obj)
            logger.debug("Catalogued book %s (%s)", db_obj.id, db_obj.isbn)
            return self._to_response_model(db_obj)

        db_obj = self._get_row(entry.id)
        if db_obj is None:
            return None

        for field in DESCRIPTIVE_FIELDS:
            setattr(db_obj, field, getattr(entry, field))

        safe_flush(self.session, "update book")
        self.session.refresh(db_obj)
        return self._to_response_model(db_obj)

    def delete(self, id: int) -> bool:
        """
        Delete an entry that has never been lent.

        Loan history is append-only, so an entry referenced by any loan
        cannot be removed.

        Returns:
            True if deleted, False if not found

        Raises:
            RepositoryException: If the entry has loan history
        """
        db_obj = self._get_row(id)
        if db_obj is None:
            return False

        loan_count = safe_query(
            self.session,
            lambda s: s.execute(
                select(func.count()).select_from(LoanDB).where(LoanDB.book_id == id)
            ).scalar(),
            "Failed to count loans for book",
        )
        if loan_count:
            raise RepositoryException(f"Book {id} has loan history and cannot be deleted")

        self.session.delete(db_obj)
        safe_flush(self.session, "delete book")
        return True

    def set_availability(self, book_id: int, available: bool, expected: bool | None = None) -> bool:
        """
        Set ``available`` with a single conditional UPDATE and bump ``version``.

        Args:
            book_id: Catalog entry to change
            available: New value for the flag
            expected: If given, only update when the stored flag equals it

        Returns:
            True if exactly one row changed
        """
        books = BookDB.__table__
        conditions = [books.c.id == book_id]
        if expected is not None:
            conditions.append(books.c.available == expected)

        statement = (
            update(books)
            .where(and_(*conditions))
            .values(available=available, version=books.c.version + 1)
        )
        result = safe_query(
            self.session,
            lambda s: s.execute(statement),
            "Failed to update book availability",
        )
        return result.rowcount == 1
