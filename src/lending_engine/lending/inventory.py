"""
Inventory guard: the only writer of ``BookEntry.available``.

A claim is the atomic act of marking a book unavailable in exchange for
permission to create a loan. It is a single conditional UPDATE
(``... WHERE id = :id AND available = true``) whose affected-row count
decides the winner, so two concurrent borrowers of the same book can never
both observe ``available = true`` and both succeed. The guard runs inside the
caller's unit of work: if the loan record cannot be written afterwards, the
claim is rolled back with it.
"""

import logging
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..database.catalog_repository import CatalogRepository
from .errors import BookNotFound, BookUnavailable

logger = logging.getLogger(__name__)


class Claim(BaseModel):
    """Proof that a book was flipped to unavailable for one loan."""

    book_id: int
    version: int = Field(description="Book version after the claim")
    claimed_at: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(frozen=True)


class InventoryGuard:
    """Claims and releases catalog entries through the catalog store."""

    def __init__(self, catalog: CatalogRepository):
        self.catalog = catalog

    def try_claim(self, book_id: int) -> Claim:
        """
        Flip ``available`` from true to false for ``book_id``.

        Raises:
            BookUnavailable: If the book was not available at the moment of claim
            BookNotFound: If the book does not exist
        """
        if not self.catalog.set_availability(book_id, available=False, expected=True):
            book = self.catalog.get(book_id)
            if book is None:
                raise BookNotFound(book_id)
            logger.info("Claim denied for book %s: already on loan", book_id)
            raise BookUnavailable(book_id, book.title)

        book = self.catalog.get(book_id)
        logger.debug("Claimed book %s at version %s", book_id, book.version)
        return Claim(book_id=book_id, version=book.version)

    def release(self, book_id: int) -> None:
        """
        Make ``book_id`` available again. Called once per returned loan.

        Raises:
            BookNotFound: If the book does not exist
        """
        if self.catalog.set_availability(book_id, available=True, expected=False):
            logger.debug("Released book %s", book_id)
            return

        if not self.catalog.exists(book_id):
            raise BookNotFound(book_id)
        logger.warning("Released book %s which was already available", book_id)
