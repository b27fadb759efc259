"""
Catalog entry model for the Library Lending Engine.

A ``BookEntry`` is one row of the catalog. It may stand for several physical
copies, but the lending engine tracks them as a single unit with one
lifecycle attribute: ``available``.

Only the inventory guard flips ``available``. Catalog edits go through
``CatalogRepository.save``, which persists the descriptive fields and leaves
availability alone.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BookEntry(BaseModel):
    """
    Represents a book in the library catalog.

    ``id`` is ``None`` until the entry has been saved to the catalog store.
    ``version`` advances every time availability flips and is what the
    inventory guard hands back in a claim.
    """

    id: int | None = Field(
        default=None,
        description="Catalog identifier assigned by the store",
        ge=1,
    )

    title: str = Field(
        ...,
        description="The title of the book",
        min_length=1,
        max_length=500,
        examples=["The Great Gatsby", "To Kill a Mockingbird"],
    )

    author: str = Field(
        ...,
        description="Author name as printed on the book",
        min_length=1,
        max_length=200,
        examples=["F. Scott Fitzgerald", "Harper Lee"],
    )

    isbn: str = Field(
        ...,
        description="International Standard Book Number",
        min_length=10,
        max_length=17,
        examples=["978-0-7432-7356-5", "9780061120084"],
    )

    genre: str = Field(
        ...,
        description="Literary genre or category of the book",
        examples=["Fiction", "Science Fiction", "Biography"],
    )

    quantity: int = Field(
        default=1,
        description="Physical copies held under this catalog entry",
        ge=1,
    )

    available: bool = Field(
        default=True,
        description="Whether the entry can currently be borrowed",
    )

    version: int = Field(
        default=0,
        description="Incremented each time availability changes",
        ge=0,
    )

    created_at: datetime | None = Field(
        default=None,
        description="Timestamp when the entry was added to the catalog",
    )

    updated_at: datetime | None = Field(
        default=None,
        description="Timestamp when the entry was last updated",
    )

    @field_validator("isbn")
    @classmethod
    def normalize_isbn(cls, v: str) -> str:
        """Store ISBNs without hyphens or spaces."""
        return v.replace("-", "").replace(" ", "")

    @field_validator("genre")
    @classmethod
    def normalize_genre(cls, v: str) -> str:
        return v.strip().title()

    @property
    def is_on_loan(self) -> bool:
        return not self.available

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "The Great Gatsby",
                "author": "F. Scott Fitzgerald",
                "isbn": "9780743273565",
                "genre": "Fiction",
                "quantity": 1,
                "available": True,
                "version": 0,
            }
        }
    )
