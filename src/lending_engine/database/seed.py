"""
Sample catalog generation for the Library Lending Engine.

Fills an empty catalog with realistic-looking entries so the tool server
and the overdue sweep have something to work on in development. Every
generated entry starts available; no loans are created, so the availability
invariant holds trivially after seeding.
"""

import logging
import random

from faker import Faker

from ..models.book import BookEntry
from .session import DatabaseManager

logger = logging.getLogger(__name__)

GENRES = [
    "Fiction",
    "Science Fiction",
    "Mystery",
    "Biography",
    "History",
    "Poetry",
    "Fantasy",
    "Philosophy",
]

# Starter catalog loaded before any generated entries
CLASSICS = [
    ("The Great Gatsby", "F. Scott Fitzgerald", "9780743273565", "Fiction"),
    ("To Kill a Mockingbird", "Harper Lee", "9780061120084", "Fiction"),
    ("1984", "George Orwell", "9780451524935", "Science Fiction"),
    ("Pride and Prejudice", "Jane Austen", "9780141439518", "Fiction"),
    ("The Hobbit", "J.R.R. Tolkien", "9780547928227", "Fantasy"),
]


def generate_book(fake: Faker) -> BookEntry:
    """Build one unsaved catalog entry."""
    return BookEntry(
        title=fake.catch_phrase().title(),
        author=fake.name(),
        isbn=fake.unique.isbn13(),
        genre=random.choice(GENRES),
        quantity=random.randint(1, 4),
    )


def seed_catalog(db_manager: DatabaseManager, count: int = 50, seed: int | None = 42) -> int:
    """
    Add the starter classics plus ``count`` generated books.

    Args:
        db_manager: Target database (schema must exist)
        count: Number of generated entries on top of the classics
        seed: Seed for Faker and ``random``; None for non-reproducible data

    Returns:
        Number of entries created
    """
    fake = Faker()
    if seed is not None:
        Faker.seed(seed)
        random.seed(seed)

    created = 0
    with db_manager.unit_of_work() as uow:
        for title, author, isbn, genre in CLASSICS:
            if uow.catalog.get_by_isbn(isbn) is None:
                uow.catalog.save(BookEntry(title=title, author=author, isbn=isbn, genre=genre))
                created += 1

        for _ in range(count):
            book = generate_book(fake)
            if uow.catalog.get_by_isbn(book.isbn) is not None:
                continue
            uow.catalog.save(book)
            created += 1

    logger.info("Seeded %d catalog entries", created)
    return created
