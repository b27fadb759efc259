"""
Circulation tools for the Library Lending Engine.

These MCP tools are thin callers of the loan lifecycle manager:

1. borrow_book: claim a book and open a loan
2. return_book: close a loan and release its book
3. sweep_overdue: promote loans past their deadline to OVERDUE
4. borrow_history: a borrower's loans, most recent first
5. list_available_books: catalog entries that can be borrowed now
6. search_books: catalog entries matching a title or author keyword
7. list_all_loans: every loan on record

Each handler validates its arguments with Pydantic, runs one lifecycle
operation, and turns the engine's business errors into ``isError`` responses
with a user-facing message. Store failures and unexpected errors are logged
and reported the same way so a failed call never takes the server down.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..database.repository import StoreError
from ..database.session import get_db_manager
from ..lending.errors import ConflictError, NotFoundError
from ..lending.lifecycle import LoanLifecycleManager
from ..models.book import BookEntry
from ..models.loan import LoanRecord

logger = logging.getLogger(__name__)


def get_manager() -> LoanLifecycleManager:
    """Lifecycle manager over the process-wide database."""
    return LoanLifecycleManager(get_db_manager())


def _text_response(message: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
    response: dict[str, Any] = {"content": [{"type": "text", "text": message}]}
    if data is not None:
        response["data"] = data
    return response


def _error_response(message: str) -> dict[str, Any]:
    return {"isError": True, "content": [{"type": "text", "text": message}]}


def _loan_data(loan: LoanRecord) -> dict[str, Any]:
    return loan.model_dump(mode="json", exclude={"created_at", "updated_at"})


def _book_data(book: BookEntry) -> dict[str, Any]:
    return book.model_dump(mode="json", exclude={"created_at", "updated_at"})


# =============================================================================
# BORROW
# =============================================================================


class BorrowBookInput(BaseModel):
    """Input schema for the borrow_book tool."""

    borrower_id: str = Field(
        ...,
        description="Identity of the borrower, as issued by the authentication layer",
        min_length=1,
        max_length=100,
        examples=["user", "member-0042"],
    )

    book_id: int = Field(
        ...,
        description="Catalog identifier of the book to borrow",
        ge=1,
        examples=[1, 42],
    )


async def borrow_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the borrow_book tool."""
    try:
        params = BorrowBookInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid borrow parameters: %s", e)
        return _error_response(f"Invalid borrow parameters: {e}")

    try:
        loan = get_manager().borrow(params.borrower_id, params.book_id)
    except (NotFoundError, ConflictError) as e:
        logger.info("Borrow refused: %s", e)
        return _error_response(str(e))
    except StoreError as e:
        logger.exception("Borrow failed in the store")
        return _error_response(f"Borrow failed: {e!s}")
    except Exception as e:
        logger.exception("Unexpected error in borrow_book tool")
        return _error_response(f"An unexpected error occurred: {e!s}")

    message = (
        f"Book {loan.book_id} borrowed successfully by '{loan.borrower_id}'. "
        f"Return deadline: {loan.return_deadline.strftime('%B %d, %Y')} "
        f"({loan.loan_period_days} days)"
    )
    return _text_response(message, {"loan": _loan_data(loan)})


# =============================================================================
# RETURN
# =============================================================================


class ReturnBookInput(BaseModel):
    """Input schema for the return_book tool."""

    loan_id: int = Field(
        ...,
        description="Identifier of the loan being returned",
        ge=1,
        examples=[1, 17],
    )


async def return_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the return_book tool."""
    try:
        params = ReturnBookInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid return parameters: %s", e)
        return _error_response(f"Invalid return parameters: {e}")

    try:
        loan = get_manager().return_loan(params.loan_id)
    except (NotFoundError, ConflictError) as e:
        logger.info("Return refused: %s", e)
        return _error_response(str(e))
    except StoreError as e:
        logger.exception("Return failed in the store")
        return _error_response(f"Return failed: {e!s}")
    except Exception as e:
        logger.exception("Unexpected error in return_book tool")
        return _error_response(f"An unexpected error occurred: {e!s}")

    message = f"Book {loan.book_id} returned successfully."
    if loan.status == "RETURNED_LATE":
        message += f" The return was {loan.days_overdue(loan.actual_return_date)} day(s) late."
    return _text_response(message, {"loan": _loan_data(loan)})


# =============================================================================
# SWEEP
# =============================================================================


async def sweep_overdue_handler(arguments: dict[str, Any] | None = None) -> dict[str, Any]:  # noqa: ARG001
    """Handler for the sweep_overdue tool. Takes no arguments."""
    try:
        swept = get_manager().sweep_overdue()
    except StoreError as e:
        logger.exception("Overdue sweep failed in the store")
        return _error_response(f"Overdue sweep failed: {e!s}")
    except Exception as e:
        logger.exception("Unexpected error in sweep_overdue tool")
        return _error_response(f"An unexpected error occurred: {e!s}")

    if swept:
        message = f"Marked {len(swept)} loan(s) as overdue."
    else:
        message = "No loans became overdue."
    return _text_response(message, {"overdue": [_loan_data(loan) for loan in swept]})


# =============================================================================
# QUERIES
# =============================================================================


class BorrowHistoryInput(BaseModel):
    """Input schema for the borrow_history tool."""

    borrower_id: str = Field(
        ...,
        description="Identity of the borrower whose loans to list",
        min_length=1,
        max_length=100,
    )


async def borrow_history_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the borrow_history tool."""
    try:
        params = BorrowHistoryInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid history parameters: %s", e)
        return _error_response(f"Invalid history parameters: {e}")

    try:
        loans = get_manager().get_history(params.borrower_id)
    except StoreError as e:
        logger.exception("History lookup failed in the store")
        return _error_response(f"History lookup failed: {e!s}")
    except Exception as e:
        logger.exception("Unexpected error in borrow_history tool")
        return _error_response(f"An unexpected error occurred: {e!s}")

    message = f"Borrower '{params.borrower_id}' has {len(loans)} loan(s) on record."
    return _text_response(message, {"loans": [_loan_data(loan) for loan in loans]})


async def list_available_books_handler(arguments: dict[str, Any] | None = None) -> dict[str, Any]:  # noqa: ARG001
    """Handler for the list_available_books tool. Takes no arguments."""
    try:
        books = get_manager().get_available_books()
    except StoreError as e:
        logger.exception("Catalog lookup failed in the store")
        return _error_response(f"Catalog lookup failed: {e!s}")
    except Exception as e:
        logger.exception("Unexpected error in list_available_books tool")
        return _error_response(f"An unexpected error occurred: {e!s}")

    message = f"{len(books)} book(s) available to borrow."
    return _text_response(message, {"books": [_book_data(book) for book in books]})


class SearchBooksInput(BaseModel):
    """Input schema for the search_books tool."""

    keyword: str = Field(
        ...,
        description="Text to look for in book titles and author names",
        min_length=1,
        max_length=200,
        examples=["gatsby", "Austen"],
    )


async def search_books_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the search_books tool."""
    try:
        params = SearchBooksInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid search parameters: %s", e)
        return _error_response(f"Invalid search parameters: {e}")

    try:
        books = get_manager().search_books(params.keyword)
    except StoreError as e:
        logger.exception("Catalog search failed in the store")
        return _error_response(f"Catalog search failed: {e!s}")
    except Exception as e:
        logger.exception("Unexpected error in search_books tool")
        return _error_response(f"An unexpected error occurred: {e!s}")

    message = f"{len(books)} book(s) match '{params.keyword}'."
    return _text_response(message, {"books": [_book_data(book) for book in books]})


async def list_all_loans_handler(arguments: dict[str, Any] | None = None) -> dict[str, Any]:  # noqa: ARG001
    """Handler for the list_all_loans tool. Takes no arguments."""
    try:
        loans = get_manager().get_all()
    except StoreError as e:
        logger.exception("Loan listing failed in the store")
        return _error_response(f"Loan listing failed: {e!s}")
    except Exception as e:
        logger.exception("Unexpected error in list_all_loans tool")
        return _error_response(f"An unexpected error occurred: {e!s}")

    message = f"{len(loans)} loan(s) on record."
    return _text_response(message, {"loans": [_loan_data(loan) for loan in loans]})


# =============================================================================
# TOOL DEFINITIONS
# =============================================================================

borrow_book = {
    "name": "borrow_book",
    "description": (
        "Borrow a book from the catalog. Fails if the book does not exist or is already "
        "on loan. The return deadline is set by library policy (14 days by default)."
    ),
    "inputSchema": BorrowBookInput.model_json_schema(),
    "handler": borrow_book_handler,
}

return_book = {
    "name": "return_book",
    "description": (
        "Return a borrowed book by loan id. Returns after the deadline are recorded as "
        "RETURNED_LATE. A loan can only be returned once."
    ),
    "inputSchema": ReturnBookInput.model_json_schema(),
    "handler": return_book_handler,
}

sweep_overdue = {
    "name": "sweep_overdue",
    "description": "Mark every borrowed book past its return deadline as OVERDUE.",
    "inputSchema": {"type": "object", "properties": {}},
    "handler": sweep_overdue_handler,
}

borrow_history = {
    "name": "borrow_history",
    "description": "List a borrower's loans, most recent first.",
    "inputSchema": BorrowHistoryInput.model_json_schema(),
    "handler": borrow_history_handler,
}

list_available_books = {
    "name": "list_available_books",
    "description": "List catalog entries that can be borrowed right now.",
    "inputSchema": {"type": "object", "properties": {}},
    "handler": list_available_books_handler,
}

search_books = {
    "name": "search_books",
    "description": (
        "Search the catalog by title or author, ignoring case. Lists matches whether or not they are on loan."
    ),
    "inputSchema": SearchBooksInput.model_json_schema(),
    "handler": search_books_handler,
}

list_all_loans = {
    "name": "list_all_loans",
    "description": "List every loan on record, oldest first, with its current status.",
    "inputSchema": {"type": "object", "properties": {}},
    "handler": list_all_loans_handler,
}
