"""
MCP tools for the Library Lending Engine.

Tools are the actions clients can invoke. Every tool here delegates to the
loan lifecycle manager and reports business refusals (unknown ids, books
already on loan, loans already returned) as ``isError`` results.
"""

from .circulation import (
    borrow_book,
    borrow_history,
    list_all_loans,
    list_available_books,
    return_book,
    search_books,
    sweep_overdue,
)

# Registered by the server in this order
all_tools = [
    borrow_book,
    return_book,
    sweep_overdue,
    borrow_history,
    list_available_books,
    search_books,
    list_all_loans,
]

__all__ = [
    "all_tools",
    "borrow_book",
    "borrow_history",
    "list_all_loans",
    "list_available_books",
    "return_book",
    "search_books",
    "sweep_overdue",
]
