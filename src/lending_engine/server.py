"""Library Lending Engine - MCP tool server.

Exposes the loan lifecycle (borrow, return, overdue sweep, history,
available books) as MCP tools over stdio. The server is one caller of the
engine among others; it owns no lending logic of its own.
"""

import logging
import signal
import sys
from typing import Any

from fastmcp import FastMCP

from lending_engine.config import get_config
from lending_engine.database.session import get_db_manager
from lending_engine.tools import all_tools

# Use stderr to keep stdout clean for stdio transport
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)

logger = logging.getLogger(__name__)

config = get_config()

mcp = FastMCP(
    name=config.server_name,
    version=config.server_version,
    instructions=(
        "Library lending server. Use borrow_book and return_book to lend and take back "
        "books, list_available_books to see what can be borrowed, search_books to find titles "
        "or authors, borrow_history to review a borrower's loans, list_all_loans for the full "
        "loan ledger, and sweep_overdue to flag loans past their return deadline."
    ),
)

for tool in all_tools:
    logger.debug("Registering tool: %s", tool["name"])
    try:
        mcp.tool(
            name=tool["name"],
            description=tool["description"],
        )(tool["handler"])
    except Exception:
        logger.exception("Failed to register tool %s", tool["name"])
        raise

logger.info("Registered %d tools", len(all_tools))


def run_stdio_server() -> None:
    """Run the tool server on the stdio transport."""
    logger.info("Starting %s v%s on stdio transport", config.server_name, config.server_version)

    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled")
    else:
        logging.getLogger().setLevel(config.log_level)
        logging.getLogger("fastmcp").setLevel(logging.WARNING)

    def signal_handler(signum: int, _frame: Any) -> None:
        logger.info("Received signal %s, initiating shutdown...", signum)
        get_db_manager().close()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    db_manager = get_db_manager()
    db_manager.init_database()
    if not db_manager.verify_connection():
        logger.error("Database is not reachable, refusing to start")
        sys.exit(1)

    try:
        logger.info("Server ready and waiting for connections...")
        mcp.run(transport="stdio")
    except Exception:
        logger.exception("Fatal error in tool server")
        sys.exit(1)
    finally:
        db_manager.close()


def main() -> None:
    """Entry point for ``library-lending-engine``."""
    try:
        logger.info("=" * 60)
        logger.info("Library Lending Engine")
        logger.info("Version: %s", config.server_version)
        logger.info("Transport: %s", config.transport)
        logger.info("Loan period: %d days", config.loan_period_days)
        logger.info("=" * 60)

        run_stdio_server()

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Failed to start tool server")
        sys.exit(1)


if __name__ == "__main__":
    main()
