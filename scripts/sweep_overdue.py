#!/usr/bin/env python3
"""
Run the overdue sweep once.

Meant to be triggered by a scheduler (cron, systemd timer) once a day.
Running it more than once on the same day is harmless: loans already marked
OVERDUE are skipped.

Usage:
    python scripts/sweep_overdue.py [--as-of YYYY-MM-DD] [--database-url URL]
"""

import argparse
import logging
import sys
from datetime import date

from lending_engine.database import DatabaseManager, StoreError
from lending_engine.lending import LoanLifecycleManager

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Mark loans past their deadline as OVERDUE")
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Date to sweep for (default: today)",
    )
    parser.add_argument(
        "--database-url",
        help="Override the configured database URL",
    )
    args = parser.parse_args()

    db_manager = DatabaseManager(args.database_url)
    manager = LoanLifecycleManager(db_manager)

    try:
        swept = manager.sweep_overdue(today=args.as_of)
    except StoreError:
        logger.exception("Overdue sweep failed")
        sys.exit(1)
    finally:
        db_manager.close()

    for loan in swept:
        logger.info(
            "Loan %s (book %s, borrower %s) overdue since %s",
            loan.id,
            loan.book_id,
            loan.borrower_id,
            loan.return_deadline.isoformat(),
        )


if __name__ == "__main__":
    main()
