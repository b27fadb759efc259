#!/usr/bin/env python3
"""
Initialize the Library Lending Engine database.

This script:
1. Creates all database tables
2. Optionally loads a sample catalog
3. Verifies the expected tables exist

Usage:
    python scripts/init_database.py [--drop-existing] [--sample-data [--count N]]
"""

import argparse
import logging
import sys

from sqlalchemy import inspect

from lending_engine.database import DatabaseManager, StoreError
from lending_engine.database.seed import seed_catalog

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

EXPECTED_TABLES = {"books", "loan_records"}


def main() -> None:
    """Main entry point for database initialization."""
    parser = argparse.ArgumentParser(description="Initialize the Library Lending Engine database")
    parser.add_argument(
        "--drop-existing",
        action="store_true",
        help="Drop existing tables before creating new ones",
    )
    parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Load a sample catalog after creating tables",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=50,
        help="Number of generated books for --sample-data (default: 50)",
    )
    parser.add_argument(
        "--database-url",
        help="Override the configured database URL",
    )

    args = parser.parse_args()

    db_manager = DatabaseManager(args.database_url)

    if not db_manager.verify_connection():
        logger.error("Failed to connect to database")
        sys.exit(1)

    try:
        db_manager.init_database(drop_existing=args.drop_existing)

        if args.sample_data:
            created = seed_catalog(db_manager, count=args.count)
            logger.info("Loaded %d sample books", created)

        tables = set(inspect(db_manager.engine).get_table_names())
        logger.info("Tables present: %s", ", ".join(sorted(tables)))

        missing_tables = EXPECTED_TABLES - tables
        if missing_tables:
            logger.error("Missing expected tables: %s", ", ".join(sorted(missing_tables)))
            sys.exit(1)

        logger.info("Database initialization complete")

    except StoreError:
        logger.exception("Database initialization failed")
        sys.exit(1)
    finally:
        db_manager.close()


if __name__ == "__main__":
    main()
