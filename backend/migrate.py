# backend/migrate.py
# Create the users/listings/leads tables and indexes (idempotent)
# Run: python -m backend.migrate

from __future__ import annotations

import os
import sys

from backend.config import DEFAULT_DATABASE_URL
from backend.db import check_database_connection, create_db_engine, init_db


def run_migrations(database_url: str) -> bool:
    """
    Create all tables and indexes if missing. Safe to run multiple times.

    Returns:
        False if the database could not be reached
    """
    print("[MIGRATE] Starting database migrations...")
    engine = create_db_engine(database_url)
    try:
        if not check_database_connection(engine):
            print("[MIGRATE] Database is not reachable")
            return False
        init_db(engine)
    finally:
        engine.dispose()
    print("[MIGRATE] All migrations complete!")
    return True


def main() -> int:
    database_url = os.getenv("DATABASE_URL", "").strip() or DEFAULT_DATABASE_URL
    return 0 if run_migrations(database_url) else 1


if __name__ == "__main__":
    sys.exit(main())
