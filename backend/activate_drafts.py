# backend/activate_drafts.py
# Maintenance: publish every Draft listing (status Draft -> Active)
# Run: python -m backend.activate_drafts

from __future__ import annotations

import os
import sys

from backend.config import DEFAULT_DATABASE_URL
from backend.db import create_db_engine, init_db
from backend.listing_query import ListingSearchParams, MAX_LIMIT, build_search_query
from backend.listing_repository import ListingRepository


def activate_drafts(repo: ListingRepository) -> int:
    changed = repo.activate_drafts()
    print(f"[MAINTENANCE] Activated {changed} draft listing(s)")

    active = repo.search(build_search_query(ListingSearchParams(limit=MAX_LIMIT)))
    print(f"[MAINTENANCE] Active listings (newest {len(active)}):")
    for listing in active:
        print(f"  - {listing.title} ({listing.status})")
    return changed


def main() -> int:
    database_url = os.getenv("DATABASE_URL", "").strip() or DEFAULT_DATABASE_URL
    engine = create_db_engine(database_url)
    try:
        init_db(engine)
        activate_drafts(ListingRepository(engine))
    finally:
        engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
