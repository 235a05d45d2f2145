"""
Copy local JSON records into the remote store.

Run once after the remote database tables exist. Every record is upserted
by id, so running it again does not create duplicates.
"""

from __future__ import annotations

import argparse
import logging
import sys

from catalog_admin.config import get_settings
from catalog_admin.db import CatalogStore, LocalFileStore, SqlCatalogStore
from catalog_admin.records import COLLECTIONS, normalize_for_migration

logger = logging.getLogger(__name__)


def migrate_collection(
    source: LocalFileStore, target: CatalogStore, collection: str
) -> int | None:
    """Upsert one collection; returns the count, or None if it was skipped."""
    logger.info("Migrating %s...", collection)
    try:
        records = source.load(collection)
    except (OSError, ValueError):
        logger.info("  No %s.json or empty", collection)
        return None
    for record in records:
        target.upsert(collection, normalize_for_migration(collection, record))
    logger.info("Migrated %d %s", len(records), collection)
    return len(records)


def migrate(source: LocalFileStore, target: CatalogStore) -> dict[str, int | None]:
    return {
        collection: migrate_collection(source, target, collection)
        for collection in COLLECTIONS
    }


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Copy local JSON catalog data into the remote store."
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Directory holding users.json, products.json and courses.json",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    settings = get_settings()
    if not settings.use_remote_store:
        logger.error("Remote store not configured!")
        logger.error(
            "Set DATABASE_URL and AWS_ACCESS_KEY_ID (or add them to .env)."
        )
        return 1

    source = LocalFileStore(args.data_dir or settings.data_dir)
    try:
        target = SqlCatalogStore(settings.database_url)
        logger.info("Starting migration...")
        migrate(source, target)
    except Exception:
        logger.exception("Migration failed")
        return 1
    logger.info("Migration complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
