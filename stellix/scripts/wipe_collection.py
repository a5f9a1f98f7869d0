#!/usr/bin/env python3
"""Delete every document in one collection.

Used to drop the legacy one-document-per-channel collection once its records
have been migrated into the curated catalog. Destructive and not reversible.

Usage:
    stellix-wipe-collection <collection> [--db PATH] [--batch-size N]
    python -m stellix.scripts.wipe_collection <collection> [--db PATH] [--batch-size N]

    # Example:
    stellix-wipe-collection channels --db ./data/stellix.db

    # The script will:
    # 1. Count the documents in the collection
    # 2. Ask you to type DELETE
    # 3. Delete them in batches, one commit per batch

    # Running it again on an emptied collection does nothing.
"""

import argparse
import sys
from collections.abc import Callable

from stellix.config import Config
from stellix.database import SqliteDocumentStore

CONFIRMATION = "DELETE"
DEFAULT_BATCH_SIZE = 100


def wipe_collection(store: SqliteDocumentStore, collection: str, batch_size: int = DEFAULT_BATCH_SIZE) -> int:
    """Delete all documents in batches.

    Returns:
        Number of documents deleted
    """
    keys = store.list_keys(collection, caller="wipe_collection_scan")
    deleted = 0
    for start in range(0, len(keys), batch_size):
        deleted += store.delete_many(
            collection, keys[start : start + batch_size], caller="wipe_collection"
        )
        print(f"Deleted {deleted} documents...")
    return deleted


def main(argv: list[str] | None = None, prompt: Callable[[str], str] = input) -> int:
    """Wipe a collection after typed confirmation."""
    parser = argparse.ArgumentParser(description="Delete every document in a collection")
    parser.add_argument("collection", help="Collection to wipe, e.g. channels")
    parser.add_argument("--db", default=None, help="sqlite database (default: DATABASE_PATH)")
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE)
    args = parser.parse_args(argv)

    if args.batch_size < 1:
        parser.error("--batch-size must be at least 1")

    db_path = args.db or Config.DATABASE_PATH
    store = SqliteDocumentStore(db_path)
    count = len(store.list_keys(args.collection, caller="wipe_collection_count"))

    if count == 0:
        print(f'Collection "{args.collection}" is already empty or does not exist.')
        return 0

    print(f'Found {count} documents in "{args.collection}" ({db_path})')
    answer = prompt(f"Type {CONFIRMATION} to permanently delete them: ")
    if answer.strip() != CONFIRMATION:
        print("Aborted. Nothing was deleted.")
        return 1

    deleted = wipe_collection(store, args.collection, args.batch_size)
    print(f'Deleted {deleted} documents from "{args.collection}"')
    return 0


if __name__ == "__main__":
    sys.exit(main())
