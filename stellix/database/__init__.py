"""Database layer - document store, aggregate catalog, bookkeeping."""

from stellix.database.catalog import (
    CURATED_COLLECTION,
    CatalogStore,
    ChunkedLayout,
    SingleLayout,
    plan_layout,
)
from stellix.database.connection import get_db, init_db
from stellix.database.documents import ArrayRemove, ArrayUnion, SqliteDocumentStore
from stellix.database.preferences import PreferencesStore
from stellix.database.quota import QuotaTracker, get_tracker, set_tracker

__all__ = [
    "get_db",
    "init_db",
    "ArrayRemove",
    "ArrayUnion",
    "SqliteDocumentStore",
    "CURATED_COLLECTION",
    "CatalogStore",
    "ChunkedLayout",
    "SingleLayout",
    "plan_layout",
    "PreferencesStore",
    "QuotaTracker",
    "get_tracker",
    "set_tracker",
]
