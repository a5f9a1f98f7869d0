"""Key/value document store.

Documents are JSON objects addressed by (collection, key). The store offers
whole-document get/set, partial update with set-semantics list edits, delete,
batched delete and whole-collection scans. It knows nothing about channels.

Every operation is reported to quota bookkeeping under a caller name, which
defaults to "<collection>.<operation>".
"""

import json
import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from stellix.core.exceptions import NotFoundError, StoreError
from stellix.database.connection import get_db, init_db
from stellix.database.quota import QuotaTracker, get_tracker

logger = logging.getLogger(__name__)


# =============================================================================
# PARTIAL UPDATE SENTINELS
# =============================================================================


@dataclass(frozen=True)
class ArrayUnion:
    """Add values to a list field, skipping ones already present."""

    values: tuple

    def __init__(self, *values: Any):
        object.__setattr__(self, "values", values)

    def apply(self, current: Any) -> list:
        result = list(current) if isinstance(current, list) else []
        for value in self.values:
            if value not in result:
                result.append(value)
        return result


@dataclass(frozen=True)
class ArrayRemove:
    """Remove every occurrence of values from a list field."""

    values: tuple

    def __init__(self, *values: Any):
        object.__setattr__(self, "values", values)

    def apply(self, current: Any) -> list:
        if not isinstance(current, list):
            return []
        return [item for item in current if item not in self.values]


def apply_partial_update(document: dict, fields: dict) -> dict:
    """Return a copy of document with fields applied.

    Plain values overwrite; ArrayUnion / ArrayRemove edit list fields.
    """
    updated = dict(document)
    for name, value in fields.items():
        if isinstance(value, (ArrayUnion, ArrayRemove)):
            updated[name] = value.apply(updated.get(name))
        else:
            updated[name] = value
    return updated


# =============================================================================
# SQLITE STORE
# =============================================================================


class SqliteDocumentStore:
    """Document store backed by a single sqlite table.

    Usage:
        store = SqliteDocumentStore("/app/data/stellix.db")
        store.set("staging_playlists", "staging-1", {...})
        doc = store.get("staging_playlists", "staging-1")
    """

    def __init__(
        self,
        db_path: Path | str | None = None,
        tracker: QuotaTracker | None = None,
        initialize: bool = True,
    ):
        """Initialize the store.

        Args:
            db_path: sqlite file; defaults to Config.DATABASE_PATH
            tracker: Quota tracker; defaults to the process-wide tracker
            initialize: Create the schema if missing
        """
        self._db_path = db_path
        self._tracker = tracker
        if initialize:
            init_db(db_path)

    @property
    def tracker(self) -> QuotaTracker:
        return self._tracker or get_tracker()

    def _name(self, collection: str, operation: str, caller: str | None) -> str:
        return caller or f"{collection}.{operation}"

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, collection: str, key: str, caller: str | None = None) -> dict | None:
        """Read a document by key.

        Returns:
            The document, or None when it does not exist
        """
        try:
            with get_db(self._db_path) as conn:
                row = conn.execute(
                    "SELECT body FROM documents WHERE collection = ? AND doc_key = ?",
                    (collection, key),
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read {collection}/{key}: {e}") from e
        finally:
            self.tracker.track_read(self._name(collection, "get", caller))

        if not row:
            return None
        return json.loads(row["body"])

    def list_all(self, collection: str, caller: str | None = None) -> list[tuple[str, dict]]:
        """Scan a whole collection.

        Returns:
            (key, document) pairs ordered by key
        """
        try:
            with get_db(self._db_path) as conn:
                rows = conn.execute(
                    "SELECT doc_key, body FROM documents WHERE collection = ? ORDER BY doc_key",
                    (collection,),
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to scan {collection}: {e}") from e

        self.tracker.track_query(self._name(collection, "list_all", caller), len(rows))
        return [(row["doc_key"], json.loads(row["body"])) for row in rows]

    def list_keys(self, collection: str, caller: str | None = None) -> list[str]:
        """Keys of every document in a collection."""
        return [key for key, _ in self.list_all(collection, caller=caller)]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def set(self, collection: str, key: str, document: dict, caller: str | None = None) -> None:
        """Create or replace a document."""
        body = json.dumps(document)
        try:
            with get_db(self._db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO documents (collection, doc_key, body)
                    VALUES (?, ?, ?)
                    ON CONFLICT(collection, doc_key) DO UPDATE SET
                        body = excluded.body,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (collection, key, body),
                )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to write {collection}/{key}: {e}") from e
        self.tracker.track_write(self._name(collection, "set", caller))

    def update(self, collection: str, key: str, fields: dict, caller: str | None = None) -> dict:
        """Apply a partial update to an existing document.

        Raises:
            NotFoundError: If the document does not exist

        Returns:
            The updated document
        """
        try:
            with get_db(self._db_path) as conn:
                row = conn.execute(
                    "SELECT body FROM documents WHERE collection = ? AND doc_key = ?",
                    (collection, key),
                ).fetchone()
                if not row:
                    raise NotFoundError(f"Document not found: {collection}/{key}")

                updated = apply_partial_update(json.loads(row["body"]), fields)
                conn.execute(
                    """
                    UPDATE documents SET body = ?, updated_at = CURRENT_TIMESTAMP
                    WHERE collection = ? AND doc_key = ?
                    """,
                    (json.dumps(updated), collection, key),
                )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to update {collection}/{key}: {e}") from e
        self.tracker.track_write(self._name(collection, "update", caller))
        return updated

    def delete(self, collection: str, key: str, caller: str | None = None) -> bool:
        """Delete a document.

        Returns:
            True if a document was removed
        """
        try:
            with get_db(self._db_path) as conn:
                cursor = conn.execute(
                    "DELETE FROM documents WHERE collection = ? AND doc_key = ?",
                    (collection, key),
                )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to delete {collection}/{key}: {e}") from e
        self.tracker.track_delete(self._name(collection, "delete", caller))
        return cursor.rowcount > 0

    def delete_many(self, collection: str, keys: list[str], caller: str | None = None) -> int:
        """Delete several documents in one transaction (one batch commit).

        Returns:
            Number of documents removed
        """
        if not keys:
            return 0
        try:
            with get_db(self._db_path) as conn:
                cursor = conn.executemany(
                    "DELETE FROM documents WHERE collection = ? AND doc_key = ?",
                    [(collection, key) for key in keys],
                )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to batch delete from {collection}: {e}") from e
        self.tracker.track_batch(self._name(collection, "delete_many", caller), len(keys), "delete")
        return cursor.rowcount
