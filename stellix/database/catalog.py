"""Aggregate catalog storage.

The curated catalog is stored as a handful of large documents instead of one
document per channel, so a page load costs one read instead of thousands.

Collection layout (curated_channels):
    main        single layout: every channel plus version/count/stats
                chunked layout: version/count/stats and total_chunks only
    chunk_<i>   chunked layout: a contiguous slice of the catalog
    metadata    CuratedMetadata sidecar, rewritten on every save

The layout is picked at write time by plan_layout() from the serialized size,
so callers never see which variant is active.
"""

import copy
import json
import logging
import time
from dataclasses import dataclass
from typing import Callable

from stellix.config import Config
from stellix.core.exceptions import CatalogConflictError, StoreError
from stellix.core.types import ChannelRecord, ChannelStatus, CuratedMetadata, utc_now_iso
from stellix.database.documents import SqliteDocumentStore

logger = logging.getLogger(__name__)

CURATED_COLLECTION = "curated_channels"
MAIN_DOC_ID = "main"
METADATA_DOC_ID = "metadata"
CHUNK_DOC_PREFIX = "chunk_"


def chunk_doc_id(index: int) -> str:
    return f"{CHUNK_DOC_PREFIX}{index}"


# =============================================================================
# LAYOUT PLANNING
# =============================================================================


@dataclass(frozen=True)
class SingleLayout:
    """Whole catalog in the main document."""

    channels: list[dict]


@dataclass(frozen=True)
class ChunkedLayout:
    """Catalog split across numbered chunk documents, in catalog order."""

    chunks: list[list[dict]]

    @property
    def total_chunks(self) -> int:
        return len(self.chunks)


def serialized_size(value: object) -> int:
    """Size in bytes of the JSON encoding the store will persist."""
    return len(json.dumps(value).encode("utf-8"))


def plan_layout(channels: list[dict], threshold: int) -> SingleLayout | ChunkedLayout:
    """Choose the storage layout for a serialized catalog.

    Channels go into a single document when their encoding fits under
    threshold. Otherwise they are packed greedily into chunks whose encodings
    each stay under threshold; a channel larger than threshold on its own
    gets a chunk to itself.
    """
    if serialized_size(channels) <= threshold:
        return SingleLayout(channels)

    chunks: list[list[dict]] = []
    current: list[dict] = []
    current_size = 2  # "[]"

    for channel in channels:
        # +2 for the ", " separator json.dumps emits between items
        size = serialized_size(channel) + 2
        if current and current_size + size > threshold:
            chunks.append(current)
            current = []
            current_size = 2
        current.append(channel)
        current_size += size

    if current:
        chunks.append(current)
    return ChunkedLayout(chunks)


def status_counts(records: list[ChannelRecord]) -> dict[str, int]:
    """Per-status counts stored alongside the catalog for quick display."""
    counts = {status.value: 0 for status in ChannelStatus}
    for record in records:
        counts[record.status.value] += 1
    return counts


def _parse_records(raw_channels: list) -> list[ChannelRecord]:
    records = []
    for raw in raw_channels:
        if not isinstance(raw, dict) or not raw.get("id"):
            logger.warning("[CATALOG] Skipping malformed channel entry: %r", raw)
            continue
        records.append(ChannelRecord.from_dict(raw))
    return records


# =============================================================================
# CATALOG STORE
# =============================================================================


class CatalogStore:
    """Read/write the curated catalog through the aggregate layout.

    Reads are cached in-process for cache_ttl seconds. A failed read serves
    the last good cache (flagged via serving_stale) or an empty list; it never
    raises unless strict=True. A successful save invalidates the cache.

    Writes are read-modify-write of the whole catalog with last-writer-wins
    semantics. Passing expected_version to save_catalog() turns on an
    optimistic version check instead.
    """

    def __init__(
        self,
        store: SqliteDocumentStore,
        cache_ttl: float | None = None,
        chunk_threshold: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the catalog store.

        Args:
            store: Document store holding the curated_channels collection
            cache_ttl: Cache lifetime in seconds (default: Config value)
            chunk_threshold: Single-document size ceiling in bytes (default: Config value)
            clock: Monotonic seconds source for cache expiry
        """
        self._store = store
        self._cache_ttl = Config.CATALOG_CACHE_TTL_SECONDS if cache_ttl is None else cache_ttl
        self._chunk_threshold = (
            Config.CATALOG_CHUNK_THRESHOLD_BYTES if chunk_threshold is None else chunk_threshold
        )
        self._clock = clock

        self._cache: list[ChannelRecord] | None = None
        self._cache_time: float = 0.0
        self._cache_version: int = 0
        self.serving_stale = False

    @property
    def document_store(self) -> SqliteDocumentStore:
        return self._store

    @property
    def cached_version(self) -> int | None:
        return self._cache_version if self._cache is not None else None

    def invalidate_cache(self) -> None:
        """Drop the cached catalog so the next load refetches."""
        self._cache = None
        self._cache_time = 0.0

    def _is_cache_valid(self) -> bool:
        if self._cache is None:
            return False
        return self._clock() - self._cache_time < self._cache_ttl

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _read_catalog(self) -> tuple[list[ChannelRecord], int]:
        main = self._store.get(CURATED_COLLECTION, MAIN_DOC_ID, caller="load_catalog")
        if main is None:
            logger.info("[CATALOG] No catalog document found, starting empty")
            return [], 0

        version = int(main.get("version", 0))
        if main.get("layout") != "chunked":
            return _parse_records(main.get("channels") or []), version

        total_chunks = int(main.get("total_chunks", 0))
        raw_channels: list = []
        for index in range(total_chunks):
            chunk = self._store.get(
                CURATED_COLLECTION, chunk_doc_id(index), caller=f"load_catalog_chunk_{index}"
            )
            if chunk is None:
                raise StoreError(f"Catalog chunk {index} of {total_chunks} is missing")
            raw_channels.extend(chunk.get("channels") or [])

        return _parse_records(raw_channels), version

    def load_catalog(self, use_cache: bool = True, strict: bool = False) -> list[ChannelRecord]:
        """Load the curated catalog.

        Args:
            use_cache: Return the cached list when still fresh. Uncached reads
                return a private copy and leave the cache untouched, so the
                caller may mutate the result before saving it back.
            strict: Raise StoreError on failure instead of degrading

        Returns:
            Channels in catalog order. A cache hit returns the same list object.
        """
        if use_cache and self._is_cache_valid():
            logger.debug("[CATALOG] Cache hit (%d channels)", len(self._cache))
            return self._cache

        try:
            records, version = self._read_catalog()
        except Exception as e:
            if strict:
                if isinstance(e, StoreError):
                    raise
                raise StoreError(f"Failed to load catalog: {e}") from e
            if self._cache is not None:
                self.serving_stale = True
                logger.warning(
                    "[CATALOG] Load failed (%s); serving stale cache (%d channels, version %d)",
                    e,
                    len(self._cache),
                    self._cache_version,
                )
                return self._cache if use_cache else copy.deepcopy(self._cache)
            logger.error("[CATALOG] Load failed with no cache available: %s", e)
            return []

        if use_cache:
            self._cache = records
            self._cache_time = self._clock()
            self._cache_version = version
            self.serving_stale = False
            logger.info("[CATALOG] Loaded %d channels (version %d)", len(records), version)
        return records

    def get_metadata(self) -> CuratedMetadata | None:
        """Read the metadata sidecar without loading channels.

        Returns:
            CuratedMetadata, or None if no catalog exists or the read failed
        """
        try:
            data = self._store.get(CURATED_COLLECTION, METADATA_DOC_ID, caller="get_metadata")
            if data is None:
                # Catalogs written before the sidecar existed
                data = self._store.get(CURATED_COLLECTION, MAIN_DOC_ID, caller="get_metadata")
                if data is None:
                    return None
                data = {key: value for key, value in data.items() if key != "channels"}
            return CuratedMetadata.from_dict(data)
        except Exception as e:
            logger.error("[CATALOG] Failed to read metadata: %s", e)
            return None

    def _current_version(self) -> tuple[int, int]:
        """(version, total_chunks) of what is stored right now."""
        data = self._store.get(CURATED_COLLECTION, METADATA_DOC_ID, caller="save_catalog_version")
        if data is None:
            data = self._store.get(CURATED_COLLECTION, MAIN_DOC_ID, caller="save_catalog_version")
        if data is None:
            return 0, 0
        return int(data.get("version", 0)), int(data.get("total_chunks", 0))

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def save_catalog(
        self,
        records: list[ChannelRecord],
        expected_version: int | None = None,
    ) -> CuratedMetadata:
        """Replace the stored catalog.

        Args:
            records: Full catalog in display order
            expected_version: If set, fail unless the stored version still matches

        Raises:
            CatalogConflictError: Stored version differs from expected_version
            StoreError: Any storage failure (partial chunk writes are possible)

        Returns:
            The metadata written for the new version
        """
        current_version, previous_chunks = self._current_version()
        if expected_version is not None and expected_version != current_version:
            raise CatalogConflictError(expected_version, current_version)

        channels = [record.to_dict() for record in records]
        layout = plan_layout(channels, self._chunk_threshold)
        metadata = CuratedMetadata(
            count=len(records),
            version=current_version + 1,
            updated_at=utc_now_iso(),
            layout="single" if isinstance(layout, SingleLayout) else "chunked",
            total_chunks=layout.total_chunks if isinstance(layout, ChunkedLayout) else 0,
            stats=status_counts(records),
        )
        header = metadata.to_dict()

        if isinstance(layout, SingleLayout):
            self._store.set(
                CURATED_COLLECTION,
                MAIN_DOC_ID,
                {**header, "channels": layout.channels},
                caller="save_catalog",
            )
        else:
            for index, chunk in enumerate(layout.chunks):
                self._store.set(
                    CURATED_COLLECTION,
                    chunk_doc_id(index),
                    {
                        "chunk_index": index,
                        "total_chunks": layout.total_chunks,
                        "count": len(chunk),
                        "channels": chunk,
                    },
                    caller=f"save_catalog_chunk_{index}",
                )
            self._store.set(CURATED_COLLECTION, MAIN_DOC_ID, header, caller="save_catalog")

        self._store.set(CURATED_COLLECTION, METADATA_DOC_ID, header, caller="save_catalog_metadata")

        stale_chunks = [chunk_doc_id(i) for i in range(metadata.total_chunks, previous_chunks)]
        if stale_chunks:
            self._store.delete_many(CURATED_COLLECTION, stale_chunks, caller="save_catalog_cleanup")

        self.invalidate_cache()
        logger.info(
            "[CATALOG] Saved %d channels (version %d, %s layout, %d chunks) %s",
            metadata.count,
            metadata.version,
            metadata.layout,
            metadata.total_chunks,
            metadata.stats,
        )
        return metadata
