"""Curated catalog service.

Admin and read operations over the curated catalog. Every mutation is a
read-modify-write of the whole catalog: one strict, uncached load, in-memory
edits, one save. A failed load aborts the mutation instead of writing back a
degraded (empty or stale) view.
"""

import logging
import time
import uuid
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from stellix.core.exceptions import NotFoundError, ValidationError
from stellix.core.types import (
    DEFAULT_GROUP,
    ChannelRecord,
    ChannelStatus,
    CuratedMetadata,
    DuplicateInfo,
    ImportResult,
    PlaylistSource,
    RawChannel,
    utc_now_iso,
)
from stellix.consumers.deduplication import (
    apply_primary,
    dedupe_by_url,
    normalize_url,
    resolve_duplicates,
)
from stellix.database.catalog import CatalogStore

logger = logging.getLogger(__name__)

PLAYLIST_SOURCES_COLLECTION = "playlist_sources"

# Display names seen in imported playlists -> ISO 639-1
LANGUAGE_CODES = {
    "english": "en",
    "spanish": "es",
    "español": "es",
    "french": "fr",
    "français": "fr",
    "german": "de",
    "deutsch": "de",
    "italian": "it",
    "portuguese": "pt",
    "arabic": "ar",
    "russian": "ru",
    "turkish": "tr",
    "hindi": "hi",
    "chinese": "zh",
    "japanese": "ja",
    "korean": "ko",
    "dutch": "nl",
    "polish": "pl",
    "persian": "fa",
    "urdu": "ur",
}

# Fields an admin may edit through update_channel()
EDITABLE_FIELDS = {"name", "url", "logo", "group", "language", "country", "labels", "order"}

T = TypeVar("T")


def _clean_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Check an edit before it reaches the catalog.

    Raises:
        ValidationError: name or url blank, labels not a list of strings
    """
    cleaned = dict(fields)
    for name in ("name", "url"):
        if name in cleaned:
            value = cleaned[name]
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"Channel {name} cannot be empty")
            cleaned[name] = value.strip()
    if "labels" in cleaned:
        labels = cleaned["labels"]
        if not isinstance(labels, list) or not all(isinstance(label, str) for label in labels):
            raise ValidationError("Channel labels must be a list of strings")
    return cleaned


def generate_channel_id() -> str:
    """Fresh id for a channel imported straight into the catalog."""
    return f"curated-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


class CatalogService:
    """Curated catalog operations on top of a CatalogStore."""

    def __init__(self, catalog_store: CatalogStore, policy: str | None = None):
        """Initialize the service.

        Args:
            catalog_store: Aggregate storage for the catalog
            policy: URL normalization policy (default: Config.URL_MATCH_POLICY)
        """
        self._catalog = catalog_store
        self._policy = policy

    @property
    def catalog_store(self) -> CatalogStore:
        return self._catalog

    def _mutate(self, edit: Callable[[list[ChannelRecord]], T]) -> T:
        records = self._catalog.load_catalog(use_cache=False, strict=True)
        result = edit(records)
        self._catalog.save_catalog(records)
        return result

    @staticmethod
    def _require(records: list[ChannelRecord], channel_id: str) -> ChannelRecord:
        for record in records:
            if record.id == channel_id:
                return record
        raise NotFoundError(f"Channel not found: {channel_id}")

    # =========================================================================
    # READS
    # =========================================================================

    def get_channels(self) -> list[ChannelRecord]:
        """Full catalog (cached), duplicates included."""
        return self._catalog.load_catalog()

    def get_all_raw(self) -> list[ChannelRecord]:
        """Full catalog straight from the store, bypassing the cache."""
        return self._catalog.load_catalog(use_cache=False)

    def get_active_channels(self) -> list[ChannelRecord]:
        """Active, enabled channels sorted by admin order (unordered last)."""
        active = [
            r for r in self._catalog.load_catalog()
            if r.status == ChannelStatus.ACTIVE and r.enabled
        ]
        return sorted(active, key=lambda r: (r.order is None, r.order or 0))

    def get_channel(self, channel_id: str) -> ChannelRecord:
        return self._require(self._catalog.load_catalog(), channel_id)

    def get_metadata(self) -> CuratedMetadata | None:
        return self._catalog.get_metadata()

    # =========================================================================
    # STATUS
    # =========================================================================

    def update_channel_status(
        self, channel_id: str, status: ChannelStatus | str, checked_by: str | None = None
    ) -> ChannelRecord:
        """Set one channel's status and record who checked it."""
        status = ChannelStatus.parse(status)

        def edit(records: list[ChannelRecord]) -> ChannelRecord:
            record = self._require(records, channel_id)
            now = utc_now_iso()
            record.status = status
            record.last_checked = now
            record.checked_by = checked_by
            record.updated_at = now
            return record

        record = self._mutate(edit)
        logger.info("[CURATED] Channel %s -> %s (by %s)", channel_id, status.value, checked_by)
        return record

    def bulk_update_status(
        self, channel_ids: Iterable[str], status: ChannelStatus | str, checked_by: str | None = None
    ) -> int:
        """Set the status of many channels in one write.

        Returns:
            Number of channels updated; unknown ids are ignored
        """
        status = ChannelStatus.parse(status)
        wanted = set(channel_ids)
        if not wanted:
            return 0

        def edit(records: list[ChannelRecord]) -> int:
            now = utc_now_iso()
            updated = 0
            for record in records:
                if record.id in wanted:
                    record.status = status
                    record.last_checked = now
                    record.checked_by = checked_by
                    record.updated_at = now
                    updated += 1
            return updated

        updated = self._mutate(edit)
        logger.info("[CURATED] Bulk status %s on %d channels", status.value, updated)
        return updated

    def bulk_deactivate(self, channel_ids: Iterable[str], checked_by: str | None = None) -> int:
        """Mark channels inactive. Primary flags are left alone."""
        return self.bulk_update_status(channel_ids, ChannelStatus.INACTIVE, checked_by)

    def toggle_enabled(self, channel_id: str) -> bool:
        """Flip the soft admin toggle.

        Returns:
            The new enabled value
        """

        def edit(records: list[ChannelRecord]) -> bool:
            record = self._require(records, channel_id)
            record.enabled = not record.enabled
            record.updated_at = utc_now_iso()
            return record.enabled

        return self._mutate(edit)

    # =========================================================================
    # EDITS
    # =========================================================================

    def add_channel(self, record: ChannelRecord) -> ChannelRecord:
        """Add a channel, replacing any existing record with the same URL."""
        if not record.url.strip():
            raise ValidationError("Channel URL is required")

        def edit(records: list[ChannelRecord]) -> ChannelRecord:
            now = utc_now_iso()
            record.created_at = record.created_at or now
            record.updated_at = now
            key = normalize_url(record.url, self._policy)
            for index, existing in enumerate(records):
                if normalize_url(existing.url, self._policy) == key:
                    logger.info("[CURATED] Replacing %s with %s (same URL)", existing.id, record.id)
                    records[index] = record
                    return record
            records.append(record)
            return record

        return self._mutate(edit)

    def update_channel(self, channel_id: str, fields: dict[str, Any]) -> ChannelRecord:
        """Edit descriptive fields of one channel.

        Raises:
            ValidationError: A field outside EDITABLE_FIELDS was given
            NotFoundError: No channel with that id
        """
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        fields = _clean_fields(fields)

        def edit(records: list[ChannelRecord]) -> ChannelRecord:
            record = self._require(records, channel_id)
            for name, value in fields.items():
                if name == "group":
                    value = value or DEFAULT_GROUP
                setattr(record, name, value)
            record.updated_at = utc_now_iso()
            return record

        return self._mutate(edit)

    def remove_channel(self, channel_id: str) -> None:
        def edit(records: list[ChannelRecord]) -> None:
            record = self._require(records, channel_id)
            records.remove(record)

        self._mutate(edit)
        logger.info("[CURATED] Removed channel %s", channel_id)

    def bulk_delete(self, channel_ids: Iterable[str]) -> int:
        """Delete channels in one write.

        Returns:
            Number of channels removed
        """
        wanted = set(channel_ids)
        if not wanted:
            return 0

        def edit(records: list[ChannelRecord]) -> int:
            before = len(records)
            records[:] = [r for r in records if r.id not in wanted]
            return before - len(records)

        removed = self._mutate(edit)
        logger.info("[CURATED] Bulk deleted %d channels", removed)
        return removed

    # =========================================================================
    # IMPORT
    # =========================================================================

    def import_channels(
        self, raw_channels: list[RawChannel], playlist_id: str | None = None
    ) -> ImportResult:
        """Import parsed channels straight into the catalog as pending.

        URLs already in the catalog, or repeated within the batch, are
        skipped. Channels without a URL are skipped too.

        Raises:
            ValidationError: Nothing to import
        """
        if not raw_channels:
            raise ValidationError("No channels to import")

        def edit(records: list[ChannelRecord]) -> ImportResult:
            result = ImportResult()
            seen = {normalize_url(r.url, self._policy) for r in records}
            seen.discard("")
            now = utc_now_iso()

            for raw in raw_channels:
                key = normalize_url(raw.url, self._policy)
                if not key:
                    result.skipped += 1
                    continue
                if key in seen:
                    result.skipped += 1
                    result.duplicate_urls.append(raw.url)
                    continue
                seen.add(key)
                records.append(
                    ChannelRecord(
                        id=generate_channel_id(),
                        name=raw.name or "Unknown",
                        url=raw.url.strip(),
                        logo=raw.logo,
                        group=raw.group or DEFAULT_GROUP,
                        language=raw.language,
                        country=raw.country,
                        status=ChannelStatus.PENDING,
                        playlist_id=playlist_id,
                        created_at=now,
                        updated_at=now,
                    )
                )
                result.added += 1
            return result

        result = self._mutate(edit)
        logger.info(
            "[CURATED] Imported %d channels, skipped %d (playlist %s)",
            result.added,
            result.skipped,
            playlist_id,
        )
        return result

    def migrate_records(self, records: list[ChannelRecord]) -> int:
        """Seed the catalog from records kept one-per-document.

        URL duplicates collapse to the primary or first record. Replaces the
        stored catalog in one save.

        Returns:
            Number of records written
        """
        deduped = dedupe_by_url(records, self._policy)
        self._catalog.save_catalog(deduped)
        logger.info(
            "[CURATED] Migrated %d records (%d duplicates dropped)",
            len(deduped),
            len(records) - len(deduped),
        )
        return len(deduped)

    # =========================================================================
    # DUPLICATES
    # =========================================================================

    def find_duplicates(self) -> list[DuplicateInfo]:
        """Duplicate report over the current catalog. Read-only."""
        names = {source.id: source.name for source in self.list_playlist_sources()}
        return resolve_duplicates(self._catalog.load_catalog(), names, self._policy)

    def set_primary_channel(self, primary_id: str | None, other_ids: Iterable[str] = ()) -> int:
        """Make one channel authoritative for its URL cluster.

        Returns:
            Number of records touched
        """
        other_ids = list(other_ids)

        def edit(records: list[ChannelRecord]) -> int:
            if primary_id:
                self._require(records, primary_id)
            return apply_primary(records, primary_id, other_ids, self._policy)

        touched = self._mutate(edit)
        logger.info("[CURATED] Primary set to %s (%d records touched)", primary_id, touched)
        return touched

    # =========================================================================
    # ORDER / LANGUAGE CLEANUP
    # =========================================================================

    def update_channel_order(self, ordered_ids: list[str]) -> int:
        """Assign order by position and store the catalog in that order.

        Channels missing from ordered_ids keep their relative order after the
        listed ones and lose any previous order value.
        """
        position = {channel_id: index for index, channel_id in enumerate(ordered_ids)}

        def edit(records: list[ChannelRecord]) -> int:
            for record in records:
                record.order = position.get(record.id)
            records.sort(key=lambda r: (r.order is None, r.order or 0))
            return sum(1 for r in records if r.order is not None)

        return self._mutate(edit)

    def normalize_languages(self) -> dict[str, int]:
        """Rewrite language names to ISO 639-1 codes.

        Returns:
            {"updated": n, "unchanged": m}
        """

        def edit(records: list[ChannelRecord]) -> dict[str, int]:
            updated = 0
            for record in records:
                code = LANGUAGE_CODES.get((record.language or "").strip().casefold())
                if code and code != record.language:
                    record.language = code
                    record.updated_at = utc_now_iso()
                    updated += 1
            return {"updated": updated, "unchanged": len(records) - updated}

        counts = self._mutate(edit)
        logger.info("[CURATED] Language normalization: %s", counts)
        return counts

    # =========================================================================
    # STATS
    # =========================================================================

    def get_catalog_stats(self) -> dict:
        """Totals by status, language, group and country."""
        stats: dict[str, Any] = {
            "total": 0,
            "by_status": {status.value: 0 for status in ChannelStatus},
            "by_language": {},
            "by_group": {},
            "by_country": {},
        }
        for record in self._catalog.load_catalog():
            stats["total"] += 1
            stats["by_status"][record.status.value] += 1
            for bucket, value in (
                ("by_language", record.language or "unknown"),
                ("by_group", record.group or DEFAULT_GROUP),
                ("by_country", record.country or "unknown"),
            ):
                stats[bucket][value] = stats[bucket].get(value, 0) + 1
        return stats

    # =========================================================================
    # PLAYLIST SOURCES
    # =========================================================================

    def record_playlist_source(self, source: PlaylistSource) -> None:
        self._catalog.document_store.set(
            PLAYLIST_SOURCES_COLLECTION, source.id, source.to_dict(), caller="record_playlist_source"
        )

    def list_playlist_sources(self) -> list[PlaylistSource]:
        """All recorded sources, newest import first. Empty on read failure."""
        try:
            rows = self._catalog.document_store.list_all(
                PLAYLIST_SOURCES_COLLECTION, caller="list_playlist_sources"
            )
        except Exception as e:
            logger.warning("[CURATED] Failed to list playlist sources: %s", e)
            return []
        sources = [PlaylistSource.from_dict({"id": key, **doc}) for key, doc in rows]
        return sorted(sources, key=lambda s: s.imported_at, reverse=True)

    def delete_playlist_source(self, source_id: str) -> bool:
        """Forget a source. Channels it produced stay in the catalog."""
        return self._catalog.document_store.delete(
            PLAYLIST_SOURCES_COLLECTION, source_id, caller="delete_playlist_source"
        )
