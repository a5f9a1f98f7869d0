"""Staging lifecycle manager.

Imported channels wait in a staging playlist (one document per playlist in
the staging_playlists collection) until a reviewer marks them working or
broken. Merge promotes working channels into the curated catalog.

Channel state machine:
    pending <-> working <-> broken   reviewer actions, freely reversible
    working  -> merged               merge only, final
"""

import logging
import time
import uuid
from collections.abc import Iterable
from typing import Any

from stellix.core.exceptions import NotFoundError, ValidationError
from stellix.core.types import (
    DEFAULT_GROUP,
    ChannelRecord,
    ChannelStatus,
    MergeResult,
    PlaylistSource,
    RawChannel,
    StagingChannel,
    StagingPlaylist,
    StagingStatus,
    utc_now_iso,
)
from stellix.consumers.catalog import CatalogService, generate_channel_id
from stellix.consumers.deduplication import normalize_url
from stellix.database.catalog import CatalogStore

logger = logging.getLogger(__name__)

STAGING_COLLECTION = "staging_playlists"
IMPORT_TYPES = ("url", "file")

# Fields a reviewer may edit on a staging channel
EDITABLE_FIELDS = {"name", "language", "group", "country"}


def generate_playlist_id() -> str:
    return f"staging-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


class StagingService:
    """Create, review and merge staging playlists."""

    def __init__(
        self,
        catalog_store: CatalogStore,
        catalog_service: CatalogService | None = None,
        policy: str | None = None,
    ):
        self._catalog = catalog_store
        self._store = catalog_store.document_store
        self._curated = catalog_service or CatalogService(catalog_store, policy)
        self._policy = policy

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _load(self, playlist_id: str) -> StagingPlaylist:
        data = self._store.get(STAGING_COLLECTION, playlist_id, caller="get_staging_playlist")
        if data is None:
            raise NotFoundError(f"Staging playlist not found: {playlist_id}")
        return StagingPlaylist.from_dict(data)

    def _save(self, playlist: StagingPlaylist, caller: str) -> None:
        # Stats are derived, stored only for list views
        self._store.set(STAGING_COLLECTION, playlist.id, playlist.to_dict(), caller=caller)

    @staticmethod
    def _require_channel(playlist: StagingPlaylist, channel_id: str) -> StagingChannel:
        channel = playlist.find_channel(channel_id)
        if channel is None:
            raise NotFoundError(f"Channel {channel_id} not found in {playlist.id}")
        return channel

    # =========================================================================
    # READS
    # =========================================================================

    def list_staging_playlists(self) -> list[dict]:
        """Playlist summaries (no channels), newest first. Empty on failure."""
        try:
            rows = self._store.list_all(STAGING_COLLECTION, caller="list_staging_playlists")
        except Exception as e:
            logger.error("[STAGING] Failed to list staging playlists: %s", e)
            return []
        summaries = [StagingPlaylist.from_dict(doc).summary() for _, doc in rows]
        return sorted(summaries, key=lambda s: s["imported_at"], reverse=True)

    def get_staging_playlist(self, playlist_id: str) -> StagingPlaylist:
        return self._load(playlist_id)

    # =========================================================================
    # CREATE
    # =========================================================================

    def create_staging_playlist(
        self,
        name: str,
        source_url: str | None,
        import_type: str,
        channels: list[RawChannel],
    ) -> dict[str, Any]:
        """Hold an import batch for review.

        Channels without a URL are dropped and repeated URLs collapse to
        their first occurrence. Every kept channel starts pending.

        Raises:
            ValidationError: Missing name, bad import type or no usable channels

        Returns:
            {"id": playlist id, "channel_count": channels kept}
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Playlist name is required")
        if import_type not in IMPORT_TYPES:
            raise ValidationError(f"Invalid import type: {import_type}")

        playlist_id = generate_playlist_id()
        now = utc_now_iso()
        seen: set[str] = set()
        staged: list[StagingChannel] = []

        for raw in channels:
            key = normalize_url(raw.url, self._policy)
            if not key or key in seen:
                continue
            seen.add(key)
            staged.append(
                StagingChannel(
                    id=f"{playlist_id}-ch-{len(staged)}",
                    name=(raw.name or "").strip() or "Unknown",
                    url=raw.url.strip(),
                    logo=raw.logo,
                    group=raw.group or DEFAULT_GROUP,
                    language=raw.language,
                    country=raw.country,
                    status=StagingStatus.PENDING,
                    added_at=now,
                )
            )

        if not staged:
            raise ValidationError("Playlist contains no channels with a stream URL")

        playlist = StagingPlaylist(
            id=playlist_id,
            name=name,
            source_url=source_url,
            import_type=import_type,
            imported_at=now,
            channels=staged,
        )
        self._save(playlist, "create_staging_playlist")
        logger.info(
            "[STAGING] Created %s '%s' with %d channels (%d dropped)",
            playlist_id,
            name,
            len(staged),
            len(channels) - len(staged),
        )
        return {"id": playlist_id, "channel_count": len(staged)}

    # =========================================================================
    # REVIEW
    # =========================================================================

    @staticmethod
    def _transition(channel: StagingChannel, status: StagingStatus, actor_id: str | None) -> None:
        if status == StagingStatus.MERGED:
            raise ValidationError("Channels can only become merged through a merge")
        if channel.status == StagingStatus.MERGED:
            raise ValidationError(f"Channel {channel.id} is already merged")
        channel.status = status
        channel.checked_at = utc_now_iso()
        channel.checked_by = actor_id

    def update_staging_channel_status(
        self,
        playlist_id: str,
        channel_id: str,
        status: StagingStatus | str,
        actor_id: str | None = None,
    ) -> StagingChannel:
        """Record a reviewer's verdict on one channel."""
        status = StagingStatus.parse(status)
        playlist = self._load(playlist_id)
        channel = self._require_channel(playlist, channel_id)
        self._transition(channel, status, actor_id)
        self._save(playlist, "update_staging_channel_status")
        logger.debug("[STAGING] %s/%s -> %s", playlist_id, channel_id, status.value)
        return channel

    def bulk_update_staging_status(
        self,
        playlist_id: str,
        channel_ids: Iterable[str],
        status: StagingStatus | str,
        actor_id: str | None = None,
    ) -> int:
        """Apply one verdict to many channels; merged channels are left alone.

        Returns:
            Number of channels updated
        """
        status = StagingStatus.parse(status)
        if status == StagingStatus.MERGED:
            raise ValidationError("Channels can only become merged through a merge")

        wanted = set(channel_ids)
        playlist = self._load(playlist_id)
        updated = 0
        for channel in playlist.channels:
            if channel.id in wanted and channel.status != StagingStatus.MERGED:
                self._transition(channel, status, actor_id)
                updated += 1

        if updated:
            self._save(playlist, "bulk_update_staging_status")
        logger.info("[STAGING] Bulk %s on %d channels in %s", status.value, updated, playlist_id)
        return updated

    def update_staging_channel(
        self, playlist_id: str, channel_id: str, fields: dict[str, Any]
    ) -> StagingChannel:
        """Edit descriptive fields; status is untouched."""
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        playlist = self._load(playlist_id)
        channel = self._require_channel(playlist, channel_id)
        for name, value in fields.items():
            if name == "group":
                value = value or DEFAULT_GROUP
            elif name == "name":
                value = (value or "").strip() or channel.name
            setattr(channel, name, value)
        self._save(playlist, "update_staging_channel")
        return channel

    # =========================================================================
    # MERGE
    # =========================================================================

    def merge_staging_to_curated(self, playlist_id: str) -> MergeResult:
        """Promote working channels into the curated catalog.

        One strict catalog read, one catalog write, one staging write. A
        working channel whose URL is already curated (or already taken by an
        earlier channel in this merge) is skipped and stays working. Merged
        channels become active curated records and are marked merged here.

        Running the merge again without catalog changes merges nothing and
        skips every channel that was skipped or still working.
        """
        playlist = self._load(playlist_id)
        working = [ch for ch in playlist.channels if ch.status == StagingStatus.WORKING]
        result = MergeResult()
        if not working:
            logger.info("[STAGING] Nothing to merge in %s", playlist_id)
            return result

        records = self._catalog.load_catalog(use_cache=False, strict=True)
        existing = {normalize_url(r.url, self._policy) for r in records}
        existing.discard("")
        now = utc_now_iso()
        promoted: list[StagingChannel] = []

        for channel in working:
            key = normalize_url(channel.url, self._policy)
            if not key or key in existing:
                result.skipped += 1
                result.duplicate_urls.append(channel.url)
                continue
            existing.add(key)
            records.append(
                ChannelRecord(
                    id=generate_channel_id(),
                    name=channel.name,
                    url=channel.url,
                    logo=channel.logo,
                    group=channel.group or DEFAULT_GROUP,
                    language=channel.language,
                    country=channel.country,
                    status=ChannelStatus.ACTIVE,
                    playlist_id=playlist.id,
                    created_at=now,
                    updated_at=now,
                    last_checked=channel.checked_at,
                    checked_by=channel.checked_by,
                )
            )
            promoted.append(channel)
            result.merged += 1

        if promoted:
            self._catalog.save_catalog(records)
            for channel in promoted:
                channel.status = StagingStatus.MERGED
            self._save(playlist, "merge_staging_to_curated")
            self._curated.record_playlist_source(
                PlaylistSource(
                    id=playlist.id,
                    name=playlist.name,
                    url=playlist.source_url,
                    import_type=playlist.import_type,
                    imported_at=playlist.imported_at,
                    channel_count=len(playlist.channels),
                    added_count=result.merged,
                    skipped_count=result.skipped,
                )
            )

        logger.info(
            "[STAGING] Merged %s: %d merged, %d skipped", playlist_id, result.merged, result.skipped
        )
        return result

    # =========================================================================
    # DELETE
    # =========================================================================

    def delete_staging_playlist(self, playlist_id: str) -> None:
        """Remove a staging playlist. Curated channels it produced stay."""
        if not self._store.delete(STAGING_COLLECTION, playlist_id, caller="delete_staging_playlist"):
            raise NotFoundError(f"Staging playlist not found: {playlist_id}")
        logger.info("[STAGING] Deleted %s", playlist_id)

    def delete_staging_channels(self, playlist_id: str, channel_ids: Iterable[str]) -> int:
        """Drop channels from a staging playlist.

        Returns:
            Number of channels removed
        """
        wanted = set(channel_ids)
        playlist = self._load(playlist_id)
        before = len(playlist.channels)
        playlist.channels = [ch for ch in playlist.channels if ch.id not in wanted]
        removed = before - len(playlist.channels)
        if removed:
            self._save(playlist, "delete_staging_channels")
        return removed
