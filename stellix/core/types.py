"""Core data types for Stellix.

All data structures are dataclasses with attribute access. Persisted shapes
round-trip through to_dict()/from_dict(); from_dict() is tolerant of missing
or legacy fields because documents predate some attributes.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

DEFAULT_GROUP = "entertainment"


def utc_now_iso() -> str:
    """Current time as an ISO-8601 string (the stored timestamp format)."""
    return datetime.now(UTC).isoformat()


class ChannelStatus(Enum):
    """Curated catalog lifecycle state."""

    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    BROKEN = "broken"

    @classmethod
    def parse(cls, value: Any, default: "ChannelStatus | None" = None) -> "ChannelStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            if default is not None:
                return default
            raise


class StagingStatus(Enum):
    """Review state of a channel inside a staging playlist."""

    PENDING = "pending"
    WORKING = "working"
    BROKEN = "broken"
    MERGED = "merged"  # Only set by merge, never reversible

    @classmethod
    def parse(cls, value: Any, default: "StagingStatus | None" = None) -> "StagingStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            if default is not None:
                return default
            raise


# =============================================================================
# CURATED CATALOG
# =============================================================================


@dataclass
class ChannelRecord:
    """A channel in the curated catalog."""

    id: str
    name: str
    url: str
    logo: str | None = None
    group: str = DEFAULT_GROUP
    language: str | None = None
    country: str | None = None

    # Status
    status: ChannelStatus = ChannelStatus.PENDING
    enabled: bool = True
    is_primary: bool = False
    order: int | None = None

    # Provenance
    playlist_id: str | None = None
    labels: list[str] = field(default_factory=list)
    is_custom: bool = False

    # Audit trail
    created_at: str | None = None
    updated_at: str | None = None
    last_checked: str | None = None
    checked_by: str | None = None

    # Runtime reachability, never persisted
    is_offline: bool = False

    def to_dict(self) -> dict:
        """Serialize for storage (omits transient fields)."""
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "logo": self.logo,
            "group": self.group,
            "language": self.language,
            "country": self.country,
            "status": self.status.value,
            "enabled": self.enabled,
            "is_primary": self.is_primary,
            "order": self.order,
            "playlist_id": self.playlist_id,
            "labels": list(self.labels),
            "is_custom": self.is_custom,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "last_checked": self.last_checked,
            "checked_by": self.checked_by,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChannelRecord":
        """Create from a stored dict."""
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "Unknown",
            url=data.get("url") or "",
            logo=data.get("logo") or None,
            group=data.get("group") or DEFAULT_GROUP,
            language=data.get("language") or None,
            country=data.get("country") or None,
            status=ChannelStatus.parse(data.get("status"), ChannelStatus.PENDING),
            enabled=data.get("enabled") is not False,
            is_primary=bool(data.get("is_primary", False)),
            order=data.get("order"),
            playlist_id=data.get("playlist_id"),
            labels=list(data.get("labels") or []),
            is_custom=bool(data.get("is_custom", False)),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            last_checked=data.get("last_checked"),
            checked_by=data.get("checked_by"),
        )


@dataclass
class CuratedMetadata:
    """Sidecar record describing the aggregate catalog documents."""

    count: int
    version: int
    updated_at: str | None = None
    layout: str = "single"  # "single" | "chunked"
    total_chunks: int = 0
    stats: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "version": self.version,
            "updated_at": self.updated_at,
            "layout": self.layout,
            "total_chunks": self.total_chunks,
            "stats": dict(self.stats),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CuratedMetadata":
        return cls(
            count=int(data.get("count", 0)),
            version=int(data.get("version", 0)),
            updated_at=data.get("updated_at"),
            layout=data.get("layout", "single"),
            total_chunks=int(data.get("total_chunks", 0)),
            stats=dict(data.get("stats") or {}),
        )


@dataclass
class PlaylistSource:
    """Record of an external playlist that fed the catalog."""

    id: str
    name: str
    url: str | None
    import_type: str
    imported_at: str
    channel_count: int = 0
    added_count: int = 0
    skipped_count: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "import_type": self.import_type,
            "imported_at": self.imported_at,
            "channel_count": self.channel_count,
            "added_count": self.added_count,
            "skipped_count": self.skipped_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlaylistSource":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            url=data.get("url"),
            import_type=data.get("import_type", "url"),
            imported_at=data.get("imported_at", ""),
            channel_count=int(data.get("channel_count", 0)),
            added_count=int(data.get("added_count", 0)),
            skipped_count=int(data.get("skipped_count", 0)),
        )


# =============================================================================
# STAGING
# =============================================================================


@dataclass
class StagingChannel:
    """A channel awaiting review inside a staging playlist."""

    id: str
    name: str
    url: str
    logo: str | None = None
    group: str = DEFAULT_GROUP
    language: str | None = None
    country: str | None = None
    status: StagingStatus = StagingStatus.PENDING
    added_at: str | None = None
    checked_at: str | None = None
    checked_by: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "logo": self.logo,
            "group": self.group,
            "language": self.language,
            "country": self.country,
            "status": self.status.value,
            "added_at": self.added_at,
            "checked_at": self.checked_at,
            "checked_by": self.checked_by,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StagingChannel":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "Unknown",
            url=data.get("url") or "",
            logo=data.get("logo") or None,
            group=data.get("group") or DEFAULT_GROUP,
            language=data.get("language") or None,
            country=data.get("country") or None,
            status=StagingStatus.parse(data.get("status"), StagingStatus.PENDING),
            added_at=data.get("added_at"),
            checked_at=data.get("checked_at"),
            checked_by=data.get("checked_by"),
        )


@dataclass
class StagingStats:
    """Derived per-status counts for a staging playlist."""

    total: int = 0
    pending: int = 0
    working: int = 0
    broken: int = 0
    merged: int = 0

    @classmethod
    def calculate(cls, channels: list[StagingChannel]) -> "StagingStats":
        stats = cls(total=len(channels))
        for channel in channels:
            name = channel.status.value
            setattr(stats, name, getattr(stats, name) + 1)
        return stats

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "pending": self.pending,
            "working": self.working,
            "broken": self.broken,
            "merged": self.merged,
        }


@dataclass
class StagingPlaylist:
    """One import batch held for review."""

    id: str
    name: str
    source_url: str | None
    import_type: str  # "url" | "file"
    imported_at: str
    channels: list[StagingChannel] = field(default_factory=list)

    @property
    def stats(self) -> StagingStats:
        return StagingStats.calculate(self.channels)

    def find_channel(self, channel_id: str) -> StagingChannel | None:
        for channel in self.channels:
            if channel.id == channel_id:
                return channel
        return None

    def summary(self) -> dict:
        """List-view shape: metadata and stats without channels."""
        return {
            "id": self.id,
            "name": self.name,
            "source_url": self.source_url,
            "import_type": self.import_type,
            "imported_at": self.imported_at,
            "stats": self.stats.to_dict(),
        }

    def to_dict(self) -> dict:
        data = self.summary()
        data["channels"] = [ch.to_dict() for ch in self.channels]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "StagingPlaylist":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            source_url=data.get("source_url"),
            import_type=data.get("import_type", "url"),
            imported_at=data.get("imported_at") or utc_now_iso(),
            channels=[StagingChannel.from_dict(ch) for ch in data.get("channels") or []],
        )


# =============================================================================
# IMPORT / DERIVED RESULTS
# =============================================================================


@dataclass
class RawChannel:
    """Normalized output of a playlist parser, before ids are assigned."""

    name: str
    url: str
    logo: str | None = None
    group: str | None = None
    language: str | None = None
    country: str | None = None


@dataclass
class DuplicateChannel:
    """One member of a duplicate group in the admin report."""

    id: str
    playlist_id: str | None
    playlist_name: str
    status: str
    is_primary: bool
    url: str


@dataclass
class DuplicateInfo:
    """A duplicate group, built fresh on every report."""

    name: str
    normalized_name: str
    count: int
    kind: str  # "url" | "name"
    channels: list[DuplicateChannel] = field(default_factory=list)
    display_id: str | None = None  # Record shown for a URL group


@dataclass
class ImportResult:
    """Outcome of a direct import into the curated catalog."""

    added: int = 0
    skipped: int = 0
    duplicate_urls: list[str] = field(default_factory=list)


@dataclass
class MergeResult:
    """Outcome of promoting a staging playlist."""

    merged: int = 0
    skipped: int = 0
    duplicate_urls: list[str] = field(default_factory=list)


# =============================================================================
# CLIENT STATE
# =============================================================================


@dataclass
class UserPreferences:
    """Per-user state persisted outside the channel records."""

    user_id: str
    favorites: list[str] = field(default_factory=list)
    disabled_ids: list[str] = field(default_factory=list)
    language: str | None = None
    country: str | None = None

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "favorites": list(self.favorites),
            "disabled_ids": list(self.disabled_ids),
            "language": self.language,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, user_id: str, data: dict | None) -> "UserPreferences":
        data = data or {}
        return cls(
            user_id=user_id,
            favorites=list(data.get("favorites") or []),
            disabled_ids=list(data.get("disabled_ids") or []),
            language=data.get("language"),
            country=data.get("country"),
        )


@dataclass(frozen=True)
class ClientState:
    """Ephemeral filter state passed to the projection engine.

    "all", "" and None all mean no constraint for the dimension filters.
    """

    category: str | None = "all"
    language: str | None = "all"
    country: str | None = "all"
    search_text: str = ""
    favorites_only: bool = False
    favorite_ids: frozenset[str] = frozenset()
    disabled_ids: frozenset[str] = frozenset()
    offline_ids: frozenset[str] = frozenset()
    include_duplicates: bool = False
