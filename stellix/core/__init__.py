"""Core types - data model and exceptions."""

from stellix.core.exceptions import (
    CatalogConflictError,
    NotFoundError,
    StellixError,
    StoreError,
    ValidationError,
)
from stellix.core.types import (
    DEFAULT_GROUP,
    ChannelRecord,
    ChannelStatus,
    ClientState,
    CuratedMetadata,
    DuplicateChannel,
    DuplicateInfo,
    ImportResult,
    MergeResult,
    PlaylistSource,
    RawChannel,
    StagingChannel,
    StagingPlaylist,
    StagingStats,
    StagingStatus,
    UserPreferences,
    utc_now_iso,
)

__all__ = [
    # Exceptions
    "CatalogConflictError",
    "NotFoundError",
    "StellixError",
    "StoreError",
    "ValidationError",
    # Catalog
    "DEFAULT_GROUP",
    "ChannelRecord",
    "ChannelStatus",
    "CuratedMetadata",
    "PlaylistSource",
    # Staging
    "StagingChannel",
    "StagingPlaylist",
    "StagingStats",
    "StagingStatus",
    # Derived / import
    "DuplicateChannel",
    "DuplicateInfo",
    "ImportResult",
    "MergeResult",
    "RawChannel",
    # Client state
    "ClientState",
    "UserPreferences",
    "utc_now_iso",
]
