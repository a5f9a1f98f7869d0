"""Pydantic models for API request/response validation."""

from typing import Literal

from pydantic import BaseModel, Field

from stellix.core.types import (
    ChannelRecord,
    DuplicateInfo,
    StagingChannel,
    StagingPlaylist,
    UserPreferences,
)

ChannelStatusValue = Literal["pending", "active", "inactive", "broken"]
ReviewStatusValue = Literal["pending", "working", "broken"]
PlaylistFormat = Literal["m3u", "json"]


# =============================================================================
# Channel models
# =============================================================================


class ChannelResponse(BaseModel):
    """Channel as returned by the API."""

    id: str
    name: str
    url: str
    logo: str | None = None
    group: str
    language: str | None = None
    country: str | None = None
    status: ChannelStatusValue
    enabled: bool
    is_primary: bool
    order: int | None = None
    playlist_id: str | None = None
    labels: list[str] = []
    is_custom: bool = False
    created_at: str | None = None
    updated_at: str | None = None
    last_checked: str | None = None
    checked_by: str | None = None
    is_offline: bool = False

    @classmethod
    def from_record(cls, record: ChannelRecord) -> "ChannelResponse":
        return cls(**record.to_dict(), is_offline=record.is_offline)


class ChannelCountsResponse(BaseModel):
    categories: dict[str, int]
    languages: dict[str, int]
    countries: dict[str, int]


class ChannelOptionsResponse(BaseModel):
    categories: list[str]
    languages: list[str]
    countries: list[str]


class ChannelCreate(BaseModel):
    """Manually added channel."""

    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    logo: str | None = None
    group: str | None = None
    language: str | None = None
    country: str | None = None
    labels: list[str] = []


class ChannelUpdate(BaseModel):
    """Partial channel edit; unset fields are left alone."""

    name: str | None = Field(None, min_length=1)
    url: str | None = Field(None, min_length=1)
    logo: str | None = None
    group: str | None = None
    language: str | None = None
    country: str | None = None
    labels: list[str] | None = None
    order: int | None = None


class StatusUpdateRequest(BaseModel):
    status: ChannelStatusValue


class BulkStatusRequest(BaseModel):
    ids: list[str]
    status: ChannelStatusValue


class IdsRequest(BaseModel):
    ids: list[str]


class CountResponse(BaseModel):
    count: int


class ToggleResponse(BaseModel):
    id: str
    enabled: bool


class ImportRequest(BaseModel):
    """Playlist import. Give content directly or a url to download."""

    format: PlaylistFormat = "m3u"
    content: str | None = None
    url: str | None = None
    name: str | None = None


class ImportResponse(BaseModel):
    added: int
    skipped: int
    duplicate_urls: list[str] = []


class MigrateRequest(BaseModel):
    """Full-record JSON export to seed the catalog from."""

    content: str


class HealthCheckRequest(BaseModel):
    """Channels to probe; all active channels when ids is empty."""

    ids: list[str] = []


class HealthCheckResponse(BaseModel):
    checked: int
    online: int
    offline_ids: list[str]


class MetadataResponse(BaseModel):
    count: int
    version: int
    updated_at: str | None = None
    layout: str
    total_chunks: int
    stats: dict[str, int]


# =============================================================================
# Duplicate models
# =============================================================================


class DuplicateChannelModel(BaseModel):
    id: str
    playlist_id: str | None = None
    playlist_name: str
    status: str
    is_primary: bool
    url: str


class DuplicateGroupModel(BaseModel):
    name: str
    normalized_name: str
    count: int
    kind: Literal["url", "name"]
    display_id: str | None = None
    channels: list[DuplicateChannelModel]

    @classmethod
    def from_info(cls, info: DuplicateInfo) -> "DuplicateGroupModel":
        return cls(
            name=info.name,
            normalized_name=info.normalized_name,
            count=info.count,
            kind=info.kind,
            display_id=info.display_id,
            channels=[DuplicateChannelModel(**vars(ch)) for ch in info.channels],
        )


class SetPrimaryRequest(BaseModel):
    """primary_id=None clears is_primary on other_ids."""

    primary_id: str | None = None
    other_ids: list[str] = []


# =============================================================================
# Staging models
# =============================================================================


class StagingStatsModel(BaseModel):
    total: int
    pending: int
    working: int
    broken: int
    merged: int


class StagingChannelModel(BaseModel):
    id: str
    name: str
    url: str
    logo: str | None = None
    group: str
    language: str | None = None
    country: str | None = None
    status: Literal["pending", "working", "broken", "merged"]
    added_at: str | None = None
    checked_at: str | None = None
    checked_by: str | None = None

    @classmethod
    def from_channel(cls, channel: StagingChannel) -> "StagingChannelModel":
        return cls(**channel.to_dict())


class StagingSummaryModel(BaseModel):
    id: str
    name: str
    source_url: str | None = None
    import_type: Literal["url", "file"]
    imported_at: str
    stats: StagingStatsModel


class StagingPlaylistModel(StagingSummaryModel):
    channels: list[StagingChannelModel]

    @classmethod
    def from_playlist(cls, playlist: StagingPlaylist) -> "StagingPlaylistModel":
        return cls(**playlist.to_dict())


class StagingCreateRequest(BaseModel):
    """New staging playlist from playlist text or a playlist URL."""

    name: str = Field(..., min_length=1)
    format: PlaylistFormat = "m3u"
    content: str | None = None
    source_url: str | None = None


class StagingCreateResponse(BaseModel):
    id: str
    channel_count: int


class StagingStatusRequest(BaseModel):
    status: ReviewStatusValue


class StagingBulkStatusRequest(BaseModel):
    ids: list[str]
    status: ReviewStatusValue


class StagingChannelUpdate(BaseModel):
    name: str | None = None
    language: str | None = None
    group: str | None = None
    country: str | None = None


class MergeResponse(BaseModel):
    merged: int
    skipped: int
    duplicate_urls: list[str] = []


# =============================================================================
# Preference models
# =============================================================================


class PreferencesModel(BaseModel):
    user_id: str
    favorites: list[str] = []
    disabled_ids: list[str] = []
    language: str | None = None
    country: str | None = None

    @classmethod
    def from_preferences(cls, prefs: UserPreferences) -> "PreferencesModel":
        return cls(**prefs.to_dict())


class PreferencesUpdate(BaseModel):
    favorites: list[str] | None = None
    disabled_ids: list[str] | None = None
    language: str | None = None
    country: str | None = None


class FavoriteToggleResponse(BaseModel):
    channel_id: str
    favorite: bool


class DisabledRequest(BaseModel):
    disabled: bool
