"""Public channel endpoints: filtered view, counts and filter options."""

import time

from fastapi import APIRouter, Depends, Query

from stellix.api.dependencies import (
    Identity,
    get_catalog_service,
    get_identity,
    get_preferences_store,
)
from stellix.api.models import (
    ChannelCountsResponse,
    ChannelOptionsResponse,
    ChannelResponse,
    ImportRequest,
)
from stellix.consumers import (
    CatalogService,
    get_available_categories,
    get_available_countries,
    get_available_languages,
    get_category_counts,
    get_country_counts,
    get_filtered_channels,
    get_language_counts,
)
from stellix.core.types import ClientState
from stellix.database import PreferencesStore
from stellix.providers import convert_to_channel_records, load_playlist

router = APIRouter()


def _client_state(
    identity: Identity = Depends(get_identity),
    preferences: PreferencesStore = Depends(get_preferences_store),
    category: str = "all",
    language: str = "all",
    country: str = "all",
    search: str = "",
    favorites_only: bool = False,
    include_duplicates: bool = False,
    offline_ids: list[str] = Query([]),
) -> ClientState:
    """Build the filter state from query params and the caller's stored sets.

    Favorites and disabled channels always come from the calling identity,
    never from a user named in the query.
    """
    favorites: frozenset[str] = frozenset()
    disabled: frozenset[str] = frozenset()
    if identity.user_id:
        prefs = preferences.load_preferences(identity.user_id)
        favorites = frozenset(prefs.favorites)
        disabled = frozenset(prefs.disabled_ids)

    return ClientState(
        category=category,
        language=language,
        country=country,
        search_text=search,
        favorites_only=favorites_only,
        favorite_ids=favorites,
        disabled_ids=disabled,
        offline_ids=frozenset(offline_ids),
        include_duplicates=include_duplicates,
    )


@router.get("", response_model=list[ChannelResponse])
def list_channels(
    state: ClientState = Depends(_client_state),
    service: CatalogService = Depends(get_catalog_service),
):
    """Active channels after dedup and filters, offline ones last."""
    channels = get_filtered_channels(service.get_active_channels(), state)
    return [ChannelResponse.from_record(ch) for ch in channels]


@router.get("/counts", response_model=ChannelCountsResponse)
def channel_counts(
    state: ClientState = Depends(_client_state),
    service: CatalogService = Depends(get_catalog_service),
):
    """Per-dimension counts, each ignoring its own filter."""
    channels = service.get_active_channels()
    return ChannelCountsResponse(
        categories=get_category_counts(channels, state),
        languages=get_language_counts(channels, state),
        countries=get_country_counts(channels, state),
    )


@router.get("/options", response_model=ChannelOptionsResponse)
def channel_options(service: CatalogService = Depends(get_catalog_service)):
    """Values for the filter dropdowns."""
    channels = service.get_active_channels()
    return ChannelOptionsResponse(
        categories=get_available_categories(channels),
        languages=get_available_languages(channels),
        countries=get_available_countries(channels),
    )


@router.post("/custom", response_model=list[ChannelResponse])
def parse_custom_playlist(request: ImportRequest):
    """Turn a user's own playlist into channel records without storing them."""
    raw_channels = load_playlist(request.content, request.url, request.format)
    source_id = f"custom-{int(time.time() * 1000)}"
    return [ChannelResponse.from_record(ch) for ch in convert_to_channel_records(raw_channels, source_id)]
