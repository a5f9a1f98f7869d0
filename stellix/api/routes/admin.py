"""Admin endpoints for the curated catalog.

Every route requires an admin identity.
"""

import logging
import time
import uuid

from fastapi import APIRouter, Depends, status

from stellix.api.dependencies import (
    Identity,
    get_catalog_service,
    get_health_runner,
    require_admin,
)
from stellix.api.models import (
    BulkStatusRequest,
    ChannelCreate,
    ChannelResponse,
    ChannelUpdate,
    CountResponse,
    DuplicateGroupModel,
    HealthCheckRequest,
    HealthCheckResponse,
    IdsRequest,
    ImportRequest,
    ImportResponse,
    MetadataResponse,
    MigrateRequest,
    SetPrimaryRequest,
    StatusUpdateRequest,
    ToggleResponse,
)
from stellix.consumers import CatalogService, HealthCheckRunner
from stellix.consumers.catalog import generate_channel_id
from stellix.core.exceptions import NotFoundError
from stellix.core.types import ChannelRecord, ChannelStatus, PlaylistSource, utc_now_iso
from stellix.providers import load_playlist, parse_catalog_export

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_admin)])


# =============================================================================
# Channels
# =============================================================================


@router.get("/channels", response_model=list[ChannelResponse])
def list_all_channels(service: CatalogService = Depends(get_catalog_service)):
    """Whole catalog in stored order, duplicates and inactive included."""
    return [ChannelResponse.from_record(ch) for ch in service.get_channels()]


@router.post("/channels", response_model=ChannelResponse, status_code=status.HTTP_201_CREATED)
def add_channel(request: ChannelCreate, service: CatalogService = Depends(get_catalog_service)):
    """Add one channel by hand. An existing channel with the same URL is replaced."""
    record = ChannelRecord(
        id=generate_channel_id(),
        name=request.name.strip(),
        url=request.url.strip(),
        logo=request.logo,
        group=request.group or "entertainment",
        language=request.language,
        country=request.country,
        labels=request.labels,
        status=ChannelStatus.ACTIVE,
    )
    return ChannelResponse.from_record(service.add_channel(record))


@router.patch("/channels/{channel_id}", response_model=ChannelResponse)
def update_channel(
    channel_id: str,
    request: ChannelUpdate,
    service: CatalogService = Depends(get_catalog_service),
):
    """Edit descriptive fields of a channel."""
    fields = request.model_dump(exclude_unset=True)
    if not fields:
        return ChannelResponse.from_record(service.get_channel(channel_id))
    return ChannelResponse.from_record(service.update_channel(channel_id, fields))


@router.delete("/channels/{channel_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_channel(channel_id: str, service: CatalogService = Depends(get_catalog_service)):
    service.remove_channel(channel_id)


@router.put("/channels/{channel_id}/status", response_model=ChannelResponse)
def update_channel_status(
    channel_id: str,
    request: StatusUpdateRequest,
    identity: Identity = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    record = service.update_channel_status(channel_id, request.status, identity.user_id)
    return ChannelResponse.from_record(record)


@router.post("/channels/{channel_id}/toggle", response_model=ToggleResponse)
def toggle_channel(channel_id: str, service: CatalogService = Depends(get_catalog_service)):
    """Flip the enabled flag."""
    return ToggleResponse(id=channel_id, enabled=service.toggle_enabled(channel_id))


@router.post("/channels/bulk-status", response_model=CountResponse)
def bulk_update_status(
    request: BulkStatusRequest,
    identity: Identity = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    count = service.bulk_update_status(request.ids, request.status, identity.user_id)
    return CountResponse(count=count)


@router.post("/channels/deactivate", response_model=CountResponse)
def bulk_deactivate(
    request: IdsRequest,
    identity: Identity = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    """Mark channels inactive; primary flags are unchanged."""
    return CountResponse(count=service.bulk_deactivate(request.ids, identity.user_id))


@router.post("/channels/delete", response_model=CountResponse)
def bulk_delete(request: IdsRequest, service: CatalogService = Depends(get_catalog_service)):
    return CountResponse(count=service.bulk_delete(request.ids))


@router.put("/channels/order", response_model=CountResponse)
def update_order(request: IdsRequest, service: CatalogService = Depends(get_catalog_service)):
    """Store the catalog in the given order."""
    return CountResponse(count=service.update_channel_order(request.ids))


@router.post("/channels/normalize-languages")
def normalize_languages(service: CatalogService = Depends(get_catalog_service)) -> dict:
    """Rewrite language names to ISO 639-1 codes."""
    return service.normalize_languages()


# =============================================================================
# Import / migration
# =============================================================================


@router.post("/channels/import", response_model=ImportResponse)
def import_channels(request: ImportRequest, service: CatalogService = Depends(get_catalog_service)):
    """Import a playlist straight into the catalog as pending channels."""
    raw_channels = load_playlist(request.content, request.url, request.format)

    source_id = f"import-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"
    result = service.import_channels(raw_channels, playlist_id=source_id)
    service.record_playlist_source(
        PlaylistSource(
            id=source_id,
            name=request.name or request.url or "Imported playlist",
            url=request.url,
            import_type="url" if request.url and not request.content else "file",
            imported_at=utc_now_iso(),
            channel_count=len(raw_channels),
            added_count=result.added,
            skipped_count=result.skipped,
        )
    )
    return ImportResponse(
        added=result.added, skipped=result.skipped, duplicate_urls=result.duplicate_urls
    )


@router.post("/channels/migrate", response_model=CountResponse)
def migrate_channels(request: MigrateRequest, service: CatalogService = Depends(get_catalog_service)):
    """Replace the catalog with a full-record JSON export."""
    records = parse_catalog_export(request.content)
    return CountResponse(count=service.migrate_records(records))


# =============================================================================
# Health check
# =============================================================================


@router.post("/channels/health-check", response_model=HealthCheckResponse)
def run_health_check(
    request: HealthCheckRequest,
    service: CatalogService = Depends(get_catalog_service),
    runner: HealthCheckRunner = Depends(get_health_runner),
):
    """Probe channels in batches and report which are offline."""
    if request.ids:
        wanted = set(request.ids)
        channels = [ch for ch in service.get_channels() if ch.id in wanted]
    else:
        channels = service.get_active_channels()

    logger.info("[HEALTH] Admin health check requested for %d channels", len(channels))
    result = runner.run(channels)
    return HealthCheckResponse(
        checked=result.checked,
        online=result.online,
        offline_ids=sorted(result.offline_ids),
    )


# =============================================================================
# Duplicates / metadata
# =============================================================================


@router.get("/duplicates", response_model=list[DuplicateGroupModel])
def find_duplicates(service: CatalogService = Depends(get_catalog_service)):
    """URL duplicate groups first, then same-name groups across sources."""
    return [DuplicateGroupModel.from_info(info) for info in service.find_duplicates()]


@router.post("/duplicates/primary", response_model=CountResponse)
def set_primary(request: SetPrimaryRequest, service: CatalogService = Depends(get_catalog_service)):
    """Choose the primary of a duplicate group."""
    return CountResponse(count=service.set_primary_channel(request.primary_id, request.other_ids))


@router.get("/metadata", response_model=MetadataResponse)
def get_metadata(service: CatalogService = Depends(get_catalog_service)):
    metadata = service.get_metadata()
    if metadata is None:
        raise NotFoundError("No catalog has been saved yet")
    return MetadataResponse(**metadata.to_dict())


@router.get("/sources")
def list_sources(service: CatalogService = Depends(get_catalog_service)) -> list[dict]:
    """Playlists that fed the catalog, newest first."""
    return [source.to_dict() for source in service.list_playlist_sources()]


@router.delete("/sources/{source_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_source(source_id: str, service: CatalogService = Depends(get_catalog_service)):
    if not service.delete_playlist_source(source_id):
        raise NotFoundError(f"Playlist source not found: {source_id}")
