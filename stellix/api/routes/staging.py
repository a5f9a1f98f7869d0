"""Staging playlist endpoints (admin only)."""

from fastapi import APIRouter, Depends, status

from stellix.api.dependencies import Identity, get_staging_service, require_admin
from stellix.api.models import (
    CountResponse,
    IdsRequest,
    MergeResponse,
    StagingBulkStatusRequest,
    StagingChannelModel,
    StagingChannelUpdate,
    StagingCreateRequest,
    StagingCreateResponse,
    StagingPlaylistModel,
    StagingStatusRequest,
    StagingSummaryModel,
)
from stellix.consumers import StagingService
from stellix.providers import load_playlist

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("", response_model=list[StagingSummaryModel])
def list_staging_playlists(service: StagingService = Depends(get_staging_service)):
    """Playlists with stats, without their channels."""
    return service.list_staging_playlists()


@router.post("", response_model=StagingCreateResponse, status_code=status.HTTP_201_CREATED)
def create_staging_playlist(
    request: StagingCreateRequest,
    service: StagingService = Depends(get_staging_service),
):
    """Import a playlist for review."""
    raw_channels = load_playlist(request.content, request.source_url, request.format)
    import_type = "file" if request.content else "url"
    return service.create_staging_playlist(
        request.name, request.source_url, import_type, raw_channels
    )


@router.get("/{playlist_id}", response_model=StagingPlaylistModel)
def get_staging_playlist(playlist_id: str, service: StagingService = Depends(get_staging_service)):
    return StagingPlaylistModel.from_playlist(service.get_staging_playlist(playlist_id))


@router.delete("/{playlist_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_staging_playlist(playlist_id: str, service: StagingService = Depends(get_staging_service)):
    """Delete a staging playlist. Curated channels are not touched."""
    service.delete_staging_playlist(playlist_id)


@router.put("/{playlist_id}/channels/{channel_id}/status", response_model=StagingChannelModel)
def update_channel_status(
    playlist_id: str,
    channel_id: str,
    request: StagingStatusRequest,
    identity: Identity = Depends(require_admin),
    service: StagingService = Depends(get_staging_service),
):
    channel = service.update_staging_channel_status(
        playlist_id, channel_id, request.status, identity.user_id
    )
    return StagingChannelModel.from_channel(channel)


@router.patch("/{playlist_id}/channels/{channel_id}", response_model=StagingChannelModel)
def update_channel(
    playlist_id: str,
    channel_id: str,
    request: StagingChannelUpdate,
    service: StagingService = Depends(get_staging_service),
):
    """Edit name, language, group or country."""
    fields = request.model_dump(exclude_unset=True)
    channel = service.update_staging_channel(playlist_id, channel_id, fields)
    return StagingChannelModel.from_channel(channel)


@router.post("/{playlist_id}/bulk-status", response_model=CountResponse)
def bulk_update_status(
    playlist_id: str,
    request: StagingBulkStatusRequest,
    identity: Identity = Depends(require_admin),
    service: StagingService = Depends(get_staging_service),
):
    count = service.bulk_update_staging_status(
        playlist_id, request.ids, request.status, identity.user_id
    )
    return CountResponse(count=count)


@router.post("/{playlist_id}/channels/delete", response_model=CountResponse)
def delete_channels(
    playlist_id: str,
    request: IdsRequest,
    service: StagingService = Depends(get_staging_service),
):
    return CountResponse(count=service.delete_staging_channels(playlist_id, request.ids))


@router.post("/{playlist_id}/merge", response_model=MergeResponse)
def merge_playlist(playlist_id: str, service: StagingService = Depends(get_staging_service)):
    """Promote working channels into the curated catalog."""
    result = service.merge_staging_to_curated(playlist_id)
    return MergeResponse(
        merged=result.merged, skipped=result.skipped, duplicate_urls=result.duplicate_urls
    )
