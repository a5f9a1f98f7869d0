"""Per-user preference endpoints.

Users may read and edit their own preferences; admins may edit anyone's.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from stellix.api.dependencies import Identity, get_identity, get_preferences_store
from stellix.api.models import (
    DisabledRequest,
    FavoriteToggleResponse,
    PreferencesModel,
    PreferencesUpdate,
)
from stellix.database import PreferencesStore

router = APIRouter()


def _check_owner(user_id: str, identity: Identity) -> None:
    if identity.is_admin or identity.user_id == user_id:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Cannot access another user's preferences",
    )


@router.get("/{user_id}", response_model=PreferencesModel)
def get_preferences(
    user_id: str,
    identity: Identity = Depends(get_identity),
    store: PreferencesStore = Depends(get_preferences_store),
):
    _check_owner(user_id, identity)
    return PreferencesModel.from_preferences(store.load_preferences(user_id))


@router.put("/{user_id}", response_model=PreferencesModel)
def update_preferences(
    user_id: str,
    request: PreferencesUpdate,
    identity: Identity = Depends(get_identity),
    store: PreferencesStore = Depends(get_preferences_store),
):
    """Overwrite the given fields; others keep their stored values."""
    _check_owner(user_id, identity)
    prefs = store.load_preferences(user_id)
    for name, value in request.model_dump(exclude_unset=True).items():
        setattr(prefs, name, value if value is not None else getattr(prefs, name))
    store.save_preferences(prefs)
    return PreferencesModel.from_preferences(prefs)


@router.post("/{user_id}/favorites/{channel_id}", response_model=FavoriteToggleResponse)
def toggle_favorite(
    user_id: str,
    channel_id: str,
    identity: Identity = Depends(get_identity),
    store: PreferencesStore = Depends(get_preferences_store),
):
    """Add or remove a favorite."""
    _check_owner(user_id, identity)
    return FavoriteToggleResponse(
        channel_id=channel_id, favorite=store.toggle_favorite(user_id, channel_id)
    )


@router.put("/{user_id}/disabled/{channel_id}", response_model=PreferencesModel)
def set_channel_disabled(
    user_id: str,
    channel_id: str,
    request: DisabledRequest,
    identity: Identity = Depends(get_identity),
    store: PreferencesStore = Depends(get_preferences_store),
):
    """Hide or unhide a channel for this user only."""
    _check_owner(user_id, identity)
    prefs = store.set_channel_disabled(user_id, channel_id, request.disabled)
    return PreferencesModel.from_preferences(prefs)
