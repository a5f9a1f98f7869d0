"""Per-user preferences (favorites, disabled channels, default filters).

Stored in the user_preferences collection keyed by user id. The projection
engine never reads this directly; callers load preferences and pass the
relevant sets in a ClientState.
"""

import logging

from stellix.core.exceptions import NotFoundError
from stellix.core.types import UserPreferences
from stellix.database.documents import ArrayRemove, ArrayUnion, SqliteDocumentStore

logger = logging.getLogger(__name__)

PREFERENCES_COLLECTION = "user_preferences"


class PreferencesStore:
    """Load and save UserPreferences through the document store."""

    def __init__(self, store: SqliteDocumentStore):
        self._store = store

    def load_preferences(self, user_id: str) -> UserPreferences:
        """Load preferences; unknown users and read failures yield defaults."""
        try:
            data = self._store.get(PREFERENCES_COLLECTION, user_id, caller="load_preferences")
        except Exception as e:
            logger.warning("[PREFS] Failed to load preferences for %s: %s", user_id, e)
            data = None
        return UserPreferences.from_dict(user_id, data)

    def save_preferences(self, prefs: UserPreferences) -> None:
        self._store.set(
            PREFERENCES_COLLECTION, prefs.user_id, prefs.to_dict(), caller="save_preferences"
        )

    def _edit_list(self, user_id: str, field_name: str, edit: ArrayUnion | ArrayRemove) -> UserPreferences:
        try:
            data = self._store.update(
                PREFERENCES_COLLECTION, user_id, {field_name: edit}, caller=f"edit_{field_name}"
            )
        except NotFoundError:
            prefs = UserPreferences(user_id=user_id)
            setattr(prefs, field_name, edit.apply([]))
            self.save_preferences(prefs)
            return prefs
        return UserPreferences.from_dict(user_id, data)

    def toggle_favorite(self, user_id: str, channel_id: str) -> bool:
        """Flip a channel's favorite flag.

        Returns:
            True if the channel is a favorite afterwards
        """
        prefs = self.load_preferences(user_id)
        if channel_id in prefs.favorites:
            self._edit_list(user_id, "favorites", ArrayRemove(channel_id))
            return False
        self._edit_list(user_id, "favorites", ArrayUnion(channel_id))
        return True

    def set_channel_disabled(self, user_id: str, channel_id: str, disabled: bool) -> UserPreferences:
        """Hide or unhide a channel for one user."""
        edit = ArrayUnion(channel_id) if disabled else ArrayRemove(channel_id)
        return self._edit_list(user_id, "disabled_ids", edit)
