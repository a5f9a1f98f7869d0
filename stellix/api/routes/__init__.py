"""API route modules."""

from stellix.api.routes import admin, channels, health, preferences, staging, stats

__all__ = [
    "admin",
    "channels",
    "health",
    "preferences",
    "staging",
    "stats",
]
