"""FastAPI dependencies for dependency injection."""

from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends, Header, HTTPException, status

from stellix.config import Config
from stellix.consumers import CatalogService, HealthCheckRunner, StagingService
from stellix.database import CatalogStore, PreferencesStore, QuotaTracker, SqliteDocumentStore, get_tracker
from stellix.providers import StreamProbe


@lru_cache
def get_document_store() -> SqliteDocumentStore:
    return SqliteDocumentStore(Config.DATABASE_PATH)


@lru_cache
def get_catalog_store() -> CatalogStore:
    """Process-wide catalog store, so the read cache is shared by requests."""
    return CatalogStore(get_document_store())


@lru_cache
def get_catalog_service() -> CatalogService:
    return CatalogService(get_catalog_store())


@lru_cache
def get_staging_service() -> StagingService:
    return StagingService(get_catalog_store(), get_catalog_service())


@lru_cache
def get_preferences_store() -> PreferencesStore:
    return PreferencesStore(get_document_store())


@lru_cache
def get_stream_probe() -> StreamProbe:
    return StreamProbe()


def get_health_runner(probe: StreamProbe = Depends(get_stream_probe)) -> HealthCheckRunner:
    # One runner per request; cancel() only makes sense for in-process callers
    return HealthCheckRunner(probe)


def get_quota_tracker() -> QuotaTracker:
    return get_tracker()


def clear_dependency_cache() -> None:
    """Forget every singleton, e.g. after Config.DATABASE_PATH changes."""
    for factory in (
        get_document_store,
        get_catalog_store,
        get_catalog_service,
        get_staging_service,
        get_preferences_store,
        get_stream_probe,
    ):
        factory.cache_clear()


# =============================================================================
# Identity
# =============================================================================


@dataclass(frozen=True)
class Identity:
    """Caller identity supplied by the fronting auth layer."""

    user_id: str | None
    is_admin: bool


def get_identity(
    x_user_id: str | None = Header(None),
    x_user_admin: str | None = Header(None),
) -> Identity:
    is_admin = (x_user_admin or "").strip().lower() in ("1", "true", "yes")
    return Identity(user_id=x_user_id or None, is_admin=is_admin)


def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return identity
