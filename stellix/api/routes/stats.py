"""Bookkeeping and catalog statistics endpoints (admin only)."""

from fastapi import APIRouter, Depends

from stellix.api.dependencies import get_catalog_service, get_quota_tracker, require_admin
from stellix.consumers import CatalogService
from stellix.database import QuotaTracker

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/quota")
def get_quota_summary(tracker: QuotaTracker = Depends(get_quota_tracker)) -> dict:
    """Today's store operation counts, top callers and recent activity."""
    return tracker.get_summary()


@router.post("/quota/reset")
def reset_quota(tracker: QuotaTracker = Depends(get_quota_tracker)) -> dict:
    tracker.reset()
    return {"success": True}


@router.get("/catalog")
def get_catalog_stats(service: CatalogService = Depends(get_catalog_service)) -> dict:
    """Channel totals by status, language, group and country."""
    stats = service.get_catalog_stats()
    stats["stale"] = service.catalog_store.serving_stale
    return stats
