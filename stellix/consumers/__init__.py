"""Consumers - services that work on the curated catalog and staging data."""

from stellix.consumers.catalog import CatalogService
from stellix.consumers.deduplication import (
    apply_primary,
    dedupe_by_url,
    normalize_name,
    normalize_url,
    resolve_duplicates,
)
from stellix.consumers.health_check import HealthCheckResult, HealthCheckRunner
from stellix.consumers.projection import (
    get_available_categories,
    get_available_countries,
    get_available_languages,
    get_category_counts,
    get_country_counts,
    get_filtered_channels,
    get_language_counts,
)
from stellix.consumers.staging import StagingService

__all__ = [
    # Services
    "CatalogService",
    "StagingService",
    # Deduplication
    "apply_primary",
    "dedupe_by_url",
    "normalize_name",
    "normalize_url",
    "resolve_duplicates",
    # Projection
    "get_available_categories",
    "get_available_countries",
    "get_available_languages",
    "get_category_counts",
    "get_country_counts",
    "get_filtered_channels",
    "get_language_counts",
    # Health
    "HealthCheckResult",
    "HealthCheckRunner",
]
