"""Duplicate detection and primary resolution.

Two groupings are used:

- URL clusters: records whose normalized stream URL is equal. Within a
  cluster one record is authoritative: the first record flagged is_primary,
  otherwise the first record in catalog order. Only apply_primary() ever
  changes is_primary; display resolution never promotes anything.
- Name groups: records whose normalized display name is equal and which come
  from different sources. These are suggestions for manual review only and
  are never merged automatically.

Records with an empty URL never join a URL cluster.
"""

import logging
import re
from collections.abc import Iterable

from stellix.config import Config
from stellix.core.types import (
    ChannelRecord,
    ChannelStatus,
    DuplicateChannel,
    DuplicateInfo,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

MANUAL_SOURCE = "Manual"
UNKNOWN_SOURCE = "Unknown"

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w\s]|_")


# =============================================================================
# NORMALIZATION
# =============================================================================


def normalize_url(url: str | None, policy: str | None = None) -> str:
    """Normalize a stream URL for clustering.

    Args:
        url: Raw URL (None treated as empty)
        policy: "exact" trims whitespace only; "casefold" also case-folds.
            Defaults to Config.URL_MATCH_POLICY.

    Returns:
        Normalized URL, "" when there is none
    """
    normalized = (url or "").strip()
    if (policy or Config.URL_MATCH_POLICY) == "casefold":
        normalized = normalized.casefold()
    return normalized


def normalize_name(name: str | None) -> str:
    """Case-fold, drop punctuation and collapse whitespace."""
    folded = (name or "").casefold()
    folded = _NON_WORD.sub("", folded)
    return _WHITESPACE.sub(" ", folded).strip()


# =============================================================================
# URL CLUSTERS
# =============================================================================


def cluster_by_url(
    records: Iterable[ChannelRecord], policy: str | None = None
) -> dict[str, list[ChannelRecord]]:
    """Group records by normalized URL, preserving catalog order.

    Records without a URL are left out.
    """
    clusters: dict[str, list[ChannelRecord]] = {}
    for record in records:
        key = normalize_url(record.url, policy)
        if not key:
            continue
        clusters.setdefault(key, []).append(record)
    return clusters


def pick_authoritative(cluster: list[ChannelRecord]) -> ChannelRecord:
    """The record displayed for a URL cluster."""
    for record in cluster:
        if record.is_primary:
            return record
    return cluster[0]


def dedupe_by_url(
    records: Iterable[ChannelRecord], policy: str | None = None
) -> list[ChannelRecord]:
    """Keep one record per URL in a single pass.

    The kept record sits at the position of the cluster's first member; a
    later primary replaces the kept record in place through the index map.
    URL-less records pass through untouched.
    """
    result: list[ChannelRecord] = []
    index_by_url: dict[str, int] = {}

    for record in records:
        key = normalize_url(record.url, policy)
        if not key:
            result.append(record)
            continue

        index = index_by_url.get(key)
        if index is None:
            index_by_url[key] = len(result)
            result.append(record)
        elif record.is_primary and not result[index].is_primary:
            result[index] = record

    return result


# =============================================================================
# DUPLICATE REPORT
# =============================================================================


def _report_member(record: ChannelRecord, playlist_names: dict[str, str]) -> DuplicateChannel:
    if record.playlist_id:
        source_name = playlist_names.get(record.playlist_id, UNKNOWN_SOURCE)
    else:
        source_name = MANUAL_SOURCE
    return DuplicateChannel(
        id=record.id,
        playlist_id=record.playlist_id,
        playlist_name=source_name,
        status=record.status.value,
        is_primary=record.is_primary,
        url=record.url,
    )


def resolve_duplicates(
    records: list[ChannelRecord],
    playlist_names: dict[str, str] | None = None,
    policy: str | None = None,
) -> list[DuplicateInfo]:
    """Build the duplicate report. Read-only.

    Inactive records are ignored. URL clusters come first; name groups are
    built from the records not already in a URL cluster and only reported
    when their members come from at least two different sources.

    Args:
        records: Curated catalog
        playlist_names: playlist id -> display name for the report
        policy: URL normalization policy

    Returns:
        URL duplicates first, then name duplicates, each largest group first
    """
    playlist_names = playlist_names or {}
    candidates = [r for r in records if r.status != ChannelStatus.INACTIVE]

    url_groups: list[DuplicateInfo] = []
    in_url_cluster: set[str] = set()
    for key, cluster in cluster_by_url(candidates, policy).items():
        if len(cluster) < 2:
            continue
        in_url_cluster.update(r.id for r in cluster)
        url_groups.append(
            DuplicateInfo(
                name=cluster[0].name,
                normalized_name=key,
                count=len(cluster),
                kind="url",
                channels=[_report_member(r, playlist_names) for r in cluster],
                display_id=pick_authoritative(cluster).id,
            )
        )

    name_clusters: dict[str, list[ChannelRecord]] = {}
    for record in candidates:
        if record.id in in_url_cluster:
            continue
        key = normalize_name(record.name)
        if key:
            name_clusters.setdefault(key, []).append(record)

    name_groups: list[DuplicateInfo] = []
    for key, cluster in name_clusters.items():
        sources = {r.playlist_id for r in cluster}
        if len(cluster) < 2 or len(sources) < 2:
            continue
        name_groups.append(
            DuplicateInfo(
                name=cluster[0].name,
                normalized_name=key,
                count=len(cluster),
                kind="name",
                channels=[_report_member(r, playlist_names) for r in cluster],
            )
        )

    url_groups.sort(key=lambda group: group.count, reverse=True)
    name_groups.sort(key=lambda group: group.count, reverse=True)
    return url_groups + name_groups


# =============================================================================
# PRIMARY SELECTION
# =============================================================================


def apply_primary(
    records: list[ChannelRecord],
    primary_id: str | None,
    other_ids: Iterable[str],
    policy: str | None = None,
) -> int:
    """Set is_primary on one record and clear it on its cluster, in place.

    Every record named in other_ids, plus every record sharing the primary's
    URL cluster, loses is_primary, so a cluster never ends up with two
    primaries. primary_id=None just clears the named records. Siblings are
    never deactivated here.

    Returns:
        Number of records touched
    """
    affected = set(other_ids)
    primary_url = ""
    if primary_id:
        affected.add(primary_id)
        for record in records:
            if record.id == primary_id:
                primary_url = normalize_url(record.url, policy)
                break

    now = utc_now_iso()
    touched = 0
    for record in records:
        in_cluster = bool(primary_url) and normalize_url(record.url, policy) == primary_url
        if record.id not in affected and not in_cluster:
            continue
        record.is_primary = record.id == primary_id
        record.updated_at = now
        touched += 1

    logger.debug("[DEDUP] Primary %s applied to %d records", primary_id, touched)
    return touched