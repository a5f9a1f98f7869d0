"""Catalog filter and projection engine.

Pure functions of (catalog, ClientState). Nothing here touches the store,
mutates the catalog or raises: unknown filter values mean "no constraint"
and an empty catalog yields empty results and zero counts.

Dimension counts honour every active filter except their own, so a user sees
how many channels a choice would give together with the rest of the
selection.
"""

import dataclasses
from collections.abc import Callable

from stellix.core.types import DEFAULT_GROUP, ChannelRecord, ClientState
from stellix.consumers.deduplication import dedupe_by_url

ALL = "all"

Predicate = Callable[[ChannelRecord], bool]


def _unconstrained(value: str | None) -> bool:
    return value is None or not value.strip() or value.strip().casefold() == ALL


def _equals(value: str | None, wanted: str) -> bool:
    return (value or "").casefold() == wanted.strip().casefold()


def _group_of(record: ChannelRecord) -> str:
    return record.group or DEFAULT_GROUP


# =============================================================================
# PREDICATES
# =============================================================================


def _predicates(state: ClientState, skip: str | None = None) -> list[Predicate]:
    """Active filter predicates, optionally leaving one dimension out."""
    predicates: list[Predicate] = []

    if skip != "category" and not _unconstrained(state.category):
        predicates.append(lambda r: _equals(_group_of(r), state.category))
    if skip != "language" and not _unconstrained(state.language):
        predicates.append(lambda r: _equals(r.language, state.language))
    if skip != "country" and not _unconstrained(state.country):
        predicates.append(lambda r: _equals(r.country, state.country))

    search = state.search_text.strip().casefold() if state.search_text else ""
    if search:
        predicates.append(lambda r: search in r.name.casefold())

    if state.favorites_only:
        favorites = state.favorite_ids
        predicates.append(lambda r: r.id in favorites)

    return predicates


def _candidates(
    catalog: list[ChannelRecord], state: ClientState, policy: str | None
) -> list[ChannelRecord]:
    """Deduplicated catalog with the user's disabled channels removed."""
    pool = catalog if state.include_duplicates else dedupe_by_url(catalog, policy)
    disabled = state.disabled_ids
    if not disabled:
        return pool
    return [r for r in pool if r.id not in disabled]


def _select(
    catalog: list[ChannelRecord],
    state: ClientState,
    policy: str | None,
    skip: str | None = None,
) -> list[ChannelRecord]:
    predicates = _predicates(state, skip)
    return [r for r in _candidates(catalog, state, policy) if all(p(r) for p in predicates)]


# =============================================================================
# FILTERED VIEW
# =============================================================================


def get_filtered_channels(
    catalog: list[ChannelRecord],
    state: ClientState | None = None,
    policy: str | None = None,
) -> list[ChannelRecord]:
    """Filtered, deduplicated view for display.

    Survivors are copies annotated with is_offline from state.offline_ids;
    offline channels are moved after online ones without disturbing the
    relative order inside either group.
    """
    state = state or ClientState()
    offline = state.offline_ids

    annotated = [
        dataclasses.replace(r, is_offline=r.id in offline)
        for r in _select(catalog, state, policy)
    ]
    return sorted(annotated, key=lambda r: r.is_offline)


# =============================================================================
# COUNTS
# =============================================================================


def _count(records: list[ChannelRecord], key: Callable[[ChannelRecord], str | None]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for record in records:
        value = key(record)
        if value:
            counts[value] = counts.get(value, 0) + 1
    return counts


def get_category_counts(
    catalog: list[ChannelRecord],
    state: ClientState | None = None,
    policy: str | None = None,
) -> dict[str, int]:
    """Channels per category under the other active filters.

    The "all" entry is the sum of the per-category counts.
    """
    state = state or ClientState()
    counts = _count(_select(catalog, state, policy, skip="category"), _group_of)
    return {ALL: sum(counts.values()), **counts}


def get_language_counts(
    catalog: list[ChannelRecord],
    state: ClientState | None = None,
    policy: str | None = None,
) -> dict[str, int]:
    """Channels per language under the other active filters."""
    state = state or ClientState()
    return _count(_select(catalog, state, policy, skip="language"), lambda r: r.language)


def get_country_counts(
    catalog: list[ChannelRecord],
    state: ClientState | None = None,
    policy: str | None = None,
) -> dict[str, int]:
    """Channels per country under the other active filters."""
    state = state or ClientState()
    return _count(_select(catalog, state, policy, skip="country"), lambda r: r.country)


# =============================================================================
# FILTER OPTIONS
# =============================================================================


def get_available_languages(catalog: list[ChannelRecord]) -> list[str]:
    """Distinct non-empty languages across the whole catalog, sorted."""
    return sorted({r.language for r in catalog if r.language})


def get_available_countries(catalog: list[ChannelRecord]) -> list[str]:
    """Distinct non-empty countries across the whole catalog, sorted."""
    return sorted({r.country for r in catalog if r.country})


def get_available_categories(catalog: list[ChannelRecord]) -> list[str]:
    """Distinct categories across the whole catalog, sorted."""
    return sorted({_group_of(r) for r in catalog})
