"""Shared fixtures: a throwaway sqlite store, a quota tracker and a fake clock."""

import itertools

import pytest

from stellix.core.types import ChannelRecord, ChannelStatus
from stellix.database import CatalogStore, QuotaTracker, SqliteDocumentStore, set_tracker


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def isolated_tracker():
    """Keep the process-wide tracker in memory so tests never touch data/."""
    set_tracker(QuotaTracker(None))
    yield
    set_tracker(None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(tmp_path):
    return QuotaTracker(tmp_path / "quota_stats.json")


@pytest.fixture
def store(tmp_path, tracker):
    return SqliteDocumentStore(tmp_path / "stellix.db", tracker=tracker)


@pytest.fixture
def catalog_store(store, clock):
    return CatalogStore(store, cache_ttl=300, chunk_threshold=900_000, clock=clock)


@pytest.fixture
def make_channel():
    """Factory for catalog records with unique ids."""
    counter = itertools.count(1)

    def factory(
        url: str = "",
        name: str | None = None,
        status: ChannelStatus = ChannelStatus.ACTIVE,
        **fields,
    ) -> ChannelRecord:
        index = next(counter)
        return ChannelRecord(
            id=fields.pop("id", f"ch-{index}"),
            name=name or f"Channel {index}",
            url=url if url is not None else "",
            status=status,
            **fields,
        )

    return factory
