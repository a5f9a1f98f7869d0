"""Tests for the aggregate catalog store."""

import pytest

from stellix.core.exceptions import CatalogConflictError, StoreError
from stellix.core.types import ChannelRecord, ChannelStatus
from stellix.database import CatalogStore, ChunkedLayout, SingleLayout, plan_layout
from stellix.database.catalog import CURATED_COLLECTION


def reads(tracker) -> int:
    return tracker.get_stats()["reads"]


def synthetic_catalog(count: int) -> list[ChannelRecord]:
    return [
        ChannelRecord(
            id=f"syn-{i}",
            name=f"Synthetic channel {i}",
            url=f"https://streams.example.com/live/{i}/index.m3u8",
            logo=f"https://logos.example.com/{i}.png",
            language="en",
            country="US",
            status=ChannelStatus.ACTIVE,
        )
        for i in range(count)
    ]


class TestBootstrap:
    def test_missing_catalog_loads_empty(self, catalog_store):
        assert catalog_store.load_catalog() == []

    def test_missing_catalog_has_no_metadata(self, catalog_store):
        assert catalog_store.get_metadata() is None


class TestCache:
    def test_second_load_is_cache_hit(self, catalog_store, tracker, make_channel):
        catalog_store.save_catalog([make_channel("u1"), make_channel("u2")])

        first = catalog_store.load_catalog()
        before = reads(tracker)
        second = catalog_store.load_catalog()

        assert second is first
        assert reads(tracker) == before

    def test_expired_cache_costs_one_read(self, catalog_store, tracker, clock, make_channel):
        catalog_store.save_catalog([make_channel("u1")])
        catalog_store.load_catalog()

        clock.advance(301)
        before = reads(tracker)
        catalog_store.load_catalog()

        assert reads(tracker) == before + 1

    def test_save_invalidates_cache(self, catalog_store, make_channel):
        catalog_store.save_catalog([make_channel("u1")])
        first = catalog_store.load_catalog()

        catalog_store.save_catalog([make_channel("u1"), make_channel("u2")])
        second = catalog_store.load_catalog()

        assert second is not first
        assert len(second) == 2

    def test_uncached_load_returns_private_copy(self, catalog_store, make_channel):
        catalog_store.save_catalog([make_channel("u1")])
        cached = catalog_store.load_catalog()

        fresh = catalog_store.load_catalog(use_cache=False)
        fresh[0].name = "Edited"

        assert fresh is not cached
        assert cached[0].name != "Edited"
        assert catalog_store.load_catalog() is cached


class TestDegradedReads:
    def test_failure_serves_stale_cache(self, catalog_store, store, clock, monkeypatch, make_channel):
        catalog_store.save_catalog([make_channel("u1")])
        cached = catalog_store.load_catalog()

        def broken_get(*args, **kwargs):
            raise StoreError("storage unavailable")

        monkeypatch.setattr(store, "get", broken_get)
        clock.advance(301)

        assert catalog_store.load_catalog() is cached
        assert catalog_store.serving_stale is True

    def test_failed_uncached_read_returns_private_copy(self, catalog_store, store, monkeypatch, make_channel):
        catalog_store.save_catalog([make_channel("u1", name="Original")])
        cached = catalog_store.load_catalog()

        def broken_get(*args, **kwargs):
            raise StoreError("storage unavailable")

        monkeypatch.setattr(store, "get", broken_get)

        fallback = catalog_store.load_catalog(use_cache=False)
        fallback[0].name = "Edited"
        fallback.clear()

        assert fallback is not cached
        assert [r.name for r in cached] == ["Original"]

    def test_failure_without_cache_returns_empty(self, catalog_store, store, monkeypatch):
        def broken_get(*args, **kwargs):
            raise StoreError("storage unavailable")

        monkeypatch.setattr(store, "get", broken_get)

        assert catalog_store.load_catalog() == []

    def test_strict_load_raises(self, catalog_store, store, monkeypatch):
        def broken_get(*args, **kwargs):
            raise RuntimeError("socket closed")

        monkeypatch.setattr(store, "get", broken_get)

        with pytest.raises(StoreError):
            catalog_store.load_catalog(use_cache=False, strict=True)

    def test_missing_chunk_is_an_error(self, store, clock):
        catalog = CatalogStore(store, cache_ttl=300, chunk_threshold=20_000, clock=clock)
        catalog.save_catalog(synthetic_catalog(300))
        store.delete(CURATED_COLLECTION, "chunk_1")

        with pytest.raises(StoreError):
            catalog.load_catalog(use_cache=False, strict=True)
        assert catalog.load_catalog(use_cache=False) == []


class TestChunkedLayout:
    def test_round_trip_preserves_order(self, store, tracker, clock):
        catalog = CatalogStore(store, cache_ttl=300, chunk_threshold=50_000, clock=clock)
        records = synthetic_catalog(1200)

        metadata = catalog.save_catalog(records)
        assert metadata.layout == "chunked"
        assert metadata.total_chunks > 1
        assert metadata.count == 1200

        before = reads(tracker)
        loaded = catalog.load_catalog()

        assert [r.id for r in loaded] == [r.id for r in records]
        assert reads(tracker) == before + 1 + metadata.total_chunks

    def test_shrinking_catalog_removes_stale_chunks(self, store, clock):
        catalog = CatalogStore(store, cache_ttl=300, chunk_threshold=50_000, clock=clock)
        catalog.save_catalog(synthetic_catalog(1200))

        metadata = catalog.save_catalog(synthetic_catalog(3))

        assert metadata.layout == "single"
        keys = store.list_keys(CURATED_COLLECTION)
        assert not [key for key in keys if key.startswith("chunk_")]
        assert len(catalog.load_catalog(use_cache=False)) == 3

    def test_plan_layout_respects_threshold(self):
        channels = [record.to_dict() for record in synthetic_catalog(200)]

        assert isinstance(plan_layout(channels, 10_000_000), SingleLayout)

        layout = plan_layout(channels, 5_000)
        assert isinstance(layout, ChunkedLayout)
        assert [c for chunk in layout.chunks for c in chunk] == channels


class TestMetadata:
    def test_version_increments_on_every_save(self, catalog_store, make_channel):
        first = catalog_store.save_catalog([make_channel("u1")])
        second = catalog_store.save_catalog([make_channel("u1")])

        assert second.version == first.version + 1
        assert catalog_store.get_metadata().version == second.version

    def test_status_counts_are_recorded(self, catalog_store, make_channel):
        catalog_store.save_catalog(
            [
                make_channel("u1"),
                make_channel("u2", status=ChannelStatus.BROKEN),
                make_channel("u3", status=ChannelStatus.BROKEN),
            ]
        )

        stats = catalog_store.get_metadata().stats
        assert stats["active"] == 1
        assert stats["broken"] == 2
        assert stats["pending"] == 0

    def test_expected_version_mismatch_conflicts(self, catalog_store, make_channel):
        catalog_store.save_catalog([make_channel("u1")])

        with pytest.raises(CatalogConflictError):
            catalog_store.save_catalog([make_channel("u2")], expected_version=0)

        assert catalog_store.load_catalog()[0].url == "u1"

    def test_expected_version_match_saves(self, catalog_store, make_channel):
        current = catalog_store.save_catalog([make_channel("u1")])
        saved = catalog_store.save_catalog([make_channel("u2")], expected_version=current.version)

        assert saved.version == current.version + 1
