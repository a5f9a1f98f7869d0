"""Tests for curated catalog operations."""

import pytest

from stellix.consumers import CatalogService
from stellix.core.exceptions import NotFoundError, StoreError, ValidationError
from stellix.core.types import ChannelStatus, PlaylistSource, RawChannel


@pytest.fixture
def service(catalog_store):
    return CatalogService(catalog_store)


@pytest.fixture
def seeded(service, catalog_store, make_channel):
    catalog_store.save_catalog(
        [
            make_channel("u1", id="A", playlist_id="p1", order=2),
            make_channel("u1", id="B", playlist_id="p2", order=1),
            make_channel("u2", id="C", status=ChannelStatus.PENDING),
            make_channel("u3", id="D", enabled=False),
            make_channel("u4", id="E", language="English"),
        ]
    )
    return service


class TestReads:
    def test_active_channels_sorted_by_order(self, seeded):
        assert [ch.id for ch in seeded.get_active_channels()] == ["B", "A", "E"]

    def test_get_channel_unknown_id(self, seeded):
        with pytest.raises(NotFoundError):
            seeded.get_channel("missing")

    def test_catalog_stats(self, seeded):
        stats = seeded.get_catalog_stats()

        assert stats["total"] == 5
        assert stats["by_status"]["pending"] == 1
        assert stats["by_language"]["English"] == 1
        assert stats["by_group"]["entertainment"] == 5


class TestStatus:
    def test_update_status_records_checker(self, seeded):
        record = seeded.update_channel_status("C", "broken", "admin-1")

        assert record.status == ChannelStatus.BROKEN
        assert record.checked_by == "admin-1"
        assert seeded.get_channel("C").status == ChannelStatus.BROKEN

    def test_bulk_deactivate_leaves_primary_alone(self, seeded):
        seeded.set_primary_channel("A", ["B"])

        count = seeded.bulk_deactivate(["A", "missing"])

        record = seeded.get_channel("A")
        assert count == 1
        assert record.status == ChannelStatus.INACTIVE
        assert record.is_primary is True

    def test_toggle_enabled(self, seeded):
        assert seeded.toggle_enabled("D") is True
        assert seeded.toggle_enabled("D") is False

    def test_invalid_status_is_rejected(self, seeded):
        with pytest.raises(ValueError):
            seeded.update_channel_status("C", "archived")


class TestEdits:
    def test_add_channel_replaces_same_url(self, seeded, make_channel):
        seeded.add_channel(make_channel("u2", id="NEW"))

        ids = [ch.id for ch in seeded.get_channels()]
        assert "NEW" in ids
        assert "C" not in ids

    def test_add_channel_requires_url(self, seeded, make_channel):
        with pytest.raises(ValidationError):
            seeded.add_channel(make_channel("  "))

    def test_update_channel_rejects_unknown_fields(self, seeded):
        with pytest.raises(ValidationError):
            seeded.update_channel("C", {"is_primary": True})

    @pytest.mark.parametrize(
        "fields",
        [
            {"url": None},
            {"url": "   "},
            {"name": None},
            {"name": ""},
            {"labels": None},
            {"labels": "Live"},
        ],
    )
    def test_update_channel_rejects_bad_values_without_saving(self, seeded, catalog_store, fields):
        version = catalog_store.get_metadata().version

        with pytest.raises(ValidationError):
            seeded.update_channel("C", fields)

        record = seeded.get_channel("C")
        assert record.url == "u2"
        assert record.name
        assert isinstance(record.labels, list)
        assert catalog_store.get_metadata().version == version

    def test_update_channel_trims_url(self, seeded):
        record = seeded.update_channel("C", {"url": "  u7  "})

        assert record.url == "u7"

    def test_update_channel_defaults_empty_group(self, seeded):
        record = seeded.update_channel("C", {"name": "Renamed", "group": ""})

        assert (record.name, record.group) == ("Renamed", "entertainment")

    def test_remove_and_bulk_delete(self, seeded):
        seeded.remove_channel("A")
        removed = seeded.bulk_delete(["B", "C", "missing"])

        assert removed == 2
        assert [ch.id for ch in seeded.get_channels()] == ["D", "E"]

    def test_failed_read_aborts_mutation(self, seeded, store, monkeypatch):
        def broken_get(*args, **kwargs):
            raise StoreError("storage unavailable")

        monkeypatch.setattr(store, "get", broken_get)

        with pytest.raises(StoreError):
            seeded.bulk_delete(["A"])


class TestImport:
    def test_import_skips_known_and_repeated_urls(self, seeded):
        result = seeded.import_channels(
            [
                RawChannel(name="Dup", url="u1"),
                RawChannel(name="New", url="u9"),
                RawChannel(name="New again", url="u9"),
                RawChannel(name="No url", url=""),
            ],
            playlist_id="p9",
        )

        assert (result.added, result.skipped) == (1, 3)
        assert result.duplicate_urls == ["u1", "u9"]
        added = [ch for ch in seeded.get_channels() if ch.url == "u9"]
        assert added[0].status == ChannelStatus.PENDING
        assert added[0].id.startswith("curated-")
        assert added[0].playlist_id == "p9"

    def test_empty_import_is_rejected(self, seeded):
        with pytest.raises(ValidationError):
            seeded.import_channels([])

    def test_migrate_collapses_url_duplicates(self, service, make_channel):
        records = [
            make_channel("u1", id="A"),
            make_channel("u1", id="B", is_primary=True),
            make_channel("u2", id="C"),
        ]

        assert service.migrate_records(records) == 2
        assert [ch.id for ch in service.get_channels()] == ["B", "C"]


class TestDuplicates:
    def test_report_uses_source_names(self, seeded):
        seeded.record_playlist_source(
            PlaylistSource(id="p1", name="Provider One", url=None, import_type="url", imported_at="2024-01-01")
        )

        groups = seeded.find_duplicates()

        assert [ch.playlist_name for ch in groups[0].channels] == ["Provider One", "Unknown"]

    def test_set_primary_unknown_channel(self, seeded):
        with pytest.raises(NotFoundError):
            seeded.set_primary_channel("missing", [])

    def test_set_primary_switches_within_cluster(self, seeded):
        seeded.set_primary_channel("A", ["B"])
        seeded.set_primary_channel("B", [])

        primaries = [ch.id for ch in seeded.get_channels() if ch.is_primary]
        assert primaries == ["B"]


class TestMaintenance:
    def test_update_order_reorders_catalog(self, seeded):
        seeded.update_channel_order(["E", "C"])

        channels = seeded.get_channels()
        assert [ch.id for ch in channels] == ["E", "C", "A", "B", "D"]
        assert [ch.order for ch in channels] == [0, 1, None, None, None]

    def test_normalize_languages(self, seeded):
        counts = seeded.normalize_languages()

        assert counts == {"updated": 1, "unchanged": 4}
        assert seeded.get_channel("E").language == "en"

    def test_playlist_sources_round_trip(self, service):
        source = PlaylistSource(id="p1", name="One", url="https://x", import_type="url", imported_at="2024-02-01")
        service.record_playlist_source(source)

        assert service.list_playlist_sources() == [source]
        assert service.delete_playlist_source("p1") is True
        assert service.list_playlist_sources() == []
