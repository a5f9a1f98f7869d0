"""Tests for playlist parsing and download."""

import json

import httpx
import pytest

from stellix.core.exceptions import ValidationError
from stellix.providers.m3u import (
    convert_to_channel_records,
    fetch_playlist,
    infer_language_country,
    map_group,
    parse_catalog_export,
    parse_channel_json,
    parse_m3u,
    parse_playlist,
)

PLAYLIST = """#EXTM3U
#EXTINF:-1 tvg-id="bbc1.uk" tvg-logo="https://logos.example.com/bbc1.png" group-title="News",BBC One
https://streams.example.com/bbc1.m3u8
#EXTINF:-1 tvg-language="EN" tvg-country="us" group-title="Sport HD",Sports, Live
http://streams.example.com/sport
#EXTINF:-1 group-title="Новости",Первый канал
https://streams.example.com/perviy.m3u8
#EXTINF:-1,
https://streams.example.com/nameless.m3u8
#EXTINF:-1 group-title="Music",Dangling entry
#EXTVLCOPT:http-user-agent=VLC
"""


class TestParseM3u:
    def test_entries_and_attributes(self):
        channels = parse_m3u(PLAYLIST)

        assert [ch.name for ch in channels] == ["BBC One", "Live", "Первый канал"]
        first = channels[0]
        assert first.url == "https://streams.example.com/bbc1.m3u8"
        assert first.logo == "https://logos.example.com/bbc1.png"
        assert first.group == "News"

    def test_explicit_attributes_are_normalized(self):
        sport = parse_m3u(PLAYLIST)[1]

        assert (sport.language, sport.country) == ("en", "US")

    def test_missing_attributes_are_inferred(self):
        bbc, _, perviy = parse_m3u(PLAYLIST)

        assert (bbc.language, bbc.country) == ("en", "GB")
        assert (perviy.language, perviy.country) == ("ru", None)

    def test_empty_text(self):
        assert parse_m3u("") == []
        assert parse_m3u("#EXTM3U\n") == []


class TestInference:
    @pytest.mark.parametrize(
        "name, tvg_id, expected",
        [
            ("Sky News UK", "", ("en", "GB")),
            ("Fox (US)", "", ("en", "US")),
            ("Rai 1 IT", "", ("it", "IT")),
            ("Das Erste", "daserste.de", ("de", "DE")),
            ("Россия 1", "", ("ru", None)),
            ("Al Jazeera عربي", "", ("ar", None)),
            ("Plain Channel", "", (None, None)),
        ],
    )
    def test_rules(self, name, tvg_id, expected):
        assert infer_language_country(name, tvg_id) == expected

    def test_explicit_values_are_kept(self):
        assert infer_language_country("Sky News UK", "", language="fr") == ("fr", "GB")


class TestGroups:
    @pytest.mark.parametrize(
        "group, category",
        [
            ("World News", "news"),
            ("СПОРТ", "sports"),
            ("Movies HD", "movies"),
            ("Детские", "kids"),
            (None, "entertainment"),
            ("Something else", "entertainment"),
        ],
    )
    def test_map_group(self, group, category):
        assert map_group(group) == category

    def test_parse_playlist_maps_groups(self):
        channels = parse_playlist(PLAYLIST, "m3u")

        assert [ch.group for ch in channels] == ["news", "sports", "news"]

    def test_parse_playlist_rejects_empty_and_unknown(self):
        with pytest.raises(ValidationError):
            parse_playlist("#EXTM3U\n", "m3u")
        with pytest.raises(ValidationError):
            parse_playlist(PLAYLIST, "xspf")


class TestConvert:
    def test_records_carry_source_id_and_live_label(self):
        records = convert_to_channel_records(parse_m3u(PLAYLIST), "custom-1")

        assert [r.id for r in records] == ["custom-1-0", "custom-1-1", "custom-1-2"]
        assert all(r.labels == ["Live"] and r.is_custom for r in records)
        assert all(r.playlist_id == "custom-1" for r in records)
        assert records[1].group == "sports"


class TestJson:
    def test_list_and_wrapped_forms(self):
        entries = [{"name": "One", "url": "https://x/1", "group": "news"}]

        assert parse_channel_json(json.dumps(entries)) == parse_channel_json(
            json.dumps({"channels": entries})
        )

    @pytest.mark.parametrize(
        "content",
        [
            "{broken",
            "[]",
            '{"items": []}',
            '[{"name": "No url"}]',
            '["just a string"]',
        ],
    )
    def test_malformed_input(self, content):
        with pytest.raises(ValidationError):
            parse_channel_json(content)

    def test_catalog_export_keeps_ids_and_status(self):
        content = json.dumps(
            [{"id": "ch-9", "name": "Nine", "url": "https://x/9", "status": "broken", "is_primary": True}]
        )

        record = parse_catalog_export(content)[0]

        assert (record.id, record.status.value, record.is_primary) == ("ch-9", "broken", True)

    def test_catalog_export_requires_ids(self):
        with pytest.raises(ValidationError):
            parse_catalog_export('[{"name": "Nameless", "url": "https://x"}]')


class TestFetch:
    def test_returns_body(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, text=PLAYLIST)))

        assert fetch_playlist("https://lists.example.com/a.m3u", client=client) == PLAYLIST

    def test_http_errors_become_validation_errors(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(404)))

        with pytest.raises(ValidationError):
            fetch_playlist("https://lists.example.com/missing.m3u", client=client)
