"""Tests for the filter and projection engine."""

import pytest

from stellix.consumers.projection import (
    get_available_countries,
    get_available_languages,
    get_category_counts,
    get_country_counts,
    get_filtered_channels,
    get_language_counts,
)
from stellix.core.types import ClientState


@pytest.fixture
def catalog(make_channel):
    return [
        make_channel("u1", id="news-en", name="World News", group="news", language="en", country="GB"),
        make_channel("u2", id="news-ru", name="Новости 24", group="news", language="ru", country="RU"),
        make_channel("u3", id="sport-en", name="Sport One", group="sports", language="en", country="US"),
        make_channel("u4", id="kids-en", name="Cartoon Time", group="kids", language="en", country="US"),
        make_channel("u5", id="movies-de", name="Kino Plus", group="movies", language="de", country="DE"),
        make_channel("u1", id="news-en-dup", name="World News HD", group="news", language="en", country="GB"),
    ]


def ids(records):
    return [r.id for r in records]


class TestFilteredChannels:
    def test_default_state_only_dedupes(self, catalog):
        result = get_filtered_channels(catalog)

        assert ids(result) == ["news-en", "news-ru", "sport-en", "kids-en", "movies-de"]

    def test_primary_represents_its_url_cluster(self, make_channel):
        records = [
            make_channel("u1", id="A"),
            make_channel("u1", id="B", is_primary=True),
            make_channel("u2", id="C"),
        ]

        assert ids(get_filtered_channels(records)) == ["B", "C"]
        assert ids(get_filtered_channels(records, ClientState(include_duplicates=True))) == ["A", "B", "C"]

    def test_include_duplicates(self, catalog):
        result = get_filtered_channels(catalog, ClientState(include_duplicates=True))

        assert len(result) == len(catalog)

    @pytest.mark.parametrize("value", ["all", "ALL", "", None, "  "])
    def test_unconstrained_values(self, catalog, value):
        state = ClientState(category=value, language=value, country=value)

        assert len(get_filtered_channels(catalog, state)) == 5

    def test_dimension_filters_are_case_insensitive(self, catalog):
        state = ClientState(category="NEWS", language="EN")

        assert ids(get_filtered_channels(catalog, state)) == ["news-en"]

    def test_search_matches_name_substring(self, catalog):
        assert ids(get_filtered_channels(catalog, ClientState(search_text="sport"))) == ["sport-en"]
        assert ids(get_filtered_channels(catalog, ClientState(search_text="НОВОСТИ"))) == ["news-ru"]

    def test_disabled_channels_are_excluded(self, catalog):
        state = ClientState(disabled_ids=frozenset({"news-en", "kids-en"}))

        assert ids(get_filtered_channels(catalog, state)) == ["news-ru", "sport-en", "movies-de"]

    def test_favorites_only(self, catalog):
        state = ClientState(favorites_only=True, favorite_ids=frozenset({"kids-en", "movies-de"}))

        assert ids(get_filtered_channels(catalog, state)) == ["kids-en", "movies-de"]

    def test_offline_channels_sort_last_in_stable_order(self, catalog):
        state = ClientState(offline_ids=frozenset({"news-en", "sport-en"}))

        result = get_filtered_channels(catalog, state)

        assert ids(result) == ["news-ru", "kids-en", "movies-de", "news-en", "sport-en"]
        assert [r.is_offline for r in result] == [False, False, False, True, True]

    def test_catalog_records_are_not_mutated(self, catalog):
        get_filtered_channels(catalog, ClientState(offline_ids=frozenset({"news-en"})))

        assert not any(r.is_offline for r in catalog)

    def test_unknown_category_yields_nothing(self, catalog):
        assert get_filtered_channels(catalog, ClientState(category="cooking")) == []

    def test_empty_catalog(self):
        state = ClientState(category="news", search_text="x", favorites_only=True)

        assert get_filtered_channels([], state) == []
        assert get_category_counts([], state) == {"all": 0}
        assert get_language_counts([], state) == {}
        assert get_country_counts([], state) == {}


class TestCounts:
    def test_all_equals_sum_of_categories(self, catalog):
        for state in [
            ClientState(),
            ClientState(language="en"),
            ClientState(country="US", search_text="o"),
            ClientState(favorites_only=True, favorite_ids=frozenset({"news-ru", "sport-en"})),
        ]:
            counts = get_category_counts(catalog, state)
            assert counts["all"] == sum(v for k, v in counts.items() if k != "all")
            assert counts["all"] == len(get_filtered_channels(catalog, state))

    def test_category_counts_ignore_category_filter(self, catalog):
        counts = get_category_counts(catalog, ClientState(category="news", language="en"))

        assert counts == {"all": 3, "news": 1, "sports": 1, "kids": 1}

    def test_language_counts_ignore_language_filter(self, catalog):
        counts = get_language_counts(catalog, ClientState(language="ru", category="news"))

        assert counts == {"en": 1, "ru": 1}

    def test_country_counts_ignore_country_filter(self, catalog):
        counts = get_country_counts(catalog, ClientState(country="GB", language="en"))

        assert counts == {"GB": 1, "US": 2}

    def test_counts_respect_disabled_set(self, catalog):
        counts = get_category_counts(catalog, ClientState(disabled_ids=frozenset({"news-en"})))

        assert counts["news"] == 1
        assert counts["all"] == 4


class TestAvailableOptions:
    def test_languages_sorted_and_distinct(self, catalog, make_channel):
        catalog.append(make_channel("u9", language=None))

        assert get_available_languages(catalog) == ["de", "en", "ru"]

    def test_countries_sorted_and_distinct(self, catalog):
        assert get_available_countries(catalog) == ["DE", "GB", "RU", "US"]
