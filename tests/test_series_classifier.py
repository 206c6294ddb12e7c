"""
Tests for series grouping.
"""
import pytest

from iptv_catalog.models.channel import Channel
from iptv_catalog.services.series_classifier import (
    all_episodes,
    classify,
    display_name,
    extract_base_name,
    filter_by_audio,
    first_episode,
    is_subtitled,
    series_id,
)


def make_channel(index: int, name: str, group: str = "Series", **kwargs) -> Channel:
    return Channel(id=f"channel-{index}", name=name, url=f"http://example.com/{index}", group=group, **kwargs)


def grouping_signature(result):
    """Comparable view of a GroupResult: series, seasons and episode ids."""
    return (
        [
            (s.id, s.name, [(n, [ep.id for ep in season.episodes]) for n, season in s.seasons.items()])
            for s in result.series
        ],
        [ch.id for ch in result.standalone_channels],
    )


class TestClassify:
    """Grouping of episodic channels into series."""

    def test_groups_episodes_into_one_series(self):
        result = classify([
            make_channel(0, "Alpha S01E01"),
            make_channel(1, "Alpha S01E02"),
        ])

        assert len(result.series) == 1
        series = result.series[0]
        assert series.name == "Alpha"
        assert list(series.seasons) == [1]
        assert [ep.episode for ep in series.seasons[1].episodes] == [1, 2]
        assert result.standalone_channels == []

    def test_episodes_sorted_within_season(self):
        result = classify([
            make_channel(0, "Alpha S01E03"),
            make_channel(1, "Alpha S01E01"),
            make_channel(2, "Alpha S02E01"),
            make_channel(3, "Alpha S01E02"),
        ])

        series = result.series[0]
        assert list(series.seasons) == [1, 2]
        assert [ep.id for ep in series.seasons[1].episodes] == ["channel-1", "channel-3", "channel-0"]

    def test_ties_keep_discovery_order(self):
        result = classify([
            make_channel(0, "Alpha S01E01"),
            make_channel(1, "Alpha [L] S01E01"),
            make_channel(2, "Alpha S01E01"),
        ])

        episodes = result.series[0].seasons[1].episodes
        assert [ep.id for ep in episodes] == ["channel-0", "channel-1", "channel-2"]

    def test_non_episodic_channels_are_standalone(self):
        result = classify([
            make_channel(0, "Avatar", group="Movies"),
            make_channel(1, "Alpha S01E01"),
            make_channel(2, "Show S200E5"),
        ])

        assert [ch.id for ch in result.standalone_channels] == ["channel-0", "channel-2"]
        assert len(result.series) == 1

    def test_every_channel_lands_exactly_once(self):
        channels = [
            make_channel(0, "Alpha S01E01"),
            make_channel(1, "Beta 1x02"),
            make_channel(2, "Movie"),
            make_channel(3, "Alpha S02E01"),
        ]
        result = classify(channels)

        grouped = [ep.id for s in result.series for ep in all_episodes(s)]
        standalone = [ch.id for ch in result.standalone_channels]
        assert sorted(grouped + standalone) == sorted(ch.id for ch in channels)
        assert not set(grouped) & set(standalone)

    def test_key_ignores_case_and_diacritics_across_groups(self):
        result = classify([
            make_channel(0, "Pokémon S01E01", group="Anime"),
            make_channel(1, "POKEMON S01E02", group="Kids"),
        ])

        assert len(result.series) == 1
        series = result.series[0]
        assert series.name == "Pokémon"
        assert series.group == "Anime"
        assert series.id == "series-pokemon"

    def test_first_channel_sets_thumbnail_and_group(self):
        result = classify([
            make_channel(0, "Alpha S01E01", group="A", logo="http://example.com/first.png"),
            make_channel(1, "Alpha S01E02", group="B", logo="http://example.com/second.png"),
        ])

        series = result.series[0]
        assert series.thumbnail == "http://example.com/first.png"
        assert series.group == "A"

    def test_explicit_season_episode_is_authoritative(self):
        result = classify([make_channel(0, "Alpha S01E01", season=3, episode=7)])

        episode = result.series[0].seasons[3].episodes[0]
        assert (episode.season, episode.episode) == (3, 7)

    def test_annotation_does_not_mutate_input(self):
        channel = make_channel(0, "Alpha S02E05")
        result = classify([channel])

        annotated = result.series[0].seasons[2].episodes[0]
        assert (annotated.season, annotated.episode) == (2, 5)
        assert channel.season is None and channel.episode is None
        assert annotated.id == channel.id
        assert annotated.url == channel.url

    def test_classification_is_idempotent(self):
        channels = [
            make_channel(0, "Beta 2x01"),
            make_channel(1, "Alpha S01E02"),
            make_channel(2, "Avatar", group="Movies"),
            make_channel(3, "Alpha S01E01"),
            make_channel(4, "Beta 1x01"),
            make_channel(5, "Alpha [L] S01E01"),
            make_channel(6, "Gamma Temporada 1 Episodio 3"),
        ]
        first = classify(channels)
        refed = [ep for s in first.series for ep in all_episodes(s)] + first.standalone_channels
        second = classify(refed)

        assert grouping_signature(second) == grouping_signature(first)

    def test_title_that_is_only_an_episode_marker_uses_group(self):
        result = classify([make_channel(0, "S01E01", group="Mystery Show")])
        assert result.series[0].name == "Mystery Show"


class TestBaseName:
    """Base-name derivation used as the grouping key."""

    @pytest.mark.parametrize("title, expected", [
        ("Alpha S01E01", "Alpha"),
        ("Alpha [L] S01E01", "Alpha"),
        ("The Office 2x05", "The Office"),
        ("Lost Season 1 Episode 4", "Lost"),
        ("Dark - S01E01", "Dark"),
        ("Narcos T01E02", "Narcos"),
        ("La Casa   Temporada 2 Episodio 3", "La Casa"),
        ("Chaves - Episodio 12", "Chaves"),
        ("Anime EP 3", "Anime"),
        ("Anime - E3", "Anime"),
    ])
    def test_extract_base_name(self, title, expected):
        assert extract_base_name(title) == expected

    def test_series_id_is_slug(self):
        assert series_id("the office: us") == "series-the-office-us"


class TestHelpers:
    """Series navigation and display helpers."""

    def test_first_episode(self):
        result = classify([
            make_channel(0, "Alpha S02E01"),
            make_channel(1, "Alpha S01E02"),
            make_channel(2, "Alpha S01E01"),
        ])
        assert first_episode(result.series[0]).id == "channel-2"

    def test_all_episodes_in_season_order(self):
        result = classify([
            make_channel(0, "Alpha S02E01"),
            make_channel(1, "Alpha S01E01"),
        ])
        assert [ep.id for ep in all_episodes(result.series[0])] == ["channel-1", "channel-0"]

    def test_display_name_strips_subtitle_tag(self):
        assert display_name("Alpha [L] S01E01") == "Alpha S01E01"
        assert is_subtitled("Alpha [L] S01E01")
        assert not is_subtitled("Alpha S01E01")

    def test_filter_by_audio(self):
        episodes = [make_channel(0, "Alpha [L] S01E01"), make_channel(1, "Alpha S01E01")]
        assert [ep.id for ep in filter_by_audio(episodes, "subbed")] == ["channel-0"]
        assert [ep.id for ep in filter_by_audio(episodes, "dubbed")] == ["channel-1"]
        with pytest.raises(ValueError):
            filter_by_audio(episodes, "original")
