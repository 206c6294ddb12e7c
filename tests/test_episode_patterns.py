"""
Tests for season/episode extraction rules.
"""
import pytest

from iptv_catalog.services.episode_patterns import (
    EPISODE_PATTERNS,
    extract_season_episode,
    strip_episode_tokens,
)


@pytest.mark.parametrize("title", [
    "Show S02E05",
    "Show 2x05",
    "Show Season 2 Episode 5",
    "Show T02E05",
])
def test_equivalent_forms_resolve_to_same_episode(title):
    assert extract_season_episode(title) == (2, 5)


@pytest.mark.parametrize("title, expected", [
    ("Show S1E1", (1, 1)),
    ("Show S01 E03", (1, 3)),
    ("Show.S03.E10.720p", (3, 10)),
    ("Show S02 EP07", (2, 7)),
    ("Show 10x100", (10, 100)),
    ("Show Temporada 3 Episodio 4", (3, 4)),
    ("Show Temporada 3 - Episódio 12", (3, 12)),
    ("Show Episodio 7", (1, 7)),
    ("Show EP 8", (1, 8)),
    ("Show - E9", (1, 9)),
    ("Show E12", (1, 12)),
])
def test_supported_forms(title, expected):
    assert extract_season_episode(title) == expected


@pytest.mark.parametrize("title", [
    "Show S200E5",
    "Show S00E05",
    "Show S01E0",
    "Show S01E1000",
    "1920x1080 Demo Reel",
])
def test_out_of_bounds_matches_are_rejected(title):
    assert extract_season_episode(title) is None


def test_out_of_bounds_falls_through_to_next_rule():
    # S120E01 is rejected, the later "Episode" words rule still applies
    assert extract_season_episode("Show S120E01 Season 2 Episode 3") == (2, 3)


@pytest.mark.parametrize("title", [
    "Avatar",
    "CNN (1080p)",
    "Rocky 4",
    "Epic Movie",
    "Step Up",
])
def test_non_episodic_titles(title):
    assert extract_season_episode(title) is None


@pytest.mark.parametrize("title", [
    "Top 10 x 20 Countdown",
    "Show 2 x 05",
])
def test_cross_form_requires_adjacent_x(title):
    assert extract_season_episode(title) is None


def test_two_number_forms_win_over_single_number_forms():
    assert extract_season_episode("Show S02E05 EP9") == (2, 5)


def test_rule_order_is_data_driven():
    names = [pattern.name for pattern in EPISODE_PATTERNS]
    assert names.index("season_episode") < names.index("bare_episode")
    assert names.index("temporada_words") < names.index("episodio")

    # Rules can be evaluated individually
    single = next(p for p in EPISODE_PATTERNS if p.name == "cross")
    assert single.match("Show 3x04") == (3, 4)
    assert single.match("Show S03E04") is None


def test_custom_rule_table():
    only_bare = tuple(p for p in EPISODE_PATTERNS if p.name == "bare_episode")
    assert extract_season_episode("Show S02E05", patterns=only_bare) is None
    assert extract_season_episode("Show E05", patterns=only_bare) == (1, 5)


def test_strip_episode_tokens_removes_tags_and_markers():
    assert strip_episode_tokens("Alpha [L] S01E02").split() == ["Alpha"]
    assert strip_episode_tokens("Beta Temporada 1 Episodio 2").split() == ["Beta"]
