"""
Series Classifier Service.
Groups episodic channels into series/seasons and separates standalone entries.
"""
import logging
import re
from typing import Iterable, Optional

from iptv_catalog.models.channel import Channel, GroupResult, Season, Series
from iptv_catalog.services.episode_patterns import (
    SUBTITLE_TAG_PATTERN,
    extract_season_episode,
    strip_episode_tokens,
)
from iptv_catalog.services.text import collapse_whitespace, normalize_text

logger = logging.getLogger(__name__)

SEPARATOR_CHARS = " -_.:|"
SERIES_ID_PATTERN = re.compile(r"[^a-z0-9]+")


def resolve_season_episode(channel: Channel) -> Optional[tuple[int, int]]:
    """Explicit season/episode wins; otherwise infer from the name."""
    if channel.is_episodic:
        return channel.season, channel.episode
    return extract_season_episode(channel.name)


def extract_base_name(name: str) -> str:
    """Title with subtitle tag and season/episode tokens removed."""
    return collapse_whitespace(strip_episode_tokens(name)).strip(SEPARATOR_CHARS)


def series_key(base_name: str) -> str:
    return normalize_text(base_name)


def series_id(key: str) -> str:
    return "series-" + SERIES_ID_PATTERN.sub("-", key).strip("-")


def annotate(channel: Channel) -> Channel:
    """Copy of the channel carrying inferred season/episode, if any."""
    if channel.is_episodic:
        return channel
    result = extract_season_episode(channel.name)
    if result is None:
        return channel
    season, episode = result
    return channel.model_copy(update={"season": season, "episode": episode})


def classify(channels: Iterable[Channel]) -> GroupResult:
    """
    Fold channels into series keyed by normalized base name.

    Args:
        channels: Channels in discovery order

    Returns:
        Series (first-occurrence order) and standalone channels
    """
    series_map: dict[str, Series] = {}
    standalone: list[Channel] = []

    for channel in channels:
        resolved = resolve_season_episode(channel)
        if resolved is None:
            standalone.append(channel)
            continue

        season_number, episode_number = resolved
        base_name = extract_base_name(channel.name) or channel.group
        key = series_key(base_name)

        series = series_map.get(key)
        if series is None:
            series = Series(
                id=series_id(key),
                name=base_name,
                group=channel.group,
                thumbnail=channel.logo,
            )
            series_map[key] = series

        season = series.seasons.get(season_number)
        if season is None:
            season = Season(number=season_number)
            series.seasons[season_number] = season

        if channel.is_episodic:
            season.episodes.append(channel)
        else:
            season.episodes.append(
                channel.model_copy(update={"season": season_number, "episode": episode_number})
            )

    for series in series_map.values():
        for season in series.seasons.values():
            # list.sort is stable: equal episode numbers keep discovery order
            season.episodes.sort(key=lambda ep: ep.episode)
        series.seasons = dict(sorted(series.seasons.items()))

    logger.debug(f"Classified {len(series_map)} series, {len(standalone)} standalone channels")

    return GroupResult(series=list(series_map.values()), standalone_channels=standalone)


def all_episodes(series: Series) -> list[Channel]:
    """Every episode of a series, season by season."""
    return [episode for season in series.seasons.values() for episode in season.episodes]


def first_episode(series: Series) -> Optional[Channel]:
    """First episode of the lowest-numbered season."""
    if not series.seasons:
        return None
    first_season = series.seasons[min(series.seasons)]
    if not first_season.episodes:
        return None
    return first_season.episodes[0]


def is_subtitled(name: str) -> bool:
    return SUBTITLE_TAG_PATTERN.search(name) is not None


def display_name(name: str) -> str:
    """Name with inline tags removed, for rendering."""
    return collapse_whitespace(SUBTITLE_TAG_PATTERN.sub(" ", name))


def filter_by_audio(episodes: Iterable[Channel], audio: str) -> list[Channel]:
    """Keep "subbed" (tagged [L]) or "dubbed" (untagged) episodes."""
    if audio == "subbed":
        return [ep for ep in episodes if is_subtitled(ep.name)]
    if audio == "dubbed":
        return [ep for ep in episodes if not is_subtitled(ep.name)]
    raise ValueError(f"Unknown audio filter: {audio}")
