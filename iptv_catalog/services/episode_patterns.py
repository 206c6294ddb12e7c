"""
Season/episode extraction rules.

Titles in IPTV playlists carry no structured episode metadata, so season and
episode numbers are recovered from free text. Rules are evaluated in order and
the first match that passes the bounds check wins; two-number forms are tried
before the single-number forms that assume season 1.
"""
import re
from dataclasses import dataclass
from typing import Optional

MIN_SEASON, MAX_SEASON = 1, 99
MIN_EPISODE, MAX_EPISODE = 1, 999

# Inline subtitle marker ("legendado"), kept in names for filtering
SUBTITLE_TAG_PATTERN = re.compile(r"\s*\[L\]\s*", re.IGNORECASE)


@dataclass(frozen=True)
class EpisodePattern:
    """One extraction rule; season_group is None when season 1 is implied."""
    name: str
    regex: re.Pattern
    season_group: Optional[int]
    episode_group: int

    def match(self, title: str) -> Optional[tuple[int, int]]:
        """Return (season, episode) if the rule matches within bounds."""
        match = self.regex.search(title)
        if not match:
            return None

        season = int(match.group(self.season_group)) if self.season_group else 1
        episode = int(match.group(self.episode_group))

        if not (MIN_SEASON <= season <= MAX_SEASON):
            return None
        if not (MIN_EPISODE <= episode <= MAX_EPISODE):
            return None
        return season, episode


def _rule(name: str, pattern: str, season_group: Optional[int], episode_group: int) -> EpisodePattern:
    return EpisodePattern(name, re.compile(pattern, re.IGNORECASE), season_group, episode_group)


EPISODE_PATTERNS: tuple[EpisodePattern, ...] = (
    # S01E01, S01 E01, S01.E01, S01 EP01
    _rule("season_episode", r"\bS(\d+)[\s._-]*EP?\s*(\d+)\b", 1, 2),
    # 1x01
    _rule("cross", r"\b(\d+)x(\d+)\b", 1, 2),
    # Season 1 Episode 1
    _rule("season_episode_words", r"\bSeason\s*(\d+)[\s,._-]*Episode\s*(\d+)\b", 1, 2),
    # T01E01
    _rule("temporada_short", r"\bT(\d+)[\s._-]*EP?\s*(\d+)\b", 1, 2),
    # Temporada 1 ... Episodio 1
    _rule("temporada_words", r"\bTemporada\s*(\d+).*?\bEpis[oó]dio\s*(\d+)\b", 1, 2),
    # Single-number forms, season 1 assumed
    _rule("episodio", r"\bEpis[oó]dio\s*(\d+)\b", None, 1),
    _rule("ep", r"\bEP\.?\s*(\d+)\b", None, 1),
    _rule("dash_episode", r"-\s*EP?\s*(\d+)\b", None, 1),
    _rule("bare_episode", r"\bE(\d+)\b", None, 1),
)


def extract_season_episode(
    title: str,
    patterns: tuple[EpisodePattern, ...] = EPISODE_PATTERNS,
) -> Optional[tuple[int, int]]:
    """
    Infer (season, episode) from a free-text title.

    Args:
        title: Channel name as found in the playlist
        patterns: Ordered rule table, first in-bounds match wins

    Returns:
        (season, episode) or None when no rule yields in-bounds numbers
    """
    for pattern in patterns:
        result = pattern.match(title)
        if result is not None:
            return result
    return None


def strip_episode_tokens(title: str, patterns: tuple[EpisodePattern, ...] = EPISODE_PATTERNS) -> str:
    """Remove the subtitle tag and every span any rule recognizes."""
    text = SUBTITLE_TAG_PATTERN.sub(" ", title)
    for pattern in patterns:
        text = pattern.regex.sub(" ", text)
    return text
