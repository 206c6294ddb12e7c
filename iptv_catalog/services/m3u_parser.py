"""
M3U Parser Service.
Parses extended-M3U playlist text into channel records and a category set.
"""
import re
from pathlib import Path
from typing import Optional
import logging

from iptv_catalog.config import get_settings
from iptv_catalog.errors import EmptyPlaylistError, ParseError
from iptv_catalog.models.channel import Channel, ParsedPlaylist
from iptv_catalog.services.series_classifier import annotate

logger = logging.getLogger(__name__)

HEADER = "#EXTM3U"
DIRECTIVE = "#EXTINF:"
GROUP_DIRECTIVE = "#EXTGRP:"

# Regex to parse EXTINF line; attribute values may contain commas
EXTINF_PATTERN = re.compile(
    r'#EXTINF:\s*(?:-?\d+(?:\.\d+)?)?\s*((?:[^,"]|"[^"]*")*),(.*)$'
)
ATTRIBUTE_PATTERN = re.compile(r'([A-Za-z0-9\-_]+)\s*=\s*"([^"]*)"')


def clean_value(value: Optional[str]) -> str:
    """Trim and remove quotes."""
    return (value or "").replace('"', "").strip()


def sort_channels(channels: list[Channel]) -> list[Channel]:
    """Episodic channels first by (season, episode); the rest alphabetically."""
    return sorted(
        channels,
        key=lambda ch: (0, ch.season, ch.episode, "") if ch.is_episodic else (1, 0, 0, ch.name.casefold()),
    )


class M3UParser:
    """Parse extended-M3U playlist text."""

    def __init__(self, uncategorized_label: Optional[str] = None):
        self.uncategorized_label = uncategorized_label or get_settings().uncategorized_label

    def parse(self, content: str, annotate_episodes: bool = False) -> ParsedPlaylist:
        """
        Parse playlist text into channels and categories.

        Args:
            content: Decoded playlist text
            annotate_episodes: Attach inferred season/episode to each channel

        Returns:
            Parsed channels (sorted) and the unique category set

        Raises:
            ParseError: content has no M3U structure at all
            EmptyPlaylistError: structure is valid but nothing is usable
        """
        if "\x00" in content:
            raise ParseError("Playlist contains binary data")

        lines = content.splitlines()
        has_header = any(line.strip().upper().startswith(HEADER) for line in lines[:5])
        has_directives = any(line.lstrip().startswith(DIRECTIVE) for line in lines)

        if not content.strip():
            raise EmptyPlaylistError("Playlist is empty")
        if not has_header and not has_directives:
            raise ParseError("No M3U header or EXTINF directives found")

        channels: list[Channel] = []
        categories: set[str] = set()
        skipped = 0
        current_info = None

        for line_no, raw_line in enumerate(lines, start=1):
            line = raw_line.strip()
            if not line:
                continue

            if line.startswith(DIRECTIVE):
                if current_info is not None:
                    logger.warning(f"Directive without URI ignored: {current_info['name']!r} (line {current_info['line']})")
                    skipped += 1
                current_info = self._parse_directive(line, line_no)
                continue

            if line.startswith(GROUP_DIRECTIVE):
                if current_info is not None and not current_info["group"]:
                    current_info["group"] = clean_value(line[len(GROUP_DIRECTIVE):])
                continue

            if line.startswith("#"):
                # Header, comments and player options (#EXTVLCOPT etc.)
                continue

            if current_info is None:
                logger.debug(f"Stray line without directive ignored (line {line_no})")
                continue

            url = clean_value(line)
            if not url:
                logger.warning(f"Empty URI for {current_info['name']!r} (line {line_no})")
                skipped += 1
                current_info = None
                continue

            index = len(channels)
            group = current_info["group"] or self.uncategorized_label
            categories.add(group)

            channel = Channel(
                id=f"channel-{index}",
                name=current_info["name"] or current_info["tvg_name"] or f"Channel {index + 1}",
                url=url,
                logo=current_info["logo"] or None,
                group=group,
                epg=current_info["tvg_id"] or None,
            )
            if annotate_episodes:
                channel = annotate(channel)
            channels.append(channel)
            current_info = None

        if current_info is not None:
            logger.warning(f"Directive without URI ignored: {current_info['name']!r} (line {current_info['line']})")
            skipped += 1

        if not channels:
            raise EmptyPlaylistError(f"Playlist has no usable entries ({skipped} skipped)")

        logger.info(f"Parsed {len(channels)} channels in {len(categories)} categories ({skipped} skipped)")

        return ParsedPlaylist(
            channels=sort_channels(channels),
            categories=sorted(categories),
            skipped=skipped,
        )

    def parse_file(self, filepath: str | Path, annotate_episodes: bool = False) -> ParsedPlaylist:
        """Parse a local M3U file."""
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"M3U file not found: {filepath}")

        logger.info(f"Parsing M3U file: {filepath}")
        content = filepath.read_text(encoding="utf-8", errors="ignore")
        return self.parse(content, annotate_episodes=annotate_episodes)

    def _parse_directive(self, line: str, line_no: int) -> dict:
        """Extract attributes and title from an EXTINF line."""
        match = EXTINF_PATTERN.match(line)
        if match:
            attr_str, title = match.group(1), match.group(2)
        else:
            # No comma separator: treat the remainder as attributes only
            attr_str, title = line[len(DIRECTIVE):], ""

        attrs = {key.lower(): value for key, value in ATTRIBUTE_PATTERN.findall(attr_str)}

        return {
            "line": line_no,
            "name": clean_value(title),
            "tvg_name": clean_value(attrs.get("tvg-name")),
            "tvg_id": clean_value(attrs.get("tvg-id")),
            "logo": clean_value(attrs.get("tvg-logo")),
            "group": clean_value(attrs.get("group-title")),
        }
