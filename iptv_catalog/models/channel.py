"""
Channel, Series and Season data models.
Series and Season are derived views; only Channel is persisted.
"""
from pydantic import BaseModel, Field
from typing import Optional


class Channel(BaseModel):
    """Playlist entry as parsed from an EXTINF/URI pair."""
    id: str
    name: str
    url: str
    logo: Optional[str] = None
    group: str
    epg: Optional[str] = None
    season: Optional[int] = None
    episode: Optional[int] = None

    @property
    def is_episodic(self) -> bool:
        return self.season is not None and self.episode is not None


class Season(BaseModel):
    """Episodes of one season, ordered by episode number."""
    number: int
    episodes: list[Channel] = Field(default_factory=list)


class Series(BaseModel):
    """Episodes grouped under a normalized base title."""
    id: str
    name: str
    group: str
    thumbnail: Optional[str] = None
    seasons: dict[int, Season] = Field(default_factory=dict)


# Result envelopes
class ParsedPlaylist(BaseModel):
    """Output of the M3U parser."""
    channels: list[Channel]
    categories: list[str]
    skipped: int = 0  # directives dropped for lack of a URI


class GroupResult(BaseModel):
    """Output of series classification."""
    series: list[Series]
    standalone_channels: list[Channel]


class PageResult(BaseModel):
    """Paginated channel listing."""
    channels: list[Channel]
    total: int
    has_more: bool


class SearchResult(PageResult):
    """Ranked, paginated search hits."""
