"""
Error taxonomy for the catalog core.
"""


class CatalogError(Exception):
    """Base class for all catalog errors."""


class ParseError(CatalogError):
    """Input has no recognizable M3U directive/URI structure at all."""


class EmptyPlaylistError(CatalogError):
    """Playlist is structurally valid but yields zero usable entries."""


class ValidationError(CatalogError):
    """Missing tenant scope or malformed request parameters."""


class StoreError(CatalogError):
    """A persistence operation failed."""


class SearchError(CatalogError):
    """Candidate retrieval failed while serving a search."""


class PlaylistFetchError(CatalogError):
    """A remote playlist could not be downloaded."""


class PlaylistFetchTimeout(PlaylistFetchError):
    """A remote playlist download exceeded its timeout."""
