"""
Metadata models for per-tenant catalog bookkeeping.
"""
from pydantic import BaseModel
from typing import Optional


# Keys of the metadata table
TOTAL_CHANNELS_KEY = "total_channels"
LAST_UPDATED_KEY = "last_updated"


class CatalogMetadata(BaseModel):
    """Summary recorded after each successful catalog replace."""
    total_channels: int = 0
    last_updated: Optional[str] = None  # ISO-8601 UTC


class CatalogStatus(BaseModel):
    """Whether a tenant has a catalog, with its metadata."""
    has_catalog: bool
    metadata: Optional[CatalogMetadata] = None


class IngestResult(BaseModel):
    """Stats returned after a playlist ingestion."""
    total_channels: int
    total_categories: int
    skipped: int = 0
