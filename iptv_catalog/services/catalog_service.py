"""
Catalog ingestion and browsing service.
Ties the parser, store, fetcher and classifier together.
"""
import logging
from typing import Optional

from iptv_catalog.models.channel import GroupResult
from iptv_catalog.models.metadata import IngestResult
from iptv_catalog.services.catalog_store import ALL_CATEGORIES, CatalogStore, get_store
from iptv_catalog.services.m3u_parser import M3UParser
from iptv_catalog.services.playlist_fetcher import PlaylistFetcher
from iptv_catalog.services.series_classifier import classify

logger = logging.getLogger(__name__)


class CatalogService:
    """Ingest playlists into a tenant catalog and build browse views."""

    def __init__(
        self,
        store: CatalogStore,
        parser: Optional[M3UParser] = None,
        fetcher: Optional[PlaylistFetcher] = None,
    ):
        self.store = store
        self.parser = parser or M3UParser()
        self.fetcher = fetcher or PlaylistFetcher()

    async def ingest_text(self, tenant_id: str, content: str) -> IngestResult:
        """Parse playlist text and replace the tenant's catalog with it."""
        playlist = self.parser.parse(content, annotate_episodes=True)
        metadata = await self.store.replace_catalog(tenant_id, playlist.channels, playlist.categories)

        logger.info(
            f"Ingested playlist for tenant {tenant_id}: "
            f"{metadata.total_channels} channels, {len(playlist.categories)} categories"
        )
        return IngestResult(
            total_channels=metadata.total_channels,
            total_categories=len(playlist.categories),
            skipped=playlist.skipped,
        )

    async def ingest_url(self, tenant_id: str, url: str) -> IngestResult:
        """Fetch a remote playlist, then ingest it."""
        content = await self.fetcher.fetch(url)
        return await self.ingest_text(tenant_id, content)

    async def get_series_view(self, tenant_id: str, category: str = ALL_CATEGORIES) -> GroupResult:
        """Series/standalone grouping of the stored catalog."""
        channels = await self.store.get_all_channels(tenant_id, category)
        return classify(channels)


# Singleton instance
_catalog_service: Optional[CatalogService] = None


async def get_catalog_service() -> CatalogService:
    """Get or create catalog service singleton."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService(await get_store())
    return _catalog_service


def reset_catalog_service():
    global _catalog_service
    _catalog_service = None
