"""
Tests for playlist ingestion and the series view.
"""
import httpx
import pytest

from iptv_catalog.errors import EmptyPlaylistError
from iptv_catalog.services.catalog_service import CatalogService
from iptv_catalog.services.playlist_fetcher import PlaylistFetcher


class TestCatalogService:
    """Parse -> store -> classify flow."""

    @pytest.mark.asyncio
    async def test_ingest_text_replaces_catalog(self, store_factory, sample_m3u_content):
        store = await store_factory()
        service = CatalogService(store)

        result = await service.ingest_text("tenant-a", sample_m3u_content)

        assert result.total_channels == 6
        assert result.total_categories == 4
        assert await store.get_categories("tenant-a") == ["Movies", "News", "Series", "Uncategorized"]

        page = await store.get_channels_page("tenant-a", "all", 0, 20)
        # Episodes are annotated at ingestion and listed first
        assert [(ch.season, ch.episode) for ch in page.channels[:2]] == [(1, 1), (1, 2)]

    @pytest.mark.asyncio
    async def test_empty_playlist_keeps_existing_catalog(self, store_factory, sample_m3u_content):
        store = await store_factory()
        service = CatalogService(store)
        await service.ingest_text("tenant-a", sample_m3u_content)

        with pytest.raises(EmptyPlaylistError):
            await service.ingest_text("tenant-a", "#EXTM3U\n")

        assert (await store.get_metadata("tenant-a")).total_channels == 6

    @pytest.mark.asyncio
    async def test_series_view(self, store_factory, sample_m3u_content):
        store = await store_factory()
        service = CatalogService(store)
        await service.ingest_text("tenant-a", sample_m3u_content)

        view = await service.get_series_view("tenant-a")

        assert [s.name for s in view.series] == ["Alpha"]
        assert [ep.episode for ep in view.series[0].seasons[1].episodes] == [1, 2]
        assert view.series[0].thumbnail is None  # first episode (E01) has no logo
        assert len(view.standalone_channels) == 4

    @pytest.mark.asyncio
    async def test_series_view_by_category(self, store_factory, sample_m3u_content):
        store = await store_factory()
        service = CatalogService(store)
        await service.ingest_text("tenant-a", sample_m3u_content)

        view = await service.get_series_view("tenant-a", "Movies")

        assert view.series == []
        assert sorted(ch.name for ch in view.standalone_channels) == ["Avatar", "Zorro"]

    @pytest.mark.asyncio
    async def test_ingest_url(self, store_factory, sample_m3u_content):
        store = await store_factory()
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text=sample_m3u_content))
        service = CatalogService(store, fetcher=PlaylistFetcher(transport=transport))

        result = await service.ingest_url("tenant-a", "https://example.com/list.m3u")

        assert result.total_channels == 6
        assert await store.has_catalog("tenant-a")
