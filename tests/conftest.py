"""
Pytest configuration and fixtures for catalog tests.
"""
import pytest

from iptv_catalog.services.catalog_store import CatalogStore
from iptv_catalog.services.search_cache import SearchCache


@pytest.fixture
def sample_m3u_content():
    """Sample playlist mixing series episodes, movies and live channels."""
    return """#EXTM3U
#EXTINF:-1 tvg-id="CNN.us" tvg-logo="http://example.com/cnn.png" group-title="News",CNN (1080p)
http://example.com/cnn.m3u8
#EXTINF:-1 tvg-logo="http://example.com/alpha.png" group-title="Series",Alpha S01E02
http://example.com/alpha-s01e02.mp4
#EXTINF:-1 group-title="Series",Alpha S01E01
"http://example.com/alpha-s01e01.mp4"
#EXTINF:-1 group-title="Movies",Zorro
http://example.com/zorro.mp4
#EXTINF:-1 group-title="Movies",Avatar
http://example.com/avatar.mp4
#EXTINF:-1,Channel Without Group
http://example.com/no-group.m3u8
"""


@pytest.fixture
def sample_m3u_file(sample_m3u_content, tmp_path):
    """Create a temporary M3U file for testing."""
    m3u_file = tmp_path / "playlist.m3u"
    m3u_file.write_text(sample_m3u_content)
    return m3u_file


@pytest.fixture
def store_factory(tmp_path):
    """Build an initialized store on a temporary database with its own cache."""
    async def _make(**kwargs) -> CatalogStore:
        kwargs.setdefault("search_cache", SearchCache(ttl_seconds=60, max_entries=20))
        store = CatalogStore(str(tmp_path / "catalog.db"), **kwargs)
        await store.initialize()
        return store
    return _make
