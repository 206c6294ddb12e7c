"""
Remote playlist fetching.
Downloads M3U text over HTTP with a bounded timeout.
"""
import httpx
import logging
from typing import Optional
from urllib.parse import urlparse

from iptv_catalog.config import get_settings
from iptv_catalog.errors import PlaylistFetchError, PlaylistFetchTimeout, ValidationError

logger = logging.getLogger(__name__)


class PlaylistFetcher:
    """Fetch playlist text from a URL."""

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.timeout_seconds = timeout_seconds or settings.fetch_timeout_seconds
        self.user_agent = user_agent or settings.fetch_user_agent
        self._transport = transport

    async def fetch(self, url: str) -> str:
        """
        Download a playlist and return its decoded text.

        Raises:
            ValidationError: URL is not http(s)
            PlaylistFetchTimeout: the server did not answer in time
            PlaylistFetchError: transport or HTTP status failure
        """
        parsed = urlparse(url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError(f"Invalid playlist URL: {url!r}")

        logger.info(f"Fetching playlist from {url}")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error(f"Timed out fetching {url} after {self.timeout_seconds}s")
            raise PlaylistFetchTimeout(f"Timed out after {self.timeout_seconds}s fetching playlist") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"Failed to fetch {url}: HTTP {e.response.status_code}")
            raise PlaylistFetchError(f"Playlist server returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch {url}: {e}")
            raise PlaylistFetchError(f"Failed to fetch playlist: {e}") from e

        logger.info(f"Fetched {len(response.content)} bytes from {url}")
        return response.text
