"""
In-memory search result cache with TTL-based invalidation.
One instance is owned by each catalog store and cleared per tenant on replace/delete.
"""
import logging
import time
from typing import Callable, Hashable, Optional

from iptv_catalog.models.channel import SearchResult

logger = logging.getLogger(__name__)


class SearchCache:
    """
    Bounded, time-boxed cache of search results keyed per tenant.

    Every invalidation bumps the tenant's generation. A search that started
    before the bump passes its generation to ``set`` and is not stored.
    """

    def __init__(
        self,
        ttl_seconds: float = 60,
        max_entries: int = 20,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[tuple, tuple[float, SearchResult]] = {}
        self._generations: dict[str, int] = {}
        self._epoch = 0

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def _generate_key(tenant_id: str, params: tuple[Hashable, ...]) -> tuple:
        return (tenant_id, *params)

    def generation(self, tenant_id: str) -> tuple[int, int]:
        """Token that changes whenever the tenant's results are invalidated."""
        return (self._epoch, self._generations.get(tenant_id, 0))

    def get(self, tenant_id: str, *params: Hashable) -> Optional[SearchResult]:
        """Get a copy of the cached result if not expired."""
        key = self._generate_key(tenant_id, params)
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, result = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return result.model_copy(deep=True)

    def set(
        self,
        tenant_id: str,
        *params: Hashable,
        value: SearchResult,
        generation: Optional[tuple[int, int]] = None,
    ) -> bool:
        """
        Store a result, evicting the oldest entry when full.

        Returns False without storing when ``generation`` is stale.
        """
        if generation is not None and generation != self.generation(tenant_id):
            logger.debug(f"Discarding search result computed before invalidation for tenant {tenant_id}")
            return False

        key = self._generate_key(tenant_id, params)
        if key not in self._entries and len(self._entries) >= self.max_entries:
            oldest_key = min(self._entries, key=lambda k: self._entries[k][0])
            del self._entries[oldest_key]
        self._entries[key] = (self._clock(), value.model_copy(deep=True))
        return True

    def invalidate(self, tenant_id: Optional[str] = None):
        """Drop cached results for one tenant, or for everyone."""
        if tenant_id is None:
            self._epoch += 1
            self._entries.clear()
            return
        self._generations[tenant_id] = self._generations.get(tenant_id, 0) + 1
        stale = [key for key in self._entries if key[0] == tenant_id]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cached searches for tenant {tenant_id}")
