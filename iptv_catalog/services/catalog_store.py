"""
SQLite-based catalog store for parsed playlists.
Tenant-scoped, written in batches and published by an atomic version swap.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Iterable, Optional

import aiosqlite

from iptv_catalog.config import get_settings
from iptv_catalog.errors import StoreError, ValidationError
from iptv_catalog.models.channel import Channel, PageResult
from iptv_catalog.models.metadata import CatalogMetadata, LAST_UPDATED_KEY, TOTAL_CHANNELS_KEY
from iptv_catalog.services.search_cache import SearchCache
from iptv_catalog.services.text import normalize_text

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"
CHANNEL_COLUMNS = "id, name, url, logo, grp, epg, season, episode"


def validate_tenant(tenant_id: Optional[str]) -> str:
    if not tenant_id or not str(tenant_id).strip():
        raise ValidationError("Tenant ID is required")
    return str(tenant_id).strip()


def validate_page(page: int, page_size: int, max_page_size: int):
    if page < 0:
        raise ValidationError(f"page must be >= 0, got {page}")
    if page_size < 1 or page_size > max_page_size:
        raise ValidationError(f"page_size must be between 1 and {max_page_size}, got {page_size}")


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_channel(row: aiosqlite.Row) -> Channel:
    return Channel(
        id=row["id"],
        name=row["name"],
        url=row["url"],
        logo=row["logo"],
        group=row["grp"],
        epg=row["epg"],
        season=row["season"],
        episode=row["episode"],
    )


class CatalogStore:
    """Async SQLite store for tenant channel catalogs."""

    def __init__(
        self,
        db_path: Optional[str] = None,
        search_cache: Optional[SearchCache] = None,
        batch_size: Optional[int] = None,
    ):
        settings = get_settings()
        self.db_path = db_path or settings.database_path
        self.batch_size = batch_size or settings.store_batch_size
        self.max_page_size = settings.max_page_size
        if search_cache is None:
            search_cache = SearchCache(
                ttl_seconds=settings.search_cache_ttl_seconds,
                max_entries=settings.search_cache_max_entries,
            )
        self.search_cache = search_cache
        # One lock per tenant, kept for the life of the store
        self._tenant_locks: dict[str, asyncio.Lock] = {}
        self._ensure_directory()

    def _ensure_directory(self):
        """Create data directory if it doesn't exist."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    async def initialize(self):
        """Create database tables if they don't exist."""
        async with aiosqlite.connect(self.db_path) as db:
            # WAL lets readers keep a snapshot while a replace is writing
            await db.execute("PRAGMA journal_mode=WAL")

            # Active catalog version per tenant
            await db.execute("""
                CREATE TABLE IF NOT EXISTS catalogs (
                    tenant_id TEXT PRIMARY KEY,
                    active_version INTEGER NOT NULL
                )
            """)

            await db.execute("""
                CREATE TABLE IF NOT EXISTS channels (
                    tenant_id TEXT NOT NULL,
                    version INTEGER NOT NULL,
                    id TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    name_normalized TEXT NOT NULL,
                    url TEXT NOT NULL,
                    logo TEXT,
                    grp TEXT NOT NULL,
                    epg TEXT,
                    season INTEGER,
                    episode INTEGER,
                    PRIMARY KEY (tenant_id, version, id)
                )
            """)
            await db.execute(
                "CREATE INDEX IF NOT EXISTS idx_channels_position ON channels(tenant_id, version, position)"
            )
            await db.execute(
                "CREATE INDEX IF NOT EXISTS idx_channels_group ON channels(tenant_id, version, grp, position)"
            )

            await db.execute("""
                CREATE TABLE IF NOT EXISTS categories (
                    tenant_id TEXT NOT NULL,
                    version INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    PRIMARY KEY (tenant_id, version, name)
                )
            """)

            await db.execute("""
                CREATE TABLE IF NOT EXISTS metadata (
                    tenant_id TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    PRIMARY KEY (tenant_id, key)
                )
            """)

            await db.commit()

    def _lock_for(self, tenant_id: str) -> asyncio.Lock:
        return self._tenant_locks.setdefault(tenant_id, asyncio.Lock())

    @asynccontextmanager
    async def _snapshot(self) -> AsyncIterator[aiosqlite.Connection]:
        """Read-only connection inside one transaction (consistent view)."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("BEGIN")
                try:
                    yield db
                finally:
                    await db.rollback()
        except aiosqlite.Error as e:
            logger.error(f"Catalog read failed: {e}")
            raise StoreError(f"Catalog read failed: {e}") from e

    @staticmethod
    async def _active_version(db: aiosqlite.Connection, tenant_id: str) -> Optional[int]:
        cursor = await db.execute(
            "SELECT active_version FROM catalogs WHERE tenant_id = ?",
            (tenant_id,)
        )
        row = await cursor.fetchone()
        return row[0] if row else None

    # ==================== WRITES ====================

    async def replace_catalog(
        self,
        tenant_id: str,
        channels: list[Channel],
        categories: Iterable[str],
    ) -> CatalogMetadata:
        """
        Replace the tenant's catalog with a new channel/category set.

        Rows are staged under a new version and become visible in a single
        swap once every batch has been written. On failure the previous
        catalog stays visible and the staged rows are purged by the next call.

        Raises:
            StoreError: a batch (or the swap) failed; retry the whole replace
        """
        tenant_id = validate_tenant(tenant_id)
        category_set = sorted(set(categories))

        async with self._lock_for(tenant_id):
            total_batches = (len(channels) + self.batch_size - 1) // self.batch_size
            logger.info(
                f"Replacing catalog for tenant {tenant_id}: "
                f"{len(channels)} channels, {len(category_set)} categories, {total_batches} batches"
            )

            try:
                version = await self._begin_staging(tenant_id)
                await self._write_categories(tenant_id, version, category_set)
            except aiosqlite.Error as e:
                logger.error(f"Failed to stage catalog for tenant {tenant_id}: {e}")
                raise StoreError(f"Failed to stage catalog: {e}") from e

            for batch_no, start in enumerate(range(0, len(channels), self.batch_size), start=1):
                batch = channels[start:start + self.batch_size]
                try:
                    await self._write_channel_batch(tenant_id, version, start, batch)
                except aiosqlite.Error as e:
                    logger.error(
                        f"Batch {batch_no}/{total_batches} failed for tenant {tenant_id}: {e}"
                    )
                    raise StoreError(
                        f"Batch {batch_no} of {total_batches} failed; retry the full replace"
                    ) from e
                logger.info(f"Stored batch {batch_no}/{total_batches} ({len(batch)} channels)")

            try:
                metadata = await self._activate_version(tenant_id, version)
            except aiosqlite.Error as e:
                logger.error(f"Failed to publish catalog for tenant {tenant_id}: {e}")
                raise StoreError(f"Failed to publish catalog: {e}") from e

            self.search_cache.invalidate(tenant_id)
            logger.info(f"Catalog for tenant {tenant_id} now has {metadata.total_channels} channels")
            return metadata

    async def _begin_staging(self, tenant_id: str) -> int:
        """Purge leftovers of a failed replace and pick the next version."""
        async with aiosqlite.connect(self.db_path) as db:
            active = await self._active_version(db, tenant_id) or 0
            await db.execute(
                "DELETE FROM channels WHERE tenant_id = ? AND version != ?",
                (tenant_id, active)
            )
            await db.execute(
                "DELETE FROM categories WHERE tenant_id = ? AND version != ?",
                (tenant_id, active)
            )
            await db.commit()
            return active + 1

    async def _write_categories(self, tenant_id: str, version: int, categories: list[str]):
        async with aiosqlite.connect(self.db_path) as db:
            await db.executemany(
                "INSERT OR IGNORE INTO categories (tenant_id, version, name) VALUES (?, ?, ?)",
                [(tenant_id, version, name) for name in categories]
            )
            await db.commit()

    async def _write_channel_batch(
        self,
        tenant_id: str,
        version: int,
        offset: int,
        batch: list[Channel],
    ):
        """Insert one batch; duplicate ids are skipped (first write wins)."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.executemany(
                """INSERT OR IGNORE INTO channels
                   (tenant_id, version, id, position, name, name_normalized,
                    url, logo, grp, epg, season, episode)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        tenant_id,
                        version,
                        ch.id,
                        offset + i,
                        ch.name,
                        normalize_text(ch.name),
                        ch.url,
                        ch.logo,
                        ch.group,
                        ch.epg,
                        ch.season,
                        ch.episode,
                    )
                    for i, ch in enumerate(batch)
                ]
            )
            await db.commit()

    async def _activate_version(self, tenant_id: str, version: int) -> CatalogMetadata:
        """Swap the tenant to the staged version and record metadata."""
        now = datetime.now(timezone.utc).isoformat()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "INSERT OR REPLACE INTO catalogs (tenant_id, active_version) VALUES (?, ?)",
                (tenant_id, version)
            )
            await db.execute(
                "DELETE FROM channels WHERE tenant_id = ? AND version != ?",
                (tenant_id, version)
            )
            await db.execute(
                "DELETE FROM categories WHERE tenant_id = ? AND version != ?",
                (tenant_id, version)
            )
            cursor = await db.execute(
                "SELECT COUNT(*) FROM channels WHERE tenant_id = ? AND version = ?",
                (tenant_id, version)
            )
            total = (await cursor.fetchone())[0]

            await db.executemany(
                "INSERT OR REPLACE INTO metadata (tenant_id, key, value) VALUES (?, ?, ?)",
                [
                    (tenant_id, TOTAL_CHANNELS_KEY, str(total)),
                    (tenant_id, LAST_UPDATED_KEY, now),
                ]
            )
            await db.commit()

        return CatalogMetadata(total_channels=total, last_updated=now)

    async def delete_all(self, tenant_id: str):
        """Remove every trace of the tenant's catalog. No-op if none exists."""
        tenant_id = validate_tenant(tenant_id)
        async with self._lock_for(tenant_id):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    for table in ("channels", "categories", "metadata", "catalogs"):
                        await db.execute(f"DELETE FROM {table} WHERE tenant_id = ?", (tenant_id,))
                    await db.commit()
            except aiosqlite.Error as e:
                logger.error(f"Failed to delete catalog for tenant {tenant_id}: {e}")
                raise StoreError(f"Failed to delete catalog: {e}") from e

            self.search_cache.invalidate(tenant_id)
            logger.info(f"Deleted catalog for tenant {tenant_id}")

    # ==================== READS ====================

    @staticmethod
    def _filter(tenant_id: str, version: int, category: str) -> tuple[list[str], list]:
        conditions = ["tenant_id = ?", "version = ?"]
        params: list = [tenant_id, version]
        if category and category != ALL_CATEGORIES:
            conditions.append("grp = ?")
            params.append(category)
        return conditions, params

    async def get_categories(self, tenant_id: str) -> list[str]:
        """Category names, alphabetical."""
        tenant_id = validate_tenant(tenant_id)
        async with self._snapshot() as db:
            version = await self._active_version(db, tenant_id)
            if version is None:
                return []
            cursor = await db.execute(
                "SELECT name FROM categories WHERE tenant_id = ? AND version = ? ORDER BY name COLLATE NOCASE, name",
                (tenant_id, version)
            )
            rows = await cursor.fetchall()
            return [row["name"] for row in rows]

    async def get_channels_page(
        self,
        tenant_id: str,
        category: str = ALL_CATEGORIES,
        page: int = 0,
        page_size: int = 20,
    ) -> PageResult:
        """Channels of one category ("all" for none), in catalog order."""
        tenant_id = validate_tenant(tenant_id)
        validate_page(page, page_size, self.max_page_size)

        async with self._snapshot() as db:
            version = await self._active_version(db, tenant_id)
            if version is None:
                return PageResult(channels=[], total=0, has_more=False)

            conditions, params = self._filter(tenant_id, version, category)
            where_clause = " AND ".join(conditions)

            count_cursor = await db.execute(
                f"SELECT COUNT(*) FROM channels WHERE {where_clause}",
                params
            )
            total = (await count_cursor.fetchone())[0]

            cursor = await db.execute(
                f"""SELECT {CHANNEL_COLUMNS} FROM channels
                    WHERE {where_clause}
                    ORDER BY position
                    LIMIT ? OFFSET ?""",
                params + [page_size, page * page_size]
            )
            rows = await cursor.fetchall()

        return PageResult(
            channels=[_row_to_channel(row) for row in rows],
            total=total,
            has_more=(page + 1) * page_size < total,
        )

    async def get_all_channels(self, tenant_id: str, category: str = ALL_CATEGORIES) -> list[Channel]:
        """Every channel of the active catalog, in catalog order."""
        return await self.find_candidates(tenant_id, [], category)

    async def find_candidates(
        self,
        tenant_id: str,
        fragments: list[str],
        category: str = ALL_CATEGORIES,
    ) -> list[Channel]:
        """Channels whose normalized name contains every fragment, in catalog order."""
        tenant_id = validate_tenant(tenant_id)
        async with self._snapshot() as db:
            version = await self._active_version(db, tenant_id)
            if version is None:
                return []

            conditions, params = self._filter(tenant_id, version, category)
            for fragment in fragments:
                conditions.append("name_normalized LIKE ? ESCAPE '\\'")
                params.append(f"%{escape_like(fragment)}%")

            cursor = await db.execute(
                f"""SELECT {CHANNEL_COLUMNS} FROM channels
                    WHERE {' AND '.join(conditions)}
                    ORDER BY position""",
                params
            )
            rows = await cursor.fetchall()

        return [_row_to_channel(row) for row in rows]

    async def has_catalog(self, tenant_id: str) -> bool:
        tenant_id = validate_tenant(tenant_id)
        async with self._snapshot() as db:
            version = await self._active_version(db, tenant_id)
            if version is None:
                return False
            cursor = await db.execute(
                "SELECT COUNT(*) FROM channels WHERE tenant_id = ? AND version = ?",
                (tenant_id, version)
            )
            return (await cursor.fetchone())[0] > 0

    async def get_metadata(self, tenant_id: str) -> Optional[CatalogMetadata]:
        """Metadata recorded by the last successful replace."""
        tenant_id = validate_tenant(tenant_id)
        async with self._snapshot() as db:
            cursor = await db.execute(
                "SELECT key, value FROM metadata WHERE tenant_id = ?",
                (tenant_id,)
            )
            values = {row["key"]: row["value"] for row in await cursor.fetchall()}

        if not values:
            return None
        return CatalogMetadata(
            total_channels=int(values.get(TOTAL_CHANNELS_KEY, 0)),
            last_updated=values.get(LAST_UPDATED_KEY),
        )


# Singleton instance
_catalog_store: Optional[CatalogStore] = None


async def get_store() -> CatalogStore:
    """Get or create catalog store singleton."""
    global _catalog_store
    if _catalog_store is None:
        _catalog_store = CatalogStore()
        await _catalog_store.initialize()
    return _catalog_store


def reset_store():
    """Drop the singleton (used by tests and configuration reloads)."""
    global _catalog_store
    _catalog_store = None
