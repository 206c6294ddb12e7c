"""
Catalog ingestion and browsing API endpoints.
"""
from fastapi import APIRouter, Header, Query
from pydantic import BaseModel
from typing import Optional

from iptv_catalog.config import get_settings
from iptv_catalog.models.metadata import CatalogStatus
from iptv_catalog.services.catalog_service import get_catalog_service
from iptv_catalog.services.catalog_store import ALL_CATEGORIES, get_store

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


class PlaylistUpload(BaseModel):
    content: str


class PlaylistFetchRequest(BaseModel):
    url: str


@router.post("/playlist")
async def upload_playlist(
    request: PlaylistUpload,
    x_tenant_id: Optional[str] = Header(None, description="Catalog owner"),
):
    """Replace the catalog with an uploaded playlist."""
    service = await get_catalog_service()
    result = await service.ingest_text(x_tenant_id, request.content)
    return {"success": True, **result.model_dump()}


@router.post("/fetch")
async def fetch_playlist(
    request: PlaylistFetchRequest,
    x_tenant_id: Optional[str] = Header(None, description="Catalog owner"),
):
    """Download a playlist from a URL and replace the catalog with it."""
    service = await get_catalog_service()
    result = await service.ingest_url(x_tenant_id, request.url)
    return {"success": True, **result.model_dump()}


@router.get("/categories")
async def list_categories(
    x_tenant_id: Optional[str] = Header(None, description="Catalog owner"),
):
    """List catalog categories, alphabetically."""
    store = await get_store()
    categories = await store.get_categories(x_tenant_id)
    return {"categories": categories}


@router.get("/channels")
async def list_channels(
    category: str = Query(ALL_CATEGORIES, description="Category name, or 'all'"),
    page: int = Query(0, description="Zero-based page number"),
    page_size: Optional[int] = Query(None, description="Results per page"),
    x_tenant_id: Optional[str] = Header(None, description="Catalog owner"),
):
    """
    List channels with category filter and pagination.

    - **category**: Category name from /api/catalog/categories, or "all"
    - **page**: Zero-based page number
    - **page_size**: Results per page
    """
    store = await get_store()
    result = await store.get_channels_page(
        x_tenant_id,
        category=category,
        page=page,
        page_size=page_size if page_size is not None else get_settings().default_page_size,
    )
    return result.model_dump()


@router.get("/status")
async def catalog_status(
    x_tenant_id: Optional[str] = Header(None, description="Catalog owner"),
):
    """Whether a catalog exists, with its metadata."""
    store = await get_store()
    has_catalog = await store.has_catalog(x_tenant_id)
    metadata = await store.get_metadata(x_tenant_id)
    return CatalogStatus(has_catalog=has_catalog, metadata=metadata).model_dump()


@router.get("/series")
async def list_series(
    category: str = Query(ALL_CATEGORIES, description="Category name, or 'all'"),
    x_tenant_id: Optional[str] = Header(None, description="Catalog owner"),
):
    """Catalog grouped into series and standalone channels."""
    service = await get_catalog_service()
    result = await service.get_series_view(x_tenant_id, category)
    return result.model_dump()


@router.delete("")
async def delete_catalog(
    x_tenant_id: Optional[str] = Header(None, description="Catalog owner"),
):
    """Delete the catalog, its metadata and cached searches."""
    store = await get_store()
    await store.delete_all(x_tenant_id)
    return {"success": True}
