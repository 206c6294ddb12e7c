"""
Catalog search API endpoint.
"""
from fastapi import APIRouter, Header, Query
from typing import Optional

from iptv_catalog.config import get_settings
from iptv_catalog.services.catalog_store import ALL_CATEGORIES
from iptv_catalog.services.search import get_search_engine

router = APIRouter(prefix="/api", tags=["search"])


@router.get("/search")
async def search_channels(
    q: str = Query("", description="Search terms"),
    category: str = Query(ALL_CATEGORIES, description="Category name, or 'all'"),
    page: int = Query(0, description="Zero-based page number"),
    page_size: Optional[int] = Query(None, description="Results per page"),
    x_tenant_id: Optional[str] = Header(None, description="Catalog owner"),
):
    """Relevance-ranked search over channel names."""
    engine = await get_search_engine()
    result = await engine.search(
        x_tenant_id,
        q,
        category=category,
        page=page,
        page_size=page_size if page_size is not None else get_settings().default_page_size,
    )
    return result.model_dump()
