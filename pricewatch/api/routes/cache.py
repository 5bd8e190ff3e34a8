"""
Routes for dataset cache management
"""
from fastapi import APIRouter, Depends

from ..dependencies import get_data_service
from ..models import CacheResponse, CacheStatusResponse

router = APIRouter(prefix="/api/v1/cache", tags=["cache"])


@router.get("/status", response_model=CacheStatusResponse)
async def cache_status(data_service=Depends(get_data_service)):
    """Age and size of cached dataset reads"""
    return data_service.cache_status()


@router.post("/clear", response_model=CacheResponse)
async def clear_cache(data_service=Depends(get_data_service)):
    """Drop all cached dataset reads"""
    count = data_service.clear_cache()
    return CacheResponse(message=f"Cache cleared ({count} entries)")
