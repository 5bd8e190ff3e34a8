"""
Routes for dataset and registry access
"""
from fastapi import APIRouter, Depends

from ..dependencies import get_data_service
from ..models import AllSourcesResponse, RegistryResponse, SourceDataResponse

router = APIRouter(prefix="/api/v1", tags=["sources"])


@router.get("/sources", response_model=AllSourcesResponse)
async def all_sources(data_service=Depends(get_data_service)):
    """Titles and text of every configured source's documents"""
    return await data_service.get_all_sources_data()


@router.get("/sources/{source_key}", response_model=SourceDataResponse)
async def source_data(source_key: str, data_service=Depends(get_data_service)):
    """One source by id or alias"""
    return await data_service.get_source_data(source_key)


@router.get("/registry", response_model=RegistryResponse)
async def registry(data_service=Depends(get_data_service)):
    """Stored document URLs per source"""
    return data_service.registry_summary()
