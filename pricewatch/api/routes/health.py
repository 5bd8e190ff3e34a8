"""
Routes for health check
"""
from fastapi import APIRouter, Depends

from ..dependencies import get_data_service
from ..models import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/api/v1/health", response_model=HealthResponse)
async def health_check(data_service=Depends(get_data_service)):
    """Service health and dataset availability"""
    return HealthResponse(**data_service.health())
