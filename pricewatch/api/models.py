"""
Pydantic response models for the API
"""
from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    sources_configured: int
    datasets_available: int


class DocumentItem(BaseModel):
    title: str
    text: str
    url: Optional[str] = None
    document_type: Optional[str] = None


class SourceDataResponse(BaseModel):
    source: str
    name: str
    data: List[DocumentItem]
    error: Optional[str] = None


class AllSourcesResponse(BaseModel):
    sources: List[SourceDataResponse]
    total_sources: int
    successful_sources: int
    failed_sources: int


class RegistryResponse(BaseModel):
    total_sources: int
    total_documents: int
    sources: Dict[str, Any]


class CacheEntryStatus(BaseModel):
    cached: bool
    age_seconds: float
    item_count: int


class CacheStatusResponse(BaseModel):
    ttl_seconds: float
    entries: Dict[str, CacheEntryStatus]


class CacheResponse(BaseModel):
    message: str
