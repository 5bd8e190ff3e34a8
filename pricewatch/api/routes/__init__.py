"""
API routes module
"""

from . import cache, health, sources

from .cache import router as cache_router
from .health import router as health_router
from .sources import router as sources_router

__all__ = [
    # Modules
    'cache',
    'health',
    'sources',

    # Routers
    'cache_router',
    'health_router',
    'sources_router',
]
