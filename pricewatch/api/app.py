"""
FastAPI application factory and configuration
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..crawl.config import load_config
from ..crawl.exceptions import ConfigurationError
from .config import settings
from .dependencies import AppState
from .routes import cache, health, sources
from .services import DataService

logger = logging.getLogger(__name__)


def build_data_service() -> Optional[DataService]:
    try:
        app_config = load_config(settings.CONFIG_PATH or None)
    except ConfigurationError as e:
        logger.error(f"Failed to load configuration: {e}")
        return None

    return DataService(
        app_config,
        cache_ttl=settings.CACHE_TTL_SECONDS,
        retry_attempts=settings.READ_RETRY_ATTEMPTS,
        retry_delay=settings.READ_RETRY_DELAY,
    )


def create_app(data_service: Optional[DataService] = None) -> FastAPI:
    """Factory function for the FastAPI app"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_state = AppState()
        if app_state.get_data_service() is None:
            logger.info("Loading source configuration...")
            app_state.set_data_service(build_data_service())

        yield

        logger.info("Application shutdown complete")
        app_state.set_data_service(None)

    # Explicit service wins over configuration loading
    AppState().set_data_service(data_service)

    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(sources.router)
    app.include_router(cache.router)

    return app
