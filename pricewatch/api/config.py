"""
Configuration management for the API
"""
import os
from typing import List


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Application settings from environment variables"""

    # Server configuration
    PORT: int = int(os.getenv("PORT", 8000))
    HOST: str = os.getenv("HOST", "0.0.0.0")
    RELOAD: bool = os.getenv("RELOAD", "false").lower() == "true"

    # Source configuration file, empty means config/sources.json
    CONFIG_PATH: str = os.getenv("PRICEWATCH_CONFIG", "")

    # Dataset cache
    CACHE_TTL_SECONDS: float = float(os.getenv("CACHE_TTL_SECONDS", 300))
    READ_RETRY_ATTEMPTS: int = int(os.getenv("READ_RETRY_ATTEMPTS", 3))
    READ_RETRY_DELAY: float = float(os.getenv("READ_RETRY_DELAY", 0.5))

    # Logging configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # API configuration
    API_TITLE: str = "Pricewatch API"
    API_DESCRIPTION: str = "Read access to consolidated pricing document datasets"
    API_VERSION: str = "1.0.0"

    # CORS configuration
    CORS_ORIGINS: List[str] = _split(os.getenv("CORS_ORIGINS", "*"))


# Global settings instance
settings = Settings()
