"""
Configuration settings for the crawl engine
"""

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .models import SourceConfig

DEFAULT_CONFIG_PATH = "config/sources.json"

VALIDATION_POLICIES = ("unit", "batch")


@dataclass
class CrawlConfig:
    """Configuration class for crawl cycle settings"""
    # Concurrency and timeouts
    max_concurrent: int = 5
    manifest_timeout: float = 60.0
    extract_timeout: float = 120.0
    hash_timeout: float = 30.0

    # HTTP settings for the reference adapter/extractor
    request_timeout: int = 30
    max_retries: int = 3
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 pricewatch/1.0"

    # Storage
    storage_dir: str = "storage"

    # Validation
    min_content_chars: int = 100
    max_content_chars: int = 1_000_000
    validation_policy: str = "unit"

    # Outcome policy
    partial_failure_is_failure: bool = True

    # Write numbered dataset snapshots next to <source>.json
    debug: bool = False
    log_level: str = "INFO"

    @property
    def datasets_dir(self) -> Path:
        return Path(self.storage_dir) / "datasets"

    @property
    def metadata_dir(self) -> Path:
        return Path(self.storage_dir) / "metadata"

    def validate(self):
        """Raise ConfigurationError for settings the engine cannot run with"""
        if self.max_concurrent < 1:
            raise ConfigurationError(f"max_concurrent must be >= 1, got {self.max_concurrent}")
        if self.validation_policy not in VALIDATION_POLICIES:
            raise ConfigurationError(
                f"validation_policy must be one of {', '.join(VALIDATION_POLICIES)}, "
                f"got {self.validation_policy!r}"
            )
        for name in ("manifest_timeout", "extract_timeout", "hash_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrawlConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        return cls(**data)


@dataclass
class AppConfig:
    """Settings plus the configured sources"""
    settings: CrawlConfig = field(default_factory=CrawlConfig)
    sources: List[SourceConfig] = field(default_factory=list)

    def get_source(self, key: str) -> Optional[SourceConfig]:
        """Look up a source by id or alias"""
        for source in self.sources:
            if source.source_id == key or key in source.aliases:
                return source
        return None


def _apply_env_overrides(settings: CrawlConfig):
    if os.getenv("PRICEWATCH_STORAGE_DIR"):
        settings.storage_dir = os.environ["PRICEWATCH_STORAGE_DIR"]
    if os.getenv("PRICEWATCH_DEBUG"):
        settings.debug = os.environ["PRICEWATCH_DEBUG"].lower() == "true"
    if os.getenv("PRICEWATCH_MAX_CONCURRENT"):
        try:
            settings.max_concurrent = int(os.environ["PRICEWATCH_MAX_CONCURRENT"])
        except ValueError:
            raise ConfigurationError("PRICEWATCH_MAX_CONCURRENT must be an integer")
    if os.getenv("PRICEWATCH_LOG_LEVEL"):
        settings.log_level = os.environ["PRICEWATCH_LOG_LEVEL"]


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load sources and settings from JSON, then apply environment overrides"""
    load_dotenv()

    path = Path(config_path or os.getenv("PRICEWATCH_CONFIG", DEFAULT_CONFIG_PATH))
    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to load configuration from {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration root in {path} must be an object")

    try:
        settings = CrawlConfig.from_dict(raw.get("settings") or {})
        sources = [SourceConfig.from_dict(item) for item in raw.get("sources") or []]
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e

    seen = set()
    for source in sources:
        if source.source_id in seen:
            raise ConfigurationError(f"Duplicate source id: {source.source_id}")
        seen.add(source.source_id)

    _apply_env_overrides(settings)
    settings.validate()

    return AppConfig(settings=settings, sources=sources)
