"""
Capability interfaces for source adapters, extractors and hashers
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from ..config import CrawlConfig
from ..exceptions import ConfigurationError
from ..models import DocumentReference, ExtractedUnit, SourceConfig, SourceManifest


class SourceAdapter(ABC):
    """Lists a source's documents without downloading them"""

    def __init__(self, config: Optional[CrawlConfig] = None):
        self.config = config or CrawlConfig()

    @abstractmethod
    async def fetch_manifest(self, source: SourceConfig) -> SourceManifest:
        """Return the current manifest or raise ManifestError"""


class ContentExtractor(ABC):
    """Downloads and extracts one document"""

    def __init__(self, config: Optional[CrawlConfig] = None):
        self.config = config or CrawlConfig()

    @abstractmethod
    async def extract(self, source: SourceConfig, ref: DocumentReference) -> ExtractedUnit:
        """Return an extracted unit or raise ExtractionError"""


class ContentHasher(ABC):
    """Content fingerprints for sources whose URLs never change"""

    @abstractmethod
    async def compute_hashes(self, source: SourceConfig, urls: List[str]) -> Dict[str, str]:
        """Map url -> hash; URLs that could not be hashed are omitted"""


AdapterFactory = Callable[[CrawlConfig], SourceAdapter]
ExtractorFactory = Callable[[CrawlConfig], ContentExtractor]

ADAPTERS: Dict[str, AdapterFactory] = {}
EXTRACTORS: Dict[str, ExtractorFactory] = {}


def register_adapter(name: str):
    def decorator(cls):
        ADAPTERS[name] = cls
        return cls
    return decorator


def register_extractor(name: str):
    def decorator(cls):
        EXTRACTORS[name] = cls
        return cls
    return decorator


def get_adapter(name: str, config: CrawlConfig) -> SourceAdapter:
    try:
        factory = ADAPTERS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown adapter: {name}") from None
    return factory(config)


def get_extractor(name: str, config: CrawlConfig) -> ContentExtractor:
    try:
        factory = EXTRACTORS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown extractor: {name}") from None
    return factory(config)
