"""
Error taxonomy for the crawl engine
"""

from typing import Optional


class PricewatchError(Exception):
    """Base error, optionally tied to one source"""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        if self.source:
            return f"[{self.source}] {self.message}"
        return self.message


class ManifestError(PricewatchError):
    """Adapter failed to produce a manifest"""


class ExtractionError(PricewatchError):
    """A single document could not be downloaded or extracted"""

    def __init__(self, message: str, source: Optional[str] = None, url: Optional[str] = None):
        super().__init__(message, source)
        self.url = url


class ValidationError(PricewatchError):
    """Extracted payload failed a sanity check and must not be persisted"""


class MergeError(PricewatchError):
    """Identity collision or malformed existing dataset"""


class StoreError(PricewatchError):
    """Filesystem write, rename or read failure"""


class ConfigurationError(PricewatchError):
    """Configuration missing or unreadable; fatal for the whole cycle"""
