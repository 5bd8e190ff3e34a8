"""
Source adapters, content extractors and hashers
"""

from .base import (
    ADAPTERS,
    EXTRACTORS,
    ContentExtractor,
    ContentHasher,
    SourceAdapter,
    get_adapter,
    get_extractor,
    register_adapter,
    register_extractor,
)
from .html_links import HtmlLinksAdapter
from .http_text import HttpContentHasher, HttpTextExtractor

__all__ = [
    'ADAPTERS',
    'EXTRACTORS',
    'ContentExtractor',
    'ContentHasher',
    'SourceAdapter',
    'get_adapter',
    'get_extractor',
    'register_adapter',
    'register_extractor',
    'HtmlLinksAdapter',
    'HttpContentHasher',
    'HttpTextExtractor',
]
