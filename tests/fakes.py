"""
In-memory adapters, extractors and hashers for tests
"""

import asyncio
from typing import Dict, List, Optional

from pricewatch.crawl.adapters import ContentExtractor, ContentHasher, SourceAdapter
from pricewatch.crawl.exceptions import ExtractionError
from pricewatch.crawl.models import DocumentReference, ExtractedUnit, SourceConfig, SourceManifest

LONG_TEXT = "Monthly fee 9.99 EUR, roaming 0.20 EUR per minute. " * 5


class FakeAdapter(SourceAdapter):
    """Manifests from a dict of source id -> list of (url, document type)"""

    def __init__(self, documents: Dict[str, List], errors: Optional[Dict[str, Exception]] = None, delays: Optional[Dict[str, float]] = None):
        super().__init__()
        self.documents = documents
        self.errors = errors or {}
        self.delays = delays or {}
        self.calls: List[str] = []

    async def fetch_manifest(self, source: SourceConfig) -> SourceManifest:
        self.calls.append(source.source_id)
        if source.source_id in self.delays:
            await asyncio.sleep(self.delays[source.source_id])
        if source.source_id in self.errors:
            raise self.errors[source.source_id]

        refs = []
        for entry in self.documents.get(source.source_id, []):
            url, document_type = entry if isinstance(entry, tuple) else (entry, None)
            refs.append(DocumentReference(url=url, display_text=url.rsplit('/', 1)[-1], document_type=document_type))
        return SourceManifest(source=source.source_id, documents=refs)


class FakeExtractor(ContentExtractor):
    """Text payloads keyed by URL; listed URLs fail or hang"""

    def __init__(self, texts: Optional[Dict[str, str]] = None, failing=(), slow=(), delay: float = 5.0):
        super().__init__()
        self.texts = texts or {}
        self.failing = set(failing)
        self.slow = set(slow)
        self.delay = delay
        self.calls: List[str] = []

    async def extract(self, source: SourceConfig, ref: DocumentReference) -> ExtractedUnit:
        self.calls.append(ref.url)
        if ref.url in self.slow:
            await asyncio.sleep(self.delay)
        if ref.url in self.failing:
            raise ExtractionError("download failed", source=source.source_id, url=ref.url)

        return ExtractedUnit.create(
            source_url=ref.url,
            payload={'text': self.texts.get(ref.url, LONG_TEXT)},
            document_type=ref.document_type,
            title=ref.display_text,
            summary={'characters': len(self.texts.get(ref.url, LONG_TEXT))},
        )


class FakeHasher(ContentHasher):
    def __init__(self, hashes: Optional[Dict[str, str]] = None, error: Optional[Exception] = None):
        self.hashes = hashes or {}
        self.error = error
        self.calls = 0

    async def compute_hashes(self, source: SourceConfig, urls: List[str]) -> Dict[str, str]:
        self.calls += 1
        if self.error:
            raise self.error
        return {url: self.hashes[url] for url in urls if url in self.hashes}
