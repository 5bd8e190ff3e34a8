"""
Configurable HTML link discovery for pricing pages
"""

import asyncio
import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote, urljoin, urlparse

from bs4 import BeautifulSoup

from ..exceptions import ManifestError
from ..models import DocumentReference, SourceConfig, SourceManifest
from .base import SourceAdapter, register_adapter
from .session import build_session, fetch

DEFAULT_LINK_PATTERNS = (".pdf",)

DATE_PATTERNS = (
    (re.compile(r"(\d{1,2})\.\s*(\d{1,2})\.\s*(\d{4})"), ("day", "month", "year")),
    (re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})"), ("day", "month", "year")),
    (re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})"), ("year", "month", "day")),
    (re.compile(r"(\d{4})_(\d{1,2})_(\d{1,2})"), ("year", "month", "day")),
)


def find_latest_date(text: str) -> Optional[date]:
    """Most recent calendar date mentioned in text, if any"""
    found = []
    for pattern, order in DATE_PATTERNS:
        for match in pattern.finditer(text):
            parts = dict(zip(order, (int(group) for group in match.groups())))
            try:
                found.append(date(parts["year"], parts["month"], parts["day"]))
            except ValueError:
                continue
    return max(found) if found else None


class LinkCandidate:
    """A link on the page that looks like a document"""

    def __init__(self, url: str, text: str, position: int):
        self.url = url
        self.text = text
        self.position = position
        filename = unquote(urlparse(url).path.rsplit('/', 1)[-1])
        self.date = find_latest_date(f"{text} {filename}")

    def matches(self, keywords: List[str]) -> bool:
        haystack = f"{self.url} {self.text}".lower()
        return any(keyword.lower() in haystack for keyword in keywords)

    def sort_key(self) -> Tuple[int, int]:
        # Newest date first, then earliest in document order
        ordinal = self.date.toordinal() if self.date else 0
        return (-ordinal, self.position)


@register_adapter("html-links")
class HtmlLinksAdapter(SourceAdapter):
    """Fetch a source's crawl page and select document links by target keywords"""

    def __init__(self, config=None):
        super().__init__(config)
        self.logger = logging.getLogger(__name__)

    async def fetch_manifest(self, source: SourceConfig) -> SourceManifest:
        if not source.crawl_url:
            raise ManifestError("no crawlUrl configured", source=source.source_id)

        try:
            html = await asyncio.to_thread(self._download, source.crawl_url)
        except Exception as e:
            raise ManifestError(f"Failed to load {source.crawl_url}: {e}", source=source.source_id) from e

        documents = self.discover(source, html)
        self.logger.info(f"[{source.source_id}] Found {len(documents)} document link(s)")
        return SourceManifest(source=source.source_id, documents=documents)

    def _download(self, url: str) -> bytes:
        session = build_session(self.config)
        try:
            return fetch(session, url, self.config).content
        finally:
            session.close()

    def discover(self, source: SourceConfig, html: bytes) -> List[DocumentReference]:
        """Pure link selection over page HTML"""
        soup = BeautifulSoup(html, 'html.parser')
        options = source.options

        if not source.targets:
            candidates = self._collect(soup, source.crawl_url, options.get("selector"), options)
            return [
                DocumentReference(url=c.url, display_text=c.text, category=options.get("category"))
                for c in candidates
            ]

        documents = []
        seen = set()
        for target in source.targets:
            ref = self._select_target(soup, source, target)
            if ref is None:
                self.logger.warning(f"[{source.source_id}] Could not find {target.get('name', 'target')}")
                continue
            if ref.url in seen:
                continue
            seen.add(ref.url)
            documents.append(ref)
        return documents

    def _select_target(self, soup: BeautifulSoup, source: SourceConfig, target: Dict[str, Any]) -> Optional[DocumentReference]:
        selector = target.get("selector") or source.options.get("selector")
        candidates = self._collect(soup, source.crawl_url, selector, source.options)

        keywords = list(target.get("keywords") or [])
        if target.get("searchText"):
            keywords.append(target["searchText"])
        if keywords:
            candidates = [c for c in candidates if c.matches(keywords)]
        if not candidates:
            return None

        best = sorted(candidates, key=LinkCandidate.sort_key)[0]
        return DocumentReference(
            url=best.url,
            display_text=best.text,
            category=target.get("category") or source.options.get("category"),
            document_type=target.get("documentType") or target.get("name"),
        )

    def _collect(self, soup: BeautifulSoup, base_url: str, selector: Optional[str], options: Dict[str, Any]) -> List[LinkCandidate]:
        """Document-like links in page order, deduplicated by absolute URL"""
        patterns = [p.lower() for p in options.get("linkPatterns") or DEFAULT_LINK_PATTERNS]
        elements = soup.select(selector) if selector else soup.find_all('a', href=True)

        candidates = []
        seen = set()
        for position, link in enumerate(elements):
            href = (link.get('href') or '').strip()
            if not href:
                continue

            absolute_url = urljoin(base_url, href)
            parsed = urlparse(absolute_url)
            if parsed.scheme not in ('http', 'https') or not parsed.netloc:
                continue
            if not any(pattern in absolute_url.lower() for pattern in patterns):
                continue
            if absolute_url in seen:
                continue

            seen.add(absolute_url)
            text = re.sub(r'\s+', ' ', link.get_text()).strip()
            candidates.append(LinkCandidate(absolute_url, text, position))

        return candidates
