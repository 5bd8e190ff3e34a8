"""
HTTP download and plain text extraction for HTML, PDF and text documents
"""

import asyncio
import hashlib
import io
import logging
import re
from typing import Dict, List, Tuple

import pdfplumber
import requests
from bs4 import BeautifulSoup

from ..config import CrawlConfig
from ..exceptions import ExtractionError
from ..models import DocumentReference, ExtractedUnit, SourceConfig
from .base import ContentExtractor, ContentHasher, register_extractor
from .session import build_session, fetch

PDF_MAGIC = b"%PDF"


def md5_hex(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def detect_content_type(url: str, content_type: str, body: bytes) -> str:
    content_type = (content_type or "").lower()
    if "pdf" in content_type or body.startswith(PDF_MAGIC) or url.lower().split('?')[0].endswith('.pdf'):
        return "pdf"
    if "html" in content_type or body.lstrip()[:15].lower().startswith((b"<!doctype html", b"<html")):
        return "html"
    return "text"


def pdf_to_text(body: bytes) -> Tuple[str, int]:
    """Extract text page by page; returns (text, page count)"""
    pages = []
    with pdfplumber.open(io.BytesIO(body)) as pdf:
        for page in pdf.pages:
            pages.append(page.extract_text() or "")
        page_count = len(pdf.pages)
    return "\n\n".join(pages).strip(), page_count


def html_to_text(body: bytes) -> Tuple[str, str]:
    """Visible page text and title"""
    soup = BeautifulSoup(body, 'html.parser')
    title = soup.find('title').get_text().strip() if soup.find('title') else ''

    for element in soup(['script', 'style', 'nav', 'header', 'footer', 'aside']):
        element.decompose()

    text = re.sub(r'\s+', ' ', soup.get_text()).strip()
    return text, title


@register_extractor("http-text")
class HttpTextExtractor(ContentExtractor):
    """Downloads one document and turns it into an ExtractedUnit with a text payload"""

    def __init__(self, config=None):
        super().__init__(config)
        self.logger = logging.getLogger(__name__)

    async def extract(self, source: SourceConfig, ref: DocumentReference) -> ExtractedUnit:
        try:
            return await asyncio.to_thread(self._extract_sync, source, ref)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"Failed to extract {ref.url}: {e}", source=source.source_id, url=ref.url) from e

    def _extract_sync(self, source: SourceConfig, ref: DocumentReference) -> ExtractedUnit:
        session = build_session(self.config)
        try:
            response = fetch(session, ref.url, self.config)
        finally:
            session.close()

        body = response.content
        kind = detect_content_type(ref.url, response.headers.get('Content-Type', ''), body)
        summary = {'content_type': kind, 'bytes': len(body)}
        title = ref.display_text or None

        if kind == "pdf":
            text, page_count = pdf_to_text(body)
            summary['pages'] = page_count
        elif kind == "html":
            text, page_title = html_to_text(body)
            title = title or page_title or None
        else:
            text = body.decode(response.encoding or 'utf-8', errors='replace').strip()

        summary['characters'] = len(text)
        summary['content_hash'] = md5_hex(text.encode('utf-8'))

        self.logger.info(f"[{source.source_id}] Extracted {len(text)} characters from {ref.url}")
        return ExtractedUnit.create(
            source_url=ref.url,
            payload={'text': text},
            document_type=ref.document_type,
            title=title,
            category=ref.category,
            summary=summary,
            identity_key=ref.identity_key,
        )


class HttpContentHasher(ContentHasher):
    """md5 of the raw document bytes"""

    def __init__(self, config=None):
        self.config = config or CrawlConfig()
        self.logger = logging.getLogger(__name__)

    async def compute_hashes(self, source: SourceConfig, urls: List[str]) -> Dict[str, str]:
        return await asyncio.to_thread(self._compute_sync, source, urls)

    def _compute_sync(self, source: SourceConfig, urls: List[str]) -> Dict[str, str]:
        session = build_session(self.config)
        hashes = {}
        try:
            for url in urls:
                try:
                    hashes[url] = md5_hex(fetch(session, url, self.config).content)
                except requests.RequestException as e:
                    # Omitted URLs compare as changed
                    self.logger.warning(f"[{source.source_id}] Failed to hash {url}: {e}")
        finally:
            session.close()
        return hashes
