"""
Persistent registry of last known document URLs and content hashes per source
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from .durable_store import DurableStore
from .exceptions import StoreError

URLS_FILENAME = "latest-urls.json"
HASHES_FILENAME = "latest-hashes.json"

UrlEntry = Union[str, List[str]]


class ChangeRegistry:
    """Last known identity of every source, stored as two JSON files"""

    def __init__(self, metadata_dir: Union[str, Path], store: Optional[DurableStore] = None):
        self.metadata_dir = Path(metadata_dir)
        self.store = store or DurableStore()
        self.urls_path = self.metadata_dir / URLS_FILENAME
        self.hashes_path = self.metadata_dir / HASHES_FILENAME
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop = None

        self.logger = logging.getLogger(__name__)

    def _load(self, path: Path) -> Dict:
        """Read a registry file; unreadable content is treated as empty"""
        try:
            data = self.store.read_json(path)
        except StoreError as e:
            self.logger.warning(f"Could not load registry {path.name}, starting empty: {e}")
            return {}
        if data is None:
            return {}
        if not isinstance(data, dict):
            self.logger.warning(f"Registry {path.name} is not an object, starting empty")
            return {}
        return data

    def _get_lock(self) -> asyncio.Lock:
        # One lock per running event loop
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    def load_urls(self) -> Dict[str, UrlEntry]:
        return self._load(self.urls_path)

    def load_hashes(self) -> Dict[str, Dict[str, str]]:
        return self._load(self.hashes_path)

    def stored_urls(self, source: str) -> List[str]:
        """Stored URLs for a source; single entries are kept as plain strings"""
        entry = self.load_urls().get(source)
        if not entry:
            return []
        if isinstance(entry, str):
            return [entry]
        return [url for url in entry if isinstance(url, str)]

    def stored_hashes(self, source: str) -> Dict[str, str]:
        entry = self.load_hashes().get(source)
        if not isinstance(entry, dict):
            return {}
        return dict(entry)

    async def update(self, source: str, urls: List[str], hashes: Optional[Dict[str, str]] = None):
        """Replace one source's entry with a read-merge-write of the whole registry"""
        async with self._get_lock():
            self._write_urls(source, urls)
            if hashes:
                self._write_hashes(source, hashes)

        self.logger.info(f"[{source}] Registry updated with {len(urls)} URL(s)")

    def _write_urls(self, source: str, urls: List[str]):
        # Order-preserving dedup
        unique = list(dict.fromkeys(urls))
        registry = self.load_urls()
        registry[source] = unique[0] if len(unique) == 1 else unique
        self.store.write_json(self.urls_path, registry)

    def _write_hashes(self, source: str, hashes: Dict[str, str]):
        registry = self.load_hashes()
        registry[source] = dict(hashes)
        self.store.write_json(self.hashes_path, registry)

    def summary(self) -> Dict:
        """Totals and per-source details for status displays"""
        registry = self.load_urls()
        hashes = self.load_hashes()
        details = {}
        total_documents = 0

        for source, entry in sorted(registry.items()):
            urls = [entry] if isinstance(entry, str) else list(entry or [])
            total_documents += len(urls)
            details[source] = {
                'documents': len(urls),
                'urls': urls,
                'hashed': len(hashes.get(source) or {}),
            }

        return {
            'total_sources': len(details),
            'total_documents': total_documents,
            'sources': details,
        }
