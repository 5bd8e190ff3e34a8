"""
Business logic for reading consolidated datasets
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from ..crawl.config import AppConfig
from ..crawl.dataset_store import DatasetStore
from ..crawl.exceptions import MergeError
from ..crawl.models import ConsolidatedDataset, ExtractedUnit, utc_now
from ..crawl.registry import ChangeRegistry
from .exceptions import SourceNotFoundError

logger = logging.getLogger(__name__)


def extract_item(unit: ExtractedUnit) -> Optional[Dict[str, Any]]:
    """Title and text of a successful unit, None when there is nothing to show"""
    if unit.error is not None or not isinstance(unit.payload, dict):
        return None
    text = unit.payload.get('text')
    if not isinstance(text, str) or not text.strip():
        return None

    title = unit.title or unit.document_type or 'Unknown Document'
    return {
        'title': title.strip(),
        'text': text.strip(),
        'url': unit.source_url,
        'document_type': unit.document_type,
    }


class DataService:
    """Cached, retrying reader over the dataset files"""

    def __init__(
        self,
        app_config: AppConfig,
        cache_ttl: float = 300.0,
        retry_attempts: int = 3,
        retry_delay: float = 0.5,
    ):
        self.app_config = app_config
        self.cache_ttl = cache_ttl
        self.retry_attempts = max(1, retry_attempts)
        self.retry_delay = retry_delay
        self.datasets = DatasetStore(app_config.settings.datasets_dir)
        self.registry = ChangeRegistry(app_config.settings.metadata_dir)
        self._cache: Dict[str, Tuple[float, List[Dict[str, Any]]]] = {}

    def resolve(self, key: str):
        source = self.app_config.get_source(key)
        if source is None:
            raise SourceNotFoundError(key)
        return source

    async def _read_dataset(self, source_id: str) -> Optional[ConsolidatedDataset]:
        """Load a dataset, retrying when the file cannot be parsed"""
        for attempt in range(1, self.retry_attempts + 1):
            try:
                return self.datasets.load(source_id)
            except MergeError as e:
                logger.warning(f"Attempt {attempt}/{self.retry_attempts} failed to read {source_id}: {e}")
                if attempt == self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay)
        return None

    async def get_items(self, source_id: str) -> List[Dict[str, Any]]:
        cached = self._cache.get(source_id)
        now = time.monotonic()
        if cached and now - cached[0] < self.cache_ttl:
            return cached[1]

        dataset = await self._read_dataset(source_id)
        items = []
        if dataset is not None:
            items = [item for item in (extract_item(u) for u in dataset.units) if item]

        self._cache[source_id] = (now, items)
        return items

    async def get_source_data(self, key: str) -> Dict[str, Any]:
        source = self.resolve(key)
        try:
            items = await self.get_items(source.source_id)
        except MergeError as e:
            logger.error(f"Failed to load data for {source.source_id}: {e}")
            return {'source': source.source_id, 'name': source.name, 'data': [], 'error': str(e)}

        return {'source': source.source_id, 'name': source.name, 'data': items, 'error': None}

    async def get_all_sources_data(self) -> Dict[str, Any]:
        results = []
        for source in self.app_config.sources:
            results.append(await self.get_source_data(source.source_id))

        failed = sum(1 for r in results if r['error'])
        return {
            'sources': results,
            'total_sources': len(results),
            'successful_sources': len(results) - failed,
            'failed_sources': failed,
        }

    def registry_summary(self) -> Dict[str, Any]:
        return self.registry.summary()

    def health(self) -> Dict[str, Any]:
        return {
            'status': 'healthy',
            'timestamp': utc_now(),
            'sources_configured': len(self.app_config.sources),
            'datasets_available': len(self.datasets.list_sources()),
        }

    def cache_status(self) -> Dict[str, Any]:
        now = time.monotonic()
        return {
            'ttl_seconds': self.cache_ttl,
            'entries': {
                key: {'cached': True, 'age_seconds': round(now - ts, 3), 'item_count': len(items)}
                for key, (ts, items) in self._cache.items()
            },
        }

    def clear_cache(self) -> int:
        count = len(self._cache)
        self._cache.clear()
        logger.info(f"Dataset cache cleared ({count} entries)")
        return count
