"""
Per-source consolidated dataset files
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

from .durable_store import DurableStore
from .exceptions import MergeError, StoreError
from .models import ConsolidatedDataset

SNAPSHOT_DIGITS = 9


class DatasetStore:
    """Loads and saves storage/datasets/<source>/<source>.json"""

    def __init__(self, datasets_dir: Union[str, Path], store: Optional[DurableStore] = None, debug: bool = False):
        self.datasets_dir = Path(datasets_dir)
        self.store = store or DurableStore()
        self.debug = debug
        self._snapshot_numbers: Dict[str, int] = {}
        self.logger = logging.getLogger(__name__)

    def source_dir(self, source: str) -> Path:
        return self.datasets_dir / source

    def dataset_path(self, source: str) -> Path:
        return self.source_dir(source) / f"{source}.json"

    def exists(self, source: str) -> bool:
        return self.dataset_path(source).is_file()

    def load(self, source: str) -> Optional[ConsolidatedDataset]:
        """Stored dataset, None when absent; malformed content raises MergeError"""
        path = self.dataset_path(source)
        try:
            data = self.store.read_json(path)
        except StoreError as e:
            raise MergeError(f"Unreadable dataset {path.name}: {e}", source=source) from e

        if data is None:
            return None
        if not isinstance(data, dict) or not isinstance(data.get('units'), list):
            raise MergeError(f"Malformed dataset {path.name}: missing units list", source=source)
        if not all(isinstance(item, dict) for item in data['units']):
            raise MergeError(f"Malformed dataset {path.name}: unit is not an object", source=source)

        data.setdefault('source', source)
        try:
            return ConsolidatedDataset.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise MergeError(f"Malformed dataset {path.name}: {e}", source=source) from e

    def save(self, dataset: ConsolidatedDataset) -> Path:
        path = self.dataset_path(dataset.source)
        payload = dataset.to_dict()
        self.store.write_json(path, payload)
        self.logger.info(
            f"[{dataset.source}] Dataset saved: {dataset.total_units} unit(s), "
            f"{dataset.failed_units} failed"
        )

        if self.debug:
            snapshot = self.next_snapshot_path(dataset.source)
            self.store.write_json(snapshot, payload)
            self.logger.debug(f"[{dataset.source}] Debug snapshot {snapshot.name}")

        return path

    def next_snapshot_path(self, source: str) -> Path:
        """Next 000000001.json style name after the highest existing snapshot"""
        source_dir = self.source_dir(source)
        number = self._snapshot_numbers.get(source)
        if number is None:
            numbers = [
                int(path.stem) for path in source_dir.glob("*.json")
                if len(path.stem) == SNAPSHOT_DIGITS and path.stem.isdigit()
            ]
            number = max(numbers, default=0)

        number += 1
        candidate = source_dir / f"{number:0{SNAPSHOT_DIGITS}d}.json"
        while candidate.exists():
            number += 1
            candidate = source_dir / f"{number:0{SNAPSHOT_DIGITS}d}.json"
        self._snapshot_numbers[source] = number
        return candidate

    def statistics(self, source: str) -> Dict:
        """Summary of a stored dataset for status displays"""
        try:
            dataset = self.load(source)
        except MergeError as e:
            self.logger.warning(f"[{source}] Could not read dataset: {e}")
            return {'has_data': False, 'error': str(e)}

        if dataset is None:
            return {'has_data': False}

        document_types = sorted({u.document_type for u in dataset.units if u.document_type})
        return {
            'has_data': True,
            'total_units': dataset.total_units,
            'successful_units': dataset.successful_units,
            'failed_units': dataset.failed_units,
            'last_crawl_date': dataset.crawled_at,
            'last_update': dataset.last_update.to_dict() if dataset.last_update else None,
            'document_types': document_types,
        }

    def list_sources(self):
        """Source ids that have a dataset file"""
        if not self.datasets_dir.is_dir():
            return []
        return sorted(
            child.name for child in self.datasets_dir.iterdir()
            if child.is_dir() and (child / f"{child.name}.json").is_file()
        )
