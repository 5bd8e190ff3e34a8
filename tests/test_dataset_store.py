"""
Tests for per-source dataset files
"""

import json
import shutil
import tempfile
from pathlib import Path

import pytest

from pricewatch.crawl.dataset_store import DatasetStore
from pricewatch.crawl.exceptions import MergeError
from pricewatch.crawl.models import ConsolidatedDataset, ExtractedUnit, LastUpdate, UpdateMode


def dataset(source="acme"):
    units = [
        ExtractedUnit.create("https://x.test/a.pdf", {'text': 'a'}, document_type="Tariffs"),
        ExtractedUnit.create("https://x.test/b.pdf", {'text': 'b'}, document_type="Roaming"),
    ]
    units[1].error = "timeout"
    units[1].payload = None
    return ConsolidatedDataset(
        source=source,
        crawled_at="2024-05-01T00:00:00Z",
        units=units,
        last_update=LastUpdate(1, ["https://x.test/a.pdf"], UpdateMode.SELECTIVE),
    )


class TestDatasetStore:
    """Test load, save and statistics"""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.store = DatasetStore(Path(self.temp_dir) / "datasets")

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_raw(self, source, content):
        path = self.store.dataset_path(source)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')

    def test_dataset_path_layout(self):
        assert self.store.dataset_path("acme") == Path(self.temp_dir) / "datasets" / "acme" / "acme.json"

    def test_load_missing_returns_none(self):
        assert self.store.load("acme") is None
        assert not self.store.exists("acme")

    def test_save_and_load(self):
        self.store.save(dataset())

        loaded = self.store.load("acme")

        assert loaded.source == "acme"
        assert [u.identity_key for u in loaded.units] == ["tariffs", "roaming"]
        assert loaded.failed_units == 1
        assert loaded.last_update.mode == UpdateMode.SELECTIVE

    def test_saved_counters_match_units(self):
        self.store.save(dataset())

        data = json.loads(self.store.dataset_path("acme").read_text(encoding='utf-8'))

        assert data['totalUnits'] == 2
        assert data['successfulUnits'] == 1
        assert data['failedUnits'] == 1

    def test_stale_counters_are_recomputed_on_load(self):
        self._write_raw("acme", json.dumps({
            'source': 'acme',
            'totalUnits': 99,
            'units': [{'sourceUrl': 'https://x.test/a.pdf', 'documentType': 'Tariffs'}],
        }))

        loaded = self.store.load("acme")

        assert loaded.total_units == 1
        assert loaded.units[0].identity_key == "tariffs"

    @pytest.mark.parametrize("content", [
        "{not json",
        "[]",
        '{"units": "nope"}',
        '{"units": ["nope"]}',
    ])
    def test_malformed_dataset_raises_merge_error(self, content):
        self._write_raw("acme", content)

        with pytest.raises(MergeError):
            self.store.load("acme")

    def test_debug_mode_writes_numbered_snapshots(self):
        store = DatasetStore(Path(self.temp_dir) / "datasets", debug=True)

        store.save(dataset())
        store.save(dataset())

        source_dir = store.source_dir("acme")
        assert (source_dir / "000000001.json").is_file()
        assert (source_dir / "000000002.json").is_file()
        assert store.exists("acme")

    def test_snapshots_continue_after_highest_existing_number(self):
        store = DatasetStore(Path(self.temp_dir) / "datasets", debug=True)
        source_dir = store.source_dir("acme")
        source_dir.mkdir(parents=True)
        (source_dir / "000000002.json").write_text("{}", encoding="utf-8")
        (source_dir / "000000007.json").write_text("{}", encoding="utf-8")

        store.save(dataset())
        store.save(dataset())

        assert (source_dir / "000000008.json").is_file()
        assert (source_dir / "000000009.json").is_file()
        assert not (source_dir / "000000001.json").exists()

    def test_statistics(self):
        self.store.save(dataset())

        stats = self.store.statistics("acme")

        assert stats['has_data'] is True
        assert stats['total_units'] == 2
        assert stats['failed_units'] == 1
        assert stats['document_types'] == ["Roaming", "Tariffs"]
        assert stats['last_update']['updatedCount'] == 1

    def test_statistics_without_data(self):
        assert self.store.statistics("acme") == {'has_data': False}

        self._write_raw("broken", "{")
        stats = self.store.statistics("broken")
        assert stats['has_data'] is False
        assert 'error' in stats

    def test_list_sources(self):
        self.store.save(dataset("beta"))
        self.store.save(dataset("acme"))
        self.store.source_dir("empty").mkdir(parents=True)

        assert self.store.list_sources() == ["acme", "beta"]
