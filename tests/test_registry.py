"""
Tests for the change registry
"""

import asyncio
import json
import shutil
import tempfile
from pathlib import Path

import pytest

from pricewatch.crawl.registry import HASHES_FILENAME, URLS_FILENAME, ChangeRegistry


class TestChangeRegistry:
    """Test URL and hash persistence"""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.registry = ChangeRegistry(self.temp_dir)

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _read(self, filename):
        with open(Path(self.temp_dir) / filename, encoding="utf-8") as f:
            return json.load(f)

    def test_unknown_source_has_no_urls(self):
        assert self.registry.stored_urls("acme") == []
        assert self.registry.stored_hashes("acme") == {}

    @pytest.mark.asyncio
    async def test_single_url_stored_as_string(self):
        await self.registry.update("acme", ["https://acme.test/a.pdf"])

        assert self._read(URLS_FILENAME) == {"acme": "https://acme.test/a.pdf"}
        assert self.registry.stored_urls("acme") == ["https://acme.test/a.pdf"]

    @pytest.mark.asyncio
    async def test_multiple_urls_stored_as_list(self):
        await self.registry.update("acme", ["https://acme.test/a.pdf", "https://acme.test/b.pdf"])

        assert self._read(URLS_FILENAME) == {"acme": ["https://acme.test/a.pdf", "https://acme.test/b.pdf"]}

    @pytest.mark.asyncio
    async def test_hashes_persisted_per_source(self):
        await self.registry.update("acme", ["https://acme.test/a.pdf"], {"https://acme.test/a.pdf": "abc"})

        assert self._read(HASHES_FILENAME) == {"acme": {"https://acme.test/a.pdf": "abc"}}
        assert self.registry.stored_hashes("acme") == {"https://acme.test/a.pdf": "abc"}

    @pytest.mark.asyncio
    async def test_concurrent_updates_do_not_lose_entries(self):
        sources = [f"source{i}" for i in range(20)]

        await asyncio.gather(*(
            self.registry.update(source, [f"https://{source}.test/doc.pdf"]) for source in sources
        ))

        stored = self._read(URLS_FILENAME)
        assert sorted(stored) == sorted(sources)

    def test_corrupt_registry_treated_as_empty(self):
        (Path(self.temp_dir) / URLS_FILENAME).write_text("{broken", encoding="utf-8")

        assert self.registry.stored_urls("acme") == []

    @pytest.mark.asyncio
    async def test_summary(self):
        await self.registry.update("acme", ["https://acme.test/a.pdf"])
        await self.registry.update("beta", ["https://beta.test/a.pdf", "https://beta.test/b.pdf"])

        summary = self.registry.summary()

        assert summary["total_sources"] == 2
        assert summary["total_documents"] == 3
        assert summary["sources"]["beta"]["documents"] == 2
