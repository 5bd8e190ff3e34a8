"""
Tests for configuration loading
"""

import json

import pytest

from pricewatch.crawl.config import CrawlConfig, load_config
from pricewatch.crawl.exceptions import ConfigurationError

ENV_VARS = (
    "PRICEWATCH_CONFIG",
    "PRICEWATCH_STORAGE_DIR",
    "PRICEWATCH_DEBUG",
    "PRICEWATCH_MAX_CONCURRENT",
    "PRICEWATCH_LOG_LEVEL",
)

CONFIG = {
    "settings": {"max_concurrent": 2, "storage_dir": "data"},
    "sources": [
        {
            "id": "acme",
            "displayName": "Acme Mobile",
            "crawlUrl": "https://www.example.test/pricing/",
            "aliases": ["acme-mobile"],
            "hashDetection": True,
            "targets": [{"name": "Tariffs", "keywords": ["tariff"]}],
        },
        {"id": "beta", "crawlUrl": "https://beta.example.test/"},
    ],
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path, data):
    path = tmp_path / "sources.json"
    path.write_text(json.dumps(data), encoding='utf-8')
    return str(path)


class TestLoadConfig:
    def test_loads_settings_and_sources(self, tmp_path):
        app_config = load_config(write_config(tmp_path, CONFIG))

        assert app_config.settings.max_concurrent == 2
        assert str(app_config.settings.datasets_dir).replace("\\", "/") == "data/datasets"
        assert [s.source_id for s in app_config.sources] == ["acme", "beta"]

        acme = app_config.sources[0]
        assert acme.name == "Acme Mobile"
        assert acme.hash_detection is True
        assert acme.adapter == "html-links"
        assert acme.targets[0]["name"] == "Tariffs"

    def test_source_lookup_by_alias(self, tmp_path):
        app_config = load_config(write_config(tmp_path, CONFIG))

        assert app_config.get_source("acme-mobile").source_id == "acme"
        assert app_config.get_source("beta").name == "beta"
        assert app_config.get_source("gamma") is None

    def test_path_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PRICEWATCH_CONFIG", write_config(tmp_path, CONFIG))

        assert len(load_config().sources) == 2

    def test_environment_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PRICEWATCH_STORAGE_DIR", str(tmp_path / "store"))
        monkeypatch.setenv("PRICEWATCH_DEBUG", "true")
        monkeypatch.setenv("PRICEWATCH_MAX_CONCURRENT", "7")

        settings = load_config(write_config(tmp_path, CONFIG)).settings

        assert settings.storage_dir == str(tmp_path / "store")
        assert settings.debug is True
        assert settings.max_concurrent == 7

    def test_invalid_max_concurrent_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PRICEWATCH_MAX_CONCURRENT", "many")

        with pytest.raises(ConfigurationError):
            load_config(write_config(tmp_path, CONFIG))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "sources.json"
        path.write_text("{", encoding='utf-8')

        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_duplicate_source_ids(self, tmp_path):
        data = {"sources": [{"id": "acme"}, {"id": "acme"}]}

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(write_config(tmp_path, data))

        assert "Duplicate" in str(exc_info.value)

    def test_source_without_id(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(write_config(tmp_path, {"sources": [{"crawlUrl": "https://x.test"}]}))

    def test_unknown_setting(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(write_config(tmp_path, {"settings": {"max_conccurent": 3}}))


class TestCrawlConfig:
    def test_defaults_are_valid(self):
        CrawlConfig().validate()

    @pytest.mark.parametrize("kwargs", [
        {"max_concurrent": 0},
        {"validation_policy": "strict"},
        {"extract_timeout": 0},
    ])
    def test_rejects_invalid_settings(self, kwargs):
        with pytest.raises(ConfigurationError):
            CrawlConfig(**kwargs).validate()
