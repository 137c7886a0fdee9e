"""Tests for repository configuration loading."""

import pytest

from constants import Constants
from common.errors import ConfigError
from registry.asset.config import RepositoryConfig, load_config, parse_config


def _write(tmp_path, text):
    path = tmp_path / "npm-asset.yml"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestRepositoryConfig:
    """Per-repository settings."""

    def test_defaults(self):
        config = RepositoryConfig.from_mapping()
        assert config.url == Constants.REGISTRY_URL_NPM
        assert config.lazy_load_url == Constants.LAZY_LOAD_URL_NPM
        assert config.search_url == Constants.SEARCH_URL_NPM
        assert config.options == {}

    def test_overrides(self, tmp_path):
        config = RepositoryConfig.from_mapping({
            "url": "https://npm.example.com/",
            "lazy-load-url": "https://npm.example.com/%package%",
            "search-url": None,
            "options": {"headers": {"Authorization": "Bearer t"}},
            "cache-read-only": True,
            "cache-dir": str(tmp_path),
        })
        assert config.url == "https://npm.example.com"
        assert config.lazy_load_url == "https://npm.example.com/%package%"
        assert config.search_url is None
        assert config.options["headers"]["Authorization"] == "Bearer t"
        assert config.cache_read_only is True
        assert config.cache_dir == str(tmp_path)
        assert config.raw["url"] == "https://npm.example.com/"

    def test_options_must_be_mapping(self):
        with pytest.raises(ConfigError):
            RepositoryConfig.from_mapping({"options": ["nope"]})


class TestLoadConfig:
    """YAML config files."""

    def test_no_path_gives_default_repository(self):
        config = load_config(None)
        assert config.enabled
        assert [r.url for r in config.repositories] == [Constants.REGISTRY_URL_NPM]

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(str(tmp_path / "absent.yml"))
        assert len(config.repositories) == 1

    def test_listed_repositories_follow_default(self, tmp_path):
        path = _write(tmp_path, (
            "npm-asset:\n"
            "  enabled: true\n"
            "  repositories:\n"
            "    - type: npm\n"
            "      url: https://npm.example.com\n"
            "      lazy-load-url: https://npm.example.com/%package%\n"
        ))

        config = load_config(path)

        assert [r.url for r in config.repositories] == [Constants.REGISTRY_URL_NPM, "https://npm.example.com"]
        assert "type" not in config.repositories[1].raw

    def test_alternate_section_name(self, tmp_path):
        path = _write(tmp_path, "ppm:\n  repositories:\n    - url: https://npm.example.com\n")
        assert len(load_config(path).repositories) == 2

    def test_disabled(self, tmp_path):
        config = load_config(_write(tmp_path, "npm-asset:\n  enabled: false\n"))
        assert not config.enabled
        assert config.repositories == []

    def test_empty_file(self, tmp_path):
        assert load_config(_write(tmp_path, "")).enabled

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(_write(tmp_path, "npm-asset: [unclosed\n"))

    @pytest.mark.parametrize("data", [
        ["not", "a", "mapping"],
        {"npm-asset": "yes"},
        {"npm-asset": {"repositories": "https://npm.example.com"}},
        {"npm-asset": {"repositories": ["https://npm.example.com"]}},
    ])
    def test_invalid_shapes(self, data):
        with pytest.raises(ConfigError):
            parse_config(data)
