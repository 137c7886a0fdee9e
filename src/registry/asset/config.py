"""Repository configuration.

A repository is configured from a plain mapping (``url``, ``lazy-load-url``,
``search-url``, ``options``, ``cache-read-only``, ``cache-dir``). A YAML file
can enable the asset repositories and list extra ones::

    npm-asset:
      enabled: true
      repositories:
        - type: npm
          url: https://npm.example.com
          lazy-load-url: https://npm.example.com/%package%
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import yaml

from constants import Constants
from common.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class RepositoryConfig:
    """Settings for one npm asset repository."""

    url: str = Constants.REGISTRY_URL_NPM
    lazy_load_url: str = Constants.LAZY_LOAD_URL_NPM
    search_url: Optional[str] = Constants.SEARCH_URL_NPM
    options: Dict[str, Any] = field(default_factory=dict)
    cache_read_only: bool = Constants.CACHE_READ_ONLY
    cache_dir: str = Constants.CACHE_DIR
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]] = None) -> "RepositoryConfig":
        """Build a config from a host-supplied repo-config mapping."""
        data = dict(data or {})
        options = data.get("options") or {}
        if not isinstance(options, dict):
            raise ConfigError("Repository 'options' must be a mapping")
        config = cls(options=dict(options), raw=data)
        if data.get("url"):
            config.url = str(data["url"]).rstrip("/")
        if data.get("lazy-load-url"):
            config.lazy_load_url = str(data["lazy-load-url"])
        if "search-url" in data:
            config.search_url = str(data["search-url"]) if data["search-url"] else None
        if "cache-read-only" in data:
            config.cache_read_only = bool(data["cache-read-only"])
        if data.get("cache-dir"):
            config.cache_dir = os.path.expanduser(str(data["cache-dir"]))
        return config


@dataclass
class AssetConfig:
    """Top-level switch plus the repositories to register."""

    enabled: bool = True
    repositories: List[RepositoryConfig] = field(default_factory=list)


def _section(data: Mapping[str, Any]) -> Mapping[str, Any]:
    for name in Constants.CONFIG_SECTIONS:
        section = data.get(name)
        if section is not None:
            if not isinstance(section, dict):
                raise ConfigError(f"Config section '{name}' must be a mapping")
            return section
    return {}


def parse_config(data: Optional[Mapping[str, Any]]) -> AssetConfig:
    """Build an ``AssetConfig`` from already-loaded config data.

    The default npmjs.org repository is always first; listed repositories
    follow with their ``type`` key dropped.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Config document must be a mapping")
    section = _section(data)
    enabled = section.get("enabled", True)
    if not enabled:
        return AssetConfig(enabled=False)

    repositories = [RepositoryConfig.from_mapping()]
    listed = section.get("repositories") or []
    if not isinstance(listed, list):
        raise ConfigError("'repositories' must be a list")
    for entry in listed:
        if not isinstance(entry, dict):
            raise ConfigError("Each repository entry must be a mapping")
        entry = {k: v for k, v in entry.items() if k != "type"}
        repositories.append(RepositoryConfig.from_mapping(entry))
    return AssetConfig(enabled=True, repositories=repositories)


def load_config(path: Optional[str]) -> AssetConfig:
    """Load an ``AssetConfig`` from a YAML file.

    A missing file yields the defaults.

    Raises:
        ConfigError: if the file is unreadable or not valid YAML.
    """
    if not path:
        return parse_config({})
    if not os.path.isfile(path):
        logger.warning("Config file not found: %s", path)
        return parse_config({})
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    return parse_config(data)
