"""npm registry exposed as a repository of asset packages.

``load_packages`` is the entry point used by a dependency resolver: for each
requested ``npm-asset/*`` name it loads the registry document once per
session (cache first, then revalidation or download), converts it into
packages, and returns the versions acceptable for the requested constraint.
"""
from __future__ import annotations

import json
import logging
import time
import urllib.parse
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from constants import Constants, SearchMode
from common.errors import InvalidArgumentError, MalformedDocumentError
from common.http_client import HttpTransport
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from versioning.semver import Constraint, parse_constraint

from .cache import FileCache, cache_key, cache_root_for
from .config import RepositoryConfig
from .converter import convert_package, convert_result_item
from .fetcher import FetchHooks, MetadataFetcher
from .filter import StabilityLike, is_version_acceptable
from .loader import load_package
from .models import BasePackage, LoadResult
from .names import bare_name, canonical_name, is_asset_name, npm_name
from .store import PackageStore

logger = logging.getLogger(__name__)

# Errors that abort one requested name while the rest of the batch continues.
RECOVERABLE_ERRORS = (MalformedDocumentError, json.JSONDecodeError, InvalidArgumentError)


@dataclass
class NameResult:
    """Acceptable packages of one requested name, or the error that skipped it."""

    name: str
    constraint: Constraint = None
    error: Optional[Exception] = None
    packages: List[BasePackage] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


class NpmAssetRepository:
    """Lazily loaded npm metadata with a revalidating on-disk cache.

    Not thread-safe: the loaded-name map and package store are mutated in
    place.
    """

    def __init__(
        self,
        config: Optional[RepositoryConfig] = None,
        transport: Optional[HttpTransport] = None,
        cache: Optional[FileCache] = None,
        hooks: Optional[FetchHooks] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or RepositoryConfig()
        if cache is None:
            cache = FileCache(cache_root_for(self.config.cache_dir, self.url))
            cache.set_read_only(self.config.cache_read_only)
        self.cache = cache
        self.transport = transport or HttpTransport()
        self.fetcher = MetadataFetcher(
            self.transport,
            self.cache,
            options=self.config.options,
            hooks=hooks,
            sleep=sleep,
        )
        self.store = PackageStore()
        self._package_map: Dict[str, str] = {}

    @property
    def url(self) -> str:
        return self.config.url

    @property
    def lazy_load_url(self) -> str:
        return self.config.lazy_load_url

    @property
    def search_url(self) -> Optional[str]:
        return self.config.search_url

    @property
    def repo_name(self) -> str:
        return f"npmjs.org ({self.url})"

    @property
    def repo_type(self) -> str:
        return Constants.REGISTRY_TYPE

    def get_repo_config(self) -> Dict[str, Any]:
        return self.config.raw

    def count(self) -> int:
        return len(self.store)

    __len__ = count

    def get_packages(self) -> List[BasePackage]:
        return self.store.packages

    def has_package(self, package: BasePackage) -> bool:
        return self.store.contains(package)

    def add_package(self, package: BasePackage) -> None:
        self.store.add(package)

    def find_package(self, name: str, constraint: Constraint) -> Optional[BasePackage]:
        return self.store.find_one(name, constraint)

    def find_packages(self, name: str, constraint: Constraint = None) -> List[BasePackage]:
        return self.store.find_all(name, constraint)

    def get_providers(self, package_name: str) -> List[Dict[str, Any]]:
        """npm has no virtual packages, so nothing ever provides another name."""
        return []

    def is_loaded(self, name: str) -> bool:
        return canonical_name(name) in self._package_map

    def metadata_url(self, name: str) -> str:
        """Registry URL of the document behind an asset name.

        ``%package%`` takes the bare name (``scope--name``); ``%name%`` takes
        the real npm name with its slash escaped.
        """
        url = self.lazy_load_url.replace(Constants.PACKAGE_PLACEHOLDER, bare_name(name))
        return url.replace(Constants.NAME_PLACEHOLDER, urllib.parse.quote(npm_name(name), safe="@"))

    def load_packages(
        self,
        package_name_map: Mapping[str, Constraint],
        acceptable_stabilities: Optional[Any] = None,
        stability_flags: Optional[Mapping[str, StabilityLike]] = None,
    ) -> LoadResult:
        """Resolve a batch of requested names.

        Names without the asset prefix are ignored. Recoverable failures of
        one name (malformed document, undecodable JSON, invalid argument) skip
        that name only; 404 and security failures propagate.
        """
        result = LoadResult()
        for name, constraint in package_name_map.items():
            if not is_asset_name(name):
                continue

            outcome = self._load_name(name, constraint, acceptable_stabilities, stability_flags)
            if not outcome.ok:
                logger.warning("Skipping %s: %s", name, outcome.error)
                continue

            for package in outcome.packages:
                result.names_found[package.name] = True
                result.packages.append(package)
        return result

    def _load_name(
        self,
        name: str,
        constraint: Constraint,
        acceptable_stabilities: Optional[Any],
        stability_flags: Optional[Mapping[str, StabilityLike]],
    ) -> NameResult:
        canonical = canonical_name(name)
        try:
            spec = parse_constraint(constraint)
            if canonical not in self._package_map:
                self._load_document(canonical)
            matches = [
                package
                for package in self.store.packages
                if package.name == canonical
                and is_version_acceptable(
                    spec,
                    package.name,
                    package.version,
                    package.branch_alias,
                    acceptable_stabilities,
                    stability_flags,
                )
            ]
        except RECOVERABLE_ERRORS as exc:
            return NameResult(canonical, error=exc)
        return NameResult(canonical, spec, packages=matches)

    def _load_document(self, canonical: str) -> None:
        url = self.metadata_url(canonical)
        key = cache_key(self.repo_type, bare_name(canonical))
        data = self._read_document(url, key)
        if isinstance(data, dict):
            data.pop(Constants.LAST_MODIFIED_KEY, None)

        self._package_map[canonical] = url
        for record in convert_package(data):
            self.store.add(load_package(record))

    def _read_document(self, url: str, key: str) -> Any:
        """Pick between the cached copy, a revalidation and a full download."""
        cached = self.cache.read(key)
        if cached:
            try:
                cached_data = json.loads(cached)
            except ValueError as exc:
                logger.warning("Ignoring unreadable cache entry %s: %s", key, exc)
                cached = None
        if cached:
            age = self.cache.age(key)
            if age is not None and age <= Constants.CACHE_TTL_SEC:
                if is_debug_enabled(logger):
                    logger.debug(
                        "Metadata cache hit",
                        extra=extra_context(
                            event="cache_hit",
                            component="repository",
                            target=safe_url(url),
                            age_sec=int(age),
                        )
                    )
                return cached_data
            last_modified = cached_data.get(Constants.LAST_MODIFIED_KEY) if isinstance(cached_data, dict) else None
            if last_modified:
                fresh = self.fetcher.fetch_file_if_last_modified(url, key, last_modified)
                return cached_data if fresh is None else fresh

        return self.fetcher.fetch_file(url, key, store_last_modified=True)

    def search(
        self,
        query: str,
        mode: SearchMode = SearchMode.FULLTEXT,
    ) -> List[Dict[str, Any]]:
        """Search the registry; vendor searches are not supported by npm."""
        if not self.search_url or mode == SearchMode.VENDOR:
            return []
        url = self.search_url.replace(Constants.QUERY_PLACEHOLDER, urllib.parse.quote(query, safe=""))
        data = self.fetcher.fetch_file(url)
        if not isinstance(data, list):
            raise MalformedDocumentError(f"Search response from {safe_url(url)} is not a list")
        return [convert_result_item(item) for item in data if isinstance(item, dict) and item.get("name")]
