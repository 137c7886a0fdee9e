"""Conversion of raw npm registry documents into version records.

Field precedence for every copied attribute is: the version entry, then the
package document, then an empty default of the right type.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from constants import Constants
from common.errors import MalformedDocumentError
from versioning.semver import UnparsableVersionError, normalize

from .models import Dist, VersionRecord
from .names import asset_name, convert_name

logger = logging.getLogger(__name__)

_MISSING = object()


def _first(sources: Sequence[Mapping[str, Any]], key: str, default: Any = None) -> Any:
    """Value of ``key`` from the first mapping that has a non-null one."""
    for source in sources:
        value = source.get(key, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    return default


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _dist(version_data: Mapping[str, Any]) -> Dist:
    dist = version_data.get("dist")
    if not isinstance(dist, dict):
        dist = {}
    tarball = dist.get("tarball")
    return Dist(
        checksum=dist.get("shasum") or "",
        archive_type="tar" if tarball else "",
        url=tarball or "",
    )


def convert_package(document: Mapping[str, Any]) -> List[VersionRecord]:
    """Convert one registry document into zero or more version records.

    Versions that do not normalize are dropped; their siblings are kept.

    Raises:
        MalformedDocumentError: if the document has no name or no versions map.
    """
    if not isinstance(document, dict):
        raise MalformedDocumentError(f"Registry document must be an object, got {type(document).__name__}")
    npm_name = document.get("name")
    if not isinstance(npm_name, str) or not npm_name:
        raise MalformedDocumentError("Registry document has no package name")
    versions = document.get("versions")
    if versions is None:
        versions = {}
    if not isinstance(versions, dict):
        raise MalformedDocumentError(f"'versions' of {npm_name} must be an object")

    times = document.get("time")
    if not isinstance(times, dict):
        times = {}
    name = asset_name(npm_name)

    results: List[VersionRecord] = []
    for version, data in versions.items():
        try:
            normalized = normalize(version)
        except UnparsableVersionError:
            logger.debug("Skipping unparsable version %s of %s", version, npm_name)
            continue
        if not isinstance(data, dict):
            logger.warning("Skipping malformed version entry %s of %s", version, npm_name)
            continue
        sources = (data, document)
        contributors = _first(sources, "contributors")
        if contributors is None:
            contributors = document.get("maintainers")
        extra = data.get("extra")
        results.append(
            VersionRecord(
                name=name,
                version=version,
                version_normalized=normalized,
                type=Constants.PACKAGE_TYPE,
                description=_first(sources, "description"),
                keywords=_as_list(_first(sources, "keywords", [])),
                homepage=_first(sources, "homepage"),
                license=_first(sources, "license"),
                time=times.get(version),
                authors=_as_list(_first(sources, "author", [])),
                contributors=_as_list(contributors),
                bin=data.get("bin"),
                dist=_dist(data),
                extra=extra if isinstance(extra, dict) else {},
            )
        )
    return results


def convert_result_item(item: Mapping[str, Any]) -> Dict[str, Optional[Any]]:
    """Convert one search hit into the resolver's search-result shape."""
    return {
        "name": Constants.ASSET_PREFIX + convert_name(item["name"]),
        "description": item.get("description"),
        "abandoned": False,
    }
