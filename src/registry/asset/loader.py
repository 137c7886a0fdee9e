"""Turns version records into package objects."""

from __future__ import annotations

from typing import Optional

from versioning.semver import normalize_branch_alias

from .models import AliasPackage, AssetPackage, BasePackage, VersionRecord


def get_branch_alias(record: VersionRecord) -> Optional[str]:
    """Normalized alias declared under ``extra.branch-alias`` for this version."""
    aliases = record.extra.get("branch-alias")
    if not isinstance(aliases, dict):
        return None
    alias = aliases.get(record.version)
    if not alias:
        return None
    normalized = normalize_branch_alias(alias)
    if normalized is None or normalized == record.version_normalized:
        return None
    return normalized


def load_package(record: VersionRecord) -> BasePackage:
    """Build the package for ``record``; aliased versions come back wrapped."""
    alias = get_branch_alias(record)
    package = AssetPackage(record, branch_alias=alias)
    if alias is None:
        return package
    pretty = record.extra["branch-alias"][record.version]
    return AliasPackage(package, alias, pretty)
