"""Mapping between npm package names and asset package identifiers.

Scoped npm names (``@scope/name``) are flattened to ``scope--name`` so they
fit the single-slash ``vendor/package`` identifier format used by resolvers.
"""
from __future__ import annotations

from constants import Constants

MARKER = Constants.SCOPE_MARKER
SEPARATOR = Constants.SCOPE_SEPARATOR
JOIN = Constants.SCOPE_JOIN
PREFIX = Constants.ASSET_PREFIX


def convert_name(name: str) -> str:
    """``@scope/name`` -> ``scope--name``; anything else is returned unchanged."""
    if name.startswith(MARKER) and SEPARATOR in name:
        return name.replace(SEPARATOR, JOIN)[len(MARKER):]
    return name


def revert_name(name: str) -> str:
    """``scope--name`` -> ``@scope/name``; exact inverse of ``convert_name``."""
    if JOIN in name:
        return MARKER + name.replace(JOIN, SEPARATOR)
    return name


def is_asset_name(name: str) -> bool:
    return isinstance(name, str) and name.startswith(PREFIX)


def asset_name(npm_name: str) -> str:
    """Resolver-facing identifier for an npm package name."""
    return PREFIX + convert_name(npm_name)


def canonical_name(name: str) -> str:
    """Normalize a requested asset name to its encoded, lower-case identifier.

    Accepts both ``npm-asset/scope--name`` and ``npm-asset/@scope/name``.
    """
    bare = name[len(PREFIX):] if name.startswith(PREFIX) else name
    return (PREFIX + convert_name(bare)).lower()


def bare_name(name: str) -> str:
    """Registry name with the asset prefix and scope marker removed."""
    return canonical_name(name)[len(PREFIX):]


def npm_name(name: str) -> str:
    """Real npm name (``@scope/name``) behind an asset identifier."""
    return revert_name(bare_name(name))


def pretty_name(name: str) -> str:
    """Asset identifier spelled with the real npm name, for display."""
    return PREFIX + npm_name(name)
