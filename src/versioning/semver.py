"""Version normalization, stability tiers and constraint matching.

Thin layer over ``semantic_version`` so the rest of the code never touches
its parsing quirks directly.
"""
from __future__ import annotations

import re
from typing import Optional, Union

import semantic_version

from constants import Stability
from common.errors import InvalidArgumentError

# Upper bound used when a branch alias leaves a component open ("1.0.x-dev").
ALIAS_WILDCARD = "9999999"

_STABILITY_TAGS = {
    "dev": Stability.DEV,
    "alpha": Stability.ALPHA,
    "a": Stability.ALPHA,
    "beta": Stability.BETA,
    "b": Stability.BETA,
    "rc": Stability.RC,
    "c": Stability.RC,
    "pre": Stability.RC,
    "stable": Stability.STABLE,
    "patch": Stability.STABLE,
    "pl": Stability.STABLE,
    "p": Stability.STABLE,
}
_TAG_RE = re.compile(r"^([a-z]+)")
_ALIAS_RE = re.compile(r"^v?(\d+)(?:\.(\d+|x))?(?:\.(\d+|x))?\.x-dev$", re.IGNORECASE)

Constraint = Union[str, semantic_version.NpmSpec, None]


class UnparsableVersionError(ValueError):
    """A version string does not fit the version grammar."""


def parse_version(version: str) -> semantic_version.Version:
    """Parse a registry version, tolerating a leading ``v``/``=`` and short forms."""
    if not isinstance(version, str) or not version.strip():
        raise UnparsableVersionError(f"Empty version: {version!r}")
    text = version.strip().lstrip("=").strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    try:
        return semantic_version.Version(text)
    except ValueError:
        pass
    try:
        return semantic_version.Version.coerce(text)
    except ValueError as exc:
        raise UnparsableVersionError(f"Invalid version string: {version!r}") from exc


def normalize(version: str) -> str:
    """Return the canonical form of ``version``.

    Raises:
        UnparsableVersionError: if the version cannot be parsed.
    """
    return str(parse_version(version))


def parse_stability(version: str) -> Stability:
    """Classify a version into a stability tier.

    Unknown pre-release tags are treated as dev.
    """
    try:
        parsed = parse_version(version)
    except UnparsableVersionError:
        return Stability.DEV
    if not parsed.prerelease:
        return Stability.STABLE
    tokens = [str(token).lower() for token in parsed.prerelease]
    if "dev" in tokens:
        return Stability.DEV
    match = _TAG_RE.match(tokens[0])
    if not match:
        return Stability.DEV
    return _STABILITY_TAGS.get(match.group(1), Stability.DEV)


def stability_from_name(name: str) -> Stability:
    """Map a stability label such as ``"stable"`` or ``"RC"`` to its tier."""
    try:
        return Stability[str(name).strip().upper()]
    except KeyError as exc:
        raise InvalidArgumentError(f"Unknown stability: {name!r}") from exc


def normalize_branch_alias(alias: str) -> Optional[str]:
    """Normalize a branch alias like ``1.0.x-dev``; None when it is not usable."""
    if not isinstance(alias, str):
        return None
    match = _ALIAS_RE.match(alias.strip())
    if match:
        parts = [p if p is not None else "x" for p in match.groups()] + ["x"]
        numbers = [ALIAS_WILDCARD if p.lower() == "x" else p for p in parts[:3]]
        return f"{'.'.join(numbers)}-dev"
    try:
        return normalize(alias)
    except UnparsableVersionError:
        return None


def parse_constraint(constraint: Constraint) -> Optional[semantic_version.NpmSpec]:
    """Parse an npm-style constraint; None or blank means "any version".

    Comma-separated ranges are read as a conjunction.

    Raises:
        InvalidArgumentError: if the constraint cannot be parsed.
    """
    if constraint is None or isinstance(constraint, semantic_version.NpmSpec):
        return constraint
    text = str(constraint).strip()
    if not text:
        return None
    text = re.sub(r"\s*,\s*", " ", text)
    try:
        return semantic_version.NpmSpec(text)
    except ValueError as exc:
        raise InvalidArgumentError(f"Invalid version constraint: {constraint!r}") from exc


def matches(constraint: Constraint, version: str) -> bool:
    """Return True when ``version`` satisfies ``constraint``.

    Unparsable versions never match a concrete constraint.
    """
    spec = parse_constraint(constraint)
    if spec is None:
        return True
    try:
        return spec.match(parse_version(version))
    except UnparsableVersionError:
        return False
