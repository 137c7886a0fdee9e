"""Stability and constraint acceptance for a single package version."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Union

from constants import Stability
from versioning.semver import Constraint, matches, parse_stability, stability_from_name

StabilityLike = Union[str, int, Stability]


def _rank(value: StabilityLike) -> int:
    if isinstance(value, Stability):
        return value.value
    if isinstance(value, int):
        return value
    return stability_from_name(value).value


def is_package_acceptable(
    acceptable_stabilities: Iterable[StabilityLike],
    stability_flags: Mapping[str, StabilityLike],
    names: Iterable[str],
    stability: Stability,
) -> bool:
    """Decide whether a version of the given stability may be used.

    A per-package flag overrides the global set: it admits every tier at
    least as stable as the flag.
    """
    allowed = {_rank(s) for s in acceptable_stabilities}
    for name in names:
        if name in stability_flags:
            return stability.value <= _rank(stability_flags[name])
        if stability.value in allowed:
            return True
    return False


def is_version_acceptable(
    constraint: Constraint,
    name: str,
    version_normalized: str,
    branch_alias: Optional[str] = None,
    acceptable_stabilities: Optional[Iterable[StabilityLike]] = None,
    stability_flags: Optional[Mapping[str, StabilityLike]] = None,
) -> bool:
    """Return True if the version or its branch alias passes both checks.

    The stability check only applies when both ``acceptable_stabilities`` and
    ``stability_flags`` are given; a None constraint matches everything.
    """
    candidates = [version_normalized]
    if branch_alias:
        candidates.append(branch_alias)

    for version in candidates:
        if (
            acceptable_stabilities is not None
            and stability_flags is not None
            and not is_package_acceptable(
                acceptable_stabilities, stability_flags, [name], parse_stability(version)
            )
        ):
            continue
        if constraint is not None and not matches(constraint, version):
            continue
        return True
    return False
