"""In-memory collection of resolved packages."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from common.errors import InvalidArgumentError
from versioning.semver import Constraint, matches, parse_constraint

from .models import AliasPackage, BasePackage

logger = logging.getLogger(__name__)


class PackageStore:
    """Owns packages for the lifetime of a repository instance.

    Packages are keyed by ``unique_name`` (name plus normalized version) and
    never mutated after insertion, apart from ownership assignment.
    """

    def __init__(self) -> None:
        self._packages: List[BasePackage] = []
        self._package_map: Dict[str, BasePackage] = {}

    def add(self, package: BasePackage) -> None:
        """Register ``package`` and, for aliases, the packages they point at.

        Alias targets are only registered while they have no owner, which also
        ends the walk on cyclic alias chains.

        Raises:
            InvalidArgumentError: if ``package`` is not a ``BasePackage``.
        """
        if not isinstance(package, BasePackage):
            raise InvalidArgumentError("Only subclasses of BasePackage are supported")

        self._register(package)
        visited = {id(package)}
        current = package
        while isinstance(current, AliasPackage):
            target = current.alias_of
            if id(target) in visited or target.repository is not None:
                break
            visited.add(id(target))
            self._register(target)
            current = target

    def _register(self, package: BasePackage) -> None:
        if package.unique_name in self._package_map:
            logger.debug("Already registered %s", package.unique_name)
            return
        package.repository = self
        self._packages.append(package)
        self._package_map[package.unique_name] = package
        logger.debug("Registered %s", package.unique_name)

    def contains(self, package: BasePackage) -> bool:
        return package.unique_name in self._package_map

    __contains__ = contains

    @property
    def packages(self) -> List[BasePackage]:
        return list(self._packages)

    def __len__(self) -> int:
        return len(self._packages)

    def __iter__(self):
        return iter(list(self._packages))

    def find_one(self, name: str, constraint: Constraint) -> Optional[BasePackage]:
        """First package named ``name`` whose version satisfies ``constraint``."""
        for package in self._iter_matching(name, constraint):
            return package
        return None

    def find_all(self, name: str, constraint: Constraint = None) -> List[BasePackage]:
        """All packages named ``name`` whose version satisfies ``constraint``."""
        return list(self._iter_matching(name, constraint))

    def _iter_matching(self, name: str, constraint: Constraint):
        name = name.lower()
        spec = parse_constraint(constraint)
        for package in list(self._packages):
            if package.name != name:
                continue
            if spec is None or matches(spec, package.version):
                yield package
