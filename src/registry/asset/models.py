"""Data models for converted npm metadata and resolved packages."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from constants import Constants
from common.errors import InvalidArgumentError
from registry.asset.names import pretty_name


@dataclass
class Dist:
    """Archive location of one published version."""

    checksum: str = ""
    archive_type: str = ""
    url: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"shasum": self.checksum, "type": self.archive_type, "url": self.url}


@dataclass
class VersionRecord:
    """One version of an npm package in resolver-facing form."""

    name: str
    version: str
    version_normalized: str
    type: str = Constants.PACKAGE_TYPE
    description: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    homepage: Optional[str] = None
    license: Optional[Any] = None
    time: Optional[str] = None
    authors: List[Any] = field(default_factory=list)
    contributors: List[Any] = field(default_factory=list)
    bin: Optional[Any] = None
    dist: Dist = field(default_factory=Dist)
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        data = asdict(self)
        data["dist"] = self.dist.to_dict()
        return data


class BasePackage:
    """Common surface of packages held by a ``PackageStore``."""

    def __init__(self, name: str, version: str, pretty_version: str) -> None:
        self.name = name.lower()
        self.version = version
        self.pretty_version = pretty_version
        self.repository = None

    @property
    def unique_name(self) -> str:
        return f"{self.name}-{self.version}"

    @property
    def branch_alias(self) -> Optional[str]:
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.unique_name!r})"


class AssetPackage(BasePackage):
    """A ``VersionRecord`` wrapped as a resolvable package."""

    def __init__(self, record: VersionRecord, branch_alias: Optional[str] = None) -> None:
        super().__init__(record.name, record.version_normalized, record.version)
        self.record = record
        self._branch_alias = branch_alias

    @property
    def branch_alias(self) -> Optional[str]:
        """Normalized branch alias version, if the record declares one."""
        return self._branch_alias

    @property
    def pretty_name(self) -> str:
        return pretty_name(self.name)

    def to_dict(self) -> Dict[str, Any]:
        return self.record.to_dict()


class AliasPackage(BasePackage):
    """A package standing in for another one under a different version."""

    def __init__(self, alias_of: BasePackage, version: str, pretty_version: str) -> None:
        super().__init__(alias_of.name, version, pretty_version)
        self.alias_of = alias_of

    @property
    def record(self) -> VersionRecord:
        target = self.alias_of
        seen = {id(self)}
        while isinstance(target, AliasPackage) and id(target) not in seen:
            seen.add(id(target))
            target = target.alias_of
        if isinstance(target, AliasPackage):
            raise InvalidArgumentError(f"Cyclic alias chain at {self.unique_name}")
        return target.record

    @property
    def pretty_name(self) -> str:
        return self.alias_of.pretty_name

    def to_dict(self) -> Dict[str, Any]:
        data = self.record.to_dict()
        data["version"] = self.pretty_version
        data["version_normalized"] = self.version
        data["alias_of"] = self.alias_of.pretty_version
        return data


@dataclass
class LoadResult:
    """Outcome of one batch request."""

    names_found: Dict[str, bool] = field(default_factory=dict)
    packages: List[BasePackage] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "namesFound": sorted(self.names_found),
            "packages": [pkg.to_dict() for pkg in self.packages],
        }
