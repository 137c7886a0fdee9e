"""npm registry metadata exposed as asset packages."""

from .config import AssetConfig, RepositoryConfig, load_config
from .fetcher import FetchHooks
from .models import AliasPackage, AssetPackage, LoadResult, VersionRecord
from .repository import NpmAssetRepository

__all__ = [
    "AssetConfig",
    "RepositoryConfig",
    "load_config",
    "FetchHooks",
    "AliasPackage",
    "AssetPackage",
    "LoadResult",
    "VersionRecord",
    "NpmAssetRepository",
]
