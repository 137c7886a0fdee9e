"""File-backed metadata cache, one file per registry document."""

from __future__ import annotations

import logging
import os
import re
import tempfile
import time
from typing import Optional

from constants import Constants
from common.logging_utils import safe_url

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(f"[^{Constants.CACHE_KEY_ALLOWED}]", re.IGNORECASE)
_ROOT_RE = re.compile(r"[^a-z0-9.]", re.IGNORECASE)


def cache_key(registry_type: str, bare_name: str) -> str:
    """Key of the cached document for one package: ``npm-<bare name>.json``."""
    return f"{registry_type}-{bare_name.replace(Constants.SCOPE_MARKER, '')}.json"


def cache_root_for(base_dir: str, url: str) -> str:
    """Per-registry cache directory derived from the registry URL."""
    return os.path.join(base_dir, _ROOT_RE.sub("-", safe_url(url)))


class FileCache:
    """Keyed store of raw documents with age queries and a read-only mode."""

    def __init__(self, root: str, read_only: bool = False) -> None:
        self._root = root.rstrip("/\\") + os.sep
        self._read_only = read_only

    @property
    def root(self) -> str:
        return self._root

    def is_read_only(self) -> bool:
        return self._read_only

    def set_read_only(self, read_only: bool) -> None:
        self._read_only = read_only

    def _path(self, key: str) -> str:
        return os.path.join(self._root, _KEY_RE.sub("-", key))

    def read(self, key: str) -> Optional[str]:
        """Cached payload for ``key``, or None when absent or unreadable."""
        path = self._path(key)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                return fh.read()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Cannot read cache entry %s: %s", path, exc)
            return None

    def write(self, key: str, contents: str) -> bool:
        """Store ``contents`` under ``key``; a no-op returning False when read-only."""
        if self._read_only:
            return False
        path = self._path(key)
        try:
            os.makedirs(self._root, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._root, prefix=".tmp-")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(contents)
            os.replace(tmp_path, path)
        except OSError as exc:
            logger.warning("Cannot write cache entry %s: %s", path, exc)
            return False
        return True

    def age(self, key: str) -> Optional[float]:
        """Seconds since ``key`` was last written, or None when absent."""
        try:
            mtime = os.path.getmtime(self._path(key))
        except OSError:
            return None
        return max(0.0, time.time() - mtime)
