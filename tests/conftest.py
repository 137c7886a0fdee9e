"""Shared fixtures for repository, fetcher and cache tests."""

import json
import os
import time
from unittest.mock import Mock

import pytest

from common.http_client import HttpResponse, HttpTransport
from registry.asset.cache import FileCache

LAST_MODIFIED = "Wed, 21 Oct 2015 07:28:00 GMT"


def make_document(name, versions, **fields):
    """Registry document with a minimal entry per version."""
    doc = {
        "name": name,
        "versions": {
            v: {
                "name": name,
                "version": v,
                "dist": {"shasum": f"sha-{v}", "tarball": f"https://registry.example/{name}/-/{v}.tgz"},
            }
            for v in versions
        },
    }
    doc.update(fields)
    return doc


def json_response(data, status=200, headers=None):
    return HttpResponse(status, headers or {}, json.dumps(data))


def write_cache(cache, key, data, age=0):
    """Write a cache entry and backdate it by ``age`` seconds."""
    cache.write(key, json.dumps(data))
    if age:
        path = os.path.join(cache.root, key)
        past = time.time() - age
        os.utime(path, (past, past))


@pytest.fixture
def cache(tmp_path):
    """Writable file cache in a temporary directory."""
    return FileCache(str(tmp_path / "cache"))


@pytest.fixture
def transport():
    """Transport double; configure ``get.return_value`` or ``get.side_effect``."""
    return Mock(spec=HttpTransport)


@pytest.fixture
def no_sleep():
    return Mock()
