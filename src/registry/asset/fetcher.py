"""Metadata downloads with cache revalidation and cache fallback.

Two entry points:

* ``fetch_file`` performs a full download with bounded retry on transient
  failures, then falls back to the cached copy (even a stale one) before
  giving up.
* ``fetch_file_if_last_modified`` revalidates a cached copy with
  ``If-Modified-Since`` and fails open onto that copy when the registry
  cannot be reached.

404 and security failures always propagate; they are never retried or
masked by the cache.
"""
from __future__ import annotations

import copy
import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from constants import Constants
from common.errors import (
    MissingResultError,
    NotFoundError,
    SecurityViolationError,
    TransientTransportError,
    TransportError,
)
from common.http_client import HttpResponse, HttpTransport, merge_headers
from common.logging_utils import extra_context, is_debug_enabled, safe_url

from .cache import FileCache

logger = logging.getLogger(__name__)

_HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_MISSING = object()

BeforeFetch = Callable[[str, Dict[str, Any]], Tuple[str, Dict[str, Any]]]
AfterFetch = Callable[[HttpResponse], None]


@dataclass
class FetchHooks:
    """Optional callbacks around each metadata request.

    ``before_fetch`` may rewrite the URL and transport options;
    ``after_fetch`` observes the response.
    """

    before_fetch: Optional[BeforeFetch] = None
    after_fetch: Optional[AfterFetch] = None


def encode_dollar(url: str) -> str:
    """Percent-encode ``$`` in http(s) URLs; some proxies choke on it."""
    if "$" in url and _HTTP_URL_RE.match(url):
        return url.replace("$", "%24")
    return url


class MetadataFetcher:
    """Downloads registry documents through a transport and a cache."""

    def __init__(
        self,
        transport: HttpTransport,
        cache: FileCache,
        options: Optional[Mapping[str, Any]] = None,
        hooks: Optional[FetchHooks] = None,
        max_attempts: int = Constants.HTTP_RETRY_MAX,
        retry_base_delay: float = Constants.HTTP_RETRY_BASE_DELAY_SEC,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.transport = transport
        self.cache = cache
        self.options: Dict[str, Any] = dict(options or {})
        self.hooks = hooks or FetchHooks()
        self.max_attempts = max(1, max_attempts)
        self.retry_base_delay = retry_base_delay
        self._sleep = sleep

    def _prepare(self, url: str) -> Tuple[str, Dict[str, Any]]:
        options = copy.deepcopy(self.options)
        if self.hooks.before_fetch is not None:
            url, options = self.hooks.before_fetch(url, options)
        return url, options

    def _after(self, response: HttpResponse) -> None:
        if self.hooks.after_fetch is not None:
            self.hooks.after_fetch(response)

    def _store(self, cache_key: str, response: HttpResponse, data: Any, store_last_modified: bool) -> None:
        contents = response.body
        if store_last_modified and isinstance(data, dict):
            last_modified = response.header("Last-Modified")
            if last_modified:
                data[Constants.LAST_MODIFIED_KEY] = last_modified
                contents = json.dumps(data, separators=(",", ":"))
        if not self.cache.is_read_only():
            self.cache.write(cache_key, contents)

    def _cached(self, cache_key: Optional[str]) -> Any:
        if not cache_key:
            return _MISSING
        contents = self.cache.read(cache_key)
        if not contents:
            return _MISSING
        try:
            return json.loads(contents)
        except ValueError as exc:
            logger.warning("Ignoring unreadable cache entry %s: %s", cache_key, exc)
            return _MISSING

    def fetch_file_if_last_modified(self, url: str, cache_key: str, last_modified: str) -> Optional[Dict[str, Any]]:
        """Revalidate a cached document.

        Returns:
            The fresh document, or None when the cached copy should be reused:
            the registry answered 304, or the revalidation itself failed.

        Raises:
            NotFoundError: the package is gone.
            SecurityViolationError: the request was refused for security reasons.
        """
        url, options = self._prepare(encode_dollar(url))
        options["headers"] = merge_headers(options.get("headers"), {"If-Modified-Since": last_modified})
        safe_target = safe_url(url)
        try:
            response = self.transport.get(url, options)
            if response.status_code == 304 and response.body == "":
                if is_debug_enabled(logger):
                    logger.debug(
                        "Cached metadata still current",
                        extra=extra_context(
                            event="revalidate",
                            component="fetcher",
                            outcome="not_modified",
                            target=safe_target,
                        )
                    )
                return None
            self._after(response)
            data = response.json()
        except (NotFoundError, SecurityViolationError):
            raise
        except (TransportError, ValueError) as exc:
            logger.warning("Revalidation of %s failed, using cached metadata: %s", safe_target, exc)
            return None
        if not isinstance(data, dict):
            logger.warning("Revalidation of %s returned a non-object body, using cached metadata", safe_target)
            return None

        self._store(cache_key, response, data, True)
        return data

    def fetch_file(self, url: str, cache_key: Optional[str] = None, store_last_modified: bool = False) -> Any:
        """Download and decode a JSON document.

        Transient failures are retried up to ``max_attempts`` times with
        exponential backoff. When every attempt fails, or the body is not
        valid JSON, the cached copy under ``cache_key`` is returned instead;
        without one the last error propagates.

        Raises:
            NotFoundError, SecurityViolationError: immediately, without retry.
            TransientTransportError: retries exhausted and nothing cached.
            json.JSONDecodeError: undecodable body and nothing cached.
            MissingResultError: the loop ended without a result or an error.
        """
        url = encode_dollar(url)
        data: Any = _MISSING

        for attempt in range(self.max_attempts):
            request_url, options = self._prepare(url)
            safe_target = safe_url(request_url)
            try:
                response = self.transport.get(request_url, options)
                self._after(response)
                data = response.json()
            except (NotFoundError, SecurityViolationError):
                raise
            except TransientTransportError as exc:
                if attempt + 1 < self.max_attempts:
                    delay = self.retry_base_delay * (2 ** attempt)
                    logger.warning(
                        "Fetching %s failed (attempt %d/%d), retrying in %.2fs: %s",
                        safe_target, attempt + 1, self.max_attempts, delay, exc,
                    )
                    self._sleep(delay)
                    continue
                data = self._fallback(cache_key, safe_target, exc)
                break
            except ValueError as exc:
                data = self._fallback(cache_key, safe_target, exc)
                break
            else:
                if cache_key:
                    self._store(cache_key, response, data, store_last_modified)
                break

        if data is _MISSING:
            raise MissingResultError(f"Fetching {safe_url(url)} produced no document")
        return data

    def _fallback(self, cache_key: Optional[str], safe_target: str, exc: Exception) -> Any:
        data = self._cached(cache_key)
        if data is _MISSING:
            raise exc
        logger.warning("Fetching %s failed, using cached metadata: %s", safe_target, exc)
        return data
