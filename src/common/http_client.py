"""Blocking HTTP transport used for registry metadata requests.

Wraps ``requests`` so that every failure surfaces as one of the classified
transport errors in ``common.errors``. A 304 is a normal response, not an
error: conditional revalidation depends on seeing it.
"""
from __future__ import annotations

import json
import logging
import urllib.parse
from typing import Any, Dict, Mapping, Optional

import requests
from requests.structures import CaseInsensitiveDict

from constants import Constants
from common.errors import (
    NotFoundError,
    SecurityViolationError,
    TransientTransportError,
)
from common.logging_utils import extra_context, is_debug_enabled, redact, safe_url, Timer

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))


class HttpResponse:
    """Status, headers and decoded text of a completed request."""

    def __init__(self, status_code: int, headers: Optional[Mapping[str, str]] = None, body: str = "") -> None:
        self.status_code = status_code
        self.headers: CaseInsensitiveDict = CaseInsensitiveDict(headers or {})
        self.body = body

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        return self.headers.get(name)

    def json(self) -> Any:
        """Decode the body; raises ``json.JSONDecodeError`` on bad input."""
        return json.loads(self.body)

    def __repr__(self) -> str:
        return f"HttpResponse(status_code={self.status_code}, bytes={len(self.body)})"


def validate_url_scheme(url: str) -> None:
    """Refuse anything but http/https before a request is made."""
    scheme = urllib.parse.urlsplit(url).scheme.lower()
    if scheme not in _ALLOWED_SCHEMES:
        raise SecurityViolationError(f"Refusing URL scheme '{scheme}': {safe_url(url)}", url=url)


def merge_headers(*sources: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Merge header mappings left to right; later sources win regardless of case."""
    merged: CaseInsensitiveDict = CaseInsensitiveDict()
    for source in sources:
        if source:
            merged.update(source)
    return dict(merged.items())


class HttpTransport:
    """GET-only transport with classified errors.

    ``options`` may carry ``headers``, ``auth``, ``timeout`` and ``verify``.
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = Constants.REQUEST_TIMEOUT) -> None:
        self._session = session or requests.Session()
        self._timeout = timeout

    def get(self, url: str, options: Optional[Mapping[str, Any]] = None) -> HttpResponse:
        """Perform a GET request.

        Returns:
            HttpResponse for 2xx and 304 answers.

        Raises:
            NotFoundError: on 404.
            SecurityViolationError: on TLS failure or a disallowed scheme.
            TransientTransportError: on any other network or status failure.
        """
        validate_url_scheme(url)
        options = dict(options or {})
        headers = merge_headers({"User-Agent": Constants.USER_AGENT, "Accept": "application/json"}, options.get("headers"))
        auth = options.get("auth")
        if isinstance(auth, list):
            auth = tuple(auth)
        safe_target = safe_url(url)

        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request",
                        component="http_client",
                        action="GET",
                        target=safe_target,
                    )
                )
            try:
                res = self._session.get(
                    url,
                    headers=headers,
                    auth=auth,
                    timeout=options.get("timeout", self._timeout),
                    verify=options.get("verify", True),
                )
            except requests.exceptions.SSLError as exc:
                logger.error("TLS failure for %s: %s", safe_target, redact(str(exc)))
                raise SecurityViolationError(f"TLS failure for {safe_target}: {redact(str(exc))}", url=url) from exc
            except requests.Timeout as exc:
                logger.warning("Request timed out: %s", safe_target)
                raise TransientTransportError(f"Request timed out: {safe_target}", url=url) from exc
            except requests.RequestException as exc:  # includes ConnectionError
                logger.warning("Connection error for %s: %s", safe_target, redact(str(exc)))
                raise TransientTransportError(f"Connection error for {safe_target}: {redact(str(exc))}", url=url) from exc

        status = res.status_code
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    outcome="success" if status < 400 else "error",
                    status_code=status,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                )
            )

        if status == 404:
            raise NotFoundError(url)
        if status >= 400:
            raise TransientTransportError(
                f"HTTP {status} for {safe_target}", url=url, status_code=status
            )
        return HttpResponse(status, dict(res.headers), res.text)
