"""Logging helpers shared by the registry and transport layers.

Provides a single place to configure the root logger, build structured
``extra`` payloads, and keep credentials out of log records.
"""
from __future__ import annotations

import logging
import os
import re
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_SENSITIVE_QUERY_KEYS = {"token", "access_token", "auth", "key", "apikey", "api_key", "password", "secret"}
_BEARER_RE = re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._~+/=-]+")
_SECRET_PAIR_RE = re.compile(r"(?i)\b(token|password|secret|apikey|api_key)=([^&\s]+)")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once.

    The level comes from the argument, else ``NPM_ASSET_LOG_LEVEL``, else WARNING.
    """
    name = (level or os.environ.get(Constants.LOG_LEVEL_ENV) or "WARNING").upper()
    numeric = getattr(logging, name, None)
    if not isinstance(numeric, int):
        numeric = logging.WARNING

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    logging.basicConfig(level=numeric, format=Constants.LOG_FORMAT)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` mapping for structured log records, dropping None values."""
    return {key: value for key, value in fields.items() if value is not None}


def redact(text: str) -> str:
    """Mask bearer tokens and key=value secrets in free text."""
    if not text:
        return text
    masked = _BEARER_RE.sub(r"\1[REDACTED]", text)
    return _SECRET_PAIR_RE.sub(r"\1=[REDACTED]", masked)


def safe_url(url: str) -> str:
    """Return ``url`` with userinfo and sensitive query values replaced."""
    if not url:
        return url
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return redact(url)

    netloc = parts.netloc
    if "@" in netloc:
        netloc = "[REDACTED]@" + netloc.rsplit("@", 1)[1]

    query = parts.query
    if query:
        pairs = urllib.parse.parse_qsl(query, keep_blank_values=True)
        query = "&".join(
            f"{k}=[REDACTED]" if k.lower() in _SENSITIVE_QUERY_KEYS else f"{k}={v}"
            for k, v in pairs
        )

    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring wall-clock duration."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
