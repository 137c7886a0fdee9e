"""Exception taxonomy for the npm asset repository.

Transport failures are classified so callers can decide between
propagating, retrying, and falling back to cached metadata.
"""
from __future__ import annotations

from typing import Optional


class AssetRepositoryError(Exception):
    """Base class for every error raised by this project."""


class ConfigError(AssetRepositoryError):
    """Configuration file missing required structure or unreadable."""


class TransportError(AssetRepositoryError):
    """A metadata request could not be completed."""

    def __init__(self, message: str, url: str = "", status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class NotFoundError(TransportError):
    """The registry answered 404. Never retried, never masked."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Package metadata not found: {url}", url=url, status_code=404)


class SecurityViolationError(TransportError):
    """TLS failure or a URL the transport refuses to contact."""


class TransientTransportError(TransportError):
    """Any other network or status failure; eligible for retry and cache fallback."""


class MalformedDocumentError(AssetRepositoryError):
    """A registry document lacks the structure needed for conversion."""


class InvalidArgumentError(AssetRepositoryError, ValueError):
    """A caller passed a value the repository cannot work with."""


class MissingResultError(AssetRepositoryError):
    """A fetch finished without a document and without an error.

    This signals a defect in the fetch logic and is never caught.
    """
