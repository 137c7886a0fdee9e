"""Constants used in the project."""

import os
from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    PACKAGE_NOT_FOUND = 3
    INVALID_RESPONSE = 4


class Stability(Enum):
    """Stability tiers, ordered from most to least mature.

    Args:
        Enum (int): Rank of the tier; lower is more stable.
    """

    STABLE = 0
    RC = 5
    BETA = 10
    ALPHA = 15
    DEV = 20


class SearchMode(Enum):
    """Search modes understood by the repository.

    Args:
        Enum (int): Search modes.
    """

    FULLTEXT = 0
    NAME = 1
    VENDOR = 2


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org"
    LAZY_LOAD_URL_NPM = "https://registry.npmjs.org/%name%"
    SEARCH_URL_NPM = "https://www.npmjs.com/search/suggestions?q=%query%"
    PACKAGE_PLACEHOLDER = "%package%"
    NAME_PLACEHOLDER = "%name%"
    QUERY_PLACEHOLDER = "%query%"

    REGISTRY_TYPE = "npm"
    ASSET_PREFIX = "npm-asset/"
    PACKAGE_TYPE = "npm-asset-library"
    SCOPE_MARKER = "@"
    SCOPE_SEPARATOR = "/"
    SCOPE_JOIN = "--"

    LAST_MODIFIED_KEY = "last-modified"
    CACHE_TTL_SEC = 900
    CACHE_KEY_ALLOWED = "a-z0-9.$~"
    CACHE_DIR = os.environ.get(
        "NPM_ASSET_CACHE_DIR",
        os.path.join(os.path.expanduser("~"), ".cache", "npm-asset"),
    )
    CACHE_READ_ONLY = _env_flag("NPM_ASSET_CACHE_READ_ONLY")

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVEL_ENV = "NPM_ASSET_LOG_LEVEL"
    CONFIG_SECTIONS = ("npm-asset", "ppm")

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    USER_AGENT = "npm-asset/1.0"
