"""npm-asset - resolve npm registry metadata into asset package versions.

    Returns:
        int: Exit code
"""
import json
import logging
import sys

from constants import ExitCodes
from common.errors import (
    ConfigError,
    MalformedDocumentError,
    NotFoundError,
    SecurityViolationError,
    TransportError,
)
from common.logging_utils import configure_logging
from args import parse_args
from registry.asset import NpmAssetRepository, load_config
from registry.asset.names import canonical_name
from versioning.parser import build_request_map


def build_repositories(config_path, cache_read_only=False):
    """Create one repository per configured registry."""
    config = load_config(config_path)
    if not config.enabled:
        logging.warning("npm-asset repositories are disabled by configuration.")
        return []
    repositories = []
    for repo_config in config.repositories:
        if cache_read_only:
            repo_config.cache_read_only = True
        repositories.append(NpmAssetRepository(repo_config))
    return repositories


def resolve(repositories, tokens, stabilities):
    """Resolve tokens against every repository, first repository wins per name.

    Returns:
        dict: ``{"namesFound": [...], "packages": [...]}``
    """
    pending = build_request_map(tokens)
    names_found = []
    packages = []
    flags = {}
    for repository in repositories:
        if not pending:
            break
        result = repository.load_packages(pending, stabilities or ["stable"], flags)
        names_found.extend(sorted(result.names_found))
        packages.extend(pkg.to_dict() for pkg in result.packages)
        pending = {name: spec for name, spec in pending.items()
                   if canonical_name(name) not in result.names_found}
    return {"namesFound": names_found, "packages": packages}


def search(repositories, query):
    """Search the first repository that has a search endpoint."""
    for repository in repositories:
        if repository.search_url:
            return repository.search(query)
    return []


def main(argv=None):
    """Entry point for the npm-asset console script."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)

    try:
        repositories = build_repositories(args.CONFIG, args.CACHE_READ_ONLY)
    except ConfigError as e:
        logging.error("Configuration error: %s", e)
        return ExitCodes.FILE_ERROR.value

    try:
        if args.COMMAND == "resolve":
            output = resolve(repositories, args.PACKAGES, args.STABILITIES)
        else:
            output = search(repositories, args.QUERY)
    except NotFoundError as e:
        logging.error("%s", e)
        return ExitCodes.PACKAGE_NOT_FOUND.value
    except (SecurityViolationError, TransportError) as e:
        logging.error("Registry request failed: %s", e)
        return ExitCodes.CONNECTION_ERROR.value
    except (MalformedDocumentError, ValueError) as e:
        logging.error("Unusable registry response: %s", e)
        return ExitCodes.INVALID_RESPONSE.value

    print(json.dumps(output, indent=2))
    return ExitCodes.SUCCESS.value


if __name__ == "__main__":
    sys.exit(main())
