"""Argument parsing functionality for npm-asset."""

import argparse

from constants import Constants


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="npm-asset",
        description=(
            "npm-asset - Resolve npm registry metadata into asset package versions"
        ),
        add_help=True,
    )

    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("--cache-read-only",
                        dest="CACHE_READ_ONLY",
                        help="Never write to the metadata cache.",
                        action="store_true")

    sub = parser.add_subparsers(dest="COMMAND", required=True)

    resolve = sub.add_parser("resolve", help="Resolve package versions matching constraints")
    resolve.add_argument("PACKAGES",
                         nargs="+",
                         help=f"Package as NAME[:CONSTRAINT], e.g. left-pad:^1.0.0 or "
                              f"{Constants.ASSET_PREFIX}@scope/name")
    resolve.add_argument("-s", "--stability",
                         dest="STABILITIES",
                         help="Acceptable stability (repeatable; default: stable)",
                         action="append",
                         type=str.lower,
                         choices=[s.lower() for s in ("stable", "RC", "beta", "alpha", "dev")],
                         default=[])

    search = sub.add_parser("search", help="Search the registry")
    search.add_argument("QUERY", help="Search terms")

    return parser.parse_args(argv)
