"""Token parsing utilities for package requests."""

from typing import Dict, Iterable, Optional, Tuple

from constants import Constants


def tokenize_rightmost_colon(s: str) -> Tuple[str, Optional[str]]:
    """Return (identifier, spec or None) using the rightmost-colon rule.

    Scoped npm names contain ``@`` and ``/`` but never ``:``, so the colon is
    a safe separator.
    """
    s = s.strip()
    if ':' not in s:
        return s, None
    parts = s.rsplit(':', 1)
    identifier = parts[0].strip()
    spec_part = parts[1].strip() if len(parts) > 1 else ''
    spec = spec_part if spec_part else None
    return identifier, spec


def parse_cli_token(token: str) -> Tuple[str, Optional[str]]:
    """Parse ``name[:constraint]`` into an asset name and constraint.

    Bare npm names get the asset prefix; ``latest`` means no constraint.
    """
    identifier, spec = tokenize_rightmost_colon(token)
    if not identifier.startswith(Constants.ASSET_PREFIX):
        identifier = Constants.ASSET_PREFIX + identifier
    if spec is not None and spec.lower() == 'latest':
        spec = None
    return identifier, spec


def build_request_map(tokens: Iterable[str]) -> Dict[str, Optional[str]]:
    """Turn CLI tokens into the name -> constraint map fed to the repository."""
    request: Dict[str, Optional[str]] = {}
    for token in tokens:
        if not token or not token.strip():
            continue
        name, spec = parse_cli_token(token)
        request[name] = spec
    return request
