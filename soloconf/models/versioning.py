"""Semantic-version helpers and the current remote config schema version."""

from __future__ import annotations

import re

# Version written into every document this package saves.
REMOTE_CONFIG_SCHEMA_VERSION = "1.0.0"

# Version assumed for documents saved before the ``version`` key existed.
LEGACY_SCHEMA_VERSION = "0.0.0"

# semver.org 2.0.0 grammar, with an optional leading "v" as used by release tags.
_SEMVER = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


def is_semver(value: object) -> bool:
    """Return ``True`` if *value* is a string holding a semantic version.

    >>> is_semver("1.0.0"), is_semver("1.0")
    (True, False)
    """
    return isinstance(value, str) and _SEMVER.match(value) is not None


def parse_semver(value: str) -> tuple[int, int, int]:
    """Return ``(major, minor, patch)``; raises ``ValueError`` when invalid."""
    match = _SEMVER.match(value) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Not a semantic version: {value!r}")
    return int(match.group(1)), int(match.group(2)), int(match.group(3))
