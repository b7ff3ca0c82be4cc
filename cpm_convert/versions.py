"""Version ordering strategies for resolving conflicting pins.

When the same package is pinned to different versions in different
projects, only one of them can go into Directory.Packages.props. Two
strategies decide which one is kept:

- ordinal (default): plain string ordering. The version that sorts lower
  wins and equal strings keep the first one seen. "1.0.0" beats "2.0.0",
  but "10.0.0" also beats "9.0.0". This is literal string comparison and
  deliberately not semantic.
- semantic: the highest semantic version wins. Versions that cannot be
  parsed fall back to the ordinal rule.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from enum import Enum

import semver

_NUMERIC_PART = re.compile(r"^\d+$")


class VersionStrategy(str, Enum):
    ORDINAL = "ordinal"
    SEMANTIC = "semantic"


def parse_version(version_str: str) -> semver.Version:
    """Parse a NuGet version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3-beta" → "1.2.3-beta"

    A fourth (revision) component is kept as build metadata, which semver
    ignores when ordering: "1.2.3.4" and "1.2.3.5" compare equal.

    Raises:
        ValueError: If the string is not a (possibly incomplete) version.
    """
    rest, plus, build = version_str.strip().partition("+")
    core, sep, prerelease = rest.partition("-")
    parts = core.split(".")
    if not all(_NUMERIC_PART.match(p) for p in parts):
        raise ValueError(f"{version_str} is not a valid version")

    revision = parts[3:]
    parts = parts[:3]
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")

    text = ".".join(str(int(p)) for p in parts)
    if sep:
        text += f"-{prerelease}"
    build_parts = revision + ([build] if plus else [])
    if build_parts:
        text += "+" + ".".join(build_parts)
    return semver.Version.parse(text)


def ordinal_replaces(existing: str, candidate: str) -> bool:
    """True if candidate sorts strictly lower than existing.

    Ordinal (code point) string comparison, so "1.0.0" < "2.0.0" < "10.0.0"
    does not hold: "10.0.0" < "2.0.0".
    """
    return candidate < existing


def semantic_replaces(existing: str, candidate: str) -> bool:
    """True if candidate is a strictly higher semantic version than existing."""
    try:
        return parse_version(candidate) > parse_version(existing)
    except ValueError:
        return ordinal_replaces(existing, candidate)


def get_replace_rule(strategy: VersionStrategy) -> Callable[[str, str], bool]:
    """Return the (existing, candidate) → replace? predicate for a strategy."""
    if strategy is VersionStrategy.SEMANTIC:
        return semantic_replaces
    return ordinal_replaces
