"""Semver coercion and npm-style range matching.

Feature Services expose loosely written versions ("1", "0.1", "v2.3") and
consumers request them with npm range syntax ("^1.0 || ^2.0", "~1.2",
">=1.2 <2", "1.x", "1.2 - 2"). Exposed versions are coerced to full semantic
versions and tested against :class:`semantic_version.NpmSpec` ranges.
"""

import re
from typing import Iterable, Optional

from semantic_version import NpmSpec, Version

__all__ = [
    "coerce",
    "parse_range",
    "satisfies",
    "find_matching_version",
]


_NUMERIC_VERSION = re.compile(r"(?:^|[^\d])(\d{1,16}(?:\.\d{1,16}){0,2})(?:$|[^\d])")

_OPERATOR_SPACING = re.compile(r"(<=|>=|<|>|=|\^|~)\s+")


def coerce(version: str) -> Optional[Version]:
    """Coerce a loosely written version string into a :class:`semantic_version.Version`.

    The first run of up to three dot-separated numbers in the string is used;
    missing minor and patch parts default to zero and anything else, including
    prerelease tags, is dropped.

    Returns:
        The coerced version, or None if the string contains no number.

    Example:
        >>> str(coerce("1"))
        '1.0.0'
        >>> str(coerce("v2.3-beta"))
        '2.3.0'
        >>> coerce("latest") is None
        True
    """
    match = _NUMERIC_VERSION.search(version)
    if not match:
        return None
    return Version.coerce(match.group(1))


def parse_range(range_: str) -> NpmSpec:
    """Parse an npm range, tolerating whitespace after operators (">= 1.2").

    Raises:
        ValueError: If the range cannot be parsed.
    """
    return NpmSpec(_OPERATOR_SPACING.sub(r"\1", range_.strip()))


def satisfies(version: Version, range_: str) -> bool:
    """Test a version against a range; an unparsable range matches nothing."""
    try:
        spec = parse_range(range_)
    except ValueError:
        return False
    return spec.match(version)


def find_matching_version(required_range: str, versions: Iterable[str]) -> Optional[str]:
    """Return the first of the given versions that satisfies the required range.

    Versions are tried in the order given and the first match wins, even if a
    later version also satisfies the range and is numerically higher.
    Versions that cannot be coerced never match.

    Example:
        >>> find_matching_version("^1.0 || ^2.0", ["1.0.0", "2.0.0"])
        '1.0.0'
        >>> find_matching_version("^3.0", ["1.0.0", "2.0.0"]) is None
        True
    """
    try:
        spec = parse_range(required_range)
    except ValueError:
        return None

    for candidate in versions:
        coerced = coerce(candidate)
        if coerced is not None and spec.match(coerced):
            return candidate
    return None
