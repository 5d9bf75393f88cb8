"""Client version parsing and comparison.

Versions are compared segment by segment as integers, so "2.10.0" is newer
than "2.9.3". Comparison is case-insensitive and tolerates a leading "v" and
pre-release suffixes ("2.1.0-BETA" compares equal to "2.1.0").
"""

import re
from typing import Optional, Tuple

_SEGMENT_DIGITS = re.compile(r"^(\d*)")


def parse_version(version: str) -> Optional[Tuple[int, ...]]:
    """Parse a dot-separated version string into integer segments.

    Args:
        version: Version string such as "2.1.0", "v2.1" or "2.1.0-beta"

    Returns:
        Tuple of integer segments, or None if the string holds no digits at all
    """
    if version is None:
        return None
    text = version.strip().lower()
    if text.startswith("v"):
        text = text[1:]
    if not text or not any(ch.isdigit() for ch in text):
        return None

    segments = []
    for part in text.split("."):
        digits = _SEGMENT_DIGITS.match(part.strip()).group(1)
        segments.append(int(digits) if digits else 0)
    return tuple(segments)


def compare_versions(left: str, right: str) -> int:
    """Compare two version strings.

    Unparseable versions sort below every parseable one.

    Returns:
        -1 if left < right, 0 if equal, 1 if left > right
    """
    a = parse_version(left)
    b = parse_version(right)
    if a is None or b is None:
        if a is None and b is None:
            return 0
        return -1 if a is None else 1

    width = max(len(a), len(b))
    a = a + (0,) * (width - len(a))
    b = b + (0,) * (width - len(b))

    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def is_version_older(version: str, minimum: str) -> bool:
    """Return True when ``version`` is strictly older than ``minimum``."""
    return compare_versions(version, minimum) < 0
