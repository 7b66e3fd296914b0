from __future__ import annotations

import re


_NUMBER = r"\d+"
_IDENTIFIERS = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"

# 1.2.3 or 1.2.3.4, optionally followed by -prerelease and/or +buildmetadata
SEMVER_REGEX = re.compile(
    rf"{_NUMBER}(?:\.{_NUMBER}){{2,3}}"
    rf"(?:-{_IDENTIFIERS})?"
    rf"(?:\+{_IDENTIFIERS})?"
)


def is_semantic_version(value: str) -> bool:
    """Return True if value is a well-formed semantic version string."""
    if not value:
        return False
    return SEMVER_REGEX.fullmatch(value) is not None
