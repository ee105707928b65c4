"""Semantic version value type.

Versions come from command output and registry responses, so parsing is
lenient: anything that is not ``X.Y.Z[-pre][+build]`` is kept verbatim in
``raw`` instead of raising.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# Tried in order against version probe output
VERSION_OUTPUT_PATTERNS = [
    re.compile(r"v?(\d+\.\d+\.\d+(?:-[a-zA-Z0-9.]+)?)"),
    re.compile(r"version\s+v?(\d+\.\d+\.\d+)"),
    re.compile(r"(\d+\.\d+\.\d+)"),
]


@dataclass(frozen=True)
class Version:
    """A parsed semantic version, or the raw text when parsing failed."""

    major: int = 0
    minor: int = 0
    patch: int = 0
    prerelease: str = ""
    build: str = ""
    raw: str = ""
    parsed: bool = False

    @property
    def is_raw(self) -> bool:
        """True when the source text could not be parsed."""
        return bool(self.raw)

    def is_empty(self) -> bool:
        """True when no version text was available at all."""
        return not self.parsed and not self.raw

    def is_newer_than(self, other: Version) -> bool:
        """Return True if this version takes precedence over ``other``.

        A release outranks a prerelease of the same X.Y.Z. Raw versions
        and empty versions are incomparable, so they are never newer than
        anything and nothing is newer than them.
        """
        if not (self.parsed and other.parsed):
            return False
        if self._core() != other._core():
            return self._core() > other._core()
        return bool(other.prerelease) and not self.prerelease

    def _core(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __str__(self) -> str:
        if not self.parsed:
            return self.raw
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text


def parse_version(text: str) -> Version:
    """Parse ``text`` into a Version. Never raises.

    Strips surrounding whitespace and one leading ``v``. The core must be
    exactly three non-negative integers; a ``-prerelease`` and ``+build``
    suffix are accepted on the last component.

    Args:
        text: Version string as printed by a tool or registry

    Returns:
        Parsed Version, the zero Version for empty input, or a raw Version
        holding ``text`` verbatim when it is not semver
    """
    if not text:
        return Version()

    s = text.strip()
    if s[:1] in ("v", "V"):
        s = s[1:]

    build = ""
    if "+" in s:
        s, build = s.split("+", 1)
        if not build:
            return Version(raw=text)
    prerelease = ""
    if "-" in s:
        s, prerelease = s.split("-", 1)
        if not prerelease:
            return Version(raw=text)

    parts = s.split(".")
    if len(parts) != 3 or not all(p.isdigit() and p.isascii() for p in parts):
        return Version(raw=text)

    major, minor, patch = (int(p) for p in parts)
    return Version(
        major=major, minor=minor, patch=patch, prerelease=prerelease, build=build, parsed=True
    )


def extract_version_from_output(output: str) -> str:
    """Pull the first version-looking substring out of command output.

    Returns an empty string when nothing matches.
    """
    for pattern in VERSION_OUTPUT_PATTERNS:
        match = pattern.search(output)
        if match:
            return match.group(1)
    return ""
