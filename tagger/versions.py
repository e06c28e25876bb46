# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Semantic version parsing, coercion and ordering.

This module resolves ref and tag names into comparable semantic versions
according to SemVer 2.0.0.

References:
    - Semantic Versioning 2.0.0: https://semver.org/
    - Precedence rules: https://semver.org/#spec-item-11
"""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

MAX_VERSION_LENGTH = 256

# SemVer 2.0.0 compliant pattern: no leading zeros in numeric identifiers
_NUMERIC = r"0|[1-9]\d*"
_PRERELEASE_ID = rf"(?:{_NUMERIC}|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
SEMVER_PATTERN = re.compile(
    rf"^[vV]?(?P<major>{_NUMERIC})\.(?P<minor>{_NUMERIC})\.(?P<patch>{_NUMERIC})"
    rf"(?:-(?P<prerelease>{_PRERELEASE_ID}(?:\.{_PRERELEASE_ID})*))?"
    r"(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$",
    re.ASCII,
)

# First run of up to three dot-separated numbers not embedded in a longer digit run
COERCE_PATTERN = re.compile(r"(?:^|\D)(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?:$|\D)", re.ASCII)


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class SemanticVersion:
    """An immutable semantic version.

    Build metadata is kept for display but ignored for ordering, equality
    and hashing, so two versions differing only in build are duplicates.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[int | str, ...] = field(default=())
    build: tuple[str, ...] = field(default=())

    @property
    def is_prerelease(self) -> bool:
        """Return True if the version carries pre-release identifiers."""
        return bool(self.prerelease)

    def _core(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._core() == other._core() and self.prerelease == other.prerelease

    def __hash__(self) -> int:
        return hash((self._core(), self.prerelease))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        if self._core() != other._core():
            return self._core() < other._core()
        # A pre-release version has lower precedence than the normal version
        if not self.prerelease or not other.prerelease:
            return bool(self.prerelease) and not other.prerelease
        return _compare_prerelease(self.prerelease, other.prerelease) < 0

    def __str__(self) -> str:
        """Return the canonical version string (e.g., '1.2.3-rc.1+build.5')."""
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(str(part) for part in self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text


def _compare_prerelease(left: tuple[int | str, ...], right: tuple[int | str, ...]) -> int:
    for a, b in zip(left, right):
        if a == b:
            continue
        a_numeric = isinstance(a, int)
        b_numeric = isinstance(b, int)
        if a_numeric and not b_numeric:
            return -1
        if b_numeric and not a_numeric:
            return 1
        return -1 if a < b else 1  # type: ignore[operator]
    return (len(left) > len(right)) - (len(left) < len(right))


def _prerelease_identifier(part: str) -> int | str:
    return int(part) if part.isdigit() else part


def parse(raw: object) -> SemanticVersion | None:
    """Parse a string into a SemanticVersion.

    Surrounding whitespace and a single leading 'v' are tolerated, as is the
    convention for git tags. Anything else that is not a valid SemVer 2.0.0
    string yields None.

    Args:
        raw: The candidate version string (e.g., 'v1.2.3', '1.0.0-rc.1').

    Returns:
        The parsed SemanticVersion, or None if the input is not a version.

    Examples:
        >>> str(parse("v1.2.3"))
        '1.2.3'
        >>> parse("latest") is None
        True
        >>> parse("1.02.3") is None  # Leading zero - invalid
        True
    """
    if not isinstance(raw, str) or len(raw) > MAX_VERSION_LENGTH:
        return None

    match = SEMVER_PATTERN.match(raw.strip())
    if not match:
        return None

    prerelease = match.group("prerelease")
    build = match.group("build")
    return SemanticVersion(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        patch=int(match.group("patch")),
        prerelease=tuple(_prerelease_identifier(p) for p in prerelease.split(".")) if prerelease else (),
        build=tuple(build.split(".")) if build else (),
    )


def coerce(raw: object) -> str | None:
    """Normalize a loosely formatted version string into MAJOR.MINOR.PATCH.

    Missing minor and patch components default to 0. Prefixes and any
    pre-release or build suffix are dropped.

    Args:
        raw: The loosely formatted version (e.g., 'v3.1-beta', 'release-2').

    Returns:
        A string that parse() accepts, or None if no version number is found.

    Examples:
        >>> coerce("v3.1-beta")
        '3.1.0'
        >>> coerce("release-2")
        '2.0.0'
        >>> coerce("nightly") is None
        True
    """
    if not isinstance(raw, str) or len(raw) > MAX_VERSION_LENGTH:
        return None

    match = COERCE_PATTERN.search(raw)
    if not match:
        return None

    major, minor, patch = (int(group or 0) for group in match.groups())
    coerced = f"{major}.{minor}.{patch}"
    logger.debug("Coerced '%s' to '%s'", raw, coerced)
    return coerced
