"""Semantic version values.

Implements Semantic Versioning 2.0.0: parsing, rendering and precedence.
Build metadata does not affect precedence but is kept for equality and is
used as the final tie-breaker when sorting so that ordering stays total.
"""

import re
from dataclasses import dataclass
from functools import total_ordering

from batl.core.errors import InvalidName

_SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


def _identifier_key(identifier: str) -> tuple[int, int, str]:
    # Numeric identifiers sort before alphanumeric ones.
    if identifier.isdigit():
        return (0, int(identifier), "")
    return (1, 0, identifier)


@total_ordering
@dataclass(frozen=True)
class Version:
    """An immutable semantic version."""

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    @staticmethod
    def parse(text: str) -> "Version":
        """Parse a semantic version string.

        Raises:
            InvalidName: If the text is not a valid semantic version
        """
        match = _SEMVER_RE.fullmatch(text)
        if match is None:
            raise InvalidName(f"'{text}' is not a valid semantic version")

        prerelease = match.group("prerelease")
        build = match.group("build")
        return Version(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=tuple(prerelease.split(".")) if prerelease else (),
            build=tuple(build.split(".")) if build else (),
        )

    @staticmethod
    def is_valid(text: str) -> bool:
        return _SEMVER_RE.fullmatch(text) is not None

    def _precedence_key(self) -> tuple:
        # A release (no pre-release) has higher precedence than any pre-release.
        if self.prerelease:
            pre: tuple = (0, tuple(_identifier_key(part) for part in self.prerelease))
        else:
            pre = (1, ())
        return (self.major, self.minor, self.patch, pre)

    def _sort_key(self) -> tuple:
        return (*self._precedence_key(), self.build)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text

    def to_path_segment(self) -> str:
        """Render as a filesystem-safe folder name (`+` becomes `__`)."""
        return str(self).replace("+", "__")

    @staticmethod
    def from_path_segment(segment: str) -> "Version":
        """Inverse of to_path_segment."""
        return Version.parse(segment.replace("__", "+", 1))


ZERO = Version(0, 0, 0)
