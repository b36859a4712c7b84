"""Resource names and their filesystem/URL encodings.

A name is a dotted sequence of segments with an optional pinned version,
e.g. ``prototypes.awesome-project@0.1.0``. On disk, the underscore prefix
separates namespace directories from leaf directories that hold files:

- ``_segment``  a namespace directory holding further names
- ``__segment`` a leaf that stores one folder per version
- ``segment``   the single floating copy of a leaf

Examples (name -> repository path):
    a.b          -> _a/b
    a.b@1.2.3    -> _a/__b/1.2.3
    a.b@1.0.0+7  -> _a/__b/1.0.0__7
"""

import re
from dataclasses import dataclass, replace
from pathlib import Path, PurePath, PurePosixPath

from batl.core.errors import InvalidName
from batl.core.version import Version

_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_-]+$")

NAMESPACE_PREFIX = "_"
VERSIONED_PREFIX = "__"
URL_VERSION_PREFIX = "_v"


def validate_segment(segment: str, source: str) -> str:
    """Check one name segment against the grammar.

    Raises:
        InvalidName: If the segment is empty, starts with `_`, or contains
            characters outside [A-Za-z0-9_-]
    """
    if not segment:
        raise InvalidName(f"'{source}' contains an empty name segment")
    if segment.startswith("_"):
        raise InvalidName(f"'{source}' has a segment starting with '_': {segment}")
    if _SEGMENT_RE.match(segment) is None:
        raise InvalidName(f"'{source}' has a segment with invalid characters: {segment}")
    return segment


@dataclass(frozen=True)
class Name:
    """Immutable resource name: non-empty segments plus an optional version."""

    segments: tuple[str, ...]
    version: Version | None = None

    def __post_init__(self) -> None:
        if not self.segments:
            raise InvalidName("A resource name needs at least one segment")
        for segment in self.segments:
            validate_segment(segment, ".".join(self.segments))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @staticmethod
    def parse(text: str) -> "Name":
        """Parse ``seg(.seg)*[@version]``.

        Raises:
            InvalidName: On any grammar violation or an invalid version suffix
        """
        name_part, at, version_part = text.partition("@")
        segments = tuple(name_part.split("."))
        for segment in segments:
            validate_segment(segment, text)

        version = None
        if at:
            try:
                version = Version.parse(version_part)
            except InvalidName as e:
                raise InvalidName(f"'{text}' has an invalid version: {e}") from e

        return Name(segments=segments, version=version)

    @staticmethod
    def from_url_path(text: str) -> "Name":
        """Inverse of to_url_path."""
        parts = text.strip("/").split("/")
        version = None
        if len(parts) > 1 and parts[-1].startswith(URL_VERSION_PREFIX):
            try:
                version = Version.from_path_segment(parts[-1][len(URL_VERSION_PREFIX) :])
            except InvalidName as e:
                raise InvalidName(f"'{text}' has an invalid version: {e}") from e
            parts = parts[:-1]
        for part in parts:
            validate_segment(part, text)
        return Name(segments=tuple(parts), version=version)

    @staticmethod
    def from_path(path: Path, known_roots: list[Path]) -> "Name":
        """Decode a storage path back into a name.

        The path must live under one of ``known_roots``. Accepts every
        encoding produced by to_folder_name, to_repository_path and
        to_version_folder_path.

        Raises:
            InvalidName: If the path is outside every root or does not
                follow the prefix conventions
        """
        relative: PurePath | None = None
        for root in known_roots:
            if path.is_relative_to(root):
                relative = path.relative_to(root)
                break

        if relative is None:
            raise InvalidName(f"{path} is not inside a battalion storage root")

        parts = relative.parts
        if not parts:
            raise InvalidName(f"{path} is a storage root, not a resource")

        segments: list[str] = []
        version: Version | None = None
        index = 0
        while index < len(parts):
            part = parts[index]
            is_last = index == len(parts) - 1

            if part.startswith(VERSIONED_PREFIX):
                segments.append(validate_segment(part[len(VERSIONED_PREFIX) :], str(relative)))
                remaining = parts[index + 1 :]
                if len(remaining) > 1:
                    raise InvalidName(f"{relative} continues past a version folder")
                if remaining:
                    try:
                        version = Version.from_path_segment(remaining[0])
                    except InvalidName as e:
                        raise InvalidName(f"{relative} has an invalid version folder") from e
                break

            if part.startswith(NAMESPACE_PREFIX):
                segments.append(validate_segment(part[len(NAMESPACE_PREFIX) :], str(relative)))
            elif is_last:
                segments.append(validate_segment(part, str(relative)))
            else:
                raise InvalidName(f"{relative} has an unprefixed namespace component: {part}")
            index += 1

        return Name(segments=tuple(segments), version=version)

    # ------------------------------------------------------------------
    # Value operations
    # ------------------------------------------------------------------

    @property
    def is_pinned(self) -> bool:
        return self.version is not None

    @property
    def dotted(self) -> str:
        """Dotted form without any version."""
        return ".".join(self.segments)

    def with_version(self, version: Version) -> "Name":
        return replace(self, version=version)

    def without_version(self) -> "Name":
        return replace(self, version=None)

    def __str__(self) -> str:
        if self.version is None:
            return self.dotted
        return f"{self.dotted}@{self.version}"

    # ------------------------------------------------------------------
    # Encodings
    # ------------------------------------------------------------------

    def to_folder_name(self) -> Path:
        """Encode a floating name with every segment namespace-prefixed.

        Raises:
            InvalidName: If the name is pinned
        """
        if self.version is not None:
            raise InvalidName(f"Folder encoding is undefined for pinned name {self}")
        return Path(*(NAMESPACE_PREFIX + segment for segment in self.segments))

    def _namespace_parts(self) -> list[str]:
        return [NAMESPACE_PREFIX + segment for segment in self.segments[:-1]]

    def to_repository_path(self) -> Path:
        """Encode for physical repository storage."""
        parts = self._namespace_parts()
        last = self.segments[-1]
        if self.version is None:
            parts.append(last)
        else:
            parts.append(VERSIONED_PREFIX + last)
            parts.append(self.version.to_path_segment())
        return Path(*parts)

    def to_version_folder_path(self) -> Path:
        """Encode the folder that holds every stored version of this name."""
        parts = self._namespace_parts()
        parts.append(VERSIONED_PREFIX + self.segments[-1])
        return Path(*parts)

    def to_url_path(self) -> str:
        """Encode for registry URLs: ``a/b`` or ``a/b/_v1.2.3``."""
        path = PurePosixPath(*self.segments)
        if self.version is not None:
            path = path / (URL_VERSION_PREFIX + self.version.to_path_segment())
        return str(path)
