"""Directory link capability.

Linking a dependency into a consumer is a symlink on Unix and a directory
junction on Windows. The link manager only talks to this interface.
"""

from abc import ABC, abstractmethod
from pathlib import Path


class DirLinks(ABC):
    """Abstract interface for creating and removing directory links."""

    @abstractmethod
    def create_dir_link(self, source: Path, link: Path) -> None:
        """Make `link` point at the existing directory `source`."""
        ...

    @abstractmethod
    def remove_dir_link(self, link: Path) -> None:
        """Remove the link itself, never the directory it points at."""
        ...

    @abstractmethod
    def link_exists(self, link: Path) -> bool:
        """Check whether a link (dangling or not) is present at `link`."""
        ...
