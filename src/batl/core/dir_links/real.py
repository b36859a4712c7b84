"""Production directory link backends."""

import logging
import os
import subprocess
from pathlib import Path

from batl.core.dir_links.abc import DirLinks
from batl.core.errors import IoFailure

logger = logging.getLogger(__name__)


class UnixDirLinks(DirLinks):
    """Symbolic links via os.symlink."""

    def create_dir_link(self, source: Path, link: Path) -> None:
        logger.debug("Linking %s -> %s", link, source)
        try:
            link.parent.mkdir(parents=True, exist_ok=True)
            os.symlink(source, link, target_is_directory=True)
        except OSError as e:
            raise IoFailure(f"Could not link {link} to {source}: {e}") from e

    def remove_dir_link(self, link: Path) -> None:
        logger.debug("Unlinking %s", link)
        try:
            link.unlink()
        except OSError as e:
            raise IoFailure(f"Could not remove link {link}: {e}") from e

    def link_exists(self, link: Path) -> bool:
        return link.is_symlink()


class WindowsDirLinks(DirLinks):
    """Directory junctions via `mklink /J`, which need no elevation."""

    def create_dir_link(self, source: Path, link: Path) -> None:
        logger.debug("Creating junction %s -> %s", link, source)
        try:
            link.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IoFailure(f"Could not create {link.parent}: {e}") from e

        result = subprocess.run(
            ["cmd", "/c", "mklink", "/J", str(link), str(source)],
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            raise IoFailure(f"Could not link {link} to {source}: {result.stderr.strip()}")

    def remove_dir_link(self, link: Path) -> None:
        logger.debug("Removing junction %s", link)
        try:
            # Junctions are directories to the filesystem API.
            os.rmdir(link)
        except OSError as e:
            raise IoFailure(f"Could not remove link {link}: {e}") from e

    def link_exists(self, link: Path) -> bool:
        return link.is_symlink() or link.is_junction()


def default_dir_links() -> DirLinks:
    if os.name == "nt":
        return WindowsDirLinks()
    return UnixDirLinks()
