"""Battalion root discovery and the on-disk layout beneath it.

Layout under a battalion root:

    .batlrc
    repositories/              local (authored) repositories
    workspaces/
    gen/fetched/               registry copies, always versioned
    gen/archives/repositories/ generated tar archives
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from batl.core.batlrc import BATLRC_FILE_NAME, BatlRc, read_batlrc, write_batlrc
from batl.core.errors import AlreadySetup, IoFailure, StructureMalformed

logger = logging.getLogger(__name__)

BATL_ROOT_ENV = "BATL_ROOT"
DEFAULT_ROOT_NAME = "battalion"
LEGACY_NAMESPACE_PREFIX = "@"


@dataclass(frozen=True)
class BatlSystem:
    """Explicit runtime roots, derived from one battalion root."""

    root: Path

    @property
    def repository_root(self) -> Path:
        return self.root / "repositories"

    @property
    def workspace_root(self) -> Path:
        return self.root / "workspaces"

    @property
    def gen_root(self) -> Path:
        return self.root / "gen"

    @property
    def fetched_root(self) -> Path:
        return self.gen_root / "fetched"

    @property
    def archive_root(self) -> Path:
        return self.gen_root / "archives" / "repositories"

    @property
    def storage_roots(self) -> list[Path]:
        return [self.repository_root, self.fetched_root]

    def required_dirs(self) -> list[Path]:
        return [self.repository_root, self.workspace_root, self.archive_root, self.fetched_root]


def discover_batl_root(
    cwd: Path, env: Mapping[str, str] | None = None, home: Path | None = None
) -> Path | None:
    """Find the battalion root.

    Order: the BATL_ROOT environment variable, then the nearest ancestor of
    `cwd` holding a `.batlrc`, then `~/battalion` if it exists.
    """
    environ = env if env is not None else os.environ
    explicit = environ.get(BATL_ROOT_ENV)
    if explicit:
        logger.debug("Using %s=%s", BATL_ROOT_ENV, explicit)
        return Path(explicit).resolve()

    current = cwd.resolve()
    for parent in [current, *current.parents]:
        if (parent / BATLRC_FILE_NAME).exists():
            logger.debug("Found %s in %s", BATLRC_FILE_NAME, parent)
            return parent

    home_dir = home if home is not None else Path.home()
    fallback = home_dir / DEFAULT_ROOT_NAME
    if fallback.exists():
        return fallback.resolve()

    return None


def setup_system(root: Path, already_discovered: Path | None) -> BatlSystem:
    """Create a fresh battalion root with its directory tree and `.batlrc`.

    Raises:
        AlreadySetup: If a root is already discoverable
    """
    if already_discovered is not None:
        raise AlreadySetup(f"Battalion is already set up at {already_discovered}")

    system = BatlSystem(root=root)
    try:
        for directory in system.required_dirs():
            directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IoFailure(f"Could not create {root}: {e}") from e

    write_batlrc(root, BatlRc.initial())
    logger.debug("Set up battalion root at %s", root)
    return system


def _rename_legacy_namespaces(directory: Path) -> list[Path]:
    renamed: list[Path] = []
    for child in sorted(directory.iterdir()):
        if not child.is_dir() or child.is_symlink():
            continue
        target = child
        if child.name.startswith(LEGACY_NAMESPACE_PREFIX):
            target = child.with_name("_" + child.name[len(LEGACY_NAMESPACE_PREFIX) :])
            if target.exists():
                raise StructureMalformed(f"both {child} and {target} exist")
            child.rename(target)
            renamed.append(target)
        if target.name.startswith("_"):
            renamed.extend(_rename_legacy_namespaces(target))
    return renamed


def upgrade_system(system: BatlSystem) -> list[str]:
    """Bring an older battalion root up to the current layout.

    Returns a human-readable list of the changes made.
    """
    changes: list[str] = []
    try:
        for directory in system.required_dirs():
            if not directory.exists():
                directory.mkdir(parents=True)
                changes.append(f"created {directory}")

        for path in _rename_legacy_namespaces(system.repository_root):
            changes.append(f"renamed namespace {path}")
    except OSError as e:
        raise IoFailure(f"Could not upgrade {system.root}: {e}") from e

    batlrc_path = system.root / BATLRC_FILE_NAME
    if batlrc_path.exists():
        batlrc, migrated = read_batlrc(system.root)
    else:
        batlrc, migrated = BatlRc.initial(), True
    if migrated:
        write_batlrc(system.root, batlrc)
        changes.append(f"rewrote {batlrc_path}")

    return changes
