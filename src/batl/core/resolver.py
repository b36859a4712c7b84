"""Repository resolution across the local and fetched storage roots.

Precedence for a pinned name ``a.b@V``:

1. local root, versioned path       repositories/_a/__b/V
2. fetched root, versioned path     gen/fetched/_a/__b/V
3. local root, unversioned path     repositories/_a/b, only if it declares V

Precedence for a floating name ``a.b``:

1. the pin declared by the repository enclosing the working directory
2. local root, unversioned path
3. highest version under the local version folder
4. highest version under the fetched version folder

Pinned lookups never fall back to an unrelated copy. A floating lookup that
finds nothing returns None; absence is not an error.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from batl.core.config_io import CONFIG_FILE_NAME, load_config, locate_config, write_config
from batl.core.config_schema import (
    Condition,
    GitConfig,
    RepositoryConfig,
    Requirement,
    RestrictSettings,
)
from batl.core.errors import AlreadyExists, InvalidName, IoFailure, NotFound, StructureMalformed
from batl.core.name import NAMESPACE_PREFIX, VERSIONED_PREFIX, Name
from batl.core.repository import Provenance, Repository
from batl.core.system import BatlSystem
from batl.core.version import Version

logger = logging.getLogger(__name__)

DEFAULT_VERSION = Version(0, 1, 0)
DEFAULT_SCRIPTS = {"build": 'echo "No build targets" && exit 1'}


def _provenance_of(system: BatlSystem, path: Path) -> Provenance:
    if path.is_relative_to(system.fetched_root.resolve()):
        return Provenance.FETCHED
    return Provenance.LOCAL


def load_path(system: BatlSystem, path: Path, provenance: Provenance | None = None) -> Repository:
    """Load the repository rooted at `path`.

    The name is decoded from the storage path; a repository living outside
    every storage root is named by its own config.
    """
    path = path.resolve()
    config = load_config(path / CONFIG_FILE_NAME)
    try:
        name = Name.from_path(path, [root.resolve() for root in system.storage_roots])
    except InvalidName:
        name = config.name

    return Repository(
        path=path,
        name=name,
        config=config,
        provenance=provenance if provenance is not None else _provenance_of(system, path),
    )


def locate_then_load(system: BatlSystem, start: Path) -> Repository | None:
    """Load the repository enclosing `start`, if any."""
    root = locate_config(start)
    if root is None:
        return None
    return load_path(system, root)


def _versions_in(folder: Path) -> list[Version]:
    if not folder.is_dir():
        return []

    versions: list[Version] = []
    for child in folder.iterdir():
        if not child.is_dir():
            continue
        try:
            versions.append(Version.from_path_segment(child.name))
        except InvalidName as e:
            raise StructureMalformed(f"{child} is not a version folder") from e
    return sorted(versions)


def _resolve_pinned(system: BatlSystem, name: Name) -> Repository | None:
    assert name.version is not None

    versioned = name.to_repository_path()
    local = system.repository_root / versioned
    if local.exists():
        logger.debug("Resolved %s to local copy %s", name, local)
        return load_path(system, local, Provenance.LOCAL)

    fetched = system.fetched_root / versioned
    if fetched.exists():
        logger.debug("Resolved %s to fetched copy %s", name, fetched)
        return load_path(system, fetched, Provenance.FETCHED)

    floating = system.repository_root / name.without_version().to_repository_path()
    if floating.exists():
        repository = load_path(system, floating, Provenance.LOCAL)
        if repository.config.version == name.version:
            logger.debug("Resolved %s to unversioned local copy %s", name, floating)
            return repository
        logger.debug(
            "Unversioned copy of %s is at %s, not %s", name.dotted, repository.version, name.version
        )

    return None


def _resolve_floating(system: BatlSystem, name: Name, cwd: Path | None) -> Repository | None:
    if cwd is not None:
        enclosing = locate_then_load(system, cwd)
        if enclosing is not None:
            pinned = enclosing.config.dependencies.get(name)
            if pinned is not None:
                logger.debug("Using %s@%s pinned by %s", name, pinned, enclosing.name)
                return _resolve_pinned(system, name.with_version(pinned))

    floating = system.repository_root / name.to_repository_path()
    if floating.exists():
        logger.debug("Resolved %s to unversioned local copy %s", name, floating)
        return load_path(system, floating, Provenance.LOCAL)

    for root in system.storage_roots:
        versions = _versions_in(root / name.to_version_folder_path())
        if versions:
            logger.debug("Latest %s under %s is %s", name, root, versions[-1])
            return _resolve_pinned(system, name.with_version(versions[-1]))

    return None


def resolve(system: BatlSystem, name: Name, cwd: Path | None = None) -> Repository | None:
    """Turn a name into a loaded repository, or None if nothing matches."""
    if name.is_pinned:
        return _resolve_pinned(system, name)
    return _resolve_floating(system, name, cwd)


def require(system: BatlSystem, name: Name, cwd: Path | None = None) -> Repository:
    repository = resolve(system, name, cwd)
    if repository is None:
        raise NotFound(f"Repository {name} does not exist")
    return repository


def default_config(name: Name, git: GitConfig | None = None) -> RepositoryConfig:
    return RepositoryConfig(
        name=name.without_version(),
        version=name.version if name.version is not None else DEFAULT_VERSION,
        git=git,
        scripts=dict(DEFAULT_SCRIPTS),
        restrict={Condition.current(): RestrictSettings(include=Requirement.REQUIRE)},
    )


def create(system: BatlSystem, name: Name, git: GitConfig | None = None) -> Repository:
    """Create a new local repository with a default config.

    Raises:
        AlreadyExists: If the repository path is already taken
    """
    path = system.repository_root / name.to_repository_path()
    if path.exists():
        raise AlreadyExists(f"Repository {name} already exists at {path}")

    try:
        path.mkdir(parents=True)
    except OSError as e:
        raise IoFailure(f"Could not create {path}: {e}") from e

    config = default_config(name, git)
    write_config(path / CONFIG_FILE_NAME, config)
    logger.debug("Created repository %s at %s", name, path)
    return Repository(path=path, name=name, config=config, provenance=Provenance.LOCAL)


def destroy(repository: Repository) -> None:
    """Remove the repository tree. Not reversible."""
    try:
        shutil.rmtree(repository.path)
    except OSError as e:
        raise IoFailure(f"Could not remove {repository.path}: {e}") from e
    logger.debug("Destroyed %s at %s", repository.name, repository.path)


@dataclass(frozen=True)
class RepositoryListing:
    name: Name
    path: Path
    provenance: Provenance


def _walk_storage(directory: Path, provenance: Provenance, root: Path) -> list[RepositoryListing]:
    listings: list[RepositoryListing] = []
    for child in sorted(directory.iterdir()):
        # Hidden entries hold fetch staging directories.
        if not child.is_dir() or child.name.startswith("."):
            continue

        if child.name.startswith(VERSIONED_PREFIX):
            for version_folder in sorted(child.iterdir()):
                if version_folder.is_dir():
                    name = Name.from_path(version_folder, [root])
                    listings.append(RepositoryListing(name, version_folder, provenance))
        elif child.name.startswith(NAMESPACE_PREFIX):
            listings.extend(_walk_storage(child, provenance, root))
        elif (child / CONFIG_FILE_NAME).is_file():
            name = Name.from_path(child, [root])
            listings.append(RepositoryListing(name, child, provenance))
    return listings


def list_repositories(system: BatlSystem) -> list[RepositoryListing]:
    """Enumerate every stored repository, local first."""
    listings: list[RepositoryListing] = []
    for root, provenance in (
        (system.repository_root, Provenance.LOCAL),
        (system.fetched_root, Provenance.FETCHED),
    ):
        if not root.is_dir():
            continue
        try:
            listings.extend(_walk_storage(root, provenance, root))
        except OSError as e:
            raise IoFailure(f"Could not list {root}: {e}") from e
    return listings

