"""Moving repositories to and from the registry."""

import logging
import shutil
import tempfile
from pathlib import Path

from batl.core.archive import load_archive, unpack_archive
from batl.core.config_io import CONFIG_FILE_NAME, load_config
from batl.core.errors import AlreadyExists, IoFailure
from batl.core.name import Name
from batl.core.registry.abc import Registry
from batl.core.repository import Provenance, Repository
from batl.core.resolver import load_path
from batl.core.system import BatlSystem

logger = logging.getLogger(__name__)


def _fetched_path(system: BatlSystem, name: Name) -> Path:
    return system.fetched_root / name.to_repository_path()


def fetch(system: BatlSystem, registry: Registry, name: Name) -> Repository:
    """Download and unpack a repository into the fetched root.

    A floating name is stored under the version its own config declares.

    Raises:
        AlreadyExists: If that version has already been fetched
        NetworkFailure: If the download fails
    """
    if name.is_pinned and _fetched_path(system, name).exists():
        raise AlreadyExists(f"{name} has already been fetched")

    data = registry.download(name)

    try:
        system.fetched_root.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=".fetch-", dir=system.fetched_root))
    except OSError as e:
        raise IoFailure(f"Could not prepare {system.fetched_root}: {e}") from e

    try:
        unpack_archive(data, staging)
        config = load_config(staging / CONFIG_FILE_NAME)
        version = name.version if name.version is not None else config.version
        pinned = name.with_version(version)

        destination = _fetched_path(system, pinned)
        if destination.exists():
            raise AlreadyExists(f"{pinned} has already been fetched")

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            staging.rename(destination)
        except OSError as e:
            raise IoFailure(f"Could not move {pinned} into {destination}: {e}") from e
    finally:
        if staging.exists():
            shutil.rmtree(staging, ignore_errors=True)

    logger.debug("Fetched %s into %s", pinned, destination)
    return load_path(system, destination, Provenance.FETCHED)


def publish(
    system: BatlSystem, registry: Registry, repository: Repository, credentials: str
) -> Name:
    """Upload the previously generated archive of `repository`.

    Returns the versioned name it was published under.

    Raises:
        NotFound: If no archive has been generated yet
        NetworkFailure: If the upload is rejected
    """
    archive = load_archive(system, repository.config.name)
    published = repository.config.name.with_version(repository.config.version)
    registry.upload(published, archive.read_bytes(), credentials)
    logger.debug("Published %s from %s", published, archive.path)
    return published
