"""Filtered, reproducible tar snapshots of repositories."""

import io
import logging
import tarfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from batl.core.errors import IoFailure, NotFound
from batl.core.ignore_rules import IgnoreRule, is_ignored, load_rules
from batl.core.name import Name
from batl.core.repository import Repository
from batl.core.system import BatlSystem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Archive:
    """A tar file on disk for one repository."""

    name: Name
    path: Path

    def read_bytes(self) -> bytes:
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise IoFailure(f"Could not read {self.path}: {e}") from e

    def member_names(self) -> list[str]:
        with tarfile.open(self.path, "r") as tar:
            return tar.getnames()


def archive_path(system: BatlSystem, name: Name) -> Path:
    """`a.b.c` archives to `<archive root>/a/b/c.tar`."""
    return system.archive_root / Path(*name.segments[:-1]) / f"{name.segments[-1]}.tar"


def collect_files(repository: Repository) -> list[PurePosixPath]:
    """Walk the repository, honouring ignore files, and list archivable files.

    Hidden entries are skipped, directories are never listed themselves and
    the configured git checkout directory is excluded.
    """
    root = repository.path
    excluded: set[Path] = set()
    if repository.config.git is not None:
        excluded.add(root / repository.config.git.path)

    files: list[PurePosixPath] = []

    def walk(directory: Path, inherited: list[IgnoreRule]) -> None:
        rules = inherited + load_rules(directory, root)
        try:
            entries = sorted(directory.iterdir(), key=lambda entry: entry.name)
        except OSError as e:
            raise IoFailure(f"Could not list {directory}: {e}") from e

        for entry in entries:
            if entry.name.startswith(".") or entry in excluded:
                continue
            relative = PurePosixPath(entry.relative_to(root).as_posix())
            is_dir = entry.is_dir() and not entry.is_symlink()
            if is_ignored(rules, relative, is_dir):
                logger.debug("Ignoring %s", relative)
                continue
            if is_dir:
                walk(entry, rules)
            elif entry.is_file():
                files.append(relative)

    walk(root, [])
    return sorted(files)


def _tar_info(source: Path, relative: PurePosixPath) -> tarfile.TarInfo:
    stat = source.stat()
    info = tarfile.TarInfo(name=relative.as_posix())
    info.size = stat.st_size
    info.mode = stat.st_mode & 0o777
    info.mtime = 0
    info.uid = 0
    info.gid = 0
    info.uname = ""
    info.gname = ""
    return info


def generate_archive(system: BatlSystem, repository: Repository) -> Archive:
    """Write the repository snapshot to its archive path, replacing any old one."""
    name = repository.config.name
    path = archive_path(system, name)
    files = collect_files(repository)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tarfile.open(path, "w", format=tarfile.PAX_FORMAT) as tar:
            for relative in files:
                source = repository.path / relative
                with source.open("rb") as handle:
                    tar.addfile(_tar_info(source, relative), handle)
    except OSError as e:
        raise IoFailure(f"Could not write archive {path}: {e}") from e

    logger.debug("Archived %d files of %s into %s", len(files), name, path)
    return Archive(name=name, path=path)


def load_archive(system: BatlSystem, name: Name) -> Archive:
    """Find a previously generated archive.

    Raises:
        NotFound: If no archive has been generated for `name`
    """
    path = archive_path(system, name.without_version())
    if not path.is_file():
        raise NotFound(f"No archive for {name.without_version()}, run `batl archive` first")
    return Archive(name=name.without_version(), path=path)


def unpack_archive(data: bytes, destination: Path) -> None:
    """Extract a tar byte stream into `destination`."""
    try:
        destination.mkdir(parents=True, exist_ok=True)
        with tarfile.open(fileobj=io.BytesIO(data), mode="r") as tar:
            tar.extractall(destination, filter="data")
    except (tarfile.TarError, OSError) as e:
        raise IoFailure(f"Could not unpack archive into {destination}: {e}") from e
    logger.debug("Unpacked %d bytes into %s", len(data), destination)
