"""Tests for fetching from and publishing to a registry."""

from pathlib import Path

import pytest

from batl.core.archive import generate_archive
from batl.core.errors import AlreadyExists, NetworkFailure, NotFound
from batl.core.name import Name
from batl.core.repository import Provenance
from batl.core.resolver import require
from batl.core.transfer import fetch, publish
from batl.core.version import Version
from tests.fakes.registry import FakeRegistry
from tests.test_utils.storage import make_system, write_repository


def _packaged(tmp_path: Path, name: str, version: str) -> bytes:
    """Build an archive for `name` in a scratch battalion root."""
    scratch = make_system(tmp_path / "scratch")
    write_repository(scratch.repository_root, name, version)
    return generate_archive(scratch, require(scratch, Name.parse(name))).read_bytes()


def test_fetch_pinned_into_versioned_path(tmp_path: Path) -> None:
    system = make_system(tmp_path)
    archive = _packaged(tmp_path, "tools.fmt", "1.2.0")
    registry = FakeRegistry(packages={"tools/fmt/_v1.2.0": archive})

    repository = fetch(system, registry, Name.parse("tools.fmt@1.2.0"))

    assert repository.path == system.fetched_root / "_tools" / "__fmt" / "1.2.0"
    assert repository.provenance is Provenance.FETCHED
    assert repository.name == Name.parse("tools.fmt@1.2.0")
    assert [entry.name for entry in system.fetched_root.iterdir()] == ["_tools"]


def test_fetch_floating_uses_declared_version(tmp_path: Path) -> None:
    system = make_system(tmp_path)
    registry = FakeRegistry(packages={"tools/fmt": _packaged(tmp_path, "tools.fmt", "2.0.0")})

    repository = fetch(system, registry, Name.parse("tools.fmt"))

    assert repository.version == Version(2, 0, 0)
    assert require(system, Name.parse("tools.fmt@2.0.0")).path == repository.path


def test_fetch_twice_is_already_exists(tmp_path: Path) -> None:
    system = make_system(tmp_path)
    registry = FakeRegistry(packages={"tools/fmt": _packaged(tmp_path, "tools.fmt", "2.0.0")})
    fetch(system, registry, Name.parse("tools.fmt"))

    with pytest.raises(AlreadyExists):
        fetch(system, registry, Name.parse("tools.fmt"))

    assert [entry.name for entry in system.fetched_root.iterdir()] == ["_tools"]


def test_fetch_missing_package(tmp_path: Path) -> None:
    system = make_system(tmp_path)

    with pytest.raises(NetworkFailure):
        fetch(system, FakeRegistry(), Name.parse("tools.fmt@1.0.0"))


def test_publish_requires_archive(tmp_path: Path) -> None:
    system = make_system(tmp_path)
    write_repository(system.repository_root, "tools.fmt", "1.2.0")
    registry = FakeRegistry()

    with pytest.raises(NotFound):
        publish(system, registry, require(system, Name.parse("tools.fmt")), "key")

    assert registry.uploads == []


def test_publish_uploads_under_declared_version(tmp_path: Path) -> None:
    system = make_system(tmp_path)
    write_repository(system.repository_root, "tools.fmt", "1.2.0")
    repository = require(system, Name.parse("tools.fmt"))
    archive = generate_archive(system, repository)
    registry = FakeRegistry()

    published = publish(system, registry, repository, "key-123")

    assert published == Name.parse("tools.fmt@1.2.0")
    assert registry.uploads == [("tools/fmt/_v1.2.0", archive.read_bytes(), "key-123")]
