"""Tests for the transitive dependency closure."""

from pathlib import Path

import pytest

from batl.core.dependency_graph import DependencyEdge, summarize, transitive_dependencies
from batl.core.errors import CyclicDependency, NotFound
from batl.core.name import Name
from batl.core.resolver import require
from batl.core.version import Version
from tests.test_utils.storage import make_system, write_repository


def _edge(text: str) -> DependencyEdge:
    name = Name.parse(text)
    assert name.version is not None
    return DependencyEdge(name.without_version(), name.version)


def test_chain_closure(tmp_path: Path) -> None:
    """Test A -> B@1.0.0 -> C@2.0.0 yields exactly B and C."""
    system = make_system(tmp_path)
    write_repository(system.repository_root, "a", "0.1.0", dependencies={"b": "1.0.0"})
    write_repository(system.repository_root, "b", "1.0.0", pinned=True, dependencies={"c": "2.0.0"})
    write_repository(system.repository_root, "c", "2.0.0", pinned=True)

    closure = transitive_dependencies(system, require(system, Name.parse("a")))

    assert set(closure) == {_edge("b@1.0.0"), _edge("c@2.0.0")}


def test_dependencies_come_before_dependents(tmp_path: Path) -> None:
    system = make_system(tmp_path)
    write_repository(system.repository_root, "a", "0.1.0", dependencies={"b": "1.0.0"})
    write_repository(system.repository_root, "b", "1.0.0", pinned=True, dependencies={"c": "2.0.0"})
    write_repository(system.repository_root, "c", "2.0.0", pinned=True)

    closure = transitive_dependencies(system, require(system, Name.parse("a")))

    assert closure == [_edge("c@2.0.0"), _edge("b@1.0.0")]


def test_diamond_collapses_to_one_visit(tmp_path: Path) -> None:
    system = make_system(tmp_path)
    write_repository(
        system.repository_root, "top", "0.1.0", dependencies={"left": "1.0.0", "right": "1.0.0"}
    )
    write_repository(
        system.repository_root, "left", "1.0.0", pinned=True, dependencies={"base": "1.0.0"}
    )
    write_repository(
        system.repository_root, "right", "1.0.0", pinned=True, dependencies={"base": "1.0.0"}
    )
    write_repository(system.repository_root, "base", "1.0.0", pinned=True)

    closure = transitive_dependencies(system, require(system, Name.parse("top")))

    assert len(closure) == 3
    assert closure.count(_edge("base@1.0.0")) == 1


def test_fetched_dependencies_are_followed(tmp_path: Path) -> None:
    system = make_system(tmp_path)
    write_repository(system.repository_root, "app", "0.1.0", dependencies={"lib": "1.0.0"})
    write_repository(system.fetched_root, "lib", "1.0.0", pinned=True)

    closure = transitive_dependencies(system, require(system, Name.parse("app")))

    assert closure == [_edge("lib@1.0.0")]


def test_cycle_is_reported(tmp_path: Path) -> None:
    """Test that a looping declaration fails instead of recursing forever."""
    system = make_system(tmp_path)
    write_repository(
        system.repository_root, "ping", "1.0.0", pinned=True, dependencies={"pong": "1.0.0"}
    )
    write_repository(
        system.repository_root, "pong", "1.0.0", pinned=True, dependencies={"ping": "1.0.0"}
    )

    with pytest.raises(CyclicDependency) as excinfo:
        transitive_dependencies(system, require(system, Name.parse("ping@1.0.0")))

    assert excinfo.value.chain[0] == excinfo.value.chain[-1]


def test_missing_dependency_is_not_found(tmp_path: Path) -> None:
    system = make_system(tmp_path)
    write_repository(system.repository_root, "app", "0.1.0", dependencies={"ghost": "1.0.0"})

    with pytest.raises(NotFound):
        transitive_dependencies(system, require(system, Name.parse("app")))


def test_summary(tmp_path: Path) -> None:
    system = make_system(tmp_path)
    write_repository(system.repository_root, "app", "0.3.0", dependencies={"lib": "1.0.0"})
    write_repository(system.repository_root, "lib", "1.0.0", pinned=True)

    summary = summarize(system, require(system, Name.parse("app")))

    assert summary.name == Name.parse("app")
    assert summary.version == Version(0, 3, 0)
    assert summary.dependencies == [_edge("lib@1.0.0")]
    assert summary.restrict == {}
