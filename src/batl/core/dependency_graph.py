"""Transitive dependency closure."""

import logging
from dataclasses import dataclass

from batl.core.config_schema import Condition, RestrictSettings
from batl.core.errors import CyclicDependency, NotFound
from batl.core.name import Name
from batl.core.repository import Repository
from batl.core.resolver import resolve
from batl.core.system import BatlSystem
from batl.core.version import Version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependencyEdge:
    name: Name
    version: Version

    def __str__(self) -> str:
        return f"{self.name.dotted}@{self.version}"


def transitive_dependencies(system: BatlSystem, repository: Repository) -> list[DependencyEdge]:
    """Collect every direct and indirect dependency of `repository`.

    Dependencies of a node are recorded before the node itself. Each
    (name, version) pair appears once, in first-visit order.

    Raises:
        NotFound: If a declared dependency cannot be resolved
        CyclicDependency: If the declared graph loops back on itself
    """
    visited: dict[DependencyEdge, None] = {}
    in_progress: list[DependencyEdge] = []

    def visit(current: Repository) -> None:
        for name, version in current.config.dependencies.items():
            edge = DependencyEdge(name.without_version(), version)
            if edge in in_progress:
                chain = [str(e) for e in in_progress[in_progress.index(edge) :]]
                raise CyclicDependency([*chain, str(edge)])
            if edge in visited:
                continue

            pinned = edge.name.with_version(version)
            dependency = resolve(system, pinned)
            if dependency is None:
                raise NotFound(f"Dependency {pinned} of {current.name} does not exist")

            in_progress.append(edge)
            visit(dependency)
            in_progress.pop()

            logger.debug("Visited %s", edge)
            visited[edge] = None

    visit(repository)
    return list(visited)


@dataclass(frozen=True)
class RepositorySummary:
    """Identity, restrictions and full dependency closure of a repository."""

    name: Name
    version: Version
    dependencies: list[DependencyEdge]
    restrict: dict[Condition, RestrictSettings]


def summarize(system: BatlSystem, repository: Repository) -> RepositorySummary:
    return RepositorySummary(
        name=repository.config.name,
        version=repository.config.version,
        dependencies=transitive_dependencies(system, repository),
        restrict=dict(repository.config.restrict),
    )
