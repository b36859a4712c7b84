"""Application context with dependency injection."""

import os
from dataclasses import dataclass
from pathlib import Path

from batl.core.dir_links.abc import DirLinks
from batl.core.dir_links.real import default_dir_links
from batl.core.errors import NotSetup
from batl.core.registry.abc import DEFAULT_REGISTRY_URL, Registry
from batl.core.registry.real import HttpRegistry
from batl.core.shell import RealShell, Shell
from batl.core.system import BatlSystem, discover_batl_root

REGISTRY_URL_ENV = "BATL_REGISTRY_URL"


@dataclass(frozen=True)
class BatlContext:
    """Immutable context holding all dependencies for batl operations.

    Created at CLI entry point and threaded through the application.
    `system` is None only before `batl setup` has run.
    """

    system: BatlSystem | None
    cwd: Path
    dir_links: DirLinks
    registry: Registry
    shell: Shell
    registry_url: str

    def require_system(self) -> BatlSystem:
        if self.system is None:
            raise NotSetup()
        return self.system

    @staticmethod
    def for_test(
        system: BatlSystem | None = None,
        cwd: Path | None = None,
        dir_links: DirLinks | None = None,
        registry: Registry | None = None,
        shell: Shell | None = None,
        registry_url: str = DEFAULT_REGISTRY_URL,
    ) -> "BatlContext":
        """Create test context with fakes for any unspecified collaborator.

        Args:
            system: Battalion roots, usually under tmp_path. None simulates
                an install that has not been set up.
            cwd: Working directory. Defaults to the battalion root, or
                Path("/test/default/cwd") without one.
            dir_links: Defaults to an empty FakeDirLinks.
            registry: Defaults to an empty FakeRegistry.
            shell: Defaults to a FakeShell returning exit code 0.
        """
        from tests.fakes.dir_links import FakeDirLinks
        from tests.fakes.registry import FakeRegistry
        from tests.fakes.shell import FakeShell

        if cwd is None:
            cwd = system.root if system is not None else Path("/test/default/cwd")

        return BatlContext(
            system=system,
            cwd=cwd,
            dir_links=dir_links if dir_links is not None else FakeDirLinks(),
            registry=registry if registry is not None else FakeRegistry(),
            shell=shell if shell is not None else FakeShell(),
            registry_url=registry_url,
        )


def create_context() -> BatlContext:
    """Create production context with real implementations.

    Called once at CLI entry point. Battalion root discovery happens here.
    """
    cwd = Path.cwd()
    root = discover_batl_root(cwd)
    registry_url = os.environ.get(REGISTRY_URL_ENV, DEFAULT_REGISTRY_URL)

    return BatlContext(
        system=BatlSystem(root=root) if root is not None else None,
        cwd=cwd,
        dir_links=default_dir_links(),
        registry=HttpRegistry(registry_url),
        shell=RealShell(),
        registry_url=registry_url,
    )
