"""Repository lookups shared by CLI commands."""

from batl.core.context import BatlContext
from batl.core.errors import NotFound
from batl.core.name import Name
from batl.core.repository import Repository
from batl.core.resolver import locate_then_load, require


def enclosing_repository(ctx: BatlContext) -> Repository:
    """Load the repository containing the working directory.

    Raises:
        NotFound: If the working directory is not inside a repository
    """
    repository = locate_then_load(ctx.require_system(), ctx.cwd)
    if repository is None:
        raise NotFound(f"{ctx.cwd} is not inside a battalion repository")
    return repository


def named_or_enclosing(ctx: BatlContext, name: str | None) -> Repository:
    """Resolve `name` if given, otherwise use the enclosing repository."""
    if name is None:
        return enclosing_repository(ctx)
    return require(ctx.require_system(), Name.parse(name), ctx.cwd)
