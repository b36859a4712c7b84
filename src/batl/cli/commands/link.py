"""Commands for binding dependencies into the working tree."""

import click

from batl.cli.core import enclosing_repository
from batl.cli.error_boundary import cli_error_boundary
from batl.cli.output import success
from batl.core.context import BatlContext
from batl.core.link_manager import add_link, remove_link
from batl.core.name import Name
from batl.core.resolver import require


@click.group("link")
def link_group() -> None:
    """Link dependencies into the enclosing repository."""


@link_group.command("add")
@click.argument("name")
@click.argument("path", type=click.Path())
@click.pass_obj
@cli_error_boundary
def link_add_cmd(ctx: BatlContext, name: str, path: str) -> None:
    """Link dependency NAME at PATH."""
    consumer = enclosing_repository(ctx)
    dependency = require(ctx.require_system(), Name.parse(name), ctx.cwd)
    stored = add_link(consumer, dependency, ctx.cwd / path, ctx.dir_links)
    success(f"Linked {dependency.name.dotted} at {stored.as_posix()}")


@link_group.command("rm")
@click.argument("name")
@click.pass_obj
@cli_error_boundary
def link_rm_cmd(ctx: BatlContext, name: str) -> None:
    """Remove the link for dependency NAME."""
    dependency = Name.parse(name)
    remove_link(enclosing_repository(ctx), dependency, ctx.dir_links)
    success(f"Unlinked {dependency.dotted}")
