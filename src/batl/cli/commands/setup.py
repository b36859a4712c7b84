"""Installation-level commands: setup, upgrade, auth."""

from pathlib import Path

import click

from batl.cli.error_boundary import cli_error_boundary
from batl.cli.output import success, user_output
from batl.core.batlrc import load_batlrc, write_batlrc
from batl.core.context import BatlContext
from batl.core.system import DEFAULT_ROOT_NAME, setup_system, upgrade_system


@click.command("setup")
@click.option(
    "--path",
    "root",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="BATL_ROOT",
    help="Where to create the battalion root (default: ~/battalion).",
)
@click.pass_obj
@cli_error_boundary
def setup_cmd(ctx: BatlContext, root: Path | None) -> None:
    """Create the battalion root directory."""
    target = root if root is not None else Path.home() / DEFAULT_ROOT_NAME
    already = ctx.system.root if ctx.system is not None else None
    system = setup_system(target.resolve(), already)
    success(f"Battalion root directory created at {system.root}")


@click.command("upgrade")
@click.pass_obj
@cli_error_boundary
def upgrade_cmd(ctx: BatlContext) -> None:
    """Bring an older battalion root up to the current layout."""
    changes = upgrade_system(ctx.require_system())
    if not changes:
        user_output("Already up to date")
        return
    for change in changes:
        success(change)


@click.command("auth")
@click.option("--key", help="API key to store. Prompted for when omitted.")
@click.pass_obj
@cli_error_boundary
def auth_cmd(ctx: BatlContext, key: str | None) -> None:
    """Store a registry API key in .batlrc."""
    system = ctx.require_system()
    if key is None:
        key = click.prompt("API key", hide_input=True)
    write_batlrc(system.root, load_batlrc(system.root).with_credentials(key))
    success("Added new API key")
