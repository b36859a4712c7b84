import logging

import click

from batl.cli.commands.dependencies import add_cmd, deps_cmd, remove_cmd, rm_cmd
from batl.cli.commands.link import link_group
from batl.cli.commands.repository import (
    archive_cmd,
    delete_cmd,
    exec_cmd,
    fetch_cmd,
    init_cmd,
    ls_cmd,
    publish_cmd,
    search_cmd,
    which_cmd,
)
from batl.cli.commands.setup import auth_cmd, setup_cmd, upgrade_cmd
from batl.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="batl")
@click.option("--debug", is_flag=True, help="Log internal steps to stderr.")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Manage named, versioned repositories and the links between them."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s"
        )
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context()


cli.add_command(setup_cmd)
cli.add_command(upgrade_cmd)
cli.add_command(auth_cmd)
cli.add_command(init_cmd)
cli.add_command(delete_cmd)
cli.add_command(ls_cmd)
cli.add_command(which_cmd)
cli.add_command(add_cmd)
cli.add_command(remove_cmd)
cli.add_command(rm_cmd)
cli.add_command(deps_cmd)
cli.add_command(link_group)
cli.add_command(archive_cmd)
cli.add_command(publish_cmd)
cli.add_command(fetch_cmd)
cli.add_command(search_cmd)
cli.add_command(exec_cmd)


def main() -> None:
    """CLI entry point used by the `batl` console script."""
    cli()
