"""Repository lifecycle commands."""

import click
from rich.table import Table

from batl.cli.core import named_or_enclosing
from batl.cli.error_boundary import cli_error_boundary
from batl.cli.output import machine_output, print_table, success, user_output
from batl.core.archive import generate_archive
from batl.core.batlrc import load_batlrc
from batl.core.config_schema import GitConfig
from batl.core.context import BatlContext
from batl.core.errors import ScriptFailed, ScriptNotFound
from batl.core.name import Name
from batl.core.resolver import create, destroy, list_repositories, require
from batl.core.transfer import fetch, publish

ARCHIVE_SUFFIX = ".tar"


@click.command("init")
@click.argument("name")
@click.option("--git-url", help="Record a git origin for this repository.")
@click.option(
    "--git-path", default="git", show_default=True, help="Checkout directory for the git origin."
)
@click.pass_obj
@cli_error_boundary
def init_cmd(ctx: BatlContext, name: str, git_url: str | None, git_path: str) -> None:
    """Create a new repository."""
    git = GitConfig(url=git_url, path=git_path) if git_url is not None else None
    repository = create(ctx.require_system(), Name.parse(name), git)
    success(f"Initialized repository {repository.name} at {repository.path}")


@click.command("delete")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
@cli_error_boundary
def delete_cmd(ctx: BatlContext, name: str, yes: bool) -> None:
    """Delete a repository. This cannot be undone."""
    repository = require(ctx.require_system(), Name.parse(name), ctx.cwd)
    if not yes and not click.confirm(f"Delete {repository.path}?", default=False):
        user_output("Aborted")
        return
    destroy(repository)
    success(f"Deleted repository {repository.name}")


@click.command("ls")
@click.argument("filter_text", metavar="FILTER", required=False)
@click.pass_obj
@cli_error_boundary
def ls_cmd(ctx: BatlContext, filter_text: str | None) -> None:
    """List stored repositories, optionally filtered by substring."""
    listings = list_repositories(ctx.require_system())
    if filter_text:
        listings = [listing for listing in listings if filter_text in str(listing.name)]

    if not listings:
        user_output("No repositories found")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("name", style="cyan", no_wrap=True)
    table.add_column("version", no_wrap=True)
    table.add_column("source", no_wrap=True)
    for listing in listings:
        version = str(listing.name.version) if listing.name.version is not None else "-"
        table.add_row(listing.name.dotted, version, listing.provenance.value)
    print_table(table)


@click.command("which")
@click.argument("name")
@click.pass_obj
@cli_error_boundary
def which_cmd(ctx: BatlContext, name: str) -> None:
    """Print the directory a name resolves to."""
    repository = require(ctx.require_system(), Name.parse(name), ctx.cwd)
    machine_output(str(repository.path))


@click.command("archive")
@click.argument("name")
@click.pass_obj
@cli_error_boundary
def archive_cmd(ctx: BatlContext, name: str) -> None:
    """Generate the tar archive of a repository."""
    system = ctx.require_system()
    archive = generate_archive(system, require(system, Name.parse(name), ctx.cwd))
    success(f"Archived {archive.name} to {archive.path}")


@click.command("publish")
@click.argument("name")
@click.pass_obj
@cli_error_boundary
def publish_cmd(ctx: BatlContext, name: str) -> None:
    """Upload a previously generated archive to the registry."""
    system = ctx.require_system()
    repository = require(system, Name.parse(name), ctx.cwd)
    published = publish(system, ctx.registry, repository, load_batlrc(system.root).credentials)
    success(f"Published {published} to {ctx.registry_url}")


@click.command("fetch")
@click.argument("name")
@click.pass_obj
@cli_error_boundary
def fetch_cmd(ctx: BatlContext, name: str) -> None:
    """Download a repository from the registry."""
    repository = fetch(ctx.require_system(), ctx.registry, Name.parse(name))
    success(f"Fetched {repository.name} into {repository.path}")


@click.command("search")
@click.argument("query", default="")
@click.pass_obj
@cli_error_boundary
def search_cmd(ctx: BatlContext, query: str) -> None:
    """Search the registry."""
    items = ctx.registry.search(query)
    if not items:
        user_output("No results")
        return
    for item in items:
        if item.endswith(ARCHIVE_SUFFIX):
            label = click.style("(archive)", dim=True)
            user_output(f"{item.removesuffix(ARCHIVE_SUFFIX)} {label}")
        else:
            user_output(item)


@click.command("exec")
@click.argument("script")
@click.option("--name", "-n", help="Repository to run in (default: the enclosing one).")
@click.pass_obj
@cli_error_boundary
def exec_cmd(ctx: BatlContext, script: str, name: str | None) -> None:
    """Run a script declared in batl.toml."""
    repository = named_or_enclosing(ctx, name)
    command = repository.script(script)
    if command is None:
        raise ScriptNotFound(script)

    exit_code = ctx.shell.run_script(command, repository.path)
    if exit_code != 0:
        raise ScriptFailed(script, exit_code)
