"""Dependency declaration and inspection commands."""

import click

from batl.cli.core import enclosing_repository, named_or_enclosing
from batl.cli.error_boundary import cli_error_boundary
from batl.cli.output import machine_output, success
from batl.core.context import BatlContext
from batl.core.dependency_graph import summarize
from batl.core.link_manager import remove_dependency
from batl.core.name import Name
from batl.core.resolver import require
from batl.core.version import Version


@click.command("add")
@click.argument("name")
@click.option("--version", "version_text", help="Pin to this version instead of the resolved one.")
@click.pass_obj
@cli_error_boundary
def add_cmd(ctx: BatlContext, name: str, version_text: str | None) -> None:
    """Declare a dependency of the enclosing repository.

    Without --version the dependency is resolved and pinned to the version
    it currently declares.
    """
    system = ctx.require_system()
    consumer = enclosing_repository(ctx)
    dependency = Name.parse(name)

    if version_text is not None:
        version = Version.parse(version_text)
    elif dependency.version is not None:
        version = dependency.version
    else:
        version = require(system, dependency, ctx.cwd).version

    consumer.add_dependency(dependency, version)
    success(f"Added dependency {dependency.dotted}@{version}")


@click.command("remove")
@click.argument("name")
@click.pass_obj
@cli_error_boundary
def remove_cmd(ctx: BatlContext, name: str) -> None:
    """Remove a dependency of the enclosing repository."""
    _remove(ctx, name)


# Register rm as a hidden alias (won't show in help)
@click.command("rm", hidden=True)
@click.argument("name")
@click.pass_obj
@cli_error_boundary
def rm_cmd(ctx: BatlContext, name: str) -> None:
    """Remove a dependency of the enclosing repository (alias of 'remove')."""
    _remove(ctx, name)


def _remove(ctx: BatlContext, name: str) -> None:
    consumer = enclosing_repository(ctx)
    dependency = Name.parse(name)
    remove_dependency(consumer, dependency)
    success(f"Removed dependency {dependency.dotted}")


@click.command("deps")
@click.argument("name", required=False)
@click.pass_obj
@cli_error_boundary
def deps_cmd(ctx: BatlContext, name: str | None) -> None:
    """Show a repository's restrictions and full dependency closure."""
    system = ctx.require_system()
    summary = summarize(system, named_or_enclosing(ctx, name))

    machine_output(click.style(f"{summary.name}@{summary.version}", bold=True))
    for condition, settings in summary.restrict.items():
        include = settings.include.value if settings.include is not None else "-"
        machine_output(f"  restrict {condition.value}: include={include}")
        for dep_name, dep_version in settings.dependencies.items():
            machine_output(f"    {dep_name}@{dep_version}")

    if not summary.dependencies:
        machine_output("  no dependencies")
        return
    for edge in summary.dependencies:
        machine_output(f"  {edge}")
