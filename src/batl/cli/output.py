"""Output utilities for CLI commands with clear intent.

user_output: status and errors for a person, routed to stderr.
machine_output: data meant for pipes and scripts, routed to stdout.
"""

from typing import Any

import click
from rich.console import Console
from rich.table import Table


def user_output(message: Any = "", nl: bool = True) -> None:
    click.echo(message, err=True, nl=nl)


def machine_output(message: Any = "", nl: bool = True) -> None:
    click.echo(message, nl=nl)


def success(message: str) -> None:
    user_output(click.style("✓ ", fg="green") + message)


def print_table(table: Table) -> None:
    console = Console(stderr=True, width=200)
    console.print(table)
