"""Translate core failures into CLI errors."""

from collections.abc import Callable
from functools import wraps
from typing import Any

import click

from batl.cli.output import user_output
from batl.core.errors import BatlError


def cli_error_boundary(func: Callable) -> Callable:
    """Decorator that renders BatlError as a red "Error:" line and exits 1.

    Anything that is not a BatlError is a bug and propagates unchanged.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except BatlError as e:
            user_output(click.style("Error: ", fg="red") + str(e))
            raise SystemExit(1) from e

    return wrapper

