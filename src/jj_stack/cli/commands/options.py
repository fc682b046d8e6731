"""Options shared by the stack commands."""

from collections.abc import Callable
from typing import Any

import click

from jj_stack.cli.ensure import Ensure

DEFAULT_REVSET = "@"


def stack_selection_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add -r/--revset and -a/--all to a command."""
    func = click.option(
        "-a",
        "--all",
        "all_heads",
        is_flag=True,
        help="Operate on every mutable head instead of a revset.",
    )(func)
    func = click.option(
        "-r",
        "--revset",
        default=None,
        help=f"Heads of the stacks to operate on (default: {DEFAULT_REVSET}).",
    )(func)
    return func


def resolve_selector(revset: str | None, all_heads: bool) -> str:
    """Validate the selection options and return a description of the selection."""
    Ensure.invariant(not (all_heads and revset is not None), "--all and --revset are exclusive")
    if all_heads:
        return "all mutable heads"
    return revset if revset is not None else DEFAULT_REVSET
