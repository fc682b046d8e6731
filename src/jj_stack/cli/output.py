"""Output utilities for CLI commands with clear intent.

- user_output: progress and diagnostics, always on stderr
- machine_output: data meant for pipes, on stdout
- print_report: styled per-element summary of an engine run
"""

import click
from rich.console import Console
from rich.text import Text

from jj_stack.core.report import OutcomeKind, StackReport

_STYLES: dict[OutcomeKind, str] = {
    "created": "green",
    "updated": "green",
    "unchanged": "dim",
    "discarded": "cyan",
    "closed": "cyan",
    "rebased": "blue",
    "fetched": "green",
    "conflicted": "yellow",
    "adopted": "green",
    "skipped": "yellow",
    "failed": "bold red",
}


def user_output(message: str = "", nl: bool = True) -> None:
    click.echo(message, err=True, nl=nl)


def machine_output(message: str = "") -> None:
    click.echo(message)


def print_report(report: StackReport) -> None:
    """Print one line per outcome to stderr."""
    console = Console(stderr=True, highlight=False, soft_wrap=True)
    for outcome, line in zip(report.outcomes, report.render_lines(), strict=True):
        console.print(Text(line, style=_STYLES[outcome.kind]))
