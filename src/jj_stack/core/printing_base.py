"""Shared behavior for gateway wrappers that echo mutating operations."""

from typing import Any

import click


class PrintingBase:
    """Base class for Printing* wrappers.

    Subclasses delegate every call to `self._wrapped` and call
    `self._emit(self._format_command(...))` before each write.
    """

    def __init__(self, wrapped: Any, *, script_mode: bool = False, dry_run: bool = False) -> None:
        self._wrapped = wrapped
        self._script_mode = script_mode
        self._dry_run = dry_run

    def _format_command(self, command: str) -> str:
        prefix = click.style("(dry run) ", fg="yellow") if self._dry_run else ""
        return prefix + click.style(f"$ {command}", dim=True)

    def _emit(self, message: str) -> None:
        if self._script_mode:
            return
        click.echo(message, err=True)
