"""CLI error handling utilities with styled output.

All errors use a red "Error:" prefix for visual consistency and exit with
status 1.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TypeVar

import click

from jj_stack.cli.output import user_output
from jj_stack.core.errors import StackError
from jj_stack.core.report import StackReport

T = TypeVar("T")


class Ensure:
    """Helper class for asserting invariants with consistent error handling."""

    @staticmethod
    def invariant(condition: bool, error_message: str) -> None:
        """Ensure condition is true, otherwise output styled error and exit.

        Args:
            condition: Boolean condition to check
            error_message: Error message to display if condition is false.
                          "Error: " prefix will be added automatically in red.

        Raises:
            SystemExit: If condition is false (with exit code 1)
        """
        if not condition:
            user_output(click.style("Error: ", fg="red") + error_message)
            raise SystemExit(1)

    @staticmethod
    def not_none(value: T | None, error_message: str) -> T:
        """Ensure value is not None, otherwise output styled error and exit.

        Returns:
            The value unchanged if not None (with narrowed type T)

        Raises:
            SystemExit: If value is None (with exit code 1)
        """
        if value is None:
            user_output(click.style("Error: ", fg="red") + error_message)
            raise SystemExit(1)
        return value

    @staticmethod
    def report_succeeded(report: StackReport) -> None:
        """Ensure no element of a run failed, otherwise summarize failures and exit.

        Raises:
            SystemExit: If any outcome failed (with exit code 1)
        """
        failures = report.failures
        if not failures:
            return
        noun = "element" if len(failures) == 1 else "elements"
        user_output(click.style("Error: ", fg="red") + f"{len(failures)} stack {noun} failed:")
        for failure in failures:
            user_output(f"  {failure.change_id}: {failure.message}")
        raise SystemExit(1)


@contextmanager
def stack_errors() -> Iterator[None]:
    """Turn errors that abort a whole command into a styled message and exit 1."""
    try:
        yield
    except StackError as e:
        subject = f" ({e.change_id})" if e.change_id else ""
        user_output(click.style("Error: ", fg="red") + f"{e}{subject}")
        raise SystemExit(1) from e
    except RuntimeError as e:
        user_output(click.style("Error: ", fg="red") + str(e))
        raise SystemExit(1) from e
