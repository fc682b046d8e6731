"""Retry logic with exponential backoff for transient remote failures.

Only rate limiting and transient network errors are retried. Every other
exception, including authentication failures and conflicts, propagates on the
first attempt.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

import click

from jj_stack.core.errors import RETRYABLE_ERRORS
from jj_stack.core.time.abc import Time

T = TypeVar("T")


def retry_with_backoff(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    *,
    backoff_factor: float = 2.0,
    time: Time | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry function with exponential backoff for retryable remote errors.

    Supports two usage patterns:
    1. Function whose first argument has a `time` attribute (e.g. StackContext)
    2. Closure function: pass `time` explicitly to the decorator

    Delay before attempt N (N >= 2) is base_delay * backoff_factor ** (N - 2),
    so the defaults wait 1s then 2s.

    Args:
        max_attempts: Maximum number of attempts (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        backoff_factor: Multiplier for exponential backoff (default: 2.0)
        time: Time gateway used to sleep between attempts

    Returns:
        Decorator function that wraps the target function with retry logic

    Raises:
        RateLimited | TransientRemoteError: Re-raised after max_attempts
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            clock: Time
            if time is not None:
                clock = time
            elif args and isinstance(getattr(args[0], "time", None), Time):
                clock = args[0].time
            else:
                msg = (
                    f"Function {func.__name__} must either take an object with a "
                    "`time` attribute as first parameter or decorator must receive time"
                )
                raise TypeError(msg)

            for attempt in range(max_attempts):
                if attempt > 0:
                    delay = base_delay * (backoff_factor ** (attempt - 1))
                    click.echo(
                        f"Retrying after {delay:.1f}s (attempt {attempt + 1}/{max_attempts})...",
                        err=True,
                    )
                    clock.sleep(delay)

                try:
                    return func(*args, **kwargs)
                except RETRYABLE_ERRORS as e:
                    if attempt == max_attempts - 1:
                        raise
                    click.echo(f"Operation failed: {e}", err=True)

            msg = f"Function {func.__name__} called with max_attempts={max_attempts}"
            raise ValueError(msg)

        return wrapper

    return decorator
