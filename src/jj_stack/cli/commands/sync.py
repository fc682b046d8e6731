import click

from jj_stack.cli.commands.options import resolve_selector, stack_selection_options
from jj_stack.cli.ensure import Ensure, stack_errors
from jj_stack.cli.output import print_report
from jj_stack.core.context import StackContext
from jj_stack.core.selection import select_heads
from jj_stack.core.sync import sync_stacks


@click.command("sync")
@stack_selection_options
@click.pass_obj
def sync_cmd(ctx: StackContext, revset: str | None, all_heads: bool) -> None:
    """Drop changes whose pull requests landed or closed, and rebase the rest.

    Never writes to GitHub.
    """
    selector = resolve_selector(revset, all_heads)
    with stack_errors():
        heads = select_heads(ctx, revset=selector, all_heads=all_heads)
        report = sync_stacks(ctx, heads, selector=selector)
    print_report(report)
    Ensure.report_succeeded(report)
