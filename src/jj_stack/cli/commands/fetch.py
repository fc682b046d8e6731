import click

from jj_stack.cli.commands.options import resolve_selector, stack_selection_options
from jj_stack.cli.ensure import Ensure, stack_errors
from jj_stack.cli.output import print_report
from jj_stack.core.context import StackContext
from jj_stack.core.fetch import fetch_stacks
from jj_stack.core.selection import select_heads


@click.command("fetch")
@stack_selection_options
@click.option(
    "--pull-code",
    is_flag=True,
    help="Also merge commits pushed to the pull request branch into the change.",
)
@click.pass_obj
def fetch_cmd(ctx: StackContext, revset: str | None, all_heads: bool, pull_code: bool) -> None:
    """Update change descriptions (and optionally code) from their pull requests."""
    selector = resolve_selector(revset, all_heads)
    with stack_errors():
        heads = select_heads(ctx, revset=selector, all_heads=all_heads)
        report = fetch_stacks(ctx, heads, pull_code=pull_code, selector=selector)
    print_report(report)
    Ensure.report_succeeded(report)
