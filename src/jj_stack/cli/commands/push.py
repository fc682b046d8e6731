import click

from jj_stack.cli.commands.options import resolve_selector, stack_selection_options
from jj_stack.cli.ensure import Ensure, stack_errors
from jj_stack.cli.output import print_report
from jj_stack.core.context import StackContext
from jj_stack.core.reconcile import PushOptions, push_stacks
from jj_stack.core.selection import select_heads


@click.command("push")
@stack_selection_options
@click.option(
    "-m",
    "--message",
    default=None,
    help="Commit message for updates to existing pull requests (default: 'Update <title>').",
)
@click.option(
    "-f",
    "--force",
    is_flag=True,
    help="Update branches even if someone else pushed to them. Their commits stay in history.",
)
@click.pass_obj
def push_cmd(
    ctx: StackContext, revset: str | None, all_heads: bool, message: str | None, force: bool
) -> None:
    """Create or update one pull request per change in the stack.

    Pull requests are chained: each one is based on the branch of the change
    below it, and the lowest one on the default branch.
    """
    selector = resolve_selector(revset, all_heads)
    with stack_errors():
        heads = select_heads(ctx, revset=selector, all_heads=all_heads)
        report = push_stacks(
            ctx, heads, PushOptions(message=message, force=force), selector=selector
        )
    print_report(report)
    Ensure.report_succeeded(report)
