import click

from jj_stack.cli.ensure import stack_errors
from jj_stack.cli.output import machine_output, user_output
from jj_stack.core.context import StackContext

_DECISIONS = {
    "APPROVED": "approved",
    "CHANGES_REQUESTED": "changes-requested",
    "REVIEW_REQUIRED": "pending",
}


@click.command("list")
@click.pass_obj
def list_cmd(ctx: StackContext) -> None:
    """List open pull requests on branches under the configured prefix.

    Prints one tab-separated line per pull request: number, review decision,
    title and URL.
    """
    with stack_errors():
        pull_requests = ctx.github.list_open_pull_requests(ctx.repo_root)

    mine = sorted(
        (pr for pr in pull_requests if pr.head_branch.startswith(ctx.config.branch_prefix)),
        key=lambda pr: pr.number,
    )
    if not mine:
        user_output(f"No open pull requests on branches under {ctx.config.branch_prefix}")
        return

    for pr in mine:
        decision = _DECISIONS.get(pr.review_decision or "", "pending")
        url = pr.url or ctx.config.pull_request_url(pr.number)
        machine_output(f"#{pr.number}\t{decision}\t{pr.title}\t{url}")
