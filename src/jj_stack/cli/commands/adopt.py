import click

from jj_stack.cli.ensure import Ensure, stack_errors
from jj_stack.cli.output import print_report
from jj_stack.core.adopt import adopt_pull_request
from jj_stack.core.context import StackContext


@click.command("adopt")
@click.argument("pull_request")
@click.option(
    "--no-checkout",
    is_flag=True,
    help="Leave the working copy where it is instead of moving it to the new top change.",
)
@click.pass_obj
def adopt_cmd(ctx: StackContext, pull_request: str, no_checkout: bool) -> None:
    """Create local changes for PULL_REQUEST and every pull request it is based on.

    PULL_REQUEST is a number (123, #123) or a pull request URL of this repository.
    """
    number = Ensure.not_none(
        ctx.config.parse_pull_request_field(pull_request),
        f"'{pull_request}' is not a pull request of {ctx.config.owner}/{ctx.config.repo}",
    )
    with stack_errors():
        report = adopt_pull_request(ctx, number, checkout=not no_checkout)
    print_report(report)
    Ensure.report_succeeded(report)
