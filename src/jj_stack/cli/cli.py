import logging
import os
from pathlib import Path

import click

from jj_stack.cli.commands.adopt import adopt_cmd
from jj_stack.cli.commands.fetch import fetch_cmd
from jj_stack.cli.commands.init import init_cmd
from jj_stack.cli.commands.list_cmd import list_cmd
from jj_stack.cli.commands.push import push_cmd
from jj_stack.cli.commands.sync import sync_cmd
from jj_stack.cli.ensure import stack_errors
from jj_stack.core.config import parse_repository_option
from jj_stack.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

DEBUG_ENV_VAR = "JJ_STACK_DEBUG"


def _validate_repository(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> str | None:
    if value is not None and parse_repository_option(value) is None:
        raise click.BadParameter("expected OWNER/REPO")
    return value


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="jj-stack")
@click.option(
    "--github-repository",
    default=None,
    callback=_validate_repository,
    help="GitHub repository as OWNER/REPO (default: from settings or the git remote).",
)
@click.option(
    "--branch-prefix",
    default=None,
    help="Prefix for new pull request branches (default: spr/<github-login>/).",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Print what would be changed locally and on GitHub without changing anything.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    github_repository: str | None,
    branch_prefix: str | None,
    dry_run: bool,
) -> None:
    """Stacked GitHub pull requests for Jujutsu changes."""
    if os.getenv(DEBUG_ENV_VAR):
        logging.basicConfig(
            level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s"
        )

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        with stack_errors():
            ctx.obj = create_context(
                cwd=Path.cwd(),
                dry_run=dry_run,
                repository=github_repository,
                branch_prefix=branch_prefix,
            )


cli.add_command(adopt_cmd)
cli.add_command(fetch_cmd)
cli.add_command(init_cmd)
cli.add_command(list_cmd)
cli.add_command(push_cmd)
cli.add_command(sync_cmd)


def main() -> None:
    """CLI entry point used by the `jj-stack` console script."""
    cli()
