import click

from jj_stack.cli.output import user_output
from jj_stack.core.context import StackContext
from jj_stack.core.repo_discovery import SETTINGS_FILE_NAME
from jj_stack.core.settings import LoadedSettings, save_settings


@click.command("init")
@click.pass_obj
def init_cmd(ctx: StackContext) -> None:
    """Write the resolved repository settings to .jj-stack.toml.

    Values come from --github-repository/--branch-prefix, an existing settings
    file, the git remote and the authenticated gh user, in that order. Existing
    formatting and comments are preserved.
    """
    path = ctx.repo_root / SETTINGS_FILE_NAME
    config = ctx.config
    settings = LoadedSettings(
        owner=config.owner,
        repo=config.repo,
        remote_name=config.remote_name,
        default_branch=config.default_branch,
        branch_prefix=config.branch_prefix,
    )

    if ctx.dry_run:
        user_output(f"(dry run) Would write {path}")
        return

    save_settings(path, settings)
    user_output(f"✓ Wrote {path}")
    user_output(f"  repository:     {config.owner}/{config.repo}")
    user_output(f"  default branch: {config.default_branch}@{config.remote_name}")
    user_output(f"  branch prefix:  {config.branch_prefix}")
