"""Helpers shared by the engines for picking what to operate on."""

from jj_stack.core.context import StackContext
from jj_stack.core.errors import ConfigError, EmptyStack
from jj_stack.core.walker import Stack, walk_stacks

ALL_MUTABLE_REVSET = "mutable()"


def select_heads(ctx: StackContext, *, revset: str, all_heads: bool) -> list[str]:
    """Resolve the heads a command operates on."""
    selector = ALL_MUTABLE_REVSET if all_heads else revset
    return ctx.jj.resolve_heads(ctx.repo_root, selector)


def refresh_trunk(ctx: StackContext) -> str:
    """Fetch the remote and return the commit of the default branch tip."""
    ctx.jj.fetch(ctx.repo_root, ctx.config.remote_name)
    trunk = ctx.jj.resolve_commit(ctx.repo_root, ctx.config.trunk_ref)
    if trunk is None:
        msg = (
            f"Cannot find {ctx.config.trunk_ref}. Check that '{ctx.config.default_branch}' "
            f"exists on remote '{ctx.config.remote_name}'."
        )
        raise ConfigError(msg)
    return trunk


def collect_stacks(
    ctx: StackContext,
    heads: list[str],
    trunk_commit: str,
    *,
    selector: str,
    merges_are_boundaries: bool = False,
) -> list[Stack]:
    """Walk all heads and fail with EmptyStack if nothing is eligible."""
    stacks = walk_stacks(
        ctx.jj,
        ctx.repo_root,
        heads,
        trunk_commit,
        merges_are_boundaries=merges_are_boundaries,
    )
    if not stacks:
        raise EmptyStack(selector)
    return stacks


def unique_changes(stacks: list[Stack]) -> list[str]:
    """Change ids across stacks in processing order, each once."""
    return list(dict.fromkeys(cid for stack in stacks for cid in stack.change_ids))
