"""Fetch: pull pull-request titles, bodies and optionally code into local changes."""

import logging

from jj_stack.core.association import Association, AssociationStore
from jj_stack.core.context import StackContext
from jj_stack.core.errors import MergeConflict, RemoteAuthError, StackError
from jj_stack.core.github.types import PullRequest
from jj_stack.core.message import decode, rewrite_summary
from jj_stack.core.report import ElementOutcome, StackReport
from jj_stack.core.selection import collect_stacks, refresh_trunk, unique_changes

logger = logging.getLogger(__name__)


def fetch_stacks(
    ctx: StackContext, heads: list[str], *, pull_code: bool, selector: str = "@"
) -> StackReport:
    """Update every associated change in the selected stacks from its pull request.

    Merges are treated as stack boundaries rather than errors.
    """
    trunk = refresh_trunk(ctx)
    stacks = collect_stacks(ctx, heads, trunk, selector=selector, merges_are_boundaries=True)
    store = AssociationStore(ctx.jj, ctx.config, ctx.repo_root)

    report = StackReport()
    for change_id in unique_changes(stacks):
        change = ctx.jj.get_change(ctx.repo_root, change_id)
        title = decode(change.description).title
        association = store.read(change)
        if association is None:
            report.add(
                ElementOutcome(
                    change_id=change_id, kind="skipped", title=title, message="no pull request"
                )
            )
            continue

        try:
            report.add(_fetch_element(ctx, store, trunk, association, pull_code=pull_code))
        except RemoteAuthError:
            raise
        except StackError as e:
            report.add(
                ElementOutcome(
                    change_id=change_id,
                    kind="failed",
                    title=title,
                    pr_number=association.pr_number,
                    message=str(e),
                    error=e,
                )
            )
    return report


def _fetch_element(
    ctx: StackContext,
    store: AssociationStore,
    trunk: str,
    association: Association,
    *,
    pull_code: bool,
) -> ElementOutcome:
    root = ctx.repo_root
    change_id = association.change_id
    pr = ctx.github.get_pull_request(root, association.pr_number)
    change = ctx.jj.get_change(root, change_id)
    message = decode(change.description)
    updates: list[str] = []

    if (pr.title.strip(), pr.body.strip()) != (message.title, message.body):
        ctx.jj.describe(root, change_id, rewrite_summary(change.description, pr.title, pr.body))
        updates.append("description")

    if not pull_code:
        return _outcome(change_id, pr, updates)

    tip = ctx.github.get_branch_head(root, pr.head_branch) or pr.head_sha
    last = association.last_commit
    if last is None:
        updates.append("code skipped: no Last Commit recorded")
        return _outcome(change_id, pr, updates)
    if tip == last:
        return _outcome(change_id, pr, updates)

    if _rebase_onto_remote_fork(ctx, trunk, change_id, pr, tip):
        updates.append("rebased")

    conflicted = ctx.jj.merge_into(root, change_id, last, tip)
    store.write(change_id, pr.number, tip)
    updates.append("code")

    if conflicted:
        error = MergeConflict(
            f"Remote changes from {pr.head_branch} conflict with local edits; "
            "resolve the conflict in the change",
            change_id=change_id,
        )
        return ElementOutcome(
            change_id=change_id,
            kind="conflicted",
            title=pr.title,
            pr_number=pr.number,
            message=str(error),
            error=error,
        )
    return _outcome(change_id, pr, updates)


def _rebase_onto_remote_fork(
    ctx: StackContext, trunk: str, change_id: str, pr: PullRequest, tip: str
) -> bool:
    """Move the change onto a newer trunk commit the remote branch already merged."""
    if pr.base_branch != ctx.config.default_branch:
        return False
    root = ctx.repo_root
    change = ctx.jj.get_change(root, change_id)
    remote_fork = ctx.jj.merge_base(root, tip, trunk)
    local_fork = ctx.jj.merge_base(root, change.commit_id, trunk)
    if remote_fork is None or local_fork is None or remote_fork == local_fork:
        return False
    if not ctx.jj.is_ancestor(root, local_fork, remote_fork):
        return False
    logger.debug("Rebasing %s onto %s to match %s", change_id, remote_fork, pr.head_branch)
    ctx.jj.rebase(root, change_id, remote_fork)
    return True


def _outcome(change_id: str, pr: PullRequest, updates: list[str]) -> ElementOutcome:
    return ElementOutcome(
        change_id=change_id,
        kind="fetched" if updates else "unchanged",
        title=pr.title,
        pr_number=pr.number,
        message=", ".join(updates),
    )
