"""Sync: drop changes whose pull requests landed and rebase the rest onto trunk.

Sync never writes to the remote. It reads pull request state, then abandons
and rebases locally.
"""

import logging

from jj_stack.core.association import AssociationStore
from jj_stack.core.context import StackContext
from jj_stack.core.errors import RemoteAuthError, RemoteError, StackError
from jj_stack.core.github.types import PullRequest
from jj_stack.core.message import decode
from jj_stack.core.report import ElementOutcome, StackReport
from jj_stack.core.selection import collect_stacks, refresh_trunk

logger = logging.getLogger(__name__)


def read_pull_requests(
    ctx: StackContext, numbers: list[int]
) -> dict[int, PullRequest | RemoteError]:
    """Read pull requests concurrently, attributing failures to single numbers.

    Raises:
        RemoteAuthError: Credentials were rejected
    """
    try:
        return dict(ctx.github.get_pull_requests(ctx.repo_root, numbers))
    except RemoteAuthError:
        raise
    except RemoteError:
        logger.debug("Batch read failed, reading pull requests one at a time")

    results: dict[int, PullRequest | RemoteError] = {}
    for number in dict.fromkeys(numbers):
        try:
            results[number] = ctx.github.get_pull_request(ctx.repo_root, number)
        except RemoteAuthError:
            raise
        except RemoteError as e:
            results[number] = e
    return results


def sync_stacks(ctx: StackContext, heads: list[str], *, selector: str = "@") -> StackReport:
    """Discard landed or closed changes base to head, then rebase survivors onto trunk.

    A failure while discarding stops that stack: nothing above it is discarded
    or rebased.
    """
    trunk = refresh_trunk(ctx)
    stacks = collect_stacks(ctx, heads, trunk, selector=selector)
    store = AssociationStore(ctx.jj, ctx.config, ctx.repo_root)

    associations = {}
    for stack in stacks:
        for change in stack.changes:
            association = store.read(change)
            if association is not None:
                associations[change.change_id] = association
    pull_requests = read_pull_requests(ctx, [a.pr_number for a in associations.values()])

    report = StackReport()
    seen: set[str] = set()
    halted: set[str] = set()
    survivors: list[str] = []

    for stack in stacks:
        stack_halted = False
        for change in stack.changes:
            if change.change_id in seen:
                stack_halted = stack_halted or change.change_id in halted
                continue
            seen.add(change.change_id)
            title = decode(change.description).title

            if stack_halted:
                halted.add(change.change_id)
                report.add(
                    ElementOutcome(
                        change_id=change.change_id,
                        kind="skipped",
                        title=title,
                        message="an earlier element failed",
                    )
                )
                continue

            association = associations.get(change.change_id)
            if association is None:
                survivors.append(change.change_id)
                continue

            pr = pull_requests[association.pr_number]
            if isinstance(pr, RemoteError):
                stack_halted = True
                halted.add(change.change_id)
                report.add(
                    ElementOutcome(
                        change_id=change.change_id,
                        kind="failed",
                        title=title,
                        pr_number=association.pr_number,
                        message=str(pr),
                        error=pr,
                    )
                )
                continue

            if pr.state == "OPEN":
                survivors.append(change.change_id)
                continue
            elif pr.state == "MERGED":
                kind = "discarded"
            elif pr.state == "CLOSED":
                kind = "closed"
            else:
                msg = f"Unknown pull request state {pr.state!r} for #{pr.number}"
                raise ValueError(msg)

            try:
                ctx.jj.abandon(ctx.repo_root, change.change_id)
            except RuntimeError as e:
                stack_halted = True
                halted.add(change.change_id)
                error = StackError(str(e), change_id=change.change_id)
                report.add(
                    ElementOutcome(
                        change_id=change.change_id,
                        kind="failed",
                        title=title,
                        pr_number=pr.number,
                        message=str(e),
                        error=error,
                    )
                )
                continue
            report.add(
                ElementOutcome(
                    change_id=change.change_id, kind=kind, title=title, pr_number=pr.number
                )
            )

    _rebase_survivors(ctx, trunk, [cid for cid in survivors if cid not in halted], halted, report)
    return report


def _rebase_survivors(
    ctx: StackContext,
    trunk: str,
    survivors: list[str],
    halted: set[str],
    report: StackReport,
) -> None:
    remaining = set(survivors)
    moved: set[str] = set()
    for change_id in survivors:
        change = ctx.jj.get_change(ctx.repo_root, change_id)
        title = decode(change.description).title
        parent_id = change.parent_ids[0]

        if parent_id in halted:
            report.add(
                ElementOutcome(
                    change_id=change_id,
                    kind="skipped",
                    title=title,
                    message="an earlier element failed",
                )
            )
            continue
        if parent_id in moved:
            moved.add(change_id)
            report.add(
                ElementOutcome(
                    change_id=change_id, kind="rebased", title=title, message="with its parent"
                )
            )
            continue
        if parent_id in remaining or change.parent_commit_ids[0] == trunk:
            report.add(ElementOutcome(change_id=change_id, kind="unchanged", title=title))
            continue

        try:
            ctx.jj.rebase(ctx.repo_root, change_id, trunk)
        except RuntimeError as e:
            report.add(
                ElementOutcome(
                    change_id=change_id,
                    kind="failed",
                    title=title,
                    message=str(e),
                    error=StackError(str(e), change_id=change_id),
                )
            )
            continue
        moved.add(change_id)
        report.add(
            ElementOutcome(
                change_id=change_id, kind="rebased", title=title, message=f"onto {trunk[:12]}"
            )
        )
