"""Adopt: rebuild a local stack from an existing chain of pull requests.

The chain is followed from the requested pull request down through base
branches until it reaches the default branch, a pull request that already has
a local change, or a dead end. Nothing is created locally until the whole
chain is known.
"""

import logging
from dataclasses import dataclass

from jj_stack.core.association import AssociationStore
from jj_stack.core.context import StackContext
from jj_stack.core.errors import CycleDetected, RemoteNotFound, UnresolvableBaseBranch
from jj_stack.core.github.types import PullRequest
from jj_stack.core.message import ChangeMessage, encode
from jj_stack.core.report import ElementOutcome, StackReport
from jj_stack.core.selection import refresh_trunk

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PullRequestChain:
    """Pull requests ordered base to head, plus the local change they build on."""

    pull_requests: tuple[PullRequest, ...]
    anchor_change: str | None


def collect_chain(ctx: StackContext, store: AssociationStore, number: int) -> PullRequestChain:
    """Follow base branches from `number` down to the default branch.

    Raises:
        CycleDetected: A base branch leads back to a pull request already visited
        UnresolvableBaseBranch: A base branch is neither the default branch nor the
            head of any pull request
    """
    chain: list[PullRequest] = []
    visited: list[int] = []
    anchor: str | None = None
    current = ctx.github.get_pull_request(ctx.repo_root, number)

    while True:
        if current.number in visited:
            raise CycleDetected(current.number, visited)
        visited.append(current.number)

        existing = store.find_change(current.number)
        if existing is not None:
            logger.debug("#%d is already local as %s", current.number, existing)
            anchor = existing
            break

        chain.append(current)
        if current.base_branch == ctx.config.default_branch:
            break

        parent = ctx.github.find_pull_request_by_head(ctx.repo_root, current.base_branch)
        if parent is None:
            raise UnresolvableBaseBranch(current.number, current.base_branch)
        current = parent

    chain.reverse()
    return PullRequestChain(pull_requests=tuple(chain), anchor_change=anchor)


def adopt_pull_request(ctx: StackContext, number: int, *, checkout: bool) -> StackReport:
    """Create one local change per pull request in the chain ending at `number`.

    Each change's content is its pull request's head tree, so consecutive changes
    differ by exactly what each pull request adds on top of its base.
    """
    root = ctx.repo_root
    trunk = refresh_trunk(ctx)
    store = AssociationStore(ctx.jj, ctx.config, root)
    chain = collect_chain(ctx, store, number)

    report = StackReport()
    if not chain.pull_requests:
        report.add(
            ElementOutcome(
                change_id=chain.anchor_change,
                kind="skipped",
                pr_number=number,
                message="already adopted",
            )
        )
        return report

    heads: list[str] = []
    for pr in chain.pull_requests:
        head = ctx.github.get_branch_head(root, pr.head_branch) or pr.head_sha
        if ctx.jj.resolve_commit(root, head) is None:
            msg = f"Head {head[:12]} of #{pr.number} is not available locally after fetching"
            raise RemoteNotFound(msg)
        heads.append(head)

    parent: str | None = chain.anchor_change
    if parent is None:
        parent = ctx.jj.merge_base(root, heads[0], trunk) or trunk

    for pr, head in zip(chain.pull_requests, heads, strict=True):
        description = encode(
            ChangeMessage(
                title=pr.title,
                body=pr.body,
                reviewers=pr.reviewers,
                assignees=pr.assignees,
                pr_ref=ctx.config.pull_request_url(pr.number),
                last_commit=head,
            )
        )
        change_id = ctx.jj.new_change(root, parent, description, head)
        report.add(
            ElementOutcome(
                change_id=change_id,
                kind="adopted",
                title=pr.title,
                pr_number=pr.number,
                message=pr.head_branch,
            )
        )
        parent = change_id

    if checkout:
        ctx.jj.edit(root, parent)
    return report
