"""Push: bring a chain of pull requests in line with a local stack.

Elements are processed strictly base to head as a fold. The running state
records, for each change pushed so far, the branch and commit it was written
to, which is where the next element's pull request must be based.

Every push builds a fresh commit carrying the change's current tree on top of
the branch's previous head, so reviewers see each amendment as one more commit.
When the base moved (a rebase, or a lower element was updated), the base commit
becomes a second parent so the branch stays rooted on it.

A change records its pull request as soon as the remote accepted the write, so
a failure in a later step of the same element never orphans a pull request.
Once every element is written, each pull request gets a stack overview comment.
"""

import logging
from dataclasses import dataclass, field

from jj_stack.core.association import Association, AssociationStore
from jj_stack.core.context import StackContext
from jj_stack.core.errors import (
    ConflictedChange,
    RemoteAuthError,
    RemoteConflict,
    RemoteNotFound,
    StackError,
    UnresolvableBase,
)
from jj_stack.core.github.types import PullRequest
from jj_stack.core.jj.types import Change
from jj_stack.core.message import ChangeMessage, decode
from jj_stack.core.overview import OVERVIEW_MARKER, OverviewEntry, render_overviews
from jj_stack.core.report import ElementOutcome, StackReport
from jj_stack.core.selection import collect_stacks, refresh_trunk

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushOptions:
    message: str | None = None
    force: bool = False


@dataclass(frozen=True)
class _Base:
    branch: str
    commit: str


@dataclass(frozen=True)
class _Written:
    branch: str
    commit: str
    pr_number: int
    parent_id: str
    title: str
    created: bool = False


@dataclass
class _PushState:
    trunk_commit: str
    branches: set[str]
    written: dict[str, _Written] = field(default_factory=dict)
    failed: set[str] = field(default_factory=set)


def push_stacks(
    ctx: StackContext, heads: list[str], options: PushOptions, *, selector: str = "@"
) -> StackReport:
    """Create or update one pull request per change in every selected stack.

    The whole graph is validated before the first remote call: a merge or an
    unresolved conflict inside any stack aborts the push and nothing is written.

    Raises:
        MultipleParents: A stack contains a merge
        ConflictedChange: A stack contains a change with unresolved conflicts
        EmptyStack: Nothing eligible was selected
        RemoteAuthError: Credentials were rejected
    """
    trunk = refresh_trunk(ctx)
    stacks = collect_stacks(ctx, heads, trunk, selector=selector)
    for stack in stacks:
        for change in stack.changes:
            if change.has_conflict:
                raise ConflictedChange(change.change_id)

    report = StackReport()
    for stack in stacks:
        if stack.stopped_at is not None:
            report.add(
                ElementOutcome(
                    change_id=stack.stopped_at,
                    kind="skipped",
                    message="no description; changes below it are not part of the stack",
                )
            )

    state = _PushState(trunk_commit=trunk, branches=set(ctx.github.list_branches(ctx.repo_root)))
    store = AssociationStore(ctx.jj, ctx.config, ctx.repo_root)
    for stack in stacks:
        for change_id in stack.change_ids:
            if change_id in state.written or change_id in state.failed:
                continue
            report.add(_push_element(ctx, store, options, state, change_id))

    _post_overviews(ctx, state, report)
    return report


def _post_overviews(ctx: StackContext, state: _PushState, report: StackReport) -> None:
    entries = [
        OverviewEntry(
            change_id=change_id,
            parent_id=written.parent_id,
            pr_number=written.pr_number,
            title=written.title,
        )
        for change_id, written in state.written.items()
    ]
    for change_id, body in render_overviews(entries).items():
        written = state.written[change_id]
        try:
            _upsert_overview(ctx, written, body)
        except RemoteAuthError:
            raise
        except StackError as e:
            logger.warning("Could not update the overview on #%d: %s", written.pr_number, e)
            report.add(
                ElementOutcome(
                    change_id=change_id,
                    kind="failed",
                    title=written.title,
                    pr_number=written.pr_number,
                    message=f"stack overview comment: {e}",
                    error=e,
                )
            )


def _upsert_overview(ctx: StackContext, written: _Written, body: str) -> None:
    root = ctx.repo_root
    if written.created:
        ctx.github.create_comment(root, written.pr_number, body)
        return

    comments = ctx.github.list_comments(root, written.pr_number)
    existing = next((c for c in comments if OVERVIEW_MARKER in c.body), None)
    if existing is None:
        ctx.github.create_comment(root, written.pr_number, body)
    elif existing.body != body:
        ctx.github.update_comment(root, existing.id, body)


def _push_element(
    ctx: StackContext,
    store: AssociationStore,
    options: PushOptions,
    state: _PushState,
    change_id: str,
) -> ElementOutcome:
    change = ctx.jj.get_change(ctx.repo_root, change_id)
    title = decode(change.description).title

    parent_id = change.parent_ids[0]
    if parent_id in state.failed:
        state.failed.add(change_id)
        return ElementOutcome(
            change_id=change_id,
            kind="skipped",
            title=title,
            message=f"parent {parent_id} was not pushed",
        )

    try:
        base = _resolve_base(ctx, store, state, change)
        return _push_change(ctx, store, options, state, change, base)
    except RemoteAuthError:
        raise
    except StackError as e:
        logger.debug("Push of %s failed: %s", change_id, e)
        state.failed.add(change_id)
        return ElementOutcome(
            change_id=change_id, kind="failed", title=title, message=str(e), error=e
        )


def _resolve_base(
    ctx: StackContext, store: AssociationStore, state: _PushState, change: Change
) -> _Base:
    parent_commit = change.parent_commit_ids[0]
    parent = ctx.jj.get_change(ctx.repo_root, change.parent_ids[0])

    if not parent.is_mutable or ctx.jj.is_ancestor(
        ctx.repo_root, parent_commit, state.trunk_commit
    ):
        return _Base(branch=ctx.config.default_branch, commit=parent_commit)

    written = state.written.get(parent.change_id)
    if written is not None:
        return _Base(branch=written.branch, commit=written.commit)

    association = store.read(parent)
    if association is not None:
        pr = ctx.github.get_pull_request(ctx.repo_root, association.pr_number)
        tip = ctx.github.get_branch_head(ctx.repo_root, pr.head_branch)
        if pr.state == "OPEN" and tip is not None:
            return _Base(branch=pr.head_branch, commit=tip)

    raise UnresolvableBase(change.change_id, parent.change_id)


def _open_pull_request(ctx: StackContext, association: Association) -> PullRequest:
    pr = ctx.github.get_pull_request(ctx.repo_root, association.pr_number)
    url = ctx.config.pull_request_url(pr.number)
    if pr.state == "OPEN":
        return pr
    elif pr.state == "MERGED":
        msg = f"{url} is already merged; run `jj-stack sync` to drop the landed change"
        raise RemoteConflict(msg, change_id=association.change_id)
    elif pr.state == "CLOSED":
        msg = f"{url} is closed; reopen it or remove its Pull Request trailer"
        raise RemoteConflict(msg, change_id=association.change_id)
    else:
        msg = f"Unknown pull request state {pr.state!r} for {url}"
        raise ValueError(msg)


def _check_divergence(
    ctx: StackContext,
    options: PushOptions,
    association: Association,
    pr: PullRequest,
    tip: str,
) -> bool:
    """Return True if the remote branch moved somewhere this tool did not push it."""
    last = association.last_commit
    if last is None or tip == last:
        return False
    known = ctx.jj.resolve_commit(ctx.repo_root, tip) is not None
    if known and ctx.jj.is_ancestor(ctx.repo_root, tip, last):
        return False

    if not options.force:
        msg = (
            f"Cannot update {ctx.config.pull_request_url(pr.number)}: {pr.head_branch} is at "
            f"{tip[:12]} but {last[:12]} was pushed last. Run `jj-stack fetch --pull-code` "
            "or push with --force."
        )
        raise RemoteConflict(msg, change_id=association.change_id)

    logger.warning(
        "Forcing %s over unexpected remote commit %s; it stays in the branch history",
        pr.head_branch,
        tip[:12],
    )
    return True


def _commit_message(message: ChangeMessage, options: PushOptions, first_push: bool) -> str:
    if first_push:
        if message.body:
            return f"{message.title}\n\n{message.body}\n"
        return f"{message.title}\n"
    if options.message:
        return options.message if options.message.endswith("\n") else options.message + "\n"
    return f"Update {message.title}\n"


def _push_change(
    ctx: StackContext,
    store: AssociationStore,
    options: PushOptions,
    state: _PushState,
    change: Change,
    base: _Base,
) -> ElementOutcome:
    root = ctx.repo_root
    message = decode(change.description)
    association = store.read(change)

    pr: PullRequest | None = None
    forced = False
    if association is not None:
        pr = _open_pull_request(ctx, association)
        head_branch = pr.head_branch
        tip = ctx.github.get_branch_head(root, head_branch)
        if tip is None:
            msg = f"Branch {head_branch} of {ctx.config.pull_request_url(pr.number)} is gone"
            raise RemoteNotFound(msg, change_id=change.change_id)
        forced = _check_divergence(ctx, options, association, pr, tip)
        old_head = tip
    else:
        head_branch = ctx.config.new_branch_name(message.title, state.branches)
        old_head = base.commit

    target_tree = ctx.jj.tree_of(root, change.commit_id)
    base_merged = ctx.jj.is_ancestor(root, base.commit, old_head)

    if target_tree == ctx.jj.tree_of(root, old_head) and base_merged:
        if pr is None:
            msg = "Change is empty; there is nothing to review"
            raise StackError(msg, change_id=change.change_id)
        state.written[change.change_id] = _Written(
            head_branch, old_head, pr.number, change.parent_ids[0], message.title
        )
        if pr.base_branch != base.branch:
            ctx.github.update_pull_request(root, pr.number, base=base.branch)
            return ElementOutcome(
                change_id=change.change_id,
                kind="updated",
                title=message.title,
                pr_number=pr.number,
                message=f"base changed to {base.branch}",
            )
        return ElementOutcome(
            change_id=change.change_id,
            kind="unchanged",
            title=message.title,
            pr_number=pr.number,
        )

    parents = [old_head] if base_merged else [old_head, base.commit]
    new_commit = ctx.jj.create_commit(
        root, target_tree, parents, _commit_message(message, options, pr is None)
    )
    logger.debug("Built %s for %s with parents %s", new_commit, change.change_id, parents)

    if pr is None:
        ctx.github.create_branch(root, head_branch, new_commit)
        state.branches.add(head_branch)
        pr = ctx.github.create_pull_request(
            root, base=base.branch, head=head_branch, title=message.title, body=message.body
        )
        store.write(change.change_id, pr.number, new_commit)
        state.written[change.change_id] = _Written(
            head_branch, new_commit, pr.number, change.parent_ids[0], message.title, created=True
        )
        url = ctx.config.pull_request_url(pr.number)
        try:
            _request_people(ctx, pr.number, message)
        except RemoteAuthError:
            raise
        except StackError as e:
            logger.debug("Created #%d but could not request people: %s", pr.number, e)
            return ElementOutcome(
                change_id=change.change_id,
                kind="failed",
                title=message.title,
                pr_number=pr.number,
                message=f"created {url} but {e}",
                error=e,
            )
        return ElementOutcome(
            change_id=change.change_id,
            kind="created",
            title=message.title,
            pr_number=pr.number,
            message=url,
        )

    ctx.github.update_branch(root, head_branch, new_commit, expected_sha=old_head)
    store.write(change.change_id, pr.number, new_commit)
    state.written[change.change_id] = _Written(
        head_branch, new_commit, pr.number, change.parent_ids[0], message.title
    )

    notes: list[str] = []
    if len(parents) > 1:
        notes.append(f"rebased onto {base.branch}")
    if pr.base_branch != base.branch:
        ctx.github.update_pull_request(root, pr.number, base=base.branch)
        notes.append(f"base changed to {base.branch}")
    if forced:
        notes.append(f"forced over {old_head[:12]}")
    return ElementOutcome(
        change_id=change.change_id,
        kind="updated",
        title=message.title,
        pr_number=pr.number,
        message=", ".join(notes),
    )


def _request_people(ctx: StackContext, number: int, message: ChangeMessage) -> None:
    if message.reviewers:
        ctx.github.add_reviewers(ctx.repo_root, number, list(message.reviewers))
    if message.assignees:
        ctx.github.add_assignees(ctx.repo_root, number, list(message.assignees))
