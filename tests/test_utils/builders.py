"""Builders for fake change graphs and pull requests used across tests."""

from pathlib import Path

from jj_stack.core.config import StackConfig
from jj_stack.core.context import StackContext
from jj_stack.core.github.fake import FakeGitHub
from jj_stack.core.github.types import PRState, PullRequest
from jj_stack.core.jj.fake import FakeCommit, FakeJujutsu

TRUNK_COMMIT = "trunk0"
TRUNK_CHANGE = "zzzzzzzz"
TRUNK_FILES = {"README.md": "widgets\n"}
REPO_URL = "https://github.com/acme/widgets"


def trunk() -> FakeCommit:
    return FakeCommit(
        commit_id=TRUNK_COMMIT,
        files=TRUNK_FILES,
        description="Initial commit\n",
        change_id=TRUNK_CHANGE,
        immutable=True,
    )


def linear_changes(
    *changes: tuple[str, str, dict[str, str]], parent: FakeCommit | None = None
) -> list[FakeCommit]:
    """Build a chain of (change_id, description, added files) on top of `parent`.

    Each change carries its parent's files plus its own. Commit ids are
    `c-<change_id>`.
    """
    base = parent or trunk()
    commits: list[FakeCommit] = []
    for change_id, description, files in changes:
        commit = FakeCommit(
            commit_id=f"c-{change_id}",
            parents=(base.commit_id,),
            files={**base.files, **files},
            description=description,
            change_id=change_id,
        )
        commits.append(commit)
        base = commit
    return commits


def build_jj(
    commits: list[FakeCommit],
    *,
    working_copy: str | None = None,
    trunk_commit: str = TRUNK_COMMIT,
    revsets: dict[str, list[str]] | None = None,
) -> FakeJujutsu:
    """FakeJujutsu holding the trunk commit plus `commits`, with main@origin at trunk."""
    all_commits = [trunk(), *[c for c in commits if c.commit_id != TRUNK_COMMIT]]
    return FakeJujutsu(
        commits=all_commits,
        refs={"main@origin": trunk_commit},
        working_copy=working_copy,
        remote_urls={"origin": f"{REPO_URL}.git"},
        revsets=revsets,
    )


def pull_request(
    number: int,
    head_branch: str,
    *,
    base_branch: str = "main",
    state: PRState = "OPEN",
    head_sha: str = "",
    title: str | None = None,
    body: str = "",
    reviewers: tuple[str, ...] = (),
    review_decision: str | None = None,
) -> PullRequest:
    return PullRequest(
        number=number,
        title=title if title is not None else f"Pull request {number}",
        body=body,
        head_branch=head_branch,
        base_branch=base_branch,
        head_sha=head_sha,
        state=state,
        url=f"{REPO_URL}/pull/{number}",
        reviewers=reviewers,
        review_decision=review_decision,
    )


def associated(title: str, number: int, last_commit: str | None = None, body: str = "") -> str:
    """Description of a change already linked to pull request `number`."""
    lines = [title, ""]
    if body:
        lines += [body, ""]
    lines.append(f"Pull Request: {REPO_URL}/pull/{number}")
    if last_commit is not None:
        lines.append(f"Last Commit: {last_commit}")
    return "\n".join(lines) + "\n"


def build_context(
    jj: FakeJujutsu, github: FakeGitHub | None = None, *, dry_run: bool = False
) -> StackContext:
    return StackContext.for_test(
        jj=jj,
        github=github if github is not None else FakeGitHub(),
        config=StackConfig(owner="acme", repo="widgets", branch_prefix="spr/octocat/"),
        repo_root=Path("/test/repo"),
        dry_run=dry_run,
    )
