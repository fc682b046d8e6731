"""Fake GitHub operations for testing.

FakeGitHub is an in-memory implementation that accepts pre-configured state
in its constructor. Construct instances directly with keyword arguments.
"""

from dataclasses import replace
from pathlib import Path

from jj_stack.core.errors import RemoteConflict, RemoteNotFound
from jj_stack.core.github.abc import GitHub
from jj_stack.core.github.types import PullRequest, PullRequestComment


class FakeGitHub(GitHub):
    """In-memory fake implementation of GitHub operations.

    This class has NO public setup methods. All state is provided via constructor
    using keyword arguments with sensible defaults (empty dicts).
    """

    def __init__(
        self,
        *,
        pull_requests: list[PullRequest] | None = None,
        branches: dict[str, str] | None = None,
        current_user: str = "octocat",
        owner: str = "acme",
        repo: str = "widgets",
        comments: dict[int, list[PullRequestComment]] | None = None,
        failures: dict[str, list[Exception]] | None = None,
    ) -> None:
        """Create FakeGitHub with pre-configured state.

        Args:
            pull_requests: Existing pull requests
            branches: Mapping of remote branch name -> head sha
            current_user: Login returned by get_current_user
            owner: Repository owner used to build PR URLs
            repo: Repository name used to build PR URLs
            comments: Pull request number -> existing conversation comments
            failures: Method name -> exceptions raised by successive calls
                      of that method before it starts succeeding
        """
        self._prs: dict[int, PullRequest] = {pr.number: pr for pr in pull_requests or []}
        self._branches = dict(branches or {})
        self._current_user = current_user
        self._owner = owner
        self._repo = repo
        self._comments = {number: list(items) for number, items in (comments or {}).items()}
        self._failures = {name: list(errors) for name, errors in (failures or {}).items()}

        self._created_prs: list[PullRequest] = []
        self._updated_prs: list[tuple[int, dict[str, str]]] = []
        self._added_reviewers: list[tuple[int, list[str]]] = []
        self._added_assignees: list[tuple[int, list[str]]] = []
        self._created_comments: list[tuple[int, str]] = []
        self._updated_comments: list[tuple[int, str]] = []
        self._created_branches: list[tuple[str, str]] = []
        self._updated_branches: list[tuple[str, str, str]] = []
        self._read_numbers: list[int] = []

    def _maybe_fail(self, method: str) -> None:
        pending = self._failures.get(method)
        if pending:
            raise pending.pop(0)

    # Test assertion helpers

    @property
    def pull_requests(self) -> dict[int, PullRequest]:
        """Current state of every pull request, keyed by number."""
        return dict(self._prs)

    @property
    def branches(self) -> dict[str, str]:
        return dict(self._branches)

    @property
    def created_prs(self) -> list[PullRequest]:
        return self._created_prs

    @property
    def updated_prs(self) -> list[tuple[int, dict[str, str]]]:
        """(number, {field: new value}) for every update_pull_request() call."""
        return self._updated_prs

    @property
    def added_reviewers(self) -> list[tuple[int, list[str]]]:
        return self._added_reviewers

    @property
    def added_assignees(self) -> list[tuple[int, list[str]]]:
        return self._added_assignees

    @property
    def comments(self) -> dict[int, list[PullRequestComment]]:
        """Current comments of every pull request that has any."""
        return {number: list(items) for number, items in self._comments.items()}

    @property
    def created_comments(self) -> list[tuple[int, str]]:
        return self._created_comments

    @property
    def updated_comments(self) -> list[tuple[int, str]]:
        """(comment id, new body) for every update_comment() call."""
        return self._updated_comments

    @property
    def created_branches(self) -> list[tuple[str, str]]:
        return self._created_branches

    @property
    def updated_branches(self) -> list[tuple[str, str, str]]:
        """(branch, new sha, expected sha) for every update_branch() call."""
        return self._updated_branches

    @property
    def read_numbers(self) -> list[int]:
        return self._read_numbers

    @property
    def write_count(self) -> int:
        """Total number of remote mutations performed."""
        return (
            len(self._created_prs)
            + len(self._updated_prs)
            + len(self._added_reviewers)
            + len(self._added_assignees)
            + len(self._created_comments)
            + len(self._updated_comments)
            + len(self._created_branches)
            + len(self._updated_branches)
        )

    # Reads

    def get_pull_request(self, repo_root: Path, number: int) -> PullRequest:
        self._maybe_fail("get_pull_request")
        self._read_numbers.append(number)
        if number not in self._prs:
            msg = f"Pull request #{number} not found (HTTP 404)"
            raise RemoteNotFound(msg)
        return self._prs[number]

    def get_pull_requests(self, repo_root: Path, numbers: list[int]) -> dict[int, PullRequest]:
        return {n: self.get_pull_request(repo_root, n) for n in dict.fromkeys(numbers)}

    def find_pull_request_by_head(self, repo_root: Path, head_branch: str) -> PullRequest | None:
        self._maybe_fail("find_pull_request_by_head")
        matching = [pr for pr in self._prs.values() if pr.head_branch == head_branch]
        open_prs = [pr for pr in matching if pr.state == "OPEN"]
        candidates = open_prs or matching
        return candidates[0] if candidates else None

    def list_open_pull_requests(self, repo_root: Path) -> list[PullRequest]:
        self._maybe_fail("list_open_pull_requests")
        return [pr for pr in self._prs.values() if pr.state == "OPEN"]

    def list_branches(self, repo_root: Path) -> dict[str, str]:
        self._maybe_fail("list_branches")
        return dict(self._branches)

    def get_branch_head(self, repo_root: Path, branch: str) -> str | None:
        self._maybe_fail("get_branch_head")
        return self._branches.get(branch)

    def list_comments(self, repo_root: Path, number: int) -> list[PullRequestComment]:
        self._maybe_fail("list_comments")
        return list(self._comments.get(number, []))

    def get_current_user(self, repo_root: Path) -> str:
        self._maybe_fail("get_current_user")
        return self._current_user

    # Writes

    def create_pull_request(
        self, repo_root: Path, *, base: str, head: str, title: str, body: str
    ) -> PullRequest:
        self._maybe_fail("create_pull_request")
        if head not in self._branches:
            msg = f"Head branch {head} does not exist (HTTP 422)"
            raise RemoteConflict(msg)
        number = max(self._prs, default=0) + 1
        pr = PullRequest(
            number=number,
            title=title,
            body=body,
            head_branch=head,
            base_branch=base,
            head_sha=self._branches[head],
            state="OPEN",
            url=f"https://github.com/{self._owner}/{self._repo}/pull/{number}",
        )
        self._prs[number] = pr
        self._created_prs.append(pr)
        return pr

    def update_pull_request(
        self,
        repo_root: Path,
        number: int,
        *,
        base: str | None = None,
        title: str | None = None,
        body: str | None = None,
    ) -> None:
        self._maybe_fail("update_pull_request")
        if number not in self._prs:
            msg = f"Pull request #{number} not found (HTTP 404)"
            raise RemoteNotFound(msg)
        fields = {
            key: value
            for key, value in (("base_branch", base), ("title", title), ("body", body))
            if value is not None
        }
        self._prs[number] = replace(self._prs[number], **fields)
        self._updated_prs.append((number, fields))

    def add_reviewers(self, repo_root: Path, number: int, reviewers: list[str]) -> None:
        self._maybe_fail("add_reviewers")
        pr = self._prs[number]
        merged = tuple(dict.fromkeys([*pr.reviewers, *reviewers]))
        self._prs[number] = replace(pr, reviewers=merged)
        self._added_reviewers.append((number, list(reviewers)))

    def add_assignees(self, repo_root: Path, number: int, assignees: list[str]) -> None:
        self._maybe_fail("add_assignees")
        pr = self._prs[number]
        merged = tuple(dict.fromkeys([*pr.assignees, *assignees]))
        self._prs[number] = replace(pr, assignees=merged)
        self._added_assignees.append((number, list(assignees)))

    def create_comment(self, repo_root: Path, number: int, body: str) -> None:
        self._maybe_fail("create_comment")
        if number not in self._prs:
            msg = f"Pull request #{number} not found (HTTP 404)"
            raise RemoteNotFound(msg)
        existing = [c.id for items in self._comments.values() for c in items]
        comment = PullRequestComment(
            id=max(existing, default=100) + 1, body=body, author=self._current_user
        )
        self._comments.setdefault(number, []).append(comment)
        self._created_comments.append((number, body))

    def update_comment(self, repo_root: Path, comment_id: int, body: str) -> None:
        self._maybe_fail("update_comment")
        for items in self._comments.values():
            for i, comment in enumerate(items):
                if comment.id == comment_id:
                    items[i] = replace(comment, body=body)
                    self._updated_comments.append((comment_id, body))
                    return
        msg = f"Comment {comment_id} not found (HTTP 404)"
        raise RemoteNotFound(msg)

    def create_branch(self, repo_root: Path, branch: str, sha: str) -> None:
        self._maybe_fail("create_branch")
        if branch in self._branches:
            msg = f"Branch {branch} already exists on the remote (stale info)"
            raise RemoteConflict(msg)
        self._branches[branch] = sha
        self._created_branches.append((branch, sha))

    def update_branch(self, repo_root: Path, branch: str, sha: str, *, expected_sha: str) -> None:
        self._maybe_fail("update_branch")
        if self._branches.get(branch) != expected_sha:
            msg = f"Branch {branch} moved on the remote (stale info)"
            raise RemoteConflict(msg)
        self._branches[branch] = sha
        self._updated_branches.append((branch, sha, expected_sha))
        for number, pr in self._prs.items():
            if pr.head_branch == branch and pr.state == "OPEN":
                self._prs[number] = replace(pr, head_sha=sha)
