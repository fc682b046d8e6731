"""No-op wrapper for GitHub operations."""

from pathlib import Path

from jj_stack.core.github.abc import GitHub
from jj_stack.core.github.types import PullRequest, PullRequestComment


class DryRunGitHub(GitHub):
    """No-op wrapper for GitHub operations.

    Read operations are delegated to the wrapped implementation.
    Write operations return without executing (no-op behavior).
    """

    def __init__(self, wrapped: GitHub) -> None:
        """Initialize dry-run wrapper with a real implementation.

        Args:
            wrapped: The real GitHub operations implementation to wrap
        """
        self._wrapped = wrapped

    def get_pull_request(self, repo_root: Path, number: int) -> PullRequest:
        """Delegate read operation to wrapped implementation."""
        return self._wrapped.get_pull_request(repo_root, number)

    def get_pull_requests(self, repo_root: Path, numbers: list[int]) -> dict[int, PullRequest]:
        """Delegate read operation to wrapped implementation."""
        return self._wrapped.get_pull_requests(repo_root, numbers)

    def find_pull_request_by_head(self, repo_root: Path, head_branch: str) -> PullRequest | None:
        """Delegate read operation to wrapped implementation."""
        return self._wrapped.find_pull_request_by_head(repo_root, head_branch)

    def list_open_pull_requests(self, repo_root: Path) -> list[PullRequest]:
        """Delegate read operation to wrapped implementation."""
        return self._wrapped.list_open_pull_requests(repo_root)

    def list_branches(self, repo_root: Path) -> dict[str, str]:
        """Delegate read operation to wrapped implementation."""
        return self._wrapped.list_branches(repo_root)

    def get_branch_head(self, repo_root: Path, branch: str) -> str | None:
        """Delegate read operation to wrapped implementation."""
        return self._wrapped.get_branch_head(repo_root, branch)

    def list_comments(self, repo_root: Path, number: int) -> list[PullRequestComment]:
        """Delegate read operation to wrapped implementation."""
        return self._wrapped.list_comments(repo_root, number)

    def get_current_user(self, repo_root: Path) -> str:
        """Delegate read operation to wrapped implementation."""
        return self._wrapped.get_current_user(repo_root)

    def create_pull_request(
        self, repo_root: Path, *, base: str, head: str, title: str, body: str
    ) -> PullRequest:
        """Return a placeholder pull request without creating anything."""
        return PullRequest(
            number=0,
            title=title,
            body=body,
            head_branch=head,
            base_branch=base,
            head_sha="",
            state="OPEN",
            url="",
        )

    def update_pull_request(
        self,
        repo_root: Path,
        number: int,
        *,
        base: str | None = None,
        title: str | None = None,
        body: str | None = None,
    ) -> None:
        """No-op for updating a pull request in dry-run mode."""
        pass

    def add_reviewers(self, repo_root: Path, number: int, reviewers: list[str]) -> None:
        """No-op for requesting reviews in dry-run mode."""
        pass

    def add_assignees(self, repo_root: Path, number: int, assignees: list[str]) -> None:
        """No-op for assigning users in dry-run mode."""
        pass

    def create_comment(self, repo_root: Path, number: int, body: str) -> None:
        """No-op for posting a comment in dry-run mode."""
        pass

    def update_comment(self, repo_root: Path, comment_id: int, body: str) -> None:
        """No-op for editing a comment in dry-run mode."""
        pass

    def create_branch(self, repo_root: Path, branch: str, sha: str) -> None:
        """No-op for pushing a new branch in dry-run mode."""
        pass

    def update_branch(self, repo_root: Path, branch: str, sha: str, *, expected_sha: str) -> None:
        """No-op for pushing a branch in dry-run mode."""
        pass
