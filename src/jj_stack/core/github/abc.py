"""GitHub operations interface.

Covers both the pull request API (through `gh`) and the branch refs on the
GitHub remote (through `git push`/`git ls-remote`), since the stack engines
treat both as one remote collaborator.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from jj_stack.core.github.types import PullRequest, PullRequestComment


class GitHub(ABC):
    """Abstract interface for GitHub operations.

    All implementations (real and fake) must implement this interface.
    Failures are reported with the RemoteError taxonomy from jj_stack.core.errors.
    """

    # Pull request reads

    @abstractmethod
    def get_pull_request(self, repo_root: Path, number: int) -> PullRequest:
        """Get a pull request by number.

        Raises:
            RemoteNotFound: If the pull request does not exist
        """
        ...

    @abstractmethod
    def get_pull_requests(self, repo_root: Path, numbers: list[int]) -> dict[int, PullRequest]:
        """Get several pull requests. Independent reads may run concurrently.

        Returns:
            Mapping of number to PullRequest for every requested number
        """
        ...

    @abstractmethod
    def find_pull_request_by_head(self, repo_root: Path, head_branch: str) -> PullRequest | None:
        """Find the pull request whose head is `head_branch`, preferring open ones."""
        ...

    @abstractmethod
    def list_open_pull_requests(self, repo_root: Path) -> list[PullRequest]:
        """List every open pull request in the repository."""
        ...

    # Pull request writes

    @abstractmethod
    def create_pull_request(
        self, repo_root: Path, *, base: str, head: str, title: str, body: str
    ) -> PullRequest:
        """Open a pull request.

        Args:
            repo_root: Repository root
            base: Branch the pull request merges into
            head: Branch carrying the changes
            title: Pull request title
            body: Pull request description

        Returns:
            The created pull request
        """
        ...

    @abstractmethod
    def update_pull_request(
        self,
        repo_root: Path,
        number: int,
        *,
        base: str | None = None,
        title: str | None = None,
        body: str | None = None,
    ) -> None:
        """Update the given fields of a pull request. None leaves a field unchanged."""
        ...

    @abstractmethod
    def add_reviewers(self, repo_root: Path, number: int, reviewers: list[str]) -> None:
        """Request reviews. `org/team` entries are requested as team reviewers."""
        ...

    @abstractmethod
    def add_assignees(self, repo_root: Path, number: int, assignees: list[str]) -> None:
        """Assign users to a pull request."""
        ...

    # Pull request comments

    @abstractmethod
    def list_comments(self, repo_root: Path, number: int) -> list[PullRequestComment]:
        """List the conversation comments of a pull request, oldest first."""
        ...

    @abstractmethod
    def create_comment(self, repo_root: Path, number: int, body: str) -> None:
        """Post a new comment on a pull request."""
        ...

    @abstractmethod
    def update_comment(self, repo_root: Path, comment_id: int, body: str) -> None:
        """Replace the body of an existing comment.

        Raises:
            RemoteNotFound: If the comment does not exist
        """
        ...

    # Branch refs on the remote

    @abstractmethod
    def list_branches(self, repo_root: Path) -> dict[str, str]:
        """Get {branch: sha} for every branch on the remote."""
        ...

    @abstractmethod
    def get_branch_head(self, repo_root: Path, branch: str) -> str | None:
        """Get the commit a remote branch points at, or None if it does not exist."""
        ...

    @abstractmethod
    def create_branch(self, repo_root: Path, branch: str, sha: str) -> None:
        """Create a remote branch at `sha`.

        Raises:
            RemoteConflict: If the branch already exists
        """
        ...

    @abstractmethod
    def update_branch(self, repo_root: Path, branch: str, sha: str, *, expected_sha: str) -> None:
        """Move a remote branch to `sha` if it still points at `expected_sha`.

        Raises:
            RemoteConflict: If the branch moved since `expected_sha` was read
        """
        ...

    # Identity

    @abstractmethod
    def get_current_user(self, repo_root: Path) -> str:
        """Get the login of the authenticated user.

        Raises:
            RemoteAuthError: If gh is not authenticated
        """
        ...
