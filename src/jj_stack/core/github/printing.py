"""Printing wrapper for GitHub operations."""

from pathlib import Path

from jj_stack.core.github.abc import GitHub
from jj_stack.core.github.types import PullRequest, PullRequestComment
from jj_stack.core.printing_base import PrintingBase


class PrintingGitHub(PrintingBase, GitHub):
    """Wrapper that prints operations before delegating to inner implementation.

    Usage:
        # For production
        printing_ops = PrintingGitHub(real_ops, script_mode=False, dry_run=False)

        # For dry-run
        noop_inner = DryRunGitHub(real_ops)
        printing_ops = PrintingGitHub(noop_inner, script_mode=False, dry_run=True)
    """

    # Read-only operations: delegate without printing

    def get_pull_request(self, repo_root: Path, number: int) -> PullRequest:
        return self._wrapped.get_pull_request(repo_root, number)

    def get_pull_requests(self, repo_root: Path, numbers: list[int]) -> dict[int, PullRequest]:
        return self._wrapped.get_pull_requests(repo_root, numbers)

    def find_pull_request_by_head(self, repo_root: Path, head_branch: str) -> PullRequest | None:
        return self._wrapped.find_pull_request_by_head(repo_root, head_branch)

    def list_open_pull_requests(self, repo_root: Path) -> list[PullRequest]:
        return self._wrapped.list_open_pull_requests(repo_root)

    def list_branches(self, repo_root: Path) -> dict[str, str]:
        return self._wrapped.list_branches(repo_root)

    def get_branch_head(self, repo_root: Path, branch: str) -> str | None:
        return self._wrapped.get_branch_head(repo_root, branch)

    def list_comments(self, repo_root: Path, number: int) -> list[PullRequestComment]:
        return self._wrapped.list_comments(repo_root, number)

    def get_current_user(self, repo_root: Path) -> str:
        return self._wrapped.get_current_user(repo_root)

    # Operations that need printing

    def create_pull_request(
        self, repo_root: Path, *, base: str, head: str, title: str, body: str
    ) -> PullRequest:
        command = f'gh pr create --base {base} --head {head} --title "{title}"'
        self._emit(self._format_command(command))
        return self._wrapped.create_pull_request(
            repo_root, base=base, head=head, title=title, body=body
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
        flags = []
        if base is not None:
            flags.append(f"--base {base}")
        if title is not None:
            flags.append(f'--title "{title}"')
        if body is not None:
            flags.append("--body ...")
        self._emit(self._format_command(f"gh pr edit {number} {' '.join(flags)}"))
        self._wrapped.update_pull_request(repo_root, number, base=base, title=title, body=body)

    def add_reviewers(self, repo_root: Path, number: int, reviewers: list[str]) -> None:
        command = f"gh pr edit {number} --add-reviewer {','.join(reviewers)}"
        self._emit(self._format_command(command))
        self._wrapped.add_reviewers(repo_root, number, reviewers)

    def add_assignees(self, repo_root: Path, number: int, assignees: list[str]) -> None:
        command = f"gh pr edit {number} --add-assignee {','.join(assignees)}"
        self._emit(self._format_command(command))
        self._wrapped.add_assignees(repo_root, number, assignees)

    def create_comment(self, repo_root: Path, number: int, body: str) -> None:
        self._emit(self._format_command(f"gh pr comment {number} --body ..."))
        self._wrapped.create_comment(repo_root, number, body)

    def update_comment(self, repo_root: Path, comment_id: int, body: str) -> None:
        command = f"gh api -X PATCH issues/comments/{comment_id} -f body=..."
        self._emit(self._format_command(command))
        self._wrapped.update_comment(repo_root, comment_id, body)

    def create_branch(self, repo_root: Path, branch: str, sha: str) -> None:
        self._emit(self._format_command(f"git push {sha[:12]}:refs/heads/{branch}"))
        self._wrapped.create_branch(repo_root, branch, sha)

    def update_branch(self, repo_root: Path, branch: str, sha: str, *, expected_sha: str) -> None:
        self._emit(
            self._format_command(
                f"git push --force-with-lease={branch}:{expected_sha[:12]} "
                f"{sha[:12]}:refs/heads/{branch}"
            )
        )
        self._wrapped.update_branch(repo_root, branch, sha, expected_sha=expected_sha)
