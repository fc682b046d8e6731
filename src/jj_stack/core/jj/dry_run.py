"""No-op wrapper for Jujutsu operations."""

from pathlib import Path

from jj_stack.core.jj.abc import Jujutsu
from jj_stack.core.jj.types import Change

DRY_RUN_COMMIT_PREFIX = "dry-run-commit-"


class DryRunJujutsu(Jujutsu):
    """No-op wrapper for Jujutsu operations.

    Read operations are delegated to the wrapped implementation.
    Write operations return without executing. `fetch` is still delegated:
    it only refreshes remote-tracking state, and later reads depend on it.

    Commits that would have been created are remembered by placeholder id so
    that later reads (tree, ancestry) about them still answer consistently.
    """

    def __init__(self, wrapped: Jujutsu) -> None:
        """Initialize dry-run wrapper with a real implementation.

        Args:
            wrapped: The Jujutsu implementation to wrap
        """
        self._wrapped = wrapped
        self._planned: dict[str, tuple[str, tuple[str, ...]]] = {}

    def get_change(self, repo_root: Path, change_id: str) -> Change:
        return self._wrapped.get_change(repo_root, change_id)

    def resolve_heads(self, repo_root: Path, revset: str) -> list[str]:
        return self._wrapped.resolve_heads(repo_root, revset)

    def resolve_commit(self, repo_root: Path, ref: str) -> str | None:
        if ref in self._planned:
            return ref
        return self._wrapped.resolve_commit(repo_root, ref)

    def tree_of(self, repo_root: Path, commit: str) -> str:
        if commit in self._planned:
            return self._planned[commit][0]
        return self._wrapped.tree_of(repo_root, commit)

    def is_ancestor(self, repo_root: Path, ancestor_commit: str, descendant_commit: str) -> bool:
        if ancestor_commit == descendant_commit:
            return True
        if descendant_commit in self._planned:
            return any(
                self.is_ancestor(repo_root, ancestor_commit, parent)
                for parent in self._planned[descendant_commit][1]
            )
        if ancestor_commit in self._planned:
            return False
        return self._wrapped.is_ancestor(repo_root, ancestor_commit, descendant_commit)

    def merge_base(self, repo_root: Path, commit_a: str, commit_b: str) -> str | None:
        return self._wrapped.merge_base(repo_root, commit_a, commit_b)

    def find_changes_containing(self, repo_root: Path, text: str) -> list[str]:
        return self._wrapped.find_changes_containing(repo_root, text)

    def get_remote_url(self, repo_root: Path, remote_name: str) -> str | None:
        return self._wrapped.get_remote_url(repo_root, remote_name)

    def fetch(self, repo_root: Path, remote_name: str) -> None:
        self._wrapped.fetch(repo_root, remote_name)

    def describe(self, repo_root: Path, change_id: str, description: str) -> None:
        pass

    def create_commit(
        self, repo_root: Path, tree_id: str, parent_commits: list[str], message: str
    ) -> str:
        commit_id = f"{DRY_RUN_COMMIT_PREFIX}{len(self._planned) + 1}"
        self._planned[commit_id] = (tree_id, tuple(parent_commits))
        return commit_id

    def abandon(self, repo_root: Path, change_id: str) -> None:
        pass

    def rebase(self, repo_root: Path, change_id: str, destination_commit: str) -> None:
        pass

    def merge_into(
        self, repo_root: Path, change_id: str, base_commit: str, head_commit: str
    ) -> bool:
        return False

    def new_change(
        self, repo_root: Path, parent_commit: str, description: str, content_commit: str
    ) -> str:
        return f"dry-run-{content_commit[:12]}"

    def edit(self, repo_root: Path, change_id: str) -> None:
        pass
