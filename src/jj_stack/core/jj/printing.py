"""Printing wrapper for Jujutsu operations."""

from pathlib import Path

from jj_stack.core.jj.abc import Jujutsu
from jj_stack.core.jj.types import Change
from jj_stack.core.printing_base import PrintingBase


def _first_line(text: str) -> str:
    lines = text.strip().splitlines()
    return lines[0] if lines else ""


class PrintingJujutsu(PrintingBase, Jujutsu):
    """Wrapper that prints operations before delegating to inner implementation.

    Usage:
        # For production
        printing_ops = PrintingJujutsu(real_ops, script_mode=False, dry_run=False)

        # For dry-run
        noop_inner = DryRunJujutsu(real_ops)
        printing_ops = PrintingJujutsu(noop_inner, script_mode=False, dry_run=True)
    """

    # Read-only operations: delegate without printing

    def get_change(self, repo_root: Path, change_id: str) -> Change:
        return self._wrapped.get_change(repo_root, change_id)

    def resolve_heads(self, repo_root: Path, revset: str) -> list[str]:
        return self._wrapped.resolve_heads(repo_root, revset)

    def resolve_commit(self, repo_root: Path, ref: str) -> str | None:
        return self._wrapped.resolve_commit(repo_root, ref)

    def tree_of(self, repo_root: Path, commit: str) -> str:
        return self._wrapped.tree_of(repo_root, commit)

    def is_ancestor(self, repo_root: Path, ancestor_commit: str, descendant_commit: str) -> bool:
        return self._wrapped.is_ancestor(repo_root, ancestor_commit, descendant_commit)

    def merge_base(self, repo_root: Path, commit_a: str, commit_b: str) -> str | None:
        return self._wrapped.merge_base(repo_root, commit_a, commit_b)

    def find_changes_containing(self, repo_root: Path, text: str) -> list[str]:
        return self._wrapped.find_changes_containing(repo_root, text)

    def get_remote_url(self, repo_root: Path, remote_name: str) -> str | None:
        return self._wrapped.get_remote_url(repo_root, remote_name)

    # Operations that need printing

    def fetch(self, repo_root: Path, remote_name: str) -> None:
        self._emit(self._format_command(f"jj git fetch --remote {remote_name}"))
        self._wrapped.fetch(repo_root, remote_name)

    def describe(self, repo_root: Path, change_id: str, description: str) -> None:
        summary = _first_line(description)
        self._emit(self._format_command(f'jj describe {change_id} -m "{summary}..."'))
        self._wrapped.describe(repo_root, change_id, description)

    def create_commit(
        self, repo_root: Path, tree_id: str, parent_commits: list[str], message: str
    ) -> str:
        parents = " ".join(f"-p {p}" for p in parent_commits)
        self._emit(self._format_command(f"git commit-tree {tree_id} {parents}"))
        return self._wrapped.create_commit(repo_root, tree_id, parent_commits, message)

    def abandon(self, repo_root: Path, change_id: str) -> None:
        self._emit(self._format_command(f"jj abandon {change_id}"))
        self._wrapped.abandon(repo_root, change_id)

    def rebase(self, repo_root: Path, change_id: str, destination_commit: str) -> None:
        self._emit(self._format_command(f"jj rebase -s {change_id} -d {destination_commit}"))
        self._wrapped.rebase(repo_root, change_id, destination_commit)

    def merge_into(
        self, repo_root: Path, change_id: str, base_commit: str, head_commit: str
    ) -> bool:
        self._emit(
            self._format_command(f"merge {base_commit[:12]}..{head_commit[:12]} into {change_id}")
        )
        return self._wrapped.merge_into(repo_root, change_id, base_commit, head_commit)

    def new_change(
        self, repo_root: Path, parent_commit: str, description: str, content_commit: str
    ) -> str:
        self._emit(
            self._format_command(
                f'jj new --no-edit {parent_commit} -m "{_first_line(description)}"'
                f" && jj restore --from {content_commit}"
            )
        )
        return self._wrapped.new_change(repo_root, parent_commit, description, content_commit)

    def edit(self, repo_root: Path, change_id: str) -> None:
        self._emit(self._format_command(f"jj edit {change_id}"))
        self._wrapped.edit(repo_root, change_id)
