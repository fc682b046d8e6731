"""Jujutsu operations interface.

Architecture:
- Jujutsu: Abstract base class defining the interface
- RealJujutsu: Production implementation driving the `jj` and `git` binaries
- FakeJujutsu: In-memory implementation for tests
- DryRunJujutsu / PrintingJujutsu: wrappers used for --dry-run
"""

from abc import ABC, abstractmethod
from pathlib import Path

from jj_stack.core.jj.types import Change


class Jujutsu(ABC):
    """Abstract interface for the local version-control collaborator.

    All implementations (real and fake) must implement this interface.
    This interface contains ONLY runtime operations - no test setup methods.

    Revisions are addressed by change id unless a parameter says otherwise.
    Parameters named `*_commit` take a commit id or any expression that
    resolves to exactly one commit (e.g. `main@origin`).
    """

    # Reads

    @abstractmethod
    def get_change(self, repo_root: Path, change_id: str) -> Change:
        """Read a change.

        Raises:
            RuntimeError: If the change does not exist or is ambiguous
        """
        ...

    @abstractmethod
    def resolve_heads(self, repo_root: Path, revset: str) -> list[str]:
        """Return change ids of the heads of a revset, newest first."""
        ...

    @abstractmethod
    def resolve_commit(self, repo_root: Path, ref: str) -> str | None:
        """Resolve a revision expression to a single commit id, or None if absent."""
        ...

    @abstractmethod
    def tree_of(self, repo_root: Path, commit: str) -> str:
        """Get the tree id of a commit."""
        ...

    @abstractmethod
    def is_ancestor(self, repo_root: Path, ancestor_commit: str, descendant_commit: str) -> bool:
        """Check whether one commit is an ancestor of (or equal to) another."""
        ...

    @abstractmethod
    def merge_base(self, repo_root: Path, commit_a: str, commit_b: str) -> str | None:
        """Get the best common ancestor of two commits, or None if unrelated."""
        ...

    @abstractmethod
    def find_changes_containing(self, repo_root: Path, text: str) -> list[str]:
        """Find mutable changes whose description contains `text`."""
        ...

    @abstractmethod
    def get_remote_url(self, repo_root: Path, remote_name: str) -> str | None:
        """Get the fetch URL of a git remote, or None if it is not configured."""
        ...

    # Writes

    @abstractmethod
    def fetch(self, repo_root: Path, remote_name: str) -> None:
        """Fetch from a git remote and import its bookmarks."""
        ...

    @abstractmethod
    def describe(self, repo_root: Path, change_id: str, description: str) -> None:
        """Replace a change's description. Descendants are rebased automatically."""
        ...

    @abstractmethod
    def create_commit(
        self, repo_root: Path, tree_id: str, parent_commits: list[str], message: str
    ) -> str:
        """Create a detached commit outside the change graph.

        Args:
            repo_root: Repository root
            tree_id: Tree the commit records
            parent_commits: Parent commit ids, in order
            message: Commit message

        Returns:
            The new commit id
        """
        ...

    @abstractmethod
    def abandon(self, repo_root: Path, change_id: str) -> None:
        """Discard a change. Its descendants are reparented onto its parent."""
        ...

    @abstractmethod
    def rebase(self, repo_root: Path, change_id: str, destination_commit: str) -> None:
        """Rebase a change and all of its descendants onto a new parent."""
        ...

    @abstractmethod
    def merge_into(
        self, repo_root: Path, change_id: str, base_commit: str, head_commit: str
    ) -> bool:
        """Apply the diff base_commit..head_commit onto a change.

        Overlapping edits are left as a conflict state on the change.

        Returns:
            True if the change is conflicted afterwards
        """
        ...

    @abstractmethod
    def new_change(
        self, repo_root: Path, parent_commit: str, description: str, content_commit: str
    ) -> str:
        """Create a change on `parent_commit` whose tree equals `content_commit`'s tree.

        The working copy does not move.

        Returns:
            The new change id
        """
        ...

    @abstractmethod
    def edit(self, repo_root: Path, change_id: str) -> None:
        """Move the working copy onto a change."""
        ...
