"""Repository discovery functionality.

Finds the Jujutsu workspace root from a given path without requiring a full
StackContext, so settings can be loaded before the context is built.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RepoContext:
    """A Jujutsu workspace root and the git directory backing it."""

    root: Path
    git_dir: Path

    @property
    def settings_path(self) -> Path:
        return self.root / SETTINGS_FILE_NAME


@dataclass(frozen=True)
class NoRepoSentinel:
    """Sentinel value indicating execution outside a Jujutsu repository.

    Commands that require repo context check for this sentinel and fail fast.
    """

    message: str = "Not inside a Jujutsu repository"


SETTINGS_FILE_NAME = ".jj-stack.toml"


def git_dir_for(root: Path) -> Path:
    """Locate the git directory of a workspace.

    Colocated repositories keep it at `<root>/.git`; otherwise Jujutsu stores
    it inside its own repo directory.
    """
    colocated = root / ".git"
    if colocated.is_dir():
        return colocated
    return root / ".jj" / "repo" / "store" / "git"


def discover_repo_or_sentinel(cwd: Path) -> RepoContext | NoRepoSentinel:
    """Walk up from `cwd` to find a directory containing `.jj`.

    Args:
        cwd: Current working directory to start search from

    Returns:
        RepoContext if inside a Jujutsu workspace, NoRepoSentinel otherwise
    """
    if not cwd.exists():
        return NoRepoSentinel(message=f"Start path '{cwd}' does not exist")

    cur = cwd.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / ".jj").is_dir():
            return RepoContext(root=parent, git_dir=git_dir_for(parent))

    return NoRepoSentinel(message="Not inside a Jujutsu repository (no .jj found up the tree)")
