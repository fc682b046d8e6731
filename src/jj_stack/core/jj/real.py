"""Production Jujutsu implementation using subprocess.

Graph queries and rewrites go through `jj`. Operations that Jujutsu does not
expose (detached commits, tree ids, ancestry tests) go straight to the backing
git repository.
"""

import logging
import re
import subprocess
from pathlib import Path

from jj_stack.core.jj.abc import Jujutsu
from jj_stack.core.jj.types import Change
from jj_stack.core.repo_discovery import git_dir_for
from jj_stack.core.subprocess import run_subprocess_with_context

logger = logging.getLogger(__name__)

_FIELD_SEP = "\0"
_CHANGE_TEMPLATE = (
    'change_id ++ "\\0" ++ commit_id ++ "\\0"'
    ' ++ parents.map(|c| c.change_id()).join(",") ++ "\\0"'
    ' ++ parents.map(|c| c.commit_id()).join(",") ++ "\\0"'
    ' ++ if(immutable, "immutable", "mutable") ++ "\\0"'
    ' ++ if(conflict, "1", "0") ++ "\\0"'
    " ++ description"
)
_ID_LINE_TEMPLATE = 'change_id ++ "\\n"'
_CREATED_RE = re.compile(r"Created new commit (\w+)")
_MERGE_BOOKMARK = "jj-stack-merge-tmp"


def _quote_revset_string(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _split_ids(field: str) -> tuple[str, ...]:
    return tuple(part for part in field.split(",") if part)


class RealJujutsu(Jujutsu):
    """Production implementation using subprocess.

    Args:
        remote_timeout: Seconds allowed for commands that talk to the network
    """

    def __init__(self, *, remote_timeout: float | None = None) -> None:
        self._remote_timeout = remote_timeout

    def _jj(
        self,
        repo_root: Path,
        args: list[str],
        operation_context: str,
        *,
        input: str | None = None,
        check: bool = True,
        timeout: float | None = None,
    ) -> subprocess.CompletedProcess[str]:
        cmd = ["jj", "--no-pager", "--color", "never", "-R", str(repo_root), *args]
        logger.debug("Running %s", " ".join(cmd))
        return run_subprocess_with_context(
            cmd,
            operation_context=operation_context,
            cwd=repo_root,
            check=check,
            input=input,
            timeout=timeout,
        )

    def _git(
        self,
        repo_root: Path,
        args: list[str],
        operation_context: str,
        *,
        input: str | None = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        cmd = ["git", f"--git-dir={git_dir_for(repo_root)}", *args]
        logger.debug("Running %s", " ".join(cmd))
        return run_subprocess_with_context(
            cmd, operation_context=operation_context, cwd=repo_root, check=check, input=input
        )

    def _change_ids(self, repo_root: Path, revset: str, operation_context: str) -> list[str]:
        result = self._jj(
            repo_root,
            ["log", "--no-graph", "-r", revset, "-T", _ID_LINE_TEMPLATE],
            operation_context,
        )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def get_change(self, repo_root: Path, change_id: str) -> Change:
        result = self._jj(
            repo_root,
            ["log", "--no-graph", "-r", change_id, "-T", _CHANGE_TEMPLATE],
            operation_context=f"read change {change_id}",
        )
        fields = result.stdout.split(_FIELD_SEP, 6)
        if len(fields) != 7:
            msg = f"Unexpected output reading change {change_id}: {result.stdout!r}"
            raise RuntimeError(msg)

        resolved_id, commit_id, parent_ids, parent_commits, mutability, conflict, description = (
            fields
        )
        return Change(
            change_id=resolved_id,
            commit_id=commit_id,
            parent_ids=_split_ids(parent_ids),
            parent_commit_ids=_split_ids(parent_commits),
            description=description,
            mutability="immutable" if mutability == "immutable" else "mutable",
            has_conflict=conflict == "1",
        )

    def resolve_heads(self, repo_root: Path, revset: str) -> list[str]:
        return self._change_ids(repo_root, f"heads({revset})", f"resolve heads of '{revset}'")

    def resolve_commit(self, repo_root: Path, ref: str) -> str | None:
        result = self._jj(
            repo_root,
            ["log", "--no-graph", "-r", ref, "-T", "commit_id", "--limit", "1"],
            operation_context=f"resolve '{ref}'",
            check=False,
        )
        if result.returncode != 0:
            logger.debug("Could not resolve %s: %s", ref, result.stderr.strip())
            return None
        commit = result.stdout.strip()
        return commit or None

    def tree_of(self, repo_root: Path, commit: str) -> str:
        result = self._git(
            repo_root, ["rev-parse", f"{commit}^{{tree}}"], f"read tree of {commit}"
        )
        return result.stdout.strip()

    def is_ancestor(self, repo_root: Path, ancestor_commit: str, descendant_commit: str) -> bool:
        result = self._git(
            repo_root,
            ["merge-base", "--is-ancestor", ancestor_commit, descendant_commit],
            f"check whether {ancestor_commit} is an ancestor of {descendant_commit}",
            check=False,
        )
        if result.returncode in (0, 1):
            return result.returncode == 0
        msg = (
            f"Failed to compare ancestry of {ancestor_commit} and {descendant_commit}: "
            f"{result.stderr.strip()}"
        )
        raise RuntimeError(msg)

    def merge_base(self, repo_root: Path, commit_a: str, commit_b: str) -> str | None:
        result = self._git(
            repo_root,
            ["merge-base", commit_a, commit_b],
            f"find merge base of {commit_a} and {commit_b}",
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def find_changes_containing(self, repo_root: Path, text: str) -> list[str]:
        revset = f"mutable() & description(substring:{_quote_revset_string(text)})"
        return self._change_ids(repo_root, revset, "search change descriptions")

    def get_remote_url(self, repo_root: Path, remote_name: str) -> str | None:
        result = self._jj(repo_root, ["git", "remote", "list"], "list git remotes")
        for line in result.stdout.splitlines():
            parts = line.split(maxsplit=1)
            if len(parts) == 2 and parts[0] == remote_name:
                return parts[1].strip()
        return None

    def fetch(self, repo_root: Path, remote_name: str) -> None:
        self._jj(
            repo_root,
            ["git", "fetch", "--remote", remote_name],
            f"fetch from {remote_name}",
            timeout=self._remote_timeout,
        )

    def describe(self, repo_root: Path, change_id: str, description: str) -> None:
        self._jj(
            repo_root,
            ["describe", change_id, "--stdin"],
            f"describe {change_id}",
            input=description,
        )

    def create_commit(
        self, repo_root: Path, tree_id: str, parent_commits: list[str], message: str
    ) -> str:
        args = ["commit-tree", tree_id]
        for parent in parent_commits:
            args.extend(["-p", parent])
        result = self._git(repo_root, args, f"create commit for tree {tree_id}", input=message)
        return result.stdout.strip()

    def abandon(self, repo_root: Path, change_id: str) -> None:
        self._jj(repo_root, ["abandon", change_id], f"abandon {change_id}")

    def rebase(self, repo_root: Path, change_id: str, destination_commit: str) -> None:
        self._jj(
            repo_root,
            ["rebase", "-s", change_id, "-d", destination_commit],
            f"rebase {change_id} onto {destination_commit}",
        )

    def merge_into(
        self, repo_root: Path, change_id: str, base_commit: str, head_commit: str
    ) -> bool:
        # A commit carrying head's tree on top of base has exactly the diff
        # base..head. Rebasing it onto the change lets jj do the 3-way merge.
        patch_commit = self.create_commit(
            repo_root,
            self.tree_of(repo_root, head_commit),
            [base_commit],
            f"jj-stack: changes from {head_commit}",
        )
        self._git(
            repo_root,
            ["update-ref", f"refs/heads/{_MERGE_BOOKMARK}", patch_commit],
            "stage remote changes",
        )
        self._jj(repo_root, ["git", "import"], "import staged remote changes")
        patch_change = self._change_ids(repo_root, patch_commit, "resolve staged changes")[0]

        self._jj(
            repo_root,
            ["rebase", "-r", patch_change, "-d", change_id],
            f"rebase remote changes onto {change_id}",
        )
        self._jj(
            repo_root,
            ["squash", "--from", patch_change, "--into", change_id, "--use-destination-message"],
            f"squash remote changes into {change_id}",
        )
        self._jj(repo_root, ["bookmark", "forget", _MERGE_BOOKMARK], "drop staging bookmark")
        return self.get_change(repo_root, change_id).has_conflict

    def new_change(
        self, repo_root: Path, parent_commit: str, description: str, content_commit: str
    ) -> str:
        result = self._jj(
            repo_root,
            ["new", "--no-edit", parent_commit, "-m", description],
            f"create change on {parent_commit}",
        )
        match = _CREATED_RE.search(result.stderr) or _CREATED_RE.search(result.stdout)
        if match is None:
            msg = f"Could not find the new change id in jj output: {result.stderr.strip()}"
            raise RuntimeError(msg)

        change_id = self._change_ids(repo_root, match.group(1), "resolve new change")[0]
        self._jj(
            repo_root,
            ["restore", "--from", content_commit, "--into", change_id],
            f"restore {change_id} from {content_commit}",
        )
        return change_id

    def edit(self, repo_root: Path, change_id: str) -> None:
        self._jj(repo_root, ["edit", change_id], f"edit {change_id}")
