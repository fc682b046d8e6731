"""Fake Jujutsu implementation for testing.

FakeJujutsu keeps a content-addressed commit graph in memory. Trees are plain
`{path: content}` dicts. Rewriting a change produces a new commit id under the
same change id and rebases its descendants the way jj does, replaying each
descendant's diff with a per-file three-way merge.
"""

import hashlib
import json
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from jj_stack.core.jj.abc import Jujutsu
from jj_stack.core.jj.types import Change

Files = Mapping[str, str]


@dataclass(frozen=True)
class FakeCommit:
    """One commit in the fake graph. Commits without a change id live outside jj."""

    commit_id: str
    parents: tuple[str, ...] = ()
    files: Files = field(default_factory=dict)
    description: str = ""
    change_id: str | None = None
    immutable: bool = False
    conflicted: bool = False


def tree_id_for(files: Files) -> str:
    payload = json.dumps(sorted(files.items())).encode()
    return "tree-" + hashlib.sha1(payload).hexdigest()[:16]


def merge_files(base: Files, ours: Files, theirs: Files) -> tuple[dict[str, str], bool]:
    """Per-file three-way merge. Returns (merged files, conflicted)."""
    merged: dict[str, str] = {}
    conflicted = False
    for path in sorted({*base, *ours, *theirs}):
        b, o, t = base.get(path), ours.get(path), theirs.get(path)
        if o == t:
            result = o
        elif b == o:
            result = t
        elif b == t:
            result = o
        else:
            conflicted = True
            result = f"<<<<<<<\n{o or ''}\n=======\n{t or ''}\n>>>>>>>\n"
        if result is not None:
            merged[path] = result
    return merged, conflicted


class FakeJujutsu(Jujutsu):
    """In-memory fake implementation of Jujutsu operations.

    This class has NO public setup methods. All state is provided via constructor
    or captured during execution.
    """

    def __init__(
        self,
        *,
        commits: list[FakeCommit] | None = None,
        refs: dict[str, str] | None = None,
        working_copy: str | None = None,
        remote_urls: dict[str, str] | None = None,
        revsets: dict[str, list[str]] | None = None,
    ) -> None:
        """Create FakeJujutsu with pre-configured state.

        Args:
            commits: Initial commit graph, parents before children
            refs: Named revisions such as `main@origin` mapped to commit ids
            working_copy: Change id of `@`
            remote_urls: Git remote name -> URL
            revsets: Revset expressions mapped to the head change ids they select
        """
        self._commits: dict[str, FakeCommit] = {}
        self._trees: dict[str, dict[str, str]] = {}
        self._changes: dict[str, str] = {}
        for commit in commits or []:
            self._store(commit)
            if commit.change_id is not None:
                self._changes[commit.change_id] = commit.commit_id
        self._refs = refs or {}
        self._working_copy = working_copy
        self._remote_urls = remote_urls or {}
        self._revsets = revsets or {}
        self._counter = 0

        self._described: list[tuple[str, str]] = []
        self._abandoned: list[str] = []
        self._rebased: list[tuple[str, str]] = []
        self._created_commits: list[str] = []
        self._merged: list[tuple[str, str, str]] = []
        self._new_changes: list[str] = []
        self._edited: list[str] = []
        self._fetched_remotes: list[str] = []

    # Internal graph bookkeeping

    def _store(self, commit: FakeCommit) -> None:
        self._commits[commit.commit_id] = commit
        self._trees[tree_id_for(commit.files)] = dict(commit.files)

    def _next_id(self, seed: str) -> str:
        self._counter += 1
        return hashlib.sha1(f"{self._counter}:{seed}".encode()).hexdigest()

    def _commit_for_change(self, change_id: str) -> FakeCommit:
        if change_id == "@" and self._working_copy is not None:
            change_id = self._working_copy
        if change_id not in self._changes:
            msg = f"Failed to read change {change_id}: revision doesn't exist"
            raise RuntimeError(msg)
        return self._commits[self._changes[change_id]]

    def _require_commit(self, ref: str) -> FakeCommit:
        commit_id = self.resolve_commit(Path("/"), ref)
        if commit_id is None:
            msg = f"Revision '{ref}' doesn't exist"
            raise RuntimeError(msg)
        return self._commits[commit_id]

    def _files(self, commit_id: str) -> Files:
        return self._commits[commit_id].files

    def _rewrite(self, old: FakeCommit, **changes: object) -> FakeCommit:
        new = replace(old, **changes)
        new = replace(new, commit_id=self._next_id(f"{old.change_id}:{new.description}"))
        self._store(new)
        if old.change_id is not None:
            self._changes[old.change_id] = new.commit_id
        self._rebase_children(old, (new.commit_id,), new.files)
        return new

    def _rebase_children(
        self, old: FakeCommit, new_parents: tuple[str, ...], new_parent_files: Files
    ) -> None:
        children = [
            self._commits[commit_id]
            for commit_id in list(self._changes.values())
            if old.commit_id in self._commits[commit_id].parents
        ]
        for child in children:
            parents: list[str] = []
            for parent in child.parents:
                replacement = new_parents if parent == old.commit_id else (parent,)
                parents.extend(p for p in replacement if p not in parents)
            files, conflicted = merge_files(old.files, new_parent_files, child.files)
            self._rewrite(
                child,
                parents=tuple(parents),
                files=files,
                conflicted=child.conflicted or conflicted,
            )

    # Test assertion helpers

    @property
    def working_copy(self) -> str | None:
        return self._working_copy

    @property
    def visible_change_ids(self) -> list[str]:
        return list(self._changes)

    def files_of(self, ref: str) -> dict[str, str]:
        """Tree contents of a change id or commit id. For test assertions only."""
        if ref in self._changes or ref == "@":
            return dict(self._commit_for_change(ref).files)
        return dict(self._commits[ref].files)

    def commit(self, commit_id: str) -> FakeCommit:
        """Look up any stored commit. For test assertions only."""
        return self._commits[commit_id]

    @property
    def described(self) -> list[tuple[str, str]]:
        """(change_id, description) for every describe() call."""
        return self._described

    @property
    def abandoned(self) -> list[str]:
        return self._abandoned

    @property
    def rebased(self) -> list[tuple[str, str]]:
        """(change_id, destination) for every rebase() call."""
        return self._rebased

    @property
    def created_commits(self) -> list[str]:
        return self._created_commits

    @property
    def merged(self) -> list[tuple[str, str, str]]:
        """(change_id, base_commit, head_commit) for every merge_into() call."""
        return self._merged

    @property
    def new_changes(self) -> list[str]:
        return self._new_changes

    @property
    def edited(self) -> list[str]:
        return self._edited

    @property
    def fetched_remotes(self) -> list[str]:
        return self._fetched_remotes

    # Reads

    def get_change(self, repo_root: Path, change_id: str) -> Change:
        commit = self._commit_for_change(change_id)
        parents = [self._commits[p] for p in commit.parents]
        return Change(
            change_id=commit.change_id or commit.commit_id,
            commit_id=commit.commit_id,
            parent_ids=tuple(p.change_id or p.commit_id for p in parents),
            parent_commit_ids=commit.parents,
            description=commit.description,
            mutability="immutable" if commit.immutable else "mutable",
            has_conflict=commit.conflicted,
        )

    def resolve_heads(self, repo_root: Path, revset: str) -> list[str]:
        if revset in self._revsets:
            return list(self._revsets[revset])
        if revset == "@":
            return [self._working_copy] if self._working_copy is not None else []
        if revset == "mutable()":
            mutable = {
                change_id: commit_id
                for change_id, commit_id in self._changes.items()
                if not self._commits[commit_id].immutable
            }
            parent_commits = {p for c in mutable.values() for p in self._commits[c].parents}
            return [cid for cid, commit_id in mutable.items() if commit_id not in parent_commits]
        if revset in self._changes:
            return [revset]
        msg = f"Failed to resolve heads of '{revset}': unknown revset"
        raise RuntimeError(msg)

    def resolve_commit(self, repo_root: Path, ref: str) -> str | None:
        if ref in self._refs:
            return self._refs[ref]
        if ref in self._commits:
            return ref
        if ref == "@" and self._working_copy is not None:
            return self._changes.get(self._working_copy)
        return self._changes.get(ref)

    def tree_of(self, repo_root: Path, commit: str) -> str:
        return tree_id_for(self._require_commit(commit).files)

    def _ancestors(self, commit_id: str) -> list[str]:
        seen: list[str] = []
        queue = [commit_id]
        while queue:
            current = queue.pop(0)
            if current in seen or current not in self._commits:
                continue
            seen.append(current)
            queue.extend(self._commits[current].parents)
        return seen

    def is_ancestor(self, repo_root: Path, ancestor_commit: str, descendant_commit: str) -> bool:
        return ancestor_commit in self._ancestors(descendant_commit)

    def merge_base(self, repo_root: Path, commit_a: str, commit_b: str) -> str | None:
        ancestors_a = set(self._ancestors(commit_a))
        for candidate in self._ancestors(commit_b):
            if candidate in ancestors_a:
                return candidate
        return None

    def find_changes_containing(self, repo_root: Path, text: str) -> list[str]:
        return [
            change_id
            for change_id, commit_id in self._changes.items()
            if not self._commits[commit_id].immutable
            and text in self._commits[commit_id].description
        ]

    def get_remote_url(self, repo_root: Path, remote_name: str) -> str | None:
        return self._remote_urls.get(remote_name)

    # Writes

    def fetch(self, repo_root: Path, remote_name: str) -> None:
        self._fetched_remotes.append(remote_name)

    def describe(self, repo_root: Path, change_id: str, description: str) -> None:
        self._described.append((change_id, description))
        self._rewrite(self._commit_for_change(change_id), description=description)

    def create_commit(
        self, repo_root: Path, tree_id: str, parent_commits: list[str], message: str
    ) -> str:
        commit = FakeCommit(
            commit_id=self._next_id(f"{tree_id}:{message}"),
            parents=tuple(parent_commits),
            files=dict(self._trees[tree_id]),
            description=message,
        )
        self._store(commit)
        self._created_commits.append(commit.commit_id)
        return commit.commit_id

    def abandon(self, repo_root: Path, change_id: str) -> None:
        self._abandoned.append(change_id)
        commit = self._commit_for_change(change_id)
        del self._changes[change_id]
        first_parent_files = self._files(commit.parents[0]) if commit.parents else {}
        self._rebase_children(commit, commit.parents, first_parent_files)

        if self._working_copy == change_id:
            replacement = f"wc{self._counter}"
            new_wc = FakeCommit(
                commit_id=self._next_id(replacement),
                parents=commit.parents[:1],
                files=dict(first_parent_files),
                change_id=replacement,
            )
            self._store(new_wc)
            self._changes[replacement] = new_wc.commit_id
            self._working_copy = replacement

    def rebase(self, repo_root: Path, change_id: str, destination_commit: str) -> None:
        self._rebased.append((change_id, destination_commit))
        commit = self._commit_for_change(change_id)
        destination = self._require_commit(destination_commit)
        old_parent_files = self._files(commit.parents[0]) if commit.parents else {}
        files, conflicted = merge_files(old_parent_files, destination.files, commit.files)
        self._rewrite(
            commit,
            parents=(destination.commit_id,),
            files=files,
            conflicted=commit.conflicted or conflicted,
        )

    def merge_into(
        self, repo_root: Path, change_id: str, base_commit: str, head_commit: str
    ) -> bool:
        self._merged.append((change_id, base_commit, head_commit))
        commit = self._commit_for_change(change_id)
        files, conflicted = merge_files(
            self._require_commit(base_commit).files,
            commit.files,
            self._require_commit(head_commit).files,
        )
        self._rewrite(commit, files=files, conflicted=commit.conflicted or conflicted)
        return commit.conflicted or conflicted

    def new_change(
        self, repo_root: Path, parent_commit: str, description: str, content_commit: str
    ) -> str:
        parent = self._require_commit(parent_commit)
        content = self._require_commit(content_commit)
        change_id = f"new{len(self._new_changes) + 1}"
        commit = FakeCommit(
            commit_id=self._next_id(change_id),
            parents=(parent.commit_id,),
            files=dict(content.files),
            description=description,
            change_id=change_id,
        )
        self._store(commit)
        self._changes[change_id] = commit.commit_id
        self._new_changes.append(change_id)
        return change_id

    def edit(self, repo_root: Path, change_id: str) -> None:
        self._commit_for_change(change_id)
        self._edited.append(change_id)
        self._working_copy = change_id
