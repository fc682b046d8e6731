"""Discovery of reviewable stacks in the change graph."""

import logging
from dataclasses import dataclass
from pathlib import Path

from jj_stack.core.errors import MultipleParents
from jj_stack.core.jj.abc import Jujutsu
from jj_stack.core.jj.types import Change

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stack:
    """Changes ordered base to head.

    `stopped_at` names an undescribed change below the base that ended the walk
    before reaching the default branch.
    """

    changes: tuple[Change, ...]
    stopped_at: str | None = None

    @property
    def change_ids(self) -> list[str]:
        return [c.change_id for c in self.changes]


def _on_trunk(jj: Jujutsu, repo_root: Path, change: Change, trunk_commit: str | None) -> bool:
    if not change.is_mutable:
        return True
    if trunk_commit is None:
        return False
    return jj.is_ancestor(repo_root, change.commit_id, trunk_commit)


def walk_stack(
    jj: Jujutsu,
    repo_root: Path,
    head: str,
    trunk_commit: str | None,
    *,
    merges_are_boundaries: bool = False,
) -> Stack:
    """Walk from `head` down to the default branch.

    The walk stops at the first change that is immutable or already contained in
    the default branch. An undescribed head (a fresh working-copy change) is
    stepped over. An undescribed change further down ends the stack above it.

    Raises:
        MultipleParents: A merge was found in the mutable range and
            merges_are_boundaries is False
    """
    chain: list[Change] = []
    stopped_at: str | None = None
    current: str | None = head

    while current is not None:
        change = jj.get_change(repo_root, current)
        if _on_trunk(jj, repo_root, change, trunk_commit):
            break

        if len(change.parent_ids) > 1:
            if merges_are_boundaries:
                logger.debug("Treating merge %s as a stack boundary", change.change_id)
                break
            raise MultipleParents(change.change_id)

        if not change.is_described:
            if chain or current != head:
                stopped_at = change.change_id
                logger.warning(
                    "Change %s has no description; the stack ends above it", change.change_id
                )
                break
            logger.debug("Skipping undescribed head %s", change.change_id)
        else:
            chain.append(change)

        current = change.parent_ids[0] if change.parent_ids else None

    chain.reverse()
    return Stack(changes=tuple(chain), stopped_at=stopped_at)


def walk_stacks(
    jj: Jujutsu,
    repo_root: Path,
    heads: list[str],
    trunk_commit: str | None,
    *,
    merges_are_boundaries: bool = False,
) -> list[Stack]:
    """Walk every head. Stacks fully contained in another one are dropped.

    Validation happens for every head before the caller acts on any of them.
    """
    stacks = [
        walk_stack(jj, repo_root, head, trunk_commit, merges_are_boundaries=merges_are_boundaries)
        for head in dict.fromkeys(heads)
    ]
    stacks = [s for s in stacks if s.changes]

    result: list[Stack] = []
    for i, stack in enumerate(stacks):
        ids = stack.change_ids
        covered = any(
            j != i
            and other.change_ids[: len(ids)] == ids
            and (len(other.changes) > len(ids) or j < i)
            for j, other in enumerate(stacks)
        )
        if not covered:
            result.append(stack)
    return result
