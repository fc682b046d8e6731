"""Value types returned by the Jujutsu gateway."""

from dataclasses import dataclass
from typing import Literal

Mutability = Literal["mutable", "immutable"]


@dataclass(frozen=True)
class Change:
    """Snapshot of one change at the moment it was read.

    `change_id` is stable across rewrites. `commit_id` is not: any describe,
    rebase or content edit produces a new one, so engines re-read a change
    before acting on it.
    """

    change_id: str
    commit_id: str
    parent_ids: tuple[str, ...]
    parent_commit_ids: tuple[str, ...]
    description: str
    mutability: Mutability
    has_conflict: bool = False

    @property
    def is_described(self) -> bool:
        return bool(self.description.strip())

    @property
    def is_mutable(self) -> bool:
        return self.mutability == "mutable"
