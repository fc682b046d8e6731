"""Stack overview comments.

Every pull request of a pushed stack carries one comment listing the whole
chain, base first, with the pull request itself highlighted. The comment is
found again on later pushes through OVERVIEW_MARKER and edited in place.
"""

from collections.abc import Iterator
from dataclasses import dataclass

OVERVIEW_MARKER = "<!-- jj-stack:overview -->"


@dataclass(frozen=True)
class OverviewEntry:
    change_id: str
    parent_id: str
    pr_number: int
    title: str


def render_overviews(entries: list[OverviewEntry]) -> dict[str, str]:
    """Build the overview comment for every entry, keyed by change id.

    Entries whose parent is not among `entries` start a new tree. Stacks that
    share a base end up in one tree and fork below the shared part.
    """
    by_change = {entry.change_id: entry for entry in entries}
    children: dict[str, list[OverviewEntry]] = {}
    roots: list[OverviewEntry] = []
    for entry in entries:
        if entry.parent_id in by_change:
            children.setdefault(entry.parent_id, []).append(entry)
        else:
            roots.append(entry)

    bodies: dict[str, str] = {}
    for root in roots:
        members = list(_walk(root, children))
        for member in members:
            lines = _tree_lines(root, children, member.change_id, depth=0)
            bodies[member.change_id] = _compose(len(members), lines)
    return bodies


def _walk(
    entry: OverviewEntry, children: dict[str, list[OverviewEntry]]
) -> Iterator[OverviewEntry]:
    yield entry
    for child in children.get(entry.change_id, []):
        yield from _walk(child, children)


def _tree_lines(
    entry: OverviewEntry,
    children: dict[str, list[OverviewEntry]],
    current: str,
    depth: int,
) -> list[str]:
    label = f"#{entry.pr_number} {entry.title}"
    if entry.change_id == current:
        label = f"**{label}** (this pull request)"
    lines = [f"{'  ' * depth}- {label}"]

    # A straight chain stays flat; a fork indents each branch.
    kids = children.get(entry.change_id, [])
    child_depth = depth if len(kids) == 1 else depth + 1
    for kid in kids:
        lines.extend(_tree_lines(kid, children, current, child_depth))
    return lines


def _compose(count: int, lines: list[str]) -> str:
    noun = "change" if count == 1 else "changes"
    header = f"This pull request is part of a stack of {count} {noun}:"
    return "\n".join([OVERVIEW_MARKER, header, "", *lines]) + "\n"
