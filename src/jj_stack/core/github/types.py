"""Type definitions for GitHub operations."""

from dataclasses import dataclass
from typing import Literal

PRState = Literal["OPEN", "MERGED", "CLOSED"]


@dataclass(frozen=True)
class PullRequest:
    """A pull request as last read from GitHub."""

    number: int
    title: str
    body: str
    head_branch: str
    base_branch: str
    head_sha: str
    state: PRState
    url: str
    reviewers: tuple[str, ...] = ()
    assignees: tuple[str, ...] = ()
    review_decision: str | None = None  # "APPROVED", "CHANGES_REQUESTED", "REVIEW_REQUIRED"


@dataclass(frozen=True)
class PullRequestComment:
    """A conversation comment on a pull request."""

    id: int
    body: str
    author: str = ""
