"""Parsing helpers for gh CLI output."""

import json
import re
from typing import Any

from jj_stack.core.errors import (
    RateLimited,
    RemoteAuthError,
    RemoteConflict,
    RemoteError,
    RemoteNotFound,
    TransientRemoteError,
)
from jj_stack.core.github.types import PRState, PullRequest, PullRequestComment

PR_JSON_FIELDS = (
    "number,title,body,url,state,headRefName,baseRefName,headRefOid,"
    "reviewRequests,reviewDecision,assignees"
)

_SERVER_ERROR_RE = re.compile(r"http 5\d\d")
_PR_URL_NUMBER_RE = re.compile(r"/pull/(\d+)\s*$")


def parse_pull_request(data: dict[str, Any]) -> PullRequest:
    """Build a PullRequest from `gh pr view/list --json PR_JSON_FIELDS` output."""
    state: PRState
    raw_state = str(data.get("state", "")).upper()
    if raw_state == "OPEN":
        state = "OPEN"
    elif raw_state == "MERGED":
        state = "MERGED"
    elif raw_state == "CLOSED":
        state = "CLOSED"
    else:
        msg = f"Unknown pull request state {raw_state!r} for #{data.get('number')}"
        raise ValueError(msg)

    reviewers: list[str] = []
    for request in data.get("reviewRequests") or []:
        name = request.get("login") or request.get("slug") or request.get("name")
        if name:
            reviewers.append(name)

    assignees = [a["login"] for a in data.get("assignees") or [] if a.get("login")]

    return PullRequest(
        number=int(data["number"]),
        title=data.get("title") or "",
        body=data.get("body") or "",
        head_branch=data["headRefName"],
        base_branch=data["baseRefName"],
        head_sha=data.get("headRefOid") or "",
        state=state,
        url=data.get("url") or "",
        reviewers=tuple(reviewers),
        assignees=tuple(assignees),
        review_decision=data.get("reviewDecision") or None,
    )


COMMENT_JQ = ".[] | {id: .id, body: .body, author: .user.login} | @json"


def parse_comment_lines(output: str) -> list[PullRequestComment]:
    """Parse one JSON object per line, as produced by `gh api ... --jq COMMENT_JQ`."""
    comments: list[PullRequestComment] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        data = json.loads(line)
        comments.append(
            PullRequestComment(
                id=int(data["id"]), body=data.get("body") or "", author=data.get("author") or ""
            )
        )
    return comments


def parse_pr_number_from_url(output: str) -> int | None:
    """Extract the PR number from the URL `gh pr create` prints."""
    for line in reversed(output.strip().splitlines()):
        match = _PR_URL_NUMBER_RE.search(line.strip())
        if match is not None:
            return int(match.group(1))
    return None


def parse_ls_remote_output(output: str) -> dict[str, str]:
    """Parse `git ls-remote --heads` into {branch: sha}."""
    heads: dict[str, str] = {}
    for line in output.splitlines():
        parts = line.split()
        if len(parts) != 2 or not parts[1].startswith("refs/heads/"):
            continue
        heads[parts[1].removeprefix("refs/heads/")] = parts[0]
    return heads


def classify_remote_failure(message: str) -> type[RemoteError]:
    """Map the text of a failed gh/git invocation onto the remote error taxonomy."""
    text = message.lower()
    if "http 429" in text or "rate limit" in text:
        return RateLimited
    if (
        "http 401" in text
        or "http 403" in text
        or "bad credentials" in text
        or "gh auth login" in text
        or "authentication failed" in text
        or "permission denied (publickey)" in text
    ):
        return RemoteAuthError
    if "http 404" in text or "could not resolve to a pullrequest" in text or "not found" in text:
        return RemoteNotFound
    if (
        "http 409" in text
        or "http 422" in text
        or "stale info" in text
        or "non-fast-forward" in text
        or "fetch first" in text
        or "[rejected]" in text
    ):
        return RemoteConflict
    if (
        _SERVER_ERROR_RE.search(text)
        or "timed out" in text
        or "timeout" in text
        or "connection reset" in text
        or "connection refused" in text
        or "could not resolve host" in text
        or "unexpected eof" in text
    ):
        return TransientRemoteError
    return RemoteError
