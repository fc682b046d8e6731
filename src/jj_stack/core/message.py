"""Structured fields embedded in a change description.

A description looks like:

    Title line

    Free-form body, any number of paragraphs.

    Reviewers: alice, bob
    Assignees: carol
    Pull Request: https://github.com/owner/repo/pull/12
    Last Commit: 3f1c...

The title is the first non-blank line. Any later line that starts with one of the
trailer labels is a field; every other line belongs to the body.
"""

import re
from dataclasses import dataclass, replace

REVIEWERS_LABEL = "Reviewers"
ASSIGNEES_LABEL = "Assignees"
PULL_REQUEST_LABEL = "Pull Request"
LAST_COMMIT_LABEL = "Last Commit"

_TRAILER_RE = re.compile(
    r"^\s*(Reviewers|Assignees|Pull Request|Last Commit)\s*:\s*(.*?)\s*$", re.IGNORECASE
)
_LABELS = (REVIEWERS_LABEL, ASSIGNEES_LABEL, PULL_REQUEST_LABEL, LAST_COMMIT_LABEL)
_CANONICAL_LABELS = {label.lower(): label for label in _LABELS}


@dataclass(frozen=True)
class ChangeMessage:
    title: str
    body: str = ""
    reviewers: tuple[str, ...] = ()
    assignees: tuple[str, ...] = ()
    pr_ref: str | None = None
    last_commit: str | None = None

    def with_association(self, pr_ref: str, last_commit: str | None) -> "ChangeMessage":
        return replace(self, pr_ref=pr_ref, last_commit=last_commit)


def _split_names(value: str) -> list[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def _dedupe(names: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(names))


def _split(text: str) -> tuple[str, list[str], list[tuple[str, str, str]]]:
    """Split text into (title, body lines, [(label, value, raw line)])."""
    lines = text.splitlines()
    while lines and not lines[0].strip():
        lines.pop(0)
    if not lines:
        return "", [], []

    title = lines[0].strip()
    body_lines: list[str] = []
    trailers: list[tuple[str, str, str]] = []
    for line in lines[1:]:
        match = _TRAILER_RE.match(line)
        if match is None:
            body_lines.append(line)
        else:
            label = _CANONICAL_LABELS[match.group(1).lower()]
            trailers.append((label, match.group(2), line))
    return title, body_lines, trailers


def decode(text: str) -> ChangeMessage:
    title, body_lines, trailers = _split(text)

    reviewers: list[str] = []
    assignees: list[str] = []
    pr_ref: str | None = None
    last_commit: str | None = None
    for label, value, _raw in trailers:
        if label == REVIEWERS_LABEL:
            reviewers.extend(_split_names(value))
        elif label == ASSIGNEES_LABEL:
            assignees.extend(_split_names(value))
        elif label == PULL_REQUEST_LABEL:
            pr_ref = value or None
        elif label == LAST_COMMIT_LABEL:
            last_commit = value or None

    return ChangeMessage(
        title=title,
        body="\n".join(body_lines).strip(),
        reviewers=_dedupe(reviewers),
        assignees=_dedupe(assignees),
        pr_ref=pr_ref,
        last_commit=last_commit,
    )


def encode(message: ChangeMessage) -> str:
    """Serialize a message. Absent fields produce no trailer line."""
    trailers: list[str] = []
    name_trailers = ((REVIEWERS_LABEL, message.reviewers), (ASSIGNEES_LABEL, message.assignees))
    for label, names in name_trailers:
        cleaned = _dedupe([n.strip() for n in names if n.strip()])
        if cleaned:
            trailers.append(f"{label}: {', '.join(cleaned)}")
    if message.pr_ref:
        trailers.append(f"{PULL_REQUEST_LABEL}: {message.pr_ref}")
    if message.last_commit:
        trailers.append(f"{LAST_COMMIT_LABEL}: {message.last_commit}")
    return _join(message.title, message.body, trailers)


def rewrite_summary(text: str, title: str, body: str) -> str:
    """Replace title and body of a description, keeping its trailer lines verbatim."""
    _title, _body, trailers = _split(text)
    return _join(title, body, [raw for _label, _value, raw in trailers])


def _join(title: str, body: str, trailer_lines: list[str]) -> str:
    sections = [title.strip()]
    if body.strip():
        sections.append(body.strip())
    if trailer_lines:
        sections.append("\n".join(trailer_lines))
    return "\n\n".join(sections) + "\n"
