"""Repository settings and the naming rules derived from them."""

import re
from collections.abc import Collection
from dataclasses import dataclass

DEFAULT_REMOTE_NAME = "origin"
DEFAULT_BRANCH = "main"
DEFAULT_REMOTE_TIMEOUT = 60.0
DEFAULT_MAX_ATTEMPTS = 3

_PR_NUMBER_RE = re.compile(r"^\s*#?\s*(\d+)\s*$")
_PR_URL_RE = re.compile(
    r"^\s*https?://github\.com/([\w\-\.]+)/([\w\-\.]+)/pull/(\d+)([/?#].*)?\s*$"
)
_REMOTE_URL_RE = re.compile(
    r"^(?:https?://|ssh://git@|git@)github\.com[:/]([\w\-\.]+)/([\w\-\.]+?)(?:\.git)?/?$"
)
_SLUG_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Lowercase text and collapse every run of non-alphanumerics into one dash."""
    return _SLUG_SEPARATOR_RE.sub("-", text.lower()).strip("-")


def default_branch_prefix(login: str) -> str:
    return f"spr/{login}/"


def parse_github_remote_url(url: str) -> tuple[str, str] | None:
    """Extract (owner, repo) from a GitHub remote URL.

    Handles https, ssh:// and scp-style (git@github.com:owner/repo.git) URLs.
    Returns None for anything that does not point at github.com.
    """
    match = _REMOTE_URL_RE.match(url.strip())
    if match is None:
        return None
    return match.group(1), match.group(2)


def parse_repository_option(value: str) -> tuple[str, str] | None:
    """Parse an OWNER/REPO string. Returns None if it has any other shape."""
    parts = value.strip().split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


@dataclass(frozen=True)
class StackConfig:
    """Settings for one repository, resolved once per invocation."""

    owner: str
    repo: str
    branch_prefix: str
    remote_name: str = DEFAULT_REMOTE_NAME
    default_branch: str = DEFAULT_BRANCH
    remote_timeout: float = DEFAULT_REMOTE_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    @property
    def trunk_ref(self) -> str:
        """Revset naming the remote-tracking default branch."""
        return f"{self.default_branch}@{self.remote_name}"

    def pull_request_url(self, number: int) -> str:
        return f"https://github.com/{self.owner}/{self.repo}/pull/{number}"

    def parse_pull_request_field(self, text: str) -> int | None:
        """Parse the value of a Pull Request trailer.

        Accepts a bare number (optionally prefixed with '#') or the URL of a pull
        request in this repository. A URL for another repository is not ours and
        yields None.
        """
        if not text:
            return None

        match = _PR_NUMBER_RE.match(text)
        if match is not None:
            return int(match.group(1))

        match = _PR_URL_RE.match(text)
        if match is not None and match.group(1) == self.owner and match.group(2) == self.repo:
            return int(match.group(3))

        return None

    def new_branch_name(self, title: str, existing: Collection[str]) -> str:
        """Pick an unused branch name under the prefix for a change titled `title`.

        Args:
            title: Change title to derive the slug from
            existing: Branch names already present on the remote

        Returns:
            `<prefix><slug>`, or `<prefix><slug>-N` with the smallest free N
        """
        slug = slugify(title) or "change"
        candidate = f"{self.branch_prefix}{slug}"
        suffix = 0
        while candidate in existing:
            suffix += 1
            candidate = f"{self.branch_prefix}{slug}-{suffix}"
        return candidate
