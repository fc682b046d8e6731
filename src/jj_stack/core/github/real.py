"""Real GitHub implementation using the gh CLI and git.

Every command funnels through `_execute`, which applies the remote timeout,
translates failures into the RemoteError taxonomy and retries the transient
ones with exponential backoff.
"""

import json
import logging
import subprocess
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from jj_stack.core.errors import RemoteNotFound, TransientRemoteError
from jj_stack.core.github.abc import GitHub
from jj_stack.core.github.parsing import (
    COMMENT_JQ,
    PR_JSON_FIELDS,
    classify_remote_failure,
    parse_comment_lines,
    parse_ls_remote_output,
    parse_pr_number_from_url,
    parse_pull_request,
)
from jj_stack.core.github.types import PullRequest, PullRequestComment
from jj_stack.core.repo_discovery import git_dir_for
from jj_stack.core.retry import retry_with_backoff
from jj_stack.core.subprocess import run_subprocess_with_context
from jj_stack.core.time.abc import Time

logger = logging.getLogger(__name__)

MAX_CONCURRENT_READS = 8


class RealGitHub(GitHub):
    """Real implementation using gh CLI.

    Requires the gh CLI to be installed and authenticated, and git push access
    to the remote.
    """

    def __init__(
        self,
        *,
        owner: str,
        repo: str,
        remote_name: str,
        time: Time,
        timeout: float,
        max_attempts: int,
        base_delay: float = 1.0,
    ) -> None:
        self._owner = owner
        self._repo = repo
        self._remote_name = remote_name
        self._time = time
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._base_delay = base_delay

    @property
    def _repo_slug(self) -> str:
        return f"{self._owner}/{self._repo}"

    def _execute(self, cmd: list[str], operation_context: str, repo_root: Path) -> str:
        @retry_with_backoff(
            max_attempts=self._max_attempts, base_delay=self._base_delay, time=self._time
        )
        def attempt() -> str:
            return self._execute_once(cmd, operation_context, repo_root)

        return attempt()

    def _execute_once(self, cmd: list[str], operation_context: str, repo_root: Path) -> str:
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = run_subprocess_with_context(
                cmd, operation_context=operation_context, cwd=repo_root, timeout=self._timeout
            )
        except subprocess.TimeoutExpired as e:
            msg = f"Timed out after {self._timeout:.0f}s trying to {operation_context}"
            raise TransientRemoteError(msg) from e
        except RuntimeError as e:
            if isinstance(e.__cause__, FileNotFoundError):
                raise
            error_type = classify_remote_failure(str(e))
            logger.debug("Classified failure as %s", error_type.__name__)
            raise error_type(str(e)) from e
        return result.stdout

    def _git(self, repo_root: Path, args: list[str]) -> list[str]:
        return ["git", f"--git-dir={git_dir_for(repo_root)}", *args]

    def get_pull_request(self, repo_root: Path, number: int) -> PullRequest:
        stdout = self._execute(
            ["gh", "pr", "view", str(number), "--repo", self._repo_slug, "--json", PR_JSON_FIELDS],
            f"get pull request #{number}",
            repo_root,
        )
        return parse_pull_request(json.loads(stdout))

    def get_pull_requests(self, repo_root: Path, numbers: list[int]) -> dict[int, PullRequest]:
        unique = list(dict.fromkeys(numbers))
        if not unique:
            return {}
        with ThreadPoolExecutor(max_workers=min(MAX_CONCURRENT_READS, len(unique))) as pool:
            results = pool.map(lambda n: self.get_pull_request(repo_root, n), unique)
            return {pr.number: pr for pr in results}

    def _list(self, repo_root: Path, extra: list[str], operation_context: str) -> list[PullRequest]:
        stdout = self._execute(
            [
                "gh",
                "pr",
                "list",
                "--repo",
                self._repo_slug,
                "--limit",
                "500",
                "--json",
                PR_JSON_FIELDS,
                *extra,
            ],
            operation_context,
            repo_root,
        )
        return [parse_pull_request(item) for item in json.loads(stdout)]

    def find_pull_request_by_head(self, repo_root: Path, head_branch: str) -> PullRequest | None:
        candidates = self._list(
            repo_root,
            ["--head", head_branch, "--state", "all"],
            f"find pull request for branch {head_branch}",
        )
        matching = [pr for pr in candidates if pr.head_branch == head_branch]
        if not matching:
            return None
        open_prs = [pr for pr in matching if pr.state == "OPEN"]
        return (open_prs or matching)[0]

    def list_open_pull_requests(self, repo_root: Path) -> list[PullRequest]:
        return self._list(repo_root, ["--state", "open"], "list open pull requests")

    def create_pull_request(
        self, repo_root: Path, *, base: str, head: str, title: str, body: str
    ) -> PullRequest:
        stdout = self._execute(
            [
                "gh",
                "pr",
                "create",
                "--repo",
                self._repo_slug,
                "--base",
                base,
                "--head",
                head,
                "--title",
                title,
                "--body",
                body,
            ],
            f"create pull request for {head}",
            repo_root,
        )
        number = parse_pr_number_from_url(stdout)
        if number is None:
            msg = f"gh pr create did not report a pull request URL for {head}: {stdout.strip()}"
            raise RemoteNotFound(msg)
        return self.get_pull_request(repo_root, number)

    def update_pull_request(
        self,
        repo_root: Path,
        number: int,
        *,
        base: str | None = None,
        title: str | None = None,
        body: str | None = None,
    ) -> None:
        fields: list[str] = []
        for key, value in (("base", base), ("title", title), ("body", body)):
            if value is not None:
                fields.extend(["-f", f"{key}={value}"])
        if not fields:
            return
        self._execute(
            ["gh", "api", "-X", "PATCH", f"repos/{self._repo_slug}/pulls/{number}", *fields],
            f"update pull request #{number}",
            repo_root,
        )

    def add_reviewers(self, repo_root: Path, number: int, reviewers: list[str]) -> None:
        fields: list[str] = []
        for reviewer in reviewers:
            if "/" in reviewer:
                fields.extend(["-f", f"team_reviewers[]={reviewer.split('/', 1)[1]}"])
            else:
                fields.extend(["-f", f"reviewers[]={reviewer}"])
        if not fields:
            return
        self._execute(
            [
                "gh",
                "api",
                "-X",
                "POST",
                f"repos/{self._repo_slug}/pulls/{number}/requested_reviewers",
                *fields,
            ],
            f"request reviews on #{number}",
            repo_root,
        )

    def add_assignees(self, repo_root: Path, number: int, assignees: list[str]) -> None:
        fields: list[str] = []
        for assignee in assignees:
            fields.extend(["-f", f"assignees[]={assignee}"])
        if not fields:
            return
        self._execute(
            [
                "gh",
                "api",
                "-X",
                "POST",
                f"repos/{self._repo_slug}/issues/{number}/assignees",
                *fields,
            ],
            f"assign #{number}",
            repo_root,
        )

    def list_comments(self, repo_root: Path, number: int) -> list[PullRequestComment]:
        stdout = self._execute(
            [
                "gh",
                "api",
                "--paginate",
                f"repos/{self._repo_slug}/issues/{number}/comments",
                "--jq",
                COMMENT_JQ,
            ],
            f"list comments on #{number}",
            repo_root,
        )
        return parse_comment_lines(stdout)

    def create_comment(self, repo_root: Path, number: int, body: str) -> None:
        self._execute(
            [
                "gh",
                "api",
                "-X",
                "POST",
                f"repos/{self._repo_slug}/issues/{number}/comments",
                "-f",
                f"body={body}",
            ],
            f"comment on #{number}",
            repo_root,
        )

    def update_comment(self, repo_root: Path, comment_id: int, body: str) -> None:
        self._execute(
            [
                "gh",
                "api",
                "-X",
                "PATCH",
                f"repos/{self._repo_slug}/issues/comments/{comment_id}",
                "-f",
                f"body={body}",
            ],
            f"edit comment {comment_id}",
            repo_root,
        )

    def list_branches(self, repo_root: Path) -> dict[str, str]:
        stdout = self._execute(
            self._git(repo_root, ["ls-remote", "--heads", self._remote_name]),
            f"list branches on {self._remote_name}",
            repo_root,
        )
        return parse_ls_remote_output(stdout)

    def get_branch_head(self, repo_root: Path, branch: str) -> str | None:
        stdout = self._execute(
            self._git(
                repo_root, ["ls-remote", "--heads", self._remote_name, f"refs/heads/{branch}"]
            ),
            f"read {branch} on {self._remote_name}",
            repo_root,
        )
        return parse_ls_remote_output(stdout).get(branch)

    def create_branch(self, repo_root: Path, branch: str, sha: str) -> None:
        # An empty lease fails the push if the branch already exists.
        self._execute(
            self._git(
                repo_root,
                [
                    "push",
                    "--atomic",
                    "--no-verify",
                    f"--force-with-lease=refs/heads/{branch}:",
                    "--",
                    self._remote_name,
                    f"{sha}:refs/heads/{branch}",
                ],
            ),
            f"push new branch {branch}",
            repo_root,
        )

    def update_branch(self, repo_root: Path, branch: str, sha: str, *, expected_sha: str) -> None:
        self._execute(
            self._git(
                repo_root,
                [
                    "push",
                    "--atomic",
                    "--no-verify",
                    f"--force-with-lease=refs/heads/{branch}:{expected_sha}",
                    "--",
                    self._remote_name,
                    f"{sha}:refs/heads/{branch}",
                ],
            ),
            f"push {branch}",
            repo_root,
        )

    def get_current_user(self, repo_root: Path) -> str:
        stdout = self._execute(
            ["gh", "api", "user", "--jq", ".login"], "read the authenticated GitHub user", repo_root
        )
        return stdout.strip()
