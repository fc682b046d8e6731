"""Application context with dependency injection."""

import logging
from dataclasses import dataclass
from pathlib import Path

from jj_stack.core.config import (
    DEFAULT_BRANCH,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_REMOTE_NAME,
    DEFAULT_REMOTE_TIMEOUT,
    StackConfig,
    default_branch_prefix,
    parse_github_remote_url,
    parse_repository_option,
)
from jj_stack.core.errors import ConfigError
from jj_stack.core.github.abc import GitHub
from jj_stack.core.github.dry_run import DryRunGitHub
from jj_stack.core.github.printing import PrintingGitHub
from jj_stack.core.github.real import RealGitHub
from jj_stack.core.jj.abc import Jujutsu
from jj_stack.core.jj.dry_run import DryRunJujutsu
from jj_stack.core.jj.printing import PrintingJujutsu
from jj_stack.core.jj.real import RealJujutsu
from jj_stack.core.repo_discovery import NoRepoSentinel, discover_repo_or_sentinel
from jj_stack.core.settings import LoadedSettings, load_settings
from jj_stack.core.time.abc import Time
from jj_stack.core.time.real import RealTime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StackContext:
    """Immutable context holding all dependencies for jj-stack operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.
    """

    jj: Jujutsu
    github: GitHub
    time: Time
    config: StackConfig
    repo_root: Path
    dry_run: bool

    @staticmethod
    def for_test(
        jj: Jujutsu | None = None,
        github: GitHub | None = None,
        time: Time | None = None,
        config: StackConfig | None = None,
        repo_root: Path | None = None,
        dry_run: bool = False,
    ) -> "StackContext":
        """Create test context with optional pre-configured integration classes.

        Args:
            jj: Optional Jujutsu implementation. If None, creates empty FakeJujutsu.
            github: Optional GitHub implementation. If None, creates empty FakeGitHub.
            time: Optional Time implementation. If None, creates FakeTime.
            config: Optional StackConfig. If None, uses acme/widgets with prefix spr/octocat/.
            repo_root: Optional repository root. If None, uses Path("/test/repo").
            dry_run: Whether to wrap the gateways in dry-run wrappers (default False).

        Returns:
            StackContext configured with provided values and test defaults
        """
        from jj_stack.core.github.fake import FakeGitHub
        from jj_stack.core.jj.fake import FakeJujutsu
        from jj_stack.core.time.fake import FakeTime

        resolved_jj: Jujutsu = jj if jj is not None else FakeJujutsu()
        resolved_github: GitHub = github if github is not None else FakeGitHub()
        if dry_run:
            resolved_jj = DryRunJujutsu(resolved_jj)
            resolved_github = DryRunGitHub(resolved_github)

        return StackContext(
            jj=resolved_jj,
            github=resolved_github,
            time=time if time is not None else FakeTime(),
            config=config
            if config is not None
            else StackConfig(owner="acme", repo="widgets", branch_prefix="spr/octocat/"),
            repo_root=repo_root if repo_root is not None else Path("/test/repo"),
            dry_run=dry_run,
        )


def resolve_repository(
    option: str | None, settings: LoadedSettings, remote_url: str | None
) -> tuple[str, str]:
    """Pick owner/repo from the CLI option, then the settings file, then the remote URL."""
    if option is not None:
        parsed = parse_repository_option(option)
        if parsed is None:
            msg = f"Invalid repository '{option}': expected OWNER/REPO"
            raise ConfigError(msg)
        return parsed

    if settings.owner is not None and settings.repo is not None:
        return settings.owner, settings.repo

    if remote_url is not None:
        parsed = parse_github_remote_url(remote_url)
        if parsed is not None:
            return parsed

    msg = (
        "Cannot determine the GitHub repository. Pass --github-repository OWNER/REPO "
        "or run `jj-stack init`."
    )
    raise ConfigError(msg)


def create_context(
    *,
    cwd: Path,
    dry_run: bool,
    repository: str | None = None,
    branch_prefix: str | None = None,
) -> StackContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire
    command execution.

    Args:
        cwd: Directory the command was started in
        dry_run: If True, wrap the gateways so writes are printed, not executed
        repository: OWNER/REPO override from the command line
        branch_prefix: Branch prefix override from the command line

    Raises:
        ConfigError: Outside a Jujutsu repository, or if the GitHub repository
            cannot be determined
    """
    repo = discover_repo_or_sentinel(cwd)
    if isinstance(repo, NoRepoSentinel):
        raise ConfigError(repo.message)

    settings = load_settings(repo.settings_path)
    remote_name = settings.remote_name or DEFAULT_REMOTE_NAME
    timeout = settings.remote_timeout or DEFAULT_REMOTE_TIMEOUT
    max_attempts = settings.max_attempts or DEFAULT_MAX_ATTEMPTS
    time = RealTime()

    jj: Jujutsu = RealJujutsu(remote_timeout=timeout)
    owner, repo_name = resolve_repository(
        repository, settings, jj.get_remote_url(repo.root, remote_name)
    )
    github: GitHub = RealGitHub(
        owner=owner,
        repo=repo_name,
        remote_name=remote_name,
        time=time,
        timeout=timeout,
        max_attempts=max_attempts,
    )

    prefix = branch_prefix or settings.branch_prefix
    if prefix is None:
        prefix = default_branch_prefix(github.get_current_user(repo.root))

    config = StackConfig(
        owner=owner,
        repo=repo_name,
        branch_prefix=prefix,
        remote_name=remote_name,
        default_branch=settings.default_branch or DEFAULT_BRANCH,
        remote_timeout=timeout,
        max_attempts=max_attempts,
    )
    logger.debug("Resolved config %s for %s", config, repo.root)

    if dry_run:
        jj = PrintingJujutsu(DryRunJujutsu(jj), dry_run=True)
        github = PrintingGitHub(DryRunGitHub(github), dry_run=True)

    return StackContext(
        jj=jj,
        github=github,
        time=time,
        config=config,
        repo_root=repo.root,
        dry_run=dry_run,
    )
