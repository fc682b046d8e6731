"""Repository settings file (`.jj-stack.toml`).

Example:
  [github]
  owner = "acme"
  repo = "widgets"

  [stack]
  remote = "origin"
  default_branch = "main"
  branch_prefix = "spr/octocat/"
  remote_timeout = 60
  max_attempts = 3
"""

import tomllib
from dataclasses import dataclass
from pathlib import Path

import tomlkit

from jj_stack.core.errors import ConfigError


@dataclass(frozen=True)
class LoadedSettings:
    """In-memory representation of `.jj-stack.toml`. Unset keys are None."""

    owner: str | None = None
    repo: str | None = None
    remote_name: str | None = None
    default_branch: str | None = None
    branch_prefix: str | None = None
    remote_timeout: float | None = None
    max_attempts: int | None = None


def _optional_str(table: dict, key: str) -> str | None:
    value = table.get(key)
    return None if value is None else str(value)


def load_settings(path: Path) -> LoadedSettings:
    """Load settings if the file exists; otherwise return all-unset settings."""
    if not path.exists():
        return LoadedSettings()

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid settings file {path}: {e}"
        raise ConfigError(msg) from e

    github = data.get("github", {})
    stack = data.get("stack", {})
    timeout = stack.get("remote_timeout")
    attempts = stack.get("max_attempts")
    if attempts is not None and int(attempts) < 1:
        msg = f"Invalid settings file {path}: max_attempts must be at least 1"
        raise ConfigError(msg)

    return LoadedSettings(
        owner=_optional_str(github, "owner"),
        repo=_optional_str(github, "repo"),
        remote_name=_optional_str(stack, "remote"),
        default_branch=_optional_str(stack, "default_branch"),
        branch_prefix=_optional_str(stack, "branch_prefix"),
        remote_timeout=None if timeout is None else float(timeout),
        max_attempts=None if attempts is None else int(attempts),
    )


def save_settings(path: Path, settings: LoadedSettings) -> None:
    """Write settings, preserving formatting and comments of an existing file.

    Unset values leave existing keys untouched.
    """
    if path.exists():
        doc = tomlkit.parse(path.read_text(encoding="utf-8"))
    else:
        doc = tomlkit.document()

    sections = {
        "github": {"owner": settings.owner, "repo": settings.repo},
        "stack": {
            "remote": settings.remote_name,
            "default_branch": settings.default_branch,
            "branch_prefix": settings.branch_prefix,
            "remote_timeout": settings.remote_timeout,
            "max_attempts": settings.max_attempts,
        },
    }
    for section_name, values in sections.items():
        present = {k: v for k, v in values.items() if v is not None}
        if not present:
            continue
        if section_name not in doc:
            doc[section_name] = tomlkit.table()
        section = doc[section_name]
        for key, value in present.items():
            section[key] = value  # type: ignore[index]

    path.write_text(tomlkit.dumps(doc), encoding="utf-8")
