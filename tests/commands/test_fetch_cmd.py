"""Tests for the fetch command."""

from pathlib import Path

from click.testing import CliRunner

from jj_stack.cli.cli import cli
from jj_stack.core.github.fake import FakeGitHub
from jj_stack.core.jj.fake import FakeCommit
from tests.test_utils.builders import (
    TRUNK_COMMIT,
    TRUNK_FILES,
    associated,
    build_context,
    build_jj,
    linear_changes,
    pull_request,
)


def test_fetch_pull_code_merges_remote_commits() -> None:
    pushed = FakeCommit(commit_id="p1", parents=(TRUNK_COMMIT,), files={**TRUNK_FILES, "p": "1"})
    remote = FakeCommit(commit_id="p2", parents=("p1",), files={**TRUNK_FILES, "p": "1", "q": "2"})
    jj = build_jj(
        [pushed, remote, *linear_changes(("a", associated("Add p", 1, "p1"), {"p": "1"}))],
        working_copy="a",
    )
    github = FakeGitHub(
        pull_requests=[pull_request(1, "spr/octocat/add-p", title="Add p")],
        branches={"spr/octocat/add-p": "p2"},
    )

    result = CliRunner().invoke(cli, ["fetch", "--pull-code"], obj=build_context(jj, github))

    assert result.exit_code == 0, result.output
    assert "fetched: #1 Add p (code)" in result.output
    assert jj.files_of("a")["q"] == "2"


def test_fetch_without_pull_code_leaves_code_alone() -> None:
    jj = build_jj(
        linear_changes(("a", associated("Add p", 1, "p1"), {"p": "1"})), working_copy="a"
    )
    github = FakeGitHub(
        pull_requests=[pull_request(1, "spr/octocat/add-p", title="Add p, renamed")],
        branches={"spr/octocat/add-p": "elsewhere"},
    )

    result = CliRunner().invoke(cli, ["fetch"], obj=build_context(jj, github))

    assert result.exit_code == 0, result.output
    assert jj.merged == []
    assert jj.files_of("a")["p"] == "1"
    assert jj.get_change(Path("/test/repo"), "a").description.startswith("Add p, renamed\n")
