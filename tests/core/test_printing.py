"""Tests for the command-echoing gateway wrappers used by --dry-run."""

from pathlib import Path

import pytest

from jj_stack.core.github.dry_run import DryRunGitHub
from jj_stack.core.github.fake import FakeGitHub
from jj_stack.core.github.printing import PrintingGitHub
from jj_stack.core.jj.dry_run import DryRunJujutsu
from jj_stack.core.jj.printing import PrintingJujutsu
from tests.test_utils.builders import build_jj, linear_changes

ROOT = Path("/test/repo")


def test_dry_run_github_writes_are_printed(capsys: pytest.CaptureFixture[str]) -> None:
    fake = FakeGitHub()
    github = PrintingGitHub(DryRunGitHub(fake), dry_run=True)

    github.create_branch(ROOT, "spr/octocat/a", "0123456789abcdef")

    err = capsys.readouterr().err
    assert "(dry run)" in err
    assert "git push 0123456789ab:refs/heads/spr/octocat/a" in err
    assert fake.branches == {}


def test_reads_are_not_printed(capsys: pytest.CaptureFixture[str]) -> None:
    jj = PrintingJujutsu(DryRunJujutsu(build_jj(linear_changes(("a", "A\n", {"a": "1"})))))

    jj.get_change(ROOT, "a")

    assert capsys.readouterr().err == ""


def test_script_mode_suppresses_output(capsys: pytest.CaptureFixture[str]) -> None:
    fake = build_jj(linear_changes(("a", "A\n", {"a": "1"})))
    jj = PrintingJujutsu(fake, script_mode=True)

    jj.describe(ROOT, "a", "B\n")

    assert capsys.readouterr().err == ""
    assert fake.described == [("a", "B\n")]


def test_overview_comment_is_printed_but_not_posted_in_dry_run(
    capsys: pytest.CaptureFixture[str],
) -> None:
    fake = FakeGitHub()
    github = PrintingGitHub(DryRunGitHub(fake), dry_run=True)

    github.create_comment(ROOT, 3, "overview")
    github.add_assignees(ROOT, 3, ["ann", "bo"])

    err = capsys.readouterr().err
    assert "gh pr comment 3 --body ..." in err
    assert "gh pr edit 3 --add-assignee ann,bo" in err
    assert fake.write_count == 0
