"""Tests for the push command."""

from click.testing import CliRunner

from jj_stack.cli.cli import cli
from jj_stack.core.github.fake import FakeGitHub
from jj_stack.core.jj.fake import FakeCommit
from tests.test_utils.builders import build_context, build_jj, linear_changes, trunk


def _stack() -> list[FakeCommit]:
    return linear_changes(
        ("a", "Add parser\n", {"parser.py": "parse()\n"}),
        ("b", "Use parser\n", {"main.py": "parse()\n"}),
    )


def test_push_reports_created_pull_requests() -> None:
    github = FakeGitHub()
    ctx = build_context(build_jj(_stack(), working_copy="b"), github)

    result = CliRunner().invoke(cli, ["push"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "created: #1 Add parser" in result.output
    assert "created: #2 Use parser" in result.output
    assert len(github.created_prs) == 2


def test_push_with_revset() -> None:
    github = FakeGitHub()
    ctx = build_context(build_jj(_stack(), working_copy="b"), github)

    result = CliRunner().invoke(cli, ["push", "-r", "a"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert [pr.title for pr in github.created_prs] == ["Add parser"]


def test_push_all_mutable_heads() -> None:
    side = linear_changes(("s", "Side quest\n", {"side.py": "1\n"}))
    github = FakeGitHub()
    ctx = build_context(build_jj([*_stack(), *side]), github)

    result = CliRunner().invoke(cli, ["push", "--all"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert sorted(pr.title for pr in github.created_prs) == [
        "Add parser",
        "Side quest",
        "Use parser",
    ]


def test_all_and_revset_are_exclusive() -> None:
    ctx = build_context(build_jj(_stack(), working_copy="b"))

    result = CliRunner().invoke(cli, ["push", "--all", "-r", "a"], obj=ctx)

    assert result.exit_code == 1
    assert "exclusive" in result.output


def test_failed_element_exits_non_zero() -> None:
    ctx = build_context(build_jj(linear_changes(("a", "Empty\n", {})), working_copy="a"))

    result = CliRunner().invoke(cli, ["push"], obj=ctx)

    assert result.exit_code == 1
    assert "failed: Empty" in result.output
    assert "1 stack element failed" in result.output


def test_nothing_to_push_is_an_error() -> None:
    ctx = build_context(build_jj([], working_copy=None))

    result = CliRunner().invoke(cli, ["push", "-r", "zzzzzzzz"], obj=ctx)

    assert result.exit_code == 1
    assert "No described, mutable changes found in 'zzzzzzzz'" in result.output


def test_merge_aborts_with_error() -> None:
    left = linear_changes(("l", "L\n", {"l": "1"}))
    right = linear_changes(("r", "R\n", {"r": "1"}))
    merge = FakeCommit(
        commit_id="c-m",
        parents=("c-l", "c-r"),
        files={**trunk().files, "l": "1", "r": "1"},
        description="Merge\n",
        change_id="m",
    )
    github = FakeGitHub()
    ctx = build_context(build_jj([*left, *right, merge], working_copy="m"), github)

    result = CliRunner().invoke(cli, ["push"], obj=ctx)

    assert result.exit_code == 1
    assert "Error: Change m has more than one parent" in result.output
    assert github.write_count == 0


def test_dry_run_context_writes_nothing() -> None:
    github = FakeGitHub()
    jj = build_jj(_stack(), working_copy="b")
    ctx = build_context(jj, github, dry_run=True)

    result = CliRunner().invoke(cli, ["push"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert github.write_count == 0
    assert jj.described == []


def test_conflicted_change_aborts_with_error() -> None:
    commit = FakeCommit(
        commit_id="c-a",
        parents=(trunk().commit_id,),
        files={**trunk().files, "parser.py": "<<<<<<<\n"},
        description="Add parser\n",
        change_id="a",
        conflicted=True,
    )
    github = FakeGitHub()
    ctx = build_context(build_jj([commit], working_copy="a"), github)

    result = CliRunner().invoke(cli, ["push"], obj=ctx)

    assert result.exit_code == 1
    assert "Error: Change a has unresolved conflicts" in result.output
    assert github.write_count == 0
