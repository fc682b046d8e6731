"""Tests for adopting chains of pull requests as local changes."""

import pytest

from jj_stack.core.adopt import adopt_pull_request
from jj_stack.core.errors import CycleDetected, RemoteNotFound, UnresolvableBaseBranch
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

REMOTE_A = FakeCommit(commit_id="ra", parents=(TRUNK_COMMIT,), files={**TRUNK_FILES, "a": "1"})
REMOTE_B = FakeCommit(commit_id="rb", parents=("ra",), files={**TRUNK_FILES, "a": "1", "b": "1"})


def _github() -> FakeGitHub:
    return FakeGitHub(
        pull_requests=[
            pull_request(1, "spr/bob/a", head_sha="ra", title="Add a", reviewers=("carol",)),
            pull_request(
                2, "spr/bob/b", base_branch="spr/bob/a", head_sha="rb", title="Add b", body="B!"
            ),
        ],
        branches={"spr/bob/a": "ra", "spr/bob/b": "rb"},
    )


def test_adopts_the_whole_chain_base_first() -> None:
    jj = build_jj([REMOTE_A, REMOTE_B])
    ctx = build_context(jj, _github())

    report = adopt_pull_request(ctx, 2, checkout=True)

    assert [(o.kind, o.pr_number) for o in report.outcomes] == [("adopted", 1), ("adopted", 2)]
    assert jj.new_changes == ["new1", "new2"]
    assert jj.get_change(ctx.repo_root, "new1").parent_commit_ids == (TRUNK_COMMIT,)
    assert jj.get_change(ctx.repo_root, "new2").parent_ids == ("new1",)
    assert jj.files_of("new2") == dict(REMOTE_B.files)
    assert jj.edited == ["new2"]
    assert jj.get_change(ctx.repo_root, "new1").description == (
        "Add a\n\n"
        "Reviewers: carol\n"
        "Pull Request: https://github.com/acme/widgets/pull/1\n"
        "Last Commit: ra\n"
    )


def test_builds_on_an_already_adopted_pull_request() -> None:
    local = linear_changes(("a", associated("Add a", 1, "ra"), {"a": "1"}))
    jj = build_jj([REMOTE_A, REMOTE_B, *local])
    ctx = build_context(jj, _github())

    report = adopt_pull_request(ctx, 2, checkout=False)

    assert [o.pr_number for o in report.outcomes] == [2]
    assert jj.get_change(ctx.repo_root, "new1").parent_ids == ("a",)
    assert jj.edited == []


def test_adopting_twice_is_a_no_op() -> None:
    local = linear_changes(("a", associated("Add a", 1, "ra"), {"a": "1"}))
    jj = build_jj([REMOTE_A, *local])

    report = adopt_pull_request(build_context(jj, _github()), 1, checkout=True)

    assert [(o.change_id, o.kind, o.message) for o in report.outcomes] == [
        ("a", "skipped", "already adopted")
    ]
    assert jj.new_changes == []


def test_base_chain_cycle_is_detected() -> None:
    github = FakeGitHub(
        pull_requests=[
            pull_request(1, "x", base_branch="y"),
            pull_request(2, "y", base_branch="x"),
        ]
    )

    with pytest.raises(CycleDetected, match="#1 -> #2 -> #1"):
        adopt_pull_request(build_context(build_jj([]), github), 1, checkout=True)


def test_base_without_pull_request_is_unresolvable() -> None:
    github = FakeGitHub(pull_requests=[pull_request(1, "x", base_branch="feature")])

    with pytest.raises(UnresolvableBaseBranch) as exc_info:
        adopt_pull_request(build_context(build_jj([]), github), 1, checkout=True)

    assert exc_info.value.change_id is None
    assert exc_info.value.pr_number == 1
    assert "#1" in str(exc_info.value)
    assert "feature" in str(exc_info.value)


def test_head_must_be_available_locally() -> None:
    github = FakeGitHub(
        pull_requests=[pull_request(1, "spr/bob/a", head_sha="gone")],
        branches={"spr/bob/a": "gone"},
    )
    jj = build_jj([])

    with pytest.raises(RemoteNotFound):
        adopt_pull_request(build_context(jj, github), 1, checkout=True)
    assert jj.new_changes == []
