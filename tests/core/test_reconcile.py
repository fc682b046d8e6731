"""Tests for pushing stacks to chains of pull requests."""

from dataclasses import replace

import pytest

from jj_stack.core.errors import (
    ConflictedChange,
    MultipleParents,
    RemoteAuthError,
    RemoteConflict,
    RemoteNotFound,
    TransientRemoteError,
    UnresolvableBase,
)
from jj_stack.core.github.fake import FakeGitHub
from jj_stack.core.github.types import PullRequestComment
from jj_stack.core.jj.fake import FakeCommit, FakeJujutsu
from jj_stack.core.overview import OVERVIEW_MARKER
from jj_stack.core.reconcile import PushOptions, push_stacks
from tests.test_utils.builders import (
    TRUNK_COMMIT,
    TRUNK_FILES,
    associated,
    build_context,
    build_jj,
    linear_changes,
    pull_request,
    trunk,
)


def _two_new_changes() -> FakeJujutsu:
    return build_jj(
        linear_changes(
            ("a", "Add parser\n\nParses widgets.\n", {"parser.py": "parse()\n"}),
            ("b", "Use parser\n", {"main.py": "parse()\n"}),
        ),
        working_copy="b",
    )


def test_first_push_creates_chained_pull_requests() -> None:
    jj = _two_new_changes()
    github = FakeGitHub()
    ctx = build_context(jj, github)

    report = push_stacks(ctx, ["b"], PushOptions())

    assert [o.kind for o in report.outcomes] == ["created", "created"]
    first, second = github.created_prs
    assert (first.number, first.base_branch) == (1, "main")
    assert first.head_branch == "spr/octocat/add-parser"
    assert first.title == "Add parser"
    assert first.body == "Parses widgets."
    assert second.base_branch == "spr/octocat/add-parser"
    assert second.head_branch == "spr/octocat/use-parser"
    assert jj.fetched_remotes == ["origin"]


def test_first_push_records_association_on_each_change() -> None:
    jj = _two_new_changes()
    github = FakeGitHub()
    ctx = build_context(jj, github)

    push_stacks(ctx, ["b"], PushOptions())

    pushed_a = github.branches["spr/octocat/add-parser"]
    description = jj.get_change(ctx.repo_root, "a").description
    assert "Pull Request: https://github.com/acme/widgets/pull/1" in description
    assert f"Last Commit: {pushed_a}" in description
    assert jj.commit(pushed_a).parents == (TRUNK_COMMIT,)
    assert jj.files_of(pushed_a) == jj.files_of("a")
    # b's branch builds on a's pushed commit
    assert jj.commit(github.branches["spr/octocat/use-parser"]).parents == (pushed_a,)


def test_second_push_without_changes_is_a_no_op() -> None:
    jj = _two_new_changes()
    github = FakeGitHub()
    ctx = build_context(jj, github)
    push_stacks(ctx, ["b"], PushOptions())
    writes = github.write_count

    report = push_stacks(ctx, ["b"], PushOptions())

    assert [o.kind for o in report.outcomes] == ["unchanged", "unchanged"]
    assert github.write_count == writes


def test_reviewers_are_requested_on_create() -> None:
    jj = build_jj(linear_changes(("a", "Add parser\n\nReviewers: alice, bob\n", {"p": "1"})))
    github = FakeGitHub()

    push_stacks(build_context(jj, github), ["a"], PushOptions())

    assert github.added_reviewers == [(1, ["alice", "bob"])]
    assert github.created_prs[0].body == ""


def _amended(
    last_commit: str, *, tip: str | None = None, extra: list[FakeCommit] | None = None
) -> tuple[FakeJujutsu, FakeGitHub]:
    old = FakeCommit(
        commit_id="old1", parents=(TRUNK_COMMIT,), files={**TRUNK_FILES, "parser.py": "v1\n"}
    )
    change = linear_changes(("a", associated("Add parser", 1, last_commit), {"parser.py": "v2\n"}))
    jj = build_jj([old, *(extra or []), *change])
    branch_tip = tip or "old1"
    github = FakeGitHub(
        pull_requests=[pull_request(1, "spr/octocat/add-parser", head_sha=branch_tip)],
        branches={"spr/octocat/add-parser": branch_tip},
    )
    return jj, github


def test_amended_change_is_pushed_as_a_new_commit_on_the_old_head() -> None:
    jj, github = _amended("old1")
    ctx = build_context(jj, github)

    report = push_stacks(ctx, ["a"], PushOptions())

    assert [o.kind for o in report.outcomes] == ["updated"]
    ((branch, new_head, expected),) = github.updated_branches
    assert (branch, expected) == ("spr/octocat/add-parser", "old1")
    assert jj.commit(new_head).parents == ("old1",)
    assert jj.commit(new_head).description == "Update Add parser\n"
    assert jj.files_of(new_head)["parser.py"] == "v2\n"
    assert f"Last Commit: {new_head}" in jj.get_change(ctx.repo_root, "a").description


def test_update_uses_custom_message() -> None:
    jj, github = _amended("old1")

    push_stacks(build_context(jj, github), ["a"], PushOptions(message="Address review"))

    new_head = github.branches["spr/octocat/add-parser"]
    assert jj.commit(new_head).description == "Address review\n"


def test_rebased_change_gets_trunk_as_second_parent() -> None:
    trunk1 = FakeCommit(
        commit_id="trunk1",
        parents=(TRUNK_COMMIT,),
        files={**TRUNK_FILES, "other.py": "x\n"},
        change_id="yyyyyyyy",
        immutable=True,
    )
    old = FakeCommit(
        commit_id="old1", parents=(TRUNK_COMMIT,), files={**TRUNK_FILES, "parser.py": "v1\n"}
    )
    change = linear_changes(
        ("a", associated("Add parser", 1, "old1"), {"parser.py": "v1\n"}), parent=trunk1
    )
    jj = build_jj([trunk1, old, *change], trunk_commit="trunk1")
    github = FakeGitHub(
        pull_requests=[pull_request(1, "spr/octocat/add-parser", head_sha="old1")],
        branches={"spr/octocat/add-parser": "old1"},
    )

    report = push_stacks(build_context(jj, github), ["a"], PushOptions())

    assert report.outcomes[0].kind == "updated"
    assert report.outcomes[0].message == "rebased onto main"
    new_head = github.branches["spr/octocat/add-parser"]
    assert jj.commit(new_head).parents == ("old1", "trunk1")


def test_someone_else_pushed_to_the_branch() -> None:
    theirs = FakeCommit(
        commit_id="theirs", parents=("old1",), files={**TRUNK_FILES, "parser.py": "v1b\n"}
    )
    jj, github = _amended("old1", tip="theirs", extra=[theirs])

    report = push_stacks(build_context(jj, github), ["a"], PushOptions())

    (outcome,) = report.outcomes
    assert outcome.kind == "failed"
    assert isinstance(outcome.error, RemoteConflict)
    assert "--force" in outcome.message
    assert github.write_count == 0


def test_force_keeps_their_commit_in_history() -> None:
    theirs = FakeCommit(
        commit_id="theirs", parents=("old1",), files={**TRUNK_FILES, "parser.py": "v1b\n"}
    )
    jj, github = _amended("old1", tip="theirs", extra=[theirs])

    report = push_stacks(build_context(jj, github), ["a"], PushOptions(force=True))

    assert report.outcomes[0].kind == "updated"
    assert "forced over theirs" in report.outcomes[0].message
    new_head = github.branches["spr/octocat/add-parser"]
    assert jj.commit(new_head).parents == ("theirs",)
    assert github.updated_branches[0][2] == "theirs"


def test_pull_request_base_is_corrected() -> None:
    pa = FakeCommit(commit_id="pa", parents=(TRUNK_COMMIT,), files={**TRUNK_FILES, "a": "1"})
    pb = FakeCommit(commit_id="pb", parents=("pa",), files={**TRUNK_FILES, "a": "1", "b": "1"})
    changes = linear_changes(
        ("a", associated("A", 1, "pa"), {"a": "1"}),
        ("b", associated("B", 2, "pb"), {"b": "1"}),
    )
    jj = build_jj([pa, pb, *changes])
    github = FakeGitHub(
        pull_requests=[
            pull_request(1, "spr/octocat/a", head_sha="pa"),
            pull_request(2, "spr/octocat/b", head_sha="pb", base_branch="main"),
        ],
        branches={"spr/octocat/a": "pa", "spr/octocat/b": "pb"},
    )

    report = push_stacks(build_context(jj, github), ["b"], PushOptions())

    assert [o.kind for o in report.outcomes] == ["unchanged", "updated"]
    assert github.updated_prs == [(2, {"base_branch": "spr/octocat/a"})]
    assert github.updated_branches == []


def test_merged_pull_request_fails_the_element() -> None:
    old = FakeCommit(commit_id="old1", parents=(TRUNK_COMMIT,), files={**TRUNK_FILES, "p": "1"})
    jj = build_jj([old, *linear_changes(("a", associated("A", 1, "old1"), {"p": "2"}))])
    github = FakeGitHub(
        pull_requests=[pull_request(1, "spr/octocat/a", head_sha="old1", state="MERGED")],
        branches={"spr/octocat/a": "old1"},
    )

    report = push_stacks(build_context(jj, github), ["a"], PushOptions())

    assert report.outcomes[0].kind == "failed"
    assert "jj-stack sync" in report.outcomes[0].message


def test_empty_change_fails() -> None:
    jj = build_jj(linear_changes(("a", "Nothing here\n", {})))

    report = push_stacks(build_context(jj, FakeGitHub()), ["a"], PushOptions())

    assert report.outcomes[0].kind == "failed"
    assert "empty" in report.outcomes[0].message


def test_failure_skips_descendants() -> None:
    jj = _two_new_changes()
    github = FakeGitHub(
        failures={"create_branch": [RemoteConflict("Branch exists (stale info)")]}
    )

    report = push_stacks(build_context(jj, github), ["b"], PushOptions())

    assert [(o.change_id, o.kind) for o in report.outcomes] == [("a", "failed"), ("b", "skipped")]
    assert github.created_prs == []


def test_undescribed_change_below_the_stack() -> None:
    jj = build_jj(
        linear_changes(
            ("x", "", {"x": "1"}),
            ("a", "A\n", {"a": "1"}),
        )
    )

    report = push_stacks(build_context(jj, FakeGitHub()), ["a"], PushOptions())

    assert [(o.change_id, o.kind) for o in report.outcomes] == [("x", "skipped"), ("a", "failed")]
    assert isinstance(report.outcomes[1].error, UnresolvableBase)


def test_auth_failure_aborts_the_run() -> None:
    jj = _two_new_changes()
    github = FakeGitHub(failures={"create_pull_request": [RemoteAuthError("HTTP 401")]})

    with pytest.raises(RemoteAuthError):
        push_stacks(build_context(jj, github), ["b"], PushOptions())


def test_merge_in_stack_aborts_before_any_remote_write() -> None:
    left = linear_changes(("l", "L\n", {"l": "1"}))
    right = linear_changes(("r", "R\n", {"r": "1"}))
    merge = FakeCommit(
        commit_id="c-m",
        parents=("c-l", "c-r"),
        files={**trunk().files, "l": "1", "r": "1"},
        description="Merge\n",
        change_id="m",
    )
    jj = build_jj([*left, *right, merge])
    github = FakeGitHub()

    with pytest.raises(MultipleParents):
        push_stacks(build_context(jj, github), ["l", "m"], PushOptions())
    assert github.write_count == 0


def test_dry_run_writes_nothing() -> None:
    jj = _two_new_changes()
    github = FakeGitHub()

    report = push_stacks(build_context(jj, github, dry_run=True), ["b"], PushOptions())

    assert [o.kind for o in report.outcomes] == ["created", "created"]
    assert github.write_count == 0
    assert jj.created_commits == []
    assert jj.described == []


def test_three_changes_chain_their_bases() -> None:
    jj = build_jj(
        linear_changes(
            ("a", "Add parser\n", {"parser.py": "1\n"}),
            ("b", "Use parser\n", {"main.py": "1\n"}),
            ("c", "Document parser\n", {"README.md": "docs\n"}),
        ),
        working_copy="c",
    )
    github = FakeGitHub()

    report = push_stacks(build_context(jj, github), ["c"], PushOptions())

    assert [o.kind for o in report.outcomes] == ["created", "created", "created"]
    first, second, third = github.created_prs
    assert first.base_branch == "main"
    assert second.base_branch == first.head_branch
    assert third.base_branch == second.head_branch
    assert jj.files_of(github.branches[third.head_branch]) == jj.files_of("c")


def test_reviewer_failure_keeps_the_new_pull_request_linked() -> None:
    jj = build_jj(
        linear_changes(
            ("a", "Add parser\n\nReviewers: ghost\n", {"parser.py": "1\n"}),
            ("b", "Use parser\n", {"main.py": "1\n"}),
        )
    )
    github = FakeGitHub(failures={"add_reviewers": [RemoteNotFound("no such user ghost")]})
    ctx = build_context(jj, github)

    first = push_stacks(ctx, ["b"], PushOptions())

    assert [(o.change_id, o.kind, o.pr_number) for o in first.outcomes] == [
        ("a", "failed", 1),
        ("b", "created", 2),
    ]
    assert "no such user ghost" in first.outcomes[0].message
    description = jj.get_change(ctx.repo_root, "a").description
    assert "Pull Request: https://github.com/acme/widgets/pull/1" in description
    assert github.created_prs[1].base_branch == "spr/octocat/add-parser"

    second = push_stacks(ctx, ["b"], PushOptions())

    assert [o.kind for o in second.outcomes] == ["unchanged", "unchanged"]
    assert [pr.number for pr in github.created_prs] == [1, 2]


def test_base_update_failure_still_records_the_pushed_commit() -> None:
    old = FakeCommit(
        commit_id="old1", parents=(TRUNK_COMMIT,), files={**TRUNK_FILES, "parser.py": "v1\n"}
    )
    jj = build_jj(
        [old, *linear_changes(("a", associated("Add parser", 1, "old1"), {"parser.py": "v2\n"}))]
    )
    github = FakeGitHub(
        pull_requests=[
            pull_request(1, "spr/octocat/add-parser", head_sha="old1", base_branch="release")
        ],
        branches={"spr/octocat/add-parser": "old1"},
        failures={"update_pull_request": [TransientRemoteError("HTTP 502")]},
    )
    ctx = build_context(jj, github)

    first = push_stacks(ctx, ["a"], PushOptions())

    assert [o.kind for o in first.outcomes] == ["failed"]
    pushed = github.branches["spr/octocat/add-parser"]
    assert f"Last Commit: {pushed}" in jj.get_change(ctx.repo_root, "a").description

    second = push_stacks(ctx, ["a"], PushOptions())

    assert [(o.kind, o.message) for o in second.outcomes] == [("updated", "base changed to main")]
    assert github.branches["spr/octocat/add-parser"] == pushed
    assert github.pull_requests[1].base_branch == "main"


def test_conflicted_change_is_refused_before_any_remote_call() -> None:
    (a,) = linear_changes(("a", associated("Add parser", 1, "old1"), {"parser.py": "<<<<\n"}))
    jj = build_jj([replace(a, conflicted=True)])
    github = FakeGitHub(failures={"list_branches": [RemoteAuthError("must not be reached")]})

    with pytest.raises(ConflictedChange, match="Change a has unresolved conflicts"):
        push_stacks(build_context(jj, github), ["a"], PushOptions())
    assert github.write_count == 0
    assert jj.created_commits == []


def test_assignees_are_set_on_create() -> None:
    jj = build_jj(linear_changes(("a", "Add parser\n\nAssignees: ann, bo, ann\n", {"p": "1"})))
    github = FakeGitHub()

    push_stacks(build_context(jj, github), ["a"], PushOptions())

    assert github.added_assignees == [(1, ["ann", "bo"])]
    assert github.pull_requests[1].assignees == ("ann", "bo")


def test_every_pull_request_gets_a_stack_overview() -> None:
    jj = _two_new_changes()
    github = FakeGitHub()
    ctx = build_context(jj, github)

    push_stacks(ctx, ["b"], PushOptions())

    comments = github.comments
    assert sorted(comments) == [1, 2]
    (first,) = comments[1]
    assert first.body.startswith(OVERVIEW_MARKER)
    assert "stack of 2 changes" in first.body
    assert "- **#1 Add parser** (this pull request)\n- #2 Use parser" in first.body
    assert "- #1 Add parser\n- **#2 Use parser** (this pull request)" in comments[2][0].body

    push_stacks(ctx, ["b"], PushOptions())

    assert [len(items) for items in github.comments.values()] == [1, 1]
    assert github.updated_comments == []


def test_overview_is_edited_in_place_when_the_stack_grows() -> None:
    pa = FakeCommit(commit_id="pa", parents=(TRUNK_COMMIT,), files={**TRUNK_FILES, "a": "1"})
    changes = linear_changes(
        ("a", associated("A", 1, "pa"), {"a": "1"}),
        ("b", "B\n", {"b": "1"}),
    )
    jj = build_jj([pa, *changes])
    unrelated = PullRequestComment(id=5, body="Nice work", author="alice")
    stale = PullRequestComment(id=6, body=f"{OVERVIEW_MARKER}\nold overview\n", author="octocat")
    github = FakeGitHub(
        pull_requests=[pull_request(1, "spr/octocat/a", head_sha="pa")],
        branches={"spr/octocat/a": "pa"},
        comments={1: [unrelated, stale]},
    )

    push_stacks(build_context(jj, github), ["b"], PushOptions())

    ((comment_id, body),) = github.updated_comments
    assert comment_id == 6
    assert "- **#1 A** (this pull request)\n- #2 B" in body
    assert github.comments[1][0] == unrelated
    assert len(github.comments[2]) == 1


def test_overview_failure_is_reported_against_its_pull_request() -> None:
    jj = build_jj(linear_changes(("a", "Add parser\n", {"p": "1"})))
    github = FakeGitHub(failures={"create_comment": [TransientRemoteError("HTTP 502")]})

    report = push_stacks(build_context(jj, github), ["a"], PushOptions())

    assert [(o.kind, o.pr_number) for o in report.outcomes] == [("created", 1), ("failed", 1)]
    assert "stack overview comment" in report.outcomes[1].message
