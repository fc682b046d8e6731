"""Tests for FakeJujutsu's rewrite semantics, which the engine tests rely on."""

from pathlib import Path

from jj_stack.core.jj.fake import FakeCommit, merge_files
from tests.test_utils.builders import TRUNK_COMMIT, TRUNK_FILES, build_jj, linear_changes

ROOT = Path("/test/repo")


def test_merge_files_takes_one_sided_edits() -> None:
    merged, conflicted = merge_files(
        {"a": "1", "b": "1"}, {"a": "2", "b": "1"}, {"a": "1", "b": "1", "c": "new"}
    )

    assert merged == {"a": "2", "b": "1", "c": "new"}
    assert not conflicted


def test_merge_files_drops_deleted_files() -> None:
    merged, conflicted = merge_files({"a": "1"}, {}, {"a": "1"})

    assert merged == {}
    assert not conflicted


def test_merge_files_marks_overlapping_edits() -> None:
    merged, conflicted = merge_files({"a": "1"}, {"a": "2"}, {"a": "3"})

    assert conflicted
    assert "<<<<<<<" in merged["a"]


def test_describe_rebases_descendants() -> None:
    jj = build_jj(linear_changes(("a", "A\n", {"a": "1"}), ("b", "B\n", {"b": "1"})))
    old_b = jj.get_change(ROOT, "b").commit_id

    jj.describe(ROOT, "a", "A amended\n")

    b = jj.get_change(ROOT, "b")
    assert b.commit_id != old_b
    assert b.parent_commit_ids == (jj.get_change(ROOT, "a").commit_id,)


def test_abandon_moves_children_to_grandparent() -> None:
    jj = build_jj(
        linear_changes(("a", "A\n", {"a": "1"}), ("b", "B\n", {"b": "1"})), working_copy="b"
    )

    jj.abandon(ROOT, "a")

    b = jj.get_change(ROOT, "b")
    assert b.parent_commit_ids == (TRUNK_COMMIT,)
    assert jj.files_of("b") == {**TRUNK_FILES, "b": "1"}


def test_abandoning_the_working_copy_creates_a_fresh_one() -> None:
    jj = build_jj(linear_changes(("a", "A\n", {"a": "1"})), working_copy="a")

    jj.abandon(ROOT, "a")

    assert jj.working_copy not in (None, "a")
    assert jj.files_of("@") == dict(TRUNK_FILES)


def test_resolve_heads_of_mutable_changes() -> None:
    base = linear_changes(("a", "A\n", {"a": "1"}), ("b", "B\n", {"b": "1"}))
    side = linear_changes(("s", "S\n", {"s": "1"}), parent=base[0])
    jj = build_jj([*base, *side])

    assert sorted(jj.resolve_heads(ROOT, "mutable()")) == ["b", "s"]


def test_create_commit_copies_the_tree() -> None:
    other = FakeCommit(commit_id="x", parents=(TRUNK_COMMIT,), files={"x": "1"})
    jj = build_jj([other])

    commit_id = jj.create_commit(ROOT, jj.tree_of(ROOT, "x"), [TRUNK_COMMIT], "msg\n")

    assert jj.files_of(commit_id) == {"x": "1"}
    assert jj.commit(commit_id).parents == (TRUNK_COMMIT,)
