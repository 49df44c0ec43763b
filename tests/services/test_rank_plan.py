"""Tests for the pure rank planners."""

import pytest

from community_platform.services.rank_plan import (
    RankPlan,
    is_dense,
    plan_append,
    plan_move,
    plan_remove,
    plan_touch,
)


@pytest.mark.parametrize(
    ("ranks", "expected"),
    [
        ([], True),
        ([1], True),
        ([3, 1, 2], True),
        ([1, 3], False),
        ([1, 1, 2], False),
        ([0, 1], False),
    ],
)
def test_is_dense(ranks, expected) -> None:
    assert is_dense(ranks) is expected


def test_touch_existing_moves_item_to_front() -> None:
    plan = plan_touch(["c", "b", "a"], "a", bound=5)
    assert plan.ranks == {"a": 1, "c": 2, "b": 3}
    assert plan.deleted == ()
    assert plan.new_rank is None


def test_touch_front_item_changes_nothing() -> None:
    plan = plan_touch(["c", "b", "a"], "c", bound=5)
    assert plan.changes({"c": 1, "b": 2, "a": 3}) == {}


def test_touch_new_item_shifts_everything_back() -> None:
    plan = plan_touch(["b", "a"], None, bound=5)
    assert plan.ranks == {"b": 2, "a": 3}
    assert plan.new_rank == 1
    assert plan.deleted == ()


def test_touch_new_item_at_bound_evicts_last_rank() -> None:
    plan = plan_touch(["e", "d", "c", "b", "a"], None, bound=5)
    assert plan.deleted == ("a",)
    assert plan.ranks == {"e": 2, "d": 3, "c": 4, "b": 5}
    assert plan.new_rank == 1


def test_touch_trims_collection_stored_under_larger_bound() -> None:
    plan = plan_touch(["d", "c", "b", "a"], "b", bound=2)
    assert plan.ranks == {"b": 1, "d": 2}
    assert set(plan.deleted) == {"c", "a"}


def test_touch_rejects_unknown_row() -> None:
    with pytest.raises(ValueError):
        plan_touch(["a"], "zzz", bound=5)


def test_touch_rejects_zero_bound() -> None:
    with pytest.raises(ValueError):
        plan_touch([], None, bound=0)


def test_append_keeps_existing_ranks() -> None:
    plan = plan_append(["r1", "r2", "r3"])
    assert plan.new_rank == 4
    assert plan.changes({"r1": 1, "r2": 2, "r3": 3}) == {}


def test_remove_closes_gap() -> None:
    plan = plan_remove(["r1", "r2", "r3", "r4"], "r2")
    assert plan.deleted == ("r2",)
    assert plan.ranks == {"r1": 1, "r3": 2, "r4": 3}
    assert plan.changes({"r1": 1, "r2": 2, "r3": 3, "r4": 4}) == {"r3": 2, "r4": 3}


@pytest.mark.parametrize(
    ("row_id", "new_rank", "expected"),
    [
        ("r1", 3, ["r2", "r3", "r1", "r4"]),
        ("r4", 2, ["r1", "r4", "r2", "r3"]),
        ("r2", 2, ["r1", "r2", "r3", "r4"]),
        ("r4", 1, ["r4", "r1", "r2", "r3"]),
    ],
)
def test_move(row_id, new_rank, expected) -> None:
    plan = plan_move(["r1", "r2", "r3", "r4"], row_id, new_rank)
    assert sorted(plan.ranks, key=plan.ranks.get) == expected


def test_move_only_touches_rows_between_old_and_new_rank() -> None:
    current = {"r1": 1, "r2": 2, "r3": 3, "r4": 4, "r5": 5}
    plan = plan_move(list(current), "r2", 4)
    assert plan.changes(current) == {"r3": 2, "r4": 3, "r2": 4}


@pytest.mark.parametrize("new_rank", [0, 5, -1])
def test_move_rejects_out_of_range_rank(new_rank) -> None:
    with pytest.raises(ValueError):
        plan_move(["r1", "r2", "r3", "r4"], "r1", new_rank)


def test_plan_changes_reports_only_differences() -> None:
    plan = RankPlan(ranks={"a": 1, "b": 2})
    assert plan.changes({"a": 1, "b": 3}) == {"b": 2}
