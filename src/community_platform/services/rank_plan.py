# src/community_platform/services/rank_plan.py
"""Rank arithmetic for bounded, densely ranked collections.

Each planner receives the owner's current row ids in rank order and returns
the final rank of every surviving row. Nothing here touches the database: the
manager validates, plans, and then hands the whole plan to the repository to
write as a single batch.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class RankPlan:
    """Final layout of a collection after one operation.

    Attributes:
        ranks: Final rank of every existing row that survives the operation.
        deleted: Row ids removed by the operation (explicit removal or eviction).
        new_rank: Rank for the row being created, if any.
    """

    ranks: dict[str, int]
    deleted: tuple[str, ...] = ()
    new_rank: int | None = None

    def changes(self, current: Mapping[str, int]) -> dict[str, int]:
        """Return only the ranks that differ from ``current``."""
        return {
            row_id: rank
            for row_id, rank in self.ranks.items()
            if current.get(row_id) != rank
        }


def is_dense(ranks: Iterable[int]) -> bool:
    """Return True when ``ranks`` is exactly ``1..len(ranks)``."""
    ordered = sorted(ranks)
    return ordered == list(range(1, len(ordered) + 1))


def _number(order: Iterable[str], start: int = 1) -> dict[str, int]:
    return {row_id: rank for rank, row_id in enumerate(order, start=start)}


def plan_touch(order: Sequence[str], row_id: str | None, bound: int) -> RankPlan:
    """Move ``row_id`` to the front, or make room at the front for a new row.

    With ``row_id`` set, every row ahead of it shifts back by one. With
    ``row_id`` None a row is about to be created at rank 1: rows from rank
    ``bound`` onward are evicted and the rest shift back by one. Either way
    nothing beyond ``bound`` survives, which also trims a collection stored
    under a larger bound.
    """
    if bound < 1:
        raise ValueError("bound must be at least 1")
    if row_id is not None:
        if row_id not in order:
            raise ValueError(f"row {row_id!r} is not part of the collection")
        moved = [row_id, *(other for other in order if other != row_id)]
        return RankPlan(ranks=_number(moved[:bound]), deleted=tuple(moved[bound:]))

    kept = order[: bound - 1]
    evicted = tuple(order[bound - 1 :])
    return RankPlan(ranks=_number(kept, start=2), deleted=evicted, new_rank=1)


def plan_append(order: Sequence[str]) -> RankPlan:
    """Place a new row after the last one; existing rows keep their ranks."""
    return RankPlan(ranks=_number(order), new_rank=len(order) + 1)


def plan_remove(order: Sequence[str], row_id: str) -> RankPlan:
    """Drop ``row_id`` and close the gap it leaves."""
    if row_id not in order:
        raise ValueError(f"row {row_id!r} is not part of the collection")
    rest = [other for other in order if other != row_id]
    return RankPlan(ranks=_number(rest), deleted=(row_id,))


def plan_move(order: Sequence[str], row_id: str, new_rank: int) -> RankPlan:
    """Move ``row_id`` to ``new_rank``, shifting the rows in between by one."""
    if row_id not in order:
        raise ValueError(f"row {row_id!r} is not part of the collection")
    if not 1 <= new_rank <= len(order):
        raise ValueError(f"rank {new_rank} is outside 1..{len(order)}")
    rest = [other for other in order if other != row_id]
    rest.insert(new_rank - 1, row_id)
    return RankPlan(ranks=_number(rest))
