"""Data access helpers for bounded, ranked per-owner collections."""
from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from community_platform.db.session import Base
from community_platform.db.time import as_utc
from community_platform.models.collection_lock import RankedCollectionLock

__all__ = [
    "CollectionConfig",
    "CollectionPolicy",
    "RankedItem",
    "RankedItemRepository",
]


class CollectionPolicy(enum.Enum):
    """How a collection reacts to new items."""

    # Touching brings an item to rank 1; overflow evicts the last rank.
    MOVE_TO_FRONT = "move_to_front"
    # New items go last; a full collection rejects them.
    APPEND_ONLY = "append_only"


@dataclass(frozen=True)
class CollectionConfig:
    """Binds a ranked collection to the ORM model and columns that store it."""

    name: str
    model: type[Base]
    owner_column: str
    item_column: str
    rank_column: str
    bound: int
    policy: CollectionPolicy
    activity_column: str | None = None
    payload_columns: tuple[str, ...] = ()
    # Payload columns that must be given on append and never set to None.
    required_columns: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.bound < 1:
            raise ValueError(f"{self.name}: bound must be at least 1")
        stray = set(self.required_columns) - set(self.payload_columns)
        if stray:
            raise ValueError(f"{self.name}: required columns {sorted(stray)} are not payload")


@dataclass(frozen=True)
class RankedItem:
    """Detached snapshot of one row, safe to use after the session closes."""

    id: str
    owner_id: str
    item_id: str
    rank: int
    last_activity_at: datetime | None = None
    payload: Mapping[str, Any] = field(default_factory=dict)


class RankedItemRepository:
    """Thin wrapper around database access for one ranked collection.

    One repository lives for exactly one unit of work; the caller owns the
    session and its transaction.
    """

    def __init__(self, session: Session, config: CollectionConfig) -> None:
        """Initialize the repository with a SQLAlchemy session and collection config."""
        self.session = session
        self.config = config
        self._owner_col = getattr(config.model, config.owner_column)
        self._rank_col = getattr(config.model, config.rank_column)

    def lock_owner(self, owner_id: str) -> RankedCollectionLock:
        """Lock the owner's sentinel row, creating it on the first write.

        Two first writes racing for the same owner collide on the sentinel's
        primary key; the loser's flush raises ``IntegrityError`` and the
        caller replays the operation.
        """
        stmt = (
            select(RankedCollectionLock)
            .where(
                RankedCollectionLock.collection == self.config.name,
                RankedCollectionLock.owner_id == owner_id,
            )
            .with_for_update()
        )
        lock = self.session.execute(stmt).scalar_one_or_none()
        if lock is None:
            lock = RankedCollectionLock(
                collection=self.config.name,
                owner_id=owner_id,
                revision=0,
            )
            self.session.add(lock)
            self.session.flush()
        return lock

    def bump_revision(self, lock: RankedCollectionLock) -> None:
        """Record a committed write against the owner."""
        lock.revision += 1
        self.session.flush()

    def list_by_owner(self, owner_id: str) -> list[Any]:
        """Return the owner's rows by ascending rank."""
        model = self.config.model
        result = self.session.execute(
            select(model)
            .where(self._owner_col == owner_id)
            .order_by(self._rank_col, model.id)
        )
        return list(result.scalars())

    def rank_of(self, row: Any) -> int:
        """Return the stored rank of a row."""
        return getattr(row, self.config.rank_column)

    def item_of(self, row: Any) -> str:
        """Return the item identifier a row references."""
        return getattr(row, self.config.item_column)

    def create_row(
        self,
        owner_id: str,
        rank: int,
        *,
        item_id: str | None = None,
        **fields: Any,
    ) -> Any:
        """Insert a new row and return the persisted ORM instance.

        Args:
            owner_id: Collection owner.
            rank: Final rank of the new row.
            item_id: Referenced item; left to the model default when None.
            **fields: Activity and payload columns.
        """
        values: dict[str, Any] = {
            self.config.owner_column: owner_id,
            self.config.rank_column: rank,
            **fields,
        }
        if item_id is not None:
            values[self.config.item_column] = item_id
        row = self.config.model(**values)
        self.session.add(row)
        self.session.flush()
        return row

    def update_ranks(self, assignments: Sequence[tuple[Any, int]]) -> None:
        """Write new ranks for several rows as one batch.

        Ranks go through a negative value first so the per-owner unique
        constraint never sees two rows holding the same rank, whatever order
        the database applies the statements in.
        """
        if not assignments:
            return
        rank_column = self.config.rank_column
        for row, rank in assignments:
            setattr(row, rank_column, -rank)
        self.session.flush()
        for row, rank in assignments:
            setattr(row, rank_column, rank)
        self.session.flush()

    def update_fields(self, row: Any, **fields: Any) -> None:
        """Apply non-rank column updates to a row."""
        for key, value in fields.items():
            setattr(row, key, value)
        self.session.flush()

    def delete_rows(self, rows: Sequence[Any]) -> None:
        """Delete rows and flush so their ranks are free for reuse."""
        if not rows:
            return
        for row in rows:
            self.session.delete(row)
        self.session.flush()

    def snapshot(self, row: Any) -> RankedItem:
        """Copy a row into a :class:`RankedItem` with timestamps in UTC."""
        config = self.config
        activity = getattr(row, config.activity_column) if config.activity_column else None
        payload = {}
        for name in config.payload_columns:
            value = getattr(row, name)
            payload[name] = as_utc(value) if isinstance(value, datetime) else value
        return RankedItem(
            id=row.id,
            owner_id=getattr(row, config.owner_column),
            item_id=self.item_of(row),
            rank=self.rank_of(row),
            last_activity_at=as_utc(activity),
            payload=payload,
        )
