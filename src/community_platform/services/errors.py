# src/community_platform/services/errors.py
"""Exceptions raised by ranked collection operations."""

from __future__ import annotations


class RankedCollectionError(RuntimeError):
    """Base exception for ranked collection failures.

    Adapters catch the subclasses below and map each to a response; nothing
    raises this class directly.
    """


class RankedItemNotFoundError(RankedCollectionError):
    """Raised when an owner has no row for the requested item or rank."""

    def __init__(self, collection: str, owner_id: str, *, item_id: str | None = None,
                 rank: int | None = None) -> None:
        self.collection = collection
        self.owner_id = owner_id
        self.item_id = item_id
        self.rank = rank
        target = f"item {item_id!r}" if item_id is not None else f"rank {rank}"
        super().__init__(f"{collection}: {target} not found for owner {owner_id!r}")


class BoundExceededError(RankedCollectionError):
    """Raised when appending to an append-only collection that is already full.

    The caller has to delete or reorder first; existing rows are untouched.
    """

    def __init__(self, collection: str, owner_id: str, bound: int) -> None:
        self.collection = collection
        self.owner_id = owner_id
        self.bound = bound
        super().__init__(f"{collection}: owner {owner_id!r} already holds {bound} items")


class InvalidRankError(RankedCollectionError):
    """Raised when a reorder target lies outside ``[1, count]``."""

    def __init__(self, collection: str, rank: int, count: int) -> None:
        self.collection = collection
        self.rank = rank
        self.count = count
        super().__init__(f"{collection}: rank {rank} is outside 1..{count}")


class UnsupportedOperationError(RankedCollectionError):
    """Raised when an operation does not apply to the collection's policy."""


class ConflictRetry(RankedCollectionError):
    """Signals a serialization conflict; the whole operation is replayed.

    Never leaves the manager: once attempts run out it is re-raised as
    :class:`CollectionBusyError`.
    """


class CollectionBusyError(RankedCollectionError):
    """Transient failure: the owner's collection stayed contended."""
