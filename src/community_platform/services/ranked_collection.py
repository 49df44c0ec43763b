# src/community_platform/services/ranked_collection.py
"""Bounded, densely ranked per-owner collections.

The manager holds no state of its own. Every operation opens one transaction,
locks the owner, re-reads the owner's rows, plans the final ranks with
:mod:`community_platform.services.rank_plan` and writes the plan as a batch.
Whatever the operation, the owner's ranks are ``1..count`` with
``count <= bound`` whenever a transaction commits.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from community_platform.core.settings import settings
from community_platform.db.time import utcnow
from community_platform.models import RankedCollectionLock
from community_platform.repositories.ranked_item_repo import (
    CollectionConfig,
    CollectionPolicy,
    RankedItem,
    RankedItemRepository,
)
from community_platform.services.errors import (
    BoundExceededError,
    CollectionBusyError,
    ConflictRetry,
    InvalidRankError,
    RankedItemNotFoundError,
    UnsupportedOperationError,
)
from community_platform.services.rank_plan import (
    RankPlan,
    is_dense,
    plan_append,
    plan_move,
    plan_remove,
    plan_touch,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL serialization_failure and deadlock_detected.
_CONFLICT_SQLSTATES = frozenset({"40001", "40P01"})

RepositoryFactory = Callable[[Session, CollectionConfig], RankedItemRepository]


def is_serialization_conflict(exc: DBAPIError) -> bool:
    """Return True when a database error means "another writer got there first".

    Constraint violations are not conflicts; the only integrity race, two
    first writes creating the same owner sentinel, is handled where the
    sentinel is locked.
    """
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in _CONFLICT_SQLSTATES:
        return True
    return "database is locked" in str(orig).lower()


class _OwnerLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        # Holders plus waiters; the entry is dropped when this reaches zero.
        self.users = 0


class _OwnerLocks:
    """Process-local locks keyed by (collection, owner).

    An entry only exists while some thread holds or waits for it, so the
    registry stays as small as the number of owners being written right now.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str], _OwnerLock] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, collection: str, owner_id: str, timeout: float) -> Iterator[None]:
        key = (collection, owner_id)
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _OwnerLock()
            entry.users += 1
        try:
            if not entry.lock.acquire(timeout=timeout):
                raise CollectionBusyError(
                    f"{collection}: timed out waiting for owner {owner_id!r}"
                )
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            with self._guard:
                entry.users -= 1
                if not entry.users:
                    del self._locks[key]


_OWNER_LOCKS = _OwnerLocks()


def _require_id(name: str, value: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty identifier")


class RankedCollectionManager:
    """Runs ranked collection operations against an injected session factory.

    Same-owner writes are serialized by a process-local lock and by a
    ``SELECT ... FOR UPDATE`` on the owner's sentinel row. Serialization
    conflicts reported by the database replay the whole operation.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        config: CollectionConfig,
        *,
        repository_factory: RepositoryFactory = RankedItemRepository,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
        lock_timeout: float | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            session_factory: Produces one session per unit of work.
            config: Collection model, columns, bound and policy.
            repository_factory: Builds the persistence port for a session.
            max_attempts: Attempts before a conflict surfaces; defaults to settings.
            backoff_seconds: Base delay between attempts; defaults to settings.
            lock_timeout: Seconds to wait for the owner lock; defaults to settings.
        """
        self._session_factory = session_factory
        self.config = config
        self._repository_factory = repository_factory
        self._max_attempts = (
            max_attempts if max_attempts is not None else settings.rank_conflict_max_attempts
        )
        self._backoff_seconds = (
            backoff_seconds
            if backoff_seconds is not None
            else settings.rank_conflict_backoff_seconds
        )
        self._lock_timeout = (
            lock_timeout if lock_timeout is not None else settings.rank_lock_timeout_seconds
        )

    # -- writes ---------------------------------------------------------------

    def touch_or_insert(
        self,
        owner_id: str,
        item_id: str,
        now: datetime | None = None,
    ) -> RankedItem:
        """Put ``item_id`` at rank 1, inserting it and evicting the last rank if needed."""
        self._require_policy(CollectionPolicy.MOVE_TO_FRONT, "touch_or_insert")
        _require_id("owner_id", owner_id)
        _require_id("item_id", item_id)
        activity = self._activity_fields(now or utcnow())

        def work(repo: RankedItemRepository) -> RankedItem:
            rows = self._load(repo, owner_id)
            existing = next((row for row in rows if repo.item_of(row) == item_id), None)
            plan = plan_touch(
                [row.id for row in rows],
                existing.id if existing is not None else None,
                self.config.bound,
            )
            self._apply(repo, owner_id, rows, plan)
            if existing is not None:
                repo.update_fields(existing, **activity)
                return repo.snapshot(existing)
            created = repo.create_row(owner_id, plan.new_rank, item_id=item_id, **activity)
            return repo.snapshot(created)

        return self._run(owner_id, work, write=True)

    def append(self, owner_id: str, **payload: Any) -> RankedItem:
        """Create a row after the last one.

        Raises:
            BoundExceededError: The collection already holds ``bound`` rows.
            ValueError: A payload field is unknown or a required one is missing.
        """
        self._require_policy(CollectionPolicy.APPEND_ONLY, "append")
        _require_id("owner_id", owner_id)
        self._check_payload(payload)
        missing = [
            name for name in self.config.required_columns if payload.get(name) is None
        ]
        if missing:
            raise ValueError(f"{self.config.name}: missing payload fields {missing}")

        def work(repo: RankedItemRepository) -> RankedItem:
            rows = self._load(repo, owner_id)
            if len(rows) >= self.config.bound:
                raise BoundExceededError(self.config.name, owner_id, self.config.bound)
            plan = plan_append([row.id for row in rows])
            self._apply(repo, owner_id, rows, plan)
            created = repo.create_row(owner_id, plan.new_rank, **payload)
            return repo.snapshot(created)

        return self._run(owner_id, work, write=True)

    def remove(self, owner_id: str, item_id: str) -> list[RankedItem]:
        """Delete the owner's row for ``item_id`` and close the gap.

        Returns:
            The remaining rows in rank order.
        """
        _require_id("owner_id", owner_id)
        _require_id("item_id", item_id)

        def work(repo: RankedItemRepository) -> list[RankedItem]:
            rows = self._load(repo, owner_id)
            target = self._find(repo, rows, owner_id, item_id)
            return self._remove_row(repo, owner_id, rows, target)

        return self._run(owner_id, work, write=True)

    def remove_at(self, owner_id: str, rank: int) -> list[RankedItem]:
        """Delete the row at ``rank`` and close the gap."""
        _require_id("owner_id", owner_id)

        def work(repo: RankedItemRepository) -> list[RankedItem]:
            rows = self._load(repo, owner_id)
            target = next((row for row in rows if repo.rank_of(row) == rank), None)
            if target is None:
                raise RankedItemNotFoundError(self.config.name, owner_id, rank=rank)
            return self._remove_row(repo, owner_id, rows, target)

        return self._run(owner_id, work, write=True)

    def reorder(self, owner_id: str, item_id: str, new_rank: int) -> RankedItem:
        """Move ``item_id`` to ``new_rank``; rows in between shift by one.

        Raises:
            RankedItemNotFoundError: The owner has no row for ``item_id``.
            InvalidRankError: ``new_rank`` is outside ``[1, count]``.
        """
        _require_id("owner_id", owner_id)
        _require_id("item_id", item_id)

        def work(repo: RankedItemRepository) -> RankedItem:
            rows = self._load(repo, owner_id)
            target = self._find(repo, rows, owner_id, item_id)
            if not 1 <= new_rank <= len(rows):
                raise InvalidRankError(self.config.name, new_rank, len(rows))
            plan = plan_move([row.id for row in rows], target.id, new_rank)
            self._apply(repo, owner_id, rows, plan)
            return repo.snapshot(target)

        return self._run(owner_id, work, write=True)

    def update_payload(self, owner_id: str, item_id: str, **fields: Any) -> RankedItem:
        """Change payload columns of a row without moving it."""
        _require_id("owner_id", owner_id)
        _require_id("item_id", item_id)
        if not fields:
            raise ValueError("no payload fields to update")
        self._check_payload(fields)
        cleared = [
            name
            for name in self.config.required_columns
            if name in fields and fields[name] is None
        ]
        if cleared:
            raise ValueError(f"{self.config.name}: {cleared} cannot be cleared")

        def work(repo: RankedItemRepository) -> RankedItem:
            rows = repo.list_by_owner(owner_id)
            target = self._find(repo, rows, owner_id, item_id)
            repo.update_fields(target, **fields)
            return repo.snapshot(target)

        return self._run(owner_id, work, write=True)

    # -- reads ----------------------------------------------------------------

    def list_items(self, owner_id: str) -> list[RankedItem]:
        """Return the owner's whole collection in rank order."""
        _require_id("owner_id", owner_id)

        def work(repo: RankedItemRepository) -> list[RankedItem]:
            return [repo.snapshot(row) for row in repo.list_by_owner(owner_id)]

        return self._run(owner_id, work, write=False)

    def get_item(self, owner_id: str, item_id: str) -> RankedItem:
        """Return one row of the owner's collection."""
        _require_id("owner_id", owner_id)
        _require_id("item_id", item_id)

        def work(repo: RankedItemRepository) -> RankedItem:
            rows = repo.list_by_owner(owner_id)
            return repo.snapshot(self._find(repo, rows, owner_id, item_id))

        return self._run(owner_id, work, write=False)

    # -- internals ------------------------------------------------------------

    def _require_policy(self, policy: CollectionPolicy, operation: str) -> None:
        if self.config.policy is not policy:
            raise UnsupportedOperationError(
                f"{self.config.name}: {operation} requires the {policy.value} policy"
            )

    def _check_payload(self, fields: dict[str, Any]) -> None:
        unknown = set(fields) - set(self.config.payload_columns)
        if unknown:
            raise ValueError(
                f"{self.config.name}: unknown payload fields {sorted(unknown)}"
            )

    def _activity_fields(self, now: datetime) -> dict[str, Any]:
        if self.config.activity_column is None:
            return {}
        return {self.config.activity_column: now}

    def _load(self, repo: RankedItemRepository, owner_id: str) -> list[Any]:
        rows = repo.list_by_owner(owner_id)
        if not is_dense(repo.rank_of(row) for row in rows):
            logger.warning(
                "Repairing non-contiguous ranks in %s for owner %s",
                self.config.name,
                owner_id,
            )
        return rows

    def _find(
        self,
        repo: RankedItemRepository,
        rows: Sequence[Any],
        owner_id: str,
        item_id: str,
    ) -> Any:
        for row in rows:
            if repo.item_of(row) == item_id:
                return row
        raise RankedItemNotFoundError(self.config.name, owner_id, item_id=item_id)

    def _remove_row(
        self,
        repo: RankedItemRepository,
        owner_id: str,
        rows: Sequence[Any],
        target: Any,
    ) -> list[RankedItem]:
        plan = plan_remove([row.id for row in rows], target.id)
        self._apply(repo, owner_id, rows, plan)
        survivors = sorted(
            (row for row in rows if row.id in plan.ranks),
            key=repo.rank_of,
        )
        return [repo.snapshot(row) for row in survivors]

    def _apply(
        self,
        repo: RankedItemRepository,
        owner_id: str,
        rows: Sequence[Any],
        plan: RankPlan,
    ) -> None:
        by_id = {row.id: row for row in rows}
        if plan.deleted:
            logger.debug(
                "Deleting %d row(s) from %s for owner %s",
                len(plan.deleted),
                self.config.name,
                owner_id,
            )
            repo.delete_rows([by_id[row_id] for row_id in plan.deleted])
        changes = plan.changes({row.id: repo.rank_of(row) for row in rows})
        if changes:
            logger.debug(
                "Renumbering %d row(s) in %s for owner %s",
                len(changes),
                self.config.name,
                owner_id,
            )
            repo.update_ranks([(by_id[row_id], rank) for row_id, rank in changes.items()])

    def _run(
        self,
        owner_id: str,
        work: Callable[[RankedItemRepository], T],
        *,
        write: bool,
    ) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                if not write:
                    return self._transaction(owner_id, work, write=False)
                with _OWNER_LOCKS.hold(self.config.name, owner_id, self._lock_timeout):
                    return self._transaction(owner_id, work, write=True)
            except ConflictRetry as exc:
                if attempt >= self._max_attempts:
                    logger.error(
                        "Giving up on %s for owner %s after %d attempts: %s",
                        self.config.name,
                        owner_id,
                        attempt,
                        exc,
                    )
                    raise CollectionBusyError(
                        f"{self.config.name}: owner {owner_id!r} is busy, try again"
                    ) from exc
                delay = self._backoff_seconds * 2 ** (attempt - 1)
                logger.warning(
                    "Conflict on %s for owner %s (attempt %d/%d), retrying in %.3fs",
                    self.config.name,
                    owner_id,
                    attempt,
                    self._max_attempts,
                    delay,
                )
                if delay:
                    time.sleep(delay)

    def _lock_owner(self, repo: RankedItemRepository, owner_id: str) -> RankedCollectionLock:
        try:
            return repo.lock_owner(owner_id)
        except IntegrityError as exc:
            # Another process created the owner's sentinel first.
            raise ConflictRetry(str(exc)) from exc

    def _transaction(
        self,
        owner_id: str,
        work: Callable[[RankedItemRepository], T],
        *,
        write: bool,
    ) -> T:
        session = self._session_factory()
        try:
            with session.begin():
                repo = self._repository_factory(session, self.config)
                lock = self._lock_owner(repo, owner_id) if write else None
                result = work(repo)
                if lock is not None:
                    repo.bump_revision(lock)
            return result
        except DBAPIError as exc:
            if is_serialization_conflict(exc):
                raise ConflictRetry(str(exc)) from exc
            raise
        finally:
            session.close()
