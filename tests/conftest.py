# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from community_platform.db.session import build_session_factory, create_tables, drop_tables
from community_platform.models import CommunityRule, RecentCommunity
from community_platform.services import CommunityRuleService, RecentCommunityService

MEMBER_ID = "member-0001"
OTHER_MEMBER_ID = "member-0002"
COMMUNITY_ID = "community-0001"

RECENT_LIMIT = 5
RULES_LIMIT = 10


@pytest.fixture()
def engine(tmp_path: Path) -> Iterator[Engine]:
    # File-backed so that threads get independent connections.
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ranked.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    create_tables(engine)
    try:
        yield engine
    finally:
        drop_tables(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return build_session_factory(engine)


@pytest.fixture()
def recent_service(session_factory: sessionmaker[Session]) -> RecentCommunityService:
    """Recent communities bound to five entries, without retry delays."""
    return RecentCommunityService(session_factory, limit=RECENT_LIMIT, backoff_seconds=0)


@pytest.fixture()
def rules_service(session_factory: sessionmaker[Session]) -> CommunityRuleService:
    """Community rules bound to ten entries, without retry delays."""
    return CommunityRuleService(session_factory, limit=RULES_LIMIT, backoff_seconds=0)


@pytest.fixture()
def stored_recent_ranks(
    session_factory: sessionmaker[Session],
) -> Callable[[str], list[tuple[str, int]]]:
    """Read (community_id, recent_rank) pairs straight from the table."""

    def _read(member_id: str) -> list[tuple[str, int]]:
        with session_factory() as session:
            rows = session.execute(
                select(RecentCommunity.community_id, RecentCommunity.recent_rank)
                .where(RecentCommunity.member_id == member_id)
                .order_by(RecentCommunity.recent_rank)
            ).all()
        return [(row.community_id, row.recent_rank) for row in rows]

    return _read


@pytest.fixture()
def stored_rules(
    session_factory: sessionmaker[Session],
) -> Callable[[str], list[tuple[str, int, str]]]:
    """Read (id, rule_index, rule_text) triples straight from the table."""

    def _read(community_id: str) -> list[tuple[str, int, str]]:
        with session_factory() as session:
            rows = session.execute(
                select(CommunityRule.id, CommunityRule.rule_index, CommunityRule.rule_text)
                .where(CommunityRule.community_id == community_id)
                .order_by(CommunityRule.rule_index)
            ).all()
        return [(row.id, row.rule_index, row.rule_text) for row in rows]

    return _read
