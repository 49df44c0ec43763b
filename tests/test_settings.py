"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from community_platform.core.settings import Settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in (
        "DATABASE_URL",
        "TEST_DATABASE_URL",
        "USE_TEST_DATABASE",
        "RECENT_COMMUNITIES_LIMIT",
        "COMMUNITY_RULES_LIMIT",
        "RANK_CONFLICT_MAX_ATTEMPTS",
        "RANK_CONFLICT_BACKOFF_SECONDS",
        "RANK_LOCK_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = Settings(_env_file=None)

    assert config.recent_communities_limit == 5
    assert config.community_rules_limit == 10
    assert config.rank_conflict_max_attempts == 3
    assert config.rank_conflict_backoff_seconds == pytest.approx(0.05)


def test_limits_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("RECENT_COMMUNITIES_LIMIT", "8")
    monkeypatch.setenv("COMMUNITY_RULES_LIMIT", "15")
    monkeypatch.setenv("RANK_CONFLICT_MAX_ATTEMPTS", "5")

    config = Settings(_env_file=None)

    assert config.recent_communities_limit == 8
    assert config.community_rules_limit == 15
    assert config.rank_conflict_max_attempts == 5


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("RECENT_COMMUNITIES_LIMIT", "0"),
        ("COMMUNITY_RULES_LIMIT", "-1"),
        ("RANK_CONFLICT_MAX_ATTEMPTS", "0"),
        ("RANK_LOCK_TIMEOUT_SECONDS", "0"),
    ],
)
def test_invalid_values_are_rejected(monkeypatch, name, value) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_effective_database_url_prefers_test_database(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://app@db/prod")
    monkeypatch.setenv("TEST_DATABASE_URL", "sqlite:///./test.db")

    assert Settings(_env_file=None).effective_database_url == "postgresql+psycopg://app@db/prod"

    monkeypatch.setenv("USE_TEST_DATABASE", "true")

    assert Settings(_env_file=None).effective_database_url == "sqlite:///./test.db"


def test_sync_url_rewrites_asyncpg(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://app@db/prod")

    assert Settings(_env_file=None).database_url_sync == "postgresql+psycopg://app@db/prod"
