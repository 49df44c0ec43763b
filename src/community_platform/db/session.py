"""Database engine and session factory configuration."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from community_platform.core.settings import Settings, settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import community_platform.models  # noqa: E402,F401


def build_engine(config: Settings = settings) -> Engine:
    """Create an engine for the configured database."""
    return create_engine(
        config.effective_database_url,
        pool_pre_ping=True,
        echo=config.sql_debug,
    )


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return the session factory handed to the collection services.

    Snapshots are taken before commit, so ``expire_on_commit`` stays on.
    """
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine: Engine) -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)


def drop_tables(engine: Engine) -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=engine)
