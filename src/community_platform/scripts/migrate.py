# src/community_platform/scripts/migrate.py
"""Upgrade the configured database to the latest schema revision."""
from __future__ import annotations

import argparse
import os

from alembic import command
from alembic.config import Config

from community_platform.core.settings import settings

MIGRATIONS_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations")
)


def build_config(database_url: str | None = None) -> Config:
    """Return an Alembic config pointed at the project's migrations."""
    cfg = Config(os.path.join(MIGRATIONS_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", MIGRATIONS_DIR)
    cfg.set_main_option("sqlalchemy.url", database_url or settings.database_url_sync)
    return cfg


def run_upgrade(revision: str = "head", database_url: str | None = None) -> None:
    """Apply migrations up to ``revision``."""
    command.upgrade(build_config(database_url), revision)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("revision", nargs="?", default="head")
    parser.add_argument("--database-url", default=None)
    args = parser.parse_args()
    run_upgrade(args.revision, args.database_url)


if __name__ == "__main__":
    main()
