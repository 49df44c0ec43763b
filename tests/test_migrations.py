"""The Alembic history builds the same tables the models declare."""

from sqlalchemy import create_engine, inspect

from community_platform.scripts.migrate import run_upgrade


def test_upgrade_creates_ranked_collection_tables(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("ALEMBIC_URL", raising=False)
    url = f"sqlite:///{tmp_path / 'migrated.db'}"

    run_upgrade(database_url=url)

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names())
        assert {"recent_community", "community_rule", "ranked_collection_lock"} <= tables

        unique_names = {
            constraint["name"]
            for constraint in inspector.get_unique_constraints("recent_community")
        }
        assert "uq_recent_community_member_rank" in unique_names
        assert inspector.get_pk_constraint("ranked_collection_lock")["constrained_columns"] == [
            "collection",
            "owner_id",
        ]
    finally:
        engine.dispose()
