"""Application settings and configuration.

This module defines all configuration options for the community platform
ranked collections. Settings are loaded from environment variables with
sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Community Platform", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Database configuration
    database_url: str = Field(
        default="sqlite:///./community_platform.db",
        alias="DATABASE_URL",
    )
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Ranked collection bounds
    recent_communities_limit: int = Field(default=5, ge=1, alias="RECENT_COMMUNITIES_LIMIT")
    community_rules_limit: int = Field(default=10, ge=1, alias="COMMUNITY_RULES_LIMIT")

    # Serialization conflict handling for same-owner writes
    rank_conflict_max_attempts: int = Field(
        default=3,
        ge=1,
        alias="RANK_CONFLICT_MAX_ATTEMPTS",
    )
    rank_conflict_backoff_seconds: float = Field(
        default=0.05,
        ge=0.0,
        alias="RANK_CONFLICT_BACKOFF_SECONDS",
    )
    rank_lock_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        alias="RANK_LOCK_TIMEOUT_SECONDS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.

        Returns:
            Database URL compatible with synchronous database drivers
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
