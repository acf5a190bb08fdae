"""Application configuration using Pydantic Settings."""

from datetime import timedelta
from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Huddle Engine")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/huddle",
        description="PostgreSQL connection URL with asyncpg driver",
    )

    # For testing with SQLite
    test_database_url: str = Field(
        default="sqlite+aiosqlite:///:memory:",
        description="Test database URL",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(
        default=False,
        description="Render log lines as JSON instead of the console format",
    )

    # Messaging
    message_edit_window_minutes: int = Field(
        default=15,
        ge=0,
        description="How long after sending a text message its sender may edit it",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver scheme.

        Hosting providers usually supply a plain ``postgresql://`` URL.
        SQLAlchemy's async engine requires ``postgresql+asyncpg://``.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def message_edit_window(self) -> timedelta:
        """Edit window as a timedelta."""
        return timedelta(minutes=self.message_edit_window_minutes)

@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

settings = get_settings()
