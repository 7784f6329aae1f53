"""Application configuration using Pydantic settings."""

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BUFFER_SIZE = 1000


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str | None = Field(
        default=None, validation_alias=AliasChoices("database_url", "db_uri")
    )
    source_collection: str | None = None
    target_collection: str | None = None
    create_tables: bool = True

    # Replication state files
    checkpoint_path: str = Field(
        default=".pointer", validation_alias=AliasChoices("checkpoint_path", "pointer_store")
    )
    lock_path: str = Field(
        default=".lock", validation_alias=AliasChoices("lock_path", "lockfile")
    )

    # Sync settings
    buffer_size: int = DEFAULT_BUFFER_SIZE
    pursuer_interval_ms: int = 1000
    updater_backoff_ms: int = 3000
    initial_pointer_margin_seconds: int = 60

    # Customer generator
    generator_interval_ms: int = 200

    # Environment
    log_level: str = "INFO"
    debug: bool = False

    @field_validator("buffer_size", mode="before")
    @classmethod
    def _fallback_buffer_size(cls, value):
        """Fall back to the default window when the value is absent or not a positive number."""
        try:
            size = int(value)
        except (TypeError, ValueError):
            return DEFAULT_BUFFER_SIZE
        return size if size > 0 else DEFAULT_BUFFER_SIZE

    @property
    def is_configured(self) -> bool:
        """True when the store connection and both collections are set."""
        return bool(self.database_url and self.source_collection and self.target_collection)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
