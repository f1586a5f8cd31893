"""Configuration models for the storage engine and the queue processor.

``Settings`` reads ``FEED_STORE_``-prefixed environment variables and falls
back to the defaults below.  Only ``db_path`` has no usable default; the
storage engine rejects an empty path at construction.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

IN_MEMORY = ":memory:"
DEFAULT_QUEUE_NAME = "DP1_WRITE_QUEUE"


class StorageConfig(BaseModel):
    """Storage engine configuration.

    Attributes:
        db_path: Path to the SQLite database file, or ``":memory:"`` for an
                 in-memory database.
    """

    db_path: str = ""

    @property
    def in_memory(self) -> bool:
        return self.db_path == IN_MEMORY


class Settings(BaseSettings):
    """Process-wide settings for a single-process deployment.

    Precedence (highest to lowest):
    1. ``FEED_STORE_``-prefixed environment variables
    2. Values passed to the constructor
    3. Defaults defined below
    """

    model_config = SettingsConfigDict(env_prefix="FEED_STORE_")

    db_path: str = ""
    server_url: str = "http://localhost:8787"
    api_secret: str = ""
    poll_interval_ms: int = Field(default=1000, ge=1)
    queue_name: str = DEFAULT_QUEUE_NAME
    dispatch_timeout: float = 30.0
    log_level: str = "info"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Return sources in priority order: env > init (defaults)."""
        return (env_settings, init_settings)

    def storage_config(self) -> StorageConfig:
        return StorageConfig(db_path=self.db_path)
