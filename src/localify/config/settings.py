"""Application settings loaded from environment variables and .env files."""

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Database connection settings."""

    url: str = "sqlite+aiosqlite:///./localify-storage/localify.db"
    echo: bool = False
    pool_pre_ping: bool = True
    # PostgreSQL only - SQLite ignores pool settings
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 3600
    # Hey future me - auto_create runs create_all() at startup. Handy for a fresh
    # install and for tests. Production setups should run `alembic upgrade head` instead.
    auto_create: bool = True


class StorageSettings(BaseModel):
    """Filesystem locations."""

    media_path: Path = Path("./localify-media")
    storage_path: Path = Path("./localify-storage")


class StreamingSettings(BaseModel):
    """Byte streaming settings for audio and artwork."""

    chunk_size: int = Field(default=64 * 1024, ge=1024)
    # Artwork never changes once written, so browsers may keep it for a year
    image_cache_max_age: int = Field(default=31_536_000, ge=0)


class ApiSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = 3000
    # Bearer token for admin endpoints (POST /index). None disables the check.
    admin_token: str | None = None
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class LoggingSettings(BaseModel):
    """Logging output settings."""

    level: str = "INFO"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


class Settings(BaseSettings):
    """Root settings object.

    Every field can be overridden from the environment, e.g.
    LOCALIFY_STORAGE__MEDIA_PATH=/media or LOCALIFY_API__ADMIN_TOKEN=secret.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOCALIFY_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "localify"
    debug: bool = False
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    streaming: StreamingSettings = Field(default_factory=StreamingSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    log: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (cached after the first call)."""
    return Settings()
