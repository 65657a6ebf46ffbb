# okr_committees/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global application configuration.

    Values are loaded from environment variables (or a local `.env` file)
    at runtime.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = "OKR Committees"
    APP_ENV: str = Field("local", description="Environment name: local/test/dev/stage/prod")

    DB_URL: str = Field(
        "sqlite+aiosqlite:///./okr_committees.db",
        description="SQLAlchemy-compatible async database URL",
    )
    DB_ECHO: bool = Field(
        default=False,
        description="Echo SQL statements emitted by the engine.",
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR).",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Using LRU cache ensures settings are read and validated only once,
    while still being easily importable across the app.
    """
    return Settings()
