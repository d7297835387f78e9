"""
Centralized configuration management for Flashdeck.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_db_path() -> Path:
    """Returns the default path for the database file."""
    return Path.home() / ".flashdeck" / "flashdeck.db"


class Settings(BaseSettings):
    """
    Application settings, loaded from FLASHDECK_* environment variables or a
    .env file. Command-line flags take precedence over these values.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLASHDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # The database path can be overridden by the FLASHDECK_DB_PATH env var.
    db_path: Path = Field(default_factory=get_default_db_path)

    # Identity of the requesting user; every deck and card is scoped to it.
    user: Optional[str] = None

    log_level: str = "WARNING"

    recent_decks_limit: int = Field(default=5, ge=1)


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
