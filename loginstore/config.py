"""
Configuration settings for the user store.
Reads from environment variables (and ``.env`` when present).
"""
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Store settings loaded from environment variables"""

    # Database
    DATABASE_PATH: Path = Field(
        default=Path("userdata.db"),
        validation_alias="USERSTORE_DB_PATH",
    )
    JOURNAL_MODE: Literal["DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"] = Field(
        default="WAL", validation_alias="USERSTORE_JOURNAL_MODE"
    )
    BUSY_TIMEOUT: float = Field(default=5.0, validation_alias="USERSTORE_BUSY_TIMEOUT")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", validation_alias="USERSTORE_LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
