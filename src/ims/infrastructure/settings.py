"""Runtime settings, read from ``IMS_*`` environment variables or ``.env``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_database_url() -> str:
    return f"sqlite:///{(Path.cwd() / 'ims.sqlite').as_posix()}"


class Settings(BaseSettings):
    # Database
    database_url: str = Field(default_factory=_default_database_url)
    db_echo: bool = False

    # Logging
    log_level: str = "WARNING"
    log_json: bool = False

    # Operator recorded in the audit trail when the CLI is not told otherwise
    default_actor: str = Field(default="admin", min_length=1)

    model_config = SettingsConfigDict(
        env_prefix="IMS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
