"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import lru_cache

from ims.infrastructure.persistence.database import Database
from ims.infrastructure.persistence.sql_unit_of_work import SqlAlchemyUnitOfWork
from ims.infrastructure.settings import Settings, get_settings
from ims.logging_config import configure_logging


def settings() -> Settings:
    return get_settings()


def init_logging() -> None:
    s = get_settings()
    configure_logging(level=s.log_level.upper(), json_format=s.log_json)


@lru_cache(maxsize=1)
def database() -> Database:
    s = get_settings()
    db = Database(s.database_url, echo=s.db_echo)
    db.create_tables()
    return db


def unit_of_work() -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(database())


def shutdown() -> None:
    """Dispose the engine and forget cached settings (tests, re-configuration)."""
    if database.cache_info().currsize:
        database().dispose()
    database.cache_clear()
    get_settings.cache_clear()
