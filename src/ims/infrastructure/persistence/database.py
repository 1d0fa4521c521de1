"""Database handle: engine, session factory and store lifecycle.

One ``Database`` object is created at start-up and passed to everything
that needs a session.  It is never replaced; ``reopen()`` and ``reset()``
rebuild its engine in place.

Lifecycle operations are gated.  While one runs, no new session is handed
out, and the operation itself waits for every session already handed out
to finish.  A reset therefore never pulls the store away from a unit of
work halfway through its transaction.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ims.infrastructure.persistence.orm import Base
from ims.logging_config import get_logger

logger = get_logger("persistence.database")


def _is_sqlite_memory(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.rstrip("/") == "sqlite:")


class Database:
    """Owns the SQLAlchemy engine and hands out sessions."""

    def __init__(self, url: str, echo: bool = False) -> None:
        self._url = url
        self._echo = echo
        self._cond = threading.Condition()
        self._in_flight = 0
        self._closed_for_maintenance = False
        self._engine: Engine = self._build_engine()
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    @property
    def url(self) -> str:
        return self._url

    @property
    def engine(self) -> Engine:
        return self._engine

    # --- Sessions -------------------------------------------------------------

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a new session; blocks while a lifecycle operation runs.

        The caller owns the transaction.  The session is closed on exit.
        """
        with self._cond:
            while self._closed_for_maintenance:
                self._cond.wait()
            self._in_flight += 1
            factory = self._session_factory
        session = factory()
        try:
            yield session
        finally:
            session.close()
            with self._cond:
                self._in_flight -= 1
                self._cond.notify_all()

    # --- Schema ---------------------------------------------------------------

    def create_tables(self) -> None:
        Base.metadata.create_all(self._engine)
        logger.info("tables_created", extra={"url": self._safe_url()})

    def drop_tables(self) -> None:
        Base.metadata.drop_all(self._engine)
        logger.info("tables_dropped", extra={"url": self._safe_url()})

    # --- Lifecycle ------------------------------------------------------------

    def reopen(self) -> None:
        """Dispose the engine and build a fresh one on the same URL."""
        with self._maintenance("reopen"):
            self._rebuild()

    def reset(self) -> None:
        """Drop and recreate every table.  All stored data is lost."""
        with self._maintenance("reset"):
            self._rebuild()
            Base.metadata.drop_all(self._engine)
            Base.metadata.create_all(self._engine)

    def dispose(self) -> None:
        self._engine.dispose()
        logger.debug("engine_disposed", extra={"url": self._safe_url()})

    @contextmanager
    def _maintenance(self, operation: str) -> Iterator[None]:
        with self._cond:
            while self._closed_for_maintenance:
                self._cond.wait()
            self._closed_for_maintenance = True
            logger.info(
                "store_maintenance_started",
                extra={"operation": operation, "in_flight": self._in_flight},
            )
            while self._in_flight:
                self._cond.wait()
        try:
            yield
        except Exception:
            logger.exception("store_maintenance_failed", extra={"operation": operation})
            raise
        finally:
            with self._cond:
                self._closed_for_maintenance = False
                self._cond.notify_all()
        logger.info("store_maintenance_finished", extra={"operation": operation})

    def _rebuild(self) -> None:
        self._engine.dispose()
        self._engine = self._build_engine()
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    def _build_engine(self) -> Engine:
        kwargs: dict[str, Any] = {"echo": self._echo}
        if self._url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if _is_sqlite_memory(self._url):
                # One shared connection, otherwise every session sees an empty database.
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True

        engine = create_engine(self._url, **kwargs)
        if self._url.startswith("sqlite"):
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)

        logger.info(
            "engine_initialized",
            extra={"dialect": engine.dialect.name, "echo": self._echo},
        )
        return engine

    def _safe_url(self) -> str:
        return self._engine.url.render_as_string(hide_password=True)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
