"""SQLAlchemy unit of work.

Each ``with uow:`` block gets its own session from the Database and a
fresh set of repositories bound to it.  The instance can be entered
again afterwards, which is how handlers reuse it across calls.
"""

from __future__ import annotations

from contextlib import ExitStack

from sqlalchemy.orm import Session

from ims.domain.repository.unit_of_work import UnitOfWork
from ims.infrastructure.persistence.database import Database
from ims.infrastructure.persistence.sql_repositories import (
    SqlAuditLedger,
    SqlBulkStockRepository,
    SqlCatalogRepository,
    SqlDeliveryRepository,
    SqlDeviceRepository,
)
from ims.logging_config import get_logger

logger = get_logger("persistence.unit_of_work")


class SqlAlchemyUnitOfWork(UnitOfWork):

    def __init__(self, database: Database) -> None:
        self._database = database
        self._stack: ExitStack | None = None
        self._session: Session | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._stack is not None:
            raise RuntimeError("Unit of work is already active")
        stack = ExitStack()
        session = stack.enter_context(self._database.session())
        session.begin()
        self._stack = stack
        self._session = session

        self.catalog = SqlCatalogRepository(session)
        self.devices = SqlDeviceRepository(session)
        self.bulk_stock = SqlBulkStockRepository(session)
        self.deliveries = SqlDeliveryRepository(session)
        self.ledger = SqlAuditLedger(session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            super().__exit__(exc_type, exc, tb)
        finally:
            stack, self._stack, self._session = self._stack, None, None
            if stack is not None:
                stack.close()

    def commit(self) -> None:
        try:
            self._active_session().commit()
        except Exception:
            logger.exception("transaction_commit_failed")
            self._active_session().rollback()
            raise
        logger.debug("transaction_committed")

    def rollback(self) -> None:
        self._active_session().rollback()
        logger.warning("transaction_rolled_back")

    def _active_session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Unit of work is not active")
        return self._session
