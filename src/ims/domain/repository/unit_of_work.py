"""Unit of work — the transaction boundary for every operation.

Handlers open one unit of work per operation::

    with self._uow:
        device = self._uow.devices.get_by_id(identifier_id, lock=True)
        change = device.change_status(...)
        self._uow.devices.save(device)
        self._uow.ledger.append(change)

Leaving the block normally commits every write made through the
repositories; leaving it with an exception rolls all of them back, so a
state change never exists without its audit record or the other way round.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.repository.audit_ledger import AuditLedger
from ims.domain.repository.bulk_stock_repository import BulkStockRepository
from ims.domain.repository.catalog_repository import CatalogRepository
from ims.domain.repository.delivery_repository import DeliveryRepository
from ims.domain.repository.device_repository import DeviceRepository


class UnitOfWork(ABC):

    catalog: CatalogRepository
    devices: DeviceRepository
    bulk_stock: BulkStockRepository
    deliveries: DeliveryRepository
    ledger: AuditLedger

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every write of this unit of work durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every write of this unit of work."""
