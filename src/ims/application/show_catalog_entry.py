"""Application service: Show Catalog Entry use case (query)."""

from __future__ import annotations

from dataclasses import dataclass

from ims.application.dto import (
    CatalogEntryDTO,
    DeviceIdentifierDTO,
    catalog_entry_to_dto,
    device_to_dto,
)
from ims.domain.exceptions import EntityNotFoundError
from ims.domain.model.history import BulkStockChange
from ims.domain.repository.unit_of_work import UnitOfWork

RECENT_BULK_HISTORY = 10


@dataclass(frozen=True)
class CatalogEntryDetailDTO:
    entry: CatalogEntryDTO
    identifiers: list[DeviceIdentifierDTO]
    bulk_quantity: int | None  # None for tracked entries
    bulk_history: list[BulkStockChange]


class ShowCatalogEntryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, catalog_entry_id: int) -> CatalogEntryDetailDTO:
        with self._uow:
            entry = self._uow.catalog.get_by_id(catalog_entry_id)
            if entry is None:
                raise EntityNotFoundError(
                    f"Product version #{catalog_entry_id} not found",
                    catalog_entry_id=catalog_entry_id,
                )
            devices = self._uow.devices.list_by_catalog_entry(catalog_entry_id)

            bulk_quantity = None
            history: list[BulkStockChange] = []
            if not entry.tracking_mode.is_tracked:
                record = self._uow.bulk_stock.get(catalog_entry_id)
                bulk_quantity = record.quantity if record is not None else 0
                history = self._uow.ledger.bulk_stock_history(
                    catalog_entry_id, limit=RECENT_BULK_HISTORY
                )

        return CatalogEntryDetailDTO(
            entry=catalog_entry_to_dto(entry),
            identifiers=[device_to_dto(d, entry.name) for d in devices],
            bulk_quantity=bulk_quantity,
            bulk_history=history,
        )
