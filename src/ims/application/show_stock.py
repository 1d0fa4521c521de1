"""Application service: Stock Overview and catalog listing (queries)."""

from __future__ import annotations

from ims.application.dto import StockLineDTO
from ims.domain.repository.unit_of_work import UnitOfWork


class ShowStockHandler:
    """One line per catalog entry.

    ``stock_count`` is the bulk quantity for untracked entries and the
    number of in-stock identifiers for tracked ones.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self) -> list[StockLineDTO]:
        with self._uow:
            entries = self._uow.catalog.list_all()
            counts = self._uow.devices.count_by_catalog_entry()
            bulk = {r.catalog_entry_id: r.quantity for r in self._uow.bulk_stock.list_all()}

        lines = []
        for entry in entries:
            total, in_stock = counts.get(entry.id, (0, 0))  # type: ignore[arg-type]
            bulk_quantity = bulk.get(entry.id, 0)  # type: ignore[arg-type]
            lines.append(
                StockLineDTO(
                    catalog_entry_id=entry.id,  # type: ignore[arg-type]
                    name=entry.name,
                    ean=entry.ean,
                    tracking_mode=entry.tracking_mode.value,
                    total_identifiers=total,
                    stock_count=in_stock if entry.tracking_mode.is_tracked else bulk_quantity,
                    bulk_quantity=bulk_quantity,
                )
            )
        return lines
