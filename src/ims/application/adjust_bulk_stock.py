"""Application service: Adjust Bulk Stock use case.

Manual correction of an untracked product version's quantity.  Goes
through the same BulkStockLedger as delivery receipt.
"""

from __future__ import annotations

from ims.domain.exceptions import EntityNotFoundError, TrackingModeMismatchError
from ims.domain.model.history import BulkStockChange
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.bulk_stock_ledger import BulkStockLedger
from ims.logging_config import get_logger

logger = get_logger("application.adjust_bulk_stock")


class AdjustBulkStockHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        catalog_entry_id: int,
        delta: int,
        actor: str,
        note: str | None = None,
    ) -> BulkStockChange:
        with self._uow:
            entry = self._uow.catalog.get_by_id(catalog_entry_id)
            if entry is None:
                raise EntityNotFoundError(
                    f"Product version #{catalog_entry_id} not found",
                    catalog_entry_id=catalog_entry_id,
                )
            if entry.tracking_mode.is_tracked:
                raise TrackingModeMismatchError(
                    f"Product version '{entry.name}' is tracked per unit; "
                    f"bulk stock does not apply",
                    catalog_entry_id=catalog_entry_id,
                    tracking_mode=entry.tracking_mode.value,
                )

            ledger = BulkStockLedger(self._uow.bulk_stock, self._uow.ledger)
            change = ledger.adjust(
                catalog_entry_id, delta, actor=actor, note=note or "Manual adjustment"
            )

        logger.info(
            "bulk_stock_adjusted",
            extra={
                "catalog_entry_id": catalog_entry_id,
                "old_quantity": change.old_quantity,
                "new_quantity": change.new_quantity,
                "actor": actor,
            },
        )
        return change
