"""Domain service: Bulk Stock Ledger.

The only sanctioned way to change the quantity of an untracked catalog
entry.  Manual adjustments and delivery receipt both go through
``adjust()``, so every quantity move is mirrored by exactly one
BulkStockChange in the audit ledger.

The service does not open a transaction itself; it runs inside the
caller's unit of work so a delivery line and its stock increase commit
or fail together.
"""

from __future__ import annotations

from ims.domain.model.bulk_stock import BulkStockRecord
from ims.domain.model.history import BulkStockChange
from ims.domain.repository.audit_ledger import AuditLedger
from ims.domain.repository.bulk_stock_repository import BulkStockRepository


class BulkStockLedger:

    def __init__(self, bulk_stock_repo: BulkStockRepository, ledger: AuditLedger) -> None:
        self._bulk_stock_repo = bulk_stock_repo
        self._ledger = ledger

    def quantity_of(self, catalog_entry_id: int) -> int:
        record = self._bulk_stock_repo.get(catalog_entry_id)
        return record.quantity if record is not None else 0

    def adjust(
        self,
        catalog_entry_id: int,
        delta: int,
        actor: str,
        note: str | None = None,
    ) -> BulkStockChange:
        """Apply *delta* to the counter, creating it at zero if needed.

        Validation happens on the record before anything is written, so a
        rejected adjustment leaves both the counter and the ledger as they
        were.
        """
        record = self._bulk_stock_repo.get(catalog_entry_id, lock=True)
        if record is None:
            record = BulkStockRecord(catalog_entry_id=catalog_entry_id, quantity=0)

        change = record.adjust(delta, actor=actor, note=note)

        self._bulk_stock_repo.save(record)
        return self._ledger.append(change)  # type: ignore[return-value]
