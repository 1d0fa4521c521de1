"""Abstract audit ledger.

Append-only: there is no update or delete.  Read methods return the
trail of one identifier (or one catalog entry for bulk stock), newest
record first.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.history import (
    AuditRecord,
    BulkStockChange,
    ClearanceChange,
    IdentifierChange,
    ProductVersionChange,
    StatusChange,
)


class AuditLedger(ABC):

    @abstractmethod
    def append(self, record: AuditRecord) -> AuditRecord:
        """Store a record and return it with its ID assigned."""

    @abstractmethod
    def status_history(self, identifier_id: int) -> list[StatusChange]:
        ...

    @abstractmethod
    def identifier_history(self, identifier_id: int) -> list[IdentifierChange]:
        ...

    @abstractmethod
    def product_version_history(self, identifier_id: int) -> list[ProductVersionChange]:
        ...

    @abstractmethod
    def clearance_history(self, identifier_id: int) -> list[ClearanceChange]:
        ...

    @abstractmethod
    def bulk_stock_history(
        self, catalog_entry_id: int, limit: int | None = None
    ) -> list[BulkStockChange]:
        ...
