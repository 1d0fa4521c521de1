"""Abstract repository for BulkStockRecord."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.bulk_stock import BulkStockRecord


class BulkStockRepository(ABC):

    @abstractmethod
    def get(self, catalog_entry_id: int, lock: bool = False) -> BulkStockRecord | None:
        """Return the counter for a catalog entry, or None if none exists yet."""

    @abstractmethod
    def list_all(self) -> list[BulkStockRecord]:
        """Return every bulk stock counter."""

    @abstractmethod
    def save(self, record: BulkStockRecord) -> None:
        """Insert or update the counter for its catalog entry."""
