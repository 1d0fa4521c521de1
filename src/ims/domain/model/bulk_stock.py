"""BulkStockRecord aggregate — quantity counter for untracked catalog entries."""

from __future__ import annotations

from dataclasses import dataclass

from ims.domain.exceptions import InsufficientStockError, NoChangeError, ValidationError
from ims.domain.model.history import BulkStockChange


@dataclass
class BulkStockRecord:
    """One counter per catalog entry with tracking mode ``none``.

    Invariants:
    - ``quantity`` is never negative
    - the quantity only moves through ``adjust()``, which returns the
      audit record for the move
    """

    catalog_entry_id: int
    quantity: int = 0

    def adjust(self, delta: int, actor: str, note: str | None = None) -> BulkStockChange:
        """Apply a signed delta.

        Raises InsufficientStockError, leaving the quantity untouched, if the
        result would be negative.
        """
        if not isinstance(delta, int) or isinstance(delta, bool):
            raise ValidationError(
                f"Quantity change must be an integer, got {type(delta).__name__}",
                field="delta",
            )
        if delta == 0:
            raise NoChangeError(
                "Quantity change must not be zero", catalog_entry_id=self.catalog_entry_id
            )
        new_quantity = self.quantity + delta
        if new_quantity < 0:
            raise InsufficientStockError(
                f"Insufficient stock (have {self.quantity}, change {delta})",
                catalog_entry_id=self.catalog_entry_id,
                quantity=self.quantity,
                delta=delta,
            )
        change = BulkStockChange(
            catalog_entry_id=self.catalog_entry_id,
            old_quantity=self.quantity,
            new_quantity=new_quantity,
            change_quantity=delta,
            changed_by=actor,
            note=note,
        )
        self.quantity = new_quantity
        return change
