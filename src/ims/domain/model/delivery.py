"""Delivery aggregate — a supplier shipment and its lines.

A delivery is created as a ``concept``, collects lines while stock is
registered against it, and is finally booked.  Lines are immutable once
added.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from ims.domain.exceptions import InvalidStateError, ValidationError
from ims.domain.model.value_objects import Money, Quantity

DELIVERY_NUMBER_PREFIX = "WS"


class DeliveryStatus(Enum):
    CONCEPT = "concept"
    BOOKED = "booked"
    PARTIALLY_BOOKED = "partially_booked"  # declared, never produced


def format_delivery_number(sequence: int) -> str:
    """``WS`` followed by the sequence, zero-padded to at least four digits."""
    if sequence <= 0:
        raise ValidationError("Delivery sequence must be positive", sequence=sequence)
    return f"{DELIVERY_NUMBER_PREFIX}{sequence:04d}"


@dataclass
class DeliveryLine:
    """One (delivery, catalog entry) pairing with the agreed unit price."""

    id: int | None
    catalog_entry_id: int
    quantity: Quantity
    unit_price: Money
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def line_total(self) -> Money:
        return Money(self.unit_price.amount * self.quantity.value, self.unit_price.currency)


@dataclass
class Delivery:
    """Aggregate root for deliveries.

    Use ``Delivery.create()`` for new deliveries; the plain ``__init__``
    lets the repository reconstitute persisted ones without re-validating.
    """

    id: int | None
    delivery_number: str
    delivery_date: date
    supplier: str | None = None
    status: DeliveryStatus = DeliveryStatus.CONCEPT
    lines: list[DeliveryLine] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @staticmethod
    def create(delivery_number: str, delivery_date: date, supplier: str | None = None) -> Delivery:
        if not isinstance(delivery_date, date):
            raise ValidationError("Delivery date is required", field="delivery_date")
        return Delivery(
            id=None,
            delivery_number=delivery_number,
            delivery_date=delivery_date,
            supplier=(supplier or "").strip() or None,
        )

    # --- Lines ----------------------------------------------------------------

    def add_line(self, catalog_entry_id: int, quantity: Quantity, unit_price: Money) -> DeliveryLine:
        self._require_concept("add lines to")
        if any(line.catalog_entry_id == catalog_entry_id for line in self.lines):
            raise ValidationError(
                f"Delivery {self.delivery_number} already has a line for "
                f"product version #{catalog_entry_id}",
                delivery_id=self.id,
                catalog_entry_id=catalog_entry_id,
            )
        line = DeliveryLine(
            id=None,
            catalog_entry_id=catalog_entry_id,
            quantity=quantity,
            unit_price=unit_price,
        )
        self.lines.append(line)
        return line

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity.value for line in self.lines)

    # --- State transitions ----------------------------------------------------

    def ensure_bookable(self) -> None:
        self._require_concept("book")

    def book(self) -> None:
        """Transition CONCEPT -> BOOKED."""
        self._require_concept("book")
        self.status = DeliveryStatus.BOOKED

    # --- Internal helpers -----------------------------------------------------

    def _require_concept(self, action: str) -> None:
        if self.status is not DeliveryStatus.CONCEPT:
            raise InvalidStateError(
                f"Cannot {action} delivery {self.delivery_number} "
                f"(current status is {self.status.value}, expected concept)",
                delivery_id=self.id,
                status=self.status.value,
            )
