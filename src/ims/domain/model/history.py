"""Audit records — the immutable facts of the audit ledger.

Every state-changing operation produces exactly one of these (two for a
clearance disposition) and stores it in the same unit of work as the
mutation it describes.  Records are frozen: they are appended, read back,
and never updated or deleted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StatusChange:
    device_identifier_id: int
    old_status: str | None  # None when the unit enters stock via a delivery
    new_status: str
    changed_by: str
    note: str | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class IdentifierChange:
    device_identifier_id: int
    old_imei: str | None
    new_imei: str | None
    old_serial_number: str | None
    new_serial_number: str | None
    changed_by: str
    note: str | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class ProductVersionChange:
    device_identifier_id: int
    old_catalog_entry_id: int
    new_catalog_entry_id: int
    changed_by: str
    note: str | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class ClearanceChange:
    """Full before/after snapshot of the three clearance fields."""

    device_identifier_id: int
    old_is_clearance: bool
    new_is_clearance: bool
    old_clearance_price: Decimal | None
    new_clearance_price: Decimal | None
    old_clearance_reason: str | None
    new_clearance_reason: str | None
    changed_by: str
    note: str | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class BulkStockChange:
    catalog_entry_id: int
    old_quantity: int
    new_quantity: int
    change_quantity: int
    changed_by: str
    note: str | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=_now)


AuditRecord = (
    StatusChange | IdentifierChange | ProductVersionChange | ClearanceChange | BulkStockChange
)
