"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.  Money is passed out as
a formatted string, enums as their value.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from ims.domain.model.catalog import CatalogEntry
from ims.domain.model.delivery import Delivery
from ims.domain.model.device import DeviceIdentifier

# --- Inputs -------------------------------------------------------------------


@dataclass(frozen=True)
class TrackedUnitSeed:
    """Input: one physical unit on a delivery line (imei or serial)."""

    imei: str | None = None
    serial_number: str | None = None

    @property
    def is_blank(self) -> bool:
        return not (self.imei or "").strip() and not (self.serial_number or "").strip()


@dataclass(frozen=True)
class DamageDecision:
    """Input: the assessment of one received unit."""

    identifier_id: int
    damaged: bool
    description: str | None = None


# --- Outputs ------------------------------------------------------------------


@dataclass(frozen=True)
class CatalogEntryDTO:
    id: int
    name: str
    ean: str | None
    tracking_mode: str


@dataclass(frozen=True)
class StockLineDTO:
    """Output: one row of the stock overview."""

    catalog_entry_id: int
    name: str
    ean: str | None
    tracking_mode: str
    total_identifiers: int
    stock_count: int  # bulk quantity for untracked entries, in-stock units otherwise
    bulk_quantity: int


@dataclass(frozen=True)
class DeviceIdentifierDTO:
    id: int
    catalog_entry_id: int
    original_catalog_entry_id: int
    imei: str | None
    serial_number: str | None
    original_imei: str | None
    original_serial_number: str | None
    status: str
    delivery_id: int | None
    purchase_price: str | None
    is_clearance: bool
    clearance_price: str | None
    clearance_reason: str | None
    received_damaged: bool
    damage_description: str | None
    identifier_swapped: bool
    catalog_entry_swapped: bool
    catalog_entry_name: str | None = None


@dataclass(frozen=True)
class DeliveryDTO:
    id: int
    delivery_number: str
    delivery_date: date
    supplier: str | None
    status: str
    line_count: int
    total_quantity: int


@dataclass(frozen=True)
class DeliveryLineDTO:
    id: int
    catalog_entry_id: int
    catalog_entry_name: str
    tracking_mode: str
    quantity: int
    unit_price: str
    line_total: str
    identifiers: list[DeviceIdentifierDTO] = field(default_factory=list)


@dataclass(frozen=True)
class BookingResultDTO:
    """Output of booking: either booked, or waiting for damage assessment."""

    delivery_id: int
    delivery_number: str
    status: str
    assessment_required: bool
    pending_identifiers: list[DeviceIdentifierDTO] = field(default_factory=list)


@dataclass(frozen=True)
class DispositionOutcomeDTO:
    identifier_id: int
    old_status: str
    new_status: str
    is_clearance: bool


# --- Mapping ------------------------------------------------------------------


def catalog_entry_to_dto(entry: CatalogEntry) -> CatalogEntryDTO:
    return CatalogEntryDTO(
        id=entry.id,  # type: ignore[arg-type]
        name=entry.name,
        ean=entry.ean,
        tracking_mode=entry.tracking_mode.value,
    )


def device_to_dto(device: DeviceIdentifier, catalog_entry_name: str | None = None) -> DeviceIdentifierDTO:
    return DeviceIdentifierDTO(
        id=device.id,  # type: ignore[arg-type]
        catalog_entry_id=device.catalog_entry_id,
        original_catalog_entry_id=device.original_catalog_entry_id,
        imei=device.imei,
        serial_number=device.serial_number,
        original_imei=device.original_imei,
        original_serial_number=device.original_serial_number,
        status=device.status.value,
        delivery_id=device.delivery_id,
        purchase_price=str(device.purchase_price) if device.purchase_price else None,
        is_clearance=device.is_clearance,
        clearance_price=str(device.clearance_price) if device.clearance_price else None,
        clearance_reason=device.clearance_reason,
        received_damaged=device.received_damaged,
        damage_description=device.damage_description,
        identifier_swapped=device.is_identifier_swapped,
        catalog_entry_swapped=device.is_catalog_entry_swapped,
        catalog_entry_name=catalog_entry_name,
    )


def delivery_to_dto(delivery: Delivery) -> DeliveryDTO:
    return DeliveryDTO(
        id=delivery.id,  # type: ignore[arg-type]
        delivery_number=delivery.delivery_number,
        delivery_date=delivery.delivery_date,
        supplier=delivery.supplier,
        status=delivery.status.value,
        line_count=len(delivery.lines),
        total_quantity=delivery.total_quantity,
    )
