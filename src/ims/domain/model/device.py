"""DeviceIdentifier aggregate — one physical, individually tracked unit.

The aggregate owns the unit's lifecycle: status, the current IMEI or
serial number, the catalog entry it is sold as, and its clearance
sub-state.  Every mutating method validates first, then mutates, and
returns the audit record describing the change.  Persisting the record
together with the aggregate is the application handler's job.

The ``original_*`` fields record provenance.  They are set once when the
unit is registered and no method ever touches them again.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from ims.domain.exceptions import (
    InvalidActionError,
    InvalidPriceError,
    InvalidStateError,
    InvalidStatusError,
    MissingRequiredFieldError,
    NoChangeError,
    TrackingModeMismatchError,
    ValidationError,
)
from ims.domain.model.catalog import CatalogEntry, TrackingMode
from ims.domain.model.history import (
    ClearanceChange,
    IdentifierChange,
    ProductVersionChange,
    StatusChange,
)
from ims.domain.model.value_objects import Money


class DeviceStatus(Enum):
    IN_STOCK = "in_stock"
    SOLD = "sold"
    DEFECTIVE = "defective"
    MISSING = "missing"
    RESERVED = "reserved"
    DEFECTIVE_AT_DELIVERY = "defective_at_delivery"
    RETURNED_TO_SUPPLIER = "returned_to_supplier"
    WRITTEN_OFF = "written_off"

    @property
    def is_terminal(self) -> bool:
        """No further business transitions are expected (not enforced)."""
        return self in TERMINAL_STATUSES

    @staticmethod
    def parse(value: str | DeviceStatus) -> DeviceStatus:
        if isinstance(value, DeviceStatus):
            return value
        try:
            return DeviceStatus(value)
        except ValueError as exc:
            raise InvalidStatusError(
                f"Unknown status: {value!r}", field="status", value=value
            ) from exc


TERMINAL_STATUSES = frozenset(
    {DeviceStatus.SOLD, DeviceStatus.RETURNED_TO_SUPPLIER, DeviceStatus.WRITTEN_OFF}
)


class DispositionAction(Enum):
    RETURN_TO_SUPPLIER = "return_to_supplier"
    MARK_AS_CLEARANCE = "mark_as_clearance"
    WRITE_OFF = "write_off"

    @staticmethod
    def parse(value: str | DispositionAction) -> DispositionAction:
        if isinstance(value, DispositionAction):
            return value
        try:
            return DispositionAction(value)
        except ValueError as exc:
            raise InvalidActionError(
                f"Unknown disposition action: {value!r}", field="action", value=value
            ) from exc


_DISPOSITION_TARGETS = {
    DispositionAction.RETURN_TO_SUPPLIER: DeviceStatus.RETURNED_TO_SUPPLIER,
    DispositionAction.MARK_AS_CLEARANCE: DeviceStatus.IN_STOCK,
    DispositionAction.WRITE_OFF: DeviceStatus.WRITTEN_OFF,
}


@dataclass
class DeviceIdentifier:
    """Aggregate root for a tracked unit.

    Invariants:
    - exactly one of ``imei`` / ``serial_number`` is set, the one matching
      the tracking mode of the catalog entry
    - clearance fields are only set while the flag is on
    - ``original_*`` fields never change after registration
    """

    id: int | None
    catalog_entry_id: int
    original_catalog_entry_id: int
    imei: str | None
    serial_number: str | None
    original_imei: str | None
    original_serial_number: str | None
    status: DeviceStatus = DeviceStatus.IN_STOCK
    delivery_id: int | None = None
    purchase_price: Money | None = None
    is_clearance: bool = False
    clearance_price: Money | None = None
    clearance_reason: str | None = None
    received_damaged: bool = False
    damage_description: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # --- Factory (used for NEW units only) ------------------------------------

    @staticmethod
    def register(
        catalog_entry: CatalogEntry,
        imei: str | None = None,
        serial_number: str | None = None,
        delivery_id: int | None = None,
        purchase_price: Money | None = None,
    ) -> DeviceIdentifier:
        """Register a newly received unit, in stock, with its provenance."""
        if not catalog_entry.tracking_mode.is_tracked:
            raise TrackingModeMismatchError(
                f"Product version '{catalog_entry.name}' is not individually tracked",
                catalog_entry_id=catalog_entry.id,
                tracking_mode=catalog_entry.tracking_mode.value,
            )
        imei, serial_number = _values_for_mode(
            catalog_entry.tracking_mode, _clean(imei), _clean(serial_number)
        )
        return DeviceIdentifier(
            id=None,
            catalog_entry_id=catalog_entry.id,  # type: ignore[arg-type]
            original_catalog_entry_id=catalog_entry.id,  # type: ignore[arg-type]
            imei=imei,
            serial_number=serial_number,
            original_imei=imei,
            original_serial_number=serial_number,
            delivery_id=delivery_id,
            purchase_price=purchase_price,
        )

    # --- Derived --------------------------------------------------------------

    @property
    def identifier_value(self) -> str | None:
        return self.imei or self.serial_number

    @property
    def is_identifier_swapped(self) -> bool:
        return (
            self.original_imei is not None and self.imei != self.original_imei
        ) or (
            self.original_serial_number is not None
            and self.serial_number != self.original_serial_number
        )

    @property
    def is_catalog_entry_swapped(self) -> bool:
        return self.catalog_entry_id != self.original_catalog_entry_id

    # --- State transitions ----------------------------------------------------

    def change_status(
        self, new_status: str | DeviceStatus, actor: str, note: str | None = None
    ) -> StatusChange:
        """Generic status correction: any status to any status."""
        target = DeviceStatus.parse(new_status)
        old = self.status
        self.status = target
        return StatusChange(
            device_identifier_id=self._require_id(),
            old_status=old.value,
            new_status=target.value,
            changed_by=actor,
            note=note,
        )

    def plan_retag(
        self,
        tracking_mode: TrackingMode,
        new_imei: str | None,
        new_serial_number: str | None,
    ) -> tuple[str | None, str | None]:
        """Validate a re-tag and return the resulting (imei, serial_number).

        Checks, in order: status is in_stock, something actually changes,
        the field required by the tracking mode is supplied, and no value
        is given for the field the mode does not use.  Uniqueness against
        other identifiers is the caller's check.
        """
        new_imei = _clean(new_imei)
        new_serial_number = _clean(new_serial_number)
        self._require_in_stock("change the identifier")

        imei_changed = new_imei is not None and new_imei != self.imei
        serial_changed = (
            new_serial_number is not None and new_serial_number != self.serial_number
        )
        if not imei_changed and not serial_changed:
            raise NoChangeError(
                "New values must differ from the current values",
                identifier_id=self.id,
            )
        return _values_for_mode(tracking_mode, new_imei, new_serial_number)

    def retag(
        self,
        tracking_mode: TrackingMode,
        new_imei: str | None,
        new_serial_number: str | None,
        actor: str,
        note: str | None = None,
    ) -> IdentifierChange:
        """Swap the current IMEI/serial, leaving the originals untouched."""
        imei, serial_number = self.plan_retag(tracking_mode, new_imei, new_serial_number)
        change = IdentifierChange(
            device_identifier_id=self._require_id(),
            old_imei=self.imei,
            new_imei=imei,
            old_serial_number=self.serial_number,
            new_serial_number=serial_number,
            changed_by=actor,
            note=note,
        )
        self.imei = imei
        self.serial_number = serial_number
        return change

    def ensure_can_move_to(self, catalog_entry_id: int) -> None:
        """Status and no-op checks that do not need the target entry loaded."""
        self._require_in_stock("change the product version")
        if catalog_entry_id == self.catalog_entry_id:
            raise NoChangeError(
                "New product version must differ from the current product version",
                catalog_entry_id=catalog_entry_id,
            )

    def change_catalog_entry(
        self,
        current: CatalogEntry,
        target: CatalogEntry,
        actor: str,
        note: str | None = None,
    ) -> ProductVersionChange:
        """Reassign the unit to another product version of the same tracking mode."""
        self.ensure_can_move_to(target.id)  # type: ignore[arg-type]
        if target.tracking_mode is not current.tracking_mode:
            raise TrackingModeMismatchError(
                "New product version must have the same tracking mode "
                "as the current product version",
                current_tracking_mode=current.tracking_mode.value,
                target_tracking_mode=target.tracking_mode.value,
                catalog_entry_id=target.id,
            )
        old_id = self.catalog_entry_id
        self.catalog_entry_id = target.id  # type: ignore[assignment]
        return ProductVersionChange(
            device_identifier_id=self._require_id(),
            old_catalog_entry_id=old_id,
            new_catalog_entry_id=target.id,  # type: ignore[arg-type]
            changed_by=actor,
            note=note,
        )

    def toggle_clearance(
        self,
        actor: str,
        clearance_price: Money | str | Decimal | None = None,
        clearance_reason: str | None = None,
        remove: bool = False,
        note: str | None = None,
    ) -> ClearanceChange:
        """Flip the clearance flag, or force it off with ``remove``.

        The price is only read when clearance is switched on.  Turning
        clearance off clears price and reason together.
        """
        self._require_in_stock("change clearance")
        turn_on = False if remove else not self.is_clearance
        if turn_on:
            price = (
                Money.positive(clearance_price, "clearance_price")
                if clearance_price is not None
                else None
            )
            return self._set_clearance(True, price, _clean(clearance_reason), actor, note)
        return self._set_clearance(False, None, None, actor, note)

    # --- Delivery intake ------------------------------------------------------

    def record_assessment(
        self,
        damaged: bool,
        description: str | None,
        actor: str,
    ) -> StatusChange:
        """Resolve the unit's intake status after damage assessment.

        The unit enters stock here, so the status record has no old status,
        even for damaged units that never pass through ``in_stock``.
        """
        description = _clean(description)
        if damaged:
            self.status = DeviceStatus.DEFECTIVE_AT_DELIVERY
            self.received_damaged = True
            self.damage_description = description
            self._clear_clearance()
            note = f"Damaged at delivery: {description}" if description else "Damaged at delivery"
        else:
            self.status = DeviceStatus.IN_STOCK
            self.received_damaged = False
            self.damage_description = None
            note = "received via delivery"
        return StatusChange(
            device_identifier_id=self._require_id(),
            old_status=None,
            new_status=self.status.value,
            changed_by=actor,
            note=note,
        )

    def dispose(
        self,
        action: DispositionAction,
        actor: str,
        clearance_price: Money | None = None,
        clearance_reason: str | None = None,
    ) -> tuple[StatusChange, ClearanceChange | None]:
        """Resolve a unit that arrived damaged."""
        if self.status is not DeviceStatus.DEFECTIVE_AT_DELIVERY:
            raise InvalidStateError(
                f"Only units that were defective at delivery can be disposed "
                f"(status is {self.status.value})",
                identifier_id=self.id,
                status=self.status.value,
            )
        target = _DISPOSITION_TARGETS[action]
        clearance_change = None
        if (
            action is DispositionAction.MARK_AS_CLEARANCE
            and clearance_price is not None
            and not clearance_price.is_positive
        ):
            raise InvalidPriceError(
                "Clearance price must be greater than zero",
                field="clearance_price",
                amount=clearance_price.amount,
            )

        # Clearance only exists in stock; a disposition always starts from none.
        self._clear_clearance()

        if action is DispositionAction.MARK_AS_CLEARANCE:
            reason = _clean(clearance_reason)
            note = f"Marked as clearance: {reason}" if reason else "Marked as clearance"
            clearance_change = self._set_clearance(True, clearance_price, reason, actor, note)
        else:
            note = (
                "Returned to supplier"
                if action is DispositionAction.RETURN_TO_SUPPLIER
                else "Written off"
            )

        self.status = target
        status_change = StatusChange(
            device_identifier_id=self._require_id(),
            old_status=DeviceStatus.DEFECTIVE_AT_DELIVERY.value,
            new_status=target.value,
            changed_by=actor,
            note=note,
        )
        return status_change, clearance_change

    # --- Internal helpers -----------------------------------------------------

    def _set_clearance(
        self,
        on: bool,
        price: Money | None,
        reason: str | None,
        actor: str,
        note: str | None,
    ) -> ClearanceChange:
        change = ClearanceChange(
            device_identifier_id=self._require_id(),
            old_is_clearance=self.is_clearance,
            new_is_clearance=on,
            old_clearance_price=self.clearance_price.amount if self.clearance_price else None,
            new_clearance_price=price.amount if price else None,
            old_clearance_reason=self.clearance_reason,
            new_clearance_reason=reason,
            changed_by=actor,
            note=note,
        )
        self.is_clearance = on
        self.clearance_price = price
        self.clearance_reason = reason
        return change

    def _clear_clearance(self) -> None:
        self.is_clearance = False
        self.clearance_price = None
        self.clearance_reason = None

    def _require_in_stock(self, action: str) -> None:
        if self.status is not DeviceStatus.IN_STOCK:
            raise InvalidStateError(
                f"Can only {action} while the unit is in stock "
                f"(status is {self.status.value})",
                identifier_id=self.id,
                status=self.status.value,
            )

    def _require_id(self) -> int:
        if self.id is None:
            raise ValidationError("Identifier has not been persisted yet")
        return self.id


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _values_for_mode(
    mode: TrackingMode, imei: str | None, serial_number: str | None
) -> tuple[str | None, str | None]:
    """Return (imei, serial_number) with only the field *mode* uses populated."""
    if mode is TrackingMode.IMEI:
        if imei is None:
            raise MissingRequiredFieldError(
                "IMEI is required for this tracking mode", field="imei"
            )
        if serial_number is not None:
            raise TrackingModeMismatchError(
                "Product version is tracked by IMEI, not by serial number",
                field="serial_number",
            )
        return imei, None
    if serial_number is None:
        raise MissingRequiredFieldError(
            "Serial number is required for this tracking mode", field="serial_number"
        )
    if imei is not None:
        raise TrackingModeMismatchError(
            "Product version is tracked by serial number, not by IMEI",
            field="imei",
        )
    return None, serial_number
