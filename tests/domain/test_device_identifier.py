"""Unit tests for the DeviceIdentifier aggregate and its state machine."""

from decimal import Decimal

import pytest

from ims.domain.exceptions import (
    InvalidActionError,
    InvalidPriceError,
    InvalidStateError,
    InvalidStatusError,
    MissingRequiredFieldError,
    NoChangeError,
    TrackingModeMismatchError,
)
from ims.domain.model.catalog import CatalogEntry, TrackingMode
from ims.domain.model.device import DeviceIdentifier, DeviceStatus, DispositionAction
from ims.domain.model.value_objects import Money


def _entry(entry_id: int = 1, mode: TrackingMode = TrackingMode.IMEI, name: str = "Phone") -> CatalogEntry:
    return CatalogEntry(id=entry_id, name=name, tracking_mode=mode)


def _device(mode: TrackingMode = TrackingMode.IMEI, value: str = "111", **overrides) -> DeviceIdentifier:
    entry = _entry(mode=mode)
    if mode is TrackingMode.IMEI:
        device = DeviceIdentifier.register(entry, imei=value)
    else:
        device = DeviceIdentifier.register(entry, serial_number=value)
    device.id = 1
    for name, val in overrides.items():
        setattr(device, name, val)
    return device


class TestRegister:

    def test_imei_unit_keeps_provenance(self):
        d = DeviceIdentifier.register(_entry(), imei=" 350000 ", delivery_id=4)
        assert d.imei == "350000"
        assert d.serial_number is None
        assert d.original_imei == "350000"
        assert d.original_catalog_entry_id == d.catalog_entry_id == 1
        assert d.status == DeviceStatus.IN_STOCK
        assert d.delivery_id == 4

    def test_serial_unit(self):
        d = DeviceIdentifier.register(_entry(mode=TrackingMode.SERIAL), serial_number="SN1")
        assert (d.imei, d.serial_number) == (None, "SN1")

    def test_untracked_entry_rejected(self):
        with pytest.raises(TrackingModeMismatchError):
            DeviceIdentifier.register(_entry(mode=TrackingMode.NONE), imei="1")

    def test_missing_value_rejected(self):
        with pytest.raises(MissingRequiredFieldError):
            DeviceIdentifier.register(_entry(), serial_number="SN1")

    def test_both_values_rejected(self):
        with pytest.raises(TrackingModeMismatchError):
            DeviceIdentifier.register(_entry(), imei="1", serial_number="SN1")


class TestChangeStatus:

    def test_any_to_any(self):
        d = _device()
        change = d.change_status("sold", actor="admin", note="till 2")
        assert d.status == DeviceStatus.SOLD
        assert (change.old_status, change.new_status) == ("in_stock", "sold")
        assert change.changed_by == "admin"

        d.change_status(DeviceStatus.IN_STOCK, actor="admin")
        assert d.status == DeviceStatus.IN_STOCK

    def test_same_status_is_recorded(self):
        change = _device().change_status("in_stock", actor="admin")
        assert change.old_status == change.new_status == "in_stock"

    def test_unknown_status_rejected(self):
        d = _device()
        with pytest.raises(InvalidStatusError):
            d.change_status("lost", actor="admin")
        assert d.status == DeviceStatus.IN_STOCK

    def test_terminal_statuses(self):
        assert DeviceStatus.SOLD.is_terminal
        assert DeviceStatus.WRITTEN_OFF.is_terminal
        assert not DeviceStatus.DEFECTIVE.is_terminal


class TestRetag:

    def test_changes_current_value_only(self):
        d = _device(value="111")
        change = d.retag(TrackingMode.IMEI, "222", None, actor="admin")
        assert d.imei == "222"
        assert d.original_imei == "111"
        assert d.is_identifier_swapped
        assert (change.old_imei, change.new_imei) == ("111", "222")

    def test_same_value_is_no_change(self):
        d = _device(value="111")
        with pytest.raises(NoChangeError):
            d.retag(TrackingMode.IMEI, "111", None, actor="admin")

    def test_not_in_stock_rejected(self):
        d = _device(status=DeviceStatus.SOLD)
        with pytest.raises(InvalidStateError):
            d.retag(TrackingMode.IMEI, "222", None, actor="admin")

    def test_required_field_missing_for_mode(self):
        d = _device(value="111")
        with pytest.raises(MissingRequiredFieldError):
            d.retag(TrackingMode.IMEI, None, "SN9", actor="admin")
        assert d.imei == "111"
        assert d.serial_number is None

    def test_extra_field_of_other_kind_rejected(self):
        d = _device(value="111")
        with pytest.raises(TrackingModeMismatchError):
            d.retag(TrackingMode.IMEI, "222", "SN9", actor="admin")
        assert d.imei == "111"

    def test_serial_mode(self):
        d = _device(mode=TrackingMode.SERIAL, value="SN1")
        d.retag(TrackingMode.SERIAL, None, "SN2", actor="admin")
        assert d.serial_number == "SN2"
        assert d.original_serial_number == "SN1"


class TestChangeCatalogEntry:

    def test_moves_to_entry_with_same_mode(self):
        d = _device()
        change = d.change_catalog_entry(_entry(1), _entry(2, name="Phone Blue"), actor="admin")
        assert d.catalog_entry_id == 2
        assert d.original_catalog_entry_id == 1
        assert d.is_catalog_entry_swapped
        assert (change.old_catalog_entry_id, change.new_catalog_entry_id) == (1, 2)

    def test_same_entry_is_no_change(self):
        with pytest.raises(NoChangeError):
            _device().change_catalog_entry(_entry(1), _entry(1), actor="admin")

    def test_tracking_mode_mismatch(self):
        target = _entry(2, mode=TrackingMode.SERIAL)
        d = _device()
        with pytest.raises(TrackingModeMismatchError):
            d.change_catalog_entry(_entry(1), target, actor="admin")
        assert d.catalog_entry_id == 1

    def test_not_in_stock_rejected(self):
        with pytest.raises(InvalidStateError):
            _device(status=DeviceStatus.RESERVED).change_catalog_entry(
                _entry(1), _entry(2), actor="admin"
            )


class TestToggleClearance:

    def test_on_then_off(self):
        d = _device()
        on = d.toggle_clearance("admin", Money.of("49.95"), "scratched")
        assert d.is_clearance
        assert d.clearance_price == Money.of("49.95")
        assert on.new_clearance_price == Decimal("49.95")

        off = d.toggle_clearance("admin")
        assert not d.is_clearance
        assert d.clearance_price is None
        assert d.clearance_reason is None
        assert (off.old_is_clearance, off.new_is_clearance) == (True, False)
        assert off.old_clearance_reason == "scratched"

    def test_remove_when_off_stays_off(self):
        d = _device()
        change = d.toggle_clearance("admin", remove=True)
        assert not d.is_clearance
        assert change.old_is_clearance is False and change.new_is_clearance is False

    def test_zero_price_rejected(self):
        d = _device()
        with pytest.raises(InvalidPriceError):
            d.toggle_clearance("admin", Money.of("0"))
        assert not d.is_clearance

    def test_requires_in_stock(self):
        with pytest.raises(InvalidStateError):
            _device(status=DeviceStatus.DEFECTIVE).toggle_clearance("admin")


class TestAssessmentAndDisposition:

    def test_record_damaged(self):
        d = _device()
        change = d.record_assessment(True, " cracked ", actor="system")
        assert d.status == DeviceStatus.DEFECTIVE_AT_DELIVERY
        assert d.received_damaged
        assert d.damage_description == "cracked"
        assert change.old_status is None
        assert change.note == "Damaged at delivery: cracked"

    def test_record_intact(self):
        d = _device()
        change = d.record_assessment(False, None, actor="system")
        assert d.status == DeviceStatus.IN_STOCK
        assert change.note == "received via delivery"

    def test_dispose_clearance(self):
        d = _device(status=DeviceStatus.DEFECTIVE_AT_DELIVERY)
        status, clearance = d.dispose(
            DispositionAction.MARK_AS_CLEARANCE, "admin", Money.of("10"), "dented"
        )
        assert d.status == DeviceStatus.IN_STOCK
        assert d.is_clearance
        assert status.old_status == "defective_at_delivery"
        assert status.note == "Marked as clearance: dented"
        assert clearance is not None and clearance.new_is_clearance

    def test_dispose_clearance_starts_from_no_clearance(self):
        d = _device(
            status=DeviceStatus.DEFECTIVE_AT_DELIVERY,
            is_clearance=True,
            clearance_price=Money.of("20"),
            clearance_reason="old deal",
        )
        _, clearance = d.dispose(DispositionAction.MARK_AS_CLEARANCE, "admin", Money.of("10"))
        assert clearance.old_is_clearance is False
        assert clearance.old_clearance_price is None
        assert clearance.old_clearance_reason is None
        assert d.clearance_price == Money.of("10")

    def test_damaged_assessment_drops_clearance(self):
        d = _device(is_clearance=True, clearance_price=Money.of("20"), clearance_reason="x")
        d.record_assessment(True, "cracked", actor="system")
        assert not d.is_clearance
        assert d.clearance_price is None and d.clearance_reason is None

    @pytest.mark.parametrize(
        "action, target",
        [
            (DispositionAction.RETURN_TO_SUPPLIER, DeviceStatus.RETURNED_TO_SUPPLIER),
            (DispositionAction.WRITE_OFF, DeviceStatus.WRITTEN_OFF),
        ],
    )
    def test_dispose_terminal(self, action, target):
        d = _device(status=DeviceStatus.DEFECTIVE_AT_DELIVERY)
        status, clearance = d.dispose(action, "admin")
        assert d.status == target
        assert clearance is None
        assert not d.is_clearance

    def test_dispose_requires_defective_at_delivery(self):
        with pytest.raises(InvalidStateError):
            _device().dispose(DispositionAction.WRITE_OFF, "admin")

    def test_unknown_action(self):
        with pytest.raises(InvalidActionError):
            DispositionAction.parse("burn")
