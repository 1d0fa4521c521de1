"""Integration tests for the operator operations on a single unit."""

from decimal import Decimal

import pytest

from ims.application.change_catalog_entry import ChangeCatalogEntryHandler
from ims.application.change_identifier import ChangeIdentifierHandler
from ims.application.change_status import ChangeStatusHandler
from ims.application.toggle_clearance import ToggleClearanceHandler
from ims.domain.exceptions import (
    DuplicateIdentifierError,
    EntityNotFoundError,
    InvalidPriceError,
    InvalidStateError,
    InvalidStatusError,
    NoChangeError,
    TrackingModeMismatchError,
)
from ims.domain.model.device import DeviceIdentifier, DeviceStatus
from ims.domain.model.history import (
    ClearanceChange,
    IdentifierChange,
    ProductVersionChange,
    StatusChange,
)
from tests.fakes import FakeUnitOfWork


def _setup():
    uow = FakeUnitOfWork()
    phone = uow.add_entry("Phone 128GB", "imei")
    phone_blue = uow.add_entry("Phone 128GB Blue", "imei")
    laptop = uow.add_entry("Laptop", "serial")
    first = DeviceIdentifier.register(phone, imei="350000000000001")
    second = DeviceIdentifier.register(phone, imei="350000000000002")
    uow.devices.save(first)
    uow.devices.save(second)
    return uow, phone, phone_blue, laptop, first, second


class TestChangeStatus:

    def test_status_changed_and_recorded(self):
        uow, _, _, _, unit, _ = _setup()

        change = ChangeStatusHandler(uow).handle(unit.id, "sold", actor="admin", note="sold")

        assert uow.devices.get_by_id(unit.id).status == DeviceStatus.SOLD
        assert change.id is not None
        [record] = uow.audit_records(StatusChange)
        assert (record.old_status, record.new_status, record.changed_by) == ("in_stock", "sold", "admin")
        assert uow.commits == 1

    def test_unknown_identifier(self):
        uow, *_ = _setup()
        with pytest.raises(EntityNotFoundError, match="not found"):
            ChangeStatusHandler(uow).handle(999, "sold", actor="admin")
        assert uow.rollbacks == 1

    def test_unknown_status_writes_nothing(self):
        uow, _, _, _, unit, _ = _setup()
        with pytest.raises(InvalidStatusError):
            ChangeStatusHandler(uow).handle(unit.id, "vanished", actor="admin")
        assert uow.devices.get_by_id(unit.id).status == DeviceStatus.IN_STOCK
        assert uow.audit_records() == []


class TestChangeIdentifier:

    def test_retag(self):
        uow, _, _, _, unit, _ = _setup()

        ChangeIdentifierHandler(uow).handle(unit.id, actor="admin", new_imei="359999999999999")

        stored = uow.devices.get_by_id(unit.id)
        assert stored.imei == "359999999999999"
        assert stored.original_imei == "350000000000001"
        [record] = uow.audit_records(IdentifierChange)
        assert record.old_imei == "350000000000001"
        assert record.new_imei == "359999999999999"

    def test_identical_value_is_no_change_and_writes_no_audit(self):
        uow, _, _, _, unit, _ = _setup()
        with pytest.raises(NoChangeError):
            ChangeIdentifierHandler(uow).handle(unit.id, actor="admin", new_imei="350000000000001")
        assert uow.audit_records() == []

    def test_collision_rejected_and_state_unchanged(self):
        uow, _, _, _, unit, other = _setup()
        with pytest.raises(DuplicateIdentifierError):
            ChangeIdentifierHandler(uow).handle(unit.id, actor="admin", new_imei=other.imei)
        assert uow.devices.get_by_id(unit.id).imei == "350000000000001"
        assert uow.audit_records() == []

    def test_not_in_stock_rejected(self):
        uow, _, _, _, unit, _ = _setup()
        ChangeStatusHandler(uow).handle(unit.id, "sold", actor="admin")
        with pytest.raises(InvalidStateError):
            ChangeIdentifierHandler(uow).handle(unit.id, actor="admin", new_imei="1")

    def test_serial_value_on_imei_unit_rejected(self):
        uow, _, _, _, unit, _ = _setup()
        with pytest.raises(TrackingModeMismatchError):
            ChangeIdentifierHandler(uow).handle(
                unit.id, actor="admin", new_imei="359999999999999", new_serial_number="SN1"
            )
        stored = uow.devices.get_by_id(unit.id)
        assert stored.serial_number is None


class TestChangeCatalogEntry:

    def test_move_to_same_mode_entry(self):
        uow, phone, phone_blue, _, unit, _ = _setup()

        ChangeCatalogEntryHandler(uow).handle(unit.id, phone_blue.id, actor="admin")

        stored = uow.devices.get_by_id(unit.id)
        assert stored.catalog_entry_id == phone_blue.id
        assert stored.original_catalog_entry_id == phone.id
        [record] = uow.audit_records(ProductVersionChange)
        assert (record.old_catalog_entry_id, record.new_catalog_entry_id) == (phone.id, phone_blue.id)

    def test_imei_to_serial_entry_rejected(self):
        uow, phone, _, laptop, unit, _ = _setup()
        with pytest.raises(TrackingModeMismatchError):
            ChangeCatalogEntryHandler(uow).handle(unit.id, laptop.id, actor="admin")
        assert uow.devices.get_by_id(unit.id).catalog_entry_id == phone.id
        assert uow.audit_records() == []

    def test_unknown_target(self):
        uow, _, _, _, unit, _ = _setup()
        with pytest.raises(EntityNotFoundError, match="does not exist"):
            ChangeCatalogEntryHandler(uow).handle(unit.id, 999, actor="admin")

    def test_same_entry_is_no_change(self):
        uow, phone, _, _, unit, _ = _setup()
        with pytest.raises(NoChangeError):
            ChangeCatalogEntryHandler(uow).handle(unit.id, phone.id, actor="admin")


class TestToggleClearance:

    def test_toggle_twice_returns_to_off(self):
        uow, _, _, _, unit, _ = _setup()
        handler = ToggleClearanceHandler(uow)

        handler.handle(unit.id, actor="admin", clearance_price="79.00", clearance_reason="demo model")
        on = uow.devices.get_by_id(unit.id)
        assert on.is_clearance
        assert on.clearance_price.amount == Decimal("79.00")
        assert on.clearance_reason == "demo model"

        handler.handle(unit.id, actor="admin")
        off = uow.devices.get_by_id(unit.id)
        assert not off.is_clearance
        assert off.clearance_price is None
        assert off.clearance_reason is None

        records = uow.audit_records(ClearanceChange)
        assert [r.new_is_clearance for r in records] == [True, False]
        assert records[1].old_clearance_reason == "demo model"

    def test_non_positive_price_rejected(self):
        uow, _, _, _, unit, _ = _setup()
        with pytest.raises(InvalidPriceError):
            ToggleClearanceHandler(uow).handle(unit.id, actor="admin", clearance_price="0")
        assert not uow.devices.get_by_id(unit.id).is_clearance
        assert uow.audit_records() == []

    @pytest.mark.parametrize("remove", [False, True])
    @pytest.mark.parametrize("stray_price", ["-1", "abc", "0"])
    def test_price_ignored_when_switching_off(self, remove, stray_price):
        uow, _, _, _, unit, _ = _setup()
        handler = ToggleClearanceHandler(uow)
        handler.handle(unit.id, actor="admin", clearance_price="5.00")

        change = handler.handle(unit.id, actor="admin", clearance_price=stray_price, remove=remove)

        assert (change.old_is_clearance, change.new_is_clearance) == (True, False)
        assert change.new_clearance_price is None
        assert not uow.devices.get_by_id(unit.id).is_clearance

    def test_status_checked_before_price(self):
        uow, _, _, _, unit, _ = _setup()
        ChangeStatusHandler(uow).handle(unit.id, "sold", actor="admin")

        with pytest.raises(InvalidStateError):
            ToggleClearanceHandler(uow).handle(unit.id, actor="admin", clearance_price="-1")
