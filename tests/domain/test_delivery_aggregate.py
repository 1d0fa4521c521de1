"""Unit tests for the Delivery aggregate."""

from datetime import date

import pytest

from ims.domain.exceptions import InvalidStateError, ValidationError
from ims.domain.model.delivery import Delivery, DeliveryStatus, format_delivery_number
from ims.domain.model.value_objects import Money, Quantity


def _delivery() -> Delivery:
    return Delivery.create("WS0001", date(2024, 3, 1), supplier="  Acme  ")


class TestDeliveryNumber:

    def test_padded_to_four_digits(self):
        assert format_delivery_number(1) == "WS0001"
        assert format_delivery_number(42) == "WS0042"

    def test_keeps_growing_past_9999(self):
        assert format_delivery_number(10000) == "WS10000"

    def test_non_positive_rejected(self):
        with pytest.raises(ValidationError):
            format_delivery_number(0)


class TestDeliveryCreation:

    def test_starts_as_concept(self):
        d = _delivery()
        assert d.id is None
        assert d.status == DeliveryStatus.CONCEPT
        assert d.supplier == "Acme"
        assert d.lines == []

    def test_blank_supplier_becomes_none(self):
        assert Delivery.create("WS0002", date(2024, 3, 1), supplier="  ").supplier is None

    def test_date_required(self):
        with pytest.raises(ValidationError, match="date is required"):
            Delivery.create("WS0003", None)  # type: ignore[arg-type]


class TestDeliveryLines:

    def test_add_line_and_totals(self):
        d = _delivery()
        line = d.add_line(5, Quantity(3), Money.of("10.00"))
        d.add_line(6, Quantity(2), Money.of("1.50"))

        assert line.line_total == Money.of("30.00")
        assert d.total_quantity == 5
        assert len(d.lines) == 2

    def test_cannot_add_line_to_booked_delivery(self):
        d = _delivery()
        d.book()
        with pytest.raises(InvalidStateError, match="current status is booked"):
            d.add_line(5, Quantity(1), Money.of("1"))

    def test_one_line_per_catalog_entry(self):
        d = _delivery()
        d.add_line(5, Quantity(1), Money.of("10.00"))
        with pytest.raises(ValidationError, match="already has a line") as exc_info:
            d.add_line(5, Quantity(1), Money.of("12.00"))
        assert exc_info.value.context["catalog_entry_id"] == 5
        assert len(d.lines) == 1


class TestDeliveryBooking:

    def test_book_transitions_to_booked(self):
        d = _delivery()
        d.book()
        assert d.status == DeliveryStatus.BOOKED

    def test_book_twice_rejected(self):
        d = _delivery()
        d.book()
        with pytest.raises(InvalidStateError):
            d.book()
        with pytest.raises(InvalidStateError):
            d.ensure_bookable()
