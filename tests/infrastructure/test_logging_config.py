"""Tests for the structured logging setup."""

import io
import json
import logging
from decimal import Decimal

import pytest

from ims.domain.exceptions import InsufficientStockError
from ims.logging_config import configure_logging, get_logger, reset_logging


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


def test_json_lines_carry_extra_fields():
    stream = io.StringIO()
    configure_logging(level=logging.DEBUG, json_format=True, stream=stream)

    get_logger("test").info("bulk_stock_adjusted", extra={"catalog_entry_id": 3, "price": Decimal("1.50")})

    payload = json.loads(stream.getvalue())
    assert payload["message"] == "bulk_stock_adjusted"
    assert payload["logger"] == "ims.test"
    assert payload["catalog_entry_id"] == 3
    assert payload["price"] == "1.50"


def test_exception_code_and_context_are_flattened():
    stream = io.StringIO()
    configure_logging(json_format=True, stream=stream)

    try:
        raise InsufficientStockError("Insufficient stock", catalog_entry_id=7, quantity=2)
    except InsufficientStockError:
        get_logger("test").exception("adjust_failed")

    payload = json.loads(stream.getvalue())
    assert payload["exc_code"] == "INSUFFICIENT_STOCK"
    assert payload["exc_catalog_entry_id"] == 7
    assert payload["exc_quantity"] == 2


def test_configure_is_idempotent():
    first, second = io.StringIO(), io.StringIO()
    configure_logging(stream=first)
    configure_logging(stream=second)

    get_logger("test").warning("once")

    assert "once" in first.getvalue()
    assert second.getvalue() == ""
    assert len(logging.getLogger("ims").handlers) == 1
