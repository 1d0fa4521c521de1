"""Smoke tests for the click CLI against a temporary SQLite file."""

import logging

import pytest
from click.testing import CliRunner

from ims.infrastructure import bootstrap
from ims.infrastructure.cli.main import cli
from ims.logging_config import configure_logging, reset_logging


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("IMS_DATABASE_URL", f"sqlite:///{tmp_path / 'cli.sqlite'}")
    monkeypatch.setenv("IMS_DEFAULT_ACTOR", "tester")
    bootstrap.shutdown()
    reset_logging()
    configure_logging(handler=logging.NullHandler())
    yield CliRunner()
    bootstrap.shutdown()
    reset_logging()


def _ok(runner, *args):
    result = runner.invoke(cli, list(args))
    assert result.exit_code == 0, result.output
    return result.output


class TestCatalogCommands:

    def test_add_list_show(self, runner):
        assert "Product version #1 'Case' added (tracking=none)" in _ok(
            runner, "catalog", "add", "--name", "Case", "--ean", "8710"
        )
        _ok(runner, "catalog", "update", "--id", "1", "--name", "Case Black")

        listing = _ok(runner, "catalog", "list")
        assert "Case Black" in listing
        assert "8710" not in listing  # ean cleared by update without --ean

        assert "Bulk quantity: 0" in _ok(runner, "catalog", "show", "--id", "1")

    def test_domain_error_becomes_click_error(self, runner):
        result = runner.invoke(cli, ["catalog", "show", "--id", "42"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestStockCommands:

    def test_adjust_and_overview(self, runner):
        _ok(runner, "catalog", "add", "--name", "Case")
        assert "0 -> 30 (+30)" in _ok(runner, "stock", "adjust", "--id", "1", "--delta", "30")

        result = runner.invoke(cli, ["stock", "adjust", "--id", "1", "--delta", "-35"])
        assert result.exit_code == 1
        assert "Insufficient stock" in result.output

        assert "30" in _ok(runner, "stock", "overview")


class TestDeliveryWorkflow:

    def test_serial_delivery_end_to_end(self, runner):
        _ok(runner, "catalog", "add", "--name", "Widget", "--tracking", "serial")
        assert "Delivery WS0001 created" in _ok(
            runner, "delivery", "create", "--date", "2024-05-02", "--supplier", "Acme"
        )
        added = _ok(
            runner, "delivery", "add-line", "--id", "1", "--entry", "1",
            "--quantity", "2", "--price", "10.00", "--serial", "A1", "--serial", "A2",
        )
        assert "registered #1 A1" in added
        assert "registered #2 A2" in added

        assert "needs a damage assessment" in _ok(runner, "delivery", "book", "--id", "1")

        incomplete = runner.invoke(cli, ["delivery", "assess", "--id", "1", "--ok", "1"])
        assert incomplete.exit_code == 1

        assert "1 in stock, 1 defective at delivery" in _ok(
            runner, "delivery", "assess", "--id", "1", "--ok", "1", "--damaged", "2:scratch"
        )
        disposed = _ok(
            runner, "delivery", "dispose", "--id", "2", "--action", "mark_as_clearance",
            "--price", "5.00", "--reason", "scratch",
        )
        assert "defective_at_delivery -> in_stock  (clearance)" in disposed

        shown = _ok(runner, "identifier", "show", "--id", "2")
        assert "by tester" in shown
        assert "Clearance history:" in shown

        assert "booked" in _ok(runner, "delivery", "list")


class TestIdentifierCommands:

    def test_status_retag_move_clearance(self, runner):
        _ok(runner, "catalog", "add", "--name", "Phone", "--tracking", "imei")
        _ok(runner, "catalog", "add", "--name", "Phone Blue", "--tracking", "imei")
        _ok(runner, "delivery", "create", "--date", "2024-05-02")
        _ok(runner, "delivery", "add-line", "--id", "1", "--entry", "1",
            "--quantity", "1", "--price", "300", "--imei", "3500001")

        assert "3500001 -> 3599999" in _ok(runner, "identifier", "retag", "--id", "1", "--imei", "3599999")
        assert "moved from product version #1 to #2" in _ok(
            runner, "identifier", "move", "--id", "1", "--to", "2"
        )
        assert "now on clearance" in _ok(runner, "identifier", "clearance", "--id", "1", "--price", "250")
        assert "no longer on clearance" in _ok(runner, "identifier", "clearance", "--id", "1")
        assert "in_stock -> sold" in _ok(runner, "identifier", "status", "--id", "1", "--to", "sold")

        found = _ok(runner, "identifier", "search", "--text", "3599")
        assert "retagged,moved" in found

        bad = runner.invoke(cli, ["identifier", "status", "--id", "1", "--to", "lost"])
        assert bad.exit_code == 1
        assert "Unknown status" in bad.output
