"""End-to-end tests of the click CLI against a temporary data directory."""

import json

import pytest
import structlog
from click.testing import CliRunner

from storefront.infrastructure.cli.main import cli

_configure = structlog.configure


def _configure_uncached(*args, **kwargs):
    kwargs["cache_logger_on_first_use"] = False
    _configure(*args, **kwargs)


@pytest.fixture
def invoke(tmp_path, monkeypatch):
    monkeypatch.setenv("STOREFRONT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("STOREFRONT_LOG_LEVEL", "WARNING")
    # Loggers cached by the CLI would outlive this test and bypass capture_logs.
    monkeypatch.setattr(structlog, "configure", _configure_uncached)
    runner = CliRunner()

    def _invoke(*args):
        return runner.invoke(cli, list(args))

    yield _invoke
    structlog.reset_defaults()


def _seed(invoke):
    result = invoke("product", "add", "--id", "P1", "--name", "Widget",
                    "--price", "10.00", "--stock", "5")
    assert result.exit_code == 0, result.output
    return result


_ADDRESS = ("--address", "Calle 1", "--city", "Lima", "--postal-code", "15001")


class TestProductCommands:

    def test_add_and_list(self, invoke):
        assert "Product #P1 'Widget' added at $10.00 (stock=5)" in _seed(invoke).output

        result = invoke("product", "list")
        assert result.exit_code == 0
        assert "Widget" in result.output

    def test_stock_delta_and_set(self, invoke):
        _seed(invoke)
        assert "stock is now 8" in invoke("product", "stock", "--id", "P1", "--delta", "3").output
        assert "stock is now 1" in invoke("product", "stock", "--id", "P1", "--set", "1").output

    def test_stock_requires_one_option(self, invoke):
        _seed(invoke)
        result = invoke("product", "stock", "--id", "P1")
        assert result.exit_code != 0
        assert "exactly one" in result.output


class TestOrderCommands:

    def test_create_show_and_ship(self, invoke, tmp_path):
        _seed(invoke)
        invoke("cart", "add", "--user", "alice", "--product", "P1", "--qty", "3")

        result = invoke("order", "create", "--user", "alice", "--items", "P1:3", *_ADDRESS)
        assert result.exit_code == 0, result.output
        assert "Order #1 created  (total=$30.00)" in result.output

        products = json.loads((tmp_path / "products.json").read_text())
        assert products["P1"]["stock"] == 2
        assert "is empty" in invoke("cart", "show", "--user", "alice").output

        assert "Calle 1, Lima (15001)" in invoke("order", "show", "--user", "alice", "--id", "1").output
        shipped = invoke("order", "state", "--id", "1", "--state", "enviado")
        assert "Order #1 is now 'enviado'." in shipped.output
        assert "enviado" in invoke("order", "mine", "--user", "alice").output

    def test_insufficient_stock_is_reported(self, invoke, tmp_path):
        _seed(invoke)
        result = invoke("order", "create", "--user", "alice", "--items", "P1:9", *_ADDRESS)

        assert result.exit_code != 0
        assert "InsufficientStock" in result.output
        assert "product_id=P1" in result.output
        assert json.loads((tmp_path / "products.json").read_text())["P1"]["stock"] == 5

    def test_missing_address_is_reported(self, invoke):
        _seed(invoke)
        result = invoke("order", "create", "--user", "alice", "--items", "P1:1")
        assert result.exit_code != 0
        assert "InvalidCustomerInfo" in result.output

    def test_bad_product_id_is_rejected(self, invoke):
        result = invoke("order", "create", "--user", "alice", "--items", "bad id:1", *_ADDRESS)
        assert result.exit_code != 0
        assert "Invalid request" in result.output

    def test_other_users_order_is_hidden(self, invoke):
        _seed(invoke)
        invoke("order", "create", "--user", "alice", "--items", "P1", *_ADDRESS)
        result = invoke("order", "show", "--user", "mallory", "--id", "1")
        assert result.exit_code != 0
        assert "OrderNotFound" in result.output

    def test_capture_is_idempotent(self, invoke, tmp_path):
        _seed(invoke)
        args = ("order", "capture", "--payment-id", "PAY-1", "--amount", "20.00",
                "--items", "P1:2", "--email", "ana@example.com")

        first = invoke(*args)
        second = invoke(*args)

        assert first.exit_code == 0, first.output
        assert "Order #1 recorded for payment PAY-1" in second.output
        assert "Sin dirección" in first.output
        assert json.loads((tmp_path / "products.json").read_text())["P1"]["stock"] == 3
        assert len(json.loads((tmp_path / "outbox.json").read_text())) == 1

    def test_empty_history(self, invoke):
        assert "No orders found." in invoke("order", "list").output


class TestCartCommands:

    def test_add_update_remove(self, invoke):
        _seed(invoke)
        assert "P1" in invoke("cart", "add", "--user", "alice", "--product", "P1").output
        assert "is empty" in invoke(
            "cart", "update", "--user", "alice", "--product", "P1", "--qty", "0"
        ).output

    def test_merge_with_token_applies_once(self, invoke):
        for _ in range(2):
            result = invoke("cart", "merge", "--user", "alice", "--items", "A:2,B", "--token", "t1")
            assert result.exit_code == 0, result.output

        lines = [l.split() for l in invoke("cart", "show", "--user", "alice").output.splitlines()]
        assert ["A", "2"] in lines
        assert ["B", "1"] in lines


def test_invalid_timeout_setting(invoke, monkeypatch):
    monkeypatch.setenv("STOREFRONT_STORE_TIMEOUT", "soon")
    result = invoke("product", "list")
    assert result.exit_code != 0
    assert "STOREFRONT_STORE_TIMEOUT" in result.output
