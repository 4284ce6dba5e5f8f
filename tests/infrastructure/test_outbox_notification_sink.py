"""Tests for the outbox confirmation sink."""

import json

import pytest

from storefront.domain.exceptions import NotificationFailure
from storefront.domain.model.order import CustomerInfo, Order, OrderLine
from storefront.domain.model.value_objects import Money, Quantity
from storefront.infrastructure.notification.outbox_notification_sink import (
    JsonOutboxNotificationSink,
    render_receipt,
)


def _order(email="ana@example.com"):
    return Order.create(
        user_id="alice",
        lines=[OrderLine("P1", "Widget", Money.of("10.00"), Quantity(3))],
        customer=CustomerInfo.create("Calle 1", "Lima", "15001", name="Ana", email=email),
    ).with_id(12)


def test_receipt_lists_lines_and_total():
    receipt = render_receipt(_order())
    assert "Order #12" in receipt
    assert "Widget" in receipt
    assert "$30.00" in receipt
    assert "Calle 1, Lima (15001)" in receipt


async def test_notify_appends_to_outbox(tmp_path):
    sink = JsonOutboxNotificationSink(tmp_path / "outbox.json")
    await sink.notify(_order())
    await sink.notify(_order())

    outbox = json.loads((tmp_path / "outbox.json").read_text())
    assert len(outbox) == 2
    assert outbox[0]["to"] == "ana@example.com"
    assert outbox[0]["subject"] == "Your order #12 ($30.00)"


async def test_notify_without_email_fails(tmp_path):
    sink = JsonOutboxNotificationSink(tmp_path / "outbox.json")
    with pytest.raises(NotificationFailure):
        await sink.notify(_order(email=None))
    assert json.loads((tmp_path / "outbox.json").read_text()) == []
