"""Tests for boundary validation of inbound request bodies."""

from decimal import Decimal

import pytest

from storefront.application.schemas import (
    CaptureOrderRequest,
    CreateOrderRequest,
    FulfillmentStateRequest,
    MergeCartRequest,
    PaymentConfirmationRequest,
    normalize_quantity,
    parse_request,
)
from storefront.domain.exceptions import InvalidRequest
from storefront.domain.model.order import FulfillmentState


class TestNormalizeQuantity:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (3, 3),
            ("2", 2),
            (2.9, 2),
            (None, 1),
            ("abc", 1),
            (0, 1),
            (-4, 1),
            (True, 1),
            ("NaN", 1),
        ],
    )
    def test_values(self, raw, expected):
        assert normalize_quantity(raw) == expected


class TestCreateOrderRequest:

    def test_english_fields(self):
        request = parse_request(CreateOrderRequest, {
            "items": [{"product_id": "P1", "quantity": 2}],
            "customer": {"address": " Calle 1 ", "city": "Lima", "postal_code": "15001"},
        })
        assert [(s.product_id, s.quantity) for s in request.item_specs()] == [("P1", 2)]
        assert request.customer.to_spec().address == "Calle 1"

    def test_storefront_aliases(self):
        request = parse_request(CreateOrderRequest, {
            "productos": [{"productoId": {"_id": "P1"}, "cantidad": "3"}],
            "datosCliente": {"direccion": "Calle 1", "ciudad": "Lima",
                             "codigoPostal": "15001", "nombre": "Ana"},
        })
        spec = request.item_specs()[0]
        assert (spec.product_id, spec.quantity) == ("P1", 3)
        assert request.customer.to_spec().name == "Ana"

    def test_client_price_is_ignored(self):
        request = parse_request(CreateOrderRequest, {
            "items": [{"product_id": "P1", "quantity": 1, "price": "0.01"}],
            "customer": {},
            "total": "0.01",
        })
        assert not hasattr(request.items[0], "price")

    def test_empty_items_rejected(self):
        with pytest.raises(InvalidRequest, match="items"):
            parse_request(CreateOrderRequest, {"items": [], "customer": {}})

    def test_bad_product_id_rejected(self):
        with pytest.raises(InvalidRequest):
            parse_request(CreateOrderRequest, {
                "items": [{"product_id": "../etc/passwd"}], "customer": {},
            })

    def test_non_object_body_rejected(self):
        with pytest.raises(InvalidRequest):
            parse_request(CreateOrderRequest, ["P1"])


class TestMergeCartRequest:

    def test_lines_and_token(self):
        request = parse_request(MergeCartRequest, {
            "carritoLocal": [{"_id": "A", "cantidad": 0}, {"productoId": "B", "cantidad": 2}],
            "merge_token": "sess-1",
        })
        assert [(l.product_id, l.quantity.value) for l in request.cart_lines()] == [
            ("A", 1),
            ("B", 2),
        ]
        assert request.merge_token == "sess-1"

    def test_missing_lines_is_empty(self):
        assert parse_request(MergeCartRequest, {}).cart_lines() == []


class TestPaymentRequests:

    def test_confirmation(self):
        confirmation = parse_request(PaymentConfirmationRequest, {
            "status": "COMPLETED", "captured_amount": "30.00", "currency": "eur",
            "external_order_id": "PAY-1",
        }).to_confirmation()
        assert confirmation.is_completed
        assert confirmation.captured_amount.amount == Decimal("30.00")
        assert confirmation.currency == "EUR"

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidRequest):
            parse_request(PaymentConfirmationRequest, {
                "status": "COMPLETED", "captured_amount": "-1", "external_order_id": "X",
            })

    def test_capture_customer_is_optional(self):
        request = parse_request(CaptureOrderRequest, {
            "confirmation": {"status": "COMPLETED", "captured_amount": 5,
                             "external_order_id": "PAY-2"},
            "productos": [{"_id": "P1"}],
        })
        assert request.customer.to_spec().address is None
        assert request.item_specs()[0].quantity == 1


class TestFulfillmentStateRequest:

    @pytest.mark.parametrize("raw", ["enviado", "SHIPPED", " shipped "])
    def test_accepts_value_or_name(self, raw):
        request = parse_request(FulfillmentStateRequest, {"estado": raw})
        assert request.state is FulfillmentState.SHIPPED

    def test_unknown_state(self):
        with pytest.raises(InvalidRequest, match="Unknown fulfillment state"):
            parse_request(FulfillmentStateRequest, {"state": "perdido"})
