"""Integration tests for the CreateOrder workflow.

Uses in-memory fake repositories, no file I/O.
"""

import asyncio

import pytest
from structlog.testing import capture_logs

from storefront.application.create_order import CreateOrderHandler
from storefront.application.dto import CustomerInfoSpec, ErrorDTO, OrderItemSpec
from storefront.application.notification_dispatcher import NotificationDispatcher
from storefront.domain.exceptions import (
    InsufficientStock,
    InvalidCustomerInfo,
    InvalidRequest,
    OrderCreationFailed,
    PersistenceError,
    ProductNotFound,
)
from storefront.domain.model.cart import Cart
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.domain.service.stock_reservation_service import StockReservationService
from tests.fakes import (
    FakeCartRepository,
    FakeOrderRepository,
    FakeProductRepository,
    RecordingNotificationSink,
)

ADDRESS = CustomerInfoSpec(
    address="Av. Siempre Viva 742", city="Springfield", postal_code="49007",
    name="Homer", email="homer@example.com",
)


class World:
    """Handler plus every fake it talks to."""

    def __init__(self, products=None, sink=None, timeout=None) -> None:
        if products is None:
            products = [
                Product(id="P1", name="Widget", price=Money.of("10.00"), stock=5),
                Product(id="P2", name="Gadget", price=Money.of("25.00"), stock=2),
            ]
        self.products = FakeProductRepository(products)
        self.carts = FakeCartRepository()
        self.orders = FakeOrderRepository()
        self.sink = sink or RecordingNotificationSink()
        self.notifications = NotificationDispatcher(self.sink)
        self.handler = CreateOrderHandler(
            order_repo=self.orders,
            cart_repo=self.carts,
            reservations=StockReservationService(self.products, timeout=timeout),
            notifications=self.notifications,
            timeout=timeout,
        )

    async def fill_cart(self, user_id: str, **quantities: int) -> None:
        cart = Cart.empty(user_id)
        for pid, qty in quantities.items():
            cart.add(pid, qty)
        await self.carts.replace(user_id, cart)

    async def place(self, user_id, *items, customer=ADDRESS):
        return await self.handler.handle(
            user_id, [OrderItemSpec(pid, qty) for pid, qty in items], customer
        )


class TestCreateOrderHappyPath:

    async def test_end_to_end(self):
        world = World()
        await world.fill_cart("alice", P1=3)

        dto = await world.place("alice", ("P1", 3))
        await world.notifications.drain()

        assert dto.total == "$30.00"
        assert dto.fulfillment_state == "pendiente"
        assert world.products.stock_of("P1") == 2
        assert (await world.carts.get("alice")).is_empty
        assert [o.id for o in world.sink.sent] == [dto.id]

    async def test_persists_priced_snapshot(self):
        world = World()
        dto = await world.place("alice", ("P1", 1), ("P2", 2))

        saved = await world.orders.get_by_id(dto.id)
        assert saved.user_id == "alice"
        assert saved.total == Money.of("60.00")
        assert [(l.product_id, l.name, l.quantity.value) for l in saved.lines] == [
            ("P1", "Widget", 1),
            ("P2", "Gadget", 2),
        ]
        assert saved.customer.city == "Springfield"

    async def test_duplicate_items_are_coalesced(self):
        world = World()
        dto = await world.place("alice", ("P1", 1), ("P1", 2))
        assert [(i.product_id, i.quantity) for i in dto.items] == [("P1", 3)]
        assert world.products.stock_of("P1") == 2

    async def test_accepts_plain_dict_customer(self):
        world = World()
        dto = await world.handler.handle(
            "alice",
            [OrderItemSpec("P1", 1)],
            {"address": "Calle 5", "city": "Quito", "postal_code": "170101"},
        )
        assert dto.customer["city"] == "Quito"

    async def test_sequential_ids(self):
        world = World()
        first = await world.place("alice", ("P1", 1))
        second = await world.place("bob", ("P1", 1))
        assert second.id == first.id + 1


class TestCreateOrderPriceIntegrity:

    async def test_price_snapshot_survives_catalog_edit(self):
        world = World()
        dto = await world.place("alice", ("P1", 2))

        widget = await world.products.get_by_id("P1")
        widget.update_price(Money.of("99.99"))
        await world.products.save(widget)

        saved = await world.orders.get_by_id(dto.id)
        assert str(saved.total) == "$20.00"


class TestCreateOrderFailures:

    async def test_empty_request_is_invalid(self):
        world = World()
        with pytest.raises(OrderCreationFailed) as exc_info:
            await world.place("alice")
        assert exc_info.value.reason == "InvalidRequest"
        assert isinstance(exc_info.value.error, InvalidRequest)

    @pytest.mark.parametrize("product_id", ["", "bad id!", "x" * 65])
    async def test_malformed_product_id_is_invalid(self, product_id):
        world = World()
        with pytest.raises(OrderCreationFailed) as exc_info:
            await world.place("alice", (product_id, 1))
        assert exc_info.value.reason == "InvalidRequest"
        assert exc_info.value.stage == "Validating"

    async def test_non_positive_quantity_is_invalid(self):
        world = World()
        with pytest.raises(OrderCreationFailed) as exc_info:
            await world.place("alice", ("P1", 0))
        assert exc_info.value.reason == "InvalidRequest"

    async def test_insufficient_stock_is_stock_error(self):
        world = World()
        await world.fill_cart("alice", P2=3)

        with pytest.raises(OrderCreationFailed) as exc_info:
            await world.place("alice", ("P1", 2), ("P2", 3))

        failure = exc_info.value
        assert failure.reason == "StockError"
        assert isinstance(failure.error, InsufficientStock)
        assert failure.error.product_id == "P2"
        assert world.products.stock_of("P1") == 5
        assert world.orders.count == 0
        assert (await world.carts.get("alice")).quantity_of("P2") == 3

    async def test_unknown_product_is_stock_error(self):
        world = World()
        with pytest.raises(OrderCreationFailed) as exc_info:
            await world.place("alice", ("P1", 1), ("NOPE", 1))
        assert isinstance(exc_info.value.error, ProductNotFound)
        assert world.products.stock_of("P1") == 5

    async def test_invalid_customer_rolls_back_reservation(self):
        world = World()
        no_city = CustomerInfoSpec(address="Calle 1", city=" ", postal_code="1000")

        with pytest.raises(OrderCreationFailed) as exc_info:
            await world.place("alice", ("P1", 3), ("P2", 1), customer=no_city)

        assert exc_info.value.reason == "PricingError"
        assert isinstance(exc_info.value.error, InvalidCustomerInfo)
        assert exc_info.value.error.field == "city"
        assert world.products.stock_of("P1") == 5
        assert world.products.stock_of("P2") == 2
        assert world.orders.count == 0

    async def test_persistence_failure_rolls_back_reservation(self):
        world = World()
        world.orders.fail("create", ConnectionError("primary stepped down"))

        with pytest.raises(OrderCreationFailed) as exc_info:
            await world.place("alice", ("P1", 3))

        failure = exc_info.value
        assert failure.reason == "PersistenceError"
        assert isinstance(failure.error, PersistenceError)
        assert failure.transient
        assert world.products.stock_of("P1") == 5
        assert world.sink.sent == []

    async def test_persistence_timeout_rolls_back_reservation(self):
        world = World(timeout=0.05)
        world.orders.stall("create", 0.2)

        with pytest.raises(OrderCreationFailed) as exc_info:
            await world.place("alice", ("P1", 3))

        assert exc_info.value.reason == "PersistenceError"
        assert exc_info.value.stage == "Persisting"
        assert world.products.stock_of("P1") == 5

    async def test_order_landing_after_timeout_is_deleted(self):
        world = World(timeout=0.05)
        world.orders.stall("create", 0.2)

        with capture_logs() as logs, pytest.raises(OrderCreationFailed):
            await world.place("alice", ("P1", 3))

        assert world.orders.count == 0
        assert any(c[0] == "delete" for c in world.orders.calls)
        assert any(e["event"] == "order_workflow.late_order_deleted" for e in logs)
        assert world.products.stock_of("P1") == 5

    async def test_undeletable_late_order_keeps_its_stock(self):
        world = World(timeout=0.05)
        world.orders.stall("create", 0.2)
        world.orders.fail("delete", ConnectionError("store down"))

        with capture_logs() as logs, pytest.raises(OrderCreationFailed):
            await world.place("alice", ("P1", 3))

        assert world.orders.count == 1
        assert world.products.stock_of("P1") == 2
        assert any(e["event"] == "order_workflow.orphan_order" for e in logs)

    async def test_failure_is_logged_with_reason(self):
        world = World()
        with capture_logs() as logs, pytest.raises(OrderCreationFailed):
            await world.place("alice", ("P1", 50))
        failed = next(e for e in logs if e["event"] == "order_workflow.failed")
        assert failed["reason"] == "StockError"
        assert failed["error_code"] == "InsufficientStock"


class TestCreateOrderBestEffortSteps:

    async def test_cart_clear_failure_does_not_fail_order(self):
        world = World()
        await world.fill_cart("alice", P1=1)
        world.carts.fail("replace", ConnectionError("cart store down"))

        with capture_logs() as logs:
            dto = await world.place("alice", ("P1", 1))

        assert (await world.orders.get_by_id(dto.id)) is not None
        assert world.products.stock_of("P1") == 4
        assert any(e["event"] == "order_workflow.cart_clear_failed" for e in logs)

    async def test_notification_failure_is_swallowed(self):
        world = World(sink=RecordingNotificationSink(error=RuntimeError("smtp down")))

        with capture_logs() as logs:
            dto = await world.place("alice", ("P1", 1))
            await world.notifications.drain()

        assert dto.id is not None
        assert any(e["event"] == "notification.failed" for e in logs)

    async def test_slow_notification_does_not_block_response(self):
        world = World(sink=RecordingNotificationSink(delay=0.5))

        dto = await asyncio.wait_for(world.place("alice", ("P1", 1)), timeout=0.25)

        assert world.notifications.pending == 1
        assert world.sink.sent == []

        await world.notifications.drain()
        assert [o.id for o in world.sink.sent] == [dto.id]


class TestConcurrentOrders:

    async def test_second_order_sees_reduced_stock(self):
        world = World()
        first = await world.place("alice", ("P1", 3))
        assert first.total == "$30.00"

        with pytest.raises(OrderCreationFailed) as exc_info:
            await world.place("bob", ("P1", 3))

        assert exc_info.value.error.available == 2
        assert world.products.stock_of("P1") == 2

    async def test_concurrent_orders_never_oversell(self):
        world = World([Product(id="P1", name="Widget", price=Money.of("10.00"), stock=5)])

        results = await asyncio.gather(
            world.place("alice", ("P1", 3)),
            world.place("bob", ("P1", 3)),
            return_exceptions=True,
        )

        placed = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, Exception)]
        assert len(placed) == 1 and len(failed) == 1
        assert isinstance(failed[0].error, InsufficientStock)
        assert world.products.stock_of("P1") == 2
        assert world.orders.count == 1

    async def test_many_concurrent_orders(self):
        world = World([Product(id="P1", name="Widget", price=Money.of("1.00"), stock=17)])

        results = await asyncio.gather(
            *(world.place(f"user{i}", ("P1", 1 + i % 3)) for i in range(20)),
            return_exceptions=True,
        )

        sold = sum(r.items[0].quantity for r in results if not isinstance(r, Exception))
        assert sold <= 17
        assert sold + world.products.stock_of("P1") == 17


class TestErrorDTO:

    async def test_business_failure_names_product(self):
        world = World()
        with pytest.raises(OrderCreationFailed) as exc_info:
            await world.place("alice", ("P2", 9))

        error = ErrorDTO.from_exception(exc_info.value)
        assert error.code == "InsufficientStock"
        assert error.details["product_id"] == "P2"
        assert error.details["available"] == 2
        assert not error.transient

    async def test_infrastructure_failure_is_generic(self):
        world = World()
        world.orders.fail("create", ConnectionError("10.0.0.5 refused"))
        with pytest.raises(OrderCreationFailed) as exc_info:
            await world.place("alice", ("P1", 1))

        error = ErrorDTO.from_exception(exc_info.value)
        assert error.code == "TransientError"
        assert error.transient
        assert "10.0.0.5" not in error.message
