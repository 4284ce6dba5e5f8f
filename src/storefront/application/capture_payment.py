"""Application service: Capture External Payment use case.

Second entry into order creation, for payments the provider has already
captured.  The money is taken, so the order is recorded first and stock
is consumed afterwards on a best-effort basis: short stock is clamped to
zero and logged instead of failing the request.

Calling this twice for the same provider order returns the order
recorded the first time, without touching stock or the cart again.
The store inserts at most one order per payment ID, so this also holds
for concurrent callbacks.
"""

from __future__ import annotations

import asyncio

import structlog

from storefront.application.dto import CustomerInfoSpec, OrderDTO, OrderItemSpec, order_to_dto
from storefront.application.notification_dispatcher import NotificationDispatcher
from storefront.domain.exceptions import (
    DomainException,
    InvalidRequest,
    PaymentNotCompleted,
    ProductNotFound,
)
from storefront.domain.model.order import Order
from storefront.domain.model.payment import PaymentConfirmation
from storefront.domain.model.product import Product
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.product_repository import ProductRepository
from storefront.domain.service.order_builder import OrderBuilder
from storefront.domain.service.stock_reservation_service import StockReservationService
from storefront.domain.service.store_call import call_store, settle, start_write

logger = structlog.get_logger(__name__)

# Used when the provider callback carries no shipping address.
PLACEHOLDER_ADDRESS = "Sin dirección"
PLACEHOLDER_CITY = "Sin ciudad"
PLACEHOLDER_POSTAL_CODE = "00000"


class CapturePaymentHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        cart_repo: CartRepository,
        reservations: StockReservationService,
        notifications: NotificationDispatcher,
        builder: OrderBuilder | None = None,
        timeout: float | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._product_repo = product_repo
        self._cart_repo = cart_repo
        self._reservations = reservations
        self._notifications = notifications
        self._builder = builder or OrderBuilder()
        self._timeout = timeout

    async def handle(
        self,
        confirmation: PaymentConfirmation,
        item_specs: list[OrderItemSpec],
        customer: CustomerInfoSpec | None = None,
        user_id: str | None = None,
    ) -> OrderDTO:
        log = logger.bind(
            external_payment_id=confirmation.external_order_id, user_id=user_id
        )

        if not confirmation.is_completed:
            log.warning("capture.not_completed", status=confirmation.status)
            raise PaymentNotCompleted(confirmation.status)
        if not item_specs:
            raise InvalidRequest("Captured order must list at least one item")

        existing = await call_store(
            self._order_repo.get_by_external_payment_id(confirmation.external_order_id),
            operation="get_order_by_payment",
            timeout=self._timeout,
        )
        if existing is not None:
            log.info("capture.already_recorded", order_id=existing.id)
            return order_to_dto(existing)

        priced = await self._resolve_products(log, item_specs)
        order = self._builder.build_captured(
            products=priced,
            customer=self._customer_with_placeholders(customer),
            user_id=user_id,
            external_payment_id=confirmation.external_order_id,
            payment_status=confirmation.status,
            captured_amount=confirmation.captured_amount,
        )
        if not order.total.same_value(confirmation.captured_amount):
            log.warning(
                "capture.amount_mismatch",
                captured=str(confirmation.captured_amount),
                computed=str(order.total),
            )

        stored, created = await self._record(log, order)
        log = log.bind(order_id=stored.id)
        if not created:
            # A concurrent callback for the same payment recorded it first.
            log.info("capture.already_recorded")
            return order_to_dto(stored)
        log.info("capture.order_recorded", total=str(stored.total))

        await self._clear_cart(log, user_id)
        await self._reservations.consume_best_effort(
            [(line.product_id, line.quantity.value) for line in stored.lines]
        )
        try:
            self._notifications.dispatch(stored)
        except Exception as exc:
            log.error("capture.notify_dispatch_failed", error=str(exc))

        return order_to_dto(stored)

    # --- Internal helpers -----------------------------------------------------

    async def _record(self, log, order: Order) -> tuple[Order, bool]:
        """Insert the order once per payment ID.

        The payment is already captured, so a write that lands after the
        deadline still counts as recorded.
        """
        write = start_write(self._order_repo.create_for_payment(order))
        try:
            return await call_store(
                asyncio.shield(write), operation="create_order", timeout=self._timeout
            )
        except DomainException:
            landed = await settle(write)
            if landed is None:
                raise
            log.warning("capture.order_recorded_late")
            return landed

    async def _resolve_products(
        self, log, item_specs: list[OrderItemSpec]
    ) -> list[tuple[Product, int]]:
        """Price lines from the catalog, skipping products that no longer exist."""
        quantities: dict[str, int] = {}
        for spec in item_specs:
            if spec.quantity <= 0:
                raise InvalidRequest(
                    f"Quantity for product '{spec.product_id}' must be a positive integer"
                )
            quantities[spec.product_id] = quantities.get(spec.product_id, 0) + spec.quantity

        resolved: list[tuple[Product, int]] = []
        for product_id, quantity in quantities.items():
            product = await call_store(
                self._product_repo.get_by_id(product_id),
                operation="get_product",
                timeout=self._timeout,
            )
            if product is None:
                log.warning("capture.product_missing", product_id=product_id)
                continue
            resolved.append((product, quantity))

        if not resolved:
            raise ProductNotFound(next(iter(quantities)))
        return resolved

    async def _clear_cart(self, log, user_id: str | None) -> None:
        if user_id is None:
            return
        try:
            cart = await call_store(
                self._cart_repo.get(user_id), operation="get_cart", timeout=self._timeout
            )
            cart.clear()
            await call_store(
                self._cart_repo.replace(user_id, cart),
                operation="replace_cart",
                timeout=self._timeout,
            )
        except DomainException as exc:
            log.warning("capture.cart_clear_failed", error=str(exc))

    @staticmethod
    def _customer_with_placeholders(customer: CustomerInfoSpec | None) -> dict:
        data = customer.as_dict() if customer is not None else {}
        return {
            "name": data.get("name"),
            "email": data.get("email"),
            "address": (data.get("address") or "").strip() or PLACEHOLDER_ADDRESS,
            "city": (data.get("city") or "").strip() or PLACEHOLDER_CITY,
            "postal_code": (data.get("postal_code") or "").strip() or PLACEHOLDER_POSTAL_CODE,
        }
