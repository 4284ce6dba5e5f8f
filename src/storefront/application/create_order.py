"""Application service: Create Order use case.

Runs one order request as a saga over independently committed stores:

    VALIDATING -> RESERVING -> PRICING -> PERSISTING
               -> CLEARING_CART -> NOTIFYING -> DONE

with FAILED reachable from every step up to and including PERSISTING.
Stock reserved in RESERVING is given back if PRICING or PERSISTING
fails.  An order write that timed out but landed anyway is deleted
before the stock goes back.  Once the order is persisted it is the
commit point: clearing the cart and sending the confirmation are best
effort and never undo it.
"""

from __future__ import annotations

import asyncio
import re
from enum import Enum

import structlog

from storefront.application.dto import CustomerInfoSpec, OrderDTO, OrderItemSpec, order_to_dto
from storefront.application.notification_dispatcher import NotificationDispatcher
from storefront.application.schemas import PRODUCT_ID_PATTERN
from storefront.domain.exceptions import (
    DomainException,
    InvalidRequest,
    OrderCreationFailed,
)
from storefront.domain.model.order import CustomerInfo, Order
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.order_builder import OrderBuilder
from storefront.domain.service.stock_reservation_service import (
    Reservation,
    StockReservationService,
)
from storefront.domain.service.store_call import call_store, settle, start_write

logger = structlog.get_logger(__name__)

_PRODUCT_ID_RE = re.compile(PRODUCT_ID_PATTERN)


class WorkflowState(Enum):
    VALIDATING = "Validating"
    RESERVING = "Reserving"
    PRICING = "Pricing"
    PERSISTING = "Persisting"
    CLEARING_CART = "ClearingCart"
    NOTIFYING = "Notifying"
    DONE = "Done"
    FAILED = "Failed"


class CreateOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        reservations: StockReservationService,
        notifications: NotificationDispatcher,
        builder: OrderBuilder | None = None,
        timeout: float | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._cart_repo = cart_repo
        self._reservations = reservations
        self._notifications = notifications
        self._builder = builder or OrderBuilder()
        self._timeout = timeout

    async def handle(
        self,
        user_id: str | None,
        item_specs: list[OrderItemSpec],
        customer: CustomerInfoSpec | CustomerInfo | dict,
    ) -> OrderDTO:
        """Place an order for *user_id*.

        Raises OrderCreationFailed with ``reason`` InvalidRequest,
        StockError, PricingError or PersistenceError.
        """
        log = logger.bind(user_id=user_id)

        stage = self._enter(log, WorkflowState.VALIDATING)
        try:
            lines = self._validate(item_specs)
        except DomainException as exc:
            raise self._failed(log, "InvalidRequest", stage, exc) from exc

        stage = self._enter(log, WorkflowState.RESERVING)
        try:
            reservation = await self._reservations.reserve(lines)
        except DomainException as exc:
            # The reservation service already restored partial decrements.
            raise self._failed(log, "StockError", stage, exc) from exc

        stage = self._enter(log, WorkflowState.PRICING)
        try:
            order = self._builder.build(reservation, self._customer_payload(customer), user_id)
        except DomainException as exc:
            await self._compensate(log, reservation)
            raise self._failed(log, "PricingError", stage, exc) from exc
        except BaseException:
            await self._compensate(log, reservation)
            raise

        stage = self._enter(log, WorkflowState.PERSISTING)
        write = start_write(self._order_repo.create(order))
        try:
            stored = await call_store(
                asyncio.shield(write),
                operation="create_order",
                timeout=self._timeout,
            )
        except DomainException as exc:
            await self._undo_persist(log, write, reservation)
            raise self._failed(log, "PersistenceError", stage, exc) from exc
        except BaseException:
            await self._undo_persist(log, write, reservation)
            raise

        log = log.bind(order_id=stored.id)

        self._enter(log, WorkflowState.CLEARING_CART)
        await self._clear_cart(log, user_id)

        self._enter(log, WorkflowState.NOTIFYING)
        self._notify(log, stored)

        self._enter(log, WorkflowState.DONE)
        log.info("order.created", total=str(stored.total), lines=len(stored.lines))
        return order_to_dto(stored)

    # --- Stages ---------------------------------------------------------------

    @staticmethod
    def _validate(item_specs: list[OrderItemSpec]) -> list[tuple[str, int]]:
        """Check ids and quantities, coalescing repeated products."""
        if not item_specs:
            raise InvalidRequest("Order must contain at least one item")

        quantities: dict[str, int] = {}
        for spec in item_specs:
            if not isinstance(spec.product_id, str) or not _PRODUCT_ID_RE.match(spec.product_id):
                raise InvalidRequest(f"Invalid product ID: {spec.product_id!r}")
            qty = spec.quantity
            if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
                raise InvalidRequest(
                    f"Quantity for product '{spec.product_id}' must be a positive integer"
                )
            quantities[spec.product_id] = quantities.get(spec.product_id, 0) + qty
        return list(quantities.items())

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
            log.warning("order_workflow.cart_clear_failed", error=str(exc))

    def _notify(self, log, order: Order) -> None:
        try:
            self._notifications.dispatch(order)
        except Exception as exc:
            log.error("order_workflow.notify_dispatch_failed", error=str(exc))

    # --- Internal helpers -----------------------------------------------------

    async def _undo_persist(self, log, write, reservation: Reservation) -> None:
        """Compensate a create the caller gave up on, including one that landed late."""
        landed = await settle(write)
        if landed is not None:
            try:
                await call_store(
                    self._order_repo.delete(landed.id), operation="delete_order"
                )
            except DomainException as exc:
                # The order stays recorded, so the stock it holds is kept.
                log.error("order_workflow.orphan_order", order_id=landed.id, error=str(exc))
                return
            log.warning("order_workflow.late_order_deleted", order_id=landed.id)
        await self._compensate(log, reservation)

    async def _compensate(self, log, reservation: Reservation) -> None:
        log.warning(
            "order_workflow.compensating",
            lines=[(line.product_id, line.quantity) for line in reservation.lines],
        )
        await self._reservations.release(reservation)

    @staticmethod
    def _customer_payload(customer: CustomerInfoSpec | CustomerInfo | dict) -> CustomerInfo | dict:
        if isinstance(customer, CustomerInfoSpec):
            return customer.as_dict()
        return customer

    @staticmethod
    def _enter(log, state: WorkflowState) -> WorkflowState:
        log.debug("order_workflow.state", state=state.value)
        return state

    @staticmethod
    def _failed(
        log, reason: str, stage: WorkflowState, exc: DomainException
    ) -> OrderCreationFailed:
        log.warning(
            "order_workflow.failed",
            state=WorkflowState.FAILED.value,
            reason=reason,
            stage=stage.value,
            error_code=exc.code,
            error=str(exc),
        )
        return OrderCreationFailed(reason=reason, stage=stage.value, error=exc)
