"""Domain service: Stock Reservation.

Reserves stock for every line of an order attempt, or for none of them.

Each line is taken with the catalog store's atomic conditional
decrement, so two concurrent requests can never both pass a stale stock
check.  Lines are applied one after another; if a later line fails, the
lines already applied are restored (in reverse order) before the error
propagates.  The store offers no multi-document transaction, so this
compensation is what makes the reservation all-or-nothing.  A decrement
whose call timed out or was cancelled is waited for, and restored as
well if it landed.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from storefront.domain.exceptions import (
    InsufficientStock,
    InvalidRequest,
    PersistenceError,
    ProductNotFound,
)
from storefront.domain.model.product import Product
from storefront.domain.repository.product_repository import ProductRepository
from storefront.domain.service.store_call import call_store, settle, start_write

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ReservedLine:
    """One applied decrement plus the product snapshot taken by that write."""

    product: Product
    quantity: int

    @property
    def product_id(self) -> str:
        return self.product.id


@dataclass(frozen=True)
class Reservation:
    lines: tuple[ReservedLine, ...]

    @property
    def products(self) -> list[Product]:
        return [line.product for line in self.lines]

    def quantity_of(self, product_id: str) -> int:
        return sum(line.quantity for line in self.lines if line.product_id == product_id)


class StockReservationService:

    def __init__(
        self,
        product_repo: ProductRepository,
        timeout: float | None = None,
    ) -> None:
        self._product_repo = product_repo
        self._timeout = timeout

    async def reserve(self, lines: list[tuple[str, int]]) -> Reservation:
        """Decrement stock for every ``(product_id, quantity)`` line.

        Raises InvalidRequest (quantity <= 0), ProductNotFound,
        InsufficientStock or PersistenceError.  Whatever is raised, no
        decrement made by this call is left behind.
        """
        for product_id, quantity in lines:
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise InvalidRequest(
                    f"Quantity for product '{product_id}' must be a positive integer, "
                    f"got {quantity!r}"
                )

        applied: list[ReservedLine] = []
        try:
            for product_id, quantity in lines:
                await self._reserve_line(product_id, quantity, applied)
        except BaseException:
            # Also runs on timeout and on task cancellation.
            await self._compensate(applied)
            raise

        logger.info(
            "stock.reserved",
            lines=[(line.product_id, line.quantity) for line in applied],
        )
        return Reservation(lines=tuple(applied))

    async def release(self, reservation: Reservation) -> None:
        """Give back every line of a reservation (compensating action)."""
        await self._compensate(list(reservation.lines))

    async def consume_best_effort(self, lines: list[tuple[str, int]]) -> None:
        """Decrement stock for an order that is already paid for.

        Nothing here may fail the caller: missing products and short stock
        are logged, and short stock is clamped to zero rather than
        rejected.
        """
        for product_id, quantity in lines:
            try:
                updated = await call_store(
                    self._product_repo.conditional_decrement(product_id, quantity),
                    operation="conditional_decrement",
                    timeout=self._timeout,
                )
                if updated is not None:
                    continue

                clamped = await call_store(
                    self._product_repo.adjust_stock(product_id, -quantity),
                    operation="adjust_stock",
                    timeout=self._timeout,
                )
                if clamped is None:
                    logger.warning("stock.consume.product_missing", product_id=product_id)
                else:
                    logger.warning(
                        "stock.consume.insufficient",
                        product_id=product_id,
                        requested=quantity,
                        stock_after=clamped.stock,
                    )
            except PersistenceError as exc:
                logger.error(
                    "stock.consume.failed",
                    product_id=product_id,
                    quantity=quantity,
                    error=str(exc),
                )

    # --- Internal helpers -----------------------------------------------------

    async def _reserve_line(
        self, product_id: str, quantity: int, applied: list[ReservedLine]
    ) -> None:
        product = await call_store(
            self._product_repo.get_by_id(product_id),
            operation="get_product",
            timeout=self._timeout,
        )
        if product is None:
            raise ProductNotFound(product_id)
        if not product.has_stock_for(quantity):
            raise InsufficientStock(product_id, quantity, product.stock)

        # The read above is only a fast path; this write is the real check.
        write = start_write(self._product_repo.conditional_decrement(product_id, quantity))
        try:
            updated = await call_store(
                asyncio.shield(write),
                operation="conditional_decrement",
                timeout=self._timeout,
            )
        except BaseException:
            # A timed-out or cancelled decrement may still land.
            landed = await settle(write)
            if landed is not None:
                logger.warning(
                    "stock.decrement.landed_late", product_id=product_id, quantity=quantity
                )
                applied.append(ReservedLine(product=landed, quantity=quantity))
            raise
        if updated is None:
            current = await call_store(
                self._product_repo.get_by_id(product_id),
                operation="get_product",
                timeout=self._timeout,
            )
            if current is None:
                raise ProductNotFound(product_id)
            raise InsufficientStock(product_id, quantity, current.stock)
        applied.append(ReservedLine(product=updated, quantity=quantity))

    async def _compensate(self, applied: list[ReservedLine]) -> None:
        for line in reversed(applied):
            try:
                # Compensating writes run without a deadline.
                await call_store(
                    self._product_repo.restore_stock(line.product_id, line.quantity),
                    operation="restore_stock",
                )
            except PersistenceError as exc:
                logger.error(
                    "stock.restore.failed",
                    product_id=line.product_id,
                    quantity=line.quantity,
                    error=str(exc),
                )
            else:
                logger.info(
                    "stock.restored",
                    product_id=line.product_id,
                    quantity=line.quantity,
                )
