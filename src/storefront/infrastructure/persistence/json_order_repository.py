"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from storefront.domain.model.order import CustomerInfo, FulfillmentState, Order, OrderLine
from storefront.domain.model.value_objects import DEFAULT_CURRENCY, Money, Quantity
from storefront.domain.repository.order_repository import OrderRepository
from storefront.infrastructure.persistence.json_file import JsonCollection


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._collection = JsonCollection(file_path, empty=[])

    # --- OrderRepository interface --------------------------------------------

    async def create(self, order: Order) -> Order:
        def change(orders: list) -> tuple[bool, Order]:
            return True, self._append(orders, order)

        return await self._collection.modify(change)

    async def create_for_payment(self, order: Order) -> tuple[Order, bool]:
        def change(orders: list) -> tuple[bool, tuple[Order, bool]]:
            for raw in orders:
                if (
                    order.external_payment_id is not None
                    and raw.get("external_payment_id") == order.external_payment_id
                ):
                    return False, (self._to_domain(raw), False)
            return True, (self._append(orders, order), True)

        return await self._collection.modify(change)

    async def delete(self, order_id: int) -> bool:
        def change(orders: list) -> tuple[bool, bool]:
            kept = [raw for raw in orders if raw["id"] != order_id]
            if len(kept) == len(orders):
                return False, False
            orders[:] = kept
            return True, True

        return await self._collection.modify(change)

    async def get_by_id(self, order_id: int) -> Order | None:
        for raw in await self._collection.load():
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    async def get_by_external_payment_id(self, external_payment_id: str) -> Order | None:
        for raw in await self._collection.load():
            if raw.get("external_payment_id") == external_payment_id:
                return self._to_domain(raw)
        return None

    async def list_by_user(self, user_id: str) -> list[Order]:
        orders = [
            self._to_domain(raw)
            for raw in await self._collection.load()
            if raw.get("user_id") == user_id
        ]
        return self._newest_first(orders)

    async def list_all(self) -> list[Order]:
        return self._newest_first(
            [self._to_domain(raw) for raw in await self._collection.load()]
        )

    async def update_fulfillment_state(
        self, order_id: int, state: FulfillmentState
    ) -> Order | None:
        def change(orders: list) -> tuple[bool, Order | None]:
            for raw in orders:
                if raw["id"] == order_id:
                    raw["fulfillment_state"] = state.value
                    return True, self._to_domain(raw)
            return False, None

        return await self._collection.modify(change)

    def _append(self, orders: list, order: Order) -> Order:
        next_id = max((o["id"] for o in orders), default=0) + 1
        stored = order.with_id(next_id)
        orders.append(self._to_raw(stored))
        return stored

    @staticmethod
    def _newest_first(orders: list[Order]) -> list[Order]:
        return sorted(orders, key=lambda o: (o.created_at, o.id or 0), reverse=True)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        customer = order.customer
        return {
            "id": order.id,
            "user_id": order.user_id,
            "fulfillment_state": order.fulfillment_state.value,
            "created_at": order.created_at.isoformat(),
            "external_payment_id": order.external_payment_id,
            "payment_status": order.payment_status,
            "captured_amount": (
                str(order.captured_amount.amount) if order.captured_amount else None
            ),
            "captured_currency": (
                order.captured_amount.currency if order.captured_amount else None
            ),
            "customer": {
                "name": customer.name,
                "email": customer.email,
                "address": customer.address,
                "city": customer.city,
                "postal_code": customer.postal_code,
            },
            "lines": [
                {
                    "product_id": line.product_id,
                    "name": line.name,
                    "unit_price": str(line.unit_price.amount),
                    "currency": line.unit_price.currency,
                    "quantity": line.quantity.value,
                    "image": line.image,
                }
                for line in order.lines
            ],
            # Stored for readers of the raw document; recomputed on load.
            "total": str(order.total.amount),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        lines = tuple(
            OrderLine(
                product_id=line["product_id"],
                name=line["name"],
                unit_price=Money(Decimal(line["unit_price"]), line.get("currency", DEFAULT_CURRENCY)),
                quantity=Quantity(line["quantity"]),
                image=line.get("image"),
            )
            for line in raw["lines"]
        )
        # Reconstitution: the stored snapshot is trusted as recorded.
        customer = CustomerInfo(**raw["customer"])
        captured = raw.get("captured_amount")
        return Order(
            id=raw["id"],
            user_id=raw.get("user_id"),
            lines=lines,
            customer=customer,
            fulfillment_state=FulfillmentState(raw["fulfillment_state"]),
            created_at=datetime.fromisoformat(raw["created_at"]),
            external_payment_id=raw.get("external_payment_id"),
            payment_status=raw.get("payment_status"),
            captured_amount=(
                Money(Decimal(captured), raw.get("captured_currency") or DEFAULT_CURRENCY)
                if captured is not None
                else None
            ),
        )
