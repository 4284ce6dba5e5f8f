"""JSON-file-backed implementation of CartRepository."""

from __future__ import annotations

from pathlib import Path

from storefront.domain.model.cart import Cart, CartLine
from storefront.domain.model.value_objects import Quantity
from storefront.domain.repository.cart_repository import CartRepository
from storefront.infrastructure.persistence.json_file import JsonCollection


class JsonCartRepository(CartRepository):

    def __init__(self, file_path: Path) -> None:
        self._collection = JsonCollection(file_path, empty={})

    async def get(self, user_id: str) -> Cart:
        raw = (await self._collection.load()).get(user_id)
        if raw is None:
            return Cart.empty(user_id)
        return self._to_domain(user_id, raw)

    async def replace(self, user_id: str, cart: Cart) -> None:
        raw = self._to_raw(cart)

        def change(carts: dict) -> tuple[bool, None]:
            carts[user_id] = raw
            return True, None

        await self._collection.modify(change)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(cart: Cart) -> dict:
        return {
            "lines": [
                {"product_id": line.product_id, "quantity": line.quantity.value}
                for line in cart.lines
            ],
            "merge_tokens": list(cart.merge_tokens),
        }

    @staticmethod
    def _to_domain(user_id: str, raw: dict) -> Cart:
        return Cart(
            user_id=user_id,
            lines=[
                CartLine(product_id=line["product_id"], quantity=Quantity(line["quantity"]))
                for line in raw.get("lines", [])
            ],
            merge_tokens=raw.get("merge_tokens", []),
        )
