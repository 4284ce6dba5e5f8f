"""JSON-file-backed implementation of ProductRepository (the catalog store)."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Callable

from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import DEFAULT_CURRENCY, Money
from storefront.domain.repository.product_repository import ProductRepository
from storefront.infrastructure.persistence.json_file import JsonCollection


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._collection = JsonCollection(file_path, empty={})

    # --- ProductRepository interface ------------------------------------------

    async def get_by_id(self, product_id: str) -> Product | None:
        raw = (await self._collection.load()).get(product_id)
        return self._to_domain(product_id, raw) if raw is not None else None

    async def list_all(self) -> list[Product]:
        products = await self._collection.load()
        return [self._to_domain(pid, raw) for pid, raw in products.items()]

    async def save(self, product: Product) -> None:
        raw = self._to_raw(product)

        def change(products: dict) -> tuple[bool, None]:
            products[product.id] = raw
            return True, None

        await self._collection.modify(change)

    async def conditional_decrement(self, product_id: str, quantity: int) -> Product | None:
        return await self._update_stock(
            product_id, lambda stock: stock - quantity if stock >= quantity else None
        )

    async def restore_stock(self, product_id: str, quantity: int) -> Product | None:
        return await self._update_stock(product_id, lambda stock: stock + quantity)

    async def adjust_stock(self, product_id: str, delta: int) -> Product | None:
        return await self._update_stock(product_id, lambda stock: max(0, stock + delta))

    async def set_stock(self, product_id: str, value: int) -> Product | None:
        if value < 0:
            return None
        return await self._update_stock(product_id, lambda stock: value)

    # --- Internal helpers -----------------------------------------------------

    async def _update_stock(
        self, product_id: str, compute: Callable[[int], int | None]
    ) -> Product | None:
        """Read, check and write one product's stock as one locked cycle."""

        def change(products: dict) -> tuple[bool, Product | None]:
            raw = products.get(product_id)
            if raw is None:
                return False, None
            new_stock = compute(int(raw.get("stock", 0)))
            if new_stock is None:
                return False, None
            raw["stock"] = new_stock
            return True, self._to_domain(product_id, raw)

        return await self._collection.modify(change)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "name": product.name,
            "price": str(product.price.amount),
            "currency": product.price.currency,
            "stock": product.stock,
            "image": product.image,
            "category_id": product.category_id,
        }

    @staticmethod
    def _to_domain(product_id: str, raw: dict) -> Product:
        return Product(
            id=product_id,
            name=raw["name"],
            price=Money(Decimal(raw["price"]), raw.get("currency", DEFAULT_CURRENCY)),
            stock=int(raw.get("stock", 0)),
            image=raw.get("image"),
            category_id=raw.get("category_id"),
        )
