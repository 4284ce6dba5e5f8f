"""Abstract repository for the Product aggregate (the catalog store).

Defined in the domain layer so the domain never depends on
infrastructure.  Stock is only ever written through the atomic
primitives below; a plain read-then-``save`` must not be used to change
stock, since two concurrent writers could both pass a stale check.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    async def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    async def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    async def save(self, product: Product) -> None:
        """Persist a new or updated product (catalog management only)."""

    @abstractmethod
    async def conditional_decrement(self, product_id: str, quantity: int) -> Product | None:
        """Atomically apply ``stock -= quantity`` only if ``stock >= quantity``.

        Returns the product as stored after the write, or None when the
        product is missing or has too little stock (nothing is written).
        """

    @abstractmethod
    async def restore_stock(self, product_id: str, quantity: int) -> Product | None:
        """Atomically apply ``stock += quantity``; compensates a decrement."""

    @abstractmethod
    async def adjust_stock(self, product_id: str, delta: int) -> Product | None:
        """Atomically apply ``stock = max(0, stock + delta)``."""

    @abstractmethod
    async def set_stock(self, product_id: str, value: int) -> Product | None:
        """Overwrite stock with a non-negative absolute value."""
