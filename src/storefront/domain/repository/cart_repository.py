"""Abstract repository for the Cart aggregate.

Carts are stored per user and always replaced as a whole; concurrent
writers for the same user resolve as last-write-wins.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.cart import Cart


class CartRepository(ABC):

    @abstractmethod
    async def get(self, user_id: str) -> Cart:
        """Return the user's cart; an empty cart if none was stored yet."""

    @abstractmethod
    async def replace(self, user_id: str, cart: Cart) -> None:
        """Store *cart* as the user's whole cart."""
