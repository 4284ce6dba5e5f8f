"""Application services: everyday cart edits.

Each handler loads the user's cart, applies one aggregate operation and
stores the cart back whole.
"""

from __future__ import annotations

from storefront.application.dto import CartDTO, cart_to_dto
from storefront.domain.exceptions import ProductNotFound
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.product_repository import ProductRepository


class ShowCartHandler:

    def __init__(self, cart_repo: CartRepository) -> None:
        self._cart_repo = cart_repo

    async def handle(self, user_id: str) -> CartDTO:
        return cart_to_dto(await self._cart_repo.get(user_id))


class AddToCartHandler:

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository) -> None:
        self._cart_repo = cart_repo
        self._product_repo = product_repo

    async def handle(self, user_id: str, product_id: str, quantity: int = 1) -> CartDTO:
        """Add to the cart; a product already there has its quantity increased."""
        if await self._product_repo.get_by_id(product_id) is None:
            raise ProductNotFound(product_id)
        cart = await self._cart_repo.get(user_id)
        cart.add(product_id, quantity)
        await self._cart_repo.replace(user_id, cart)
        return cart_to_dto(cart)


class UpdateCartLineHandler:

    def __init__(self, cart_repo: CartRepository) -> None:
        self._cart_repo = cart_repo

    async def handle(self, user_id: str, product_id: str, quantity: int) -> CartDTO:
        """Set a line's quantity; below 1 removes the line."""
        cart = await self._cart_repo.get(user_id)
        cart.update(product_id, quantity)
        await self._cart_repo.replace(user_id, cart)
        return cart_to_dto(cart)


class RemoveFromCartHandler:

    def __init__(self, cart_repo: CartRepository) -> None:
        self._cart_repo = cart_repo

    async def handle(self, user_id: str, product_id: str) -> CartDTO:
        cart = await self._cart_repo.get(user_id)
        cart.remove(product_id)
        await self._cart_repo.replace(user_id, cart)
        return cart_to_dto(cart)


class ClearCartHandler:

    def __init__(self, cart_repo: CartRepository) -> None:
        self._cart_repo = cart_repo

    async def handle(self, user_id: str) -> CartDTO:
        cart = await self._cart_repo.get(user_id)
        cart.clear()
        await self._cart_repo.replace(user_id, cart)
        return cart_to_dto(cart)
