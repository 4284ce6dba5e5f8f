"""Application services: order history queries."""

from __future__ import annotations

from storefront.application.dto import OrderDTO, order_to_dto
from storefront.domain.repository.order_repository import OrderRepository


class ListMyOrdersHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    async def handle(self, user_id: str) -> list[OrderDTO]:
        """A user's own orders, newest first."""
        return [order_to_dto(o) for o in await self._order_repo.list_by_user(user_id)]


class ListAllOrdersHandler:
    """Administrative listing of every order, newest first."""

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    async def handle(self) -> list[OrderDTO]:
        return [order_to_dto(o) for o in await self._order_repo.list_all()]
