"""Application service: Show Order use case (query)."""

from __future__ import annotations

from storefront.application.dto import OrderDTO, order_to_dto
from storefront.domain.exceptions import OrderNotFound
from storefront.domain.repository.order_repository import OrderRepository


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    async def handle(self, user_id: str, order_id: int) -> OrderDTO:
        """Return the order only if it belongs to *user_id*.

        Someone else's order is reported as not found, not as forbidden.
        """
        order = await self._order_repo.get_by_id(order_id)
        if order is None or not order.belongs_to(user_id):
            raise OrderNotFound(order_id)
        return order_to_dto(order)
