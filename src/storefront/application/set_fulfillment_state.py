"""Application service: Set Fulfillment State use case.

Administrative move of an order along pendiente -> enviado -> entregado.
The Order aggregate decides whether the move is allowed; only the state
is written back, lines and total stay as they were recorded.
"""

from __future__ import annotations

import structlog

from storefront.application.dto import OrderDTO, order_to_dto
from storefront.domain.exceptions import OrderNotFound
from storefront.domain.model.order import FulfillmentState
from storefront.domain.repository.order_repository import OrderRepository

logger = structlog.get_logger(__name__)


class SetFulfillmentStateHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    async def handle(self, order_id: int, state: FulfillmentState | str) -> OrderDTO:
        new_state = FulfillmentState.parse(state)

        order = await self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)

        advanced = order.advance_to(new_state)
        stored = await self._order_repo.update_fulfillment_state(order_id, advanced.fulfillment_state)
        if stored is None:
            raise OrderNotFound(order_id)

        logger.info(
            "order.fulfillment_state_changed",
            order_id=order_id,
            previous=order.fulfillment_state.value,
            current=stored.fulfillment_state.value,
        )
        return order_to_dto(stored)
