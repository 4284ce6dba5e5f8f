"""Application service: Merge Cart use case.

Runs when a client resumes a session holding a locally cached cart.
The merged cart replaces the stored one as a whole.

Merging adds quantities, so replaying the same client snapshot would
count it twice.  A client that sends a ``merge_token`` gets processed-once
semantics: a token the cart has already absorbed turns the call into a
read of the current cart.
"""

from __future__ import annotations

import structlog

from storefront.application.dto import CartDTO, cart_to_dto
from storefront.domain.model.cart import CartLine
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.service.cart_merge_service import CartMergeService

logger = structlog.get_logger(__name__)


class MergeCartHandler:

    def __init__(
        self,
        cart_repo: CartRepository,
        merge_service: CartMergeService | None = None,
    ) -> None:
        self._cart_repo = cart_repo
        self._merge_service = merge_service or CartMergeService()

    async def handle(
        self,
        user_id: str,
        client_lines: list[CartLine],
        merge_token: str | None = None,
    ) -> CartDTO:
        server_cart = await self._cart_repo.get(user_id)

        if merge_token is not None and server_cart.has_absorbed(merge_token):
            logger.info("cart.merge_skipped", user_id=user_id, merge_token=merge_token)
            return cart_to_dto(server_cart)

        merged = self._merge_service.merge(server_cart, client_lines)
        if merge_token is not None:
            merged.remember_merge(merge_token)

        await self._cart_repo.replace(user_id, merged)
        logger.info(
            "cart.merged",
            user_id=user_id,
            client_lines=len(client_lines),
            lines=len(merged),
        )
        return cart_to_dto(merged)
