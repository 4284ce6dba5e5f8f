"""Application service: Adjust Stock use case.

Restocking and manual corrections.  Both go through the catalog store's
atomic primitives, never through a read-then-save of the product.
"""

from __future__ import annotations

import structlog

from storefront.application.dto import ProductDTO, product_to_dto
from storefront.domain.exceptions import ProductNotFound, ValidationError
from storefront.domain.repository.product_repository import ProductRepository

logger = structlog.get_logger(__name__)


class AdjustStockHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    async def handle(self, product_id: str, delta: int) -> ProductDTO:
        """Apply ``stock = max(0, stock + delta)``."""
        product = await self._product_repo.adjust_stock(product_id, delta)
        if product is None:
            raise ProductNotFound(product_id)
        logger.info("stock.adjusted", product_id=product_id, delta=delta, stock=product.stock)
        return product_to_dto(product)

    async def set_absolute(self, product_id: str, value: int) -> ProductDTO:
        if value < 0:
            raise ValidationError("Stock cannot be negative")
        product = await self._product_repo.set_stock(product_id, value)
        if product is None:
            raise ProductNotFound(product_id)
        logger.info("stock.set", product_id=product_id, stock=product.stock)
        return product_to_dto(product)
