"""Application service: Add Product use case.

Minimal catalog entry point so the order pipeline can be driven end to
end; full catalog management lives outside this service.
"""

from __future__ import annotations

import re

from storefront.application.dto import ProductDTO, product_to_dto
from storefront.application.schemas import PRODUCT_ID_PATTERN
from storefront.domain.exceptions import ValidationError
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.product_repository import ProductRepository


class AddProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    async def handle(
        self,
        name: str,
        price: str,
        stock: int = 0,
        product_id: str | None = None,
        image: str | None = None,
    ) -> ProductDTO:
        if not name or not name.strip():
            raise ValidationError("Product name is required")

        products = await self._product_repo.list_all()
        if product_id is None:
            # Auto-assign the next numeric ID
            numeric = [int(p.id) for p in products if p.id.isdigit()]
            product_id = str(max(numeric) + 1) if numeric else "1"
        elif not re.match(PRODUCT_ID_PATTERN, product_id):
            raise ValidationError(f"Invalid product ID: {product_id!r}")
        elif any(p.id == product_id for p in products):
            raise ValidationError(f"Product '{product_id}' already exists")

        product = Product(
            id=product_id,
            name=name.strip(),
            price=Money.of(price),
            stock=stock,
            image=image,
        )
        await self._product_repo.save(product)
        return product_to_dto(product)
