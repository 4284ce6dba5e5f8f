"""Product aggregate, as seen by the order pipeline.

Products are owned by catalog management.  The pipeline reads them and
changes exactly one field, ``stock``, and only through the catalog
store's atomic primitives (see ``ProductRepository``).
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.value_objects import Money


@dataclass
class Product:
    """A catalog product.

    Invariant: ``stock`` is never negative.
    """

    id: str
    name: str
    price: Money
    stock: int = 0
    image: str | None = None
    category_id: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.stock, bool) or not isinstance(self.stock, int):
            raise ValidationError(f"Stock must be an integer, got {self.stock!r}")
        if self.stock < 0:
            raise ValidationError(
                f"Stock for product '{self.id}' cannot be negative, got {self.stock}"
            )

    def update_price(self, new_price: Money) -> None:
        """Change the list price.

        Orders already placed keep the price captured in their lines.
        """
        if new_price.amount < 0:
            raise ValidationError("Product price cannot be negative")
        self.price = new_price

    def has_stock_for(self, quantity: int) -> bool:
        return quantity <= self.stock
