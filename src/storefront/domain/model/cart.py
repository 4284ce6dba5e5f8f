"""Cart aggregate: a user's pending selection of products.

The cart belongs to the user and holds at most one line per product.
It is only changed through its own operations; repositories replace it
as a whole.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from storefront.domain.exceptions import CartLineNotFound, ValidationError
from storefront.domain.model.value_objects import Quantity

MAX_REMEMBERED_MERGE_TOKENS = 50


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: Quantity


class Cart:
    """Aggregate root for a user's cart.

    Lines are kept in insertion order keyed by product id, so adding a
    product that is already present increases its quantity instead of
    creating a second line.
    """

    def __init__(
        self,
        user_id: str,
        lines: Iterable[CartLine] = (),
        merge_tokens: Iterable[str] = (),
    ) -> None:
        self.user_id = user_id
        self._quantities: dict[str, int] = {}
        for line in lines:
            self._quantities[line.product_id] = (
                self._quantities.get(line.product_id, 0) + line.quantity.value
            )
        self._merge_tokens: list[str] = list(merge_tokens)[-MAX_REMEMBERED_MERGE_TOKENS:]

    # --- Queries ---------------------------------------------------------------

    @property
    def lines(self) -> list[CartLine]:
        return [
            CartLine(product_id=pid, quantity=Quantity(qty))
            for pid, qty in self._quantities.items()
        ]

    @property
    def is_empty(self) -> bool:
        return not self._quantities

    @property
    def merge_tokens(self) -> tuple[str, ...]:
        return tuple(self._merge_tokens)

    def quantity_of(self, product_id: str) -> int:
        return self._quantities.get(product_id, 0)

    def has_absorbed(self, merge_token: str) -> bool:
        return merge_token in self._merge_tokens

    def __len__(self) -> int:
        return len(self._quantities)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cart):
            return NotImplemented
        return self.user_id == other.user_id and self._quantities == other._quantities

    def __repr__(self) -> str:
        return f"Cart(user_id={self.user_id!r}, lines={self._quantities!r})"

    # --- Mutations -------------------------------------------------------------

    def add(self, product_id: str, quantity: int = 1) -> None:
        """Add *quantity* units, summing with an existing line."""
        if not product_id:
            raise ValidationError("Product ID is required")
        qty = Quantity(quantity)
        self._quantities[product_id] = self._quantities.get(product_id, 0) + qty.value

    def update(self, product_id: str, quantity: int) -> None:
        """Set the quantity of an existing line; anything below 1 removes it."""
        if product_id not in self._quantities:
            raise CartLineNotFound(product_id)
        if quantity < 1:
            del self._quantities[product_id]
            return
        self._quantities[product_id] = Quantity(quantity).value

    def remove(self, product_id: str) -> None:
        """Drop a line.  Removing an absent product is a no-op."""
        self._quantities.pop(product_id, None)

    def clear(self) -> None:
        """Empty the cart.  Absorbed merge tokens are kept."""
        self._quantities.clear()

    def remember_merge(self, merge_token: str) -> None:
        if merge_token in self._merge_tokens:
            return
        self._merge_tokens.append(merge_token)
        del self._merge_tokens[:-MAX_REMEMBERED_MERGE_TOKENS]

    @staticmethod
    def empty(user_id: str) -> Cart:
        return Cart(user_id=user_id)
