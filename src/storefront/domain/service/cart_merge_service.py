"""Domain service: Cart Merge.

Reconciles a cart the client kept locally (e.g. while logged out) with
the cart stored on the server.  Quantities for the same product are
added, never overwritten, and the result replaces the stored cart as a
whole.  Because it adds, merging the same client snapshot twice counts
it twice; ``MergeCartHandler`` guards against that with merge tokens.
"""

from __future__ import annotations

from storefront.domain.model.cart import Cart, CartLine


class CartMergeService:

    def merge(self, server_cart: Cart, client_lines: list[CartLine]) -> Cart:
        """Return a new cart holding server lines plus client lines.

        Keyed by product id, so the result does not depend on the order
        in which client lines arrive.
        """
        quantities: dict[str, int] = {
            line.product_id: line.quantity.value for line in server_cart.lines
        }
        for line in client_lines:
            quantities[line.product_id] = (
                quantities.get(line.product_id, 0) + line.quantity.value
            )

        merged = Cart(user_id=server_cart.user_id, merge_tokens=server_cart.merge_tokens)
        for product_id, quantity in quantities.items():
            merged.add(product_id, quantity)
        return merged
