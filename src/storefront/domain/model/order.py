"""Order aggregate: the durable record of a purchase.

An Order is created exactly once by the order workflow from a priced
snapshot of the catalog.  After creation only its fulfillment state may
change, and only forward along the transition table below.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

from storefront.domain.exceptions import (
    InvalidCustomerInfo,
    InvalidStateTransition,
    ValidationError,
)
from storefront.domain.model.value_objects import DEFAULT_CURRENCY, Money, Quantity


class FulfillmentState(Enum):
    PENDING = "pendiente"
    SHIPPED = "enviado"
    DELIVERED = "entregado"

    @classmethod
    def parse(cls, raw: str | FulfillmentState) -> FulfillmentState:
        """Accept either the stored value (``enviado``) or the name (``SHIPPED``)."""
        if isinstance(raw, FulfillmentState):
            return raw
        text = str(raw).strip()
        for state in cls:
            if text == state.value or text.upper() == state.name:
                return state
        raise ValidationError(
            f"Unknown fulfillment state {raw!r}; expected one of "
            + ", ".join(s.value for s in cls)
        )


# Strictly forward; anything not listed is rejected.
FULFILLMENT_TRANSITIONS: dict[FulfillmentState, frozenset[FulfillmentState]] = {
    FulfillmentState.PENDING: frozenset({FulfillmentState.SHIPPED}),
    FulfillmentState.SHIPPED: frozenset({FulfillmentState.DELIVERED}),
    FulfillmentState.DELIVERED: frozenset(),
}


@dataclass(frozen=True)
class CustomerInfo:
    """Shipping and contact snapshot taken when the order is placed."""

    address: str
    city: str
    postal_code: str
    name: str | None = None
    email: str | None = None

    @staticmethod
    def create(
        address: str | None,
        city: str | None,
        postal_code: str | None,
        name: str | None = None,
        email: str | None = None,
    ) -> CustomerInfo:
        """Strip whitespace and require address, city and postal code."""
        values = {
            "address": (address or "").strip(),
            "city": (city or "").strip(),
            "postal_code": (postal_code or "").strip(),
        }
        for field_name, value in values.items():
            if not value:
                raise InvalidCustomerInfo(field_name)
        return CustomerInfo(
            name=(name or "").strip() or None,
            email=(email or "").strip() or None,
            **values,
        )


@dataclass(frozen=True)
class OrderLine:
    """Price snapshot of one product at order-creation time.

    Never re-derived from the catalog: later price or name edits do not
    reach placed orders.
    """

    product_id: str
    name: str
    unit_price: Money
    quantity: Quantity
    image: str | None = None

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass(frozen=True)
class Order:
    """Aggregate root for placed orders.

    Use ``Order.create()`` for new orders.  The plain constructor is what
    repositories use to reconstitute stored orders.

    ``user_id`` is None for guest orders initiated by the payment
    provider; ``external_payment_id``/``payment_status`` are set only on
    the capture path.
    """

    id: int | None
    user_id: str | None
    lines: tuple[OrderLine, ...]
    customer: CustomerInfo
    fulfillment_state: FulfillmentState = FulfillmentState.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    external_payment_id: str | None = None
    payment_status: str | None = None
    captured_amount: Money | None = None

    # --- Factory ----------------------------------------------------------------

    @staticmethod
    def create(
        user_id: str | None,
        lines: list[OrderLine] | tuple[OrderLine, ...],
        customer: CustomerInfo,
        external_payment_id: str | None = None,
        payment_status: str | None = None,
        captured_amount: Money | None = None,
    ) -> Order:
        if not lines:
            raise ValidationError("Order must contain at least one line")
        seen: set[str] = set()
        for line in lines:
            if line.product_id in seen:
                raise ValidationError(
                    f"Product '{line.product_id}' appears twice in the order"
                )
            seen.add(line.product_id)
        return Order(
            id=None,
            user_id=user_id,
            lines=tuple(lines),
            customer=customer,
            external_payment_id=external_payment_id,
            payment_status=payment_status,
            captured_amount=captured_amount,
        )

    # --- Fulfillment ------------------------------------------------------------

    def can_advance_to(self, state: FulfillmentState) -> bool:
        return state in FULFILLMENT_TRANSITIONS[self.fulfillment_state]

    def advance_to(self, state: FulfillmentState) -> Order:
        """Return a copy of this order in *state*.

        Raises InvalidStateTransition for backward, repeated or skipped
        moves.  Lines and total are carried over untouched.
        """
        if not self.can_advance_to(state):
            raise InvalidStateTransition(self.fulfillment_state.value, state.value)
        return replace(self, fulfillment_state=state)

    def with_id(self, order_id: int) -> Order:
        return replace(self, id=order_id)

    # --- Computed properties ----------------------------------------------------

    @property
    def total(self) -> Money:
        currency = self.lines[0].unit_price.currency if self.lines else DEFAULT_CURRENCY
        return Money.total_of((line.line_total for line in self.lines), currency)

    @property
    def item_count(self) -> int:
        return sum(line.quantity.value for line in self.lines)

    def belongs_to(self, user_id: str) -> bool:
        return self.user_id is not None and self.user_id == user_id
