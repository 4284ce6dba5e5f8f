"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from storefront.domain.exceptions import DomainException, OrderCreationFailed
from storefront.domain.model.cart import Cart
from storefront.domain.model.order import Order
from storefront.domain.model.product import Product

# --- Inputs ---------------------------------------------------------------------


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the customer asked for.  Any price they sent is dropped."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class CustomerInfoSpec:
    address: str | None
    city: str | None
    postal_code: str | None
    name: str | None = None
    email: str | None = None

    def as_dict(self) -> dict[str, str | None]:
        return {
            "address": self.address,
            "city": self.city,
            "postal_code": self.postal_code,
            "name": self.name,
            "email": self.email,
        }


# --- Outputs --------------------------------------------------------------------


@dataclass(frozen=True)
class OrderLineDTO:
    product_id: str
    name: str
    quantity: int
    unit_price: str  # formatted, e.g. "$15.00"
    line_total: str
    image: str | None = None


@dataclass(frozen=True)
class OrderDTO:
    id: int
    user_id: str | None
    fulfillment_state: str
    items: list[OrderLineDTO]
    total: str
    created_at: str
    customer: dict[str, str | None]
    payment_status: str | None = None
    external_payment_id: str | None = None
    captured_amount: str | None = None


@dataclass(frozen=True)
class CartLineDTO:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class CartDTO:
    user_id: str
    items: list[CartLineDTO]

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class ProductDTO:
    id: str
    name: str
    price: str
    stock: int
    image: str | None = None


@dataclass(frozen=True)
class ErrorDTO:
    """Structured error returned to callers.

    Business failures name the product or field; infrastructure failures
    only say that a retry may succeed.
    """

    code: str
    message: str
    transient: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_exception(exc: DomainException) -> ErrorDTO:
        stage = None
        if isinstance(exc, OrderCreationFailed):
            stage = exc.stage
            exc = exc.error
        if exc.transient:
            return ErrorDTO(
                code="TransientError",
                message="The service is temporarily unavailable, please retry",
                transient=True,
                details={"stage": stage} if stage else {},
            )
        details: dict[str, Any] = {}
        for attr in ("product_id", "requested", "available", "field", "order_id",
                     "current", "status"):
            if hasattr(exc, attr):
                details[attr] = getattr(exc, attr)
        if stage:
            details["stage"] = stage
        return ErrorDTO(code=exc.code, message=str(exc), details=details)


# --- Mapping --------------------------------------------------------------------


def order_to_dto(order: Order) -> OrderDTO:
    customer = order.customer
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        user_id=order.user_id,
        fulfillment_state=order.fulfillment_state.value,
        items=[
            OrderLineDTO(
                product_id=line.product_id,
                name=line.name,
                quantity=line.quantity.value,
                unit_price=str(line.unit_price),
                line_total=str(line.line_total),
                image=line.image,
            )
            for line in order.lines
        ],
        total=str(order.total),
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
        customer={
            "name": customer.name,
            "email": customer.email,
            "address": customer.address,
            "city": customer.city,
            "postal_code": customer.postal_code,
        },
        payment_status=order.payment_status,
        external_payment_id=order.external_payment_id,
        captured_amount=str(order.captured_amount) if order.captured_amount else None,
    )


def cart_to_dto(cart: Cart) -> CartDTO:
    return CartDTO(
        user_id=cart.user_id,
        items=[
            CartLineDTO(product_id=line.product_id, quantity=line.quantity.value)
            for line in cart.lines
        ],
    )


def product_to_dto(product: Product) -> ProductDTO:
    return ProductDTO(
        id=product.id,
        name=product.name,
        price=str(product.price),
        stock=product.stock,
        image=product.image,
    )
