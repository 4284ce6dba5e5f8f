"""Request schemas validated at the boundary, before anything reaches the core.

Inbound bodies are loosely shaped JSON; these pydantic models pin them
down and ``parse_request`` turns every schema violation into a single
``InvalidRequest``.  Unknown fields (including any client-supplied
price) are ignored.  The original field names used by the storefront
frontend (``productoId``, ``cantidad``, ``direccion`` ...) are accepted
as aliases.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, TypeVar

import pydantic
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from storefront.application.dto import CustomerInfoSpec, OrderItemSpec
from storefront.domain.exceptions import InvalidRequest, ValidationError
from storefront.domain.model.cart import CartLine
from storefront.domain.model.order import FulfillmentState
from storefront.domain.model.payment import PaymentConfirmation
from storefront.domain.model.value_objects import Money, Quantity

PRODUCT_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"

ModelT = TypeVar("ModelT", bound=BaseModel)


def normalize_quantity(value: Any) -> int:
    """Quantities that are missing, non-numeric or below 1 become 1.

    Fractions are truncated toward zero before the check.
    """
    if isinstance(value, bool) or value is None:
        return 1
    try:
        number = int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError, OverflowError):
        return 1
    return number if number > 0 else 1


class _RequestModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)


class OrderItemRequest(_RequestModel):
    product_id: str = Field(
        pattern=PRODUCT_ID_PATTERN,
        validation_alias=AliasChoices("product_id", "productoId", "_id"),
    )
    quantity: int = Field(
        default=1, validation_alias=AliasChoices("quantity", "cantidad")
    )

    @field_validator("product_id", mode="before")
    @classmethod
    def _unwrap_product_ref(cls, value: Any) -> Any:
        # Populated references arrive as {"_id": "..."}.
        if isinstance(value, dict):
            return value.get("_id") or value.get("id")
        return value

    @field_validator("quantity", mode="before")
    @classmethod
    def _normalize_quantity(cls, value: Any) -> int:
        return normalize_quantity(value)

    def to_spec(self) -> OrderItemSpec:
        return OrderItemSpec(product_id=self.product_id, quantity=self.quantity)

    def to_cart_line(self) -> CartLine:
        return CartLine(product_id=self.product_id, quantity=Quantity(self.quantity))


class CustomerInfoRequest(_RequestModel):
    address: str | None = Field(
        default=None, validation_alias=AliasChoices("address", "direccion")
    )
    city: str | None = Field(default=None, validation_alias=AliasChoices("city", "ciudad"))
    postal_code: str | None = Field(
        default=None, validation_alias=AliasChoices("postal_code", "codigoPostal")
    )
    name: str | None = Field(default=None, validation_alias=AliasChoices("name", "nombre"))
    email: str | None = None

    def to_spec(self) -> CustomerInfoSpec:
        return CustomerInfoSpec(
            address=self.address,
            city=self.city,
            postal_code=self.postal_code,
            name=self.name,
            email=self.email,
        )


class CreateOrderRequest(_RequestModel):
    items: list[OrderItemRequest] = Field(
        min_length=1, validation_alias=AliasChoices("items", "productos")
    )
    customer: CustomerInfoRequest = Field(
        validation_alias=AliasChoices("customer", "datosCliente")
    )

    def item_specs(self) -> list[OrderItemSpec]:
        return [item.to_spec() for item in self.items]


class MergeCartRequest(_RequestModel):
    items: list[OrderItemRequest] = Field(
        default_factory=list, validation_alias=AliasChoices("items", "carritoLocal")
    )
    merge_token: str | None = Field(default=None, max_length=128)

    def cart_lines(self) -> list[CartLine]:
        return [item.to_cart_line() for item in self.items]


class PaymentConfirmationRequest(_RequestModel):
    status: str
    captured_amount: Decimal = Field(ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    external_order_id: str = Field(min_length=1)

    def to_confirmation(self) -> PaymentConfirmation:
        return PaymentConfirmation(
            status=self.status,
            captured_amount=Money(self.captured_amount, self.currency.upper()),
            external_order_id=self.external_order_id,
        )


class CaptureOrderRequest(_RequestModel):
    confirmation: PaymentConfirmationRequest
    items: list[OrderItemRequest] = Field(
        min_length=1, validation_alias=AliasChoices("items", "productos")
    )
    customer: CustomerInfoRequest = Field(
        default_factory=CustomerInfoRequest,
        validation_alias=AliasChoices("customer", "datosCliente"),
    )

    def item_specs(self) -> list[OrderItemSpec]:
        return [item.to_spec() for item in self.items]


class FulfillmentStateRequest(_RequestModel):
    state: FulfillmentState = Field(validation_alias=AliasChoices("state", "estado"))

    @field_validator("state", mode="before")
    @classmethod
    def _parse_state(cls, value: Any) -> FulfillmentState:
        try:
            return FulfillmentState.parse(value)
        except ValidationError as exc:
            raise ValueError(str(exc)) from exc


def parse_request(model: type[ModelT], payload: Any) -> ModelT:
    """Validate *payload* against *model*, raising InvalidRequest on any problem."""
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<body>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidRequest(f"Invalid request: {problems}") from exc
