"""Domain service: Order Builder.

Turns a stock reservation into an Order.  Prices, names and images come
only from the product snapshots captured by the reservation; nothing the
client sent about prices is ever consulted.
"""

from __future__ import annotations

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.order import CustomerInfo, Order, OrderLine
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.service.stock_reservation_service import Reservation


class OrderBuilder:

    def build(
        self,
        reservation: Reservation,
        customer: CustomerInfo | dict,
        user_id: str | None = None,
    ) -> Order:
        """Price a reservation.  Pure: nothing is persisted here."""
        info = self.customer_info(customer)
        lines = [
            self.snapshot_line(line.product, line.quantity)
            for line in reservation.lines
        ]
        return Order.create(user_id=user_id, lines=lines, customer=info)

    def build_captured(
        self,
        products: list[tuple[Product, int]],
        customer: CustomerInfo | dict,
        user_id: str | None,
        external_payment_id: str,
        payment_status: str,
        captured_amount: Money,
    ) -> Order:
        """Price an order whose payment the provider already captured."""
        info = self.customer_info(customer)
        lines = [self.snapshot_line(product, qty) for product, qty in products]
        return Order.create(
            user_id=user_id,
            lines=lines,
            customer=info,
            external_payment_id=external_payment_id,
            payment_status=payment_status,
            captured_amount=captured_amount,
        )

    @staticmethod
    def snapshot_line(product: Product, quantity: int) -> OrderLine:
        return OrderLine(
            product_id=product.id,
            name=product.name,
            unit_price=product.price,
            quantity=Quantity(quantity),
            image=product.image,
        )

    @staticmethod
    def customer_info(customer: CustomerInfo | dict) -> CustomerInfo:
        if isinstance(customer, CustomerInfo):
            # Re-run the checks: a directly constructed instance skips them.
            return CustomerInfo.create(
                address=customer.address,
                city=customer.city,
                postal_code=customer.postal_code,
                name=customer.name,
                email=customer.email,
            )
        if not isinstance(customer, dict):
            raise ValidationError("Customer info must be a mapping")
        return CustomerInfo.create(
            address=customer.get("address"),
            city=customer.get("city"),
            postal_code=customer.get("postal_code"),
            name=customer.get("name"),
            email=customer.get("email"),
        )
