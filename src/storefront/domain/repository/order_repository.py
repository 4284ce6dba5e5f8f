"""Abstract repository for the Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.order import FulfillmentState, Order


class OrderRepository(ABC):

    @abstractmethod
    async def create(self, order: Order) -> Order:
        """Insert a new order and return it with its assigned ID."""

    @abstractmethod
    async def create_for_payment(self, order: Order) -> tuple[Order, bool]:
        """Insert *order* unless one exists for its external payment ID.

        Atomic: returns ``(stored, True)`` for a new order, or
        ``(existing, False)`` when the payment was already recorded.
        """

    @abstractmethod
    async def delete(self, order_id: int) -> bool:
        """Remove an order; compensates a create.  False if it was missing."""

    @abstractmethod
    async def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    async def get_by_external_payment_id(self, external_payment_id: str) -> Order | None:
        """Return the order recorded for a payment-provider capture, or None."""

    @abstractmethod
    async def list_by_user(self, user_id: str) -> list[Order]:
        """Return the user's orders, newest first."""

    @abstractmethod
    async def list_all(self) -> list[Order]:
        """Return every order, newest first."""

    @abstractmethod
    async def update_fulfillment_state(
        self, order_id: int, state: FulfillmentState
    ) -> Order | None:
        """Change only the fulfillment state; None if the order is missing."""
