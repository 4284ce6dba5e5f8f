"""Port for order confirmations (email/PDF delivery lives outside the core)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.order import Order


class NotificationSink(ABC):

    @abstractmethod
    async def notify(self, order: Order) -> None:
        """Deliver a confirmation for *order*.

        May raise; callers dispatch fire-and-forget and only log failures.
        """
