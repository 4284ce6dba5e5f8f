"""Payment provider capture confirmation (opaque to the domain)."""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.model.value_objects import Money

COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class PaymentConfirmation:

    status: str
    captured_amount: Money
    external_order_id: str

    @property
    def currency(self) -> str:
        return self.captured_amount.currency

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED
