"""Order confirmations written to an outbox collection.

Stands in for the email-with-PDF delivery: each confirmation is rendered
as a plain-text receipt and appended to ``outbox.json`` for a mailer to
pick up.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import structlog

from storefront.domain.exceptions import NotificationFailure
from storefront.domain.model.order import Order
from storefront.domain.notification_sink import NotificationSink
from storefront.infrastructure.persistence.json_file import JsonCollection

logger = structlog.get_logger(__name__)


def render_receipt(order: Order) -> str:
    customer = order.customer
    rows = [
        f"Order #{order.id}",
        f"Date: {order.created_at.strftime('%Y-%m-%d %H:%M UTC')}",
        f"Total: {order.total}",
        "",
        "Customer:",
        f"  Name: {customer.name or '-'}",
        f"  Email: {customer.email or '-'}",
        f"  Address: {customer.address}, {customer.city} ({customer.postal_code})",
        "",
        f"  {'Product':<24} {'Qty':>5} {'Price':>10} {'Total':>10}",
        f"  {'-' * 51}",
    ]
    for line in order.lines:
        rows.append(
            f"  {line.name:<24} {line.quantity.value:>5} "
            f"{str(line.unit_price):>10} {str(line.line_total):>10}"
        )
    rows.append(f"  {'-' * 51}")
    return "\n".join(rows) + "\n"


class JsonOutboxNotificationSink(NotificationSink):

    def __init__(self, file_path: Path) -> None:
        self._collection = JsonCollection(file_path, empty=[])

    async def notify(self, order: Order) -> None:
        recipient = order.customer.email
        if not recipient:
            raise NotificationFailure(f"Order #{order.id} has no email address to notify")

        message = {
            "order_id": order.id,
            "to": recipient,
            "subject": f"Your order #{order.id} ({order.total})",
            "body": render_receipt(order),
            "queued_at": datetime.now(timezone.utc).isoformat(),
        }
        def change(outbox: list) -> tuple[bool, None]:
            outbox.append(message)
            return True, None

        await self._collection.modify(change)
        logger.debug("notification.queued", order_id=order.id, to=recipient)
