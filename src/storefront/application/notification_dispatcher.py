"""Fire-and-forget delivery of order confirmations.

``dispatch`` schedules the sink call as a background task and returns
immediately, so neither a slow nor a failing sink affects the request
that created the order.  Failures are logged and dropped; there is no
synchronous retry.
"""

from __future__ import annotations

import asyncio

import structlog

from storefront.domain.model.order import Order
from storefront.domain.notification_sink import NotificationSink

logger = structlog.get_logger(__name__)


class NotificationDispatcher:

    def __init__(self, sink: NotificationSink, timeout: float | None = None) -> None:
        self._sink = sink
        self._timeout = timeout
        # Strong references: the event loop only keeps weak ones to tasks.
        self._pending: set[asyncio.Task[None]] = set()

    def dispatch(self, order: Order) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(
            self._deliver(order), name=f"notify-order-{order.id}"
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every in-flight notification (used on shutdown)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _deliver(self, order: Order) -> None:
        try:
            if self._timeout is None:
                await self._sink.notify(order)
            else:
                await asyncio.wait_for(self._sink.notify(order), self._timeout)
        except asyncio.CancelledError:
            logger.warning("notification.cancelled", order_id=order.id)
            raise
        except Exception as exc:
            logger.error(
                "notification.failed",
                order_id=order.id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
        else:
            logger.info("notification.sent", order_id=order.id)
