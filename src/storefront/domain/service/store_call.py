"""Bounded calls into the backing store.

Every store operation made by the order pipeline goes through
``call_store`` so that a timeout and an outright store failure look the
same to the caller: a ``PersistenceError`` at that step.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from storefront.domain.exceptions import DomainException, PersistenceError

T = TypeVar("T")


async def call_store(
    awaitable: Awaitable[T],
    *,
    operation: str,
    timeout: float | None = None,
) -> T:
    try:
        if timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as exc:
        raise PersistenceError(
            f"Store operation '{operation}' timed out after {timeout}s"
        ) from exc
    except DomainException:
        raise
    except Exception as exc:
        raise PersistenceError(f"Store operation '{operation}' failed: {exc}") from exc


def start_write(awaitable: Awaitable[T]) -> asyncio.Future[T]:
    """Start a store write that keeps running if its caller stops waiting.

    Pass ``asyncio.shield(write)`` to ``call_store``: a timeout or a
    cancellation then abandons the wait, not the write, and ``settle``
    tells whether the write landed.
    """
    return asyncio.ensure_future(awaitable)


async def settle(write: asyncio.Future[T]) -> T | None:
    """Wait for an abandoned write to finish; None if it raised."""
    try:
        return await write
    except Exception:
        return None
