"""Helpers shared by the CLI command modules."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import click

from storefront.application.dto import ErrorDTO, OrderDTO
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import Container, build_container

T = TypeVar("T")


def run(action: Callable[[Container], Awaitable[T]]) -> T:
    """Run *action* on a fresh container and report domain errors click-style.

    Pending confirmations are flushed before the event loop closes.
    """

    async def _main() -> T:
        container = build_container()
        try:
            return await action(container)
        finally:
            await container.notifications.drain()

    try:
        return asyncio.run(_main())
    except DomainException as exc:
        raise click.ClickException(format_error(ErrorDTO.from_exception(exc)))


def format_error(error: ErrorDTO) -> str:
    if not error.details:
        return f"{error.code}: {error.message}"
    details = ", ".join(f"{k}={v}" for k, v in error.details.items())
    return f"{error.code}: {error.message} ({details})"


def parse_items(raw: str) -> list[dict[str, str]]:
    """Parse 'P1:3,P2:5' into request items; a bare 'P1' means quantity 1."""
    items: list[dict[str, str]] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        product_id, sep, qty = pair.rpartition(":")
        if not sep:
            product_id, qty = pair, "1"
        items.append({"product_id": product_id.strip(), "quantity": qty.strip()})
    if not items:
        raise click.BadParameter("Expected at least one 'ProductId:Quantity' item.")
    return items


def display_order(dto: OrderDTO) -> None:
    click.echo(f"Order #{dto.id}  (state={dto.fulfillment_state})")
    if dto.user_id:
        click.echo(f"User:     {dto.user_id}")
    if dto.external_payment_id:
        click.echo(f"Payment:  {dto.external_payment_id} ({dto.payment_status})")
    click.echo(f"Created:  {dto.created_at}")
    customer = dto.customer
    click.echo(
        f"Ship to:  {customer['address']}, {customer['city']} ({customer['postal_code']})"
    )
    click.echo()
    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*47}")
    for item in dto.items:
        click.echo(
            f"  {item.name:<20} {item.quantity:>5} {item.unit_price:>10} {item.line_total:>10}"
        )
    click.echo(f"  {'-'*47}")
    click.echo(f"  {'Order Total':<27} {dto.total:>20}")
