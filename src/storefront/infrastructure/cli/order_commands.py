"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from storefront.application.schemas import (
    CaptureOrderRequest,
    CreateOrderRequest,
    FulfillmentStateRequest,
    parse_request,
)
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.cli.support import display_order, parse_items, run


def _customer_options(func):
    func = click.option("--email", default=None, help="Customer email.")(func)
    func = click.option("--name", default=None, help="Customer name.")(func)
    func = click.option("--postal-code", default=None, help="Postal code.")(func)
    func = click.option("--city", default=None, help="City.")(func)
    func = click.option("--address", default=None, help="Street address.")(func)
    return func


def _parse(model, payload):
    try:
        return parse_request(model, payload)
    except DomainException as exc:
        raise click.ClickException(str(exc))


@click.command("create")
@click.option("--user", "user_id", required=True, help="Ordering user ID.")
@click.option("--items", required=True, help="Items as 'ProductId:Qty,ProductId:Qty'.")
@_customer_options
def order_create(user_id, items, address, city, postal_code, name, email) -> None:
    """Place an order: reserves stock, records it and empties the cart."""
    request = _parse(
        CreateOrderRequest,
        {
            "items": parse_items(items),
            "customer": {
                "address": address,
                "city": city,
                "postal_code": postal_code,
                "name": name,
                "email": email,
            },
        },
    )

    dto = run(
        lambda c: c.create_order().handle(
            user_id=user_id,
            item_specs=request.item_specs(),
            customer=request.customer.to_spec(),
        )
    )
    click.echo(f"Order #{dto.id} created  (total={dto.total})")
    click.echo()
    display_order(dto)


@click.command("capture")
@click.option("--payment-id", required=True, help="Payment provider order ID.")
@click.option("--status", default="COMPLETED", show_default=True, help="Provider capture status.")
@click.option("--amount", required=True, help="Captured amount.")
@click.option("--currency", default="USD", show_default=True)
@click.option("--user", "user_id", default=None, help="Paying user ID (omit for guests).")
@click.option("--items", required=True, help="Items as 'ProductId:Qty,ProductId:Qty'.")
@_customer_options
def order_capture(
    payment_id, status, amount, currency, user_id, items, address, city, postal_code, name, email
) -> None:
    """Record an order for a payment the provider already captured."""
    request = _parse(
        CaptureOrderRequest,
        {
            "confirmation": {
                "status": status,
                "captured_amount": amount,
                "currency": currency,
                "external_order_id": payment_id,
            },
            "items": parse_items(items),
            "customer": {
                "address": address,
                "city": city,
                "postal_code": postal_code,
                "name": name,
                "email": email,
            },
        },
    )

    dto = run(
        lambda c: c.capture_payment().handle(
            confirmation=request.confirmation.to_confirmation(),
            item_specs=request.item_specs(),
            customer=request.customer.to_spec(),
            user_id=user_id,
        )
    )
    click.echo(f"Order #{dto.id} recorded for payment {dto.external_payment_id}")
    click.echo()
    display_order(dto)


@click.command("show")
@click.option("--user", "user_id", required=True, help="Owner of the order.")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(user_id: str, order_id: int) -> None:
    """Show one of a user's orders."""
    dto = run(lambda c: c.show_order().handle(user_id, order_id))
    display_order(dto)


def _echo_order_rows(orders) -> None:
    if not orders:
        click.echo("No orders found.")
        return
    click.echo(f"{'ID':<6} {'User':<12} {'State':<10} {'Items':>5} {'Total':>12}  Created")
    click.echo("-" * 66)
    for o in orders:
        click.echo(
            f"{o.id:<6} {(o.user_id or '-'):<12} {o.fulfillment_state:<10} "
            f"{sum(i.quantity for i in o.items):>5} {o.total:>12}  {o.created_at}"
        )


@click.command("mine")
@click.option("--user", "user_id", required=True, help="User whose orders to list.")
def order_mine(user_id: str) -> None:
    """List a user's orders, newest first."""
    _echo_order_rows(run(lambda c: c.list_my_orders().handle(user_id)))


@click.command("list")
def order_list() -> None:
    """List every order, newest first (admin)."""
    _echo_order_rows(run(lambda c: c.list_all_orders().handle()))


@click.command("state")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--state",
    required=True,
    help="New fulfillment state: pendiente, enviado or entregado.",
)
def order_state(order_id: int, state: str) -> None:
    """Move an order forward: pendiente -> enviado -> entregado."""
    request = _parse(FulfillmentStateRequest, {"state": state})
    dto = run(lambda c: c.set_fulfillment_state().handle(order_id, request.state))
    click.echo(f"Order #{dto.id} is now '{dto.fulfillment_state}'.")
