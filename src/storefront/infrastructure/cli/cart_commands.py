"""CLI commands for the Cart aggregate."""

from __future__ import annotations

import click

from storefront.application.dto import CartDTO
from storefront.application.schemas import MergeCartRequest, parse_request
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.cli.support import parse_items, run


def _display_cart(dto: CartDTO) -> None:
    if dto.is_empty:
        click.echo(f"Cart for {dto.user_id} is empty.")
        return
    click.echo(f"Cart for {dto.user_id}:")
    click.echo(f"  {'Product':<20} {'Qty':>5}")
    click.echo(f"  {'-'*26}")
    for item in dto.items:
        click.echo(f"  {item.product_id:<20} {item.quantity:>5}")


@click.command("show")
@click.option("--user", "user_id", required=True, help="Cart owner.")
def cart_show(user_id: str) -> None:
    """Show a user's cart."""
    _display_cart(run(lambda c: c.show_cart().handle(user_id)))


@click.command("add")
@click.option("--user", "user_id", required=True, help="Cart owner.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--qty", "quantity", default=1, show_default=True, type=int)
def cart_add(user_id: str, product_id: str, quantity: int) -> None:
    """Add a product (adds to the quantity already in the cart)."""
    _display_cart(run(lambda c: c.add_to_cart().handle(user_id, product_id, quantity)))


@click.command("update")
@click.option("--user", "user_id", required=True, help="Cart owner.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--qty", "quantity", required=True, type=int, help="New quantity; 0 removes.")
def cart_update(user_id: str, product_id: str, quantity: int) -> None:
    """Set the quantity of a product already in the cart."""
    _display_cart(run(lambda c: c.update_cart_line().handle(user_id, product_id, quantity)))


@click.command("remove")
@click.option("--user", "user_id", required=True, help="Cart owner.")
@click.option("--product", "product_id", required=True, help="Product ID.")
def cart_remove(user_id: str, product_id: str) -> None:
    """Remove a product from the cart."""
    _display_cart(run(lambda c: c.remove_from_cart().handle(user_id, product_id)))


@click.command("clear")
@click.option("--user", "user_id", required=True, help="Cart owner.")
def cart_clear(user_id: str) -> None:
    """Empty the cart."""
    _display_cart(run(lambda c: c.clear_cart().handle(user_id)))


@click.command("merge")
@click.option("--user", "user_id", required=True, help="Cart owner.")
@click.option("--items", required=True, help="Client cart as 'ProductId:Qty,...'.")
@click.option("--token", "merge_token", default=None, help="Merge once per token.")
def cart_merge(user_id: str, items: str, merge_token: str | None) -> None:
    """Merge a locally kept cart into the stored one (quantities add up)."""
    try:
        request = parse_request(
            MergeCartRequest, {"items": parse_items(items), "merge_token": merge_token}
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_cart(
        run(
            lambda c: c.merge_cart().handle(
                user_id, request.cart_lines(), merge_token=request.merge_token
            )
        )
    )
