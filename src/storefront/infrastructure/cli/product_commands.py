"""CLI commands for the Product aggregate."""

from __future__ import annotations

import click

from storefront.infrastructure.cli.support import run


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 15.00).")
@click.option("--stock", default=0, show_default=True, type=click.IntRange(min=0))
@click.option("--id", "product_id", default=None, help="Product ID (auto-assigned if omitted).")
@click.option("--image", default=None, help="Image reference.")
def product_add(name: str, price: str, stock: int, product_id: str | None, image: str | None) -> None:
    """Add a new product to the catalog."""
    product = run(
        lambda c: c.add_product().handle(
            name=name, price=price, stock=stock, product_id=product_id, image=image
        )
    )
    click.echo(
        f"Product #{product.id} '{product.name}' added at {product.price} "
        f"(stock={product.stock})"
    )


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    products = run(lambda c: c.list_products().handle())

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<8} {'Name':<20} {'Price':>10} {'Stock':>7}")
    click.echo("-" * 48)
    for p in products:
        click.echo(f"{p.id:<8} {p.name:<20} {p.price:>10} {p.stock:>7}")


@click.command("stock")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--delta", type=int, default=None, help="Add (or subtract) units; clamps at 0.")
@click.option("--set", "absolute", type=click.IntRange(min=0), default=None, help="Set stock.")
def product_stock(product_id: str, delta: int | None, absolute: int | None) -> None:
    """Restock or correct a product's stock."""
    if (delta is None) == (absolute is None):
        raise click.ClickException("Pass exactly one of --delta or --set")

    if delta is not None:
        product = run(lambda c: c.adjust_stock().handle(product_id, delta))
    else:
        product = run(lambda c: c.adjust_stock().set_absolute(product_id, absolute))
    click.echo(f"Product #{product.id} stock is now {product.stock}")
