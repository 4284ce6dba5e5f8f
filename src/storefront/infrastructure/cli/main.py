import click

from storefront.infrastructure.cli.cart_commands import (
    cart_add,
    cart_clear,
    cart_merge,
    cart_remove,
    cart_show,
    cart_update,
)
from storefront.infrastructure.cli.order_commands import (
    order_capture,
    order_create,
    order_list,
    order_mine,
    order_show,
    order_state,
)
from storefront.infrastructure.cli.product_commands import (
    product_add,
    product_list,
    product_stock,
)
from storefront.infrastructure.config import Settings
from storefront.infrastructure.logging_config import configure_logging


@click.group()
def cli() -> None:
    """Storefront: orders, carts and stock."""
    try:
        settings = Settings.from_env()
    except ValueError as exc:
        raise click.ClickException(str(exc))
    configure_logging(settings.log_level, settings.log_json)


@cli.group()
def order() -> None:
    """Place and manage orders."""


@cli.group()
def cart() -> None:
    """Manage a user's cart."""


@cli.group()
def product() -> None:
    """Manage catalog products and stock."""


# Register subcommands
order.add_command(order_capture)
order.add_command(order_create)
order.add_command(order_list)
order.add_command(order_mine)
order.add_command(order_show)
order.add_command(order_state)
cart.add_command(cart_add)
cart.add_command(cart_clear)
cart.add_command(cart_merge)
cart.add_command(cart_remove)
cart.add_command(cart_show)
cart.add_command(cart_update)
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_stock)
