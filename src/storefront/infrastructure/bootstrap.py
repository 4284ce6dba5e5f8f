"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront.application.add_product import AddProductHandler
from storefront.application.adjust_stock import AdjustStockHandler
from storefront.application.capture_payment import CapturePaymentHandler
from storefront.application.create_order import CreateOrderHandler
from storefront.application.list_orders import ListAllOrdersHandler, ListMyOrdersHandler
from storefront.application.list_products import ListProductsHandler
from storefront.application.manage_cart import (
    AddToCartHandler,
    ClearCartHandler,
    RemoveFromCartHandler,
    ShowCartHandler,
    UpdateCartLineHandler,
)
from storefront.application.merge_cart import MergeCartHandler
from storefront.application.notification_dispatcher import NotificationDispatcher
from storefront.application.set_fulfillment_state import SetFulfillmentStateHandler
from storefront.application.show_order import ShowOrderHandler
from storefront.domain.notification_sink import NotificationSink
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.product_repository import ProductRepository
from storefront.domain.service.stock_reservation_service import StockReservationService
from storefront.infrastructure.config import Settings
from storefront.infrastructure.notification.outbox_notification_sink import (
    JsonOutboxNotificationSink,
)
from storefront.infrastructure.persistence.json_cart_repository import JsonCartRepository
from storefront.infrastructure.persistence.json_order_repository import JsonOrderRepository
from storefront.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)


@dataclass
class Container:
    """Repositories, services and handlers for one process (or one test)."""

    settings: Settings
    product_repo: ProductRepository
    cart_repo: CartRepository
    order_repo: OrderRepository
    notifications: NotificationDispatcher

    @property
    def reservations(self) -> StockReservationService:
        return StockReservationService(self.product_repo, timeout=self.settings.store_timeout)

    def create_order(self) -> CreateOrderHandler:
        return CreateOrderHandler(
            order_repo=self.order_repo,
            cart_repo=self.cart_repo,
            reservations=self.reservations,
            notifications=self.notifications,
            timeout=self.settings.store_timeout,
        )

    def capture_payment(self) -> CapturePaymentHandler:
        return CapturePaymentHandler(
            order_repo=self.order_repo,
            product_repo=self.product_repo,
            cart_repo=self.cart_repo,
            reservations=self.reservations,
            notifications=self.notifications,
            timeout=self.settings.store_timeout,
        )

    def show_order(self) -> ShowOrderHandler:
        return ShowOrderHandler(self.order_repo)

    def list_my_orders(self) -> ListMyOrdersHandler:
        return ListMyOrdersHandler(self.order_repo)

    def list_all_orders(self) -> ListAllOrdersHandler:
        return ListAllOrdersHandler(self.order_repo)

    def set_fulfillment_state(self) -> SetFulfillmentStateHandler:
        return SetFulfillmentStateHandler(self.order_repo)

    def merge_cart(self) -> MergeCartHandler:
        return MergeCartHandler(self.cart_repo)

    def show_cart(self) -> ShowCartHandler:
        return ShowCartHandler(self.cart_repo)

    def add_to_cart(self) -> AddToCartHandler:
        return AddToCartHandler(self.cart_repo, self.product_repo)

    def update_cart_line(self) -> UpdateCartLineHandler:
        return UpdateCartLineHandler(self.cart_repo)

    def remove_from_cart(self) -> RemoveFromCartHandler:
        return RemoveFromCartHandler(self.cart_repo)

    def clear_cart(self) -> ClearCartHandler:
        return ClearCartHandler(self.cart_repo)

    def add_product(self) -> AddProductHandler:
        return AddProductHandler(self.product_repo)

    def adjust_stock(self) -> AdjustStockHandler:
        return AdjustStockHandler(self.product_repo)

    def list_products(self) -> ListProductsHandler:
        return ListProductsHandler(self.product_repo)


def build_container(
    settings: Settings | None = None,
    notification_sink: NotificationSink | None = None,
) -> Container:
    settings = settings or Settings.from_env()
    data_dir = settings.data_dir
    sink = notification_sink or JsonOutboxNotificationSink(data_dir / "outbox.json")
    return Container(
        settings=settings,
        product_repo=JsonProductRepository(data_dir / "products.json"),
        cart_repo=JsonCartRepository(data_dir / "carts.json"),
        order_repo=JsonOrderRepository(data_dir / "orders.json"),
        notifications=NotificationDispatcher(sink, timeout=settings.notification_timeout),
    )
