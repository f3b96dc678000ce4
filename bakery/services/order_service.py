"""Checkout and order management."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime

from ..errors import EmptyCartError
from ..models import (
    CartItem,
    CheckoutSummary,
    CustomerDetails,
    DatasetKey,
    LineItem,
    Order,
    OrderStatus,
    ProductSnapshot,
)
from ..utils import TAX_RATE, make_order_id, money
from .write_through import AddOrder, UpdateOrderStatus, WriteThrough

logger = logging.getLogger(__name__)


def calc_checkout(cart: Sequence[CartItem]) -> CheckoutSummary:
    """Subtotal, tax and total for the cart."""
    subtotal = sum(item.product.price * item.quantity for item in cart)
    tax = subtotal * TAX_RATE
    return CheckoutSummary(subtotal=money(subtotal), tax=money(tax), total=money(subtotal + tax))


def filter_orders(orders: Sequence[Order], status: str = "all", search: str = "") -> list[Order]:
    """Filter by status, then by a case-insensitive match on customer or order id."""
    query = search.strip().lower()
    found = []
    for order in orders:
        if status != "all" and order.status.value != status:
            continue
        if query:
            hay = f"{order.customer_name} {order.customer_email} {order.id}".lower()
            if query not in hay:
                continue
        found.append(order)
    return found


class OrderService:
    def __init__(self, writer: WriteThrough):
        self._writer = writer

    async def place_order(self, customer: CustomerDetails, cart: Sequence[CartItem]) -> Order:
        """Create the order, then decrement stock item by item.

        Stock updates are independent read-modify-writes. A failure on one
        item leaves earlier decrements in place and the order still stands.
        """
        if not cart:
            raise EmptyCartError("Cart is empty")

        summary = calc_checkout(cart)
        order = Order(
            id=make_order_id(),
            customer_name=customer.name,
            customer_email=customer.email,
            customer_phone=customer.phone or None,
            delivery_address=customer.address or None,
            status=OrderStatus.PENDING,
            total_price=summary.total,
            created_at=datetime.now(UTC),
            items=[
                LineItem(
                    product_id=item.product.id,
                    quantity=item.quantity,
                    price_at_purchase=item.product.price,
                    product=ProductSnapshot(name=item.product.name, image_url=item.product.image_url),
                )
                for item in cart
            ],
        )

        result = await self._writer.apply(AddOrder(order))
        placed = result.records[0] if result.records else order
        logger.info("Order %s placed (%d items, total=%.2f)", placed.id, len(cart), summary.total)

        if result.remote_ok:
            await self._decrement_stock(cart)

        self._writer.invalidate(*DatasetKey)
        return placed

    async def _decrement_stock(self, cart: Sequence[CartItem]) -> None:
        store = self._writer.store
        for item in cart:
            product_id = item.product.id
            try:
                current = await store.get_product(product_id)
                if current is None:
                    logger.warning("Stock update skipped: product %s not found remotely", product_id)
                    continue
                new_quantity = max(0, current.stock_quantity - item.quantity)
                await store.update_product(product_id, {"stock_quantity": new_quantity})
            except Exception as e:
                logger.error("Error updating stock for product %s: %s", product_id, e)

    async def update_status(self, order: Order, status: OrderStatus) -> Order:
        await self._writer.apply(UpdateOrderStatus(order, status))
        return order.model_copy(update={"status": status})
