"""Compiled-in sample data used when no other source yields records."""

from __future__ import annotations

import copy
from datetime import UTC, datetime, timedelta
from typing import Any

from .models import Order, Product

_PRODUCTS: tuple[dict[str, Any], ...] = (
    {
        "id": 1,
        "name": "Bread",
        "description": "Freshly baked artisan bread with a soft interior and crispy crust.",
        "price": 150.00,
        "image_url": "/images/bread.jpg",
        "stock_quantity": 20,
        "category": "Bread",
    },
    {
        "id": 2,
        "name": "Bun",
        "description": "Soft and fluffy tea bun, perfect for a quick snack.",
        "price": 50.00,
        "image_url": "/images/bun.jpg",
        "stock_quantity": 50,
        "category": "Buns",
    },
    {
        "id": 3,
        "name": "Fish Bun",
        "description": "Traditional triangular bun filled with spicy fish and potato mix.",
        "price": 60.00,
        "image_url": "/images/fish_bun.jpg",
        "stock_quantity": 30,
        "category": "Savory",
    },
    {
        "id": 4,
        "name": "Viyan Roll",
        "description": "Crispy breaded roll filled with seasoned vegetables and mackerel.",
        "price": 40.00,
        "image_url": "/images/viyan_roll.jpg",
        "stock_quantity": 40,
        "category": "Short Eats",
    },
)

_ORDERS: tuple[dict[str, Any], ...] = (
    {
        "id": "ord_12345678",
        "age": timedelta(0),
        "customer_name": "John Doe",
        "customer_email": "john@example.com",
        "customer_phone": "+1234567890",
        "delivery_address": "123 Main St, City",
        "status": "pending",
        "total_price": 45.50,
        "items": [
            {
                "product_id": 1,
                "quantity": 2,
                "price_at_purchase": 150.00,
                "products": {"name": "Bread", "image_url": "/images/bread.jpg"},
            }
        ],
    },
    {
        "id": "ord_87654321",
        "age": timedelta(days=1),
        "customer_name": "Jane Smith",
        "customer_email": "jane@example.com",
        "customer_phone": "+0987654321",
        "delivery_address": "456 Oak Ave, Town",
        "status": "completed",
        "total_price": 25.00,
        "items": [
            {
                "product_id": 2,
                "quantity": 1,
                "price_at_purchase": 50.00,
                "products": {"name": "Bun", "image_url": "/images/bun.jpg"},
            }
        ],
    },
)


def default_products() -> list[Product]:
    """Fresh copies of the default catalog."""
    return [Product.model_validate(copy.deepcopy(p)) for p in _PRODUCTS]


def default_orders(now: datetime | None = None) -> list[Order]:
    """Fresh copies of the sample orders, dated relative to ``now``."""
    now = now or datetime.now(UTC)
    orders = []
    for raw in _ORDERS:
        data = copy.deepcopy(raw)
        age = data.pop("age")
        data["created_at"] = now - age
        orders.append(Order.model_validate(data))
    return orders
