from __future__ import annotations

import random
import string
from collections.abc import Iterable
from datetime import UTC, datetime

from .models import Product

TAX_RATE = 0.08


def make_order_id(prefix: str = "ord") -> str:
    ts = datetime.now(UTC).strftime("%y%m%d%H%M%S")
    rnd = "".join(random.choices(string.ascii_lowercase + string.digits, k=4))
    return f"{prefix}-{ts}-{rnd}"


def next_local_id(products: Iterable[Product]) -> int:
    """Smallest integer id above every integer id already in use."""
    ids = [p.id for p in products if isinstance(p.id, int)]
    return max(ids, default=0) + 1


def money(value: float) -> float:
    """Round to cents."""
    return round(value, 2)


def format_price(value: float) -> str:
    return f"${value:,.2f}"
