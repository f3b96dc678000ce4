"""Storage package for the local persisted store.

- db.py: Database initialization
- local.py: Key-value store holding serialized products, orders and tombstones
"""

from .db import init_db
from .local import DELETED_PRODUCTS_KEY, ORDERS_KEY, PRODUCTS_KEY, LocalStore

__all__ = [
    "init_db",
    "LocalStore",
    "PRODUCTS_KEY",
    "ORDERS_KEY",
    "DELETED_PRODUCTS_KEY",
]
