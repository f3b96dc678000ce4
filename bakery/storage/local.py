"""Local persisted store: serialized record arrays under fixed keys."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import aiosqlite
from pydantic import TypeAdapter, ValidationError

from ..models import DeletedProduct, Order, Product

logger = logging.getLogger(__name__)

PRODUCTS_KEY = "bakery_products"
ORDERS_KEY = "bakery_orders"
DELETED_PRODUCTS_KEY = "bakery_deleted_products"

_products_adapter = TypeAdapter(list[Product])
_orders_adapter = TypeAdapter(list[Order])
_deleted_adapter = TypeAdapter(list[DeletedProduct])


class LocalStore:
    """String-keyed get/set store on top of SQLite.

    Values that are missing or fail to parse are reported as absent.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)

    # -------------------------------------------------------------------------
    # Raw key-value access
    # -------------------------------------------------------------------------
    async def get_item(self, key: str) -> str | None:
        async with aiosqlite.connect(self.db_path) as db:
            cur = await db.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = await cur.fetchone()
            return row[0] if row else None

    async def set_item(self, key: str, value: str) -> None:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "INSERT INTO kv_store(key, value) VALUES(?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=CURRENT_TIMESTAMP",
                (key, value),
            )
            await db.commit()

    async def remove_item(self, key: str) -> None:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            await db.commit()

    async def _load(self, key: str, adapter: TypeAdapter) -> list[Any] | None:
        try:
            raw = await self.get_item(key)
        except aiosqlite.Error as e:
            logger.warning("Local store read failed for %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("Ignoring corrupt local value for %s: %s", key, e.errors()[:3])
            return None

    async def _save(self, key: str, adapter: TypeAdapter, records: list[Any]) -> None:
        await self.set_item(key, adapter.dump_json(records, by_alias=True).decode())

    # -------------------------------------------------------------------------
    # Typed helpers
    # -------------------------------------------------------------------------
    async def load_products(self) -> list[Product] | None:
        return await self._load(PRODUCTS_KEY, _products_adapter)

    async def save_products(self, products: list[Product]) -> None:
        await self._save(PRODUCTS_KEY, _products_adapter, products)

    async def load_orders(self) -> list[Order] | None:
        return await self._load(ORDERS_KEY, _orders_adapter)

    async def save_orders(self, orders: list[Order]) -> None:
        await self._save(ORDERS_KEY, _orders_adapter, orders)

    async def load_deleted_products(self) -> list[DeletedProduct]:
        return await self._load(DELETED_PRODUCTS_KEY, _deleted_adapter) or []

    async def save_deleted_products(self, deleted: list[DeletedProduct]) -> None:
        await self._save(DELETED_PRODUCTS_KEY, _deleted_adapter, deleted)

    async def clear_products(self) -> None:
        """Wipe locally added products and deletion tombstones."""
        await self.remove_item(PRODUCTS_KEY)
        await self.remove_item(DELETED_PRODUCTS_KEY)
