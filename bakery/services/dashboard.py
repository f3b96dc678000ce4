"""Data loading behind the admin dashboard views."""

from __future__ import annotations

import logging
from typing import Any

from ..cache import AdminDataCache
from ..models import ConnectionStatus, DatasetKey, Order, Product, SaleRow, SalesStats
from ..stores import BaseRemoteStore
from .reconciler import SourceReconciler

logger = logging.getLogger(__name__)


class AdminDashboard:
    """Serves the four dashboard datasets from the cache, reconciling on a miss."""

    def __init__(self, cache: AdminDataCache, reconciler: SourceReconciler, store: BaseRemoteStore):
        self.cache = cache
        self._reconciler = reconciler
        self._store = store

    async def load(self, key: DatasetKey, force: bool = False) -> Any:
        if not force:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Cache hit for %s (age=%.0fs)", key.value, self.cache.age_seconds(key))
                return cached

        self.cache.set_loading(key, True)
        try:
            data = await self._reconciler.reconcile(key)
        except Exception:
            self.cache.set_loading(key, False)
            raise
        self.cache.set(key, data)
        return data

    async def products(self, force: bool = False) -> list[Product]:
        return await self.load(DatasetKey.PRODUCTS, force)

    async def orders(self, force: bool = False) -> list[Order]:
        return await self.load(DatasetKey.ORDERS, force)

    async def sales(self, force: bool = False) -> list[SaleRow]:
        return await self.load(DatasetKey.SALES_DATA, force)

    async def stats(self, force: bool = False) -> SalesStats:
        return await self.load(DatasetKey.STATS, force)

    async def connection_status(self) -> ConnectionStatus:
        if not self._store.is_configured:
            return ConnectionStatus.DISCONNECTED
        try:
            await self._store.ping()
        except Exception as e:
            logger.warning("Remote %s ping failed: %s", self._store.name, e)
            return ConnectionStatus.DEMO
        return ConnectionStatus.CONNECTED
