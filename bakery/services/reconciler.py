"""Merge remote, locally persisted and default records into one working set."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any, TypeVar

from ..config import DefaultsPolicy, Settings
from ..defaults import default_orders, default_products
from ..errors import RemoteSourceError
from ..models import (
    DatasetKey,
    DeletedProduct,
    Order,
    Product,
    Provenance,
    SaleRow,
    SalesStats,
    TopProduct,
)
from ..monitoring import LogNotifier, Notifier, capture_exception
from ..storage import LocalStore
from ..stores import BaseRemoteStore

logger = logging.getLogger(__name__)

SALES_LIMIT = 50

DEFAULT_POLICIES: dict[DatasetKey, DefaultsPolicy] = {
    DatasetKey.PRODUCTS: DefaultsPolicy.FILL_MISSING,
    DatasetKey.ORDERS: DefaultsPolicy.WHEN_EMPTY,
    DatasetKey.SALES_DATA: DefaultsPolicy.WHEN_EMPTY,
    DatasetKey.STATS: DefaultsPolicy.WHEN_EMPTY,
}

_LABELS = {
    DatasetKey.PRODUCTS: "products",
    DatasetKey.ORDERS: "orders",
    DatasetKey.SALES_DATA: "sales data",
    DatasetKey.STATS: "stats",
}

R = TypeVar("R", Product, Order)


def policies_from_settings(settings: Settings) -> dict[DatasetKey, DefaultsPolicy]:
    """Per-key policies; the sales and stats views follow the orders policy."""
    orders_policy = settings.orders_defaults_policy
    return {
        DatasetKey.PRODUCTS: settings.products_defaults_policy,
        DatasetKey.ORDERS: orders_policy,
        DatasetKey.SALES_DATA: orders_policy,
        DatasetKey.STATS: orders_policy,
    }


def merge_sources(
    remote: Sequence[R],
    local: Iterable[R] | None,
    defaults: Iterable[R],
    policy: DefaultsPolicy,
    exclude: Sequence[DeletedProduct] = (),
) -> list[R]:
    """Build a de-duplicated working set.

    Remote records are kept as-is. Local records with no id-or-name match are
    appended tagged LOCAL; defaults follow the same rule tagged MOCK, gated by
    ``policy`` and skipping anything in ``exclude``.
    """
    working: list[R] = list(remote)

    for record in local or ():
        if not any(existing.matches(record) for existing in working):
            working.append(record.tagged(Provenance.LOCAL))

    if policy is DefaultsPolicy.FILL_MISSING or (policy is DefaultsPolicy.WHEN_EMPTY and not working):
        for record in defaults:
            if any(deleted.matches(record) for deleted in exclude):
                continue
            if not any(existing.matches(record) for existing in working):
                working.append(record.tagged(Provenance.MOCK))

    return working


def sort_products(products: Iterable[Product]) -> list[Product]:
    return sorted(products, key=lambda p: p.name)


def sort_orders(orders: Iterable[Order]) -> list[Order]:
    """Newest first."""
    return sorted(orders, key=lambda o: o.created_at, reverse=True)


def flatten_sales(orders: Iterable[Order], limit: int = SALES_LIMIT) -> list[SaleRow]:
    """One row per sold line item, newest first, capped at ``limit``."""
    rows = [
        SaleRow(
            id=f"{order.id}_{item.product_id}",
            product=item.product,
            quantity=item.quantity,
            price_at_purchase=item.price_at_purchase,
            created_at=order.created_at,
            source=order.source,
        )
        for order in orders
        for item in order.items
    ]
    rows.sort(key=lambda r: r.created_at, reverse=True)
    return rows[:limit]


def compute_stats(orders: Sequence[Order]) -> SalesStats:
    """Revenue, order count and best-selling product by quantity."""
    totals: dict[int | str, TopProduct] = {}
    for order in orders:
        for item in order.items:
            entry = totals.setdefault(item.product_id, TopProduct(name=item.product.name or "Unknown", quantity=0))
            entry.quantity += item.quantity

    top = max(totals.values(), key=lambda t: t.quantity, default=None)
    return SalesStats(
        total_revenue=round(sum(o.total_price for o in orders), 2),
        total_orders=len(orders),
        top_product=top,
    )


class SourceReconciler:
    """Builds each dashboard dataset from every available source."""

    def __init__(
        self,
        store: BaseRemoteStore,
        local: LocalStore,
        notifier: Notifier | None = None,
        policies: dict[DatasetKey, DefaultsPolicy] | None = None,
        sales_limit: int = SALES_LIMIT,
    ):
        self._store = store
        self._local = local
        self._notifier = notifier or LogNotifier()
        self._policies = {**DEFAULT_POLICIES, **(policies or {})}
        self._sales_limit = sales_limit

    def policy(self, key: DatasetKey) -> DefaultsPolicy:
        return self._policies[key]

    async def reconcile(self, key: DatasetKey) -> Any:
        """Produce the dataset for ``key``."""
        if key is DatasetKey.PRODUCTS:
            return await self.products()
        if key is DatasetKey.ORDERS:
            return await self.orders()
        if key is DatasetKey.SALES_DATA:
            return await self.sales_rows()
        if key is DatasetKey.STATS:
            return await self.stats()
        raise ValueError(f"Unknown dataset: {key}")

    async def products(self) -> list[Product]:
        remote = await self._fetch_remote(DatasetKey.PRODUCTS, self._store.list_products)
        local = await self._local.load_products()
        deleted = await self._local.load_deleted_products()
        merged = merge_sources(
            remote,
            local,
            default_products(),
            self.policy(DatasetKey.PRODUCTS),
            exclude=deleted,
        )
        logger.debug(
            "Reconciled products: remote=%d local=%d total=%d",
            len(remote),
            len(local or []),
            len(merged),
        )
        return sort_products(merged)

    async def orders(self, key: DatasetKey = DatasetKey.ORDERS) -> list[Order]:
        remote = await self._fetch_remote(key, self._store.list_orders)
        local = await self._local.load_orders()
        merged = merge_sources(remote, local, default_orders(), self.policy(key))
        return sort_orders(merged)

    async def sales_rows(self) -> list[SaleRow]:
        return flatten_sales(await self.orders(DatasetKey.SALES_DATA), self._sales_limit)

    async def stats(self) -> SalesStats:
        return compute_stats(await self.orders(DatasetKey.STATS))

    async def _fetch_remote(self, key: DatasetKey, fetch: Callable[[], Awaitable[list[R]]]) -> list[R]:
        """Remote read that never raises; failures mean "no remote data"."""
        try:
            return await fetch()
        except RemoteSourceError as e:
            if e.is_expected:
                logger.warning("Remote %s unavailable (%s), using fallback data", key.value, e.code.value)
                return []
            await self._report_failure(key, e)
        except Exception as e:
            await self._report_failure(key, e)
        return []

    async def _report_failure(self, key: DatasetKey, error: Exception) -> None:
        capture_exception(error, {"dataset": key.value, "store": self._store.name})
        try:
            await self._notifier.notify(f"Error loading {_LABELS[key]}", str(error), destructive=True)
        except Exception as e:
            logger.warning("Notification failed: %s", e)
