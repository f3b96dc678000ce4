"""Write-through mutations: best-effort remote write, then local store, then cache."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import aiosqlite

from ..cache import AdminDataCache
from ..defaults import default_products
from ..errors import RemoteSourceError
from ..models import DatasetKey, DeletedProduct, Order, OrderStatus, Product, ProductDraft, Provenance
from ..monitoring import LogNotifier, Notifier, capture_exception
from ..storage import LocalStore
from ..stores import BaseRemoteStore
from ..utils import next_local_id

logger = logging.getLogger(__name__)

ORDER_KEYS = (DatasetKey.ORDERS, DatasetKey.SALES_DATA, DatasetKey.STATS)


def _upsert(records: list[Any], record: Any) -> list[Any]:
    """Replace the record with the same id, or append it."""
    updated = list(records)
    for i, existing in enumerate(updated):
        if existing.id == record.id:
            updated[i] = record
            return updated
    updated.append(record)
    return updated


class Mutation(ABC):
    """One user-intended change, split into its remote and local halves."""

    dataset: DatasetKey = DatasetKey.PRODUCTS
    invalidates: tuple[DatasetKey, ...] = (DatasetKey.PRODUCTS,)
    label: str = "change"

    @property
    def targets_remote(self) -> bool:
        """Whether the remote source holds the affected record."""
        return True

    @abstractmethod
    async def apply_remote(self, store: BaseRemoteStore) -> Any:
        """Remote write. May raise; the caller decides what that means."""

    @abstractmethod
    def apply_local(self, records: list[Any], remote_result: Any) -> list[Any]:
        """Return the local records with the mutation applied. Must not mutate ``records``."""

    async def persist_extra(self, local: LocalStore) -> None:
        """Additional local bookkeeping beyond the dataset array."""


class AddProduct(Mutation):
    label = "add product"

    def __init__(self, draft: ProductDraft, now: datetime | None = None):
        self.draft = draft
        self.now = now

    async def apply_remote(self, store: BaseRemoteStore) -> Any:
        return await store.insert_product(self.draft.changes())

    def apply_local(self, records: list[Product], remote_result: Any) -> list[Product]:
        product_id = remote_result
        if product_id is None:
            # Stay clear of the default catalog ids as well
            product_id = next_local_id([*records, *default_products()])
        product = Product(
            id=product_id,
            created_at=self.now or datetime.now(UTC),
            **self.draft.changes(),
        )
        if remote_result is None:
            # The remote never saw this id
            product = product.tagged(Provenance.LOCAL)
        return [product, *records]


class EditProduct(Mutation):
    label = "edit product"

    def __init__(self, product: Product, changes: dict[str, Any]):
        self.product = product
        self.changes = changes
        # Raises ValidationError before anything is written
        self.edited = Product.model_validate({**product.model_dump(), **changes}).tagged(product.source)

    @property
    def targets_remote(self) -> bool:
        return self.product.source is Provenance.REMOTE

    async def apply_remote(self, store: BaseRemoteStore) -> Any:
        await store.update_product(self.product.id, self.changes)

    def apply_local(self, records: list[Product], remote_result: Any) -> list[Product]:
        return _upsert(records, self.edited)


class UpdateStock(EditProduct):
    label = "update stock"

    def __init__(self, product: Product, quantity: int):
        if quantity < 0:
            raise ValueError("Stock quantity must be zero or more")
        super().__init__(product, {"stock_quantity": quantity})


class DeleteProduct(Mutation):
    label = "delete product"

    def __init__(self, product: Product):
        self.product = product

    @property
    def targets_remote(self) -> bool:
        return self.product.source is Provenance.REMOTE

    async def apply_remote(self, store: BaseRemoteStore) -> Any:
        await store.delete_product(self.product.id)

    def apply_local(self, records: list[Product], remote_result: Any) -> list[Product]:
        return [p for p in records if p.id != self.product.id]

    def default_counterpart(self) -> Product | None:
        """The default product this record stands for, if any.

        Remote records count only when both id and name match a default, since
        remote ids can overlap the default ids. Local and sample records keep
        the default's id through edits, so the id alone identifies them.
        """
        for default in default_products():
            if default.id != self.product.id:
                continue
            if self.product.source is not Provenance.REMOTE or default.name == self.product.name:
                return default
        return None

    async def persist_extra(self, local: LocalStore) -> None:
        default = self.default_counterpart()
        if default is None:
            return
        tombstones = await local.load_deleted_products()
        tombstone = DeletedProduct(id=default.id, name=default.name)
        if not any(t.matches(default) for t in tombstones):
            await local.save_deleted_products([*tombstones, tombstone])


class AddOrder(Mutation):
    dataset = DatasetKey.ORDERS
    invalidates = ORDER_KEYS
    label = "place order"

    def __init__(self, order: Order):
        self.order = order

    async def apply_remote(self, store: BaseRemoteStore) -> Any:
        return await store.insert_order(self.order.to_remote())

    def apply_local(self, records: list[Order], remote_result: Any) -> list[Order]:
        order = self.order
        if remote_result is not None:
            order = order.model_copy(update={"id": str(remote_result)})
        return [order, *records]


class UpdateOrderStatus(Mutation):
    dataset = DatasetKey.ORDERS
    invalidates = ORDER_KEYS
    label = "update order status"

    def __init__(self, order: Order, status: OrderStatus):
        self.order = order
        self.status = status

    @property
    def targets_remote(self) -> bool:
        return self.order.source is Provenance.REMOTE

    async def apply_remote(self, store: BaseRemoteStore) -> Any:
        await store.update_order(self.order.id, {"status": self.status.value})

    def apply_local(self, records: list[Order], remote_result: Any) -> list[Order]:
        return _upsert(records, self.order.model_copy(update={"status": self.status}))


@dataclass
class MutationResult:
    remote_ok: bool
    remote_result: Any = None
    local_ok: bool = True
    records: list[Any] = field(default_factory=list)


class WriteThrough:
    """Applies mutations to every tier in a fixed order."""

    def __init__(
        self,
        store: BaseRemoteStore,
        local: LocalStore,
        cache: AdminDataCache | None = None,
        notifier: Notifier | None = None,
    ):
        self.store = store
        self.local = local
        self.cache = cache
        self.notifier = notifier or LogNotifier()

    async def apply(self, mutation: Mutation) -> MutationResult:
        result = MutationResult(remote_ok=False)

        if self.store.is_configured and mutation.targets_remote:
            try:
                result.remote_result = await mutation.apply_remote(self.store)
                result.remote_ok = True
            except RemoteSourceError as e:
                if e.is_expected:
                    logger.warning("Remote %s skipped (%s); saved locally", mutation.label, e.code.value)
                else:
                    await self.report(f"Could not {mutation.label} remotely", e)
            except Exception as e:
                await self.report(f"Could not {mutation.label} remotely", e)
        else:
            logger.debug("Remote %s not attempted (store=%s)", mutation.label, self.store.name)

        try:
            records = await self._load(mutation.dataset)
            result.records = mutation.apply_local(records, result.remote_result)
            await self._save(mutation.dataset, result.records)
            await mutation.persist_extra(self.local)
        except aiosqlite.Error as e:
            result.local_ok = False
            await self.report(f"Could not {mutation.label} locally", e)

        self.invalidate(*mutation.invalidates)
        logger.info(
            "Applied %s (remote=%s, local=%s)",
            mutation.label,
            "ok" if result.remote_ok else "skipped",
            "ok" if result.local_ok else "failed",
        )
        return result

    def invalidate(self, *keys: DatasetKey) -> None:
        if self.cache is None:
            return
        for key in keys:
            self.cache.invalidate(key)

    async def report(self, title: str, error: Exception, capture: bool = True) -> None:
        """Sentry plus a non-blocking notification; never raises."""
        if capture:
            capture_exception(error, {"store": self.store.name, "title": title})
        try:
            await self.notifier.notify(title, str(error), destructive=True)
        except Exception as e:
            logger.warning("Notification failed: %s", e)

    async def _load(self, dataset: DatasetKey) -> list[Any]:
        if dataset is DatasetKey.ORDERS:
            return await self.local.load_orders() or []
        return await self.local.load_products() or []

    async def _save(self, dataset: DatasetKey, records: list[Any]) -> None:
        if dataset is DatasetKey.ORDERS:
            await self.local.save_orders(records)
        else:
            await self.local.save_products(records)
