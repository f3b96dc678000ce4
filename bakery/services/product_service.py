"""Product operations: write-through mutations and storefront reads."""

from __future__ import annotations

import logging

from ..defaults import default_products
from ..errors import RemoteSourceError
from ..models import DatasetKey, Product, ProductDraft, RestoreResult, StockStatus
from .reconciler import SourceReconciler
from .write_through import AddProduct, DeleteProduct, EditProduct, UpdateStock, WriteThrough

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 5

# Fields the remote table does not carry when reseeding
_RESEED_EXCLUDE = {"id", "category", "created_at"}


def stock_status(quantity: int) -> StockStatus:
    if quantity <= 0:
        return StockStatus.OUT_OF_STOCK
    if quantity < LOW_STOCK_THRESHOLD:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def filter_by_category(products: list[Product], category: str) -> list[Product]:
    """Filter products by category; "all" keeps everything."""
    if category == "all":
        return list(products)
    return [p for p in products if (p.category or "").lower() == category.lower()]


def categories(products: list[Product]) -> list[str]:
    return sorted({p.category for p in products if p.category})


def search(products: list[Product], query: str) -> list[Product]:
    """Search products by name, description, category."""
    query = query.strip().lower()
    if not query:
        return list(products)

    found = []
    for p in products:
        hay = " ".join(filter(None, (p.name, p.description, p.category))).lower()
        if query in hay:
            found.append(p)
    return found


class ProductService:
    """Catalog mutations for the admin views plus the storefront catalog."""

    def __init__(self, writer: WriteThrough, reconciler: SourceReconciler):
        self._writer = writer
        self._reconciler = reconciler

    async def add_product(self, draft: ProductDraft) -> Product:
        result = await self._writer.apply(AddProduct(draft))
        return result.records[0]

    async def edit_product(self, product: Product, draft: ProductDraft) -> Product:
        mutation = EditProduct(product, draft.changes())
        await self._writer.apply(mutation)
        return mutation.edited

    async def update_stock(self, product: Product, quantity: int) -> Product:
        mutation = UpdateStock(product, quantity)
        await self._writer.apply(mutation)
        return mutation.edited

    async def delete_product(self, product: Product) -> None:
        await self._writer.apply(DeleteProduct(product))

    async def restore_defaults(self) -> RestoreResult:
        """Wipe local product state and reseed the remote catalog when there is one."""
        local = self._writer.local
        store = self._writer.store

        await local.clear_products()
        self._writer.invalidate(DatasetKey.PRODUCTS)

        if not store.is_configured:
            logger.info("Products restored to defaults locally")
            return RestoreResult(ok=True, remote_reseeded=False)

        rows = [p.model_dump(mode="json", exclude=_RESEED_EXCLUDE) for p in default_products()]
        try:
            await store.delete_all_products()
            await store.insert_products(rows)
        except Exception as e:
            expected = isinstance(e, RemoteSourceError) and e.is_expected
            await self._writer.report("Could not restore default products", e, capture=not expected)
            return RestoreResult(ok=False, remote_reseeded=False, error=str(e))

        logger.info("Remote catalog reseeded with %d default products", len(rows))
        return RestoreResult(ok=True, remote_reseeded=True)

    async def list_catalog(self) -> list[Product]:
        """Storefront catalog, reconciled fresh on every call."""
        return await self._reconciler.products()
