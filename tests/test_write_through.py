"""Tests for the write-through procedure."""

from unittest.mock import patch

import aiosqlite
import pytest
from pydantic import ValidationError

from bakery.models import DatasetKey, Product, ProductDraft, Provenance
from bakery.services.write_through import AddProduct, DeleteProduct, EditProduct, UpdateStock, WriteThrough
from bakery.stores import LocalOnlyStore


def bread(**extra):
    return Product(id=1, name="Bread", price=150.0, stock_quantity=20, **extra)


def test_apply_local_is_pure():
    records = [bread()]
    updated = UpdateStock(bread(), 3).apply_local(records, None)

    assert records[0].stock_quantity == 20
    assert updated[0].stock_quantity == 3
    assert DeleteProduct(bread()).apply_local(records, None) == []
    assert len(records) == 1


def test_add_product_prepends():
    draft = ProductDraft(name="Rye", price=90.0, stock_quantity=4)
    updated = AddProduct(draft).apply_local([bread()], remote_result="doc-7")
    assert [p.id for p in updated] == ["doc-7", 1]


def test_add_product_offline_is_tagged_local():
    draft = ProductDraft(name="Rye", price=90.0, stock_quantity=4)
    assert AddProduct(draft).apply_local([], remote_result=None)[0].is_local
    assert AddProduct(draft).apply_local([], remote_result=7)[0].source is Provenance.REMOTE


@pytest.mark.asyncio
async def test_invalid_edit_rejected_before_remote_write(writer, remote, local_store):
    remote.products["1"] = {"id": 1, "name": "Bread", "price": 150.0, "stock_quantity": 20}

    with pytest.raises(ValidationError):
        await writer.apply(EditProduct(bread(), {"price": -1}))

    assert remote.called("update_product") == []
    assert remote.products["1"]["price"] == 150.0
    assert await local_store.load_products() is None


@pytest.mark.asyncio
async def test_local_only_store_skips_remote(local_store, cache, notifier):
    writer = WriteThrough(LocalOnlyStore(), local_store, cache, notifier)

    result = await writer.apply(UpdateStock(bread(), 0))

    assert not result.remote_ok
    assert result.local_ok
    assert (await local_store.load_products())[0].stock_quantity == 0
    assert notifier.messages == []


@pytest.mark.asyncio
async def test_non_remote_record_skips_remote(writer, remote):
    await writer.apply(UpdateStock(bread(source=Provenance.LOCAL), 5))
    assert remote.called("update_product") == []


@pytest.mark.asyncio
async def test_local_write_failure_is_reported(writer, local_store, cache, notifier):
    cache.set(DatasetKey.PRODUCTS, ["stale"])
    with patch.object(local_store, "save_products", side_effect=aiosqlite.OperationalError("disk full")):
        result = await writer.apply(UpdateStock(bread(source=Provenance.LOCAL), 5))

    assert not result.local_ok
    assert notifier.messages[0][0] == "Could not update stock locally"
    assert cache.get(DatasetKey.PRODUCTS) is None
