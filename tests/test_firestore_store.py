"""Tests for the Firestore store against a mocked async client."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from google.api_core import exceptions as gexc
from google.auth import exceptions as auth_exc

from bakery.errors import RemoteErrorCode, RemoteSourceError
from bakery.stores.firestore import FirestoreStore, translate_errors


class AsyncStream:
    """Async iterator standing in for ``Query.stream()``."""

    def __init__(self, items):
        self._items = list(items)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._items:
            raise StopAsyncIteration
        return self._items.pop(0)


def snapshot(doc_id, data, exists=True):
    snap = MagicMock()
    snap.id = doc_id
    snap.exists = exists
    snap.to_dict.return_value = data
    snap.reference = MagicMock(name=f"ref-{doc_id}")
    return snap


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def store(client):
    return FirestoreStore("demo-project", client=client)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, code",
    [
        (gexc.PermissionDenied("no"), RemoteErrorCode.PERMISSION_DENIED),
        (gexc.Unauthenticated("no"), RemoteErrorCode.PERMISSION_DENIED),
        (gexc.ServiceUnavailable("down"), RemoteErrorCode.UNAVAILABLE),
        (gexc.DeadlineExceeded("slow"), RemoteErrorCode.UNAVAILABLE),
        (auth_exc.TransportError("offline"), RemoteErrorCode.UNAVAILABLE),
        (gexc.NotFound("gone"), RemoteErrorCode.NOT_FOUND),
        (auth_exc.DefaultCredentialsError("no creds"), RemoteErrorCode.PERMISSION_DENIED),
        (gexc.InvalidArgument("bad"), RemoteErrorCode.OTHER),
    ],
)
async def test_translate_errors(error, code):
    with pytest.raises(RemoteSourceError) as exc_info:
        async with translate_errors("op"):
            raise error
    assert exc_info.value.code is code
    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_translate_errors_leaves_other_exceptions():
    with pytest.raises(KeyError):
        async with translate_errors("op"):
            raise KeyError("x")


@pytest.mark.asyncio
async def test_list_products_uses_document_ids(store, client):
    client.collection.return_value.stream.return_value = AsyncStream(
        [
            snapshot("abc", {"name": "Bread", "price": 150, "stock_quantity": 20, "category": "Bread"}),
            snapshot("def", {"name": "Bun", "price": 50, "stock_quantity": 50}),
        ]
    )

    products = await store.list_products()

    client.collection.assert_called_with("products")
    assert [(p.id, p.name) for p in products] == [("abc", "Bread"), ("def", "Bun")]


@pytest.mark.asyncio
async def test_list_orders_with_nested_items(store, client):
    client.collection.return_value.stream.return_value = AsyncStream(
        [
            snapshot(
                "o1",
                {
                    "customer_name": "Ann",
                    "customer_email": "ann@example.com",
                    "status": "pending",
                    "total_price": 54.0,
                    "created_at": "2024-05-01T10:00:00Z",
                    "items": [
                        {"product_id": "abc", "quantity": 1, "price_at_purchase": 50.0, "products": {"name": "Bun"}}
                    ],
                },
            )
        ]
    )

    orders = await store.list_orders()

    assert orders[0].id == "o1"
    assert orders[0].items[0].product.name == "Bun"


@pytest.mark.asyncio
async def test_stream_failure_translated(store, client):
    client.collection.return_value.stream.side_effect = gexc.PermissionDenied("rules")
    with pytest.raises(RemoteSourceError) as exc_info:
        await store.list_products()
    assert exc_info.value.is_expected


@pytest.mark.asyncio
async def test_get_product(store, client):
    document = client.collection.return_value.document
    document.return_value.get = AsyncMock(return_value=snapshot("abc", {"name": "Bread", "price": 1, "stock_quantity": 4}))

    product = await store.get_product("abc")

    document.assert_called_with("abc")
    assert product.stock_quantity == 4


@pytest.mark.asyncio
async def test_get_missing_product(store, client):
    client.collection.return_value.document.return_value.get = AsyncMock(return_value=snapshot("x", None, exists=False))
    assert await store.get_product(1) is None
    client.collection.return_value.document.assert_called_with("1")


@pytest.mark.asyncio
async def test_insert_returns_document_id(store, client):
    ref = MagicMock(id="new-id")
    client.collection.return_value.add = AsyncMock(return_value=(None, ref))

    assert await store.insert_product({"name": "Rye"}) == "new-id"
    assert await store.insert_order({"customer_name": "Ann"}) == "new-id"


@pytest.mark.asyncio
async def test_update_and_delete(store, client):
    doc = client.collection.return_value.document.return_value
    doc.update = AsyncMock()
    doc.delete = AsyncMock()

    await store.update_product("abc", {"stock_quantity": 2})
    await store.update_order("o1", {"status": "delivered"})
    await store.delete_product("abc")

    doc.update.assert_any_await({"stock_quantity": 2})
    doc.update.assert_any_await({"status": "delivered"})
    doc.delete.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_missing_document_is_not_found(store, client):
    client.collection.return_value.document.return_value.update = AsyncMock(side_effect=gexc.NotFound("missing"))
    with pytest.raises(RemoteSourceError) as exc_info:
        await store.update_product("zzz", {"stock_quantity": 1})
    assert exc_info.value.code is RemoteErrorCode.NOT_FOUND


@pytest.mark.asyncio
async def test_delete_all_and_reseed_use_batches(store, client):
    client.collection.return_value.stream.return_value = AsyncStream([snapshot("a", {}), snapshot("b", {})])
    batch = client.batch.return_value
    batch.commit = AsyncMock()

    await store.delete_all_products()
    assert batch.delete.call_count == 2

    await store.insert_products([{"name": "Bread"}, {"name": "Bun"}, {"name": "Rye"}])
    assert batch.set.call_count == 3
    assert batch.commit.await_count == 2


@pytest.mark.asyncio
async def test_ping(store, client):
    client.collection.return_value.limit.return_value.stream.return_value = AsyncStream([snapshot("a", {})])
    await store.ping()
    client.collection.return_value.limit.assert_called_with(1)
