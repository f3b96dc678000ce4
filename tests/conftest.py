"""Pytest configuration and shared fakes."""

from __future__ import annotations

import copy
from typing import Any

import pytest
import pytest_asyncio

from bakery.cache import AdminDataCache
from bakery.config import get_settings
from bakery.errors import RemoteErrorCode, RemoteSourceError
from bakery.services.reconciler import SourceReconciler
from bakery.services.write_through import WriteThrough
from bakery.storage import LocalStore, init_db
from bakery.stores import BaseRemoteStore


class FakeRemoteStore(BaseRemoteStore):
    """In-memory remote store; failures are injected per operation name."""

    name = "fake"

    def __init__(self, products: list[dict[str, Any]] | None = None, orders: list[dict[str, Any]] | None = None):
        self.products: dict[str, dict[str, Any]] = {str(p["id"]): copy.deepcopy(p) for p in products or []}
        self.orders: dict[str, dict[str, Any]] = {str(o["id"]): copy.deepcopy(o) for o in orders or []}
        self.failures: dict[str, Exception] = {}
        self.failing_updates: set[str] = set()
        self.calls: list[tuple[Any, ...]] = []
        self._next_id = 100

    def fail(self, operation: str, code: RemoteErrorCode = RemoteErrorCode.UNAVAILABLE) -> None:
        self.failures[operation] = RemoteSourceError(code, f"{operation} failed")

    def _call(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, *args))
        if operation in self.failures:
            raise self.failures[operation]

    def called(self, operation: str) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == operation]

    async def _fetch_products(self) -> list[dict[str, Any]]:
        self._call("list_products")
        return copy.deepcopy(list(self.products.values()))

    async def _fetch_product(self, product_id):
        self._call("get_product", product_id)
        row = self.products.get(str(product_id))
        return copy.deepcopy(row) if row else None

    async def _fetch_orders(self) -> list[dict[str, Any]]:
        self._call("list_orders")
        return copy.deepcopy(list(self.orders.values()))

    async def insert_product(self, data):
        self._call("insert_product", data)
        product_id = self._next_id
        self._next_id += 1
        self.products[str(product_id)] = {**data, "id": product_id}
        return product_id

    async def update_product(self, product_id, changes):
        self._call("update_product", product_id, changes)
        if str(product_id) in self.failing_updates:
            raise RemoteSourceError(RemoteErrorCode.OTHER, f"update {product_id} failed")
        if str(product_id) not in self.products:
            raise RemoteSourceError(RemoteErrorCode.NOT_FOUND, f"product {product_id}")
        self.products[str(product_id)].update(changes)

    async def delete_product(self, product_id):
        self._call("delete_product", product_id)
        self.products.pop(str(product_id), None)

    async def delete_all_products(self):
        self._call("delete_all_products")
        self.products.clear()

    async def insert_products(self, rows):
        self._call("insert_products", rows)
        for row in rows:
            await self.insert_product(row)

    async def insert_order(self, data):
        self._call("insert_order", data)
        order_id = f"remote-{len(self.orders) + 1}"
        self.orders[order_id] = {**data, "id": order_id}
        return order_id

    async def update_order(self, order_id, changes):
        self._call("update_order", order_id, changes)
        self.orders[str(order_id)].update(changes)

    async def ping(self):
        self._call("ping")


class RecordingNotifier:
    """Collects notifications instead of delivering them."""

    def __init__(self):
        self.messages: list[tuple[str, str, bool]] = []

    async def notify(self, title: str, description: str, *, destructive: bool = False) -> None:
        self.messages.append((title, description, destructive))


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def isolate_settings(monkeypatch, tmp_path):
    """Keep the developer's environment out of settings-dependent code."""
    for var in ("SENTRY_DSN", "TELEGRAM_BOT_TOKEN", "ADMIN_TELEGRAM_IDS", "DATA_BACKEND"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test_bakery.sqlite3"


@pytest_asyncio.fixture
async def local_store(db_path) -> LocalStore:
    await init_db(db_path)
    return LocalStore(db_path)


@pytest.fixture
def remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> AdminDataCache:
    return AdminDataCache(clock=clock)


@pytest.fixture
def reconciler(remote, local_store, notifier) -> SourceReconciler:
    return SourceReconciler(remote, local_store, notifier)


@pytest.fixture
def writer(remote, local_store, cache, notifier) -> WriteThrough:
    return WriteThrough(remote, local_store, cache, notifier)
