"""Stand-in remote store used when no backend is configured."""

from __future__ import annotations

from typing import Any, NoReturn

from ..errors import RemoteErrorCode, RemoteSourceError
from .base import BaseRemoteStore, ProductId


def _unavailable() -> NoReturn:
    raise RemoteSourceError(RemoteErrorCode.UNAVAILABLE, "No remote backend configured")


class LocalOnlyStore(BaseRemoteStore):
    """Every operation fails as ``unavailable`` so callers degrade to local data."""

    name = "local"
    is_configured = False

    async def _fetch_products(self) -> list[dict[str, Any]]:
        _unavailable()

    async def _fetch_product(self, product_id: ProductId) -> dict[str, Any] | None:
        _unavailable()

    async def _fetch_orders(self) -> list[dict[str, Any]]:
        _unavailable()

    async def insert_product(self, data: dict[str, Any]) -> ProductId:
        _unavailable()

    async def update_product(self, product_id: ProductId, changes: dict[str, Any]) -> None:
        _unavailable()

    async def delete_product(self, product_id: ProductId) -> None:
        _unavailable()

    async def delete_all_products(self) -> None:
        _unavailable()

    async def insert_products(self, rows: list[dict[str, Any]]) -> None:
        _unavailable()

    async def insert_order(self, data: dict[str, Any]) -> str:
        _unavailable()

    async def update_order(self, order_id: str, changes: dict[str, Any]) -> None:
        _unavailable()

    async def ping(self) -> None:
        _unavailable()
