"""Supabase (PostgREST) backend over httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import RemoteErrorCode, RemoteSourceError
from .base import BaseRemoteStore, ProductId

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)

# Line item columns holding the product snapshot taken at order time
_ITEM_SNAPSHOT_COLUMNS = ("product_name", "product_image_url")


def _status_to_code(status: int) -> RemoteErrorCode:
    if status in (401, 403):
        return RemoteErrorCode.PERMISSION_DENIED
    if status == 404:
        return RemoteErrorCode.NOT_FOUND
    if status in (408, 429) or status >= 500:
        return RemoteErrorCode.UNAVAILABLE
    return RemoteErrorCode.OTHER


def _order_from_row(row: dict[str, Any]) -> dict[str, Any]:
    """Reshape an ``orders`` row with embedded ``order_items`` into the nested order form."""
    order = {k: v for k, v in row.items() if k != "order_items"}
    items = []
    for item in row.get("order_items") or []:
        items.append(
            {
                "product_id": item.get("product_id"),
                "quantity": item.get("quantity"),
                "price_at_purchase": item.get("price_at_purchase"),
                "products": {
                    "name": item.get("product_name"),
                    "image_url": item.get("product_image_url"),
                },
            }
        )
    order["items"] = items
    return order


def _item_rows(order_id: Any, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    rows = []
    for item in items:
        snapshot = item.get("products") or {}
        rows.append(
            {
                "order_id": order_id,
                "product_id": item["product_id"],
                "quantity": item["quantity"],
                "price_at_purchase": item["price_at_purchase"],
                _ITEM_SNAPSHOT_COLUMNS[0]: snapshot.get("name"),
                _ITEM_SNAPSHOT_COLUMNS[1]: snapshot.get("image_url"),
            }
        )
    return rows


class SupabaseStore(BaseRemoteStore):
    """``products``, ``orders`` and ``order_items`` tables behind PostgREST."""

    name = "supabase"

    def __init__(
        self,
        url: str,
        anon_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = f"{url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": anon_key,
            "Authorization": f"Bearer {anon_key}",
        }
        self._transport = transport

    async def _request(
        self,
        method: str,
        table: str,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
        return_rows: bool = False,
    ) -> Any:
        """Make an API request, mapping failures to ``RemoteSourceError``."""
        headers = dict(self._headers)
        if return_rows:
            headers["Prefer"] = "return=representation"

        try:
            async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, transport=self._transport) as client:
                response = await client.request(
                    method,
                    f"{self._base_url}/{table}",
                    params=params,
                    json=json_data,
                    headers=headers,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise RemoteSourceError(
                _status_to_code(status), f"{method} {table}: HTTP {status} {e.response.text[:200]}"
            ) from e
        except httpx.TransportError as e:
            raise RemoteSourceError(RemoteErrorCode.UNAVAILABLE, f"{method} {table}: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteSourceError(RemoteErrorCode.OTHER, f"{method} {table}: invalid JSON") from e

    @staticmethod
    def _first_row(rows: Any, what: str) -> dict[str, Any]:
        if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
            raise RemoteSourceError(RemoteErrorCode.OTHER, f"{what}: no row returned")
        return rows[0]

    async def _fetch_products(self) -> list[dict[str, Any]]:
        return await self._request("GET", "products", params={"select": "*"})

    async def _fetch_product(self, product_id: ProductId) -> dict[str, Any] | None:
        rows = await self._request(
            "GET", "products", params={"select": "*", "id": f"eq.{product_id}", "limit": 1}
        )
        return rows[0] if isinstance(rows, list) and rows else None

    async def insert_product(self, data: dict[str, Any]) -> ProductId:
        rows = await self._request("POST", "products", json_data=data, return_rows=True)
        return self._first_row(rows, "insert product")["id"]

    async def update_product(self, product_id: ProductId, changes: dict[str, Any]) -> None:
        await self._request("PATCH", "products", params={"id": f"eq.{product_id}"}, json_data=changes)

    async def delete_product(self, product_id: ProductId) -> None:
        await self._request("DELETE", "products", params={"id": f"eq.{product_id}"})

    async def delete_all_products(self) -> None:
        # PostgREST refuses unfiltered deletes
        await self._request("DELETE", "products", params={"id": "gt.0"})

    async def insert_products(self, rows: list[dict[str, Any]]) -> None:
        if rows:
            await self._request("POST", "products", json_data=rows)

    async def _fetch_orders(self) -> list[dict[str, Any]]:
        rows = await self._request("GET", "orders", params={"select": "*,order_items(*)"})
        if not isinstance(rows, list):
            return rows
        return [_order_from_row(row) if isinstance(row, dict) else row for row in rows]

    async def insert_order(self, data: dict[str, Any]) -> str:
        order_row = {k: v for k, v in data.items() if k != "items"}
        created = await self._request("POST", "orders", json_data=order_row, return_rows=True)
        order_id = self._first_row(created, "insert order")["id"]

        items = _item_rows(order_id, data.get("items") or [])
        if items:
            await self._request("POST", "order_items", json_data=items)
        logger.info("Created Supabase order %s with %d items", order_id, len(items))
        return str(order_id)

    async def update_order(self, order_id: str, changes: dict[str, Any]) -> None:
        await self._request("PATCH", "orders", params={"id": f"eq.{order_id}"}, json_data=changes)

    async def ping(self) -> None:
        await self._request("GET", "products", params={"select": "id", "limit": 1})
