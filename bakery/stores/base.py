"""Remote data source capability shared by all backends."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import RemoteErrorCode, RemoteSourceError
from ..models import Order, Product

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

ProductId = int | str


def parse_records(model: type[M], rows: Any, kind: str) -> list[M]:
    """Validate raw rows, skipping (and logging) the ones with an unknown shape."""
    if not isinstance(rows, list):
        raise RemoteSourceError(RemoteErrorCode.OTHER, f"Malformed {kind} listing: expected a list")

    records: list[M] = []
    for row in rows:
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            row_id = row.get("id") if isinstance(row, dict) else None
            logger.warning("Skipping malformed %s record id=%s: %s", kind, row_id, e.errors()[:3])
    return records


class BaseRemoteStore(ABC):
    """Collection-style access to the ``products`` and ``orders`` resources.

    Implementations raise ``RemoteSourceError`` for every failure; reads return
    validated models, writes take plain JSON-ready dicts.
    """

    name: str = "remote"
    is_configured: bool = True

    async def list_products(self) -> list[Product]:
        return parse_records(Product, await self._fetch_products(), "product")

    async def get_product(self, product_id: ProductId) -> Product | None:
        row = await self._fetch_product(product_id)
        if row is None:
            return None
        try:
            return Product.model_validate(row)
        except ValidationError as e:
            raise RemoteSourceError(
                RemoteErrorCode.OTHER, f"Malformed product record {product_id}"
            ) from e

    async def list_orders(self) -> list[Order]:
        return parse_records(Order, await self._fetch_orders(), "order")

    async def close(self) -> None:
        """Release network resources, if any."""

    # -------------------------------------------------------------------------
    # Backend-specific operations
    # -------------------------------------------------------------------------
    @abstractmethod
    async def _fetch_products(self) -> list[dict[str, Any]]: ...

    @abstractmethod
    async def _fetch_product(self, product_id: ProductId) -> dict[str, Any] | None: ...

    @abstractmethod
    async def _fetch_orders(self) -> list[dict[str, Any]]: ...

    @abstractmethod
    async def insert_product(self, data: dict[str, Any]) -> ProductId:
        """Insert a product and return the id the remote assigned."""

    @abstractmethod
    async def update_product(self, product_id: ProductId, changes: dict[str, Any]) -> None:
        """Merge-patch a product."""

    @abstractmethod
    async def delete_product(self, product_id: ProductId) -> None: ...

    @abstractmethod
    async def delete_all_products(self) -> None: ...

    @abstractmethod
    async def insert_products(self, rows: list[dict[str, Any]]) -> None: ...

    @abstractmethod
    async def insert_order(self, data: dict[str, Any]) -> str:
        """Insert an order with its items and return the new order id."""

    @abstractmethod
    async def update_order(self, order_id: str, changes: dict[str, Any]) -> None: ...

    @abstractmethod
    async def ping(self) -> None:
        """Lightweight read proving the source is reachable."""
