"""Firestore (document database) backend."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from google.api_core import exceptions as gexc
from google.auth import exceptions as auth_exc
from google.cloud import firestore
from google.oauth2.service_account import Credentials

from ..errors import RemoteErrorCode, RemoteSourceError
from .base import BaseRemoteStore, ProductId

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/datastore"]

PRODUCTS = "products"
ORDERS = "orders"

# Firestore rejects batches above this many writes
MAX_BATCH_WRITES = 500


@asynccontextmanager
async def translate_errors(operation: str) -> AsyncIterator[None]:
    """Re-raise SDK failures as ``RemoteSourceError``."""
    try:
        yield
    except (gexc.PermissionDenied, gexc.Unauthenticated) as e:
        raise RemoteSourceError(RemoteErrorCode.PERMISSION_DENIED, f"{operation}: {e}") from e
    except (gexc.ServiceUnavailable, gexc.DeadlineExceeded, gexc.RetryError, auth_exc.TransportError) as e:
        raise RemoteSourceError(RemoteErrorCode.UNAVAILABLE, f"{operation}: {e}") from e
    except gexc.NotFound as e:
        raise RemoteSourceError(RemoteErrorCode.NOT_FOUND, f"{operation}: {e}") from e
    except auth_exc.GoogleAuthError as e:
        raise RemoteSourceError(RemoteErrorCode.PERMISSION_DENIED, f"{operation}: {e}") from e
    except gexc.GoogleAPIError as e:
        raise RemoteSourceError(RemoteErrorCode.OTHER, f"{operation}: {e}") from e


class FirestoreStore(BaseRemoteStore):
    """Products and orders as Firestore collections; order items are nested."""

    name = "firestore"

    def __init__(
        self,
        project_id: str,
        credentials_info: dict[str, Any] | None = None,
        client: Any = None,
    ):
        self.project_id = project_id
        self._credentials_info = credentials_info
        self._client = client

    @property
    def client(self) -> firestore.AsyncClient:
        """Lazy-loaded Firestore client."""
        if self._client is None:
            creds = None
            if self._credentials_info:
                creds = Credentials.from_service_account_info(self._credentials_info, scopes=SCOPES)
            self._client = firestore.AsyncClient(project=self.project_id, credentials=creds)
        return self._client

    def _doc(self, collection: str, doc_id: ProductId):
        return self.client.collection(collection).document(str(doc_id))

    async def _list(self, collection: str) -> list[dict[str, Any]]:
        rows = []
        async with translate_errors(f"list {collection}"):
            async for snap in self.client.collection(collection).stream():
                rows.append({**(snap.to_dict() or {}), "id": snap.id})
        logger.debug("Fetched %d %s from Firestore", len(rows), collection)
        return rows

    async def _fetch_products(self) -> list[dict[str, Any]]:
        return await self._list(PRODUCTS)

    async def _fetch_orders(self) -> list[dict[str, Any]]:
        return await self._list(ORDERS)

    async def _fetch_product(self, product_id: ProductId) -> dict[str, Any] | None:
        async with translate_errors(f"get product {product_id}"):
            snap = await self._doc(PRODUCTS, product_id).get()
        if not snap.exists:
            return None
        return {**(snap.to_dict() or {}), "id": snap.id}

    async def insert_product(self, data: dict[str, Any]) -> ProductId:
        async with translate_errors("insert product"):
            _, ref = await self.client.collection(PRODUCTS).add(data)
        return ref.id

    async def update_product(self, product_id: ProductId, changes: dict[str, Any]) -> None:
        async with translate_errors(f"update product {product_id}"):
            await self._doc(PRODUCTS, product_id).update(changes)

    async def delete_product(self, product_id: ProductId) -> None:
        async with translate_errors(f"delete product {product_id}"):
            await self._doc(PRODUCTS, product_id).delete()

    async def delete_all_products(self) -> None:
        async with translate_errors("delete all products"):
            refs = [snap.reference async for snap in self.client.collection(PRODUCTS).stream()]
            for start in range(0, len(refs), MAX_BATCH_WRITES):
                batch = self.client.batch()
                for ref in refs[start : start + MAX_BATCH_WRITES]:
                    batch.delete(ref)
                await batch.commit()
        logger.info("Deleted %d products from Firestore", len(refs))

    async def insert_products(self, rows: list[dict[str, Any]]) -> None:
        async with translate_errors("insert products"):
            collection = self.client.collection(PRODUCTS)
            for start in range(0, len(rows), MAX_BATCH_WRITES):
                batch = self.client.batch()
                for row in rows[start : start + MAX_BATCH_WRITES]:
                    batch.set(collection.document(), row)
                await batch.commit()

    async def insert_order(self, data: dict[str, Any]) -> str:
        async with translate_errors("insert order"):
            _, ref = await self.client.collection(ORDERS).add(data)
        return ref.id

    async def update_order(self, order_id: str, changes: dict[str, Any]) -> None:
        async with translate_errors(f"update order {order_id}"):
            await self._doc(ORDERS, order_id).update(changes)

    async def ping(self) -> None:
        async with translate_errors("ping"):
            async for _ in self.client.collection(PRODUCTS).limit(1).stream():
                break
