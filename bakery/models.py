"""Data models for the bakery storefront."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DatasetKey(str, Enum):
    """Logical datasets shown on the admin dashboard."""

    PRODUCTS = "products"
    ORDERS = "orders"
    SALES_DATA = "salesData"
    STATS = "stats"


class Provenance(str, Enum):
    """Where a record in a reconciled working set came from."""

    REMOTE = "remote"
    LOCAL = "local"
    MOCK = "mock"


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    DELIVERED = "delivered"


class StockStatus(str, Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"


class ConnectionStatus(str, Enum):
    CONNECTED = "connected"
    DEMO = "demo"
    DISCONNECTED = "disconnected"


class _Record(BaseModel):
    """Base for records read from a store.

    ``source`` is assigned during reconciliation and never serialized.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    source: Provenance = Field(default=Provenance.REMOTE, exclude=True)

    @property
    def is_local(self) -> bool:
        return self.source is Provenance.LOCAL

    @property
    def is_mock(self) -> bool:
        return self.source is Provenance.MOCK

    def tagged(self, source: Provenance):
        """Deep copy carrying the given provenance tag."""
        return self.model_copy(update={"source": source}, deep=True)


class Product(_Record):
    """Catalog product."""

    id: int | str
    name: str = Field(min_length=1)
    description: str | None = None
    price: float = Field(ge=0)
    stock_quantity: int = Field(ge=0)
    image_url: str | None = None
    category: str | None = None
    created_at: datetime | None = None

    def matches(self, other: Product) -> bool:
        """Duplicate rule: same id OR same name."""
        return self.id == other.id or self.name == other.name

    def to_remote(self) -> dict[str, Any]:
        """Payload for a remote insert (the remote assigns the id)."""
        return self.model_dump(mode="json", exclude={"id"}, exclude_none=True)


class ProductDraft(BaseModel):
    """Values submitted from the add/edit product form."""

    name: str = Field(min_length=1)
    description: str = ""
    price: float = Field(ge=0)
    stock_quantity: int = Field(ge=0)
    image_url: str = ""
    category: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ProductSnapshot(BaseModel):
    """Product details frozen into a line item at order time."""

    name: str
    image_url: str | None = None


class LineItem(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    product_id: int | str
    quantity: int = Field(gt=0)
    price_at_purchase: float = Field(ge=0)
    product: ProductSnapshot = Field(alias="products")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Order(_Record):
    """Customer order with nested line items."""

    id: str
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    delivery_address: str | None = None
    status: OrderStatus = OrderStatus.PENDING
    total_price: float = Field(ge=0)
    created_at: datetime
    items: list[LineItem] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        # Postgres-backed sources hand out integer ids
        return str(v) if isinstance(v, int) else v

    @field_validator("created_at")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        return _as_utc(v)

    def matches(self, other: Order) -> bool:
        return self.id == other.id

    def to_remote(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude={"id"})


@dataclass
class SaleRow:
    """One sold line item, flattened out of an order."""

    id: str
    product: ProductSnapshot
    quantity: int
    price_at_purchase: float
    created_at: datetime
    source: Provenance = Provenance.REMOTE


@dataclass
class TopProduct:
    name: str
    quantity: int


@dataclass
class SalesStats:
    """Aggregate figures for the sales tab."""

    total_revenue: float
    total_orders: int
    top_product: TopProduct | None


@dataclass
class CustomerDetails:
    """Checkout form fields."""

    name: str
    email: str
    phone: str = ""
    address: str = ""


@dataclass
class CartItem:
    product: Product
    quantity: int


@dataclass
class CheckoutSummary:
    subtotal: float
    tax: float
    total: float


@dataclass
class RestoreResult:
    """Outcome of resetting product data to the defaults."""

    ok: bool
    remote_reseeded: bool
    error: str | None = None


class DeletedProduct(BaseModel):
    """Tombstone for a default product the admin removed."""

    id: int | str
    name: str

    def matches(self, product: Product) -> bool:
        return self.id == product.id and self.name == product.name
