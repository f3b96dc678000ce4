"""Services package."""

from .dashboard import AdminDashboard
from .image_service import ImageService
from .order_service import OrderService
from .product_service import ProductService
from .reconciler import SourceReconciler
from .write_through import WriteThrough

__all__ = [
    "AdminDashboard",
    "ImageService",
    "OrderService",
    "ProductService",
    "SourceReconciler",
    "WriteThrough",
]
