"""Exception types shared across the data layer."""

from __future__ import annotations

from enum import Enum


class RemoteErrorCode(str, Enum):
    """Failure modes a remote source can surface."""

    PERMISSION_DENIED = "permission-denied"
    UNAVAILABLE = "unavailable"
    NOT_FOUND = "not-found"
    OTHER = "other"


# Degrade silently on these; everything else gets a notification
EXPECTED_CODES = frozenset({RemoteErrorCode.PERMISSION_DENIED, RemoteErrorCode.UNAVAILABLE})


class BakeryError(Exception):
    """Base class for data layer errors."""


class RemoteSourceError(BakeryError):
    """A remote read or write failed."""

    def __init__(self, code: RemoteErrorCode, message: str = ""):
        super().__init__(message or code.value)
        self.code = code

    @property
    def is_expected(self) -> bool:
        return self.code in EXPECTED_CODES


class ImageTooLargeError(BakeryError):
    """Uploaded image exceeds the size limit."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"Image is {size} bytes; please upload an image smaller than {limit} bytes")
        self.size = size
        self.limit = limit


class EmptyCartError(BakeryError):
    """Checkout attempted with no items."""
