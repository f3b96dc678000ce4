"""Application configuration using Pydantic Settings."""

from __future__ import annotations

import base64
import json
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Annotated
from urllib.parse import urlparse

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Values copied verbatim from .env templates; treated as "not configured"
_SUPABASE_URL_PLACEHOLDERS = ("your_project_url", "your_supabase_project_url")
_SUPABASE_KEY_PLACEHOLDERS = ("your_anon_key", "your_supabase_anon_key")


class BackendKind(str, Enum):
    """Remote data source selected at startup."""

    AUTO = "auto"
    FIRESTORE = "firestore"
    SUPABASE = "supabase"
    LOCAL = "local"


class DefaultsPolicy(str, Enum):
    """How aggressively the default dataset is merged into a working set."""

    FILL_MISSING = "fill_missing"
    WHEN_EMPTY = "when_empty"
    NEVER = "never"


def _is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class Settings(BaseSettings):
    """Settings loaded from environment variables / .env."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    data_backend: BackendKind = BackendKind.AUTO

    # Firestore (document database)
    firebase_project_id: str = ""
    firebase_service_account_json_path: str = ""
    firebase_service_account_json_b64: str = ""

    # Supabase (Postgres-backed REST)
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Cloudinary (product images)
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_folder: str = "product-images"

    # Telegram admin notifications (optional)
    telegram_bot_token: str | None = None
    admin_telegram_ids: Annotated[list[int], NoDecode] = []

    # Monitoring (Sentry)
    sentry_dsn: str = ""
    environment: str = "production"

    log_level: str = "INFO"
    local_store_path: Path = Path("data/bakery.sqlite3")

    # Fallback aggressiveness per dataset
    products_defaults_policy: DefaultsPolicy = DefaultsPolicy.FILL_MISSING
    orders_defaults_policy: DefaultsPolicy = DefaultsPolicy.WHEN_EMPTY

    @field_validator("admin_telegram_ids", mode="before")
    @classmethod
    def parse_admin_ids(cls, v: str | list[int] | int) -> list[int]:
        """Parse comma-separated string of IDs into list of integers."""
        if isinstance(v, list):
            return v
        if isinstance(v, int):
            return [v]
        if isinstance(v, str) and v.strip():
            return [int(id_.strip()) for id_ in v.split(",") if id_.strip()]
        return []

    @model_validator(mode="after")
    def validate_cloudinary_credentials(self) -> "Settings":
        """Ensure all Cloudinary credentials are provided together or none."""
        fields = {
            "CLOUDINARY_CLOUD_NAME": self.cloudinary_cloud_name,
            "CLOUDINARY_API_KEY": self.cloudinary_api_key,
            "CLOUDINARY_API_SECRET": self.cloudinary_api_secret,
        }
        missing = [name for name, value in fields.items() if not value]
        if missing and len(missing) < len(fields):
            raise ValueError(
                f"Cloudinary partially configured. Missing: {', '.join(missing)}. "
                "Provide all Cloudinary credentials or none."
            )
        return self

    @property
    def cloudinary_enabled(self) -> bool:
        return bool(
            self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret
        )

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.admin_telegram_ids)

    @property
    def firestore_configured(self) -> bool:
        return bool(
            self.firebase_project_id
            and (self.firebase_service_account_json_path or self.firebase_service_account_json_b64)
        )

    @property
    def supabase_configured(self) -> bool:
        url, key = self.supabase_url.strip(), self.supabase_anon_key.strip()
        if not url or not key:
            return False
        if any(p in url for p in _SUPABASE_URL_PLACEHOLDERS) or not _is_valid_url(url):
            return False
        return not any(p in key for p in _SUPABASE_KEY_PLACEHOLDERS)

    def resolve_backend(self) -> BackendKind:
        """Pick the concrete backend; AUTO prefers Firestore, then Supabase, then local."""
        if self.data_backend is not BackendKind.AUTO:
            return self.data_backend
        if self.firestore_configured:
            return BackendKind.FIRESTORE
        if self.supabase_configured:
            return BackendKind.SUPABASE
        return BackendKind.LOCAL

    def get_firebase_credentials_info(self) -> dict:
        """Get service account credentials as dictionary."""
        if self.firebase_service_account_json_b64:
            decoded = base64.b64decode(self.firebase_service_account_json_b64)
            return json.loads(decoded)

        if self.firebase_service_account_json_path:
            path = Path(self.firebase_service_account_json_path)
            if not path.exists():
                raise FileNotFoundError(f"Service account file not found: {path}")
            return json.loads(path.read_text())

        raise ValueError("No Firebase credentials configured")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
