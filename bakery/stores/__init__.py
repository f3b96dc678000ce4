"""Remote data sources.

- base.py: Shared capability and record validation at the boundary
- firestore.py: Firestore document database
- supabase.py: Supabase / PostgREST over httpx
- local_only.py: Placeholder used when nothing is configured
"""

from __future__ import annotations

import logging

from ..config import BackendKind, Settings
from .base import BaseRemoteStore, parse_records
from .local_only import LocalOnlyStore

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> BaseRemoteStore:
    """Build the remote store once at startup based on configuration."""
    backend = settings.resolve_backend()

    if backend is BackendKind.FIRESTORE:
        from .firestore import FirestoreStore

        # Without explicit credentials the SDK falls back to application default credentials
        info = None
        if settings.firebase_service_account_json_path or settings.firebase_service_account_json_b64:
            info = settings.get_firebase_credentials_info()
        store: BaseRemoteStore = FirestoreStore(settings.firebase_project_id, credentials_info=info)
    elif backend is BackendKind.SUPABASE:
        from .supabase import SupabaseStore

        store = SupabaseStore(settings.supabase_url, settings.supabase_anon_key)
    else:
        store = LocalOnlyStore()

    logger.info("Remote store selected: %s", store.name)
    return store


__all__ = [
    "BaseRemoteStore",
    "LocalOnlyStore",
    "create_store",
    "parse_records",
]
