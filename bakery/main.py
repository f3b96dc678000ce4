"""Admin entry point: wire the data layer and load the dashboard."""

from __future__ import annotations

import asyncio
import logging
import sys

from .cache import AdminDataCache
from .config import get_settings
from .monitoring import create_notifier, init_sentry
from .services import AdminDashboard, ProductService, SourceReconciler, WriteThrough
from .services.reconciler import policies_from_settings
from .storage import LocalStore, init_db
from .stores import create_store
from .utils import format_price

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )
    # Reduce noise from httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


async def main(argv: list[str] | None = None) -> int:
    """Main application entry point."""
    argv = sys.argv[1:] if argv is None else argv
    settings = get_settings()
    setup_logging(settings.log_level)
    init_sentry()

    await init_db(settings.local_store_path)
    local = LocalStore(settings.local_store_path)
    logger.info("Local store ready at %s", settings.local_store_path)

    store = create_store(settings)
    notifier = create_notifier()
    cache = AdminDataCache()
    reconciler = SourceReconciler(store, local, notifier, policies_from_settings(settings))
    writer = WriteThrough(store, local, cache, notifier)
    products = ProductService(writer, reconciler)
    dashboard = AdminDashboard(cache, reconciler, store)

    try:
        if argv and argv[0] == "restore-defaults":
            result = await products.restore_defaults()
            if not result.ok:
                logger.error("Restore defaults failed: %s", result.error)
                return 1
            logger.info("Defaults restored (remote reseeded=%s)", result.remote_reseeded)
            return 0

        status = await dashboard.connection_status()
        logger.info("Connection status: %s", status.value)

        catalog = await dashboard.products()
        orders = await dashboard.orders()
        sales = await dashboard.sales()
        stats = await dashboard.stats()
        logger.info(
            "Products: %d (local=%d, sample=%d)",
            len(catalog),
            sum(p.is_local for p in catalog),
            sum(p.is_mock for p in catalog),
        )
        logger.info("Orders: %d, sales rows: %d", len(orders), len(sales))
        logger.info(
            "Revenue: %s, top product: %s",
            format_price(stats.total_revenue),
            stats.top_product.name if stats.top_product else "-",
        )
        return 0
    finally:
        await store.close()
        close = getattr(notifier, "close", None)
        if close is not None:
            await close()


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
