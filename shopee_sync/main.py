"""
Punto de entrada: ejecuta una pasada de sincronización del catálogo Shopee.

Uso:
    shopee-sync
    python -m shopee_sync.main
"""

import asyncio
import logging
import sys
from typing import Optional

from shopee_sync.core.config import Settings, get_settings, validate_required_settings
from shopee_sync.core.logging_config import setup_logging
from shopee_sync.db.connection import DatabaseGateway
from shopee_sync.db.shopee_clients import Credentials, ShopeeClient, TokenCell, TokenRefreshCoordinator
from shopee_sync.db.token_repository import TokenRepository
from shopee_sync.services.batch_upsert import BatchUpsertPipeline
from shopee_sync.services.catalog_sync import CatalogSyncService, SyncReport
from shopee_sync.utils.error_handler import AppException
from shopee_sync.utils.retry_handler import RetryPolicy

logger = logging.getLogger(__name__)


async def sync_catalog(settings: Optional[Settings] = None) -> SyncReport:
    """
    Arma las dependencias, ejecuta una pasada y libera los recursos.

    Returns:
        SyncReport: Resumen de la pasada
    """
    settings = settings or get_settings()
    validate_required_settings(settings)

    token_cell = TokenCell()
    credentials = Credentials.from_settings(settings, token_cell)

    token_db = DatabaseGateway(settings.TOKEN_DATABASE_URL, name="token", settings=settings)
    marketplace_db = DatabaseGateway(settings.MARKETPLACE_DATABASE_URL, name="marketplace", settings=settings)

    try:
        await token_db.initialize()
        await marketplace_db.initialize()

        token_repository = TokenRepository(token_db, settings.token_table, token_cell, settings.TOKEN_PROVIDER)
        refresher = TokenRefreshCoordinator(token_repository.load_token)
        retry_policy = RetryPolicy(settings.MAX_AUTH_REFRESH_TRIES, settings.MAX_RATE_LIMIT_WAIT_MS)

        async with ShopeeClient(
            credentials, refresher, retry_policy, timeout_seconds=settings.HTTP_TIMEOUT_SECONDS
        ) as client:
            service = CatalogSyncService(
                token_repository=token_repository,
                products=client.products,
                pipeline=BatchUpsertPipeline(marketplace_db, settings=settings),
                shop_id=settings.SHOPEE_SHOP_ID,
                settings=settings,
            )
            report = await service.run()
            logger.info(f"📊 Client metrics: {client.get_metrics()}")
            return report
    finally:
        await marketplace_db.close()
        await token_db.close()


def run() -> int:
    """Entrada de consola; devuelve el código de salida."""
    settings = get_settings()
    setup_logging(settings)

    try:
        report = asyncio.run(sync_catalog(settings))
    except AppException as e:
        logger.error(f"❌ Sync failed [{e.error_code.value}]: {e.message}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Sync interrupted")
        return 130

    logger.info(f"🎉 Sync report: {report.to_dict()}")
    return 0


if __name__ == "__main__":
    sys.exit(run())
