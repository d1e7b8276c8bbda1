"""
Sincronización completa del catálogo Shopee hacia Postgres.

Flujo de una pasada:
1. Carga el access_token.
2. Lista los item_id de todos los estados en paralelo (sin duplicados).
3. Pide get_item_base_info en bloques de 50 ids, por grupos acotados.
4. Pide get_model_list para los items con variaciones, por grupos acotados.
5. Upsert en lote de items y luego de models.
"""

import asyncio
import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from pydantic import ValidationError

from shopee_sync.core.config import Settings, get_settings
from shopee_sync.db.shopee_clients.product_client import ShopeeProductClient
from shopee_sync.db.token_repository import TokenRepository
from shopee_sync.domain.models import ItemRecord, ModelRecord
from shopee_sync.services.batch_upsert import BatchUpsertPipeline
from shopee_sync.services.pagination_orchestrator import PaginationOrchestrator
from shopee_sync.utils.batch_utils import chunk, dedupe
from shopee_sync.utils.coercion import to_bool
from shopee_sync.utils.error_handler import SyncException

logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass
class SyncReport:
    """Resumen de una pasada de sincronización."""

    ids_per_status: Dict[str, int] = field(default_factory=dict)
    item_ids: int = 0
    items_fetched: int = 0
    items_with_models: int = 0
    models_fetched: int = 0
    items_upserted: int = 0
    models_upserted: int = 0
    skipped_records: int = 0
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CatalogSyncService:
    """
    Orquesta una pasada completa: listado, enriquecimiento y upsert.

    Args:
        token_repository: Carga el access_token en el TokenCell compartido
        products: Endpoints de producto sobre el cliente resiliente
        pipeline: Upsert en lote hacia la base del marketplace
        shop_id: Tienda a la que pertenecen los registros
    """

    def __init__(
        self,
        token_repository: TokenRepository,
        products: ShopeeProductClient,
        pipeline: BatchUpsertPipeline,
        shop_id: int,
        orchestrator: Optional[PaginationOrchestrator] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.token_repository = token_repository
        self.products = products
        self.pipeline = pipeline
        self.shop_id = shop_id
        self.orchestrator = orchestrator or PaginationOrchestrator(products, settings=self.settings)

    async def run(self, statuses: Optional[Sequence[str]] = None) -> SyncReport:
        """
        Ejecuta una pasada completa.

        Raises:
            SyncException: Si alguna etapa falla (causa original en __cause__)
        """
        statuses = list(statuses or self.settings.item_statuses)
        report = SyncReport()
        start_time = time.time()

        logger.info(f"🚀 Starting catalog sync for shop {self.shop_id} (statuses: {', '.join(statuses)})")

        await self._stage("load_token", self.token_repository.load_token())

        item_ids = await self._stage("list_items", self.list_item_ids(statuses, report))
        items = await self._stage("item_base_info", self.fetch_base_info(item_ids))
        report.items_fetched = len(items)

        with_models = [
            item["item_id"] for item in items if item.get("item_id") is not None and to_bool(item.get("has_model"))
        ]
        report.items_with_models = len(with_models)
        models = await self._stage("model_list", self.fetch_models(with_models))
        report.models_fetched = len(models)

        item_records = self._build_records(items, ItemRecord.from_payload, report)
        model_records = self._build_records(models, ModelRecord.from_payload, report)

        report.items_upserted = await self._stage(
            "upsert_items", self.pipeline.upsert_items(item_records, self.settings.UPSERT_BATCH_SIZE)
        )
        report.models_upserted = await self._stage(
            "upsert_models", self.pipeline.upsert_models(model_records, self.settings.UPSERT_BATCH_SIZE)
        )

        report.duration_seconds = round(time.time() - start_time, 2)
        logger.info(
            f"✅ Catalog sync finished in {report.duration_seconds}s: "
            f"{report.items_upserted} items, {report.models_upserted} models"
        )
        return report

    async def list_item_ids(self, statuses: Sequence[str], report: Optional[SyncReport] = None) -> List[int]:
        """Lista los ids de todos los estados en paralelo y elimina duplicados."""
        per_status = await asyncio.gather(*(self.orchestrator.list_all(status) for status in statuses))

        if report is not None:
            report.ids_per_status = {status: len(ids) for status, ids in zip(statuses, per_status)}

        item_ids = dedupe([item_id for ids in per_status for item_id in ids])
        if report is not None:
            report.item_ids = len(item_ids)
        logger.info(f"📦 {len(item_ids)} unique item ids across {len(statuses)} status(es)")
        return item_ids

    async def fetch_base_info(self, item_ids: Sequence[int]) -> List[Dict[str, Any]]:
        """get_item_base_info en bloques de ids, con grupos de bloques en paralelo."""
        id_chunks = chunk(item_ids, self.settings.BASE_INFO_CHUNK_SIZE)
        results = await self._in_groups(
            id_chunks, self.settings.BASE_INFO_GROUP_WIDTH, self.products.get_item_base_info, "item_base_info"
        )
        return [item for item_list in results for item in item_list]

    async def fetch_models(self, item_ids: Sequence[int]) -> List[Dict[str, Any]]:
        """get_model_list por item, con grupos acotados en paralelo."""
        results = await self._in_groups(
            list(item_ids), self.settings.MODEL_GROUP_WIDTH, self.products.get_model_list, "model_list"
        )
        return [model for model_list in results for model in model_list]

    @staticmethod
    async def _in_groups(args: Sequence[Any], width: int, call: Callable[[Any], Any], label: str) -> List[R]:
        results: List[R] = []
        groups = chunk(args, width)
        for number, group in enumerate(groups, start=1):
            results.extend(await asyncio.gather(*(call(arg) for arg in group)))
            logger.info(f"✅ {label} group {number}/{len(groups)} done ({len(group)} calls)")
        return results

    def _build_records(self, payloads: Sequence[Dict[str, Any]], factory: Callable, report: SyncReport) -> List[Any]:
        records = []
        for payload in payloads:
            try:
                records.append(factory(payload, self.shop_id))
            except ValidationError as e:
                report.skipped_records += 1
                logger.warning(f"Skipping malformed payload {_payload_id(payload)}: {e.error_count()} error(s)")
            except (TypeError, ValueError, OverflowError) as e:
                report.skipped_records += 1
                logger.warning(f"Skipping unconvertible payload {_payload_id(payload)}: {e}")
        return records

    @staticmethod
    async def _stage(stage: str, awaitable):
        try:
            return await awaitable
        except SyncException:
            raise
        except Exception as e:
            logger.error(f"❌ Catalog sync failed at stage '{stage}': {e}")
            raise SyncException(f"Catalog sync failed at stage '{stage}': {e}", stage=stage) from e


def _payload_id(payload: Dict[str, Any]) -> str:
    if "model_id" in payload:
        return f"model_id={payload.get('model_id')}"
    return f"item_id={payload.get('item_id')}"
