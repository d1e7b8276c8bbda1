"""
Upsert en lote de items y models en la base del marketplace.

Cada lote va en su propia transacción con una única sentencia UNNEST.
Los lotes se escriben en secuencia, nunca en paralelo, para no cargar la
base destino. El pipeline solo inserta o actualiza: nunca borra filas.
"""

import json
import logging
import time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from shopee_sync.core.config import Settings, get_settings
from shopee_sync.db.connection import DatabaseGateway
from shopee_sync.db.queries.upserts import ITEM_COLUMNS, MODEL_COLUMNS, items_upsert_sql, models_upsert_sql
from shopee_sync.domain.models import ItemRecord, ModelRecord
from shopee_sync.utils.batch_utils import chunk
from shopee_sync.utils.error_handler import DatabaseException

logger = logging.getLogger(__name__)


class BatchUpsertPipeline:
    """
    Escribe registros de dominio en lotes transaccionales.

    Args:
        gateway: Conexión a la base del marketplace (expone ``begin()``)
        schema: Schema destino (por defecto MARKETPLACE_DB_SCHEMA)
        batch_size: Registros por lote (por defecto UPSERT_BATCH_SIZE)
    """

    def __init__(
        self,
        gateway: DatabaseGateway,
        schema: Optional[str] = None,
        batch_size: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.gateway = gateway
        self.schema = schema or settings.MARKETPLACE_DB_SCHEMA
        self.batch_size = batch_size or settings.UPSERT_BATCH_SIZE
        self._items_sql = items_upsert_sql(self.schema)
        self._models_sql = models_upsert_sql(self.schema)

    async def upsert_items(self, records: Sequence[ItemRecord], batch_size: Optional[int] = None) -> int:
        """Upsert de items; devuelve cuántos registros se enviaron."""
        return await self._upsert("items", self._items_sql, ITEM_COLUMNS, records, batch_size)

    async def upsert_models(self, records: Sequence[ModelRecord], batch_size: Optional[int] = None) -> int:
        """Upsert de models; devuelve cuántos registros se enviaron."""
        return await self._upsert("models", self._models_sql, MODEL_COLUMNS, records, batch_size)

    async def _upsert(
        self,
        table: str,
        sql: str,
        columns: Sequence[Tuple[str, str]],
        records: Sequence[Any],
        batch_size: Optional[int],
    ) -> int:
        size = batch_size or self.batch_size
        if not records:
            logger.info(f"No {table} to upsert")
            return 0

        batches = chunk(records, size)
        start_time = time.time()
        logger.info(f"📦 Upserting {len(records)} {table} in {len(batches)} batch(es) of up to {size}")

        written = 0
        for number, batch in enumerate(batches, start=1):
            await self._write_batch(table, sql, build_column_arrays(batch, columns))
            written += len(batch)
            logger.info(f"✅ {table} batch {number}/{len(batches)} committed ({len(batch)} rows)")

        logger.info(f"✅ Upserted {written} {table} in {time.time() - start_time:.2f}s")
        return written

    async def _write_batch(self, table: str, sql: str, params: Dict[str, List[Any]]):
        transaction = await self.gateway.begin()
        try:
            await transaction.query(sql, params)
            await transaction.commit()
        except Exception as e:
            logger.error(f"❌ {table} batch failed, rolling back: {e}")
            try:
                await transaction.rollback()
            except Exception as rollback_error:
                logger.error(f"❌ ROLLBACK failed for {table} batch: {rollback_error}")
            if isinstance(e, DatabaseException):
                raise
            raise DatabaseException(f"Upsert of {table} batch failed: {e}", operation="upsert") from e


def build_column_arrays(records: Sequence[Any], columns: Sequence[Tuple[str, str]]) -> Dict[str, List[Any]]:
    """
    Transpone registros a un array por columna, listo para UNNEST.

    ``raw`` se serializa a JSON y los valores numeric se pasan como Decimal.
    """
    arrays: Dict[str, List[Any]] = {name: [] for name, _ in columns}
    for record in records:
        for name, pg_type in columns:
            arrays[name].append(_to_db_value(getattr(record, name), pg_type))
    return arrays


def _to_db_value(value: Any, pg_type: str) -> Any:
    if value is None:
        return None
    if pg_type == "jsonb":
        return json.dumps(value, ensure_ascii=False, default=str)
    if pg_type == "numeric":
        return Decimal(str(value))
    return value
