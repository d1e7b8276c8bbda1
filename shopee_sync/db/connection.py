# shopee_sync/db/connection.py
"""
Gestión de conexiones a PostgreSQL (token y marketplace).

DatabaseGateway maneja el engine asíncrono, el pool de conexiones,
la ejecución de sentencias con un reintento ante errores transitorios
y las transacciones explícitas usadas por el upsert en lote.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from shopee_sync.core.config import Settings, get_settings
from shopee_sync.utils.error_handler import DatabaseException, is_transient_db_error

logger = logging.getLogger(__name__)


class Transaction:
    """
    Transacción abierta sobre una conexión dedicada del pool.

    Se obtiene con ``DatabaseGateway.begin()`` y termina con ``commit()`` o
    ``rollback()``, que devuelven la conexión al pool.
    """

    def __init__(self, gateway: "DatabaseGateway", connection: AsyncConnection):
        self.gateway = gateway
        self.connection = connection
        self.closed = False

    async def query(self, sql: str, params: Optional[Dict[str, Any]] = None, retries: int = 1) -> List[Dict[str, Any]]:
        """
        Ejecuta una sentencia dentro de la transacción.

        El reintento ante error transitorio usa la misma conexión, así que solo
        ayuda con fallos del lado del cliente. Si la conexión quedó invalidada
        (caída real) no se reintenta; si Postgres abortó la transacción, el
        reintento falla con un error no transitorio. En ambos casos el error
        se propaga y el llamador hace rollback del lote.
        """
        if self.closed:
            raise DatabaseException("Transaction already finished", operation="query")
        return await self.gateway._execute_with_retry(
            self.connection, sql, params, retries, can_retry=self._connection_usable
        )

    def _connection_usable(self) -> bool:
        return not self.connection.invalidated

    async def commit(self):
        try:
            await self.connection.commit()
        except Exception as e:
            raise DatabaseException(f"COMMIT failed: {e}", operation="commit") from e
        finally:
            await self._release()

    async def rollback(self):
        try:
            await self.connection.rollback()
        finally:
            await self._release()

    async def _release(self):
        if not self.closed:
            self.closed = True
            await self.connection.close()


class DatabaseGateway:
    """
    Gateway de acceso a una base PostgreSQL vía SQLAlchemy (driver asyncpg).

    Args:
        database_url: URL postgres:// o postgresql+asyncpg://
        name: Nombre para logs ("token", "marketplace")
        settings: Configuración (pool y reintentos)
    """

    def __init__(self, database_url: str, name: str = "database", settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.name = name
        self.connection_string = Settings.to_async_url(database_url)
        self.engine: Optional[AsyncEngine] = None
        self._retry_delay = self.settings.DB_TRANSIENT_RETRY_DELAY_MS / 1000

    async def initialize(self):
        """
        Inicializa el engine y el pool de conexiones, y prueba la conexión.

        Raises:
            DatabaseException: Si falla la inicialización
        """
        if self.engine is not None:
            return

        logger.info(f"Initializing {self.name} database connection...")
        try:
            self.engine = create_async_engine(
                self.connection_string,
                pool_size=self.settings.DB_POOL_SIZE,
                max_overflow=0,
                pool_timeout=self.settings.DB_POOL_TIMEOUT_SECONDS,
                pool_pre_ping=True,
                pool_recycle=3600,
            )
            async with self.engine.connect() as conn:
                result = await conn.execute(text("SELECT 1"))
                if result.scalar() != 1:
                    raise DatabaseException("Connection test returned unexpected value", operation="initialize")
            logger.info(f"✅ {self.name} database connection initialized")
        except Exception as e:
            logger.error(f"❌ Failed to initialize {self.name} database: {e}")
            await self.close()
            if isinstance(e, DatabaseException):
                raise
            raise DatabaseException(f"Failed to initialize {self.name} database: {e}", operation="initialize") from e

    def _require_engine(self) -> AsyncEngine:
        if self.engine is None:
            raise DatabaseException(
                f"{self.name} database not initialized. Call initialize() first.", operation="session_creation"
            )
        return self.engine

    async def query(self, sql: str, params: Optional[Dict[str, Any]] = None, retries: int = 1) -> List[Dict[str, Any]]:
        """
        Ejecuta una sentencia en su propia transacción (autocommit al salir).

        Args:
            sql: Sentencia SQL con parámetros nombrados (:param)
            params: Valores de los parámetros
            retries: Reintentos ante errores transitorios de conexión

        Returns:
            Filas como diccionarios (vacío si la sentencia no devuelve filas)
        """
        engine = self._require_engine()
        attempt = 0
        while True:
            try:
                async with engine.begin() as conn:
                    return await self._execute(conn, sql, params)
            except Exception as e:
                if attempt < retries and is_transient_db_error(e):
                    attempt += 1
                    logger.warning(f"Transient {self.name} database error, retrying ({attempt}/{retries}): {e}")
                    await asyncio.sleep(self._retry_delay)
                    continue
                raise DatabaseException(f"Query failed on {self.name} database: {e}") from e

    async def begin(self) -> Transaction:
        """Abre una transacción sobre una conexión dedicada."""
        engine = self._require_engine()
        try:
            connection = await engine.connect()
            await connection.begin()
        except Exception as e:
            raise DatabaseException(f"BEGIN failed on {self.name} database: {e}", operation="begin") from e
        return Transaction(self, connection)

    async def _execute_with_retry(
        self,
        conn: AsyncConnection,
        sql: str,
        params: Optional[Dict[str, Any]],
        retries: int,
        can_retry: Optional[Callable[[], bool]] = None,
    ) -> List[Dict[str, Any]]:
        attempt = 0
        while True:
            try:
                return await self._execute(conn, sql, params)
            except Exception as e:
                if attempt < retries and is_transient_db_error(e) and (can_retry is None or can_retry()):
                    attempt += 1
                    logger.warning(f"Transient {self.name} database error, retrying ({attempt}/{retries}): {e}")
                    await asyncio.sleep(self._retry_delay)
                    continue
                raise DatabaseException(f"Query failed on {self.name} database: {e}") from e

    @staticmethod
    async def _execute(conn: AsyncConnection, sql: str, params: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        result = await conn.execute(text(sql), params or {})
        if not result.returns_rows:
            return []
        return [dict(row._mapping) for row in result.fetchall()]

    async def close(self):
        """Cierra el pool y libera recursos."""
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            logger.info(f"{self.name} database connection closed")

    def is_initialized(self) -> bool:
        return self.engine is not None

    def __repr__(self) -> str:
        return f"DatabaseGateway(name={self.name!r}, initialized={self.is_initialized()})"
