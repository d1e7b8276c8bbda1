# shopee_sync/db/token_repository.py
"""
Lectura del access_token de Shopee desde la base de tokens.

El token lo mantiene otro proceso (el que renueva el OAuth); aquí solo se
lee la fila del provider y se publica en el TokenCell compartido.
"""

import logging
import re
from typing import Optional

from shopee_sync.core.logging_config import mask_secret
from shopee_sync.db.connection import DatabaseGateway
from shopee_sync.db.shopee_clients.credentials import TokenCell
from shopee_sync.utils.error_handler import ConfigurationException, TokenNotFoundException

logger = logging.getLogger(__name__)

_QUALIFIED_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class TokenRepository:
    """
    Carga el access_token vigente para un provider.

    Args:
        gateway: Conexión a la base de tokens
        table: Tabla calificada (schema.tabla) con columnas provider y access_token
        token_cell: Celda compartida con los clientes HTTP
        provider: Valor de la columna provider (por defecto "shopee")
    """

    def __init__(self, gateway: DatabaseGateway, table: str, token_cell: TokenCell, provider: str = "shopee"):
        if not _QUALIFIED_NAME.match(table or ""):
            raise ConfigurationException(f"Invalid token table name: {table!r}", missing_fields=["TOKEN_DB_TABLE"])
        self.gateway = gateway
        self.table = table
        self.token_cell = token_cell
        self.provider = provider

    async def fetch_token(self) -> Optional[str]:
        """Devuelve el token almacenado o None si no hay fila."""
        rows = await self.gateway.query(
            f"SELECT access_token FROM {self.table} WHERE provider = :provider LIMIT 1",
            {"provider": self.provider},
        )
        if not rows:
            return None
        return rows[0].get("access_token") or None

    async def load_token(self) -> str:
        """
        Lee el token y lo publica en el TokenCell.

        Returns:
            str: El access_token cargado

        Raises:
            TokenNotFoundException: Si no existe token para el provider
        """
        token = await self.fetch_token()
        if not token:
            raise TokenNotFoundException(self.table, self.provider)

        self.token_cell.set(token)
        logger.info(f"Access token loaded from {self.table} ({mask_secret(token)})")
        return token
