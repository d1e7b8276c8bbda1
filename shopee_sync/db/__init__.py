"""
Capa de acceso a datos: PostgreSQL (token y catálogo) y Shopee Partner API.
"""

from shopee_sync.db.connection import DatabaseGateway, Transaction
from shopee_sync.db.token_repository import TokenRepository

__all__ = ["DatabaseGateway", "Transaction", "TokenRepository"]
