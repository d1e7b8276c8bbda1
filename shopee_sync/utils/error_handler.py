"""
Sistema de manejo de errores personalizado.

Este módulo define todas las excepciones personalizadas de la aplicación
y proporciona utilidades para manejo consistente de errores.
"""

import logging
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Mensajes comunes cuando la conexión con Postgres cae
TRANSIENT_DB_ERROR_PATTERNS = (
    "Connection terminated",
    "terminating connection",
    "ECONNRESET",
    "EPIPE",
    "ENET",
    "timeout",
    "connection was closed",
    "Connection reset",
)


class ErrorCode(Enum):
    """
    Códigos de error estandardizados para la aplicación.
    """

    # Errores generales
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Errores de Shopee
    SHOPEE_HTTP_ERROR = "SHOPEE_HTTP_ERROR"
    SHOPEE_BUSINESS_ERROR = "SHOPEE_BUSINESS_ERROR"

    # Errores de base de datos
    DATABASE_ERROR = "DATABASE_ERROR"
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"

    # Errores de sincronización
    SYNC_FAILED = "SYNC_FAILED"


class AppException(Exception):
    """
    Excepción base para todas las excepciones personalizadas de la aplicación.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
        is_retryable: bool = False,
    ):
        """
        Inicializa la excepción.

        Args:
            message: Mensaje de error
            error_code: Código de error estandardizado
            details: Información adicional del error
            is_retryable: Si la operación puede reintentarse
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.is_retryable = is_retryable
        self.timestamp = datetime.now(timezone.utc)
        self.traceback_str = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """
        Convierte la excepción a diccionario.

        Returns:
            Dict: Representación de la excepción
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "details": self.details,
            "is_retryable": self.is_retryable,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        """String representation del error."""
        return f"{self.error_code.value}: {self.message}"


class ConfigurationException(AppException):
    """
    Excepción para configuraciones faltantes o inválidas.
    """

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None, **kwargs):
        super().__init__(message=message, error_code=ErrorCode.CONFIGURATION_ERROR, **kwargs)
        self.missing_fields = missing_fields or []
        self.details.update({"missing_fields": self.missing_fields})


class ShopeeAPIException(AppException):
    """
    Excepción para errores de la Shopee Partner API.

    Cubre tanto fallas de transporte (HTTP != 2xx, red) como errores de
    negocio (HTTP 200 con `error` rellenado en el envelope).
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        api_error: Optional[str] = None,
        endpoint: Optional[str] = None,
        request_id: Optional[str] = None,
        business_error: bool = False,
        **kwargs,
    ):
        """
        Inicializa la excepción de Shopee API.

        Args:
            message: Mensaje de error
            status: Código HTTP (None para errores de red o de negocio)
            api_error: Código `error` devuelto por Shopee o por el cliente
            endpoint: Path que falló
            request_id: ID de rastreo de Shopee
            business_error: Si es un error de negocio (HTTP 200)
            **kwargs: Argumentos adicionales para AppException
        """
        error_code = ErrorCode.SHOPEE_BUSINESS_ERROR if business_error else ErrorCode.SHOPEE_HTTP_ERROR

        super().__init__(message=message, error_code=error_code, **kwargs)

        self.status = status
        self.api_error = api_error
        self.endpoint = endpoint
        self.request_id = request_id
        self.business_error = business_error

        self.details.update(
            {
                "status": status,
                "api_error": api_error,
                "endpoint": endpoint,
                "request_id": request_id,
            }
        )


class DatabaseException(AppException):
    """
    Excepción para errores de la base de datos (Postgres).
    """

    def __init__(self, message: str, operation: str = "query", **kwargs):
        kwargs.setdefault("error_code", ErrorCode.DATABASE_ERROR)
        super().__init__(message=message, **kwargs)
        self.operation = operation
        self.details.update({"operation": operation})


class TokenNotFoundException(DatabaseException):
    """
    No existe access_token para el provider en la tabla configurada.
    """

    def __init__(self, table: str, provider: str):
        super().__init__(
            message=f"Ningún access_token encontrado en {table} para provider='{provider}'",
            operation="load_token",
            error_code=ErrorCode.TOKEN_NOT_FOUND,
        )
        self.details.update({"table": table, "provider": provider})


class SyncException(AppException):
    """
    Excepción para errores de sincronización.
    """

    def __init__(self, message: str, stage: str, **kwargs):
        super().__init__(message=message, error_code=ErrorCode.SYNC_FAILED, **kwargs)
        self.stage = stage
        self.details.update({"stage": stage})


# === FUNCIONES DE UTILIDAD ===


def is_transient_db_error(exception: BaseException) -> bool:
    """
    Determina si un error de base de datos es transitorio (conexión caída).

    Args:
        exception: Excepción original del driver

    Returns:
        bool: True si el mensaje coincide con un patrón conocido
    """
    message = str(exception)
    return any(pattern in message for pattern in TRANSIENT_DB_ERROR_PATTERNS)
