"""
Configuración centralizada de la aplicación.

Este módulo maneja todas las variables de entorno y configuraciones
de la sincronización usando Pydantic Settings para validación automática.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_ITEM_STATUSES = "NORMAL,UNLIST,BANNED,REVIEWING,SELLER_DELETE,SHOPEE_DELETE"


class Settings(BaseSettings):
    """
    Configuración de la aplicación usando Pydantic Settings.

    Todas las configuraciones se cargan desde variables de entorno
    con valores por defecto apropiados para desarrollo.
    """

    # === CONFIGURACIÓN BÁSICA DE LA APP ===
    APP_NAME: str = "Shopee Catalog Sync"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = Field(default="development")

    # === CONFIGURACIÓN DE SHOPEE (PARTNER API) ===
    SHOPEE_PARTNER_ID: int = Field(default=0)
    SHOPEE_PARTNER_KEY: str = Field(default="")
    SHOPEE_SHOP_ID: int = Field(default=0)
    # URL de producción como fallback; usar https://partner.test-stable.shopeemobile.com en pruebas
    SHOPEE_HOST: str = Field(default="https://partner.shopeemobile.com")
    HTTP_TIMEOUT_SECONDS: int = Field(default=30)

    # === CONFIGURACIÓN DE REINTENTOS ===
    MAX_AUTH_REFRESH_TRIES: int = Field(default=3)
    MAX_RATE_LIMIT_WAIT_MS: int = Field(default=10 * 60 * 1000)

    # === BASE DE DATOS DEL TOKEN (CredentialStore) ===
    TOKEN_DATABASE_URL: str = Field(default="")
    TOKEN_DB_SCHEMA: str = Field(default="")
    TOKEN_DB_TABLE: str = Field(default="")
    TOKEN_PROVIDER: str = Field(default="shopee")

    # === BASE DE DATOS DEL MARKETPLACE (destino del upsert) ===
    MARKETPLACE_DATABASE_URL: str = Field(default="")
    MARKETPLACE_DB_SCHEMA: str = Field(default="shopee")
    DB_POOL_SIZE: int = Field(default=5)
    DB_POOL_TIMEOUT_SECONDS: int = Field(default=3)
    DB_TRANSIENT_RETRY_DELAY_MS: int = Field(default=200)

    # === CONFIGURACIÓN DE SINCRONIZACIÓN ===
    ITEM_LIST_PAGE_SIZE: int = Field(default=100)
    PAGINATION_GROUP_WIDTH: int = Field(default=10)
    BASE_INFO_CHUNK_SIZE: int = Field(default=50)
    BASE_INFO_GROUP_WIDTH: int = Field(default=40)
    MODEL_GROUP_WIDTH: int = Field(default=80)
    UPSERT_BATCH_SIZE: int = Field(default=1000)
    SYNC_ITEM_STATUSES: str = Field(default=DEFAULT_ITEM_STATUSES)

    # === CONFIGURACIÓN DE LOGGING ===
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE_PATH: Optional[str] = Field(default=None)
    LOG_MAX_SIZE_MB: int = Field(default=10)
    LOG_BACKUP_COUNT: int = Field(default=5)
    LOG_FORMAT: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    LOG_JSON: bool = Field(default=False)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @field_validator("SHOPEE_HOST")
    @classmethod
    def validate_shopee_host(cls, v):
        """Valida que el host tenga esquema y no termine en '/'."""
        v = v.strip().rstrip("/")
        if not v.startswith("https://") and not v.startswith("http://"):
            raise ValueError("SHOPEE_HOST debe comenzar con http:// o https://")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Valida que el nivel de log sea válido."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL debe ser uno de: {valid_levels}")
        return v.upper()

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Valida que el entorno sea válido."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT debe ser uno de: {valid_envs}")
        return v.lower()

    @field_validator(
        "ITEM_LIST_PAGE_SIZE",
        "PAGINATION_GROUP_WIDTH",
        "BASE_INFO_CHUNK_SIZE",
        "BASE_INFO_GROUP_WIDTH",
        "MODEL_GROUP_WIDTH",
        "UPSERT_BATCH_SIZE",
    )
    @classmethod
    def validate_positive(cls, v):
        """Los tamaños de página, grupo y lote deben ser positivos."""
        if v <= 0:
            raise ValueError("El valor debe ser mayor que 0")
        return v

    @property
    def item_statuses(self) -> List[str]:
        """Parsea SYNC_ITEM_STATUSES como lista separada por comas."""
        return [status.strip().upper() for status in self.SYNC_ITEM_STATUSES.split(",") if status.strip()]

    @property
    def is_production(self) -> bool:
        """Verifica si está en entorno de producción."""
        return self.ENVIRONMENT == "production"

    @property
    def token_table(self) -> str:
        """Nombre calificado de la tabla del token."""
        if self.TOKEN_DB_SCHEMA:
            return f"{self.TOKEN_DB_SCHEMA}.{self.TOKEN_DB_TABLE}"
        return self.TOKEN_DB_TABLE

    @staticmethod
    def to_async_url(url: str) -> str:
        """Convierte una URL postgres:// al driver asíncrono asyncpg."""
        for prefix in ("postgresql+asyncpg://", "postgresql://", "postgres://"):
            if url.startswith(prefix):
                return "postgresql+asyncpg://" + url[len(prefix):]
        return url


@lru_cache()
def get_settings() -> Settings:
    """
    Obtiene instancia singleton de configuración.

    Usa LRU cache para evitar recrear la configuración
    múltiples veces durante la ejecución.

    Returns:
        Settings: Instancia de configuración
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Recarga la configuración (útil para testing).

    Returns:
        Settings: Nueva instancia de configuración
    """
    get_settings.cache_clear()
    return get_settings()


def validate_required_settings(settings: Optional[Settings] = None) -> bool:
    """
    Valida que todas las configuraciones requeridas estén presentes.

    Returns:
        bool: True si todas las configuraciones están presentes

    Raises:
        ConfigurationException: Si alguna configuración requerida falta
    """
    from shopee_sync.utils.error_handler import ConfigurationException

    settings = settings or get_settings()

    required_fields = [
        "SHOPEE_PARTNER_ID",
        "SHOPEE_PARTNER_KEY",
        "SHOPEE_SHOP_ID",
        "TOKEN_DATABASE_URL",
        "TOKEN_DB_TABLE",
        "MARKETPLACE_DATABASE_URL",
    ]

    missing_fields = []
    for field in required_fields:
        value = getattr(settings, field, None)
        if not value or (isinstance(value, str) and not value.strip()):
            missing_fields.append(field)

    if missing_fields:
        raise ConfigurationException(
            message=f"Configuraciones requeridas faltantes: {missing_fields}",
            missing_fields=missing_fields,
        )

    return True
