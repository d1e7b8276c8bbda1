"""
Políticas de reintento para la Shopee Partner API.

Este módulo implementa las dos políticas de recuperación automática del
cliente: renovación de token ante 401/403 (con límite de intentos) y
backoff ante 429 (respetando Retry-After, con presupuesto total de espera).
El estado de reintentos es siempre local a una llamada lógica.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

MAX_AUTH_REFRESH_TRIES = 3

# 10 minutos sumados en total de espera por 429
MAX_RATE_LIMIT_WAIT_MS = 10 * 60 * 1000


@dataclass
class RetryState:
    """
    Estado de reintentos de una llamada lógica.

    Se crea nuevo por cada llamada y se descarta al terminar; nunca se comparte
    entre llamadas concurrentes.
    """

    auth_refresh_tries: int = 0
    rate_limit_tries: int = 0
    rate_limit_waited_ms: int = 0


class RetryPolicy:
    """
    Política de reintentos configurable para auth (401/403) y rate limit (429).
    """

    def __init__(
        self,
        max_auth_refresh_tries: int = MAX_AUTH_REFRESH_TRIES,
        max_rate_limit_wait_ms: int = MAX_RATE_LIMIT_WAIT_MS,
    ):
        """
        Inicializa la política de reintentos.

        Args:
            max_auth_refresh_tries: Renovaciones de token permitidas por llamada
            max_rate_limit_wait_ms: Espera acumulada máxima por 429 en una llamada
        """
        self.max_auth_refresh_tries = max_auth_refresh_tries
        self.max_rate_limit_wait_ms = max_rate_limit_wait_ms

    def should_refresh_token(self, state: RetryState) -> bool:
        """
        Registra un fallo de autenticación y decide si renovar y reintentar.

        Args:
            state: Estado de la llamada actual

        Returns:
            bool: False si se agotaron las renovaciones permitidas
        """
        state.auth_refresh_tries += 1
        return state.auth_refresh_tries <= self.max_auth_refresh_tries

    def reset_auth(self, state: RetryState) -> None:
        """Un resultado que no es 401/403 reinicia el contador de auth (regla de consecutivos)."""
        state.auth_refresh_tries = 0

    def next_rate_limit_wait(self, state: RetryState, retry_after: Optional[float]) -> Optional[float]:
        """
        Registra un 429 y calcula cuánto esperar antes del próximo intento.

        La espera es lineal (1, 2, 3... segundos) pero nunca menor que el
        Retry-After enviado por el servidor.

        Args:
            state: Estado de la llamada actual
            retry_after: Segundos sugeridos por el servidor (si hay)

        Returns:
            float: Segundos a esperar, o None si se excedería el presupuesto total
        """
        state.rate_limit_tries += 1

        linear_seconds = state.rate_limit_tries
        wait_seconds = max(retry_after, linear_seconds) if retry_after is not None else linear_seconds

        wait_ms = int(wait_seconds * 1000)
        next_total = state.rate_limit_waited_ms + wait_ms

        if next_total > self.max_rate_limit_wait_ms:
            return None

        state.rate_limit_waited_ms = next_total
        return wait_seconds


def parse_retry_after(headers: Optional[Mapping[str, Any]]) -> Optional[float]:
    """
    Lee Retry-After (segundos) de los headers de respuesta.

    Args:
        headers: Headers de la respuesta HTTP

    Returns:
        float: Segundos, o None si no existe o es inválido
    """
    if not headers:
        return None

    raw = headers.get("Retry-After")
    if raw is None:
        raw = headers.get("retry-after")
    if raw is None:
        return None

    try:
        seconds = float(raw)
    except (TypeError, ValueError):
        # Retry-After en formato fecha HTTP no es soportado por Shopee
        return None

    if seconds != seconds or seconds < 0 or seconds == float("inf"):
        return None
    return seconds
