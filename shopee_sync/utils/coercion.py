"""
Normalización de valores que Shopee envía en formatos inconsistentes.

Shopee a veces manda flags como `true/false`, a veces como `0/1` y a veces
como strings. Los timestamps llegan en segundos Unix; 0 o negativos significan
"ausente".
"""

from datetime import datetime, timezone
from typing import Any, Optional

_TRUE_STRINGS = {"true", "1"}
_FALSE_STRINGS = {"false", "0"}


def to_bool(value: Any) -> Optional[bool]:
    """
    Convierte un valor "booleano" de Shopee a tri-estado.

    Returns:
        True/False, o None si el valor es desconocido
    """
    if value is True or value is False:
        return value

    if isinstance(value, (int, float)):
        if value == 1:
            return True
        if value == 0:
            return False
        return None

    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_STRINGS:
            return True
        if normalized in _FALSE_STRINGS:
            return False

    return None


def to_timestamp(seconds: Any) -> Optional[datetime]:
    """
    Convierte segundos Unix a datetime UTC; 0, negativos, inválidos o fuera
    de rango (p. ej. milisegundos) -> None.
    """
    if seconds is None or isinstance(seconds, bool):
        return None
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        return None
    if value <= 0:
        return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
