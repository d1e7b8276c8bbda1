"""
Utilidades para partir listas en lotes y grupos de concurrencia.
"""

import math
from typing import Iterator, List, Sequence, TypeVar

T = TypeVar("T")


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """
    Parte una secuencia en listas consecutivas de tamaño `size` (la última puede ser menor).

    Args:
        items: Secuencia a partir
        size: Tamaño de cada lote

    Returns:
        Lista de lotes
    """
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def remaining_pages(total_count: int, page_size: int) -> int:
    """Páginas que faltan después de la primera (offset 0)."""
    if total_count <= 0:
        return 0
    return max(math.ceil(total_count / page_size) - 1, 0)


def page_groups(first_page: int, page_count: int, group_width: int) -> Iterator[range]:
    """
    Agrupa índices de página en rangos de hasta `group_width` páginas.

    Ej: first_page=1, page_count=14, group_width=10 -> range(1, 11), range(11, 15)
    """
    cursor = first_page
    end = first_page + page_count
    while cursor < end:
        group_end = min(cursor + group_width, end)
        yield range(cursor, group_end)
        cursor = group_end


def dedupe(ids: Sequence[T]) -> List[T]:
    """Elimina duplicados preservando el orden de primera aparición."""
    return list(dict.fromkeys(ids))
