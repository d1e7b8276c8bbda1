"""
Recorrido completo de get_item_list para un estado de anuncio.

La primera página (offset 0) se pide sola para conocer ``total_count``;
las restantes se piden en grupos de ancho fijo que se ejecutan en
paralelo dentro del grupo y en secuencia entre grupos.
"""

import asyncio
import logging
from typing import Any, List, Optional, Union

from shopee_sync.core.config import Settings, get_settings
from shopee_sync.db.shopee_clients.product_client import ShopeeProductClient
from shopee_sync.schemas.shopee_schemas import ItemStatus
from shopee_sync.utils.batch_utils import dedupe, page_groups, remaining_pages

logger = logging.getLogger(__name__)


class PaginationOrchestrator:
    """
    Lista todos los item_id de un estado.

    Args:
        products: Cliente de endpoints de producto
        page_size: Tamaño de página (por defecto ITEM_LIST_PAGE_SIZE)
        group_width: Páginas en vuelo a la vez (por defecto PAGINATION_GROUP_WIDTH)
    """

    def __init__(
        self,
        products: ShopeeProductClient,
        page_size: Optional[int] = None,
        group_width: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.products = products
        self.page_size = page_size or settings.ITEM_LIST_PAGE_SIZE
        self.group_width = group_width or settings.PAGINATION_GROUP_WIDTH

    async def list_all(self, status: Union[ItemStatus, str] = ItemStatus.NORMAL) -> List[int]:
        """
        Devuelve los item_id (sin duplicados) de todas las páginas del estado.

        Si la primera página trae ``item`` con una forma inesperada se loguea y
        se devuelve lista vacía para no cortar los demás estados.

        Raises:
            ShopeeAPIException: Si alguna página falla (transporte o negocio)
        """
        status_value = status.value if isinstance(status, ItemStatus) else str(status)

        first = await self.products.get_item_list(0, self.page_size, status_value)
        response = first.response if isinstance(first.response, dict) else {}
        first_items = response.get("item")
        if first_items is None:
            first_items = []
        if not isinstance(first_items, list):
            logger.error(
                f"❌ get_item_list returned a malformed item list for status={status_value}: "
                f"{type(first_items).__name__}"
            )
            return []

        item_ids = _item_ids(first_items)
        total_count = _as_int(response.get("total_count"))
        pending = remaining_pages(total_count, self.page_size)

        logger.info(f"📦 status={status_value}: total_count={total_count}, {pending} more page(s)")

        for group in page_groups(1, pending, self.group_width):
            logger.info(f"Fetching pages {group.start}-{group.stop - 1} for status={status_value}")
            pages = await asyncio.gather(*(self._fetch_page(page, status_value) for page in group))
            for page_ids in pages:
                item_ids.extend(page_ids)

        result = dedupe(item_ids)
        logger.info(f"✅ status={status_value}: {len(result)} item ids")
        return result

    async def _fetch_page(self, page: int, status: str) -> List[int]:
        envelope = await self.products.get_item_list(page * self.page_size, self.page_size, status)
        response = envelope.response if isinstance(envelope.response, dict) else {}
        items = response.get("item") or []
        if not isinstance(items, list):
            logger.warning(f"Ignoring malformed page {page} for status={status}")
            return []
        return _item_ids(items)


def _item_ids(items: List[Any]) -> List[int]:
    return [item["item_id"] for item in items if isinstance(item, dict) and "item_id" in item]


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
