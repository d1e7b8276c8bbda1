"""
Shopee discount (promotion) endpoints.
"""

import logging
from typing import Any, Dict, Optional, Sequence, Union

from shopee_sync.schemas.shopee_schemas import DiscountItem, DiscountStatus

from .base_client import BaseShopeeClient
from .credentials import AuthRequirement
from .outcomes import unwrap

logger = logging.getLogger(__name__)

GET_DISCOUNT_LIST_PATH = "/api/v2/discount/get_discount_list"
ADD_DISCOUNT_PATH = "/api/v2/discount/add_discount"
ADD_DISCOUNT_ITEM_PATH = "/api/v2/discount/add_discount_item"
DELETE_DISCOUNT_PATH = "/api/v2/discount/delete_discount"
DELETE_DISCOUNT_ITEM_PATH = "/api/v2/discount/delete_discount_item"
END_DISCOUNT_PATH = "/api/v2/discount/end_discount"

MAX_DISCOUNT_PAGE_SIZE = 100


class ShopeeDiscountClient:
    """Discount operations on top of a shared ``BaseShopeeClient``."""

    def __init__(self, client: BaseShopeeClient):
        self.client = client

    async def get_discount_list(
        self,
        discount_status: Union[DiscountStatus, str] = DiscountStatus.ALL,
        page_no: int = 1,
        page_size: int = MAX_DISCOUNT_PAGE_SIZE,
        update_time_from: Optional[int] = None,
        update_time_to: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        List discounts by status (page_no starts at 1, page_size is capped at 100).

        ``update_time_from``/``update_time_to`` are omitted from the query when not given.
        """
        status = discount_status.value if isinstance(discount_status, DiscountStatus) else str(discount_status)
        params = {
            "discount_status": status,
            "page_no": page_no,
            "page_size": min(page_size, MAX_DISCOUNT_PAGE_SIZE),
            "update_time_from": update_time_from,
            "update_time_to": update_time_to,
        }
        outcome = await self.client.call(GET_DISCOUNT_LIST_PATH, AuthRequirement.TOKEN_AND_SHOP, params)
        return unwrap(outcome, GET_DISCOUNT_LIST_PATH) or {}

    async def add_discount(self, discount_name: str, start_time: int, end_time: int) -> Dict[str, Any]:
        """Create a discount; returns ``{"discount_id": ...}``."""
        body = {"discount_name": discount_name, "start_time": start_time, "end_time": end_time}
        return await self._post(ADD_DISCOUNT_PATH, body)

    async def add_discount_item(
        self, discount_id: int, items: Sequence[Union[DiscountItem, Dict[str, Any]]]
    ) -> Dict[str, Any]:
        body = {
            "discount_id": discount_id,
            "item_list": [i.model_dump(exclude_none=True) if isinstance(i, DiscountItem) else dict(i) for i in items],
        }
        return await self._post(ADD_DISCOUNT_ITEM_PATH, body)

    async def delete_discount(self, discount_id: int) -> Dict[str, Any]:
        return await self._post(DELETE_DISCOUNT_PATH, {"discount_id": discount_id})

    async def delete_discount_item(
        self, discount_id: int, item_id: int, model_id: Optional[int] = None
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"discount_id": discount_id, "item_id": item_id}
        if model_id is not None:
            body["model_id"] = model_id
        return await self._post(DELETE_DISCOUNT_ITEM_PATH, body)

    async def end_discount(self, discount_id: int) -> Dict[str, Any]:
        """End an ongoing discount immediately."""
        return await self._post(END_DISCOUNT_PATH, {"discount_id": discount_id})

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        outcome = await self.client.call(path, AuthRequirement.TOKEN_AND_SHOP, method="POST", body=body)
        return unwrap(outcome, path) or {}
