"""
Shopee product endpoints.

Item listing, base info, variations (models) and price updates.
"""

import logging
from typing import Any, Dict, List, Sequence, Union

from shopee_sync.schemas.shopee_schemas import ItemStatus, PriceListEntry

from .base_client import BaseShopeeClient
from .credentials import AuthRequirement
from .outcomes import Envelope, assert_ok, unwrap

logger = logging.getLogger(__name__)

GET_ITEM_LIST_PATH = "/api/v2/product/get_item_list"
GET_ITEM_BASE_INFO_PATH = "/api/v2/product/get_item_base_info"
GET_MODEL_LIST_PATH = "/api/v2/product/get_model_list"
UPDATE_PRICE_PATH = "/api/v2/product/update_price"

# get_item_base_info accepts at most 50 ids per call
MAX_BASE_INFO_IDS = 50


class ShopeeProductClient:
    """Product operations on top of a shared ``BaseShopeeClient``."""

    def __init__(self, client: BaseShopeeClient):
        self.client = client

    async def get_item_list(
        self, offset: int = 0, page_size: int = 100, item_status: Union[ItemStatus, str] = ItemStatus.NORMAL
    ) -> Envelope:
        """
        List the shop's items for one status, paginated by offset.

        Returns the whole envelope so callers can inspect ``total_count``
        and defend against unexpected ``item`` shapes.

        Raises:
            ShopeeAPIException: On transport or business error
        """
        outcome = await self.client.call(
            GET_ITEM_LIST_PATH,
            AuthRequirement.TOKEN_AND_SHOP,
            {"offset": offset, "page_size": page_size, "item_status": _status_value(item_status)},
        )
        return assert_ok(outcome, GET_ITEM_LIST_PATH)

    async def get_item_base_info(self, item_ids: Sequence[int]) -> List[Dict[str, Any]]:
        """
        Fetch item details for up to 50 ids.

        Returns:
            List of raw item dicts from ``response.item_list``
        """
        if len(item_ids) > MAX_BASE_INFO_IDS:
            raise ValueError(f"get_item_base_info accepts at most {MAX_BASE_INFO_IDS} ids, got {len(item_ids)}")
        if not item_ids:
            return []

        outcome = await self.client.call(
            GET_ITEM_BASE_INFO_PATH,
            AuthRequirement.TOKEN_AND_SHOP,
            {"item_id_list": list(item_ids)},
        )
        response = unwrap(outcome, GET_ITEM_BASE_INFO_PATH) or {}
        return list(response.get("item_list") or [])

    async def get_model_list(self, item_id: int) -> List[Dict[str, Any]]:
        """
        Fetch the variations of one item.

        The payload does not carry ``item_id``, so it is injected in every model.
        """
        outcome = await self.client.call(
            GET_MODEL_LIST_PATH,
            AuthRequirement.TOKEN_AND_SHOP,
            {"item_id": item_id},
        )
        response = unwrap(outcome, GET_MODEL_LIST_PATH) or {}
        return [{**model, "item_id": item_id} for model in response.get("model") or []]

    async def update_price(self, item_id: int, price_list: Sequence[Union[PriceListEntry, Dict[str, Any]]]) -> Any:
        """
        Update original prices of an item (or of its models).

        Note: a 429 retry on POST may repeat the effect; setting a price is idempotent.
        """
        body = {
            "item_id": item_id,
            "price_list": [_dump(entry) for entry in price_list],
        }
        outcome = await self.client.call(UPDATE_PRICE_PATH, AuthRequirement.TOKEN_AND_SHOP, method="POST", body=body)
        return unwrap(outcome, UPDATE_PRICE_PATH)


def _status_value(status: Union[ItemStatus, str]) -> str:
    return status.value if isinstance(status, ItemStatus) else str(status)


def _dump(entry: Any) -> Dict[str, Any]:
    if hasattr(entry, "model_dump"):
        return entry.model_dump(exclude_none=True)
    return dict(entry)
