"""
Unified Shopee client that exposes every endpoint group.

All endpoint groups share the same session, credentials, token refresher
and retry policy of this client.
"""

import logging

from .base_client import BaseShopeeClient
from .discount_client import ShopeeDiscountClient
from .product_client import ShopeeProductClient

logger = logging.getLogger(__name__)


class ShopeeClient(BaseShopeeClient):
    """
    Single entry point for the Shopee Partner API.

    Usage:
        async with ShopeeClient(credentials, refresher) as client:
            page = await client.products.get_item_list(0, 100, "NORMAL")
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.products = ShopeeProductClient(self)
        self.discounts = ShopeeDiscountClient(self)
