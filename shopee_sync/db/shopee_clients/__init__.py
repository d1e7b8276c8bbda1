"""
Shopee Partner API clients organized by responsibility.

This module contains the resilient base client and the endpoint groups
built on top of it.
"""

from .base_client import BaseShopeeClient, serialize_query_params
from .credentials import AuthRequirement, Credentials, TokenCell
from .discount_client import ShopeeDiscountClient
from .outcomes import Envelope, HttpFailure, Ok, TransportOutcome, assert_ok, unwrap
from .product_client import ShopeeProductClient
from .signer import sign_partner
from .token_refresh import TokenRefreshCoordinator
from .unified_client import ShopeeClient

__all__ = [
    "AuthRequirement",
    "BaseShopeeClient",
    "Credentials",
    "Envelope",
    "HttpFailure",
    "Ok",
    "ShopeeClient",
    "ShopeeDiscountClient",
    "ShopeeProductClient",
    "TokenCell",
    "TokenRefreshCoordinator",
    "TransportOutcome",
    "assert_ok",
    "serialize_query_params",
    "sign_partner",
    "unwrap",
]
