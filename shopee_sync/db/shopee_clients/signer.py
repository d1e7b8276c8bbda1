"""
Request signing for the Shopee Partner API.

The signature is an HMAC-SHA256 (hex) over the base string
``f"{partner_id}{path}{timestamp}"`` followed by the access token and the
shop id, each appended only when the request carries it.
"""

import hashlib
import hmac
from typing import Optional


def sign_partner(
    partner_id: int,
    partner_key: str,
    path: str,
    timestamp: int,
    access_token: Optional[str] = None,
    shop_id: Optional[int] = None,
) -> str:
    """
    Generate the ``sign`` query parameter.

    Args:
        partner_id: Partner id issued by Shopee
        partner_key: Partner secret (surrounding whitespace is ignored)
        path: Endpoint path only, e.g. ``/api/v2/product/get_item_list`` (no host, no query)
        timestamp: Unix timestamp in seconds
        access_token: Included in the base string only for shop-level calls
        shop_id: Included in the base string only for shop-level calls

    Returns:
        Hex-encoded signature
    """
    base_string = f"{partner_id}{path}{timestamp}"
    if access_token is not None:
        base_string += access_token
    if shop_id is not None:
        base_string += str(shop_id)

    return hmac.new(
        partner_key.strip().encode("utf-8"),
        base_string.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
