"""
Item domain record.

Flat projection of a Shopee item (get_item_base_info) plus the full raw
payload. Identity key: (shop_id, item_id).
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Dict

from shopee_sync.schemas.shopee_schemas import ShopeeItemBaseInfo
from shopee_sync.utils.coercion import to_bool, to_timestamp


@dataclass
class ItemRecord:
    """
    Domain record for one Shopee item.

    Attributes:
        shop_id: Shop the item belongs to
        item_id: Shopee item id
        item_status: NORMAL, UNLIST, BANNED...
        has_model / has_promotion: Tri-state flags (None = unknown)
        create_time / update_time: UTC datetimes, None when absent or <= 0
        raw: Full untyped payload as received
        last_synced_at: When this projection was built
    """

    shop_id: int
    item_id: int
    item_status: str | None = None
    item_name: str | None = None
    item_sku: str | None = None
    gtin_code: str | None = None
    has_model: bool | None = None
    has_promotion: bool | None = None
    promotion_id: int | None = None
    create_time: datetime | None = None
    update_time: datetime | None = None
    raw: Dict[str, Any] = field(default_factory=dict)
    last_synced_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def key(self) -> tuple[int, int]:
        return (self.shop_id, self.item_id)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], shop_id: int) -> "ItemRecord":
        """Build a record from one ``item_list`` entry."""
        item = ShopeeItemBaseInfo.model_validate(payload)
        return cls(
            shop_id=shop_id,
            item_id=item.item_id,
            item_status=item.item_status,
            item_name=item.item_name,
            item_sku=item.item_sku,
            gtin_code=item.gtin_code,
            has_model=to_bool(item.has_model),
            has_promotion=to_bool(item.has_promotion),
            promotion_id=item.promotion_id,
            create_time=to_timestamp(item.create_time),
            update_time=to_timestamp(item.update_time),
            raw=dict(payload),
        )
