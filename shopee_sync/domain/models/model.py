"""
Model (variation) domain record.

Identity key: (shop_id, model_id). Price fields come from the first
``price_info`` entry; stock from ``stock_info_v2.summary_info``.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Dict

from shopee_sync.schemas.shopee_schemas import ShopeeModel
from shopee_sync.utils.coercion import to_bool


@dataclass
class ModelRecord:
    """Domain record for one Shopee item variation."""

    shop_id: int
    model_id: int
    item_id: int
    model_status: str | None = None
    model_sku: str | None = None
    gtin_code: str | None = None
    has_promotion: bool | None = None
    promotion_id: int | None = None
    current_price: float | None = None
    original_price: float | None = None
    local_price: float | None = None
    local_promotion_price: float | None = None
    total_available_stock: int | None = None
    total_reserved_stock: int | None = None
    raw: Dict[str, Any] = field(default_factory=dict)
    last_synced_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def key(self) -> tuple[int, int]:
        return (self.shop_id, self.model_id)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], shop_id: int) -> "ModelRecord":
        """Build a record from one ``model`` entry (with ``item_id`` already injected)."""
        model = ShopeeModel.model_validate(payload)

        price = model.price_info[0] if model.price_info else None
        summary = model.stock_info_v2.summary_info if model.stock_info_v2 else None

        return cls(
            shop_id=shop_id,
            model_id=model.model_id,
            item_id=model.item_id,
            model_status=model.model_status,
            model_sku=model.model_sku,
            gtin_code=model.gtin_code,
            has_promotion=to_bool(model.has_promotion),
            promotion_id=model.promotion_id,
            current_price=price.current_price if price else None,
            original_price=price.original_price if price else None,
            local_price=price.local_price if price else None,
            local_promotion_price=price.local_promotion_price if price else None,
            total_available_stock=summary.total_available_stock if summary else None,
            total_reserved_stock=summary.total_reserved_stock if summary else None,
            raw=dict(payload),
        )
