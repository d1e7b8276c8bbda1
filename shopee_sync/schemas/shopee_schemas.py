"""
Modelos Pydantic para los payloads de la Shopee Partner API.

Solo se modelan los campos que la sincronización usa; el resto del payload
se conserva tal cual en la columna ``raw``.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict


class ItemStatus(str, Enum):
    """Estados posibles de un anuncio (item) en Shopee."""

    NORMAL = "NORMAL"
    UNLIST = "UNLIST"
    BANNED = "BANNED"
    REVIEWING = "REVIEWING"
    SELLER_DELETE = "SELLER_DELETE"
    SHOPEE_DELETE = "SHOPEE_DELETE"


class DiscountStatus(str, Enum):
    """Filtro de estado para get_discount_list."""

    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    EXPIRED = "expired"
    ALL = "all"


class ShopeeItemBaseInfo(BaseModel):
    """Item tal como viene en ``response.item_list`` de get_item_base_info."""

    model_config = ConfigDict(extra="allow")

    item_id: int
    item_status: Optional[str] = None
    item_name: Optional[str] = None
    item_sku: Optional[str] = None
    gtin_code: Optional[str] = None
    has_model: Any = None
    has_promotion: Any = None
    promotion_id: Optional[int] = None
    create_time: Optional[int] = None
    update_time: Optional[int] = None


class ShopeePriceInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    current_price: Optional[float] = None
    original_price: Optional[float] = None
    local_price: Optional[float] = None
    local_promotion_price: Optional[float] = None


class ShopeeStockSummary(BaseModel):
    model_config = ConfigDict(extra="allow")

    total_available_stock: Optional[int] = None
    total_reserved_stock: Optional[int] = None


class ShopeeStockInfoV2(BaseModel):
    model_config = ConfigDict(extra="allow")

    summary_info: Optional[ShopeeStockSummary] = None


class ShopeeModel(BaseModel):
    """
    Variación (model) tal como viene en ``response.model`` de get_model_list.

    El payload no trae ``item_id``; la sincronización lo inyecta.
    """

    model_config = ConfigDict(extra="allow", protected_namespaces=())

    model_id: int
    item_id: int
    model_status: Optional[str] = None
    model_sku: Optional[str] = None
    gtin_code: Optional[str] = None
    has_promotion: Any = None
    promotion_id: Optional[int] = None
    price_info: Optional[List[ShopeePriceInfo]] = None
    stock_info_v2: Optional[ShopeeStockInfoV2] = None


class DiscountItem(BaseModel):
    """Item de add_discount_item."""

    model_config = ConfigDict(protected_namespaces=())

    item_id: int
    purchase_limit: Optional[int] = None
    model_list: Optional[List[dict]] = None
    item_promotion_price: Optional[float] = None
    item_promotion_stock: Optional[int] = None


class PriceListEntry(BaseModel):
    """Entrada de price_list para update_price."""

    model_config = ConfigDict(protected_namespaces=())

    original_price: float
    model_id: Optional[int] = None
