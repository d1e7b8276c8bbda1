"""Tests de la forma de las sentencias UNNEST y de los registros de dominio."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from shopee_sync.db.queries.upserts import build_unnest_upsert, items_upsert_sql, models_upsert_sql
from shopee_sync.domain.models import ItemRecord, ModelRecord


class TestUpsertStatements:
    """Política de conflicto de las sentencias."""

    def test_items_statement(self):
        sql = items_upsert_sql("shopee")

        assert sql.startswith("INSERT INTO shopee.items (shop_id, item_id, item_status")
        assert "CAST(:item_id AS bigint[])" in sql
        assert "CAST(:raw AS jsonb[])" in sql
        assert "CAST(:create_time AS timestamptz[])" in sql
        assert "ON CONFLICT (shop_id, item_id) DO UPDATE SET" in sql
        assert "create_time = COALESCE(EXCLUDED.create_time, items.create_time)" in sql
        assert (
            "update_time = GREATEST(COALESCE(EXCLUDED.update_time, items.update_time), items.update_time)" in sql
        )
        assert "item_name = EXCLUDED.item_name" in sql
        # Las claves de identidad nunca se reescriben
        assert "shop_id = EXCLUDED.shop_id" not in sql
        assert "item_id = EXCLUDED.item_id" not in sql

    def test_models_statement(self):
        sql = models_upsert_sql("shopee")

        assert "INSERT INTO shopee.models" in sql
        assert "ON CONFLICT (shop_id, model_id) DO UPDATE SET" in sql
        assert "CAST(:current_price AS numeric[])" in sql
        assert "CAST(:total_available_stock AS int[])" in sql
        assert "item_id = EXCLUDED.item_id" in sql
        assert "COALESCE(EXCLUDED.create_time" not in sql

    def test_rejects_unsafe_schema(self):
        with pytest.raises(ValueError):
            build_unnest_upsert("shopee; DROP", "items", [("item_id", "bigint")], ("item_id",))


class TestItemRecord:
    """Proyección de get_item_base_info."""

    def test_from_payload_coerces_fields(self):
        payload = {
            "item_id": 123,
            "item_status": "NORMAL",
            "item_name": "Camiseta",
            "item_sku": "SKU-1",
            "has_model": "1",
            "has_promotion": 0,
            "create_time": 1700000000,
            "update_time": 0,
            "price_info": [{"current_price": 10}],
        }

        record = ItemRecord.from_payload(payload, shop_id=7)

        assert record.key == (7, 123)
        assert record.has_model is True
        assert record.has_promotion is False
        assert record.create_time == datetime.fromtimestamp(1700000000, tz=timezone.utc)
        assert record.update_time is None
        assert record.raw == payload

    def test_missing_item_id_is_invalid(self):
        with pytest.raises(ValidationError):
            ItemRecord.from_payload({"item_name": "sin id"}, shop_id=7)


class TestModelRecord:
    """Proyección de get_model_list."""

    def test_from_payload_takes_first_price_and_stock_summary(self):
        payload = {
            "model_id": 9,
            "item_id": 123,
            "model_sku": "SKU-1-M",
            "has_promotion": "false",
            "price_info": [{"current_price": 15.5, "original_price": 20.0}, {"current_price": 99}],
            "stock_info_v2": {"summary_info": {"total_available_stock": 4, "total_reserved_stock": 1}},
        }

        record = ModelRecord.from_payload(payload, shop_id=7)

        assert record.key == (7, 9)
        assert record.item_id == 123
        assert record.has_promotion is False
        assert record.current_price == 15.5
        assert record.original_price == 20.0
        assert record.total_available_stock == 4
        assert record.total_reserved_stock == 1

    def test_without_price_or_stock(self):
        record = ModelRecord.from_payload({"model_id": 9, "item_id": 1, "price_info": None}, shop_id=7)

        assert record.current_price is None
        assert record.total_available_stock is None
