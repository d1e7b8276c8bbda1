"""Tests de los grupos de endpoints (producto y descuentos)."""

import pytest

from shopee_sync.schemas.shopee_schemas import DiscountItem, DiscountStatus, ItemStatus, PriceListEntry
from shopee_sync.utils.error_handler import ShopeeAPIException
from tests.fakes import envelope, make_client, shopee_server


class TestProductClient:
    """Endpoints de producto."""

    @pytest.mark.asyncio
    async def test_get_item_list_sends_paging_and_status(self):
        page = {"item": [{"item_id": 1, "item_status": "NORMAL"}], "total_count": 1, "has_next_page": False}
        async with shopee_server(lambda req: (200, envelope(page), None)) as fake:
            async with make_client(fake.host) as client:
                result = await client.products.get_item_list(200, 100, ItemStatus.UNLIST)

        assert result.response == page
        query = fake.requests[0]["query"]
        assert query["offset"] == "200"
        assert query["page_size"] == "100"
        assert query["item_status"] == "UNLIST"

    @pytest.mark.asyncio
    async def test_get_item_base_info_joins_ids(self):
        items = [{"item_id": 1}, {"item_id": 2}]
        async with shopee_server(lambda req: (200, envelope({"item_list": items}), None)) as fake:
            async with make_client(fake.host) as client:
                result = await client.products.get_item_base_info([1, 2])

        assert result == items
        assert fake.requests[0]["path"] == "/api/v2/product/get_item_base_info"
        assert fake.requests[0]["query"]["item_id_list"] == "1,2"

    @pytest.mark.asyncio
    async def test_get_item_base_info_rejects_more_than_50_ids(self):
        client = make_client("https://partner.test-stable.shopeemobile.com")
        with pytest.raises(ValueError):
            await client.products.get_item_base_info(list(range(51)))

    @pytest.mark.asyncio
    async def test_get_item_base_info_empty_makes_no_call(self):
        async with shopee_server(lambda req: (200, envelope({"item_list": []}), None)) as fake:
            async with make_client(fake.host) as client:
                assert await client.products.get_item_base_info([]) == []
        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_get_model_list_injects_item_id(self):
        models = [{"model_id": 10, "model_sku": "A"}, {"model_id": 11, "model_sku": "B"}]
        async with shopee_server(lambda req: (200, envelope({"model": models, "tier_variation": []}), None)) as fake:
            async with make_client(fake.host) as client:
                result = await client.products.get_model_list(555)

        assert [m["item_id"] for m in result] == [555, 555]
        assert result[0]["model_sku"] == "A"
        assert fake.requests[0]["query"]["item_id"] == "555"

    @pytest.mark.asyncio
    async def test_business_error_raises(self):
        async with shopee_server(lambda req: (200, envelope(error="error_item_not_found", message="gone"), None)) as fake:
            async with make_client(fake.host) as client:
                with pytest.raises(ShopeeAPIException) as exc_info:
                    await client.products.get_model_list(1)

        assert exc_info.value.business_error is True
        assert exc_info.value.endpoint == "/api/v2/product/get_model_list"

    @pytest.mark.asyncio
    async def test_update_price_posts_price_list(self):
        async with shopee_server(lambda req: (200, envelope({"success_list": [{"model_id": 3}]}), None)) as fake:
            async with make_client(fake.host) as client:
                await client.products.update_price(9, [PriceListEntry(original_price=19.9, model_id=3)])

        sent = fake.requests[0]
        assert sent["method"] == "POST"
        assert sent["body"] == {"item_id": 9, "price_list": [{"original_price": 19.9, "model_id": 3}]}


class TestDiscountClient:
    """Endpoints de descuentos."""

    @pytest.mark.asyncio
    async def test_get_discount_list_clamps_page_size_and_omits_times(self):
        async with shopee_server(lambda req: (200, envelope({"discount_list": [], "more": False}), None)) as fake:
            async with make_client(fake.host) as client:
                result = await client.discounts.get_discount_list(DiscountStatus.ONGOING, page_size=500)

        assert result == {"discount_list": [], "more": False}
        query = fake.requests[0]["query"]
        assert query["discount_status"] == "ongoing"
        assert query["page_no"] == "1"
        assert query["page_size"] == "100"
        assert "update_time_from" not in query
        assert "update_time_to" not in query

    @pytest.mark.asyncio
    async def test_add_discount_item_serializes_items(self):
        async with shopee_server(lambda req: (200, envelope({"discount_id": 7, "count": 1}), None)) as fake:
            async with make_client(fake.host) as client:
                result = await client.discounts.add_discount_item(
                    7, [DiscountItem(item_id=1, item_promotion_price=9.5, item_promotion_stock=3)]
                )

        assert result["discount_id"] == 7
        assert fake.requests[0]["body"] == {
            "discount_id": 7,
            "item_list": [{"item_id": 1, "item_promotion_price": 9.5, "item_promotion_stock": 3}],
        }

    @pytest.mark.asyncio
    async def test_delete_discount_item_without_model(self):
        async with shopee_server(lambda req: (200, envelope({"discount_id": 7}), None)) as fake:
            async with make_client(fake.host) as client:
                await client.discounts.delete_discount_item(7, 1)

        assert fake.requests[0]["path"] == "/api/v2/discount/delete_discount_item"
        assert fake.requests[0]["body"] == {"discount_id": 7, "item_id": 1}

    @pytest.mark.asyncio
    async def test_lifecycle_endpoints_post_discount_id(self):
        async with shopee_server(lambda req: (200, envelope({"discount_id": 7}), None)) as fake:
            async with make_client(fake.host) as client:
                await client.discounts.add_discount("Black Friday", 1700000000, 1700086400)
                await client.discounts.end_discount(7)
                await client.discounts.delete_discount(7)

        paths = [req["path"] for req in fake.requests]
        assert paths == [
            "/api/v2/discount/add_discount",
            "/api/v2/discount/end_discount",
            "/api/v2/discount/delete_discount",
        ]
        assert fake.requests[0]["body"]["discount_name"] == "Black Friday"
        assert fake.requests[1]["body"] == {"discount_id": 7}
