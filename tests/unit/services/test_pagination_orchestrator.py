"""Tests del recorrido paginado de get_item_list."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from shopee_sync.db.shopee_clients import Envelope
from shopee_sync.services.pagination_orchestrator import PaginationOrchestrator
from shopee_sync.utils.error_handler import ShopeeAPIException


def _catalog(total_count: int, page_size: int = 100):
    """Simula get_item_list sobre un catálogo de ids 1..total_count."""

    async def get_item_list(offset, page_size_arg, status):
        ids = range(offset + 1, min(offset + page_size_arg, total_count) + 1)
        return Envelope(response={"item": [{"item_id": i} for i in ids], "total_count": total_count})

    return get_item_list


def _orchestrator(get_item_list, group_width=10):
    products = MagicMock()
    products.get_item_list = AsyncMock(side_effect=get_item_list)
    return PaginationOrchestrator(products, page_size=100, group_width=group_width), products


class TestListAll:
    """Listado completo por estado."""

    @pytest.mark.asyncio
    async def test_250_items_take_three_calls(self):
        orchestrator, products = _orchestrator(_catalog(250))

        ids = await orchestrator.list_all("NORMAL")

        assert len(ids) == 250
        assert ids == list(range(1, 251))
        offsets = [call.args[0] for call in products.get_item_list.await_args_list]
        assert offsets == [0, 100, 200]
        assert all(call.args[2] == "NORMAL" for call in products.get_item_list.await_args_list)

    @pytest.mark.asyncio
    async def test_single_page_makes_one_call(self):
        orchestrator, products = _orchestrator(_catalog(40))

        assert len(await orchestrator.list_all("UNLIST")) == 40
        assert products.get_item_list.await_count == 1

    @pytest.mark.asyncio
    async def test_empty_status(self):
        async def empty(offset, page_size, status):
            return Envelope(response={"total_count": 0, "has_next_page": False})

        orchestrator, products = _orchestrator(empty)

        assert await orchestrator.list_all("BANNED") == []
        assert products.get_item_list.await_count == 1

    @pytest.mark.asyncio
    async def test_groups_are_sequential_and_bounded(self):
        """Con 1500 items (14 páginas restantes) nunca hay más de 10 páginas en vuelo."""
        in_flight = 0
        peak = 0
        fetch = _catalog(1500)

        async def tracked(offset, page_size, status):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            try:
                return await fetch(offset, page_size, status)
            finally:
                in_flight -= 1

        orchestrator, products = _orchestrator(tracked)

        ids = await orchestrator.list_all("NORMAL")

        assert len(ids) == 1500
        assert products.get_item_list.await_count == 15
        assert peak == 10

    @pytest.mark.asyncio
    async def test_duplicates_are_removed(self):
        async def overlapping(offset, page_size, status):
            # Las páginas se solapan: el último id de cada página se repite en la siguiente
            start = max(offset, 1)
            return Envelope(
                response={"item": [{"item_id": i} for i in range(start, offset + 101)], "total_count": 200}
            )

        orchestrator, _ = _orchestrator(overlapping)

        ids = await orchestrator.list_all("NORMAL")

        assert len(ids) == len(set(ids))
        assert ids == list(range(1, 201))

    @pytest.mark.asyncio
    async def test_malformed_first_page_returns_empty(self):
        async def malformed(offset, page_size, status):
            return Envelope(response={"item": {"unexpected": "shape"}, "total_count": 500})

        orchestrator, products = _orchestrator(malformed)

        assert await orchestrator.list_all("REVIEWING") == []
        assert products.get_item_list.await_count == 1

    @pytest.mark.asyncio
    async def test_page_failure_propagates(self):
        async def failing(offset, page_size, status):
            if offset:
                raise ShopeeAPIException("boom", status=500)
            return Envelope(response={"item": [{"item_id": 1}], "total_count": 300})

        orchestrator, _ = _orchestrator(failing)

        with pytest.raises(ShopeeAPIException):
            await orchestrator.list_all("NORMAL")
