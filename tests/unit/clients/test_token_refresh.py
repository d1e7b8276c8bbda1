"""Tests del refresco de token single-flight y de la lectura del token."""

import asyncio

import pytest

from shopee_sync.db.shopee_clients import TokenCell, TokenRefreshCoordinator
from shopee_sync.db.token_repository import TokenRepository
from shopee_sync.utils.error_handler import ConfigurationException, TokenNotFoundException
from tests.fakes import FakeGateway


class TestTokenRefreshCoordinator:
    """Un solo refresco en vuelo a la vez."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self):
        calls = []
        release = asyncio.Event()

        async def loader():
            calls.append(1)
            await release.wait()
            return "new-token"

        coordinator = TokenRefreshCoordinator(loader)
        waiters = [asyncio.ensure_future(coordinator.refresh()) for _ in range(10)]
        await asyncio.sleep(0)
        assert coordinator.in_flight

        release.set()
        results = await asyncio.gather(*waiters)

        assert results == ["new-token"] * 10
        assert len(calls) == 1
        assert coordinator.refresh_count == 1
        assert not coordinator.in_flight

    @pytest.mark.asyncio
    async def test_next_refresh_after_settle_starts_new_operation(self):
        tokens = iter(["first", "second"])

        async def loader():
            return next(tokens)

        coordinator = TokenRefreshCoordinator(loader)
        assert await coordinator.refresh() == "first"
        assert await coordinator.refresh() == "second"
        assert coordinator.refresh_count == 2

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter_and_clears_slot(self):
        attempts = []

        async def loader():
            attempts.append(1)
            await asyncio.sleep(0.01)
            if len(attempts) == 1:
                raise RuntimeError("db down")
            return "recovered"

        coordinator = TokenRefreshCoordinator(loader)
        results = await asyncio.gather(*(coordinator.refresh() for _ in range(3)), return_exceptions=True)

        assert all(isinstance(r, RuntimeError) for r in results)
        assert not coordinator.in_flight
        assert await coordinator.refresh() == "recovered"
        assert len(attempts) == 2


class TestTokenRepository:
    """Carga del access_token desde Postgres."""

    @pytest.mark.asyncio
    async def test_load_token_sets_cell(self):
        gateway = FakeGateway(rows=[{"access_token": "abc123"}])
        cell = TokenCell()
        repository = TokenRepository(gateway, "auth.tokens", cell)

        assert await repository.load_token() == "abc123"
        assert cell.get() == "abc123"

        sql, params = gateway.executed[0]
        assert "FROM auth.tokens" in sql
        assert "LIMIT 1" in sql
        assert params == {"provider": "shopee"}

    @pytest.mark.asyncio
    async def test_missing_token_raises(self):
        repository = TokenRepository(FakeGateway(rows=[]), "auth.tokens", TokenCell("old"), provider="shopee")

        with pytest.raises(TokenNotFoundException) as exc_info:
            await repository.load_token()
        assert exc_info.value.details["provider"] == "shopee"
        assert repository.token_cell.get() == "old"

    def test_invalid_table_name_is_rejected(self):
        with pytest.raises(ConfigurationException):
            TokenRepository(FakeGateway(), "tokens; DROP TABLE x", TokenCell())
