"""
Single-flight access token refresh.

If several requests hit 401/403 at the same time, only one of them reloads
the token and the others await the same pending operation. Once it settles
the slot is cleared, so a later refresh starts a brand-new operation.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class TokenRefreshCoordinator:
    """
    Deduplicates concurrent token refreshes into one in-flight operation.

    Args:
        load_token: Coroutine function that fetches a fresh token and stores it
            in the shared ``TokenCell`` (usually ``TokenRepository.load_token``).
    """

    def __init__(self, load_token: Callable[[], Awaitable[str]]):
        self._load_token = load_token
        self._lock = asyncio.Lock()
        self._in_flight: Optional["asyncio.Future[str]"] = None
        self.refresh_count = 0

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    async def refresh(self) -> str:
        """
        Refresh the token, joining an already running refresh if there is one.

        Returns:
            str: The new access token

        Raises:
            Exception: Whatever the loader raised; every joined caller sees it.
        """
        async with self._lock:
            if self._in_flight is None:
                self._in_flight = asyncio.ensure_future(self._run())
            in_flight = self._in_flight

        # shield: a cancelled waiter must not cancel the refresh others are awaiting
        return await asyncio.shield(in_flight)

    async def _run(self) -> str:
        self.refresh_count += 1
        logger.info(f"🔑 Refreshing access token (refresh #{self.refresh_count})")
        try:
            token = await self._load_token()
            logger.info("🔑 Access token refreshed")
            return token
        except Exception as e:
            logger.error(f"❌ Access token refresh failed: {e}")
            raise
        finally:
            async with self._lock:
                self._in_flight = None
