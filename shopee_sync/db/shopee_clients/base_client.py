"""
Base Shopee Partner API client with signing and resilient retries.

This module provides the foundation for all Shopee endpoint clients:
session management, request signing, query serialization and the retry loop
that recovers from expired tokens (401/403) and rate limiting (429).
"""

import asyncio
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple

import aiohttp
from aiohttp import ClientTimeout

from shopee_sync.utils.error_handler import ConfigurationException
from shopee_sync.utils.retry_handler import RetryPolicy, RetryState, parse_retry_after

from .credentials import AuthRequirement, Credentials
from .outcomes import (
    REASON_RATE_LIMIT_EXHAUSTED,
    REASON_REFRESH_EXHAUSTED,
    Envelope,
    HttpFailure,
    Ok,
    TransportOutcome,
    format_http_prefix,
)
from .signer import sign_partner
from .token_refresh import TokenRefreshCoordinator

logger = logging.getLogger(__name__)

AUTH_ERROR_STATUSES = (401, 403)
TOO_MANY_REQUESTS = 429


def serialize_query_params(params: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Serialize endpoint parameters for the query string.

    - ``None`` values are omitted entirely.
    - Lists of scalars become a comma-joined string (``[1, 2, 3]`` -> ``"1,2,3"``);
      Shopee does not accept ``"[1,2,3]"`` for fields like ``item_id_list``.
    - Lists containing objects fall back to a JSON array string.
    - Empty lists are omitted.
    - Booleans are sent as ``true``/``false``.
    """
    serialized: Dict[str, str] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue

        if isinstance(value, (list, tuple)):
            if not value:
                continue
            has_object = any(isinstance(v, (dict, list, tuple)) for v in value)
            if has_object:
                serialized[key] = json.dumps(list(value), separators=(",", ":"))
            else:
                serialized[key] = ",".join(_scalar_to_str(v) for v in value)
            continue

        if isinstance(value, dict):
            serialized[key] = json.dumps(value, separators=(",", ":"))
            continue

        serialized[key] = _scalar_to_str(value)

    return serialized


def _scalar_to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class BaseShopeeClient:
    """
    Resilient client for the Shopee Partner API.

    ``call`` never raises for HTTP, network or decode problems: it returns a
    ``TransportOutcome``. Business errors (HTTP 200 with ``error`` filled) are
    returned as ``Ok`` and must be checked by the caller (see ``assert_ok``).
    """

    def __init__(
        self,
        credentials: Credentials,
        token_refresher: TokenRefreshCoordinator,
        retry_policy: Optional[RetryPolicy] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: int = 30,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the client.

        Args:
            credentials: Partner/shop identity plus the shared token cell
            token_refresher: Single-flight coordinator used on 401/403
            retry_policy: Auth/rate-limit budgets (defaults: 3 refreshes, 600s of 429 waits)
            session: Existing aiohttp session to reuse (not closed by ``close``)
            timeout_seconds: Total timeout per HTTP attempt
            sleep: Coroutine used for rate-limit waits
        """
        self.credentials = credentials
        self.token_refresher = token_refresher
        self.retry_policy = retry_policy or RetryPolicy()
        self.session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None
        self._timeout = ClientTimeout(total=timeout_seconds)
        self._sleep = sleep

        self.metrics = {
            "requests": 0,
            "auth_refreshes": 0,
            "rate_limited": 0,
            "failures": 0,
        }

    async def initialize(self):
        """Create the HTTP session if none was injected."""
        if self.session is None:
            connector = aiohttp.TCPConnector(limit=100, limit_per_host=30)
            self.session = aiohttp.ClientSession(timeout=self._timeout, connector=connector)
            self._owns_session = True
            logger.info(f"Initialized Shopee client for {self.credentials.host} (shop {self.credentials.shop_id})")

    async def close(self):
        """Close the HTTP session and clean up resources."""
        if self.session and self._owns_session:
            await self.session.close()
            logger.info("Shopee client closed")
        self.session = None

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _check_configuration(self):
        if not self.credentials.partner_id:
            raise ConfigurationException("[Shopee][CONFIG] partner_id not set (SHOPEE_PARTNER_ID)")
        if not self.credentials.partner_key:
            raise ConfigurationException("[Shopee][CONFIG] partner_key not set (SHOPEE_PARTNER_KEY)")

    def build_signed_query(
        self,
        path: str,
        timestamp: int,
        auth: AuthRequirement,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, str]:
        """
        Build the query string: standard signed fields merged with endpoint params.

        The access token and shop id are signed and sent only when ``auth`` asks for them.
        """
        creds = self.credentials
        access_token = creds.access_token if auth.includes_token else None
        shop_id = creds.shop_id if auth.includes_shop else None

        sign = sign_partner(
            partner_id=creds.partner_id,
            partner_key=creds.partner_key,
            path=path,
            timestamp=timestamp,
            access_token=access_token,
            shop_id=shop_id,
        )

        query = {
            "partner_id": str(creds.partner_id),
            "timestamp": str(timestamp),
            "sign": sign,
        }
        if access_token is not None:
            query["access_token"] = access_token
        if shop_id is not None:
            query["shop_id"] = str(shop_id)

        query.update(serialize_query_params(params))
        return query

    async def call(
        self,
        path: str,
        auth: AuthRequirement = AuthRequirement.TOKEN_AND_SHOP,
        params: Optional[Mapping[str, Any]] = None,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
    ) -> TransportOutcome:
        """
        Execute a signed call, retrying on 401/403 (token refresh) and 429 (backoff).

        Args:
            path: Endpoint path, e.g. ``/api/v2/product/get_item_list``
            auth: Which identity fields to sign and send
            params: Endpoint query parameters
            method: ``GET`` or ``POST``
            body: JSON body for POST calls

        Returns:
            Ok(envelope) for any 2xx, HttpFailure for every terminal failure
        """
        self._check_configuration()

        # The signed path can never contain the query string
        path = path.split("?", 1)[0]
        if not path.startswith("/"):
            raise ValueError(f"[Shopee] invalid endpoint path: {path!r}")

        if self.session is None:
            await self.initialize()

        url = f"{self.credentials.host}{path}"
        state = RetryState()

        while True:
            timestamp = int(time.time())

            try:
                query = self.build_signed_query(path, timestamp, auth, params)
                status, headers, raw_text = await self._send(method, url, query, body)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                return self._fail(None, "NETWORK_ERROR", f"{type(e).__name__}: {e}", path=path)
            except Exception as e:
                return self._fail(None, "UNKNOWN_ERROR", str(e) or type(e).__name__, path=path)

            if 200 <= status < 300:
                try:
                    envelope = Envelope.from_payload(json.loads(raw_text))
                except ValueError as e:
                    return self._fail(status, "DECODE_ERROR", f"Invalid JSON envelope: {e}", raw_text, path=path)
                return Ok(envelope=envelope, status=status)

            raw_body = _decode_body(raw_text)

            # -------- 401/403: refresh token and retry (max N consecutive times)
            if status in AUTH_ERROR_STATUSES:
                if not self.retry_policy.should_refresh_token(state):
                    return self._fail(
                        status,
                        "AUTH_ERROR",
                        f"{_body_message(raw_body)} (token refresh exceeded "
                        f"{self.retry_policy.max_auth_refresh_tries} attempt(s))",
                        raw_body,
                        reason=REASON_REFRESH_EXHAUSTED,
                        path=path,
                    )

                logger.warning(
                    f"🔑 {status} on {path}, refreshing token "
                    f"(attempt {state.auth_refresh_tries}/{self.retry_policy.max_auth_refresh_tries})"
                )
                self.metrics["auth_refreshes"] += 1
                try:
                    await self.token_refresher.refresh()
                except Exception as e:
                    return self._fail(status, "TOKEN_REFRESH_FAILED", str(e), raw_body, path=path)
                continue

            # A status other than 401/403 resets the auth counter ("consecutive" rule)
            self.retry_policy.reset_auth(state)

            # -------- 429: linear backoff 1,2,3... until allowed or 600s total
            if status == TOO_MANY_REQUESTS:
                self.metrics["rate_limited"] += 1
                wait_seconds = self.retry_policy.next_rate_limit_wait(state, parse_retry_after(headers))

                if wait_seconds is None:
                    return self._fail(
                        status,
                        "TOO_MANY_REQUESTS",
                        f"{_body_message(raw_body)} (429 waited {round(state.rate_limit_waited_ms / 1000)}s "
                        f"in total; limit={self.retry_policy.max_rate_limit_wait_ms // 1000}s)",
                        raw_body,
                        reason=REASON_RATE_LIMIT_EXHAUSTED,
                        path=path,
                    )

                logger.warning(
                    f"⏳ Rate limited on {path}, waiting {wait_seconds}s "
                    f"(attempt {state.rate_limit_tries}, {state.rate_limit_waited_ms / 1000:.0f}s waited)"
                )
                await self._sleep(wait_seconds)
                continue

            # -------- other HTTP errors (no retry here)
            return self._fail(status, "HTTP_ERROR", _body_message(raw_body), raw_body, path=path)

    async def _send(
        self, method: str, url: str, query: Dict[str, str], body: Optional[Dict[str, Any]]
    ) -> Tuple[int, Mapping[str, str], str]:
        """Perform one HTTP attempt and return status, headers and raw body text."""
        self.metrics["requests"] += 1

        kwargs: Dict[str, Any] = {"params": query}
        if method.upper() == "POST":
            kwargs["json"] = body or {}
            kwargs["headers"] = {"Content-Type": "application/json"}

        async with self.session.request(method.upper(), url, timeout=self._timeout, **kwargs) as response:
            raw_text = await response.text()
            return response.status, response.headers, raw_text

    def _fail(
        self,
        status: Optional[int],
        code: str,
        message: str,
        raw_body: Any = None,
        reason: Optional[str] = None,
        path: str = "",
    ) -> HttpFailure:
        self.metrics["failures"] += 1
        logger.error(f"❌ {format_http_prefix(status, code)} on {path}: {message}")
        return HttpFailure(status=status, code=code, message=message, raw_body=raw_body, reason=reason)

    def get_metrics(self) -> Dict[str, int]:
        return dict(self.metrics)

    def __repr__(self):
        return (
            f"{self.__class__.__name__}("
            f"host='{self.credentials.host}', "
            f"shop_id={self.credentials.shop_id}, "
            f"initialized={self.session is not None})"
        )


def _decode_body(raw_text: str) -> Any:
    try:
        return json.loads(raw_text) if raw_text else None
    except ValueError:
        return raw_text


def _body_message(raw_body: Any) -> str:
    if isinstance(raw_body, dict):
        error = raw_body.get("error") or ""
        message = raw_body.get("message") or ""
        if error or message:
            return f"{error}: {message}".strip(": ")
    if raw_body:
        return str(raw_body)[:200]
    return "no response body"
