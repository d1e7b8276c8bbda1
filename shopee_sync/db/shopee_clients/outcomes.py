"""
Result types returned by the Shopee client.

Every exit path of ``BaseShopeeClient.call`` produces a ``TransportOutcome``:
``Ok`` with the decoded envelope (even when the envelope carries a business
error) or ``HttpFailure`` for transport-level problems. ``assert_ok`` and
``unwrap`` turn both kinds of failure into ``ShopeeAPIException`` for callers
that want fail-fast behaviour.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from shopee_sync.utils.error_handler import ShopeeAPIException

# Reasons attached to terminal failures produced by the retry budgets
REASON_REFRESH_EXHAUSTED = "refresh exhausted"
REASON_RATE_LIMIT_EXHAUSTED = "rate-limit budget exhausted"


@dataclass(frozen=True)
class Envelope:
    """
    Standard Shopee response wrapper.

    If ``error`` is non-empty the call failed at business level and
    ``response`` must not be used, even if present.
    """

    error: str = ""
    message: str = ""
    response: Any = None
    warning: str = ""
    request_id: str = ""
    debug_message: str = ""

    @property
    def is_business_error(self) -> bool:
        return bool(self.error)

    @classmethod
    def from_payload(cls, payload: Any) -> "Envelope":
        """
        Build an envelope from decoded JSON.

        Raises:
            ValueError: If the payload is not a JSON object
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object envelope, got {type(payload).__name__}")

        return cls(
            error=payload.get("error") or "",
            message=payload.get("message") or "",
            response=payload.get("response"),
            warning=payload.get("warning") or "",
            request_id=payload.get("request_id") or "",
            debug_message=payload.get("debug_message") or "",
        )


@dataclass(frozen=True)
class Ok:
    """Successful transport (2xx) with its decoded envelope."""

    envelope: Envelope
    status: int = 200
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class HttpFailure:
    """
    Terminal transport failure.

    Attributes:
        status: HTTP status, or None for network/unknown errors
        code: Short error code (AUTH_ERROR, TOO_MANY_REQUESTS, HTTP_ERROR,
            NETWORK_ERROR, DECODE_ERROR, TOKEN_REFRESH_FAILED, UNKNOWN_ERROR)
        message: Human readable description
        raw_body: Response body (decoded JSON when possible)
        reason: Budget annotation when a retry policy gave up
    """

    status: Optional[int]
    code: str
    message: str
    raw_body: Any = None
    reason: Optional[str] = None
    ok: bool = field(default=False, init=False)


TransportOutcome = Union[Ok, HttpFailure]


def assert_ok(outcome: TransportOutcome, endpoint: Optional[str] = None) -> Envelope:
    """
    Validate an outcome and return the envelope.

    1) Transport failure -> ShopeeAPIException with HTTP context.
    2) HTTP 200 with ``error`` filled -> ShopeeAPIException (business error).
    3) Otherwise the envelope is returned.
    """
    if isinstance(outcome, HttpFailure):
        raise ShopeeAPIException(
            message=f"{format_http_prefix(outcome.status, outcome.code)}: {outcome.message}",
            status=outcome.status,
            api_error=outcome.code,
            endpoint=endpoint,
            details={"reason": outcome.reason, "raw_body": _short_body(outcome.raw_body)},
        )

    envelope = outcome.envelope
    if envelope.is_business_error:
        raise ShopeeAPIException(
            message=f"[Shopee][API] {envelope.error}: {envelope.message or 'No message'}",
            status=outcome.status,
            api_error=envelope.error,
            endpoint=endpoint,
            request_id=envelope.request_id or None,
            business_error=True,
        )

    return envelope


def unwrap(outcome: TransportOutcome, endpoint: Optional[str] = None) -> Any:
    """Same as ``assert_ok`` but returns ``envelope.response`` directly."""
    return assert_ok(outcome, endpoint).response


def format_http_prefix(status: Optional[int], code: Optional[str]) -> str:
    """``[Shopee][HTTP] 429 TOO_MANY_REQUESTS`` (status omitted when unknown)."""
    parts = ["[Shopee][HTTP]"]
    if status:
        parts.append(str(status))
    parts.append(code or "HTTP_ERROR")
    return " ".join(parts)


def _short_body(body: Any, limit: int = 500) -> Union[Dict[str, Any], str, None]:
    if body is None or isinstance(body, dict):
        return body
    text = str(body)
    return text if len(text) <= limit else text[:limit] + "..."
