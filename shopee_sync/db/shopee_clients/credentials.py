"""
Seller identity and access token holders.

``Credentials`` is immutable process-lifetime configuration. The access token
is the only mutable piece and lives in a ``TokenCell`` that is replaced
wholesale on refresh and read by every signed request.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from shopee_sync.core.config import Settings


class AuthRequirement(Enum):
    """Which identity fields a call sends (and signs)."""

    NONE = "none"
    TOKEN_ONLY = "token_only"
    TOKEN_AND_SHOP = "token_and_shop"

    @property
    def includes_token(self) -> bool:
        return self is not AuthRequirement.NONE

    @property
    def includes_shop(self) -> bool:
        return self is AuthRequirement.TOKEN_AND_SHOP


class TokenCell:
    """Holds the current access token; ``set`` replaces it atomically."""

    def __init__(self, token: str = ""):
        self._token = token

    def get(self) -> str:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def __repr__(self) -> str:
        return f"TokenCell(loaded={bool(self._token)})"


@dataclass(frozen=True)
class Credentials:
    """Partner/shop identity shared by reference with every client."""

    partner_id: int
    partner_key: str = field(repr=False)
    host: str
    shop_id: int
    token: TokenCell = field(default_factory=TokenCell, compare=False)

    @property
    def access_token(self) -> str:
        return self.token.get()

    @classmethod
    def from_settings(cls, settings: Settings, token: Optional[TokenCell] = None) -> "Credentials":
        """Build credentials from the environment settings with an empty (or given) token cell."""
        return cls(
            partner_id=settings.SHOPEE_PARTNER_ID,
            partner_key=settings.SHOPEE_PARTNER_KEY,
            host=settings.SHOPEE_HOST,
            shop_id=settings.SHOPEE_SHOP_ID,
            token=token or TokenCell(),
        )
