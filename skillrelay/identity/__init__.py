"""Identity provider access: SSO token lookup, sign-out and exchange."""

from skillrelay.identity.base import (
    IdentityProviderUnavailable,
    TokenExchangeClient,
    TokenExchangeRequest,
    TokenExchangeResource,
    TokenResponse,
)
from skillrelay.identity.http import HttpTokenExchangeClient
from skillrelay.identity.mock import MockTokenExchangeClient

__all__ = [
    "HttpTokenExchangeClient",
    "IdentityProviderUnavailable",
    "MockTokenExchangeClient",
    "TokenExchangeClient",
    "TokenExchangeRequest",
    "TokenExchangeResource",
    "TokenResponse",
]
