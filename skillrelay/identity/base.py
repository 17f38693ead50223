"""Token exchange client interface, data models and error types.

The identity provider owns SSO tokens keyed by (user, connection, channel).
This system only asks whether one is present for the current turn and
never persists the token value.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field


class TokenResponse(BaseModel):
    """A user token returned by the identity provider."""

    model_config = ConfigDict(populate_by_name=True)

    connection_name: str = Field(..., alias="connectionName")
    token: str = Field(..., description="Opaque credential")
    expiration: str | None = Field(default=None, description="ISO 8601 expiry")


class TokenExchangeRequest(BaseModel):
    """Request to exchange an existing credential for another connection."""

    uri: str | None = Field(default=None, description="Resource to exchange for")
    token: str | None = Field(default=None, description="Token to exchange")


class TokenExchangeResource(BaseModel):
    """Resource a skill's sign-in card offers for SSO exchange."""

    id: str = Field(..., description="Exchange resource id")
    uri: str = Field(..., description="Resource URI the token is scoped to")


# ============================================================================
# Error Types
# ============================================================================


class IdentityProviderUnavailable(Exception):
    """The identity provider could not be reached or failed the request.

    Recoverable: the calling step degrades to a retry offer.
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class TokenExchangeClient(ABC):
    """Queries, clears and exchanges user tokens for a (user, connection, channel)."""

    @abstractmethod
    async def get_user_token(
        self,
        user_id: str,
        connection_name: str,
        channel_id: str,
        magic_code: str | None = None,
    ) -> TokenResponse | None:
        """Return the cached token, redeeming ``magic_code`` if given.

        Raises:
            IdentityProviderUnavailable: On transport or remote failure
        """
        pass

    @abstractmethod
    async def sign_out_user(
        self,
        user_id: str,
        connection_name: str,
        channel_id: str,
    ) -> None:
        """Clear the cached token.

        Raises:
            IdentityProviderUnavailable: On transport or remote failure
        """
        pass

    @abstractmethod
    async def exchange_token(
        self,
        user_id: str,
        connection_name: str,
        channel_id: str,
        request: TokenExchangeRequest,
    ) -> TokenResponse | None:
        """Exchange a credential for a token on ``connection_name``.

        Returns None when the provider refuses the exchange.

        Raises:
            IdentityProviderUnavailable: On transport or remote failure
        """
        pass

    async def close(self) -> None:
        return None
