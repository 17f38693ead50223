"""Mock token exchange client for testing and local development."""

from typing import Any

from skillrelay.identity.base import (
    IdentityProviderUnavailable,
    TokenExchangeClient,
    TokenExchangeRequest,
    TokenResponse,
)


class MockTokenExchangeClient(TokenExchangeClient):
    """In-memory identity provider.

    Tokens are cached per (user, connection, channel). A magic code listed
    in ``magic_codes`` signs the user in on redemption. An exchange without
    a token trades the caller's own cached token for a resource URI (the
    root's side); an exchange carrying a token redeems it, and only
    succeeds on connections listed in ``exchangeable_connections`` (the
    skill's side).
    """

    def __init__(
        self,
        magic_codes: dict[str, str] | None = None,
        exchangeable_connections: set[str] | None = None,
    ) -> None:
        """Initialize mock client.

        Args:
            magic_codes: Dict mapping magic code to the token it yields
            exchangeable_connections: Connections that accept SSO exchange
        """
        self._tokens: dict[tuple[str, str, str], str] = {}
        self._magic_codes = magic_codes or {}
        self._exchangeable = exchangeable_connections or set()
        self._failing: set[str] = set()
        self._call_history: list[dict[str, Any]] = []

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """Return history of calls for testing assertions."""
        return self._call_history

    def set_token(self, user_id: str, connection_name: str, channel_id: str, token: str) -> None:
        self._tokens[(user_id, connection_name, channel_id)] = token

    def has_token(self, user_id: str, connection_name: str, channel_id: str) -> bool:
        return (user_id, connection_name, channel_id) in self._tokens

    def fail(self, *operations: str) -> None:
        """Make the given operations raise IdentityProviderUnavailable."""
        self._failing.update(operations)

    def recover(self) -> None:
        self._failing.clear()

    def _record(self, operation: str, **kwargs: Any) -> None:
        self._call_history.append({"operation": operation, **kwargs})
        if operation in self._failing:
            raise IdentityProviderUnavailable(
                f"Mock identity provider failure: {operation}", operation=operation
            )

    async def get_user_token(
        self,
        user_id: str,
        connection_name: str,
        channel_id: str,
        magic_code: str | None = None,
    ) -> TokenResponse | None:
        self._record(
            "get_user_token",
            user_id=user_id,
            connection_name=connection_name,
            channel_id=channel_id,
            magic_code=magic_code,
        )
        key = (user_id, connection_name, channel_id)
        if magic_code is not None and magic_code in self._magic_codes:
            self._tokens[key] = self._magic_codes[magic_code]

        token = self._tokens.get(key)
        if token is None:
            return None
        return TokenResponse(connection_name=connection_name, token=token)

    async def sign_out_user(
        self,
        user_id: str,
        connection_name: str,
        channel_id: str,
    ) -> None:
        self._record(
            "sign_out_user",
            user_id=user_id,
            connection_name=connection_name,
            channel_id=channel_id,
        )
        self._tokens.pop((user_id, connection_name, channel_id), None)

    async def exchange_token(
        self,
        user_id: str,
        connection_name: str,
        channel_id: str,
        request: TokenExchangeRequest,
    ) -> TokenResponse | None:
        self._record(
            "exchange_token",
            user_id=user_id,
            connection_name=connection_name,
            channel_id=channel_id,
            uri=request.uri,
        )
        key = (user_id, connection_name, channel_id)
        if request.token:
            # Skill side: redeem the token the root exchanged on our behalf
            if connection_name not in self._exchangeable:
                return None
            self._tokens[key] = f"{connection_name}:{request.token}"
            return TokenResponse(connection_name=connection_name, token=self._tokens[key])

        # Root side: exchange our own cached token for the skill's resource
        root_token = self._tokens.get(key)
        if root_token is None or not request.uri:
            return None
        return TokenResponse(
            connection_name=connection_name,
            token=f"exchanged:{request.uri}:{root_token}",
        )
