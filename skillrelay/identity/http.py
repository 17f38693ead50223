"""HTTP implementation of TokenExchangeClient."""

from typing import Any

import httpx
from pydantic import ValidationError

from skillrelay.identity.base import (
    IdentityProviderUnavailable,
    TokenExchangeClient,
    TokenExchangeRequest,
    TokenResponse,
)
from skillrelay.observability.logging import get_logger
from skillrelay.observability.metrics import IDENTITY_PROVIDER_ERRORS

logger = get_logger(__name__)


class HttpTokenExchangeClient(TokenExchangeClient):
    """Async client for the user token service.

    Endpoints:
    - GET    /api/usertoken/GetToken
    - DELETE /api/usertoken/SignOut
    - POST   /api/usertoken/exchange

    404 (and 400 for exchanges) mean "no token"; transport errors,
    timeouts, 401/403, 5xx responses and unreadable bodies raise
    IdentityProviderUnavailable.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8100",
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Token service base URL
            timeout: Request timeout in seconds
            client: Pre-built httpx client (tests inject a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
        )

    async def __aenter__(self) -> "HttpTokenExchangeClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def get_user_token(
        self,
        user_id: str,
        connection_name: str,
        channel_id: str,
        magic_code: str | None = None,
    ) -> TokenResponse | None:
        params = _identity_params(user_id, connection_name, channel_id)
        if magic_code:
            params["code"] = magic_code

        response = await self._request("get_user_token", "GET", "/api/usertoken/GetToken", params=params)
        if response.status_code == 404:
            return None
        return self._parse_token("get_user_token", response)

    async def sign_out_user(
        self,
        user_id: str,
        connection_name: str,
        channel_id: str,
    ) -> None:
        await self._request(
            "sign_out_user",
            "DELETE",
            "/api/usertoken/SignOut",
            params=_identity_params(user_id, connection_name, channel_id),
        )
        logger.info(
            "user_signed_out",
            user_id=user_id,
            connection_name=connection_name,
        )

    async def exchange_token(
        self,
        user_id: str,
        connection_name: str,
        channel_id: str,
        request: TokenExchangeRequest,
    ) -> TokenResponse | None:
        response = await self._request(
            "exchange_token",
            "POST",
            "/api/usertoken/exchange",
            params=_identity_params(user_id, connection_name, channel_id),
            json=request.model_dump(exclude_none=True),
        )
        if response.status_code in (400, 404):
            return None
        return self._parse_token("exchange_token", response)

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            IDENTITY_PROVIDER_ERRORS.labels(operation=operation).inc()
            logger.warning(
                "identity_provider_request_failed",
                operation=operation,
                error=str(e),
            )
            raise IdentityProviderUnavailable(
                f"Token service request failed: {e}", operation=operation
            ) from e

        if response.status_code >= 500 or response.status_code in (401, 403):
            IDENTITY_PROVIDER_ERRORS.labels(operation=operation).inc()
            logger.warning(
                "identity_provider_error_status",
                operation=operation,
                status_code=response.status_code,
            )
            raise IdentityProviderUnavailable(
                f"Token service returned {response.status_code}",
                operation=operation,
            )
        return response

    def _parse_token(self, operation: str, response: httpx.Response) -> TokenResponse:
        try:
            return TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            IDENTITY_PROVIDER_ERRORS.labels(operation=operation).inc()
            logger.warning(
                "identity_provider_malformed_response",
                operation=operation,
                status_code=response.status_code,
            )
            raise IdentityProviderUnavailable(
                "Token service sent a malformed response",
                operation=operation,
            ) from e


def _identity_params(user_id: str, connection_name: str, channel_id: str) -> dict[str, str]:
    return {
        "userId": user_id,
        "connectionName": connection_name,
        "channelId": channel_id,
    }
