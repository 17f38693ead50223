"""Sign-in dialog: obtains a user token by magic code or SSO exchange.

Begins by asking the identity provider for a cached token. Without one it
sends a sign-in card and waits. The next turn either carries a magic code
(a message) or, when a root bot signs the user in on the skill's behalf,
a ``signin/tokenExchange`` invoke.
"""

from typing import Any

from skillrelay.conversation.models import (
    SIGNIN_CARD_CONTENT_TYPE,
    TOKEN_EXCHANGE_INVOKE,
    ActivityType,
    Attachment,
    InvokeResponse,
    Reply,
)
from skillrelay.dialogs.models import DialogTurnResult, end_of_turn
from skillrelay.dialogs.stack import DialogStack
from skillrelay.identity.base import (
    IdentityProviderUnavailable,
    TokenExchangeRequest,
    TokenExchangeResource,
    TokenResponse,
)
from skillrelay.observability.logging import get_logger

logger = get_logger(__name__)

SIGNIN_PROMPT = "Please sign in to continue."
SIGNIN_RETRY = "That code was not accepted. Please sign in to continue."
SIGNED_IN = "You are now signed in."
SIGNIN_UNAVAILABLE = "The sign-in service is unavailable right now. Please try again later."


class SignInDialog:
    """Dialog kind ending with the user's ``TokenResponse`` or ``None``."""

    def __init__(
        self,
        dialog_id: str,
        connection_name: str,
        token_exchange_uri: str | None = None,
    ) -> None:
        self.id = dialog_id
        self.connection_name = connection_name
        self.token_exchange_uri = token_exchange_uri

    async def begin(self, stack: DialogStack, options: Any = None) -> DialogTurnResult:
        turn = stack.turn
        try:
            token = await turn.token_client.get_user_token(
                turn.user_id, self.connection_name, turn.channel_id
            )
        except IdentityProviderUnavailable as exc:
            return await self._unavailable(stack, exc)

        if token is not None:
            return await stack.end(token)

        turn.send(self._signin_card(stack))
        return end_of_turn()

    async def continue_(self, stack: DialogStack) -> DialogTurnResult:
        activity = stack.activity
        if activity.type == ActivityType.INVOKE.value and activity.name == TOKEN_EXCHANGE_INVOKE:
            return await self._exchange(stack)
        if activity.is_message:
            return await self._redeem_magic_code(stack)
        return end_of_turn()

    async def resume(self, stack: DialogStack, result: Any) -> DialogTurnResult:
        return end_of_turn()

    async def cancel(self, stack: DialogStack) -> None:
        return None

    async def _redeem_magic_code(self, stack: DialogStack) -> DialogTurnResult:
        turn = stack.turn
        code = (stack.activity.text or "").strip()
        try:
            token = await turn.token_client.get_user_token(
                turn.user_id, self.connection_name, turn.channel_id, magic_code=code or None
            )
        except IdentityProviderUnavailable as exc:
            return await self._unavailable(stack, exc)

        if token is None:
            logger.info("signin_code_rejected", dialog_id=self.id)
            turn.send(SIGNIN_RETRY)
            return end_of_turn()
        return await self._signed_in(stack, token)

    async def _exchange(self, stack: DialogStack) -> DialogTurnResult:
        turn = stack.turn
        value = stack.activity.value or {}
        try:
            token = await turn.token_client.exchange_token(
                turn.user_id,
                self.connection_name,
                turn.channel_id,
                TokenExchangeRequest(token=value.get("token")),
            )
        except IdentityProviderUnavailable as exc:
            turn.invoke_response = self._precondition_failed(value, "identity provider unavailable")
            return await self._unavailable(stack, exc)

        if token is None:
            logger.info("signin_exchange_rejected", dialog_id=self.id)
            turn.invoke_response = self._precondition_failed(
                value, "The bot is unable to exchange token. Proceed with regular login."
            )
            return end_of_turn()

        turn.invoke_response = InvokeResponse(status=200, body={"id": value.get("id")})
        return await self._signed_in(stack, token)

    async def _signed_in(self, stack: DialogStack, token: TokenResponse) -> DialogTurnResult:
        logger.info("signin_completed", dialog_id=self.id, connection_name=self.connection_name)
        stack.turn.send(SIGNED_IN)
        return await stack.end(token)

    async def _unavailable(
        self, stack: DialogStack, exc: IdentityProviderUnavailable
    ) -> DialogTurnResult:
        logger.warning(
            "signin_identity_provider_unavailable",
            dialog_id=self.id,
            operation=exc.operation,
        )
        stack.turn.send(SIGNIN_UNAVAILABLE)
        return await stack.end(None)

    def _precondition_failed(self, value: dict[str, Any], detail: str) -> InvokeResponse:
        return InvokeResponse(
            status=412,
            body={
                "id": value.get("id"),
                "connection_name": self.connection_name,
                "failureDetail": detail,
            },
        )

    def _signin_card(self, stack: DialogStack) -> Reply:
        resource = None
        if self.token_exchange_uri:
            resource = TokenExchangeResource(
                id=stack.active_frame.instance_id, uri=self.token_exchange_uri
            ).model_dump()
        card = Attachment(
            content_type=SIGNIN_CARD_CONTENT_TYPE,
            content={
                "text": SIGNIN_PROMPT,
                "connection_name": self.connection_name,
                "token_exchange_resource": resource,
            },
        )
        return Reply.message(SIGNIN_PROMPT, attachments=[card])
