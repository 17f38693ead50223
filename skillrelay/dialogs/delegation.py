"""Skill delegation orchestrator.

The orchestrator's frame on the dialog stack is the Delegating state. The
active-skill marker is written to conversation state before the first
forwarded activity and removed when the skill reports end of conversation,
when any forward fails or times out, and when the frame is cancelled. An
end of conversation carrying an error code counts as a failure.
"""

import asyncio
from typing import Any

from pydantic import BaseModel, Field

from skillrelay.conversation.models import (
    TOKEN_EXCHANGE_INVOKE,
    ActiveSkillMarker,
    Activity,
    ActivityType,
    Attachment,
)
from skillrelay.dialogs.errors import SkillDelegationFailed
from skillrelay.dialogs.models import DialogTurnResult, end_of_turn
from skillrelay.dialogs.stack import DialogStack
from skillrelay.identity.base import (
    IdentityProviderUnavailable,
    TokenExchangeRequest,
    TokenExchangeResource,
)
from skillrelay.observability.logging import get_logger
from skillrelay.observability.metrics import (
    SKILL_DELEGATIONS,
    SKILL_FORWARD_LATENCY,
    TOKEN_EXCHANGES,
)
from skillrelay.skills.base import (
    SkillClient,
    SkillClientError,
    SkillConversationMapping,
    SkillRef,
    SkillResponse,
)
from skillrelay.skills.conversation_ids import SkillConversationIdFactory

logger = get_logger(__name__)

BEGIN_SKILL_EVENT = "SSO"

# endOfConversation codes that mean the skill finished its work
COMPLETION_CODES = frozenset({None, "completedSuccessfully"})


class BeginSkillOptions(BaseModel):
    """How to start a delegation.

    The skill receives an ``event`` activity named ``activity_name``.
    ``sso`` asks the root to share its sign-in with the skill; it is
    downgraded when the root holds no token.
    """

    activity_name: str = Field(default=BEGIN_SKILL_EVENT)
    value: Any = None
    sso: bool = False


class SkillDelegationOrchestrator:
    """Dialog kind that hands the conversation to a remote skill."""

    def __init__(
        self,
        dialog_id: str,
        skill: SkillRef,
        skill_client: SkillClient,
        conversation_ids: SkillConversationIdFactory,
        connection_name: str,
        timeout_seconds: float = 10.0,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            dialog_id: Registered id of this dialog kind
            skill: Target skill
            skill_client: RPC channel to the skill
            conversation_ids: Skill conversation id factory
            connection_name: Root bot's sign-in connection, used for SSO
            timeout_seconds: Limit for each forwarded activity
        """
        self.id = dialog_id
        self.skill = skill
        self._client = skill_client
        self._conversation_ids = conversation_ids
        self._connection_name = connection_name
        self._timeout = timeout_seconds

    async def begin(self, stack: DialogStack, options: Any = None) -> DialogTurnResult:
        begin_options = BeginSkillOptions.model_validate(options or {})
        turn = stack.turn
        sso = begin_options.sso and await self._root_signed_in(stack)

        mapping = self._conversation_ids.create(turn.activity, self.skill)
        turn.state.active_skill = ActiveSkillMarker(
            skill_id=self.skill.skill_id,
            app_id=self.skill.app_id,
            endpoint=self.skill.endpoint,
            skill_conversation_id=mapping.skill_conversation_id,
        )
        stack.active_frame.local_state = {
            "skill_conversation_id": mapping.skill_conversation_id,
            "sso": sso,
        }
        logger.info(
            "skill_delegation_started",
            skill_id=self.skill.skill_id,
            skill_conversation_id=mapping.skill_conversation_id,
            sso=sso,
        )

        trigger = turn.activity.model_copy(
            update={
                "type": ActivityType.EVENT.value,
                "name": begin_options.activity_name,
                "value": begin_options.value,
                "text": None,
            }
        ).with_conversation(mapping.skill_conversation_id)
        return await self._deliver(stack, mapping, trigger)

    async def continue_(self, stack: DialogStack) -> DialogTurnResult:
        mapping = self._conversation_ids.create(stack.activity, self.skill)
        forwarded = stack.activity.with_conversation(mapping.skill_conversation_id)
        return await self._deliver(stack, mapping, forwarded)

    async def resume(self, stack: DialogStack, result: Any) -> DialogTurnResult:
        return end_of_turn()

    async def cancel(self, stack: DialogStack) -> None:
        """Tell the skill the conversation is over and clear the marker.

        Notifying the skill is best effort; the marker is cleared either way.
        """
        mapping = self._conversation_ids.create(stack.activity, self.skill)
        end = stack.activity.model_copy(
            update={
                "type": ActivityType.END_OF_CONVERSATION.value,
                "code": "userCancelled",
                "name": None,
                "text": None,
                "value": None,
            }
        ).with_conversation(mapping.skill_conversation_id)
        try:
            async with asyncio.timeout(self._timeout):
                await self._client.forward_activity(self.skill, mapping, end)
        except Exception as e:
            logger.warning(
                "skill_cancel_notification_failed",
                skill_id=self.skill.skill_id,
                error=str(e) or type(e).__name__,
            )

        self._clear(stack, mapping)
        SKILL_DELEGATIONS.labels(skill_id=self.skill.skill_id, outcome="cancelled").inc()
        logger.info("skill_delegation_cancelled", skill_id=self.skill.skill_id)

    async def _root_signed_in(self, stack: DialogStack) -> bool:
        turn = stack.turn
        try:
            token = await turn.token_client.get_user_token(
                turn.user_id, self._connection_name, turn.channel_id
            )
        except IdentityProviderUnavailable as e:
            logger.warning(
                "skill_sso_token_lookup_failed",
                skill_id=self.skill.skill_id,
                operation=e.operation,
            )
            token = None

        if token is None:
            logger.info("skill_sso_downgraded", skill_id=self.skill.skill_id)
            return False
        return True

    async def _deliver(
        self,
        stack: DialogStack,
        mapping: SkillConversationMapping,
        activity: Activity,
    ) -> DialogTurnResult:
        response = await self._forward(stack, mapping, activity)
        if activity.type == ActivityType.INVOKE.value:
            stack.turn.invoke_response = response.invoke_response

        sso = bool(stack.active_frame.local_state.get("sso"))
        result = await self._relay(stack, mapping, response, intercept_signin=sso)
        return result if result is not None else end_of_turn()

    async def _forward(
        self,
        stack: DialogStack,
        mapping: SkillConversationMapping,
        activity: Activity,
    ) -> SkillResponse:
        try:
            async with asyncio.timeout(self._timeout):
                with SKILL_FORWARD_LATENCY.labels(skill_id=self.skill.skill_id).time():
                    response = await self._client.forward_activity(self.skill, mapping, activity)
        except TimeoutError as e:
            raise self._failed(stack, mapping, f"timed out after {self._timeout}s") from e
        except SkillClientError as e:
            raise self._failed(stack, mapping, e.message) from e
        except Exception as e:
            raise self._failed(stack, mapping, f"{type(e).__name__}: {e}") from e

        if not response.ok:
            raise self._failed(stack, mapping, f"skill returned status {response.status}")
        return response

    async def _relay(
        self,
        stack: DialogStack,
        mapping: SkillConversationMapping,
        response: SkillResponse,
        intercept_signin: bool,
    ) -> DialogTurnResult | None:
        """Relay the skill's replies; None means the skill is still active."""
        for reply in response.activities:
            if reply.is_end_of_conversation:
                if reply.code not in COMPLETION_CODES:
                    raise self._failed(stack, mapping, f"skill ended with code {reply.code}")
                return await self._complete(stack, mapping, reply.value, reply.code)

            card = reply.signin_card() if intercept_signin else None
            if card is not None:
                exchanged = await self._exchange_for_skill(stack, mapping, card)
                if exchanged is not None:
                    result = await self._relay(stack, mapping, exchanged, intercept_signin=False)
                    if result is not None:
                        return result
                    continue

            stack.turn.send(reply)
        return None

    async def _exchange_for_skill(
        self,
        stack: DialogStack,
        mapping: SkillConversationMapping,
        card: Attachment,
    ) -> SkillResponse | None:
        """Sign the user in to the skill with the root's token.

        Returns the skill's response to the exchange invoke, or None when
        the card must be shown to the user instead.
        """
        resource_data = card.content.get("token_exchange_resource")
        if not resource_data:
            return None
        resource = TokenExchangeResource.model_validate(resource_data)

        turn = stack.turn
        try:
            token = await turn.token_client.exchange_token(
                turn.user_id,
                self._connection_name,
                turn.channel_id,
                TokenExchangeRequest(uri=resource.uri),
            )
        except IdentityProviderUnavailable as e:
            TOKEN_EXCHANGES.labels(outcome="unavailable").inc()
            logger.warning("sso_exchange_unavailable", operation=e.operation)
            return None

        if token is None:
            TOKEN_EXCHANGES.labels(outcome="no_token").inc()
            return None

        invoke = turn.activity.model_copy(
            update={
                "type": ActivityType.INVOKE.value,
                "name": TOKEN_EXCHANGE_INVOKE,
                "text": None,
                "value": {
                    "id": resource.id,
                    "connection_name": card.content.get("connection_name"),
                    "token": token.token,
                },
            }
        ).with_conversation(mapping.skill_conversation_id)
        response = await self._forward(stack, mapping, invoke)

        invoke_response = response.invoke_response
        if invoke_response is None or not 200 <= invoke_response.status < 300:
            TOKEN_EXCHANGES.labels(outcome="rejected").inc()
            logger.info(
                "sso_exchange_rejected",
                skill_id=self.skill.skill_id,
                status=invoke_response.status if invoke_response else None,
            )
            return None

        TOKEN_EXCHANGES.labels(outcome="succeeded").inc()
        logger.info("sso_exchange_succeeded", skill_id=self.skill.skill_id)
        return response

    async def _complete(
        self,
        stack: DialogStack,
        mapping: SkillConversationMapping,
        value: Any,
        code: str | None,
    ) -> DialogTurnResult:
        self._clear(stack, mapping)
        SKILL_DELEGATIONS.labels(skill_id=self.skill.skill_id, outcome="completed").inc()
        logger.info("skill_delegation_completed", skill_id=self.skill.skill_id, code=code)
        return await stack.end(value)

    def _failed(
        self,
        stack: DialogStack,
        mapping: SkillConversationMapping,
        reason: str,
    ) -> SkillDelegationFailed:
        marker = stack.turn.state.active_skill or ActiveSkillMarker(
            skill_id=self.skill.skill_id,
            app_id=self.skill.app_id,
            endpoint=self.skill.endpoint,
            skill_conversation_id=mapping.skill_conversation_id,
        )
        self._clear(stack, mapping)
        SKILL_DELEGATIONS.labels(skill_id=self.skill.skill_id, outcome="failed").inc()
        logger.warning(
            "skill_delegation_failed",
            skill_id=self.skill.skill_id,
            reason=reason,
        )
        return SkillDelegationFailed(marker, reason)

    def _clear(self, stack: DialogStack, mapping: SkillConversationMapping) -> None:
        stack.turn.state.active_skill = None
        self._conversation_ids.delete(mapping.skill_conversation_id)
