"""Turn lifecycle: lock, load, route, recover, commit.

One TurnProcessor serves one bot (root or skill). Every inbound activity is
processed under the conversation's mutex and ends with a single optimistic
commit of the conversation state.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from skillrelay.conversation.errors import ConflictError, StatePersistenceConflict
from skillrelay.conversation.models import (
    ActiveSkillMarker,
    Activity,
    ActivityType,
    ConversationKey,
    ConversationState,
    InvokeResponse,
    Reply,
)
from skillrelay.conversation.store import ConversationStateStore
from skillrelay.dialogs.context import TurnContext
from skillrelay.dialogs.errors import SkillDelegationFailed, UnknownDialogKind
from skillrelay.dialogs.models import DialogTurnResult, DialogTurnStatus
from skillrelay.dialogs.registry import DialogRegistry
from skillrelay.dialogs.stack import DialogStack
from skillrelay.identity.base import IdentityProviderUnavailable, TokenExchangeClient
from skillrelay.observability.logging import get_logger, turn_context
from skillrelay.observability.metrics import (
    STATE_COMMIT_CONFLICTS,
    TURN_LATENCY,
    TURNS_PROCESSED,
)
from skillrelay.runtime.mutex import ConversationBusy, ConversationMutex
from skillrelay.skills.base import (
    SkillClient,
    SkillConversationMapping,
    SkillRef,
)

logger = get_logger(__name__)

SKILL_UNREACHABLE = "Sorry, I could not reach the skill. Please try again."
SIGNIN_SERVICE_UNAVAILABLE = "The sign-in service is unavailable right now. Please try again later."
BOT_ERROR = "The bot encountered an error or bug."

ConversationUpdateHandler = Callable[[DialogStack], Awaitable[DialogTurnResult | None]]


@dataclass
class TurnResult:
    """What a processed turn hands back to the adapter."""

    replies: list[Reply] = field(default_factory=list)
    invoke_response: InvokeResponse | None = None
    status: DialogTurnStatus | None = None
    result: Any = None
    failed: bool = False

    @property
    def texts(self) -> list[str]:
        return [reply.text for reply in self.replies if reply.text]


class TurnProcessor:
    """Runs one bot's dialogs for inbound activities."""

    def __init__(
        self,
        name: str,
        registry: DialogRegistry,
        root_dialog_id: str,
        state_store: ConversationStateStore,
        token_client: TokenExchangeClient,
        mutex: ConversationMutex,
        skill_client: SkillClient | None = None,
        skill_timeout_seconds: float = 10.0,
        on_conversation_update: ConversationUpdateHandler | None = None,
        restart_events: Iterable[str] = (),
    ) -> None:
        """Initialize the processor.

        Args:
            name: Bot name used in logs and metrics
            registry: Dialog kinds this bot can run
            root_dialog_id: Dialog installed as the bottom frame
            state_store: Conversation state backend
            token_client: Identity provider client
            mutex: Per-conversation lock
            skill_client: Used to notify a skill when a turn fails mid-delegation
            skill_timeout_seconds: Limit for that notification
            on_conversation_update: Handler for conversationUpdate activities
            restart_events: Event names that discard the stored stack and start
                the root dialog over

        Raises:
            UnknownDialogKind: If ``root_dialog_id`` is not registered
        """
        registry.find(root_dialog_id)
        self.name = name
        self.registry = registry
        self.root_dialog_id = root_dialog_id
        self._state_store = state_store
        self._token_client = token_client
        self._mutex = mutex
        self._skill_client = skill_client
        self._skill_timeout = skill_timeout_seconds
        self._on_conversation_update = on_conversation_update
        self._restart_events = frozenset(restart_events)

    async def process(self, activity: Activity) -> TurnResult:
        """Process one inbound activity to completion.

        Raises:
            ConversationBusy: If the conversation lock is not acquired in time
            StatePersistenceConflict: If the final commit collides twice
            UnknownDialogKind: If the dialog graph is misconfigured
        """
        key = ConversationKey(
            channel_id=activity.channel_id,
            conversation_id=activity.conversation_id,
        )
        with turn_context(self.name, key.as_str(), activity.type, activity.from_id):
            with TURN_LATENCY.labels(bot=self.name).time():
                async with self._mutex.acquire(key.as_str()) as acquired:
                    if not acquired:
                        TURNS_PROCESSED.labels(
                            bot=self.name, activity_type=activity.type, status="busy"
                        ).inc()
                        logger.warning("conversation_busy")
                        raise ConversationBusy(key.as_str())
                    return await self._process_locked(activity, key)

    async def _process_locked(self, activity: Activity, key: ConversationKey) -> TurnResult:
        state = await self._state_store.get(key)
        expected_version = state.version if state is not None else 0
        if state is None:
            state = ConversationState.fresh(key, self.root_dialog_id)
        elif not state.stack_frames:
            state.reset_stack(self.root_dialog_id)
        elif activity.type == ActivityType.EVENT.value and activity.name in self._restart_events:
            logger.info(
                "conversation_restarted",
                event_name=activity.name,
                depth=len(state.stack_frames),
            )
            state.reset_stack(self.root_dialog_id)

        turn = TurnContext(activity=activity, state=state, token_client=self._token_client)
        stack = DialogStack(self.registry, turn)
        logger.info("turn_started", depth=len(stack))

        failed = False
        outcome: DialogTurnResult | None = None
        try:
            outcome = await self._route(stack)
        except UnknownDialogKind:
            raise
        except Exception as e:
            failed = True
            await self._handle_error(turn, e)

        if not state.stack_frames:
            state.reset_stack(self.root_dialog_id)
        if activity.type == ActivityType.INVOKE.value and turn.invoke_response is None:
            turn.invoke_response = InvokeResponse(status=501)

        version = await self._commit(state, expected_version)

        status = outcome.status if outcome is not None else None
        TURNS_PROCESSED.labels(
            bot=self.name,
            activity_type=activity.type,
            status="failed" if failed else (status.value if status else "noop"),
        ).inc()
        logger.info(
            "turn_completed",
            status=status.value if status else None,
            failed=failed,
            replies=len(turn.replies),
            version=version,
            active_skill=state.active_skill.skill_id if state.active_skill else None,
        )
        return TurnResult(
            replies=turn.replies,
            invoke_response=turn.invoke_response,
            status=status,
            result=outcome.result if outcome is not None else None,
            failed=failed,
        )

    async def _route(self, stack: DialogStack) -> DialogTurnResult | None:
        activity_type = stack.activity.type
        if activity_type in (
            ActivityType.MESSAGE.value,
            ActivityType.EVENT.value,
            ActivityType.INVOKE.value,
        ):
            return await stack.resume()
        if activity_type == ActivityType.END_OF_CONVERSATION.value:
            return await stack.cancel_all()
        if activity_type == ActivityType.CONVERSATION_UPDATE.value:
            if self._on_conversation_update is None:
                return None
            return await self._on_conversation_update(stack)

        logger.debug("activity_ignored")
        return None

    async def _handle_error(self, turn: TurnContext, error: Exception) -> None:
        """Recover the conversation after a failed turn.

        The user gets a plain-text apology, any in-flight skill is told the
        conversation ended, the marker is cleared and the stack restarts
        from a fresh root frame.
        """
        state = turn.state
        if isinstance(error, SkillDelegationFailed):
            marker = error.marker
            message = SKILL_UNREACHABLE
            logger.warning("turn_skill_delegation_failed", skill_id=marker.skill_id, reason=error.reason)
        elif isinstance(error, IdentityProviderUnavailable):
            marker = state.active_skill
            message = SIGNIN_SERVICE_UNAVAILABLE
            logger.warning("turn_identity_provider_unavailable", operation=error.operation)
        else:
            marker = state.active_skill
            message = BOT_ERROR
            logger.exception("turn_failed", error_type=type(error).__name__)

        if marker is not None:
            await self._end_skill_conversation(turn, marker)

        state.active_skill = None
        state.reset_stack(self.root_dialog_id)
        turn.send(message)
        if turn.activity.type == ActivityType.INVOKE.value:
            turn.invoke_response = InvokeResponse(status=500)

    async def _end_skill_conversation(self, turn: TurnContext, marker: ActiveSkillMarker) -> None:
        if self._skill_client is None:
            return

        activity = turn.activity
        skill = SkillRef(skill_id=marker.skill_id, app_id=marker.app_id, endpoint=marker.endpoint)
        mapping = SkillConversationMapping(
            skill_conversation_id=marker.skill_conversation_id,
            skill_id=marker.skill_id,
            channel_id=activity.channel_id,
            conversation_id=activity.conversation_id,
            user_id=activity.from_id,
        )
        end = activity.model_copy(
            update={
                "type": ActivityType.END_OF_CONVERSATION.value,
                "code": "rootSkillError",
                "name": None,
                "text": None,
                "value": None,
            }
        ).with_conversation(marker.skill_conversation_id)

        try:
            async with asyncio.timeout(self._skill_timeout):
                await self._skill_client.forward_activity(skill, mapping, end)
        except Exception as e:
            logger.warning(
                "skill_end_notification_failed",
                skill_id=marker.skill_id,
                error=str(e) or type(e).__name__,
            )

    async def _commit(self, state: ConversationState, expected_version: int) -> int:
        """Save state, retrying once against the version now stored.

        Raises:
            StatePersistenceConflict: If the retry collides as well
        """
        try:
            return await self._state_store.save(state, expected_version)
        except ConflictError as first:
            current = await self._state_store.current_version(state.key)
            STATE_COMMIT_CONFLICTS.labels(bot=self.name, resolution="retried").inc()
            logger.warning(
                "state_commit_conflict",
                expected_version=expected_version,
                actual_version=first.actual_version,
                retry_version=current,
            )

        try:
            return await self._state_store.save(state, current)
        except ConflictError as second:
            STATE_COMMIT_CONFLICTS.labels(bot=self.name, resolution="failed").inc()
            logger.error("state_commit_failed", expected_version=current)
            raise StatePersistenceConflict(
                f"Conversation '{state.key.as_str()}' was modified concurrently",
                expected_version=current,
                actual_version=second.actual_version,
                cause=second,
            ) from second
