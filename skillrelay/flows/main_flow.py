"""Root bot dialog graph.

A three-step loop: offer SSO actions built from the live sign-in state,
handle the selected action, then replace itself to offer the actions again.
"""

from skillrelay.dialogs.choice import Choice, ChoicePrompt, FoundChoice, PromptOptions
from skillrelay.dialogs.delegation import BeginSkillOptions, SkillDelegationOrchestrator
from skillrelay.dialogs.models import DialogTurnResult
from skillrelay.dialogs.registry import DialogRegistry
from skillrelay.dialogs.signin import SignInDialog
from skillrelay.dialogs.waterfall import WaterfallDialog, WaterfallStepContext
from skillrelay.identity.base import IdentityProviderUnavailable
from skillrelay.observability.logging import get_logger
from skillrelay.skills.base import SkillClient, SkillRef
from skillrelay.skills.conversation_ids import SkillConversationIdFactory

logger = get_logger(__name__)

MAIN_FLOW = "MainFlow"
ACTION_PROMPT = "ActionStepPrompt"
SIGNIN_DIALOG = "SsoSignInDialog"
SKILL_DIALOG = "SkillDialog"

ACTION_PROMPT_TEXT = "What SSO action do you want to perform?"
RETRY_PROMPT_TEXT = "That was not a valid choice, please select a valid choice."
UNAVAILABLE_PROMPT_TEXT = "The sign-in service is unavailable right now."

LOGIN = "Login to the root bot"
LOGOUT = "Logout from the root bot"
SHOW_TOKEN = "Show token"
CALL_SKILL_SSO = "Call Skill (with SSO)"
CALL_SKILL = "Call Skill (without SSO)"
RETRY = "Retry"


class MainFlow:
    """Root bot: sign in, sign out, show the token or call the skill."""

    def __init__(
        self,
        connection_name: str,
        skill: SkillRef,
        skill_client: SkillClient,
        conversation_ids: SkillConversationIdFactory | None = None,
        skill_timeout_seconds: float = 10.0,
    ) -> None:
        if not connection_name:
            raise ValueError("connection_name is required for the root bot")
        self.connection_name = connection_name
        self.dialog = WaterfallDialog(
            MAIN_FLOW,
            [self.prompt_action, self.handle_action, self.final],
        )
        self.dialogs = [
            self.dialog,
            ChoicePrompt(ACTION_PROMPT),
            SignInDialog(SIGNIN_DIALOG, connection_name),
            SkillDelegationOrchestrator(
                SKILL_DIALOG,
                skill=skill,
                skill_client=skill_client,
                conversation_ids=conversation_ids or SkillConversationIdFactory(),
                connection_name=connection_name,
                timeout_seconds=skill_timeout_seconds,
            ),
        ]

    def register(self, registry: DialogRegistry | None = None) -> DialogRegistry:
        registry = registry or DialogRegistry()
        for dialog in self.dialogs:
            registry.add(dialog)
        return registry

    async def prompt_action(self, step: WaterfallStepContext) -> DialogTurnResult:
        try:
            token = await step.turn.token_client.get_user_token(
                step.user_id, self.connection_name, step.channel_id
            )
        except IdentityProviderUnavailable as e:
            logger.warning("main_flow_token_lookup_failed", operation=e.operation)
            return await step.prompt(
                ACTION_PROMPT,
                PromptOptions(
                    prompt=UNAVAILABLE_PROMPT_TEXT,
                    retry_prompt=RETRY_PROMPT_TEXT,
                    choices=[Choice(value=RETRY)],
                ),
            )

        if token is None:
            values = [LOGIN, CALL_SKILL]
        else:
            values = [LOGOUT, SHOW_TOKEN, CALL_SKILL_SSO]

        return await step.prompt(
            ACTION_PROMPT,
            PromptOptions(
                prompt=ACTION_PROMPT_TEXT,
                retry_prompt=RETRY_PROMPT_TEXT,
                choices=[Choice(value=value) for value in values],
            ),
        )

    async def handle_action(self, step: WaterfallStepContext) -> DialogTurnResult:
        selected: FoundChoice = step.result
        action = selected.value.casefold()
        logger.info("main_flow_action_selected", action=action)

        if action == LOGIN.casefold():
            return await step.begin_dialog(SIGNIN_DIALOG)

        if action == LOGOUT.casefold():
            try:
                await step.turn.token_client.sign_out_user(
                    step.user_id, self.connection_name, step.channel_id
                )
            except IdentityProviderUnavailable:
                step.send(UNAVAILABLE_PROMPT_TEXT)
                return await step.next()
            step.send("You have been signed out.")
            return await step.next()

        if action == SHOW_TOKEN.casefold():
            try:
                token = await step.turn.token_client.get_user_token(
                    step.user_id, self.connection_name, step.channel_id
                )
            except IdentityProviderUnavailable:
                step.send(UNAVAILABLE_PROMPT_TEXT)
                return await step.next()
            if token is None:
                step.send("User has no cached token.")
            else:
                step.send(f"Here is your current SSO token: {token.token}")
            return await step.next()

        if action in (CALL_SKILL_SSO.casefold(), CALL_SKILL.casefold()):
            return await step.begin_dialog(
                SKILL_DIALOG,
                BeginSkillOptions(sso=action == CALL_SKILL_SSO.casefold()),
            )

        if action == RETRY.casefold():
            return await step.next()

        raise ValueError(f"Unrecognized action: {selected.value}")

    async def final(self, step: WaterfallStepContext) -> DialogTurnResult:
        step.state.active_skill = None
        step.values.clear()
        return await step.replace_dialog(MAIN_FLOW)
