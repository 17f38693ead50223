"""Skill bot dialog graph.

Same loop as the root's, against the skill's own connection, plus an
``End`` choice that completes the root dialog and so ends the delegation.
"""

from skillrelay.dialogs.choice import Choice, ChoicePrompt, FoundChoice, PromptOptions
from skillrelay.dialogs.models import DialogTurnResult
from skillrelay.dialogs.registry import DialogRegistry
from skillrelay.dialogs.signin import SignInDialog
from skillrelay.dialogs.waterfall import WaterfallDialog, WaterfallStepContext
from skillrelay.identity.base import IdentityProviderUnavailable
from skillrelay.observability.logging import get_logger

logger = get_logger(__name__)

SKILL_FLOW = "SkillFlow"
SKILL_ACTION_PROMPT = "SkillActionStepPrompt"
SKILL_SIGNIN_DIALOG = "SsoSkillSignInDialog"

SKILL_PROMPT_TEXT = "What SSO action would you like to perform on the skill?"
RETRY_PROMPT_TEXT = "That was not a valid choice, please select a valid choice."
UNAVAILABLE_PROMPT_TEXT = "The sign-in service is unavailable right now."

LOGIN = "Login to the skill"
LOGOUT = "Logout from the skill"
SHOW_TOKEN = "Show token"
END = "End"


class SkillFlow:
    """Skill bot: sign in, sign out, show the token or end."""

    def __init__(self, connection_name: str, token_exchange_uri: str | None = None) -> None:
        if not connection_name:
            raise ValueError("connection_name is required for the skill bot")
        self.connection_name = connection_name
        self.dialog = WaterfallDialog(
            SKILL_FLOW,
            [self.prompt_action, self.handle_action, self.final],
        )
        self.dialogs = [
            self.dialog,
            ChoicePrompt(SKILL_ACTION_PROMPT),
            SignInDialog(SKILL_SIGNIN_DIALOG, connection_name, token_exchange_uri),
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
            logger.warning("skill_flow_token_lookup_failed", operation=e.operation)
            return await step.prompt(
                SKILL_ACTION_PROMPT,
                PromptOptions(
                    prompt=UNAVAILABLE_PROMPT_TEXT,
                    retry_prompt=RETRY_PROMPT_TEXT,
                    choices=[Choice(value="Retry"), Choice(value=END)],
                ),
            )

        values = [LOGIN] if token is None else [LOGOUT, SHOW_TOKEN]
        values.append(END)
        return await step.prompt(
            SKILL_ACTION_PROMPT,
            PromptOptions(
                prompt=SKILL_PROMPT_TEXT,
                retry_prompt=RETRY_PROMPT_TEXT,
                choices=[Choice(value=value) for value in values],
            ),
        )

    async def handle_action(self, step: WaterfallStepContext) -> DialogTurnResult:
        selected: FoundChoice = step.result
        action = selected.value.casefold()
        logger.info("skill_flow_action_selected", action=action)

        if action == LOGIN.casefold():
            return await step.begin_dialog(SKILL_SIGNIN_DIALOG)

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
                step.send(f"Here is your current SSO token for the skill: {token.token}")
            return await step.next()

        if action == END.casefold():
            return await step.end_dialog()

        if action == "retry":
            return await step.next()

        raise ValueError(f"Unrecognized action: {selected.value}")

    async def final(self, step: WaterfallStepContext) -> DialogTurnResult:
        step.values.clear()
        return await step.replace_dialog(SKILL_FLOW)
