"""Choice prompt: validates inbound text against the offered choice set."""

from typing import Any

from pydantic import BaseModel, Field

from skillrelay.conversation.models import CardAction, Reply
from skillrelay.dialogs.errors import InvalidChoice
from skillrelay.dialogs.models import DialogTurnResult, end_of_turn
from skillrelay.dialogs.stack import DialogStack
from skillrelay.observability.logging import get_logger
from skillrelay.observability.metrics import CHOICE_REPROMPTS

logger = get_logger(__name__)


class Choice(BaseModel):
    """One offered option. ``value`` is what the user must send back."""

    value: str = Field(..., description="Canonical value matched against input")
    title: str | None = Field(default=None, description="Display label")

    @property
    def label(self) -> str:
        return self.title or self.value


class FoundChoice(BaseModel):
    """The choice the user selected."""

    value: str
    index: int = Field(..., ge=0)


class PromptOptions(BaseModel):
    """What a choice prompt offers for the current step."""

    prompt: str
    retry_prompt: str | None = None
    choices: list[Choice] = Field(default_factory=list)


def _normalize(text: str | None) -> str:
    return (text or "").strip().casefold()


def recognize_choice(text: str | None, choices: list[Choice]) -> FoundChoice:
    """Match ``text`` case-insensitively and exactly against choice values.

    Raises:
        InvalidChoice: If nothing matches
    """
    normalized = _normalize(text)
    if normalized:
        for index, choice in enumerate(choices):
            if _normalize(choice.value) == normalized:
                return FoundChoice(value=choice.value, index=index)
    raise InvalidChoice(text, [choice.value for choice in choices])


def choice_reply(text: str, choices: list[Choice]) -> Reply:
    return Reply.message(
        text,
        suggested_actions=[CardAction(title=c.label, value=c.value) for c in choices],
    )


class ChoicePrompt:
    """Dialog kind that offers choices and waits for a valid selection.

    The choice set is stored in the frame when offered, so it reflects the
    state the offering step saw.
    """

    def __init__(self, dialog_id: str) -> None:
        self.id = dialog_id

    async def begin(self, stack: DialogStack, options: Any = None) -> DialogTurnResult:
        prompt_options = PromptOptions.model_validate(options)
        stack.active_frame.local_state = {"options": prompt_options.model_dump(mode="json")}
        stack.turn.send(choice_reply(prompt_options.prompt, prompt_options.choices))
        return end_of_turn()

    async def continue_(self, stack: DialogStack) -> DialogTurnResult:
        activity = stack.activity
        if not activity.is_message:
            return end_of_turn()

        prompt_options = self._options(stack)
        try:
            found = recognize_choice(activity.text, prompt_options.choices)
        except InvalidChoice as exc:
            CHOICE_REPROMPTS.labels(dialog_id=self.id).inc()
            logger.info("choice_not_recognized", dialog_id=self.id, offered=exc.offered)
            stack.turn.send(
                choice_reply(
                    prompt_options.retry_prompt or prompt_options.prompt,
                    prompt_options.choices,
                )
            )
            return end_of_turn()

        return await stack.end(found)

    async def resume(self, stack: DialogStack, result: Any) -> DialogTurnResult:
        prompt_options = self._options(stack)
        stack.turn.send(choice_reply(prompt_options.prompt, prompt_options.choices))
        return end_of_turn()

    async def cancel(self, stack: DialogStack) -> None:
        return None

    def _options(self, stack: DialogStack) -> PromptOptions:
        return PromptOptions.model_validate(stack.active_frame.local_state["options"])
