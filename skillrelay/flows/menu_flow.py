"""Welcome menu bot.

Text routing over a fixed menu: a main menu, three sub-menus and leaf
actions that answer with a named card. After every answer the flow replaces
itself and waits for the next message, so the conversation returns to the
top of the menu rather than to the sub-menu it came from.
"""

from skillrelay.conversation.models import (
    ADAPTIVE_CARD_CONTENT_TYPE,
    Attachment,
    CardAction,
    Reply,
)
from skillrelay.dialogs.choice import Choice, ChoicePrompt, FoundChoice, PromptOptions
from skillrelay.dialogs.models import DialogTurnResult
from skillrelay.dialogs.registry import DialogRegistry
from skillrelay.dialogs.stack import DialogStack
from skillrelay.dialogs.waterfall import WaterfallDialog, WaterfallStepContext
from skillrelay.observability.logging import get_logger

logger = get_logger(__name__)

MENU_FLOW = "MenuFlow"
MENU_PROMPT = "MenuPrompt"

WELCOME_MESSAGE = (
    "This is a simple Welcome Bot sample. This bot will introduce you "
    "to welcoming and greeting users. You can say 'intro' to see the "
    "introduction card. If you are running this bot in the Bot Framework "
    "Emulator, press the 'Start Over' button to simulate user joining "
    "a bot or a channel"
)
SUBMENU_PROMPT = "How can I help you? We have options listed for you!"
RETRY_PROMPT = "Please select one of the options listed."

MAIN_MENU = ["Expenses", "Timesheet", "Preference", "Contact Support"]

SUBMENUS: dict[str, list[str]] = {
    "expenses": ["Create Expense", "Edit Expense", "Contact Support"],
    "timesheet": ["Add/Edit Time", "Submit Timesheet", "Report Incident", "Contact Support"],
    "preference": [
        "Work Preference",
        "Specialties",
        "Licenses",
        "Reset Password",
        "Edit Email Address",
        "Contact Support",
    ],
}

SUBMENU_TITLES = {
    "expenses": "Expense Menu",
    "timesheet": "Timesheet Menu",
    "preference": "Preference Menu",
}

# leaf -> (card template, owning sub-menu)
LEAF_CARDS: dict[str, tuple[str, str | None]] = {
    "create expense": ("Cards/createExpense.json", "expenses"),
    "edit expense": ("Cards/editExpense.json", "expenses"),
    "contact support": ("Cards/contactSupport.json", None),
    "add/edit time": ("Cards/Timesheet/addEditTimesheet.json", "timesheet"),
    "submit timesheet": ("Cards/Timesheet/submitTimesheet.json", "timesheet"),
    "report incident": ("Cards/Timesheet/reportIncident.json", "timesheet"),
    "work preference": ("Cards/Preference/workPreference.json", "preference"),
    "specialties": ("Cards/Preference/specialties.json", "preference"),
    "licenses": ("Cards/Preference/licenses.json", "preference"),
    "reset password": ("Cards/Preference/resetPassword.json", "preference"),
    "edit email address": ("Cards/Preference/editEmail.json", "preference"),
}


def _choices(values: list[str]) -> list[Choice]:
    return [Choice(value=value) for value in values]


def card_reply(leaf: str) -> list[Reply]:
    """The card for a leaf action followed by its navigation actions."""
    template, submenu = LEAF_CARDS[leaf]
    actions = [CardAction(title="Main Menu", value="intro")]
    if submenu is not None:
        actions.append(CardAction(title=SUBMENU_TITLES[submenu], value=submenu))
    return [
        Reply.message(
            attachments=[
                Attachment(
                    content_type=ADAPTIVE_CARD_CONTENT_TYPE,
                    name=template,
                    content={"template": template},
                )
            ]
        ),
        Reply.message(suggested_actions=actions),
    ]


class MenuFlow:
    """Welcome bot menu as a looping waterfall."""

    def __init__(self) -> None:
        self.dialog = WaterfallDialog(
            MENU_FLOW,
            [
                self.wait_for_text,
                self.route_text,
                self.show_submenu,
                self.show_card,
                self.restart,
            ],
        )
        self.dialogs = [self.dialog, ChoicePrompt(MENU_PROMPT)]

    def register(self, registry: DialogRegistry | None = None) -> DialogRegistry:
        registry = registry or DialogRegistry()
        for dialog in self.dialogs:
            registry.add(dialog)
        return registry

    async def on_conversation_update(self, stack: DialogStack) -> DialogTurnResult | None:
        """Send the intro menu to each member joining other than the bot."""
        activity = stack.activity
        joined = [m for m in activity.members_added if m != activity.recipient_id]
        if not joined:
            return None
        logger.info("menu_members_added", count=len(joined))
        await stack.cancel_all()
        return await stack.push(MENU_FLOW, {"intro": True})

    async def wait_for_text(self, step: WaterfallStepContext) -> DialogTurnResult:
        options = step.options or {}
        if options.get("intro"):
            return await step.next("intro")
        if options.get("restart") or not step.activity.is_message:
            return step.end_of_turn()
        return await step.next(step.activity.text)

    async def route_text(self, step: WaterfallStepContext) -> DialogTurnResult:
        text = (step.result or "").strip()
        key = text.casefold()

        if key in ("hello", "hi"):
            step.send(f"You said {key}.")
            return await self._restart(step)

        if key in ("intro", "help"):
            name = step.activity.from_name or "there"
            return await step.prompt(
                MENU_PROMPT,
                PromptOptions(
                    prompt=(
                        f"Welcome to Atlas Solution! Hi {name}, how can I help you? "
                        "Select any option below or type your question."
                    ),
                    retry_prompt=RETRY_PROMPT,
                    choices=_choices(MAIN_MENU),
                ),
            )

        if key in SUBMENUS or key in LEAF_CARDS:
            return await step.next(text)

        step.send(WELCOME_MESSAGE)
        return await self._restart(step)

    async def show_submenu(self, step: WaterfallStepContext) -> DialogTurnResult:
        selected = _selected_text(step.result)
        key = selected.casefold()
        if key not in SUBMENUS:
            return await step.next(selected)

        step.values["submenu"] = key
        return await step.prompt(
            MENU_PROMPT,
            PromptOptions(
                prompt=SUBMENU_PROMPT,
                retry_prompt=RETRY_PROMPT,
                choices=_choices(SUBMENUS[key]),
            ),
        )

    async def show_card(self, step: WaterfallStepContext) -> DialogTurnResult:
        leaf = _selected_text(step.result).casefold()
        for reply in card_reply(leaf):
            step.send(reply)
        logger.info("menu_card_sent", leaf=leaf)
        return await step.next()

    async def restart(self, step: WaterfallStepContext) -> DialogTurnResult:
        return await self._restart(step)

    async def _restart(self, step: WaterfallStepContext) -> DialogTurnResult:
        return await step.replace_dialog(MENU_FLOW, {"restart": True})


def _selected_text(result: FoundChoice | str | None) -> str:
    if isinstance(result, FoundChoice):
        return result.value
    return (result or "").strip()
