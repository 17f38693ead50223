"""Dialog engine: stack, waterfalls, prompts and skill delegation."""

from skillrelay.dialogs.choice import (
    Choice,
    ChoicePrompt,
    FoundChoice,
    PromptOptions,
    recognize_choice,
)
from skillrelay.dialogs.context import TurnContext
from skillrelay.dialogs.errors import (
    DialogError,
    IdentityProviderUnavailable,
    InvalidChoice,
    SkillDelegationFailed,
    UnknownDialogKind,
)
from skillrelay.dialogs.models import DialogTurnResult, DialogTurnStatus, end_of_turn
from skillrelay.dialogs.registry import Dialog, DialogRegistry
from skillrelay.dialogs.signin import SignInDialog
from skillrelay.dialogs.stack import DialogStack
from skillrelay.dialogs.waterfall import WaterfallDialog, WaterfallStepContext

__all__ = [
    "Choice",
    "ChoicePrompt",
    "Dialog",
    "DialogError",
    "DialogRegistry",
    "DialogStack",
    "DialogTurnResult",
    "DialogTurnStatus",
    "FoundChoice",
    "IdentityProviderUnavailable",
    "InvalidChoice",
    "PromptOptions",
    "SignInDialog",
    "SkillDelegationFailed",
    "TurnContext",
    "UnknownDialogKind",
    "WaterfallDialog",
    "WaterfallStepContext",
    "end_of_turn",
    "recognize_choice",
]
