"""Dialog error taxonomy.

UnknownDialogKind is a programming error and is never caught by the
runtime. The others are recoverable at the step or conversation level.
"""

from skillrelay.conversation.models import ActiveSkillMarker
from skillrelay.identity.base import IdentityProviderUnavailable


class DialogError(Exception):
    """Base exception for dialog engine errors."""

    pass


class UnknownDialogKind(DialogError):
    """A dialog id was pushed or resumed that the registry does not know."""

    def __init__(self, dialog_id: str) -> None:
        super().__init__(f"Dialog '{dialog_id}' is not registered")
        self.dialog_id = dialog_id


class InvalidChoice(DialogError):
    """Inbound text matched none of the offered choices."""

    def __init__(self, text: str | None, offered: list[str]) -> None:
        super().__init__(f"'{text}' is not one of {offered}")
        self.text = text
        self.offered = offered


class SkillDelegationFailed(DialogError):
    """A delegated turn could not be completed by the remote skill.

    Raised only after the active-skill marker has been cleared; ``marker``
    records which skill was in flight.
    """

    def __init__(
        self,
        marker: ActiveSkillMarker,
        reason: str,
    ) -> None:
        super().__init__(f"Delegation to skill '{marker.skill_id}' failed: {reason}")
        self.marker = marker
        self.reason = reason


__all__ = [
    "DialogError",
    "IdentityProviderUnavailable",
    "InvalidChoice",
    "SkillDelegationFailed",
    "UnknownDialogKind",
]
