"""Dialog kinds and the registry that resolves them by id."""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from skillrelay.dialogs.errors import UnknownDialogKind
from skillrelay.dialogs.models import DialogTurnResult

if TYPE_CHECKING:
    from skillrelay.dialogs.stack import DialogStack


@runtime_checkable
class Dialog(Protocol):
    """Capability every dialog kind implements.

    A dialog keeps no per-conversation state on itself; everything it needs
    across turns lives in its stack frame (``stack.active_frame``).
    """

    id: str

    async def begin(self, stack: "DialogStack", options: Any = None) -> DialogTurnResult:
        """Start a new instance whose frame was just pushed."""
        ...

    async def continue_(self, stack: "DialogStack") -> DialogTurnResult:
        """Deliver the inbound activity to the active instance."""
        ...

    async def resume(self, stack: "DialogStack", result: Any) -> DialogTurnResult:
        """A child of this instance ended with ``result``."""
        ...

    async def cancel(self, stack: "DialogStack") -> None:
        """The instance is being removed without completing."""
        ...


class DialogRegistry:
    """Mapping from stable dialog id to dialog kind."""

    def __init__(self, dialogs: Iterable[Dialog] = ()) -> None:
        self._dialogs: dict[str, Dialog] = {}
        for dialog in dialogs:
            self.add(dialog)

    def add(self, dialog: Dialog) -> "DialogRegistry":
        if dialog.id in self._dialogs:
            raise ValueError(f"Dialog '{dialog.id}' is already registered")
        self._dialogs[dialog.id] = dialog
        return self

    def find(self, dialog_id: str) -> Dialog:
        try:
            return self._dialogs[dialog_id]
        except KeyError:
            raise UnknownDialogKind(dialog_id) from None

    def get(self, dialog_id: str) -> Dialog | None:
        return self._dialogs.get(dialog_id)

    def __contains__(self, dialog_id: object) -> bool:
        return dialog_id in self._dialogs

    def __iter__(self):
        return iter(self._dialogs.values())
