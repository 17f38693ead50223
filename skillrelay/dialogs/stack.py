"""Dialog stack: ownership and execution of nested dialog instances.

The stack lives in ``ConversationState.stack_frames``. Nothing here keeps
state between turns, so a conversation survives a process restart as long
as its state record does.
"""

from typing import Any

from skillrelay.conversation.models import Activity, DialogStackFrame
from skillrelay.dialogs.context import TurnContext
from skillrelay.dialogs.models import DialogTurnResult, DialogTurnStatus
from skillrelay.dialogs.registry import Dialog, DialogRegistry
from skillrelay.observability.logging import get_logger

logger = get_logger(__name__)


class DialogStack:
    """Executes the dialog frames of one conversation for one turn."""

    def __init__(self, registry: DialogRegistry, turn: TurnContext) -> None:
        self._registry = registry
        self._turn = turn

    @property
    def turn(self) -> TurnContext:
        return self._turn

    @property
    def activity(self) -> Activity:
        return self._turn.activity

    @property
    def frames(self) -> list[DialogStackFrame]:
        return self._turn.state.stack_frames

    @property
    def active_frame(self) -> DialogStackFrame | None:
        return self.frames[-1] if self.frames else None

    def __len__(self) -> int:
        return len(self.frames)

    def _dialog_for(self, frame: DialogStackFrame) -> Dialog:
        return self._registry.find(frame.dialog_id)

    async def push(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        """Create a frame above the active one and begin it.

        The new frame's ``instance_id`` identifies the instance.

        Raises:
            UnknownDialogKind: If ``dialog_id`` is not registered
        """
        dialog = self._registry.find(dialog_id)
        frame = DialogStackFrame(dialog_id=dialog_id, step_index=0)
        self.frames.append(frame)
        logger.debug(
            "dialog_pushed",
            dialog_id=dialog_id,
            instance_id=frame.instance_id,
            depth=len(self.frames),
        )
        return await dialog.begin(self, options)

    async def resume(self) -> DialogTurnResult:
        """Deliver the inbound activity to the active frame.

        A frame that has not been begun yet (a fresh root) is begun instead.
        Completion bubbles up through ``end`` until some frame is waiting or
        the stack is empty.
        """
        frame = self.active_frame
        if frame is None:
            return DialogTurnResult(DialogTurnStatus.COMPLETE)

        dialog = self._dialog_for(frame)
        if not frame.begun:
            frame.step_index = 0
            options = frame.local_state.pop("options", None)
            return await dialog.begin(self, options)
        return await dialog.continue_(self)

    async def end(self, result: Any = None) -> DialogTurnResult:
        """Pop the active frame and resume its parent with ``result``."""
        if self.frames:
            frame = self.frames.pop()
            logger.debug(
                "dialog_ended",
                dialog_id=frame.dialog_id,
                instance_id=frame.instance_id,
                depth=len(self.frames),
            )

        parent = self.active_frame
        if parent is None:
            return DialogTurnResult(DialogTurnStatus.COMPLETE, result)
        return await self._dialog_for(parent).resume(self, result)

    async def replace(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        """Swap the active frame for a new instance of ``dialog_id``.

        The replaced frame's parent is not resumed, so a dialog that
        replaces itself loops without growing the stack.
        """
        self._registry.find(dialog_id)
        if self.frames:
            self.frames.pop()
        return await self.push(dialog_id, options)

    async def cancel_all(self) -> DialogTurnResult:
        """Cancel every frame from the top down and clear the stack."""
        cancelled = 0
        while self.frames:
            frame = self.frames[-1]
            dialog = self._registry.get(frame.dialog_id)
            if dialog is not None:
                await dialog.cancel(self)
            self.frames.pop()
            cancelled += 1

        if cancelled:
            logger.info("dialogs_cancelled", count=cancelled)
        return DialogTurnResult(DialogTurnStatus.CANCELLED)
