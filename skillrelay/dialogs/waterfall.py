"""Waterfall dialogs: an ordered list of steps run one per resumption."""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from pydantic import BaseModel

from skillrelay.conversation.models import Activity, ConversationState, DialogStackFrame, Reply
from skillrelay.dialogs.context import TurnContext
from skillrelay.dialogs.errors import DialogError
from skillrelay.dialogs.models import DialogTurnResult, end_of_turn
from skillrelay.dialogs.stack import DialogStack
from skillrelay.observability.logging import get_logger

logger = get_logger(__name__)

WaterfallStep = Callable[["WaterfallStepContext"], Awaitable[DialogTurnResult]]


def _to_jsonable(options: Any) -> Any:
    if isinstance(options, BaseModel):
        return options.model_dump(mode="json")
    return options


class WaterfallStepContext:
    """What a running step sees and the ways it can leave.

    A step returns one of ``next``, ``prompt``/``begin_dialog``,
    ``replace_dialog``, ``end_dialog`` or ``end_of_turn``.
    """

    def __init__(
        self,
        dialog: "WaterfallDialog",
        stack: DialogStack,
        frame: DialogStackFrame,
        index: int,
        result: Any,
    ) -> None:
        self._dialog = dialog
        self._stack = stack
        self._frame = frame
        self._index = index
        self._result = result
        self._next_called = False

    @property
    def index(self) -> int:
        return self._index

    @property
    def result(self) -> Any:
        """The previous step's or child's result, or the options on step 0."""
        return self._result

    @property
    def options(self) -> Any:
        return self._frame.local_state.get("options")

    @property
    def values(self) -> dict[str, Any]:
        """Per-instance values persisted with the frame."""
        return self._frame.local_state.setdefault("values", {})

    @property
    def turn(self) -> TurnContext:
        return self._stack.turn

    @property
    def activity(self) -> Activity:
        return self._stack.activity

    @property
    def state(self) -> ConversationState:
        return self._stack.turn.state

    @property
    def user_id(self) -> str:
        return self._stack.turn.user_id

    @property
    def channel_id(self) -> str:
        return self._stack.turn.channel_id

    def send(self, reply: Reply | str) -> None:
        self._stack.turn.send(reply)

    async def next(self, result: Any = None) -> DialogTurnResult:
        if self._next_called:
            raise DialogError(
                f"next() called twice in step {self._index} of '{self._dialog.id}'"
            )
        self._next_called = True
        return await self._dialog.resume(self._stack, result)

    async def begin_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        return await self._stack.push(dialog_id, options)

    async def prompt(self, dialog_id: str, options: Any) -> DialogTurnResult:
        return await self._stack.push(dialog_id, options)

    async def replace_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        return await self._stack.replace(dialog_id, options)

    async def end_dialog(self, result: Any = None) -> DialogTurnResult:
        return await self._stack.end(result)

    def end_of_turn(self) -> DialogTurnResult:
        return end_of_turn()


class WaterfallDialog:
    """Dialog kind made of sequential steps.

    The frame's ``step_index`` is the cursor. A step that waits for a
    child or for the user leaves the cursor where it is; the next
    resumption runs the following step with the child's result or the
    inbound text.
    """

    def __init__(self, dialog_id: str, steps: Sequence[WaterfallStep] = ()) -> None:
        self.id = dialog_id
        self._steps: list[WaterfallStep] = list(steps)

    def add_step(self, step: WaterfallStep) -> "WaterfallDialog":
        self._steps.append(step)
        return self

    @property
    def step_count(self) -> int:
        return len(self._steps)

    async def begin(self, stack: DialogStack, options: Any = None) -> DialogTurnResult:
        frame = stack.active_frame
        frame.local_state = {"options": _to_jsonable(options), "values": {}}
        return await self._run_step(stack, 0, options)

    async def continue_(self, stack: DialogStack) -> DialogTurnResult:
        activity = stack.activity
        if not activity.is_message:
            return end_of_turn()
        return await self.resume(stack, activity.text)

    async def resume(self, stack: DialogStack, result: Any) -> DialogTurnResult:
        return await self._run_step(stack, stack.active_frame.step_index + 1, result)

    async def cancel(self, stack: DialogStack) -> None:
        return None

    async def _run_step(self, stack: DialogStack, index: int, result: Any) -> DialogTurnResult:
        if index >= len(self._steps):
            return await stack.end(result)

        frame = stack.active_frame
        frame.step_index = index
        logger.debug("waterfall_step", dialog_id=self.id, step=index)
        step_context = WaterfallStepContext(self, stack, frame, index, result)
        return await self._steps[index](step_context)
