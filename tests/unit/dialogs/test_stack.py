"""Tests for DialogRegistry and DialogStack."""

import pytest

from skillrelay.dialogs import (
    DialogRegistry,
    DialogTurnStatus,
    UnknownDialogKind,
    WaterfallDialog,
    end_of_turn,
)
from tests.factories import ActivityFactory, StateFactory, make_stack


async def _wait(step):
    return step.end_of_turn()


async def _finish(step):
    return await step.end_dialog(f"done:{step.result}")


class RecordingDialog:
    """Dialog that records lifecycle calls and waits on every turn."""

    def __init__(self, dialog_id: str, calls: list[str]) -> None:
        self.id = dialog_id
        self._calls = calls

    async def begin(self, stack, options=None):
        self._calls.append(f"begin:{self.id}:{options}")
        return end_of_turn()

    async def continue_(self, stack):
        self._calls.append(f"continue:{self.id}")
        return end_of_turn()

    async def resume(self, stack, result):
        self._calls.append(f"resume:{self.id}:{result}")
        return end_of_turn()

    async def cancel(self, stack):
        self._calls.append(f"cancel:{self.id}")


class TestDialogRegistry:
    """Tests for dialog lookup."""

    def test_duplicate_id_rejected(self):
        registry = DialogRegistry([WaterfallDialog("A")])
        with pytest.raises(ValueError):
            registry.add(WaterfallDialog("A"))

    def test_find_unknown(self):
        with pytest.raises(UnknownDialogKind) as exc_info:
            DialogRegistry().find("Missing")
        assert exc_info.value.dialog_id == "Missing"

    def test_membership(self):
        registry = DialogRegistry([WaterfallDialog("A")])
        assert "A" in registry
        assert registry.get("B") is None
        assert [d.id for d in registry] == ["A"]


class TestPush:
    """Tests for pushing dialogs."""

    @pytest.mark.asyncio
    async def test_push_begins_with_options(self):
        calls: list[str] = []
        registry = DialogRegistry([RecordingDialog("A", calls)])
        stack = make_stack(registry, ActivityFactory.message("hi"))

        result = await stack.push("A", {"x": 1})

        assert result.waiting
        assert calls == ["begin:A:{'x': 1}"]
        assert len(stack) == 1
        assert stack.active_frame.dialog_id == "A"
        assert stack.active_frame.begun

    @pytest.mark.asyncio
    async def test_push_unknown_leaves_stack_untouched(self):
        state = StateFactory.create("A")
        calls: list[str] = []
        stack = make_stack(DialogRegistry([RecordingDialog("A", calls)]), ActivityFactory.message("x"), state)

        with pytest.raises(UnknownDialogKind):
            await stack.push("Missing")
        assert [f.dialog_id for f in state.stack_frames] == ["A"]

    @pytest.mark.asyncio
    async def test_each_push_gets_new_instance(self):
        calls: list[str] = []
        stack = make_stack(
            DialogRegistry([RecordingDialog("A", calls)]), ActivityFactory.message("x")
        )
        await stack.push("A")
        await stack.push("A")
        assert stack.frames[0].instance_id != stack.frames[1].instance_id


class TestResume:
    """Tests for delivering a turn to the active frame."""

    @pytest.mark.asyncio
    async def test_empty_stack_completes(self):
        stack = make_stack(DialogRegistry(), ActivityFactory.message("hi"))
        result = await stack.resume()
        assert result.status == DialogTurnStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_unbegun_root_is_begun(self):
        calls: list[str] = []
        state = StateFactory.create("Root")
        stack = make_stack(
            DialogRegistry([RecordingDialog("Root", calls)]), ActivityFactory.message("hi"), state
        )

        await stack.resume()
        await stack.resume()

        assert calls == ["begin:Root:None", "continue:Root"]

    @pytest.mark.asyncio
    async def test_unknown_frame_raises(self):
        stack = make_stack(DialogRegistry(), ActivityFactory.message("hi"), StateFactory.create("Gone"))
        with pytest.raises(UnknownDialogKind):
            await stack.resume()


class TestEndAndReplace:
    """Tests for end, replace and cancel_all."""

    @pytest.mark.asyncio
    async def test_end_resumes_parent_with_result(self):
        calls: list[str] = []
        registry = DialogRegistry([RecordingDialog("Parent", calls), RecordingDialog("Child", calls)])
        stack = make_stack(registry, ActivityFactory.message("x"))
        await stack.push("Parent")
        await stack.push("Child")

        await stack.end("value")

        assert calls[-1] == "resume:Parent:value"
        assert len(stack) == 1

    @pytest.mark.asyncio
    async def test_end_last_frame_completes(self):
        registry = DialogRegistry([WaterfallDialog("Solo", [_finish])])
        stack = make_stack(registry, ActivityFactory.message("x"))

        result = await stack.push("Solo", "opts")

        assert result.status == DialogTurnStatus.COMPLETE
        assert result.result == "done:opts"
        assert len(stack) == 0

    @pytest.mark.asyncio
    async def test_replace_does_not_resume_parent(self):
        calls: list[str] = []
        registry = DialogRegistry(
            [RecordingDialog("Parent", calls), WaterfallDialog("Loop", [_wait])]
        )
        stack = make_stack(registry, ActivityFactory.message("x"))
        await stack.push("Parent")
        await stack.push("Loop")
        first = stack.active_frame.instance_id

        await stack.replace("Loop")

        assert len(stack) == 2
        assert stack.active_frame.instance_id != first
        assert not any(call.startswith("resume") for call in calls)

    @pytest.mark.asyncio
    async def test_cancel_all_top_down(self):
        calls: list[str] = []
        registry = DialogRegistry([RecordingDialog("A", calls), RecordingDialog("B", calls)])
        stack = make_stack(registry, ActivityFactory.message("x"))
        await stack.push("A")
        await stack.push("B")

        result = await stack.cancel_all()

        assert result.status == DialogTurnStatus.CANCELLED
        assert calls[-2:] == ["cancel:B", "cancel:A"]
        assert len(stack) == 0

    @pytest.mark.asyncio
    async def test_stack_is_bound_to_state(self):
        state = StateFactory.create()
        stack = make_stack(
            DialogRegistry([WaterfallDialog("W", [_wait])]), ActivityFactory.message("x"), state
        )
        await stack.push("W")
        assert state.stack_frames[0].dialog_id == "W"
