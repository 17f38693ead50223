"""Tests for WaterfallDialog."""

import pytest

from skillrelay.dialogs import (
    Choice,
    ChoicePrompt,
    DialogError,
    DialogRegistry,
    DialogTurnStatus,
    PromptOptions,
    WaterfallDialog,
)
from tests.factories import ActivityFactory, StateFactory, make_stack

PROMPT = "Prompt"


async def ask(step):
    step.values["asked"] = True
    return await step.prompt(
        PROMPT,
        PromptOptions(prompt="Pick one", choices=[Choice(value="hi"), Choice(value="bye")]),
    )


async def answer(step):
    assert step.values["asked"] is True
    return await step.end_dialog(step.result.value)


def _registry(*steps) -> DialogRegistry:
    return DialogRegistry([WaterfallDialog("W", steps), ChoicePrompt(PROMPT)])


class TestWaterfallSteps:
    """Tests for step sequencing across turns."""

    @pytest.mark.asyncio
    async def test_prompt_then_answer_on_next_turn(self):
        state = StateFactory.create()
        registry = _registry(ask, answer)

        first = make_stack(registry, ActivityFactory.message("start"), state)
        result = await first.push("W")
        assert result.waiting
        assert [f.dialog_id for f in state.stack_frames] == ["W", PROMPT]
        assert first.turn.reply_texts == ["Pick one"]

        second = make_stack(registry, ActivityFactory.message("HI"), state)
        result = await second.resume()

        assert result.status == DialogTurnStatus.COMPLETE
        assert result.result == "hi"
        assert state.stack_frames == []

    @pytest.mark.asyncio
    async def test_cursor_survives_serialization(self):
        state = StateFactory.create()
        registry = _registry(ask, answer)
        await make_stack(registry, ActivityFactory.message("start"), state).push("W")

        restored = type(state).model_validate_json(state.model_dump_json())
        result = await make_stack(registry, ActivityFactory.message("bye"), restored).resume()

        assert result.result == "bye"

    @pytest.mark.asyncio
    async def test_options_visible_to_step_zero(self):
        seen = {}

        async def first(step):
            seen["result"] = step.result
            seen["options"] = step.options
            return step.end_of_turn()

        stack = make_stack(_registry(first), ActivityFactory.message("x"))
        await stack.push("W", PromptOptions(prompt="p"))

        assert isinstance(seen["result"], PromptOptions)
        assert seen["options"] == {"prompt": "p", "retry_prompt": None, "choices": []}

    @pytest.mark.asyncio
    async def test_next_runs_following_step(self):
        async def first(step):
            return await step.next("carried")

        async def second(step):
            return await step.end_dialog(step.result)

        result = await make_stack(_registry(first, second), ActivityFactory.message("x")).push("W")
        assert result.result == "carried"

    @pytest.mark.asyncio
    async def test_next_twice_raises(self):
        async def greedy(step):
            await step.next()
            return await step.next()

        async def waits(step):
            return step.end_of_turn()

        with pytest.raises(DialogError):
            await make_stack(_registry(greedy, waits), ActivityFactory.message("x")).push("W")

    @pytest.mark.asyncio
    async def test_running_past_last_step_ends(self):
        async def only(step):
            return await step.next("last")

        result = await make_stack(_registry(only), ActivityFactory.message("x")).push("W")
        assert result.status == DialogTurnStatus.COMPLETE
        assert result.result == "last"


class TestWaterfallInput:
    """Tests for how a waiting step receives user input."""

    @pytest.mark.asyncio
    async def test_message_text_becomes_result(self):
        async def wait(step):
            return step.end_of_turn()

        async def echo(step):
            return await step.end_dialog(step.result)

        state = StateFactory.create()
        registry = _registry(wait, echo)
        await make_stack(registry, ActivityFactory.message("x"), state).push("W")

        result = await make_stack(registry, ActivityFactory.message("typed"), state).resume()
        assert result.result == "typed"

    @pytest.mark.asyncio
    async def test_non_message_keeps_waiting(self):
        async def wait(step):
            return step.end_of_turn()

        state = StateFactory.create()
        registry = _registry(wait)
        await make_stack(registry, ActivityFactory.message("x"), state).push("W")

        result = await make_stack(registry, ActivityFactory.event("ping"), state).resume()
        assert result.waiting
        assert state.stack_frames[0].step_index == 0

    def test_add_step(self):
        async def step(ctx):
            return ctx.end_of_turn()

        dialog = WaterfallDialog("W").add_step(step).add_step(step)
        assert dialog.step_count == 2
