"""Tests for the root bot's MainFlow."""

import pytest

from skillrelay.conversation.models import ConversationKey, Reply
from skillrelay.flows import MAIN_FLOW, MainFlow
from skillrelay.flows.main_flow import (
    ACTION_PROMPT_TEXT,
    CALL_SKILL,
    CALL_SKILL_SSO,
    LOGIN,
    LOGOUT,
    RETRY,
    RETRY_PROMPT_TEXT,
    SHOW_TOKEN,
    UNAVAILABLE_PROMPT_TEXT,
)
from skillrelay.runtime.turn_processor import TurnProcessor
from skillrelay.skills import SkillResponse
from tests.factories import (
    CHANNEL_ID,
    ROOT_CONNECTION,
    TEST_SKILL,
    USER_ID,
    ActivityFactory,
    ScriptedSkillClient,
)

KEY = ConversationKey(channel_id=CHANNEL_ID, conversation_id="conv-1")


@pytest.fixture
def skill_client() -> ScriptedSkillClient:
    def responder(activity):
        if activity.text == "End":
            return SkillResponse(activities=[Reply.end_of_conversation()])
        return SkillResponse(activities=[Reply.message("Skill menu")])

    return ScriptedSkillClient(responder)


@pytest.fixture
def processor(state_store, token_client, mutex, skill_client) -> TurnProcessor:
    flow = MainFlow(ROOT_CONNECTION, TEST_SKILL, skill_client, skill_timeout_seconds=0.5)
    return TurnProcessor(
        "root", flow.register(), MAIN_FLOW, state_store, token_client, mutex, skill_client
    )


def _offered(result) -> list[str]:
    return [action.value for action in result.replies[-1].suggested_actions]


class TestActionPrompt:
    """Tests for the choices offered from live sign-in state."""

    def test_connection_name_required(self, skill_client):
        with pytest.raises(ValueError):
            MainFlow("", TEST_SKILL, skill_client)

    @pytest.mark.asyncio
    async def test_signed_out_choices(self, processor):
        result = await processor.process(ActivityFactory.message("hi"))
        assert result.texts == [ACTION_PROMPT_TEXT]
        assert _offered(result) == [LOGIN, CALL_SKILL]

    @pytest.mark.asyncio
    async def test_signed_in_choices(self, processor, token_client):
        token_client.set_token(USER_ID, ROOT_CONNECTION, CHANNEL_ID, "root-token")
        result = await processor.process(ActivityFactory.message("hi"))
        assert _offered(result) == [LOGOUT, SHOW_TOKEN, CALL_SKILL_SSO]

    @pytest.mark.asyncio
    async def test_identity_provider_down_offers_retry(self, processor, token_client):
        token_client.fail("get_user_token")
        result = await processor.process(ActivityFactory.message("hi"))

        assert result.texts == [UNAVAILABLE_PROMPT_TEXT]
        assert _offered(result) == [RETRY]

        token_client.recover()
        result = await processor.process(ActivityFactory.message("retry"))
        assert _offered(result) == [LOGIN, CALL_SKILL]

    @pytest.mark.asyncio
    async def test_invalid_choice_reprompts(self, processor):
        await processor.process(ActivityFactory.message("hi"))
        result = await processor.process(ActivityFactory.message("Show token"))
        assert result.texts == [RETRY_PROMPT_TEXT]
        assert _offered(result) == [LOGIN, CALL_SKILL]


class TestActions:
    """Tests for each action and the loop back to the prompt."""

    @pytest.mark.asyncio
    async def test_login_with_magic_code(self, processor):
        await processor.process(ActivityFactory.message("hi"))
        card = await processor.process(ActivityFactory.message(LOGIN))
        assert card.replies[0].signin_card() is not None

        result = await processor.process(ActivityFactory.message("123456"))

        assert result.texts == ["You are now signed in.", ACTION_PROMPT_TEXT]
        assert _offered(result) == [LOGOUT, SHOW_TOKEN, CALL_SKILL_SSO]

    @pytest.mark.asyncio
    async def test_show_token_and_logout(self, processor, token_client):
        token_client.set_token(USER_ID, ROOT_CONNECTION, CHANNEL_ID, "root-token")
        await processor.process(ActivityFactory.message("hi"))

        shown = await processor.process(ActivityFactory.message("show token"))
        assert shown.texts[0] == "Here is your current SSO token: root-token"

        logged_out = await processor.process(ActivityFactory.message(LOGOUT))
        assert logged_out.texts[0] == "You have been signed out."
        assert _offered(logged_out) == [LOGIN, CALL_SKILL]

    @pytest.mark.asyncio
    async def test_logout_with_identity_provider_down(self, processor, token_client):
        token_client.set_token(USER_ID, ROOT_CONNECTION, CHANNEL_ID, "root-token")
        await processor.process(ActivityFactory.message("hi"))
        token_client.fail("sign_out_user")

        result = await processor.process(ActivityFactory.message(LOGOUT))

        assert result.texts[0] == UNAVAILABLE_PROMPT_TEXT
        assert not result.failed

    @pytest.mark.asyncio
    async def test_call_skill_and_return(self, processor, skill_client, state_store):
        await processor.process(ActivityFactory.message("hi"))

        delegated = await processor.process(ActivityFactory.message(CALL_SKILL))
        assert delegated.texts == ["Skill menu"]
        assert (await state_store.get(KEY)).active_skill is not None
        assert skill_client.forwarded[0].name == "SSO"

        returned = await processor.process(ActivityFactory.message("End"))
        assert returned.texts == [ACTION_PROMPT_TEXT]
        assert (await state_store.get(KEY)).active_skill is None

    @pytest.mark.asyncio
    async def test_stack_depth_bounded_by_loop(self, processor, state_store):
        await processor.process(ActivityFactory.message("hi"))
        for _ in range(5):
            await processor.process(ActivityFactory.message(LOGIN))
            await processor.process(ActivityFactory.message("123456"))
            await processor.process(ActivityFactory.message(LOGOUT))

        stored = await state_store.get(KEY)
        assert [f.dialog_id for f in stored.stack_frames] == [MAIN_FLOW, "ActionStepPrompt"]
