"""Inbound activity endpoints for the root, menu and skill bots."""

from fastapi import APIRouter

from skillrelay.api.dependencies import RuntimeDep
from skillrelay.api.models import SkillRequest, TurnResponse
from skillrelay.conversation.models import Activity
from skillrelay.skills.base import SkillResponse

router = APIRouter(prefix="/api")


@router.post("/messages", response_model=TurnResponse)
async def root_messages(activity: Activity, runtime: RuntimeDep) -> TurnResponse:
    """Process an activity for the root bot."""
    result = await runtime.root.process(activity)
    return TurnResponse(replies=result.replies, invoke_response=result.invoke_response)


@router.post("/menu/messages", response_model=TurnResponse)
async def menu_messages(activity: Activity, runtime: RuntimeDep) -> TurnResponse:
    """Process an activity for the welcome menu bot."""
    result = await runtime.menu.process(activity)
    return TurnResponse(replies=result.replies, invoke_response=result.invoke_response)


@router.post("/skills/messages", response_model=SkillResponse)
async def skill_messages(request: SkillRequest, runtime: RuntimeDep) -> SkillResponse:
    """Process an activity forwarded to the skill by a root bot."""
    return await runtime.skill_handler.handle(
        request.activity,
        caller_id=request.caller_id,
        mapping=request.mapping,
    )
