"""HTTP skill client."""

import httpx
from pydantic import ValidationError

from skillrelay.conversation.models import Activity
from skillrelay.observability.logging import get_logger
from skillrelay.skills.base import (
    SkillClient,
    SkillClientError,
    SkillConversationMapping,
    SkillRef,
    SkillResponse,
)

logger = get_logger(__name__)


def skill_request_body(
    caller_id: str, mapping: SkillConversationMapping, activity: Activity
) -> dict:
    """JSON body posted to a skill host's messages endpoint."""
    return {
        "caller_id": caller_id,
        "mapping": mapping.model_dump(mode="json"),
        "activity": activity.model_dump(mode="json", by_alias=True),
    }


class HttpSkillClient(SkillClient):
    """Posts activities to ``skill.endpoint`` and parses the skill's replies."""

    def __init__(
        self,
        caller_id: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            caller_id: This bot's id, checked by the skill's allow-list
            timeout: Request timeout in seconds
            client: Pre-built httpx client (tests inject a mock transport)
        """
        self.caller_id = caller_id
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def forward_activity(
        self,
        skill: SkillRef,
        mapping: SkillConversationMapping,
        activity: Activity,
    ) -> SkillResponse:
        try:
            response = await self._client.post(
                skill.endpoint,
                json=skill_request_body(self.caller_id, mapping, activity),
            )
        except httpx.HTTPError as e:
            logger.warning(
                "skill_request_failed",
                skill_id=skill.skill_id,
                error=str(e),
            )
            raise SkillClientError(f"Skill request failed: {e}") from e

        if response.status_code >= 400:
            raise SkillClientError(
                f"Skill '{skill.skill_id}' returned {response.status_code}",
                status_code=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return SkillResponse(status=response.status_code)

        try:
            skill_response = SkillResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning(
                "skill_response_malformed",
                skill_id=skill.skill_id,
                error=str(e),
            )
            raise SkillClientError(
                f"Skill '{skill.skill_id}' sent a malformed response",
                status_code=response.status_code,
            ) from e
        skill_response.status = response.status_code
        return skill_response
