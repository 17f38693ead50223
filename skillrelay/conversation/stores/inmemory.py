"""In-memory implementation of ConversationStateStore."""

import asyncio
from datetime import UTC, datetime

from skillrelay.conversation.errors import ConflictError
from skillrelay.conversation.models import ConversationKey, ConversationState
from skillrelay.conversation.store import ConversationStateStore


class InMemoryConversationStateStore(ConversationStateStore):
    """In-memory implementation for testing and development.

    Records are deep-copied on the way in and out so callers never share
    mutable state with the store. Not suitable for production use.
    """

    def __init__(self) -> None:
        self._states: dict[ConversationKey, ConversationState] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: ConversationKey) -> ConversationState | None:
        state = self._states.get(key)
        return state.model_copy(deep=True) if state else None

    async def save(self, state: ConversationState, expected_version: int) -> int:
        async with self._lock:
            stored = self._states.get(state.key)
            actual_version = stored.version if stored else 0
            if actual_version != expected_version:
                raise ConflictError(
                    f"Conversation {state.key.as_str()} is at version "
                    f"{actual_version}, expected {expected_version}",
                    expected_version=expected_version,
                    actual_version=actual_version,
                )

            record = state.model_copy(deep=True)
            record.version = actual_version + 1
            record.updated_at = datetime.now(UTC)
            self._states[state.key] = record
            return record.version

    async def delete(self, key: ConversationKey) -> bool:
        async with self._lock:
            return self._states.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._states)
