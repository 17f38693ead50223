"""ConversationStateStore abstract interface."""

from abc import ABC, abstractmethod

from skillrelay.conversation.models import ConversationKey, ConversationState


class ConversationStateStore(ABC):
    """Durable per-conversation state keyed by ConversationKey.

    Writes are optimistic: ``save`` only succeeds when the stored version
    still equals the version the caller read.
    """

    @abstractmethod
    async def get(self, key: ConversationKey) -> ConversationState | None:
        """Get the state for a conversation, or None if never written."""
        pass

    @abstractmethod
    async def save(self, state: ConversationState, expected_version: int) -> int:
        """Write state if the stored version equals expected_version.

        ``expected_version`` 0 means the record must not exist yet.

        Returns:
            The new version

        Raises:
            ConflictError: If the stored version differs
        """
        pass

    @abstractmethod
    async def delete(self, key: ConversationKey) -> bool:
        """Delete a conversation's state."""
        pass

    async def current_version(self, key: ConversationKey) -> int:
        """Version currently stored for key (0 if absent)."""
        state = await self.get(key)
        return state.version if state else 0

    async def health_check(self) -> bool:
        return True
