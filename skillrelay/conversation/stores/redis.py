"""Redis implementation of ConversationStateStore.

Each conversation is one JSON document. Optimistic writes use
WATCH/MULTI: the stored version is read under WATCH and the write only
commits if nobody touched the key in between.
"""

from datetime import UTC, datetime

import redis.asyncio as redis
from redis.exceptions import WatchError

from skillrelay.config.models.storage import StorageConfig
from skillrelay.conversation.errors import ConflictError, ConnectionError
from skillrelay.conversation.models import ConversationKey, ConversationState
from skillrelay.conversation.store import ConversationStateStore
from skillrelay.observability.logging import get_logger

logger = get_logger(__name__)


class RedisConversationStateStore(ConversationStateStore):
    """Redis implementation of ConversationStateStore.

    Key structure:
    - {prefix}:{channel_id}:{conversation_id} - state document (TTL refreshed on save)
    """

    def __init__(
        self,
        client: redis.Redis,
        config: StorageConfig | None = None,
    ) -> None:
        """Initialize Redis conversation state store.

        Args:
            client: Redis client instance
            config: Storage configuration (uses defaults if not provided)
        """
        self._client = client
        self._config = config or StorageConfig()
        self._prefix = self._config.key_prefix

    def _key(self, key: ConversationKey) -> str:
        return f"{self._prefix}:{key.channel_id}:{key.conversation_id}"

    async def get(self, key: ConversationKey) -> ConversationState | None:
        try:
            data = await self._client.get(self._key(key))
        except redis.RedisError as e:
            logger.error(
                "redis_get_error",
                conversation_key=key.as_str(),
                error=str(e),
            )
            raise ConnectionError(f"Failed to get conversation state: {e}", cause=e) from e

        if not data:
            return None
        return ConversationState.model_validate_json(data)

    async def save(self, state: ConversationState, expected_version: int) -> int:
        redis_key = self._key(state.key)
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                await pipe.watch(redis_key)
                data = await pipe.get(redis_key)
                actual_version = (
                    ConversationState.model_validate_json(data).version if data else 0
                )
                if actual_version != expected_version:
                    await pipe.unwatch()
                    raise ConflictError(
                        f"Conversation {state.key.as_str()} is at version "
                        f"{actual_version}, expected {expected_version}",
                        expected_version=expected_version,
                        actual_version=actual_version,
                    )

                record = state.model_copy(
                    update={
                        "version": actual_version + 1,
                        "updated_at": datetime.now(UTC),
                    }
                )
                pipe.multi()
                pipe.set(redis_key, record.model_dump_json(), ex=self._config.ttl_seconds)
                await pipe.execute()

        except WatchError as e:
            logger.warning(
                "conversation_state_watch_conflict",
                conversation_key=state.key.as_str(),
                expected_version=expected_version,
            )
            raise ConflictError(
                f"Conversation {state.key.as_str()} changed during write",
                expected_version=expected_version,
                cause=e,
            ) from e
        except redis.RedisError as e:
            logger.error(
                "redis_save_error",
                conversation_key=state.key.as_str(),
                error=str(e),
            )
            raise ConnectionError(f"Failed to save conversation state: {e}", cause=e) from e

        logger.debug(
            "conversation_state_saved",
            conversation_key=state.key.as_str(),
            version=record.version,
        )
        return record.version

    async def delete(self, key: ConversationKey) -> bool:
        try:
            return await self._client.delete(self._key(key)) > 0
        except redis.RedisError as e:
            logger.error(
                "redis_delete_error",
                conversation_key=key.as_str(),
                error=str(e),
            )
            raise ConnectionError(f"Failed to delete conversation state: {e}", cause=e) from e

    async def health_check(self) -> bool:
        """Check Redis connection health."""
        try:
            await self._client.ping()
            return True
        except redis.RedisError as e:
            logger.warning("redis_health_check_failed", error=str(e))
            return False
