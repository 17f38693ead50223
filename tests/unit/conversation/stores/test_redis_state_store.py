"""Tests for RedisConversationStateStore with a mocked client."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import redis.asyncio as redis
from redis.exceptions import WatchError

from skillrelay.config.models import StorageConfig
from skillrelay.conversation.errors import ConflictError, ConnectionError
from skillrelay.conversation.models import ConversationKey, ConversationState
from skillrelay.conversation.stores import RedisConversationStateStore


@pytest.fixture
def key() -> ConversationKey:
    return ConversationKey(channel_id="test", conversation_id="conv-1")


def _pipeline(stored: str | None) -> MagicMock:
    pipe = MagicMock()
    pipe.__aenter__ = AsyncMock(return_value=pipe)
    pipe.__aexit__ = AsyncMock(return_value=False)
    pipe.watch = AsyncMock()
    pipe.unwatch = AsyncMock()
    pipe.get = AsyncMock(return_value=stored)
    pipe.execute = AsyncMock(return_value=[True])
    return pipe


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.delete = AsyncMock(return_value=1)
    client.ping = AsyncMock(return_value=True)
    return client


@pytest.fixture
def store(client) -> RedisConversationStateStore:
    return RedisConversationStateStore(client, StorageConfig(key_prefix="cs", ttl_seconds=60))


class TestGet:
    @pytest.mark.asyncio
    async def test_get_missing(self, store, client, key):
        assert await store.get(key) is None
        client.get.assert_awaited_once_with("cs:test:conv-1")

    @pytest.mark.asyncio
    async def test_get_parses_document(self, store, client, key):
        state = ConversationState.fresh(key, "Root")
        client.get.return_value = state.model_dump_json()
        loaded = await store.get(key)
        assert loaded.stack_frames[0].dialog_id == "Root"

    @pytest.mark.asyncio
    async def test_redis_error_wrapped(self, store, client, key):
        client.get.side_effect = redis.RedisError("down")
        with pytest.raises(ConnectionError):
            await store.get(key)


class TestSave:
    @pytest.mark.asyncio
    async def test_save_new_record(self, store, client, key):
        pipe = _pipeline(None)
        client.pipeline.return_value = pipe

        version = await store.save(ConversationState.fresh(key, "Root"), 0)

        assert version == 1
        pipe.watch.assert_awaited_once_with("cs:test:conv-1")
        pipe.multi.assert_called_once()
        args, kwargs = pipe.set.call_args
        assert args[0] == "cs:test:conv-1"
        assert ConversationState.model_validate_json(args[1]).version == 1
        assert kwargs["ex"] == 60

    @pytest.mark.asyncio
    async def test_version_mismatch_conflicts(self, store, client, key):
        existing = ConversationState.fresh(key, "Root").model_copy(update={"version": 3})
        pipe = _pipeline(existing.model_dump_json())
        client.pipeline.return_value = pipe

        with pytest.raises(ConflictError) as exc_info:
            await store.save(ConversationState.fresh(key, "Root"), 2)

        assert exc_info.value.actual_version == 3
        pipe.unwatch.assert_awaited_once()
        pipe.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_watch_error_is_conflict(self, store, client, key):
        pipe = _pipeline(None)
        pipe.execute.side_effect = WatchError("changed")
        client.pipeline.return_value = pipe

        with pytest.raises(ConflictError):
            await store.save(ConversationState.fresh(key, "Root"), 0)


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_check_failure(self, store, client):
        client.ping.side_effect = redis.RedisError("down")
        assert await store.health_check() is False

    @pytest.mark.asyncio
    async def test_delete(self, store, client, key):
        assert await store.delete(key) is True
        client.delete.assert_awaited_once_with("cs:test:conv-1")
