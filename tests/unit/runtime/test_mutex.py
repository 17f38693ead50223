"""Tests for the per-conversation mutex implementations."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import LockError

from skillrelay.runtime.mutex import LocalConversationMutex, RedisConversationMutex


class TestLocalConversationMutex:
    """Tests for the asyncio lock implementation."""

    @pytest.mark.asyncio
    async def test_acquire_and_release(self):
        mutex = LocalConversationMutex()
        async with mutex.acquire("c:1") as acquired:
            assert acquired is True
            assert mutex.is_locked("c:1")
        assert not mutex.is_locked("c:1")

    @pytest.mark.asyncio
    async def test_same_key_serialized(self):
        mutex = LocalConversationMutex(blocking_timeout=1.0)
        order: list[str] = []

        async def turn(name: str) -> None:
            async with mutex.acquire("c:1") as acquired:
                assert acquired
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await asyncio.gather(turn("a"), turn("b"))
        assert order == ["a-start", "a-end", "b-start", "b-end"]

    @pytest.mark.asyncio
    async def test_distinct_keys_concurrent(self):
        mutex = LocalConversationMutex(blocking_timeout=0.5)
        async with mutex.acquire("c:1") as first:
            async with mutex.acquire("c:2") as second:
                assert first and second

    @pytest.mark.asyncio
    async def test_timeout_yields_false(self):
        mutex = LocalConversationMutex(blocking_timeout=0.01)
        async with mutex.acquire("c:1"):
            async with mutex.acquire("c:1") as acquired:
                assert acquired is False
        assert not mutex.is_locked("c:1")

    @pytest.mark.asyncio
    async def test_locks_dropped_when_idle(self):
        mutex = LocalConversationMutex()
        async with mutex.acquire("c:1"):
            pass
        assert mutex._locks == {}


class TestRedisConversationMutex:
    """Tests for the Redis lock implementation with a mocked client."""

    def _mutex(self, acquired: bool = True):
        lock = MagicMock()
        lock.acquire = AsyncMock(return_value=acquired)
        lock.release = AsyncMock()
        client = MagicMock()
        client.lock.return_value = lock
        return RedisConversationMutex(client, lock_timeout=10, blocking_timeout=2.0), client, lock

    @pytest.mark.asyncio
    async def test_acquire_uses_prefixed_key(self):
        mutex, client, lock = self._mutex()
        async with mutex.acquire("c:1") as acquired:
            assert acquired
        client.lock.assert_called_once_with("convlock:c:1", timeout=10, blocking_timeout=2.0)
        lock.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_not_acquired_skips_release(self):
        mutex, _, lock = self._mutex(acquired=False)
        async with mutex.acquire("c:1", blocking_timeout=0.1) as acquired:
            assert acquired is False
        lock.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_lock_release_tolerated(self):
        mutex, _, lock = self._mutex()
        lock.release.side_effect = LockError("expired")
        async with mutex.acquire("c:1"):
            pass
