"""Per-conversation mutex.

Turns for one conversation key run one at a time; turns for distinct keys
run concurrently.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from redis.asyncio import Redis
from redis.exceptions import LockError

from skillrelay.observability.logging import get_logger

logger = get_logger(__name__)


class ConversationBusy(Exception):
    """The conversation lock could not be acquired in time."""

    def __init__(self, conversation_key: str) -> None:
        super().__init__(f"Conversation '{conversation_key}' is busy")
        self.conversation_key = conversation_key


class ConversationMutex(ABC):
    """Single-writer lock keyed by conversation."""

    @abstractmethod
    def acquire(
        self,
        conversation_key: str,
        blocking_timeout: float | None = None,
    ) -> AsyncGenerator[bool, None]:
        """Async context manager yielding True if the lock was acquired.

        Usage:
            async with mutex.acquire("msteams:conv-1") as acquired:
                if acquired:
                    # Safe to process
        """
        pass


class LocalConversationMutex(ConversationMutex):
    """asyncio locks for single-process deployments and tests."""

    def __init__(self, blocking_timeout: float = 5.0) -> None:
        self._blocking_timeout = blocking_timeout
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def acquire(
        self,
        conversation_key: str,
        blocking_timeout: float | None = None,
    ) -> AsyncGenerator[bool, None]:
        timeout = blocking_timeout or self._blocking_timeout
        lock = self._locks.setdefault(conversation_key, asyncio.Lock())
        self._waiters[conversation_key] = self._waiters.get(conversation_key, 0) + 1

        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=timeout)
                acquired = True
            except TimeoutError:
                acquired = False

            try:
                yield acquired
            finally:
                if acquired:
                    lock.release()
        finally:
            self._waiters[conversation_key] -= 1
            if self._waiters[conversation_key] == 0:
                del self._waiters[conversation_key]
                self._locks.pop(conversation_key, None)

    def is_locked(self, conversation_key: str) -> bool:
        lock = self._locks.get(conversation_key)
        return lock is not None and lock.locked()


class RedisConversationMutex(ConversationMutex):
    """Redis-backed distributed lock ensuring one writer per conversation.

    Lock key format: convlock:{channel_id}:{conversation_id}
    """

    def __init__(
        self,
        redis: Redis,
        lock_timeout: int = 30,
        blocking_timeout: float = 5.0,
    ) -> None:
        """Initialize the mutex.

        Args:
            redis: Redis client instance
            lock_timeout: How long a lock is held before auto-release (seconds)
            blocking_timeout: How long to wait when trying to acquire (seconds)
        """
        self._redis = redis
        self._lock_timeout = lock_timeout
        self._blocking_timeout = blocking_timeout

    def _key(self, conversation_key: str) -> str:
        return f"convlock:{conversation_key}"

    @asynccontextmanager
    async def acquire(
        self,
        conversation_key: str,
        blocking_timeout: float | None = None,
    ) -> AsyncGenerator[bool, None]:
        timeout = blocking_timeout or self._blocking_timeout

        lock = self._redis.lock(
            self._key(conversation_key),
            timeout=self._lock_timeout,
            blocking_timeout=timeout,
        )

        acquired = await lock.acquire()
        try:
            yield acquired
        finally:
            if acquired:
                try:
                    await lock.release()
                except LockError:
                    # Lock expired while the turn was running
                    logger.warning("conversation_lock_expired", conversation_key=conversation_key)
