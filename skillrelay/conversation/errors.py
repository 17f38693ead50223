"""Store error hierarchy for conversation state backends.

All store implementations wrap backend-specific errors in one of these.
"""


class StoreError(Exception):
    """Base exception for all store errors."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):
    """Raised when the store backend cannot be reached.

    Examples:
        - Redis server unavailable
        - Network errors
    """

    pass


class ConflictError(StoreError):
    """Raised when an optimistic write finds a different stored version."""

    def __init__(
        self,
        message: str,
        expected_version: int | None = None,
        actual_version: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.expected_version = expected_version
        self.actual_version = actual_version


class StatePersistenceConflict(ConflictError):
    """Raised when a turn's final commit collides twice.

    The stored state is left as the competing writer produced it; the
    adapter layer should treat the turn as a transient failure.
    """

    pass
