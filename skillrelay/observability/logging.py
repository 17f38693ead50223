"""Structured logging configuration using structlog.

JSON logging for production and console logging for development. Each turn
binds its conversation key through structlog contextvars, and credentials
(SSO tokens, magic codes) are redacted before rendering.
"""

import re
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any, cast

import structlog
from structlog.contextvars import bound_contextvars
from structlog.types import EventDict, WrappedLogger

# Sensitive key names (O(1) lookup)
SENSITIVE_KEYS: frozenset[str] = frozenset({
    "password",
    "secret",
    "token",
    "sso_token",
    "access_token",
    "refresh_token",
    "exchanged_token",
    "magic_code",
    "api_key",
    "authorization",
    "credential",
    "credentials",
    "bearer",
    "email",
    "phone",
})

# Regex patterns for PII in string values
EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
BEARER_PATTERN = re.compile(r"(?i)bearer\s+[a-z0-9._~+/=-]+")


class PIIRedactor:
    """Processor that redacts credentials and PII from log events.

    Two tiers:
    1. Key-name lookup via frozenset for known sensitive keys
    2. Regex patterns on string values for accidental leaks
    """

    def __call__(
        self,
        _logger: WrappedLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        return cast(EventDict, self._redact_dict(event_dict))

    def _redact_dict(self, data: MutableMapping[str, Any]) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key, value in data.items():
            if key.lower() in SENSITIVE_KEYS:
                result[key] = "[REDACTED]"
            elif isinstance(value, dict):
                result[key] = self._redact_dict(value)
            elif isinstance(value, str):
                result[key] = self._redact_string(value)
            elif isinstance(value, list):
                result[key] = [
                    self._redact_dict(item) if isinstance(item, dict)
                    else self._redact_string(item) if isinstance(item, str)
                    else item
                    for item in value
                ]
            else:
                result[key] = value
        return result

    def _redact_string(self, value: str) -> str:
        value = EMAIL_PATTERN.sub("[EMAIL]", value)
        return BEARER_PATTERN.sub("Bearer [REDACTED]", value)


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    redact_pii: bool = True,
) -> None:
    """Configure structured logging.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR)
        format: Output format - "json" for production, "console" for development
        redact_pii: Whether to redact credentials and PII from logs
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if redact_pii:
        processors.append(PIIRedactor())

    if format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    level_map = {
        "DEBUG": 10,
        "INFO": 20,
        "WARNING": 30,
        "ERROR": 40,
        "CRITICAL": 50,
    }

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            level_map.get(level.upper(), 20)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance bound to the given name."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))


@contextmanager
def turn_context(
    bot: str,
    conversation_key: str,
    activity_type: str,
    user_id: str | None = None,
) -> Iterator[None]:
    """Bind the current turn's identifiers to every log line it emits.

    Bindings that were present before are restored on exit, so a skill turn
    processed in-process inside a root turn leaves the root's context intact.
    """
    with bound_contextvars(
        bot=bot,
        conversation_key=conversation_key,
        activity_type=activity_type,
        user_id=user_id,
    ):
        yield
