"""
Error reporting: Sentry when a DSN is configured, structlog always.

- ``capture_exception`` / ``capture_message`` report an event with the
  current request or job ids attached.
- ``ErrorHandler`` wraps a block, reports what escapes it and by default
  suppresses it.
- ``fail_open`` turns any exception in an async method into a safe default.
  Every public circuit breaker method goes through it.
"""

import functools
import logging
import os
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from flapframes.core.context import get_context_dict, get_request_id
from flapframes.core.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_sentry_initialized: bool = False


def init_sentry(dsn: str, environment: str = "production", traces_sample_rate: float = 0.1) -> bool:
    """Returns True when events will be sent to Sentry."""
    global _sentry_initialized

    if not dsn:
        logger.info("Sentry disabled (no DSN provided)")
        return False

    try:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            traces_sample_rate=traces_sample_rate,
            release=os.environ.get("GIT_COMMIT_SHA"),
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                SqlalchemyIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
            before_send=_before_send,
        )
    except Exception as e:
        logger.error("Failed to initialize Sentry", error=str(e))
        return False

    _sentry_initialized = True
    logger.info("Sentry initialized", environment=environment)
    return True


def _before_send(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    # Health probes are not incidents
    if "/health" in event.get("request", {}).get("url", ""):
        return None

    request_id = get_request_id()
    if request_id:
        event.setdefault("tags", {})["request_id"] = request_id
    return event


def _event_context(context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        **{k: v for k, v in get_context_dict().items() if v is not None},
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **(context or {}),
    }


def _send(
    send: Callable[[], Optional[str]],
    extras: Dict[str, Any],
    tags: Optional[Dict[str, str]],
    level: str,
    fingerprint: Optional[list[str]] = None,
) -> Optional[str]:
    if not _sentry_initialized:
        return None
    try:
        with sentry_sdk.push_scope() as scope:
            for key, value in extras.items():
                scope.set_extra(key, value)
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)
            if fingerprint:
                scope.fingerprint = fingerprint
            scope.level = level
            return send()
    except Exception as e:
        logger.warning("Failed to send event to Sentry", error=str(e))
        return None


def capture_exception(
    exc: BaseException,
    context: Optional[Dict[str, Any]] = None,
    level: str = "error",
    fingerprint: Optional[list[str]] = None,
    tags: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """Log ``exc`` with context and forward it to Sentry. Returns the Sentry event id, if any."""
    extras = {"error_type": type(exc).__name__, **_event_context(context)}
    logger.error("Exception captured", exc_info=exc, **extras)
    return _send(lambda: sentry_sdk.capture_exception(exc), extras, tags, level, fingerprint)


def capture_message(
    message: str,
    level: str = "info",
    context: Optional[Dict[str, Any]] = None,
    tags: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """Report a notable non-exception event, such as a provider circuit tripping."""
    extras = _event_context(context)
    getattr(logger, level, logger.info)(message, **extras)
    return _send(lambda: sentry_sdk.capture_message(message, level=level), extras, tags, level)


class ErrorHandler:
    """
    Context manager that reports and (unless ``reraise``) suppresses errors.

    With ``capture=False`` the error is only logged at warning. The caught
    exception is kept on ``error``.

        with ErrorHandler("initialize_circuit", context={"circuit_id": "MASTER"}, capture=False):
            await repository.initialize_circuit(definition)
    """

    def __init__(
        self,
        operation: str,
        context: Optional[Dict[str, Any]] = None,
        capture: bool = True,
        reraise: bool = False,
    ):
        self.operation = operation
        self.context = context or {}
        self.capture = capture
        self.reraise = reraise
        self.error: Optional[BaseException] = None
        self.event_id: Optional[str] = None

    def __enter__(self) -> "ErrorHandler":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_val is None or not isinstance(exc_val, Exception):
            return False

        self.error = exc_val
        if self.capture:
            self.event_id = capture_exception(
                exc_val,
                context={"operation": self.operation, **self.context},
                fingerprint=[self.operation, type(exc_val).__name__],
            )
        else:
            logger.warning("Operation failed", operation=self.operation, error=str(exc_val), **self.context)

        return not self.reraise


def fail_open(
    default: Any,
    operation: Optional[str] = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorate an async function so any exception yields ``default``.

    A callable ``default`` is called on each failure, so ``list`` gives a
    fresh ``[]``. Failures are logged at warning with the operation name and
    the plain positional arguments; they are not sent to Sentry.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        op_name = operation or func.__name__

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.warning(
                    "Operation failed, using safe default",
                    operation=op_name,
                    args=[a for a in args if isinstance(a, (str, int))],
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return default() if callable(default) else default

        return wrapper

    return decorator
