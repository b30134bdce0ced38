"""
Correlation ids for logs and Sentry events.

A request gets a ``request_id`` from the middleware; a scheduled job gets a
``correlation_id`` from ``job_context``. Both live in contextvars, so they
follow the asyncio task that set them.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Dict, Iterator, Optional

import structlog

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def generate_request_id(prefix: str = "req") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


def set_request_id(request_id: str) -> None:
    _request_id.set(request_id)


def get_request_id() -> Optional[str]:
    return _request_id.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def clear_context() -> None:
    _request_id.set(None)
    _correlation_id.set(None)


def get_context_dict() -> Dict[str, Optional[str]]:
    return {"request_id": get_request_id(), "correlation_id": get_correlation_id()}


@contextmanager
def job_context(job_name: str) -> Iterator[str]:
    """Tag everything logged inside a scheduled job run with one correlation id."""
    correlation_id = generate_request_id(prefix="job")
    set_correlation_id(correlation_id)
    structlog.contextvars.bind_contextvars(job=job_name, correlation_id=correlation_id)
    try:
        yield correlation_id
    finally:
        structlog.contextvars.unbind_contextvars("job", "correlation_id")
        clear_context()
