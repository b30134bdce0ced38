"""
structlog setup shared by the API, the scheduler and the CLI.

JSON lines when ENVIRONMENT=production (or LOG_FORMAT=json), a plain console
renderer otherwise. Every event carries ``service`` and, inside a request or
a scheduled job, the ids bound by ``flapframes.core.context``.

Usage:
    from flapframes.core.logging_config import get_logger

    logger = get_logger(__name__)
    logger.warning("provider circuit tripped", circuit_id="PROVIDER_OPENAI", failure_count=5)
"""

import logging
import os
import sys
from typing import Any

import structlog

SERVICE_NAME = "flapframes"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
JSON_LOGS = os.getenv("ENVIRONMENT") == "production" or os.getenv("LOG_FORMAT") == "json"

# SDK and scheduler chatter that drowns out circuit transitions at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic", "apscheduler", "sqlalchemy.engine")


def _add_service(logger: Any, method_name: str, event_dict: dict) -> dict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(json_logs: bool = JSON_LOGS, level: str = LOG_LEVEL) -> None:
    numeric_level = logging.getLevelName(level)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _add_service,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.dev.set_exc_info,
    ]
    if json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s", stream=sys.stdout, level=numeric_level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


configure_logging()
