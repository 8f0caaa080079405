"""Structured logging for queue_insights, built on structlog.

Events are key-value pairs (`log.info("conversations_fetched", count=...)`).
The queue being reported on is carried as a context variable, so every event
emitted while serving a queue is tagged with it.
"""

import logging
import sys
from typing import Any

import structlog


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    queue: str | None = None,
) -> None:
    """Configure structured logging for a script or the API process.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON lines; otherwise, colored console
        queue: Queue name bound to every event of this process, if the
            process reports on a single queue (CLI scripts).
    """
    log_level = getattr(logging, level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    structlog.contextvars.clear_contextvars()
    if queue:
        structlog.contextvars.bind_contextvars(queue=queue)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Logger for a module (pass __name__)."""
    return structlog.get_logger(name)
