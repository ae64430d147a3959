"""Structured logging for the augmentation pipeline.

One structlog processor chain feeds either a coloured ConsoleRenderer
(development) or a JSONRenderer (``APP_ENV=production`` or
``json_output=True``).  Standard-library records from the SDKs and
aiosqlite go through the same formatter, so every line has one shape.

Pipeline operations run inside :func:`operation_context`, which binds the
operation name and the ids it works on (``document_id``, ``user_id``,
``session_id``) to the structlog context vars.  Every line logged during
the operation carries them, including lines from the per-chunk embedding
tasks, which inherit the context of the task that spawned them.
"""

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

import structlog

# SDK loggers that report every HTTP request at INFO.
_SDK_LOGGERS = ("httpx", "httpcore", "openai", "anthropic", "aiosqlite")


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> structlog.BoundLogger:
    """Configure structlog and the stdlib bridge.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output. When False, JSON is used only when
                     APP_ENV is "production".
        stream: Where log lines are written (default stdout). The CLI passes
                stderr so stdout carries only command output.

    Returns:
        A configured structlog BoundLogger.
    """
    stream = stream or sys.stdout
    level = log_level.upper()
    numeric_level = logging.getLevelName(level)
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared_processors,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Per-request SDK chatter only shows up when debugging.
    sdk_level = numeric_level
    if numeric_level > logging.DEBUG:
        sdk_level = max(numeric_level, logging.WARNING)
    for name in _SDK_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)

    return structlog.get_logger()


@contextmanager
def operation_context(operation: str, **ids: object) -> Iterator[None]:
    """Bind *operation* and the given ids to every log line inside the block.

    ``None`` ids are skipped, so callers can pass an optional ``user_id``
    straight through.
    """
    bound = {key: value for key, value in ids.items() if value is not None}
    with structlog.contextvars.bound_contextvars(operation=operation, **bound):
        yield


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
