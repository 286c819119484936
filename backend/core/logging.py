"""Structured logging setup shared by the API and the shutdown hooks."""

import logging
import os
import sys

import structlog


def _add_pid(logger, method_name, event_dict):
    event_dict.setdefault("pid", os.getpid())
    return event_dict


def configure_logging(log_level: str = "INFO", env_mode: str = "LOCAL") -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level: Minimum level name (DEBUG, INFO, ...)
        env_mode: "LOCAL" renders human-readable lines, anything else emits JSON
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_pid,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if env_mode.upper() == "LOCAL":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
