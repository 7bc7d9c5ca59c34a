# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Logging for the offline sync service.

The reconciliation client emits structlog key-value events
(``reconciliation_started``, ``entry_rejected``...) tagged with the
``pass_id`` of the pass that produced them. The local store, queue
manager, sweeper and scheduler log through ``logging.getLogger``; both
streams share one stdout handler, rendered as console lines on a
development device and as JSON lines everywhere else.

Example:
    >>> from lluminata.utils.logging import bound_context, get_logger, setup_logging
    >>> setup_logging(get_settings())
    >>> logger = get_logger(__name__)
    >>> with bound_context(pass_id="3f2a9c"):
    ...     logger.info("reconciliation_finished", succeeded=3, failed=1)
"""

import logging
import sys
from typing import TYPE_CHECKING, ContextManager

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from lluminata.core.config.settings import Settings


def setup_logging(settings: "Settings") -> None:
    """Configure structured logging for the application.

    Sets up structlog with appropriate processors based on environment:
    - Development: Colored console output with pretty formatting
    - Production: JSON output for log aggregation

    Args:
        settings: Application settings containing log_level and debug flag.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development or settings.debug:
        processors: list[Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    # Third-party loggers stay at WARNING
    for logger_name in [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "httpx",
        "httpcore",
        "sqlalchemy",
        "aiosqlite",
        "apscheduler",
        "asyncio",
    ]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger("lluminata").setLevel(log_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for the given module name.

    Args:
        name: Usually __name__ of the calling module.

    Returns:
        A bound structlog logger instance.
    """
    return structlog.get_logger(name)


def bound_context(**kwargs: object) -> ContextManager[None]:
    """Bind context variables to log calls inside a ``with`` block.

    On exit only the given keys are restored to their previous values;
    context bound by the caller is left in place.

    Args:
        **kwargs: Key-value pairs to bind to the logging context.

    Returns:
        Context manager scoping the bindings.
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
