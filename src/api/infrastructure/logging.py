"""Structlog configuration for the application.

Configures structlog with colored console output for development
and JSON output for production. Reconciliation binds batch_id,
request_id and principal through structlog.contextvars, so every
processor chain starts by merging them in.
"""

import logging
import os
import sys

import structlog


def _wants_colors() -> bool:
    # FORCE_COLOR=1 enables colors even in non-TTY environments (like Docker)
    force_color = os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes")
    return force_color or sys.stdout.isatty()


def configure_logging(debug: bool = False) -> None:
    """Configure structlog with appropriate processors.

    Args:
        debug: Emit debug-level events such as individual platform calls
            and cache hits. Info and above are emitted otherwise.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if _wants_colors():
        processors: list[structlog.types.Processor] = [
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
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if debug else logging.INFO
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
