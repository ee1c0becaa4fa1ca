"""
Keepsake — logging bootstrap for every entry point.

Nothing configures logging on import. The CLI calls configure_logging()
once before it builds a session; tests leave structlog at its defaults.
"""

from __future__ import annotations

import logging

import structlog

_logging_configured = False


def configure_logging(level: int = logging.WARNING, colors: bool = True) -> None:
    """Configure structlog and standard-library logging.

    Safe to call more than once; subsequent calls are no-ops.
    """
    global _logging_configured  # noqa: PLW0603
    if _logging_configured:
        return
    _logging_configured = True

    logging.basicConfig(format="%(message)s", level=level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
