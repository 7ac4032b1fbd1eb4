"""
Logging setup for command-line entry points.

Library modules only call ``structlog.get_logger(__name__)``; processes that
print results to stdout call ``configure_logging`` so log events go through
stdlib logging to stderr and honor its level.
"""

import logging
import sys
from typing import TextIO

import structlog


def configure_logging(verbose: bool = False, stream: TextIO | None = None) -> None:
    """
    Route structlog through stdlib logging.

    Args:
        verbose: DEBUG instead of INFO
        stream: Log destination (defaults to stderr)
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        stream=stream or sys.stderr,
        format="%(message)s",
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
