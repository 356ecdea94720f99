"""
Structlog configuration.
"""

import logging
import sys

import structlog

from .config import Settings
from .context import add_request_context


def configure_logging(settings: Settings) -> None:
    """
    Configure stdlib logging and structlog from settings.

    ``log_format`` selects JSON lines (``json``) or the console renderer
    (``text``).
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if settings.log_format == "json":
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderers = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_request_context,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            *renderers,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
