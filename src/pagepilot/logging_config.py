"""structlog configuration shared by the CLI and embedding applications."""

import logging
import os

import structlog


def setup_logging(debug: bool = False) -> None:
    """Configure structlog for console (debug) or JSON output."""
    debug = debug or bool(os.getenv("PAGEPILOT_DEBUG"))
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=level, format="%(message)s")

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
