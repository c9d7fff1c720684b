"""
Logging setup.

Modules obtain their logger with ``structlog.get_logger()``; this function
wires structlog onto the standard library logger once per process.
"""

import logging
from typing import Optional

import structlog

from ..config import Settings, settings as default_settings


def configure_logging(config: Optional[Settings] = None) -> None:
    """
    Configure structlog with the processor chain used by the service.

    Args:
        config: Settings providing log_level and log_format; defaults to the
            process-wide settings
    """
    config = config or default_settings
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=level)

    if config.log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
