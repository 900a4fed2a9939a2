import logging
import sys

import structlog

# Map string level to integer
LEVEL_MAP = {
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "TRACE": 5,
}


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog for the current invocation.

    Args:
        log_level: One of INFO, DEBUG or TRACE
        json_output: Render log lines as JSON instead of the console format
    """
    level = LEVEL_MAP.get(log_level.upper(), logging.INFO)
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,  # Disable cache to allow level updates
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name

    Returns:
        Logger bound to the current structlog configuration
    """
    return structlog.get_logger(name)
