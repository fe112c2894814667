"""Logging configuration for portico using structlog.

``LOG_LEVEL`` picks the level (``--verbose`` forces DEBUG) and ``LOG_FORMAT``
picks the renderer: ``json`` or the plain console renderer. Logs are written
to stderr; stdout carries build output.
"""

import logging
import os
import sys
from typing import Any

import structlog

_SHARED_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="ISO"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _resolve_level(verbose: bool) -> str:
    if verbose:
        return "DEBUG"
    return os.getenv("LOG_LEVEL", "INFO").upper()


def _get_renderer() -> Any:
    if os.getenv("LOG_FORMAT", "console").lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False, exception_formatter=structlog.dev.plain_traceback)


def setup_logging(verbose: bool = False) -> None:
    """Configure stdlib logging and structlog for the CLI and API server."""
    log_level = _resolve_level(verbose)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level, logging.INFO),
        force=True,
    )
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, _get_renderer()],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    structlog.get_logger(__name__).debug("Logging configured", log_level=log_level, verbose=verbose)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_function_entry(logger: structlog.stdlib.BoundLogger, func_name: str, **kwargs: Any) -> None:
    logger.debug("Function entry", function=func_name, **kwargs)


def log_function_exit(logger: structlog.stdlib.BoundLogger, func_name: str, **kwargs: Any) -> None:
    logger.debug("Function exit", function=func_name, **kwargs)


def log_api_request(logger: structlog.stdlib.BoundLogger, method: str, path: str, client_ip: str) -> None:
    """Log an incoming API request."""
    logger.info("API request", method=method, path=path, client_ip=client_ip)


def log_api_response(
    logger: structlog.stdlib.BoundLogger, method: str, path: str, status_code: int, duration_ms: float
) -> None:
    """Log the response to an API request with its handling time."""
    logger.info("API response", method=method, path=path, status_code=status_code, duration_ms=duration_ms)


def log_build_event(logger: structlog.stdlib.BoundLogger, event_type: str, service_id: str, **kwargs: Any) -> None:
    """Log a step of a service build.

    Args:
        logger: The logger instance
        event_type: Type of build event, e.g. ``build_completed``
        service_id: Service being built
        **kwargs: Event details
    """
    logger.info("Build event", event_type=event_type, service_id=service_id, **kwargs)
