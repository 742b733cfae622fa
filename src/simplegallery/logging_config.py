"""
structlog setup for simplegallery.

The server and the invoke tasks call configure_structured_logging once with the
level and environment from GallerySettings. The log_* helpers give each kind of
event (requests, preview timings, logins, errors, auth failures) its own logger
name so they can be filtered downstream.
"""

import logging
import os
import sys
from typing import Any

import structlog

LEVEL_MAPPING = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level(level_name: str | None = None) -> int:
    """
    Resolve a log level name to a logging constant.

    Accepts ``error``, ``info`` and ``debug`` (any case) as well as the other
    standard level names. Unknown names fall back to INFO.

    Args:
        level_name: Level name, defaults to the LOG_LEVEL environment variable

    Returns:
        int: Log level constant from logging module
    """
    if level_name is None:
        level_name = os.getenv("LOG_LEVEL", "INFO")

    return LEVEL_MAPPING.get(level_name.strip().upper(), logging.INFO)


DEVELOPMENT_ENVIRONMENTS = ("development", "dev", "local")


def is_development_environment(environment: str | None = None) -> bool:
    """
    Check whether an environment name selects development output.

    Args:
        environment: Environment name, defaults to the ENVIRONMENT variable

    Returns:
        bool: True if in development, False otherwise
    """
    if environment is None:
        environment = os.getenv("ENVIRONMENT", "production")
    return environment.strip().lower() in DEVELOPMENT_ENVIRONMENTS


def configure_structured_logging(level_name: str | None = None, environment: str | None = None) -> None:
    """
    Configure structured logging for the entire application.

    Console output with optional colors in development, JSON lines otherwise.

    Args:
        level_name: Minimum level (``error``, ``info``, ``debug``), defaults to LOG_LEVEL
        environment: Environment name, defaults to ENVIRONMENT
    """
    log_level = get_log_level(level_name)
    is_dev = is_development_environment(environment)
    use_colors = is_dev and sys.stderr.isatty()

    logging.basicConfig(
        level=log_level,
        format="%(message)s",  # structlog will handle formatting
        stream=sys.stderr,
    )

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if is_dev:
        processors.append(structlog.dev.ConsoleRenderer(colors=use_colors))
    else:
        # Production: use JSON for structured logging
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    logger = structlog.get_logger("simplegallery.logging")
    logger.info(
        "logging_configured",
        log_level=logging.getLevelName(log_level),
        environment="development" if is_dev else "production",
        colors_enabled=use_colors,
    )


def get_logger(name: str | None = None) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (optional, defaults to calling module)

    Returns:
        structlog.BoundLogger: Configured logger instance
    """
    if name is None:
        import inspect

        frame = inspect.currentframe()
        if frame and frame.f_back:
            name = frame.f_back.f_globals.get("__name__", "unknown")

    return structlog.get_logger(name)


def log_performance(operation: str, duration: float, **context: Any) -> None:
    """Record how long a resize or preview lookup took, at debug level."""
    logger = get_logger("simplegallery.performance")
    logger.debug("performance_metric", operation=operation, duration_seconds=duration, **context)


def log_request(route_name: str, path: str, identity: str | None = None, **context: Any) -> None:
    """
    Log an incoming gallery request.

    Args:
        route_name: Handler serving the request (``listing``, ``original``, ``preview``)
        path: Request path as received
        identity: Authenticated user name, None when authentication is disabled
        **context: Additional context information
    """
    logger = get_logger("simplegallery.requests")
    logger.info("request_received", route=route_name, path=path, identity=identity, **context)


def log_user_action(user_id: str, action: str, **context: Any) -> None:
    """Record something a gallery user did, such as a successful login."""
    logger = get_logger("simplegallery.user_actions")
    logger.info("user_action", user_id=user_id, action=action, **context)


def log_error(error: Exception, context: dict[str, Any] | None = None, level: str = "error") -> None:
    """
    Log errors with structured context.

    Args:
        error: Exception that occurred
        context: Additional context information
        level: Log method to use (``info``, ``warning`` or ``error``)
    """
    logger = get_logger("simplegallery.errors")

    error_context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }

    if context:
        error_context.update(context)

    if level == "error":
        logger.error("error_occurred", **error_context, exc_info=error)
    else:
        getattr(logger, level)("error_occurred", **error_context)


def log_security_event(event_type: str, user_id: str | None = None, **context: Any) -> None:
    """Warn about a missing, malformed or rejected login."""
    logger = get_logger("simplegallery.security")
    logger.warning("security_event", event_type=event_type, user_id=user_id, **context)
