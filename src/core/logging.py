"""Logging and observability configuration using Pydantic Logfire.

This module provides standardized logging utilities and configuration.
All modules should use Python's standard logging library (logging.getLogger(__name__)),
and Logfire will automatically capture and enrich these logs.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})

Structured logging utilities:
    log_with_context(logger, "info", "Message", share_id="123", principal_id="abc")

Task content (titles, notes, URLs) must never be passed as context: log ids and
field names only.
"""

import logging

import logfire
from fastapi import FastAPI

from src.core.config import settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment.

    Outside production nothing is exported unless a token is configured.

    Raises:
        ValueError: If running in production without a Logfire token
    """
    token = settings.logfire_token
    if settings.is_production:
        token = settings.require_credential("logfire_token", "Logfire")
    logfire.configure(
        token=token,
        service_name="schedshare",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def instrument_fastapi(app: FastAPI) -> None:
    """Add Logfire instrumentation to FastAPI application."""
    logfire.instrument_fastapi(app)
    logger = logging.getLogger(__name__)
    logger.info("FastAPI instrumentation configured")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("share_registry.create"):
            # Your service logic here
            pass
    """
    return logfire.span(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log a message with structured context fields.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Additional context fields (share_id, task_id, operation, etc.)

    Usage:
        log_with_context(logger, "info", "Share created", share_id="123", operation="create")
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_with_principal_context(
    logger: logging.Logger,
    level: str,
    message: str,
    principal_id: str | None = None,
    **extra: object,
) -> None:
    """Log a message attributed to the acting principal.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        principal_id: Acting principal to include in context
        **extra: Additional context fields

    Usage:
        log_with_principal_context(logger, "info", "Share accepted", principal_id="7", share_id="12")
    """
    context = {"principal_id": principal_id, **extra} if principal_id else extra
    log_with_context(logger, level, message, **context)
