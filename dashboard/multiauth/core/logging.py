"""
Dashboard Session Shell - Logging Infrastructure

This module provides structured logging with support for:
- JSON formatted logs for production
- Text formatted logs for development
- Context binding for request tracing
- Session lifecycle events (login, logout, role switch, denials)
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Any, Dict, Iterable, Optional

import structlog
from structlog.types import Processor

from multiauth.core.config import Settings, get_settings

# Context variables for request tracing
request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
active_role_context: ContextVar[Optional[str]] = ContextVar("active_role", default=None)


def add_context_variables(
    logger: logging.Logger,
    method_name: str,
    event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Add context variables to log entries.

    This processor adds request_id and active_role from
    context variables to every log entry.
    """
    request_id = request_id_context.get()
    if request_id:
        event_dict["request_id"] = request_id

    active_role = active_role_context.get()
    if active_role:
        event_dict["active_role"] = active_role

    return event_dict


def get_log_level(settings: Settings) -> int:
    """Convert string log level to logging constant."""
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(settings.log_level.upper(), logging.INFO)


def get_processors(settings: Settings) -> list[Processor]:
    """Get structlog processors based on settings."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_context_variables,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    return processors


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging for the application.

    This should be called once at application startup.
    """
    settings = settings or get_settings()

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=get_log_level(settings),
    )

    # Configure structlog
    structlog.configure(
        processors=get_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name. If None, uses the calling module's name.

    Returns:
        A structlog BoundLogger instance.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("sessions_restored", roles=["admin"])
    """
    return structlog.get_logger(name)


class SessionEventLogger:
    """
    Specialized logger for session lifecycle events.

    Tokens are never passed to this logger; only roles and identifiers.
    """

    def __init__(self, component: str = "session"):
        self.component = component
        self.log = get_logger(f"multiauth.{component}")

    def log_login_success(
        self,
        email: str,
        role: str,
        stored_roles: Iterable[str],
    ) -> None:
        """Log a successful login and the slots it populated."""
        self.log.info(
            "login_succeeded",
            email=email,
            role=role,
            stored_roles=list(stored_roles),
        )

    def log_login_failure(
        self,
        email: str,
        kind: str,
        reason: str,
        requested_role: Optional[str] = None,
    ) -> None:
        """Log a rejected login attempt."""
        self.log.warning(
            "login_failed",
            email=email,
            kind=kind,
            reason=reason,
            requested_role=requested_role,
        )

    def log_logout(self, roles: Iterable[str], active_cleared: bool) -> None:
        """Log the removal of one or all role sessions."""
        self.log.info(
            "logout",
            roles=list(roles),
            active_cleared=active_cleared,
        )

    def log_role_switch(self, previous: Optional[str], current: str) -> None:
        """Log an explicit change of the active role."""
        self.log.info(
            "role_switched",
            previous=previous,
            current=current,
        )

    def log_route_denied(
        self,
        path: Optional[str],
        required_roles: Iterable[str],
        active_role: Optional[str],
        redirect_to: Optional[str],
    ) -> None:
        """Log a navigation refused by the route guard."""
        self.log.warning(
            "route_denied",
            path=path,
            required_roles=list(required_roles),
            active_role=active_role,
            redirect_to=redirect_to,
        )


session_logger = SessionEventLogger()
