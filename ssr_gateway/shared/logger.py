"""Global logger helpers for fire-and-forget logging.

This module provides a simple interface that can be used throughout the
codebase without passing logger instances around.

Usage:
    from ssr_gateway.shared.logger import log_info, log_error, log_debug

    log_info("Proxying content request", component="proxy_handler", url=url)
    log_error("Upstream request failed", component="proxy_handler", error=e)
    log_trace("Route checked", component="render_pipeline", pattern="/about")
"""

import logging
from typing import Any, Dict, Optional

from .log_levels import TRACE
from .python_logger_config import ROOT_LOGGER_NAME

DEFAULT_COMPONENT = "gateway"

# Listed first when present; any other context follows in call order
CONTEXT_KEYS = ('method', 'path', 'url', 'status', 'route', 'error', 'error_type', 'client_ip')


class ComponentLogger:
    """Logger bound to a component name that formats structured context."""

    def __init__(self, component: str, python_logger: Optional[logging.Logger] = None):
        self.component = component
        self.python_logger = python_logger or logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")

    def _format_message(self, message: str, **kwargs) -> str:
        """Format message with every non-None context field."""
        ordered = [key for key in CONTEXT_KEYS if key in kwargs]
        ordered += [key for key in kwargs if key not in CONTEXT_KEYS]
        context_parts = [
            f"{key}={kwargs[key]}" for key in ordered
            if kwargs[key] is not None
        ]

        if context_parts:
            return f"[{self.component}] {message} | {' '.join(context_parts)}"
        return f"[{self.component}] {message}"

    def log(self, level: int, message: str, **kwargs):
        if self.python_logger.isEnabledFor(level):
            self.python_logger.log(level, self._format_message(message, **kwargs))

    def trace(self, message: str, **kwargs):
        self.log(TRACE, message, **kwargs)

    def debug(self, message: str, **kwargs):
        self.log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self.log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self.log(logging.WARNING, message, **kwargs)

    def error(self, message: str, error: Optional[Exception] = None, **kwargs):
        if error:
            kwargs['error'] = str(error)
            kwargs['error_type'] = type(error).__name__
        self.log(logging.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs):
        self.log(logging.CRITICAL, message, **kwargs)


_component_loggers: Dict[str, ComponentLogger] = {}


def get_logger(component: Optional[str] = None) -> ComponentLogger:
    """Get (or create) the logger for a component.

    Args:
        component: Component name, defaults to the gateway-wide logger

    Returns:
        ComponentLogger instance (always available)
    """
    name = component or DEFAULT_COMPONENT
    logger = _component_loggers.get(name)
    if logger is None:
        logger = _component_loggers[name] = ComponentLogger(name)
    return logger


def log_trace(message: str, component: Optional[str] = None, **kwargs: Any):
    """Fire-and-forget trace log (very verbose debugging)."""
    get_logger(component).trace(message, **kwargs)


def log_debug(message: str, component: Optional[str] = None, **kwargs: Any):
    """Fire-and-forget debug log.

    Args:
        message: Log message
        component: Optional component name override
        **kwargs: Additional structured data
    """
    get_logger(component).debug(message, **kwargs)


def log_info(message: str, component: Optional[str] = None, **kwargs: Any):
    """Fire-and-forget info log.

    Args:
        message: Log message
        component: Optional component name override
        **kwargs: Additional structured data
    """
    get_logger(component).info(message, **kwargs)


def log_warning(message: str, component: Optional[str] = None, **kwargs: Any):
    """Fire-and-forget warning log."""
    get_logger(component).warning(message, **kwargs)


def log_error(message: str, component: Optional[str] = None, error: Optional[Exception] = None, **kwargs: Any):
    """Fire-and-forget error log.

    Args:
        message: Log message
        component: Optional component name override
        error: Optional exception to log
        **kwargs: Additional structured data
    """
    get_logger(component).error(message, error=error, **kwargs)


def log_critical(message: str, component: Optional[str] = None, **kwargs: Any):
    """Fire-and-forget critical log."""
    get_logger(component).critical(message, **kwargs)


def log_response(status: int, duration_ms: float, component: Optional[str] = None, **kwargs: Any):
    """Log an HTTP response at a level derived from its status.

    Args:
        status: HTTP status code
        duration_ms: Request duration in milliseconds
        component: Optional component name override
        **kwargs: Additional response data
    """
    message = f"Response: {status} ({duration_ms:.2f}ms)"
    logger = get_logger(component)
    level = 'error' if status >= 500 else 'warning' if status >= 400 else 'info'
    getattr(logger, level)(message, status=status, **kwargs)
