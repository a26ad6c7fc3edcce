"""Python logging configuration for the SSR content gateway.

Sets up console output for every component. The fire-and-forget helpers in
``ssr_gateway.shared.logger`` write through the loggers configured here.

Environment Variables:
    LOG_LEVEL: Logging level (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL)
    PYTHON_LOG_FORMAT: Log message format (default: see below)
"""

import os
import sys
import logging
from typing import Optional

from .log_levels import TRACE, level_from_name

ROOT_LOGGER_NAME = 'ssr_gateway'

DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ColoredFormatter(logging.Formatter):
    """Tints each formatted line by level. Only installed for a TTY."""

    LEVEL_COLORS = {
        TRACE: '90',
        logging.DEBUG: '36',
        logging.INFO: '32',
        logging.WARNING: '33',
        logging.ERROR: '31',
        logging.CRITICAL: '35',
    }

    def format(self, record):
        msg = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelno)
        return f"\033[{color}m{msg}\033[0m" if color else msg


def setup_python_logging(
    log_level: Optional[str] = None,
    use_colors: bool = True,
    log_format: Optional[str] = None
) -> logging.Logger:
    """Configure Python logging with console output.

    Args:
        log_level: Logging level (if None, reads from env)
        use_colors: Whether to use colored output for TTY
        log_format: Custom log format (if None, uses default)

    Returns:
        Configured root logger
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')

    if log_format is None:
        log_format = os.getenv('PYTHON_LOG_FORMAT', DEFAULT_LOG_FORMAT)

    level = level_from_name(log_level)

    # Remove any existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    if use_colors and sys.stdout.isatty():
        formatter = ColoredFormatter(log_format)
    else:
        formatter = logging.Formatter(log_format)

    console_handler.setFormatter(formatter)

    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)

    root_logger.info(f"Python logging configured: level={log_level.upper()}, colors={use_colors and sys.stdout.isatty()}")

    return root_logger


def silence_noisy_loggers():
    """Reduce verbosity of noisy third-party loggers."""
    noisy_loggers = [
        'asyncio',
        'httpx',
        'httpcore',
        'hpack',
        'hypercorn.access',
        'hypercorn.error',
    ]

    for logger_name in noisy_loggers:
        # WARNING still surfaces errors
        logging.getLogger(logger_name).setLevel(logging.WARNING)
