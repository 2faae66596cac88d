#!/usr/bin/env python3
"""
wikiclient Logging Configuration

Centralized logging setup for consistent formatting across the project.
Console output goes to stderr so command output on stdout stays parseable;
a log file is only written when WIKICLIENT_LOG_FILE is set.

Usage:
    from wikiproto.log import get_logger

    logger = get_logger(__name__)
    logger.info("Connecting...")
    logger.error("Connection failed", extra={"command": "page", "socket": "/run/wiki.sock"})
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Optional, Any
import os

from wikiproto.envelope import WikiMessage, WikiReply


# ========================================
#           LOGGING FORMATTERS
# ========================================

class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output"""

    # ANSI Color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class GenericFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        # Wiki context passed through extra=
        wiki_context = []

        if hasattr(record, 'wiki'):
            wiki_context.append(f"wiki={record.wiki}")
        if hasattr(record, 'command'):
            wiki_context.append(f"cmd={record.command}")
        if hasattr(record, 'socket'):
            wiki_context.append(f"sock={record.socket}")
        if hasattr(record, 'attempt'):
            wiki_context.append(f"try={record.attempt}")
        if hasattr(record, 'option_names'):
            wiki_context.append(f"opts={','.join(record.option_names)}")

        formatted = super().format(record)
        if wiki_context:
            return f"[{' '.join(wiki_context)}] {formatted}"
        return formatted


class ColoredContextFormatter(GenericFormatter, ColoredFormatter):
    pass


# ========================================
#           LOGGING CONFIGURATION
# ========================================

_loggers_configured = set()

# parents of every module logger in the project
PACKAGE_LOGGERS = ("wikiclient", "wikiproto")


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger for the given module.

    Args:
        name: Usually __name__ from the calling module
        level: Override log level ("DEBUG", "INFO", "WARNING", "ERROR")

    Returns:
        Configured logger instance

    Examples:
        logger = get_logger(__name__)
        logger.debug("Sent handshake")

        # With context
        logger.warning("Resume failed", extra={
            "wiki": "mywiki",
            "command": "page",
        })
    """
    logger = logging.getLogger(name)

    # Only configure each logger once
    if name not in _loggers_configured:
        _configure_logger(logger, level)
        _loggers_configured.add(name)

    return logger


def _configure_logger(logger: logging.Logger, level: Optional[str] = None) -> None:
    """Configure a logger with appropriate handlers and formatters"""

    log_level = _get_log_level(level)
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    _add_console_handler(logger, colored=_is_development())

    log_file = os.getenv('WIKICLIENT_LOG_FILE')
    if log_file:
        _add_file_handler(logger, Path(log_file))

    # Prevent duplicate messages from parent loggers
    logger.propagate = False


def _get_log_level(level: Optional[str] = None) -> int:
    """Determine appropriate log level"""

    level = level or os.getenv('WIKICLIENT_LOG_LEVEL')
    if level:
        return getattr(logging, level.upper(), logging.WARNING)

    # Library default: quiet unless asked
    return logging.WARNING


def _is_development() -> bool:
    """Detect if we're in development mode"""
    return os.getenv('PYTHON_ENV', '').lower() in ['dev', 'development']


def _add_console_handler(logger: logging.Logger, colored: bool = True) -> None:
    """Add console handler with appropriate formatter"""

    fmt = '[%(levelname)-8s][%(asctime)s][%(name)-5s]: %(message)s'
    handler = logging.StreamHandler(sys.stderr)

    if colored and _supports_color():
        formatter = ColoredContextFormatter(
            fmt=fmt,
            datefmt='%H:%M:%S'
        )
    else:
        formatter = GenericFormatter(
            fmt=fmt,
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _add_file_handler(logger: logging.Logger, log_file: Path) -> None:
    """Add file handler when a log file was requested"""

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)

    formatter = GenericFormatter(
        fmt='%(asctime)s | %(name)-30s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _supports_color() -> bool:
    """Check if terminal supports color output"""

    # stderr must be a terminal
    if not (hasattr(sys.stderr, "isatty") and sys.stderr.isatty()):
        return False

    # TERM should not be dumb
    if os.getenv("TERM", "") == "dumb":
        return False

    return True


# ========================================
#           CONVENIENCE FUNCTIONS
# ========================================

def log_wiki_message(logger: logging.Logger, level: str, message: str,
                     wiki_message: Optional[WikiMessage | WikiReply] = None,
                     **context: Any) -> None:
    """
    Log a wikiserver message with structured context.

    Password options are never logged.

    Args:
        logger: Logger instance
        level: Log level ("debug", "info", "warning", "error")
        message: Log message
        wiki_message: request or reply for automatic context extraction
        **context: Additional context fields

    Example:
        log_wiki_message(logger, "debug", "Sending command",
                         wiki_message=msg, socket="/run/wiki.sock")
    """

    extra_context = {}

    if wiki_message is not None:
        extra_context['command'] = wiki_message.tag
        extra_context['option_names'] = sorted(
            k for k in wiki_message.options if k != 'password'
        )

    extra_context.update(context)

    log_func = getattr(logger, level.lower())
    log_func(message, extra=extra_context)


def set_log_level(level: str) -> None:
    """Change the level of every logger configured through get_logger"""
    log_level = _get_log_level(level)
    for name in _loggers_configured:
        logging.getLogger(name).setLevel(log_level)


def configure_root_logging(level: str = "INFO") -> None:
    """
    Configure logging for the whole client.
    Call this once at application startup.

    Sets up the package loggers and moves every module logger
    already handed out by get_logger to the same level.

    Args:
        level: Log level ("DEBUG", "INFO", "WARNING", "ERROR")
    """
    for name in PACKAGE_LOGGERS:
        _configure_logger(logging.getLogger(name), level)
        _loggers_configured.add(name)
    set_log_level(level)
