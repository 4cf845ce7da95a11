"""
Logging configuration with a colored, tag-based console handler.

Usage:
    from pokeguess.config.logging import get_logger
    logger = get_logger("pokeguess.engine")
    logger.info("Round started", extra={"user_id": "123"})
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime

# ANSI color codes for console output
COLORS = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[35m",  # Magenta
    "RESET": "\033[0m",
}

# Tag colors, keyed by the logger name without the package prefix
TAG_COLORS = {
    "engine": "\033[94m",  # Blue
    "source": "\033[95m",  # Magenta
    "discord": "\033[93m",  # Yellow
    "main": "\033[92m",  # Green
}

PACKAGE_PREFIX = "pokeguess."


class ColoredConsoleFormatter(logging.Formatter):
    """Formatter that adds colors and a short [tag] for each logger."""

    def format(self, record: logging.LogRecord) -> str:
        level_color = COLORS.get(record.levelname, "")
        reset = COLORS["RESET"]

        tag = record.name.removeprefix(PACKAGE_PREFIX)
        tag_color = TAG_COLORS.get(tag, "\033[37m")

        timestamp = datetime.now().strftime("%H:%M:%S")
        level_str = f"{level_color}{record.levelname:8}{reset}"
        tag_str = f"{tag_color}[{tag}]{reset}"

        extra_parts = []
        if getattr(record, "user_id", None):
            extra_parts.append(f"user={record.user_id}")
        if getattr(record, "channel_id", None):
            extra_parts.append(f"channel={record.channel_id}")

        extra_str = f" ({', '.join(extra_parts)})" if extra_parts else ""
        msg = f"{timestamp} {level_str} {tag_str} {record.getMessage()}{extra_str}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


_initialized = False


def _get_console_level() -> int:
    """Get console log level from environment variable."""
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def init_logging(console_level: int | None = None):
    """Initialize the logging system with the colored console handler."""
    global _initialized

    if _initialized:
        return

    if console_level is None:
        console_level = _get_console_level()

    # Clear any existing handlers on root logger (from basicConfig or other sources)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ColoredConsoleFormatter())

    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("discord").setLevel(logging.WARNING)
    logging.getLogger("discord.gateway").setLevel(logging.WARNING)
    logging.getLogger("discord.client").setLevel(logging.WARNING)
    logging.getLogger("discord.http").setLevel(logging.WARNING)

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)
