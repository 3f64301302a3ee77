"""
Grepsight Logging - one place for log configuration.

Modules use:
    from .logging import get_logger, SCAN
    logger = get_logger(__name__)
    logger.debug(f"{SCAN} scanning {unit.identifier}")

configure_logging() is called once by entrypoints (the MCP server); library
code only asks for loggers.
"""

import logging
import os
import sys

DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

# Subsystem tags, prefixed to messages so output stays greppable
SCAN = "[SCAN]"
PIPELINE = "[PIPELINE]"
PROCESSOR = "[PROCESSOR]"
FUZZY = "[FUZZY]"
EXTRACT = "[EXTRACT]"
FILTER = "[FILTER]"
SERVER = "[SERVER]"


def _level_from_env(default: int) -> int:
    name = os.getenv("GREPSIGHT_LOG_LEVEL", "").upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def configure_logging(level: int | None = None, fmt: str = DEFAULT_FORMAT, stream=sys.stderr) -> None:
    """
    Configure the root logging handler.

    Safe to call more than once: the handler is only installed if the root
    logger has none. Defaults to stderr because stdout carries the MCP stdio
    transport.

    Args:
        level: Log level (default: GREPSIGHT_LOG_LEVEL or WARNING)
        fmt: Format string for the handler
        stream: Output stream for the handler
    """
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)

    root.setLevel(level if level is not None else _level_from_env(logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Return a module logger. Does not configure anything."""
    return logging.getLogger(name)
