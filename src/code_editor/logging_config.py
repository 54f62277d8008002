"""Logging for the code_editor package.

Everything logs under the ``code_editor`` namespace. The console handler
writes to stderr so that it never interleaves with the chat transcript on
stdout; an optional log file receives the same records.
"""

import logging
from typing import Optional

PACKAGE_LOGGER = "code_editor"

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DEBUG_FORMAT = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"

# Client libraries that log every HTTP request at INFO
_QUIET_LIBRARIES = ("httpx", "openai", "chromadb", "sentence_transformers")

_configured = False


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_DEBUG_FORMAT if level <= logging.DEBUG else _FORMAT))
    return handler


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Attach console (and optionally file) handlers to the package logger.

    Only the first call has an effect until reset_logging() is called.

    Args:
        level: Level name; unknown names fall back to INFO
        log_file: Also append records to this file when set

    Returns:
        The package logger
    """
    global _configured
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if _configured:
        return package_logger

    numeric = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(numeric, int):
        numeric = logging.INFO

    package_logger.setLevel(numeric)
    package_logger.handlers.clear()
    package_logger.addHandler(_handler(logging.StreamHandler(), numeric))

    if log_file:
        try:
            package_logger.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8"), numeric))
        except OSError as e:
            package_logger.warning("Cannot write log file %s (%s); logging to stderr only", log_file, e)

    quiet_level = logging.WARNING if numeric > logging.DEBUG else logging.NOTSET
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(quiet_level)

    _configured = True
    return package_logger


def reset_logging() -> None:
    """Forget a previous setup_logging() call (tests reconfigure per case)."""
    global _configured
    _configured = False


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, always below the package namespace."""
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
