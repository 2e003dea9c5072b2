"""Foundation utilities module for tro-spank.

Provides timestamp rendering, logging configuration, and argv redaction. As a
foundation module, this package must not import any other project packages.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Sequence

__all__ = [
    "format_timestamp",
    "configure_logging",
    "redact_argv",
    "TIMESTAMP_FORMAT",
    "PACKAGE_LOGGER",
]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

PACKAGE_LOGGER = "tro_spank"

SECRET_FLAGS = frozenset({"--gpg-passphrase"})


# ============================================================================
# Timestamps
# ============================================================================


def format_timestamp(epoch: int | float) -> str:
    """Render epoch seconds as the timestamp string tro-utils expects.

    Always rendered in UTC, independent of the host timezone. Fractional
    seconds are truncated toward zero.

    Args:
        epoch: Seconds since the Unix epoch

    Returns:
        String of the form ``YYYY-MM-DD HH:MM:SS``

    Example:
        >>> format_timestamp(1000)
        '1970-01-01 00:16:40'
    """
    return datetime.fromtimestamp(int(epoch), tz=timezone.utc).strftime(TIMESTAMP_FORMAT)


# ============================================================================
# Logging Configuration
# ============================================================================


def configure_logging(level: str = "INFO", structured: bool = False) -> logging.Logger:
    """Configure the package logger with standardized format.

    Only the ``tro_spank`` logger is touched; the host process owns the root
    logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        structured: Enable JSON line logging (default: False)

    Returns:
        The configured package logger

    Raises:
        ValueError: If level is not a logging level name
    """
    numeric_level = getattr(logging, level.upper(), None)

    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates across plugin instances
    logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(numeric_level)

    if structured:
        formatter = logging.Formatter('{"timestamp": "%(asctime)s", "level": "%(levelname)s", ' '"name": "%(name)s", "message": "%(message)s"}')
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt=TIMESTAMP_FORMAT,
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


# ============================================================================
# Argument Redaction
# ============================================================================


def redact_argv(argv: Sequence[str]) -> list[str]:
    """Return a copy of argv safe for logging.

    The value following any secret flag (e.g. ``--gpg-passphrase``) is replaced
    with ``***``.
    """
    redacted = []
    hide_next = False
    for arg in argv:
        if hide_next:
            redacted.append("***")
            hide_next = False
            continue
        redacted.append(arg)
        hide_next = arg in SECRET_FLAGS
    return redacted
