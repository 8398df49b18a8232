"""Logging setup for the ``rhodibot`` logger tree.

Scan code logs through :func:`get_logger_with_context` so that every line
of a fleet run names the repository it belongs to::

    DEBUG: Scan finished: fail with 3 violation(s) repository=org/widget
"""

import logging
import sys
from typing import Any, TextIO

ROOT_LOGGER = "rhodibot"

PLAIN_FORMAT = "%(levelname)s: %(message)s"
STRUCTURED_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class StructuredFormatter(logging.Formatter):
    """Appends a record's context fields as ``key=value`` pairs, sorted by key."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        fields = getattr(record, "context", None)
        if not fields:
            return message
        pairs = " ".join(f"{key}={fields[key]}" for key in sorted(fields))
        return f"{message} {pairs}"


def configure_logging(
    level: str | int = "WARNING",
    structured: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Configure the ``rhodibot`` logger tree.

    Calling it again replaces the previous handler, so the CLI can call it
    once per invocation.

    Args:
        level: Log level name or number
        structured: Prefix lines with time and logger name
        stream: Destination (defaults to stderr, keeping stdout for reports)
    """
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(StructuredFormatter(STRUCTURED_FORMAT if structured else PLAIN_FORMAT))

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.handlers = [handler]
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger below ``rhodibot`` (``"fleet"`` becomes ``rhodibot.fleet``)."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


class ContextAdapter(logging.LoggerAdapter):
    """Attaches fixed context fields, such as the repository, to every record."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = {**self.extra, **extra.get("context", {})}
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger_with_context(name: str, **context: Any) -> ContextAdapter:
    """Get a logger whose records carry ``context`` as key=value fields.

    Args:
        name: Module name
        **context: Fields to include in every message

    Returns:
        ContextAdapter over the module logger
    """
    return ContextAdapter(get_logger(name), context)
