"""Structured and colored logging setup for stresstester."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

from rich.console import Console
from rich.logging import RichHandler


class _JsonFormatter(logging.Formatter):
    """Structured JSON log formatter.

    Emits one-line JSON objects with keys: timestamp, level, logger, message.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a JSON string.

        Args:
            record: The log record to format.

        Returns:
            A single-line JSON string.
        """
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def _build_handler(*, json_format: bool, color: bool) -> logging.Handler:
    """Create the single handler attached to the ``stresstester`` logger."""
    if json_format:
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(_JsonFormatter())
        return handler

    if color:
        # Progress lines are colored by their level.
        return RichHandler(
            console=Console(stderr=True),
            show_path=False,
            markup=False,
            rich_tracebacks=False,
            log_time_format="[%Y-%m-%d %H:%M:%S]",
        )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    return handler


def setup_logging(
    level: int = logging.INFO,
    *,
    json_format: bool = False,
    color: bool = True,
) -> logging.Logger:
    """Configure and return the root stresstester logger.

    Sets up a handler on the ``stresstester`` logger namespace. Subsequent
    calls are idempotent: handlers are not duplicated.

    Args:
        level: Logging level (e.g., ``logging.DEBUG``). Defaults to INFO.
        json_format: If True, emit structured JSON logs. Takes precedence
            over ``color``.
        color: If True, emit level-colored logs through rich. If False,
            emit plain human-readable logs.

    Returns:
        The configured ``stresstester`` root logger.
    """
    logger = logging.getLogger("stresstester")
    logger.setLevel(level)

    # Idempotent: update existing handler levels and return early
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = _build_handler(json_format=json_format, color=color)
    handler.setLevel(level)
    logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate output
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under the ``stresstester`` namespace.

    Args:
        name: Logger name, appended to ``stresstester.`` prefix.
            Example: ``get_logger("engine.worker")`` returns
            ``logging.getLogger("stresstester.engine.worker")``.

    Returns:
        A configured child logger.
    """
    return logging.getLogger(f"stresstester.{name}")
