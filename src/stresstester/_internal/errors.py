"""Custom exception hierarchy for stresstester."""

from __future__ import annotations


class StressTesterError(Exception):
    """Base exception for all stresstester errors.

    All custom exceptions in stresstester inherit from this class, making it
    easy to catch any stresstester-specific error with a single except clause.
    """


class ConfigError(StressTesterError):
    """Raised when the run configuration is invalid.

    Examples:
        - The request count or concurrency level is below 1.
        - A ``--header`` value is not of the form ``Key: Value``.
        - An environment default has an invalid value.
    """


class RequestBuildError(StressTesterError):
    """Raised when a single HTTP request cannot be constructed.

    Never escapes a worker: the affected request is recorded as failed.
    """


class EngineError(StressTesterError):
    """Raised when the load engine fails or breaks one of its invariants."""


class ChannelClosedError(StressTesterError):
    """Raised when putting into, or receiving from, a closed and drained channel."""


class AggregationError(StressTesterError):
    """Raised when a report is requested from zero recorded outcomes."""


class ReportError(StressTesterError):
    """Raised when the rendered report cannot be written to disk."""
