"""Outcome and report dataclasses for stresstester."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stresstester._internal.config import RunConfig
    from stresstester._internal.types import StatusCounts

__all__ = [
    "FAILED_STATUS",
    "Outcome",
    "RunReport",
]

# Bucket used for requests that produced no HTTP response.
FAILED_STATUS = 0


@dataclass(frozen=True)
class Outcome:
    """Classified result of one request attempt.

    Attributes:
        status_code: HTTP status code of the response, or None when the
            request failed to build, failed on the network or timed out.
        error: Short description of the failure, for logging only. Not
            part of equality, so all failed outcomes compare equal.
    """

    status_code: int | None
    error: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.status_code is not None and self.status_code < 100:
            msg = f"status_code must be a valid HTTP status, got: {self.status_code}"
            raise ValueError(msg)

    @classmethod
    def status(cls, code: int) -> Outcome:
        """Return the outcome of a request that received a response."""
        return cls(status_code=code)

    @classmethod
    def failed(cls, error: str | None = None) -> Outcome:
        """Return the outcome of a request that got no response."""
        return cls(status_code=None, error=error)

    @property
    def is_failed(self) -> bool:
        """Return True if no HTTP response was received."""
        return self.status_code is None

    @property
    def code(self) -> int:
        """Return the status code, or ``FAILED_STATUS`` for failures."""
        return FAILED_STATUS if self.status_code is None else self.status_code

    @property
    def is_error(self) -> bool:
        """Return True for failures and for status codes >= 400."""
        return self.status_code is None or self.status_code >= 400


@dataclass(frozen=True)
class RunReport:
    """Aggregate result of a completed load test run.

    Attributes:
        config: The run configuration, echoed back in the report.
        total_requests: Number of outcomes aggregated.
        status_200: Number of HTTP 200 responses.
        other_statuses: Count per non-200 status code. Failed requests are
            counted under ``FAILED_STATUS``.
        total_time: Wall-clock seconds from dispatch start until every
            worker finished.
    """

    config: RunConfig
    total_requests: int
    status_200: int
    other_statuses: StatusCounts = field(default_factory=dict)
    total_time: float = 0.0

    @property
    def failed_requests(self) -> int:
        """Return the number of requests that got no response."""
        return self.other_statuses.get(FAILED_STATUS, 0)

    @property
    def success_rate(self) -> float:
        """Return the share of HTTP 200 responses, as a percentage."""
        return self.status_200 / self.total_requests * 100

    @property
    def error_rate(self) -> float:
        """Return the share of non-200 outcomes, as a percentage."""
        return (self.total_requests - self.status_200) / self.total_requests * 100

    @property
    def average_time_per_request(self) -> float:
        """Return total wall-clock time divided by the number of requests.

        This is pool-level wall time spread over all requests, not the mean
        latency of a single request.
        """
        return self.total_time / self.total_requests
