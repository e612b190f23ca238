"""Turns the stream of request outcomes into a run report."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from stresstester._internal.errors import AggregationError
from stresstester._internal.logging import get_logger
from stresstester.metrics.models import RunReport

if TYPE_CHECKING:
    from stresstester._internal.config import RunConfig
    from stresstester.engine.channel import Channel
    from stresstester.metrics.models import Outcome

logger = get_logger("metrics.aggregator")


class OutcomeAggregator:
    """Counts outcomes by status code.

    HTTP 200 responses are counted separately; every other status, and
    the failed bucket (code 0), goes into ``other_statuses``.
    """

    def __init__(self) -> None:
        """Initialize empty counts."""
        self._total = 0
        self._status_200 = 0
        self._other: defaultdict[int, int] = defaultdict(int)

    @property
    def total(self) -> int:
        """Return the number of outcomes recorded."""
        return self._total

    @property
    def status_200(self) -> int:
        """Return the number of HTTP 200 outcomes recorded."""
        return self._status_200

    @property
    def other_statuses(self) -> dict[int, int]:
        """Return a copy of the non-200 counts keyed by status code."""
        return dict(self._other)

    def record(self, outcome: Outcome) -> None:
        """Add one outcome to the counts.

        Args:
            outcome: The outcome to record.
        """
        self._total += 1
        if outcome.code == 200:
            self._status_200 += 1
        else:
            self._other[outcome.code] += 1

    async def consume(self, outcomes: Channel[Outcome]) -> int:
        """Record every outcome until the channel is closed and drained.

        Args:
            outcomes: The outcome channel. Must eventually be closed.

        Returns:
            Number of outcomes consumed by this call.
        """
        consumed = 0
        async for outcome in outcomes:
            self.record(outcome)
            consumed += 1
        logger.debug("Consumed %d outcomes", consumed)
        return consumed

    def build_report(self, config: RunConfig, total_time: float) -> RunReport:
        """Freeze the counts into a RunReport.

        Args:
            config: The run configuration to echo in the report.
            total_time: Wall-clock seconds the pool took.

        Returns:
            The run report.

        Raises:
            AggregationError: If no outcome was recorded.
        """
        if self._total == 0:
            msg = "cannot build a report from zero outcomes"
            raise AggregationError(msg)

        return RunReport(
            config=config,
            total_requests=self._total,
            status_200=self._status_200,
            other_statuses=self.other_statuses,
            total_time=total_time,
        )
