"""stresstester: fire concurrent HTTP requests at a URL and report the results."""

from __future__ import annotations

from stresstester._internal.config import RunConfig
from stresstester.engine.pool import PoolResult, WorkerPool
from stresstester.engine.runner import StressTestRunner
from stresstester.metrics.aggregator import OutcomeAggregator
from stresstester.metrics.models import Outcome, RunReport
from stresstester.report.render import render_report

__version__ = "0.1.0"

__all__ = [
    "Outcome",
    "OutcomeAggregator",
    "PoolResult",
    "RunConfig",
    "RunReport",
    "StressTestRunner",
    "WorkerPool",
    "render_report",
]
