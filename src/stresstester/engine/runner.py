"""Top-level stress test orchestrator."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING

from stresstester._internal.errors import EngineError, StressTesterError
from stresstester._internal.logging import get_logger, setup_logging
from stresstester.engine.pool import WorkerPool
from stresstester.metrics.aggregator import OutcomeAggregator

if TYPE_CHECKING:
    from collections.abc import Callable

    from stresstester._internal.config import RunConfig
    from stresstester.metrics.models import RunReport

logger = get_logger("engine.runner")


def _uvloop_factory() -> Callable[[], asyncio.AbstractEventLoop] | None:
    """Return uvloop's event loop factory if available.

    Falls back to the default asyncio event loop on Windows or if uvloop
    is not installed.
    """
    if sys.platform == "win32":
        return None

    try:
        import uvloop
    except ImportError:
        logger.debug("uvloop not available, using default asyncio event loop")
        return None

    logger.debug("Using uvloop event loop")
    return uvloop.new_event_loop


class StressTestRunner:
    """Runs one stress test: worker pool, then aggregation.

    Attributes:
        config: The run configuration.
    """

    def __init__(
        self,
        config: RunConfig,
        *,
        log_level: int = logging.INFO,
        color: bool = True,
    ) -> None:
        """Initialize the runner.

        Args:
            config: Validated run configuration.
            log_level: Logging level.
            color: Whether log output is colored.
        """
        self.config = config
        self._log_level = log_level
        self._color = color

    def run(self) -> RunReport:
        """Execute the stress test and return its report.

        This is a blocking call that returns once all configured requests
        have completed.

        Returns:
            The run report.

        Raises:
            EngineError: If the test fails to execute.
        """
        setup_logging(level=self._log_level, color=self._color)

        try:
            with asyncio.Runner(loop_factory=_uvloop_factory()) as runner:
                return runner.run(self.run_async())
        except StressTesterError:
            raise
        except Exception as exc:
            logger.exception("Stress test failed")
            raise EngineError("Stress test failed") from exc

    async def run_async(self) -> RunReport:
        """Run the worker pool and aggregate its outcomes.

        Returns:
            The run report.
        """
        config = self.config
        logger.info(
            "Starting stress test: url=%s, method=%s, requests=%d, concurrency=%d, timeout=%.1fs",
            config.url,
            config.method,
            config.requests,
            config.concurrency,
            config.timeout,
        )
        for key, value in config.headers.items():
            logger.debug("Header %s: %s", key, value)

        pool = WorkerPool(config)
        result = await pool.run()

        aggregator = OutcomeAggregator()
        await aggregator.consume(result.outcomes)
        report = aggregator.build_report(config, total_time=result.elapsed)

        logger.info(
            "Stress test completed: duration=%.3fs, total_requests=%d, "
            "success_rate=%.2f%%, error_rate=%.2f%%",
            report.total_time,
            report.total_requests,
            report.success_rate,
            report.error_rate,
        )
        return report
