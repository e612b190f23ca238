"""Integration tests for the WorkerPool."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from stresstester.engine.pool import WorkerPool
from stresstester.metrics.aggregator import OutcomeAggregator
from stresstester.metrics.models import FAILED_STATUS, Outcome

if TYPE_CHECKING:
    from collections.abc import Callable

    from stresstester._internal.config import RunConfig
    from tests.conftest import TargetServer


@pytest.mark.timeout(30)
class TestWorkerPool:
    @pytest.mark.parametrize(
        ("requests", "concurrency"),
        [(1, 1), (7, 3), (20, 20), (3, 8), (25, 4)],
    )
    async def test_exactly_n_outcomes(
        self,
        target_server: TargetServer,
        make_config: Callable[..., RunConfig],
        requests: int,
        concurrency: int,
    ):
        config = make_config(target_server.url("/success"), requests=requests, concurrency=concurrency)
        pool = WorkerPool(config)
        result = await pool.run()

        outcomes = [o async for o in result.outcomes]
        assert len(outcomes) == requests
        assert result.handled == requests
        assert pool.counter.value == requests
        assert target_server.stats.hits == requests
        assert result.outcomes.closed
        assert result.elapsed > 0

    async def test_concurrency_bound(
        self, target_server: TargetServer, make_config: Callable[..., RunConfig]
    ):
        """The server never sees more than C requests at once."""
        config = make_config(target_server.url("/slow?delay=0.05"), requests=20, concurrency=3)
        await WorkerPool(config).run()

        assert 1 <= target_server.stats.max_in_flight <= 3

    async def test_surplus_workers_exit_immediately(
        self, target_server: TargetServer, make_config: Callable[..., RunConfig]
    ):
        config = make_config(target_server.url("/slow?delay=0.05"), requests=2, concurrency=6)
        result = await WorkerPool(config).run()

        assert result.handled == 2
        assert target_server.stats.max_in_flight <= 2

    async def test_mixed_failures_do_not_abort_run(
        self, target_server: TargetServer, make_config: Callable[..., RunConfig]
    ):
        """Every request times out, yet all N outcomes are produced."""
        config = make_config(
            target_server.url("/slow?delay=0.3"), requests=4, concurrency=2, timeout=0.05
        )
        result = await WorkerPool(config).run()

        outcomes = [o async for o in result.outcomes]
        assert outcomes == [Outcome.failed()] * 4

    async def test_unencodable_body_does_not_abort_run(
        self, target_server: TargetServer, make_config: Callable[..., RunConfig]
    ):
        config = make_config(
            target_server.url("/with-body"), requests=3, concurrency=1, method="POST", body="\udcff"
        )
        result = await WorkerPool(config).run()

        outcomes = [o async for o in result.outcomes]
        assert outcomes == [Outcome.failed()] * 3
        assert result.handled == 3

    async def test_always_500(
        self, target_server: TargetServer, make_config: Callable[..., RunConfig]
    ):
        config = make_config(target_server.url("/fail"), requests=10, concurrency=2)
        result = await WorkerPool(config).run()

        aggregator = OutcomeAggregator()
        await aggregator.consume(result.outcomes)
        report = aggregator.build_report(config, result.elapsed)

        assert report.status_200 == 0
        assert report.other_statuses == {500: 10}
        assert report.error_rate == pytest.approx(100.0)

    async def test_always_200(
        self, target_server: TargetServer, make_config: Callable[..., RunConfig]
    ):
        config = make_config(target_server.url("/success"), requests=5, concurrency=5)
        result = await WorkerPool(config).run()

        aggregator = OutcomeAggregator()
        await aggregator.consume(result.outcomes)
        report = aggregator.build_report(config, result.elapsed)

        assert report.status_200 == 5
        assert report.success_rate == pytest.approx(100.0)
        assert report.other_statuses == {}

    async def test_timeout_lands_in_failed_bucket(
        self, target_server: TargetServer, make_config: Callable[..., RunConfig]
    ):
        config = make_config(target_server.url("/slow?delay=0.5"), requests=1, concurrency=1, timeout=0.1)
        result = await WorkerPool(config).run()

        aggregator = OutcomeAggregator()
        await aggregator.consume(result.outcomes)
        report = aggregator.build_report(config, result.elapsed)

        assert report.other_statuses == {FAILED_STATUS: 1}
        assert report.failed_requests == 1
