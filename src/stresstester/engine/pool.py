"""Worker pool: runs C workers over N work tokens and collects outcomes."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import aiohttp

from stresstester._internal.errors import EngineError
from stresstester._internal.logging import get_logger
from stresstester.engine.channel import Channel
from stresstester.engine.dispatcher import Dispatcher
from stresstester.engine.worker import CompletedCounter, Worker

if TYPE_CHECKING:
    from stresstester._internal.config import RunConfig
    from stresstester.metrics.models import Outcome

logger = get_logger("engine.pool")


@dataclass
class PoolResult:
    """Result of a finished pool run.

    Attributes:
        outcomes: Closed channel holding exactly one Outcome per token.
        elapsed: Wall-clock seconds from dispatch until all workers exited.
        handled: Total number of tokens handled by the workers.
    """

    outcomes: Channel[Outcome]
    elapsed: float
    handled: int


class WorkerPool:
    """Owns the dispatcher and worker lifecycle for one run.

    Starts exactly ``config.concurrency`` workers sharing one aiohttp
    session, one outcome channel and one completed counter, waits for all
    of them to exit, then closes the outcome channel.

    Attributes:
        config: The run configuration.
    """

    def __init__(self, config: RunConfig) -> None:
        """Initialize the pool.

        Args:
            config: Validated run configuration.
        """
        self.config = config
        self.counter = CompletedCounter()

    def _create_session(self) -> aiohttp.ClientSession:
        """Create the session shared by all workers."""
        connector = aiohttp.TCPConnector(limit=max(self.config.concurrency, 100))
        return aiohttp.ClientSession(
            connector=connector,
            timeout=aiohttp.ClientTimeout(total=self.config.timeout),
        )

    async def run(self) -> PoolResult:
        """Dispatch all tokens and wait for every worker to finish.

        Returns:
            PoolResult with the closed outcome channel and timing.

        Raises:
            EngineError: If a worker crashed or the number of handled
                tokens differs from the configured request count.
        """
        total = self.config.requests
        outcomes: Channel[Outcome] = Channel(capacity=total)
        dispatcher = Dispatcher(total)

        async with self._create_session() as session:
            workers = [
                Worker(
                    worker_id=i + 1,
                    config=self.config,
                    dispatcher=dispatcher,
                    outcomes=outcomes,
                    counter=self.counter,
                    session=session,
                )
                for i in range(self.config.concurrency)
            ]

            start = time.monotonic()
            dispatcher.dispatch()
            tasks = [
                asyncio.create_task(worker.run(), name=f"stress-worker-{worker.worker_id}")
                for worker in workers
            ]
            logger.debug("Started %d workers for %d requests", len(tasks), total)

            try:
                counts = await asyncio.gather(*tasks)
            except Exception as exc:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise EngineError("Worker pool failed") from exc
            finally:
                elapsed = time.monotonic() - start
                outcomes.close()

        handled = sum(counts)
        if handled != total:
            msg = f"workers handled {handled} tokens, expected {total}"
            raise EngineError(msg)

        logger.debug("All %d workers finished in %.3fs", len(tasks), elapsed)
        return PoolResult(outcomes=outcomes, elapsed=elapsed, handled=handled)
