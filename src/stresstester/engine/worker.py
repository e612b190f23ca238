"""Worker loop: claim a token, send one request, record its outcome."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import aiohttp
from yarl import URL

from stresstester._internal.errors import RequestBuildError
from stresstester._internal.logging import get_logger
from stresstester.metrics.models import Outcome

if TYPE_CHECKING:
    from stresstester._internal.config import RunConfig
    from stresstester._internal.types import Headers
    from stresstester.engine.channel import Channel
    from stresstester.engine.dispatcher import Dispatcher

logger = get_logger("engine.worker")

# RFC 9110 token characters, used for methods and header names.
_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


class CompletedCounter:
    """Running count of completed requests, shared by all workers.

    Only used for progress lines. Workers share one event loop thread,
    so ``increment`` cannot interleave with another increment.
    """

    def __init__(self) -> None:
        """Initialize the counter at zero."""
        self._value = 0

    @property
    def value(self) -> int:
        """Return the current count."""
        return self._value

    def increment(self) -> int:
        """Add one and return the new count."""
        self._value += 1
        return self._value


@dataclass(frozen=True)
class PreparedRequest:
    """Validated request parameters ready to hand to aiohttp.

    Attributes:
        method: Upper-cased HTTP method.
        url: Parsed absolute http(s) URL.
        headers: Headers to send.
        data: Encoded body, or None when the body is empty.
    """

    method: str
    url: URL
    headers: Headers
    data: bytes | None


def build_request(config: RunConfig) -> PreparedRequest:
    """Build the request described by the run configuration.

    Args:
        config: The run configuration.

    Returns:
        A PreparedRequest.

    Raises:
        RequestBuildError: If the method, URL, headers or body are malformed.
    """
    if not _TOKEN_RE.match(config.method):
        msg = f"invalid HTTP method: {config.method!r}"
        raise RequestBuildError(msg)

    try:
        url = URL(config.url)
    except (TypeError, ValueError) as exc:
        msg = f"invalid URL {config.url!r}: {exc}"
        raise RequestBuildError(msg) from exc

    if url.scheme not in ("http", "https") or not url.host:
        msg = f"URL must be absolute http(s) with a host, got: {config.url!r}"
        raise RequestBuildError(msg)

    for key, value in config.headers.items():
        if not _TOKEN_RE.match(key):
            msg = f"invalid header name: {key!r}"
            raise RequestBuildError(msg)
        if "\r" in value or "\n" in value:
            msg = f"header {key!r} contains a line break"
            raise RequestBuildError(msg)

    data = None
    if config.body:
        try:
            data = config.body.encode("utf-8")
        except UnicodeEncodeError as exc:
            msg = f"body is not valid UTF-8 text: {exc}"
            raise RequestBuildError(msg) from exc

    return PreparedRequest(
        method=config.method,
        url=url,
        headers=dict(config.headers),
        data=data,
    )


class Worker:
    """Claims work tokens until none are left and sends one request per token.

    A failed request never stops the worker: it is recorded as a failed
    outcome and the loop moves on to the next token.

    Attributes:
        worker_id: 1-based worker identifier shown in progress lines.
    """

    def __init__(
        self,
        worker_id: int,
        config: RunConfig,
        dispatcher: Dispatcher,
        outcomes: Channel[Outcome],
        counter: CompletedCounter,
        session: aiohttp.ClientSession,
    ) -> None:
        """Initialize the worker.

        Args:
            worker_id: Worker identifier for logging.
            config: Shared, read-only run configuration.
            dispatcher: Source of work tokens.
            outcomes: Channel receiving one Outcome per token.
            counter: Shared completed-request counter.
            session: Shared aiohttp session with the request timeout set.
        """
        self.worker_id = worker_id
        self._config = config
        self._dispatcher = dispatcher
        self._outcomes = outcomes
        self._counter = counter
        self._session = session

    async def run(self) -> int:
        """Process tokens until the dispatcher is exhausted.

        Returns:
            Number of tokens this worker handled.
        """
        handled = 0
        while await self._dispatcher.claim():
            outcome = await self._attempt()
            self._outcomes.put_nowait(outcome)
            handled += 1
            self._report_progress(outcome)

        logger.debug("Worker %d: no tokens left, handled %d", self.worker_id, handled)
        return handled

    async def _attempt(self) -> Outcome:
        """Build and send one request, classifying the result."""
        try:
            request = build_request(self._config)
        except RequestBuildError as exc:
            logger.error("Worker %d: Failed to create request: %s", self.worker_id, exc)
            return Outcome.failed(str(exc))

        try:
            async with self._session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.data,
            ) as resp:
                # Drain so the connection goes back to the pool.
                await resp.read()
                return Outcome.status(resp.status)
        except (aiohttp.ClientError, TimeoutError, ValueError) as exc:
            error = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
            logger.error("Worker %d: Request failed: %s", self.worker_id, error)
            return Outcome.failed(error)

    def _report_progress(self, outcome: Outcome) -> None:
        current = self._counter.increment()
        level = logging.WARNING if outcome.is_error else logging.INFO
        logger.log(
            level,
            "Worker %d: Completed request %d/%d with status: %s (%s)",
            self.worker_id,
            current,
            self._config.requests,
            "timeout" if outcome.is_failed else outcome.code,
            "FAIL" if outcome.is_error else "PASS",
        )
