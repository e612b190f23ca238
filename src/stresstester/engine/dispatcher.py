"""Work token dispatch for the worker pool."""

from __future__ import annotations

from dataclasses import dataclass

from stresstester._internal.errors import ChannelClosedError, EngineError
from stresstester._internal.logging import get_logger
from stresstester.engine.channel import Channel

logger = get_logger("engine.dispatcher")


@dataclass(frozen=True)
class WorkToken:
    """Permission and obligation to perform exactly one request."""


class Dispatcher:
    """Produces a fixed number of work tokens for the workers to claim.

    All tokens are enqueued at once into a channel sized to the token count,
    so dispatching never waits on slow workers. The channel is closed right
    after, which lets workers tell "no token yet" from "no tokens left".

    Attributes:
        total: Number of tokens this dispatcher produces.
    """

    def __init__(self, total: int) -> None:
        """Initialize the dispatcher.

        Args:
            total: Number of tokens to produce. Must be >= 1.
        """
        self.total = total
        self._channel: Channel[WorkToken] = Channel(capacity=total)
        self._dispatched = 0

    @property
    def dispatched(self) -> int:
        """Return the number of tokens produced so far."""
        return self._dispatched

    def dispatch(self) -> None:
        """Enqueue all tokens and close the channel.

        Raises:
            EngineError: If called more than once.
        """
        if self._channel.closed:
            msg = "tokens have already been dispatched"
            raise EngineError(msg)

        token = WorkToken()
        for _ in range(self.total):
            self._channel.put_nowait(token)
            self._dispatched += 1
        self._channel.close()
        logger.debug("Dispatched %d work tokens", self._dispatched)

    async def claim(self) -> bool:
        """Claim one token.

        Returns:
            True if a token was claimed, False once all tokens are gone.
        """
        try:
            await self._channel.receive()
        except ChannelClosedError:
            return False
        return True
