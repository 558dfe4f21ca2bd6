"""
Single-flight request coalescing.

Concurrent calls for the same key share one underlying operation: the
first caller starts it, later callers await the same future until it
settles. The key is released as soon as the operation finishes, so a
later call starts a fresh operation.
"""

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

from loguru import logger


T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Keyed map of in-flight operations."""

    def __init__(self, name: str = "single_flight") -> None:
        self.name = name
        self._inflight: dict[Hashable, asyncio.Future[T]] = {}

    def is_pending(self, key: Hashable) -> bool:
        """Check whether an operation for ``key`` is outstanding."""
        return key in self._inflight

    def pending_keys(self) -> list[Hashable]:
        return list(self._inflight)

    async def run(
        self, key: Hashable, operation: Callable[[], Awaitable[T]]
    ) -> T:
        """
        Run ``operation`` for ``key`` or join the one already running.

        Args:
            key: Coalescing key
            operation: Zero-argument coroutine factory

        Returns:
            The operation's result (shared by all joined callers)

        Raises:
            Exception: Whatever the operation raised, for every caller
        """
        existing = self._inflight.get(key)
        if existing is not None:
            logger.debug(
                "Joining in-flight operation",
                extra={"flight": self.name, "key": str(key)},
            )
            # shield: a cancelled joiner must not cancel the shared operation
            return await asyncio.shield(existing)

        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()
        self._inflight[key] = future
        try:
            result = await operation()
        except BaseException as exc:
            if not future.done():
                if isinstance(exc, asyncio.CancelledError):
                    future.cancel()
                else:
                    future.set_exception(exc)
                    # Joiners re-raise it; mark retrieved for the leader
                    future.exception()
            raise
        else:
            if not future.done():
                future.set_result(result)
            return result
        finally:
            self._inflight.pop(key, None)
