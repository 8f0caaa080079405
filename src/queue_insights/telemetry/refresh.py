"""
Refresh Coordination
====================

Serializes the results of overlapping dashboard refreshes. Every refresh
takes a generation number when it starts; when it finishes, its result is
committed only if no newer refresh has started since. A slow, late response
therefore can never overwrite the state produced by a newer one.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from ..log import get_logger

log = get_logger(__name__)

T = TypeVar("T")


class RefreshCoordinator(Generic[T]):
    """Holds the latest committed refresh result.

    Example:
        >>> coordinator = RefreshCoordinator()
        >>> await coordinator.refresh(fetch_dashboard)
        >>> coordinator.current
    """

    def __init__(self) -> None:
        self._generation = 0
        self.current: T | None = None
        self.last_error: Exception | None = None

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        """Start a refresh and return its generation token."""
        self._generation += 1
        return self._generation

    def is_current(self, token: int) -> bool:
        return token == self._generation

    def commit(self, token: int, result: T) -> bool:
        """Store a result if its refresh is still the newest one started.

        Returns:
            True if committed, False if the result was stale and dropped.
        """
        if not self.is_current(token):
            log.info("stale_refresh_dropped", token=token, latest=self._generation)
            return False
        self.current = result
        self.last_error = None
        return True

    async def refresh(self, fetch: Callable[[], Awaitable[T]]) -> bool:
        """Run one fetch and commit its result if it is still current.

        Errors from the newest refresh are kept in last_error and re-raised;
        errors from superseded refreshes are dropped with the refresh.
        """
        token = self.begin()
        try:
            result = await fetch()
        except Exception as e:
            if self.is_current(token):
                self.last_error = e
                raise
            log.info("stale_refresh_error_dropped", token=token, error=str(e))
            return False
        return self.commit(token, result)

    async def run_periodic(
        self,
        fetch: Callable[[], Awaitable[T]],
        stop: asyncio.Event,
        interval: float,
        on_update: Callable[[T], None] | None = None,
    ) -> None:
        """Refresh immediately, then every `interval` seconds until stopped.

        Args:
            fetch: Coroutine function producing a fresh result.
            stop: Set to end the loop after the current refresh.
            interval: Seconds between refreshes
                (DashboardConfig.polling_interval_seconds in production).
            on_update: Called with every committed result.

        A failing refresh is logged and the loop keeps polling.
        """
        while not stop.is_set():
            try:
                committed = await self.refresh(fetch)
            except Exception as e:
                log.error("periodic_refresh_failed", error=str(e))
            else:
                if committed and on_update is not None:
                    on_update(self.current)
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue
