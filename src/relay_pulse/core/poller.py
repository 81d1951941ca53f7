"""Periodic status poller.

Each iteration re-reads the externally owned interval, fetches the status
set, publishes it to subscribers and sleeps for the interval it read. A
changed interval therefore applies from the next scheduled fetch. Fetch
failures are logged and the previously published set stays current.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from datetime import datetime

from relay_pulse.core.exceptions import FetchError
from relay_pulse.types.aliases import StatusListener, StatusSet
from relay_pulse.types.protocols import IntervalControl, StatusSource
from relay_pulse.utils.logging import correlation_scope

__all__ = ["StatusPoller"]

logger = logging.getLogger(__name__)


class StatusPoller:
    """Fetch the status set on an adjustable interval and publish it."""

    def __init__(
        self,
        source: StatusSource,
        interval: IntervalControl,
        *,
        listeners: list[StatusListener] | None = None,
    ) -> None:
        self._source: StatusSource = source
        self._interval: IntervalControl = interval
        self._listeners: list[StatusListener] = list(listeners or [])
        self._latest: StatusSet | None = None
        self._last_update: datetime | None = None
        self._refreshing: bool = False
        self._shutdown_event: asyncio.Event = asyncio.Event()
        self._cycles: int = 0

    @property
    def latest(self) -> StatusSet | None:
        """Most recently published status set (None before the first success)."""
        return self._latest

    @property
    def last_update(self) -> datetime | None:
        """Local time of the last successful fetch."""
        return self._last_update

    @property
    def refreshing(self) -> bool:
        """True while a fetch is in flight."""
        return self._refreshing

    @property
    def cycles(self) -> int:
        """Number of completed poll iterations, successful or not."""
        return self._cycles

    def subscribe(self, listener: StatusListener) -> None:
        """Register a listener called with every published status set."""
        self._listeners.append(listener)

    def request_shutdown(self) -> None:
        """Stop the loop after the current iteration."""
        if self._shutdown_event.is_set():
            return
        logger.info("Shutdown requested for status poller")
        self._shutdown_event.set()

    async def poll_once(self) -> bool:
        """Fetch and publish one status set.

        Returns:
            True if a new status set was published
        """
        with correlation_scope("poll"):
            self._refreshing = True
            try:
                records = await self._source.fetch_status()
            except FetchError as exc:
                logger.warning(
                    "Status fetch failed, keeping previous status set",
                    extra={"error": str(exc), "stale": self._latest is not None},
                )
                return False
            except Exception:
                logger.exception("Status source raised unexpectedly, keeping previous status set")
                return False
            finally:
                self._refreshing = False
                self._cycles += 1

            status_set: StatusSet = tuple(records)
            self._latest = status_set
            self._last_update = datetime.now()
            logger.debug("Fetched status set", extra={"records": len(status_set)})
            await self._publish(status_set)
            return True

    async def _publish(self, status_set: StatusSet) -> None:
        for listener in self._listeners:
            try:
                result = listener(status_set)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Status listener failed")

    async def loop(self) -> None:
        """Poll until shutdown is requested."""
        self._shutdown_event.clear()
        logger.info("Starting status poll loop", extra={"interval_ms": self._interval.get_interval()})
        while not self._shutdown_event.is_set():
            interval_ms = self._interval.get_interval()
            _ = await self.poll_once()
            if self._shutdown_event.is_set():
                break
            with contextlib.suppress(TimeoutError):
                async with asyncio.timeout(interval_ms / 1000):
                    _ = await self._shutdown_event.wait()
        logger.info("Status poll loop stopped", extra={"cycles": self._cycles})
