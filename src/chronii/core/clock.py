"""Clock source for live durations of running entries.

The clock holds a single "now" value that every duration computation in one
aggregation pass reads. It only ticks while at least one open entry is in view;
ticking is a cooperative scheduler callback, never a thread.
"""

import asyncio
import logging
from typing import Callable, Optional, Protocol

from chronii.core.models import now_ms

logger = logging.getLogger(__name__)

TickListener = Callable[[int], None]


class TimerHandle(Protocol):
    """Handle to a scheduled callback."""

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback later on the current thread."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class Clock:
    """Source of the current time for open-interval durations."""

    def __init__(
        self,
        time_source: Callable[[], int] = now_ms,
        scheduler: Optional[Scheduler] = None,
        interval: float = 1.0,
    ):
        """Initialize clock.

        Args:
            time_source: Returns the current time in epoch milliseconds
            scheduler: Runs the tick callback; without one the clock never
                ticks by itself and callers use refresh()
            interval: Seconds between ticks
        """
        self.time_source = time_source
        self._scheduler = scheduler
        self.interval = interval
        self._now = time_source()
        self._handle: Optional[TimerHandle] = None
        self._listeners: list[TickListener] = []

    @property
    def now(self) -> int:
        """The current clock value in epoch milliseconds."""
        return self._now

    @property
    def ticking(self) -> bool:
        """Whether a tick is currently scheduled."""
        return self._handle is not None

    def refresh(self) -> int:
        """Re-read the time source and return the new value."""
        self._now = self.time_source()
        return self._now

    def subscribe(self, listener: TickListener) -> Callable[[], None]:
        """Register a tick listener.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sync(self, any_open: bool) -> None:
        """Start or stop ticking based on whether any entry in view is open."""
        if any_open:
            self._start()
        else:
            self.stop()

    def _start(self) -> None:
        if self._handle is not None:
            return
        if self._scheduler is None:
            logger.debug("No scheduler attached; clock will not tick on its own")
            return
        self._schedule()
        logger.debug("Clock ticking started")

    def stop(self) -> None:
        """Cancel the pending tick, if any."""
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None
        logger.debug("Clock ticking stopped")

    def _schedule(self) -> None:
        assert self._scheduler is not None
        self._handle = self._scheduler.call_later(self.interval, self._tick)

    def _tick(self) -> None:
        self._handle = None
        now = self.refresh()
        # Rescheduled before notifying so a listener's sync(False) cancels it.
        self._schedule()
        for listener in list(self._listeners):
            listener(now)

    def __repr__(self) -> str:
        state = "ticking" if self.ticking else "idle"
        return f"<Clock now={self._now} {state}>"
