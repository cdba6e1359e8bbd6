"""
Discrete-event scheduler module.

The combat engine paces its turns with short animation windows. Instead of
wall-clock timers every delay is an event on this scheduler, which is driven
explicitly: the UI advances it in real time, while tests and the CLI
fast-forward it synchronously.
"""

import heapq
import itertools
from typing import Callable

from pydantic import BaseModel, Field

from core.logging import log_debug


class ScheduledEvent(BaseModel):
    """A callback waiting to fire at a given scheduler time."""

    handle: int = Field(description="Identifier used to cancel the event.")
    due: int = Field(description="Scheduler time, in ms, at which the event fires.")
    callback: Callable[[], None] = Field(description="The function to invoke.")
    cancelled: bool = Field(default=False, description="True once cancelled.")


class Scheduler:
    """
    A single-threaded timer queue.

    Events fire in time order; events due at the same time fire in the order
    they were scheduled. Callbacks may schedule further events, including
    zero-delay ones, which fire within the same `advance` call.
    """

    def __init__(self) -> None:
        self._now: int = 0
        self._queue: list[tuple[int, int, ScheduledEvent]] = []
        self._counter = itertools.count()

    @property
    def now(self) -> int:
        """The current scheduler time, in ms."""
        return self._now

    @property
    def pending(self) -> int:
        """The number of events still waiting to fire."""
        return sum(1 for _, _, event in self._queue if not event.cancelled)

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> int:
        """
        Schedules a callback to fire after the given delay.

        Args:
            delay_ms (int): The delay in milliseconds, negative values count as 0.
            callback (Callable[[], None]): The function to invoke.

        Returns:
            int: A handle that can be passed to `cancel`.

        """
        seq = next(self._counter)
        event = ScheduledEvent(
            handle=seq,
            due=self._now + max(0, int(delay_ms)),
            callback=callback,
        )
        heapq.heappush(self._queue, (event.due, seq, event))
        return seq

    def cancel(self, handle: int) -> bool:
        """Cancels a pending event. Returns False if it is not pending."""
        for _, _, event in self._queue:
            if event.handle == handle and not event.cancelled:
                event.cancelled = True
                return True
        return False

    def clear(self) -> None:
        """Drops every pending event without firing it."""
        self._queue.clear()

    def advance(self, ms: int) -> int:
        """
        Moves time forward, firing every event that becomes due.

        Args:
            ms (int): How far to move time forward, in milliseconds.

        Returns:
            int: The number of callbacks fired.

        """
        target = self._now + max(0, int(ms))
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, event = heapq.heappop(self._queue)
            if event.cancelled:
                continue
            self._now = due
            event.callback()
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, max_events: int = 10_000) -> int:
        """
        Fires events in order until nothing is pending.

        Args:
            max_events (int): Safety limit on the number of callbacks fired.

        Returns:
            int: The number of callbacks fired.

        """
        fired = 0
        while self._queue and fired < max_events:
            due, _, event = heapq.heappop(self._queue)
            if event.cancelled:
                continue
            self._now = max(self._now, due)
            event.callback()
            fired += 1
        if self._queue and fired >= max_events:
            log_debug(
                "Scheduler stopped before becoming idle",
                {"fired": fired, "pending": self.pending},
            )
        return fired
