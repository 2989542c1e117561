"""
Cooperative timers for the game engine.

Everything runs on one thread. The pygame loop feeds real elapsed
milliseconds into Scheduler.advance() every frame; tests feed virtual time.
"""
import heapq
import itertools
from typing import Callable, List, Optional, Tuple


class TimerHandle:
    """A scheduled callback that can be cancelled until it fires."""

    def __init__(self, due_ms: int, callback: Callable[[], None]):
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        """Cancel the callback. Safe to call more than once."""
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def __repr__(self):
        return f"TimerHandle(due_ms={self.due_ms}, cancelled={self.cancelled}, fired={self.fired})"


class Scheduler:
    """
    Millisecond scheduler driven by explicit calls to advance().

    Callbacks run in due-time order; callbacks due at the same instant run in
    the order they were scheduled.
    """

    def __init__(self):
        self.now = 0
        self._queue: List[Tuple[int, int, TimerHandle]] = []
        self._counter = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """
        Schedule callback to run delay_ms milliseconds from now.

        Args:
            delay_ms: Delay in milliseconds (negative values count as 0)
            callback: Zero-argument callable

        Returns:
            Handle that can cancel the callback
        """
        handle = TimerHandle(self.now + max(0, int(delay_ms)), callback)
        heapq.heappush(self._queue, (handle.due_ms, next(self._counter), handle))
        return handle

    def advance(self, elapsed_ms: int) -> int:
        """
        Move time forward and run every callback that falls due.

        Args:
            elapsed_ms: Milliseconds that have passed

        Returns:
            Number of callbacks that ran
        """
        target = self.now + max(0, int(elapsed_ms))
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = due
            handle.fired = True
            handle.callback()
            ran += 1
        self.now = target
        return ran

    @property
    def pending(self) -> int:
        """Number of callbacks still waiting to run."""
        return sum(1 for _, _, handle in self._queue if handle.active)

    def cancel_all(self) -> None:
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()


class GameClock:
    """
    Repeating one-second ticker owned by a single session.

    start() always reinitializes the ticker; a stopped clock never ticks again
    until it is started again.
    """

    def __init__(self, scheduler: Scheduler, on_tick: Callable[[], None], interval_ms: int = 1000):
        self.scheduler = scheduler
        self.on_tick = on_tick
        self.interval_ms = interval_ms
        self._handle: Optional[TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None and self._handle.active

    def start(self) -> None:
        self.stop()
        self._schedule()

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self) -> None:
        self._handle = self.scheduler.call_later(self.interval_ms, self._fire)

    def _fire(self) -> None:
        # Reschedule before ticking so that on_tick can stop the clock
        self._schedule()
        self.on_tick()
