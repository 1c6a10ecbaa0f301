"""
Cooperative timer facility.

Every callback runs on a single timeline: ThreadedScheduler uses one worker
thread that fires due timers one after another, VirtualScheduler fires them
from advance() on the caller's thread with a manual clock. Nothing here ever
runs two callbacks at once.
"""

import heapq
import itertools
import logging
import threading
import time
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    """A pending callback. cancel() is idempotent and safe from any thread."""

    __slots__ = ("due", "seq", "callback", "name", "cancelled", "fired")

    def __init__(self, due: float, seq: int, callback: Callable[[], None], name: str = "") -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.name = name
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def __lt__(self, other: "TimerHandle") -> bool:
        return (self.due, self.seq) < (other.due, other.seq)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "fired" if self.fired else "pending"
        return f"<TimerHandle {self.name or '?'} due={self.due:.3f} {state}>"


class Scheduler:
    """Interface shared by both schedulers."""

    def __init__(self) -> None:
        self._heap: List[TimerHandle] = []
        self._seq = itertools.count()

    def now(self) -> float:
        raise NotImplementedError

    def call_later(self, delay: float, callback: Callable[[], None], name: str = "") -> TimerHandle:
        handle = TimerHandle(self.now() + max(0.0, delay), next(self._seq), callback, name)
        self._push(handle)
        return handle

    def _push(self, handle: TimerHandle) -> None:
        heapq.heappush(self._heap, handle)

    def pending(self, name: Optional[str] = None) -> List[TimerHandle]:
        """Live timers, earliest first; optionally only those with a given name."""
        live = sorted(h for h in list(self._heap) if h.pending)
        if name is not None:
            live = [h for h in live if h.name == name]
        return live

    @staticmethod
    def _run(handle: TimerHandle) -> None:
        if handle.cancelled:
            return
        handle.fired = True
        try:
            handle.callback()
        except Exception:
            logger.exception(f"Timer callback {handle.name or handle.callback!r} failed")


class ThreadedScheduler(Scheduler):
    """
    Real-time scheduler backed by one daemon worker thread.

    Callbacks must not block; anything slow (audio playback) is handed off
    fire-and-forget by the collaborator itself.
    """

    def __init__(self, name: str = "strike-trainer-timers") -> None:
        super().__init__()
        self._cond = threading.Condition()
        self._stopping = False
        self._thread = threading.Thread(target=self._worker, name=name, daemon=True)
        self._thread.start()

    def now(self) -> float:
        return time.monotonic()

    def _push(self, handle: TimerHandle) -> None:
        with self._cond:
            heapq.heappush(self._heap, handle)
            self._cond.notify()

    def pending(self, name: Optional[str] = None) -> List[TimerHandle]:
        with self._cond:
            return super().pending(name)

    def _worker(self) -> None:
        logger.debug("Timer worker started")
        while True:
            with self._cond:
                while not self._stopping:
                    while self._heap and self._heap[0].cancelled:
                        heapq.heappop(self._heap)
                    if not self._heap:
                        self._cond.wait()
                        continue
                    wait = self._heap[0].due - self.now()
                    if wait <= 0:
                        break
                    self._cond.wait(timeout=wait)
                if self._stopping:
                    break
                handle = heapq.heappop(self._heap)
            self._run(handle)
        logger.debug("Timer worker stopped")

    def shutdown(self, timeout: float = 2.0) -> None:
        """Drop all pending timers and stop the worker thread."""
        with self._cond:
            self._stopping = True
            for handle in self._heap:
                handle.cancel()
            self._heap.clear()
            self._cond.notify_all()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)


class VirtualScheduler(Scheduler):
    """
    Manually driven clock for tests and dry runs.

    Example:
        sched = VirtualScheduler()
        sched.call_later(1.5, fn)
        sched.advance(2)   # fn runs with now() == 1.5
    """

    def __init__(self, start: float = 0.0) -> None:
        super().__init__()
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every timer that comes due. Returns the count fired."""
        target = self._now + max(0.0, seconds)
        fired = 0
        while True:
            while self._heap and self._heap[0].cancelled:
                heapq.heappop(self._heap)
            if not self._heap or self._heap[0].due > target:
                break
            handle = heapq.heappop(self._heap)
            self._now = max(self._now, handle.due)
            self._run(handle)
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, limit: float = 86400.0) -> float:
        """Fire timers until none are left (or ``limit`` seconds pass). Returns the new now()."""
        deadline = self._now + limit
        while True:
            live = self.pending()
            if not live or live[0].due > deadline:
                break
            self.advance(live[0].due - self._now)
        return self._now

    def shutdown(self, timeout: float = 0.0) -> None:
        for handle in self._heap:
            handle.cancel()
        self._heap.clear()
