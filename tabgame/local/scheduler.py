from __future__ import annotations

import heapq
from collections import deque
from typing import Callable, Deque, List, Protocol, Tuple

Callback = Callable[[], None]


class CallbackQueue:
    """FIFO of callbacks gated by a busy flag (the stick-flip animation).

    While busy, ``run_after_settle`` defers; ``settle`` clears the flag and
    drains in order. A callback that marks the queue busy again stops the
    drain, and the rest wait for the next ``settle``.
    """

    def __init__(self) -> None:
        self.busy = False
        self._queue: Deque[Callback] = deque()

    def begin(self) -> None:
        self.busy = True

    def run_after_settle(self, callback: Callback) -> None:
        if self.busy:
            self._queue.append(callback)
            return
        callback()

    def settle(self) -> None:
        self.busy = False
        while self._queue and not self.busy:
            self._queue.popleft()()

    def __len__(self) -> int:
        return len(self._queue)


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callback) -> None: ...


class ImmediateScheduler:
    """Runs callbacks right away, ignoring delays.

    Nested calls are trampolined so a long CPU chain does not grow the stack.
    """

    def __init__(self) -> None:
        self.elapsed_ms = 0
        self._pending: Deque[Callback] = deque()
        self._running = False

    def call_later(self, delay_ms: int, callback: Callback) -> None:
        self.elapsed_ms += delay_ms
        self._pending.append(callback)
        if self._running:
            return
        self._running = True
        try:
            while self._pending:
                self._pending.popleft()()
        finally:
            self._running = False


class ManualScheduler:
    """Virtual clock for step-driven tests: nothing runs until ``advance``."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._seq = 0
        self._timers: List[Tuple[int, int, Callback]] = []

    @property
    def pending(self) -> int:
        return len(self._timers)

    def call_later(self, delay_ms: int, callback: Callback) -> None:
        self._seq += 1
        heapq.heappush(self._timers, (self.now_ms + max(0, delay_ms), self._seq, callback))

    def advance(self, ms: int) -> int:
        """Move the clock forward, firing due timers in order. Returns how many fired."""
        target = self.now_ms + ms
        fired = 0
        while self._timers and self._timers[0][0] <= target:
            due, _, callback = heapq.heappop(self._timers)
            self.now_ms = due
            callback()
            fired += 1
        self.now_ms = target
        return fired

    def run_all(self, limit: int = 10_000) -> int:
        fired = 0
        while self._timers and fired < limit:
            due, _, callback = heapq.heappop(self._timers)
            self.now_ms = max(self.now_ms, due)
            callback()
            fired += 1
        return fired
