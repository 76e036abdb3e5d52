"""Single-threaded timer plumbing.

``EventLoop`` runs one-shot callbacks in deadline order on the calling
thread. ``TimerSlots`` keeps at most one pending handle per timer kind on
top of any ``schedule``/``cancel`` pair, so rescheduling a kind always drops
its previous handle first.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from typing import Callable, Dict, Optional

ScheduleFn = Callable[[float, Callable[[], None]], int]
CancelFn = Callable[[int], None]


class TimerSlots:
    """One cancellable timer per kind."""

    def __init__(self, schedule: ScheduleFn, cancel: CancelFn) -> None:
        """Store schedule/cancel functions.

        Args:
            schedule: Function compatible with ``call_later(delay_ms, callback)``.
            cancel: Function compatible with ``cancel(token)``.
        """
        self._schedule = schedule
        self._cancel = cancel
        self._tokens: Dict[str, int] = {}

    def schedule(self, kind: str, delay_ms: float, callback: Callable[[], None]) -> None:
        """Cancel any pending timer of ``kind`` and start a new one."""
        self.cancel(kind)

        def fire() -> None:
            if self._tokens.get(kind) == token:
                del self._tokens[kind]
            callback()

        token = self._schedule(max(0.0, float(delay_ms)), fire)
        self._tokens[kind] = token

    def cancel(self, kind: str) -> None:
        token = self._tokens.pop(kind, None)
        if token is not None:
            self._cancel(token)

    def cancel_all(self) -> None:
        for kind in list(self._tokens):
            self.cancel(kind)

    def pending(self, kind: str) -> bool:
        return kind in self._tokens


class EventLoop:
    """Deadline-ordered one-shot callbacks, run on the current thread."""

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep) -> None:
        self._clock = clock
        self._sleep = sleep
        self._queue: list[tuple[float, int, Callable[[], None]]] = []
        self._cancelled: set[int] = set()
        self._counter = itertools.count(1)
        self._running = False
        self._log = logging.getLogger(__name__)

    def now_ms(self) -> float:
        return self._clock() * 1000.0

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> int:
        token = next(self._counter)
        deadline = self.now_ms() + max(0.0, delay_ms)
        heapq.heappush(self._queue, (deadline, token, callback))
        return token

    def cancel(self, token: int) -> None:
        if any(entry[1] == token for entry in self._queue):
            self._cancelled.add(token)

    def pending_count(self) -> int:
        return sum(1 for _, token, _ in self._queue if token not in self._cancelled)

    def run_due(self, now: Optional[float] = None) -> int:
        """Run every callback due at ``now`` (default: the clock); return how many ran."""
        ran = 0
        if now is None:
            now = self.now_ms()
        while self._queue and self._queue[0][0] <= now:
            _, token, callback = heapq.heappop(self._queue)
            if token in self._cancelled:
                self._cancelled.discard(token)
                continue
            callback()
            ran += 1
        return ran

    def next_deadline(self) -> Optional[float]:
        while self._queue and self._queue[0][1] in self._cancelled:
            _, token, _ = heapq.heappop(self._queue)
            self._cancelled.discard(token)
        if not self._queue:
            return None
        return self._queue[0][0]

    def run(self) -> None:
        """Blocking loop until stop() is called or nothing is left to run."""
        self._running = True
        try:
            while self._running:
                deadline = self.next_deadline()
                if deadline is None:
                    self._log.debug("No pending timers, leaving event loop")
                    break
                wait_ms = deadline - self.now_ms()
                if wait_ms > 0:
                    self._sleep(wait_ms / 1000.0)
                self.run_due(max(self.now_ms(), deadline))
        finally:
            self._running = False

    def stop(self) -> None:
        self._running = False
