"""Shared fakes for the indicator tests.

Also puts the project root on ``sys.path`` so ``import netindicator`` works
when pytest runs from any directory.
"""

import os
import sys

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from netindicator.config import Config
from netindicator.controller import IndicatorController
from netindicator.counters import ByteCounterSnapshot, ByteCounterSource
from netindicator.render import RenderSink
from netindicator.sampler import RateSampler
from netindicator.timers import TimerSlots


class ManualScheduler:
    """Virtual-time stand-in for ``EventLoop.call_later``/``cancel``."""

    def __init__(self):
        self.now = 0.0
        self._pending = {}
        self._next_token = 1

    def call_later(self, delay_ms, callback):
        token = self._next_token
        self._next_token += 1
        self._pending[token] = (self.now + delay_ms, token, callback)
        return token

    def cancel(self, token):
        self._pending.pop(token, None)

    def pending_count(self):
        return len(self._pending)

    def advance(self, ms):
        target = self.now + ms
        while True:
            due = [entry for entry in self._pending.values() if entry[0] <= target]
            if not due:
                break
            deadline, token, callback = min(due)
            del self._pending[token]
            self.now = deadline
            callback()
        self.now = target


class FakeCounters(ByteCounterSource):
    def __init__(self, scheduler):
        self._scheduler = scheduler
        self.rx = 0
        self.tx = 0

    def snapshot(self):
        return ByteCounterSnapshot(rx_total=self.rx, tx_total=self.tx,
                                   timestamp_ms=self._scheduler.now)


class RecordingSink(RenderSink):
    def __init__(self):
        self.calls = []

    def set_text(self, value, unit):
        self.calls.append(("text", value, unit))

    def set_icon(self, mode):
        self.calls.append(("icon", mode))

    def set_tint(self, color):
        self.calls.append(("tint", color))

    def set_visible(self, visible):
        self.calls.append(("visible", visible))

    def clear(self):
        self.calls = []


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def counters(scheduler):
    return FakeCounters(scheduler)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_controller(scheduler, counters, sink):
    def _make(config=None, **sources):
        return IndicatorController(
            sampler=RateSampler(counters, min_interval_ms=2000),
            sink=sink,
            timers=TimerSlots(scheduler.call_later, scheduler.cancel),
            config=config or Config(),
            **sources,
        )
    return _make
