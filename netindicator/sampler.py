"""Rate sampling from two consecutive counter snapshots.

Only one prior snapshot is kept. A tick that fires too early is skipped
without advancing the baseline, so a short interval never produces a spike.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from netindicator.counters import ByteCounterSnapshot, ByteCounterSource

DEFAULT_INTERVAL_MS = 2000
DRIFT_TOLERANCE = 0.95


@dataclass(frozen=True)
class RateSample:
    rx_rate: int = 0
    tx_rate: int = 0


IDLE_SAMPLE = RateSample()


def _rate(delta: int, elapsed_ms: float) -> int:
    if delta <= 0:
        return 0
    return int(math.floor(delta / (elapsed_ms / 1000.0) + 0.5))


def compute_rates(previous: Optional[ByteCounterSnapshot],
                  now: ByteCounterSnapshot,
                  min_interval_ms: float) -> Optional[RateSample]:
    """Return rates between two snapshots, or None to skip this tick.

    None means either there is no baseline yet or the interval is shorter
    than the drift tolerance allows. Counters that went backwards count as
    zero traffic for that direction.
    """
    if previous is None:
        return None
    elapsed_ms = now.timestamp_ms - previous.timestamp_ms
    if elapsed_ms <= 0 or elapsed_ms < min_interval_ms * DRIFT_TOLERANCE:
        return None
    rx_delta = max(0, now.rx_total - previous.rx_total)
    tx_delta = max(0, now.tx_total - previous.tx_total)
    return RateSample(rx_rate=_rate(rx_delta, elapsed_ms),
                      tx_rate=_rate(tx_delta, elapsed_ms))


class RateSampler:
    """Owns the baseline snapshot and turns counter reads into rates."""

    def __init__(self, source: ByteCounterSource,
                 min_interval_ms: float = DEFAULT_INTERVAL_MS):
        self._source = source
        self.min_interval_ms = min_interval_ms
        self._baseline: Optional[ByteCounterSnapshot] = None

    @property
    def baseline(self) -> Optional[ByteCounterSnapshot]:
        return self._baseline

    def sample(self) -> Optional[RateSample]:
        now = self._source.snapshot()
        if self._baseline is None:
            self._baseline = now
            return None
        result = compute_rates(self._baseline, now, self.min_interval_ms)
        if result is not None:
            self._baseline = now
        return result

    def reset(self) -> None:
        self._baseline = None
