"""Cumulative byte counters read from /proc/net/dev."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

PROC_NET_DEV = "/proc/net/dev"


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class ByteCounterSnapshot:
    """Totals since boot, stamped with a monotonic time in milliseconds."""
    rx_total: int
    tx_total: int
    timestamp_ms: float


class ByteCounterSource(ABC):
    """Anything that can report system-wide rx/tx byte totals."""

    @abstractmethod
    def snapshot(self) -> ByteCounterSnapshot:
        """Return the current cumulative totals."""


class ProcNetDevSource(ByteCounterSource):
    """Sum RX/TX bytes across non-loopback interfaces from /proc/net/dev."""

    def __init__(self, interface: str | None = None,
                 exclude: set[str] | frozenset[str] = frozenset(),
                 path: str = PROC_NET_DEV,
                 clock: Callable[[], float] = monotonic_ms):
        self._interface = interface
        self._excludes = set(exclude)
        self._path = path
        self._clock = clock

    def snapshot(self) -> ByteCounterSnapshot:
        rx, tx = self._read_bytes()
        return ByteCounterSnapshot(rx_total=rx, tx_total=tx, timestamp_ms=self._clock())

    def _read_bytes(self) -> tuple[int, int]:
        rx_total, tx_total = 0, 0
        try:
            f = open(self._path)
        except FileNotFoundError:
            raise RuntimeError(
                f"Network counters not found at {self._path}. "
                "This source only works on Linux."
            ) from None
        with f:
            for line in f:
                if ":" not in line:
                    continue
                iface, data = line.split(":", 1)
                iface = iface.strip()
                if iface == "lo":
                    continue
                if self._interface and iface != self._interface:
                    continue
                if iface in self._excludes:
                    continue
                parts = data.split()
                if len(parts) < 9:
                    continue
                rx_total += int(parts[0])   # receive bytes
                tx_total += int(parts[8])   # transmit bytes
        return rx_total, tx_total


def parse_excludes(raw: str) -> set[str]:
    """Split a comma-separated NIC list (e.g. "virbr0,tailscale0")."""
    return set(x.strip() for x in raw.split(",") if x.strip())
