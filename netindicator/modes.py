"""Display mode selection from rx/tx magnitudes."""

from __future__ import annotations

import enum


class DisplayMode(enum.Enum):
    IDLE = "idle"
    UPSTREAM_ONLY = "up"
    DOWNSTREAM_ONLY = "down"
    BOTH = "both"


def resolve_mode(rx_rate: int, tx_rate: int) -> tuple[DisplayMode, int]:
    """Pick the dominant direction and the rate to show for it.

    Equal rates (zero included) resolve to BOTH with the downstream value.
    """
    if tx_rate > rx_rate:
        return DisplayMode.UPSTREAM_ONLY, tx_rate
    if tx_rate < rx_rate:
        return DisplayMode.DOWNSTREAM_ONLY, rx_rate
    return DisplayMode.BOTH, rx_rate


def icon_mode(rx_rate: int, tx_rate: int) -> DisplayMode:
    """Mode used for the icon: IDLE when nothing moved at all."""
    if rx_rate == 0 and tx_rate == 0:
        return DisplayMode.IDLE
    mode, _ = resolve_mode(rx_rate, tx_rate)
    return mode
