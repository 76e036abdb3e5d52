"""Show/hide decision for the indicator."""

from __future__ import annotations

from netindicator.formatting import KILO

AUTOHIDE_THRESHOLD = 10 * KILO  # bytes/sec


def is_above_threshold(rx_rate: int, tx_rate: int,
                       threshold: int = AUTOHIDE_THRESHOLD) -> bool:
    return tx_rate > threshold or rx_rate > threshold


def decide_visible(enabled: bool, connection_available: bool, auto_hide: bool,
                   above_threshold: bool, lock_screen_showing: bool,
                   has_text: bool) -> bool:
    return (enabled
            and not lock_screen_showing
            and has_text
            and (not auto_hide or above_threshold)
            and connection_available)
