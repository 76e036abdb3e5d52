"""Rate label formatting in K/M/G tiers.

Precision drops as the magnitude grows so the label stays around three
significant digits: 9.87 -> 98.7 -> 987 -> 1.23 (next unit).
"""

from __future__ import annotations

import enum
from decimal import ROUND_HALF_UP, Decimal

KILO = 1000
MEGA = KILO * KILO
GIGA = MEGA * KILO


class UnitMode(enum.IntEnum):
    BYTES = 0
    BITS = 1


BYTE_UNITS = {KILO: "KB/s", MEGA: "MB/s", GIGA: "GB/s"}
BIT_UNITS = {KILO: "Kb/s", MEGA: "Mb/s", GIGA: "Gb/s"}

# (lower bound, divisor, decimals, trim trailing zeros), checked high to low.
TIERS = [
    (GIGA, GIGA, 2, True),          # 0.##
    (100 * MEGA, MEGA, 0, False),   # ##0
    (10 * MEGA, MEGA, 1, False),    # #0.#
    (MEGA, MEGA, 2, True),          # 0.##
    (100 * KILO, KILO, 0, False),   # ##0
    (10 * KILO, KILO, 1, False),    # #0.#
    (0, KILO, 2, True),             # 0.##
]


def pick_tier(value: int) -> tuple[int, int, bool]:
    """Return (divisor, decimals, trim) for a rate already in display units."""
    for lower, divisor, decimals, trim in TIERS:
        if value >= lower:
            return divisor, decimals, trim
    _, divisor, decimals, trim = TIERS[-1]
    return divisor, decimals, trim


def format_decimal(value: Decimal, decimals: int, trim: bool) -> str:
    """Round half away from zero to ``decimals`` places."""
    quantum = Decimal(1).scaleb(-decimals)
    text = f"{value.quantize(quantum, rounding=ROUND_HALF_UP):f}"
    if trim and "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_rate(rate: int, unit_mode: UnitMode = UnitMode.BYTES) -> tuple[str, str]:
    """Format a bytes/sec rate into (value, unit), e.g. ("1.5", "GB/s")."""
    rate = max(0, int(rate))
    if unit_mode == UnitMode.BITS:
        rate *= 8
        units = BIT_UNITS
    else:
        units = BYTE_UNITS
    divisor, decimals, trim = pick_tier(rate)
    value = format_decimal(Decimal(rate) / Decimal(divisor), decimals, trim)
    return value, units[divisor]
