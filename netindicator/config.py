"""Indicator settings and the string-keyed values that update them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from netindicator.formatting import UnitMode

KEY_ENABLED = "networktraffic.enabled"
KEY_AUTOHIDE = "networktraffic.autohide"
KEY_UNIT_TYPE = "networktraffic.unittype"


def parse_integer(value: Any, default: int) -> int:
    """Parse an integer setting; None or garbage yields ``default``."""
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def parse_integer_switch(value: Any, default: bool) -> bool:
    """Parse an on/off setting stored as an integer ("0" off, anything else on)."""
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    return parse_integer(value, int(default)) != 0


@dataclass
class Config:
    enabled: bool = False
    auto_hide: bool = False
    unit_mode: UnitMode = UnitMode.BYTES

    def apply(self, key: str, value: Any) -> Optional[str]:
        """Update the matching field; return the key if it was recognised."""
        if key == KEY_ENABLED:
            self.enabled = parse_integer_switch(value, False)
        elif key == KEY_AUTOHIDE:
            self.auto_hide = parse_integer_switch(value, False)
        elif key == KEY_UNIT_TYPE:
            unit = parse_integer(value, 0)
            self.unit_mode = UnitMode.BYTES if unit == 0 else UnitMode.BITS
        else:
            return None
        return key
