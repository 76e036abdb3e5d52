"""Root logger setup for the terminal indicator.

The status line owns stdout, so log records always go to stderr. The
``NETINDICATOR_LOG_LEVEL`` environment variable overrides ``--log-level``.
"""

from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LEVEL_ENV_VAR = "NETINDICATOR_LOG_LEVEL"


def parse_level(name: str | int | None, default: int = logging.WARNING) -> int:
    """Map ``"debug"``, ``"10"`` or ``logging.DEBUG`` to a level number."""
    if isinstance(name, int):
        return name
    text = (name or "").strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else default


def configure_root(level: str | int = logging.WARNING) -> int:
    """Send records at ``level`` and above to stderr; return the level used."""
    effective = parse_level(os.environ.get(LEVEL_ENV_VAR) or level)
    logging.basicConfig(format=LOG_FORMAT, datefmt="%H:%M:%S", stream=sys.stderr)
    logging.getLogger().setLevel(effective)
    return effective
