"""Render sinks: where the indicator's text, icon, tint and visibility go."""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, TextIO

import plotext as plt

from netindicator.modes import DisplayMode

ICONS = {
    DisplayMode.IDLE: "⇅",
    DisplayMode.UPSTREAM_ONLY: "↑",
    DisplayMode.DOWNSTREAM_ONLY: "↓",
    DisplayMode.BOTH: "↕",
}


@dataclass
class RenderState:
    """Last values sent to a sink. None means "never sent"."""
    text: Optional[tuple[str, str]] = None
    icon: Optional[DisplayMode] = None
    tint: Any = None
    visible: Optional[bool] = None


class RenderSink(ABC):
    @abstractmethod
    def set_text(self, value: str, unit: str) -> None: ...

    @abstractmethod
    def set_icon(self, mode: DisplayMode) -> None: ...

    @abstractmethod
    def set_tint(self, color: Any) -> None: ...

    @abstractmethod
    def set_visible(self, visible: bool) -> None: ...


class TerminalSink(RenderSink):
    """Single status line redrawn in place, e.g. ``↓ 1.5 MB/s``."""

    def __init__(self, stream: TextIO | None = None):
        self._stream = stream or sys.stdout
        self._text = ("", "")
        self._icon = DisplayMode.IDLE
        self._tint: Any = None
        self._visible = False

    def set_text(self, value: str, unit: str) -> None:
        self._text = (value, unit)
        self._draw()

    def set_icon(self, mode: DisplayMode) -> None:
        self._icon = mode
        self._draw()

    def set_tint(self, color: Any) -> None:
        self._tint = color
        self._draw()

    def set_visible(self, visible: bool) -> None:
        self._visible = visible
        self._draw()

    def line(self) -> str:
        """The status line as currently shown (uncolored)."""
        if not self._visible:
            return ""
        value, unit = self._text
        return f"{ICONS[self._icon]} {value} {unit}".rstrip()

    def _draw(self) -> None:
        text = self.line()
        if text and self._tint is not None:
            # plotext 6 returns a matrix object rather than a str
            text = str(plt.colorize(text, self._tint))
        self._stream.write("\033[H" + text + "\033[J")
        self._stream.flush()

    def open(self) -> None:
        self._stream.write("\033[?25l")  # hide cursor
        self._stream.flush()

    def close(self) -> None:
        self._stream.write("\033[?25h")  # show cursor
        self._stream.flush()
