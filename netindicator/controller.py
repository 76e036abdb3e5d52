"""IndicatorController ties sampling, formatting and visibility together.

Lifecycle:
    1. attach() starts listening to the collaborator sources and renders once
    2. on_tick() samples every interval while enabled and reschedules itself
    3. config/connectivity/tint/lock events update state between ticks
    4. detach() cancels every timer and stops listening

Everything runs on one thread. Render calls are edge-triggered: the sink
only hears about a field when its value differs from what it was last sent.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from netindicator.config import KEY_ENABLED, Config
from netindicator.formatting import format_rate
from netindicator.modes import DisplayMode, icon_mode, resolve_mode
from netindicator.render import RenderSink, RenderState
from netindicator.sampler import IDLE_SAMPLE, RateSample, RateSampler
from netindicator.sources import (
    ConfigSource,
    ConnectivitySource,
    LockStateSource,
    TintSource,
    Unwatch,
)
from netindicator.timers import TimerSlots
from netindicator.visibility import decide_visible, is_above_threshold

TICK = "tick"
REFRESH = "refresh"
REFRESH_DEBOUNCE_MS = 1000


class IndicatorController:
    """Drives one network traffic indicator."""

    def __init__(
        self,
        *,
        sampler: RateSampler,
        sink: RenderSink,
        timers: TimerSlots,
        config: Optional[Config] = None,
        config_source: Optional[ConfigSource] = None,
        connectivity: Optional[ConnectivitySource] = None,
        tint_source: Optional[TintSource] = None,
        lock_source: Optional[LockStateSource] = None,
    ) -> None:
        self._sampler = sampler
        self._sink = sink
        self._timers = timers
        self.config = config or Config()
        self._config_source = config_source
        self._connectivity = connectivity
        self._tint_source = tint_source
        self._lock_source = lock_source
        self._log = logging.getLogger(__name__)

        self._attached = False
        self._unwatch: list[Unwatch] = []
        self._reset_state()

    def _reset_state(self) -> None:
        self._connection_available = True
        self._lock_screen_showing = False
        self._sample: RateSample = IDLE_SAMPLE
        self._pending_tint: Any = None
        self._tint_static = False
        self._rendered = RenderState()

    # ---- read-only views ----

    @property
    def attached(self) -> bool:
        return self._attached

    @property
    def visible(self) -> bool:
        return bool(self._rendered.visible)

    @property
    def icon(self) -> Optional[DisplayMode]:
        return self._rendered.icon

    @property
    def text(self) -> Optional[tuple[str, str]]:
        return self._rendered.text

    @property
    def interval_ms(self) -> float:
        return self._sampler.min_interval_ms

    # ---- lifecycle ----

    def attach(self) -> None:
        if self._attached:
            return
        self._attached = True
        self._log.info("Indicator attached (interval %.0f ms)", self.interval_ms)

        watches: list[tuple[Any, Callable]] = [
            (self._config_source, self.on_config_changed),
            (self._connectivity, self.on_connectivity_changed),
            (self._tint_source, self.on_tint_changed),
            (self._lock_source, self.on_lock_state_changed),
        ]
        for source, handler in watches:
            if source is not None:
                self._unwatch.append(source.watch(handler))

        self._evaluate()
        if self.config.enabled and not self._timers.pending(TICK):
            self._timers.schedule(TICK, 0, self.on_tick)

    def detach(self) -> None:
        self._timers.cancel_all()
        while self._unwatch:
            self._unwatch.pop()()
        if not self._attached:
            return
        self._attached = False
        self._sampler.reset()
        self._reset_state()
        self._log.info("Indicator detached")

    # ---- event handlers ----

    def on_config_changed(self, key: str, value: Any) -> None:
        was_enabled = self.config.enabled
        if self.config.apply(key, value) is None:
            self._log.debug("Ignoring unknown config key %r", key)
            return
        self._log.debug("Config %s = %r", key, value)
        if not self._attached:
            return
        if key == KEY_ENABLED and self.config.enabled and not was_enabled:
            self._sampler.reset()
            self._sample = IDLE_SAMPLE
            self._rendered = RenderState()
            self._timers.schedule(TICK, 0, self.on_tick)
        self._timers.schedule(REFRESH, REFRESH_DEBOUNCE_MS, self._on_refresh)

    def on_connectivity_changed(self, available: bool) -> None:
        self._connection_available = bool(available)
        self._log.debug("Connection available: %s", self._connection_available)
        if self._attached:
            self._evaluate()

    def on_lock_state_changed(self, showing: bool) -> None:
        self._lock_screen_showing = bool(showing)
        if self._attached:
            self._evaluate()

    def on_tint_changed(self, color: Any, static: bool = False) -> None:
        if self._tint_static and not static:
            self._log.debug("Tint pinned; ignoring %r", color)
            return
        self._tint_static = static
        self._pending_tint = color
        if self._attached and self._rendered.visible:
            self._flush_tint()

    # ---- timers ----

    def on_tick(self) -> None:
        if not self._attached:
            return
        self._timers.cancel(TICK)
        self._timers.cancel(REFRESH)
        sample = self._sampler.sample()
        if sample is not None:
            self._sample = sample
        self._evaluate()
        self._schedule_next_tick()

    def _on_refresh(self) -> None:
        if not self._attached:
            return
        self._timers.cancel(TICK)
        self._evaluate()
        self._schedule_next_tick()

    def _schedule_next_tick(self) -> None:
        if self._attached and self.config.enabled:
            self._timers.schedule(TICK, self.interval_ms, self.on_tick)

    # ---- rendering ----

    def _evaluate(self) -> None:
        cfg = self.config
        rx, tx = self._sample.rx_rate, self._sample.tx_rate
        above = is_above_threshold(rx, tx)

        if cfg.enabled and self._connection_available and (not cfg.auto_hide or above):
            _, rate = resolve_mode(rx, tx)
            self._emit_text(*format_rate(rate, cfg.unit_mode))

        text = self._rendered.text
        visible = decide_visible(
            enabled=cfg.enabled,
            connection_available=self._connection_available,
            auto_hide=cfg.auto_hide,
            above_threshold=above,
            lock_screen_showing=self._lock_screen_showing,
            has_text=bool(text and text[0]),
        )
        self._emit_visible(visible)
        if visible:
            self._emit_icon(icon_mode(rx, tx))

    def _emit_text(self, value: str, unit: str) -> None:
        if self._rendered.text == (value, unit):
            return
        self._rendered.text = (value, unit)
        self._sink.set_text(value, unit)

    def _emit_icon(self, mode: DisplayMode) -> None:
        if self._rendered.icon == mode:
            return
        self._rendered.icon = mode
        self._sink.set_icon(mode)

    def _emit_visible(self, visible: bool) -> None:
        if self._rendered.visible == visible:
            return
        self._rendered.visible = visible
        self._log.debug("Indicator %s", "shown" if visible else "hidden")
        self._sink.set_visible(visible)
        if visible:
            self._flush_tint()

    def _flush_tint(self) -> None:
        if self._pending_tint is None or self._pending_tint == self._rendered.tint:
            return
        self._rendered.tint = self._pending_tint
        self._sink.set_tint(self._pending_tint)
