"""Event sources the indicator listens to: config, connectivity, tint, lock state.

Each source has one capability, ``watch(callback)``, which starts delivering
values and returns a function that stops the delivery. Polling
implementations run on the same ``EventLoop`` as the indicator, so callbacks
never arrive on another thread.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional

from netindicator.timers import TimerSlots

Unwatch = Callable[[], None]
DEFAULT_POLL_MS = 1000
LOCK_POLL_MS = 5000
LOGINCTL_TIMEOUT_S = 0.5
SYS_CLASS_NET = "/sys/class/net"


def _noop() -> None:
    pass


class ConnectivitySource(ABC):
    @abstractmethod
    def watch(self, callback: Callable[[bool], None]) -> Unwatch:
        """Deliver "connection available" now and on every change."""


class LockStateSource(ABC):
    @abstractmethod
    def watch(self, callback: Callable[[bool], None]) -> Unwatch:
        """Deliver "lock screen showing" now and on every change."""


class TintSource(ABC):
    @abstractmethod
    def watch(self, callback: Callable[[Any, bool], None]) -> Unwatch:
        """Deliver (color, static) now and on every theme change.

        A static color pins the tint: later non-static colors are ignored.
        """


class ConfigSource(ABC):
    @abstractmethod
    def watch(self, callback: Callable[[str, Any], None]) -> Unwatch:
        """Deliver (key, value) for every current setting, then for changes."""


# ---- polling helper ----

class _Poller:
    """Re-read a value every ``interval_ms`` and report it when it changes."""

    def __init__(self, timers: TimerSlots, kind: str, interval_ms: float,
                 read: Callable[[], Any], on_change: Callable[[Any], None]):
        self._timers = timers
        self._kind = kind
        self._interval_ms = interval_ms
        self._read = read
        self._on_change = on_change
        self._last: Any = None
        self._active = False

    def start(self) -> Unwatch:
        self._active = True
        self._last = self._read()
        self._on_change(self._last)
        self._timers.schedule(self._kind, self._interval_ms, self._poll)
        return self.stop

    def stop(self) -> None:
        self._active = False
        self._timers.cancel(self._kind)

    def _poll(self) -> None:
        if not self._active:
            return
        value = self._read()
        if value != self._last:
            self._last = value
            self._on_change(value)
        if self._active:
            self._timers.schedule(self._kind, self._interval_ms, self._poll)


# ---- connectivity ----

class StaticConnectivitySource(ConnectivitySource):
    def __init__(self, available: bool = True):
        self._available = available

    def watch(self, callback: Callable[[bool], None]) -> Unwatch:
        callback(self._available)
        return _noop


class SysfsConnectivitySource(ConnectivitySource):
    """Connected iff any non-loopback interface reports operstate ``up``."""

    def __init__(self, timers: TimerSlots, interval_ms: float = DEFAULT_POLL_MS,
                 root: str = SYS_CLASS_NET):
        self._timers = timers
        self._interval_ms = interval_ms
        self._root = root
        self._log = logging.getLogger(__name__)

    def is_connected(self) -> bool:
        try:
            names = os.listdir(self._root)
        except OSError as exc:
            self._log.debug("Cannot list %s: %s", self._root, exc)
            return True
        for iface in names:
            if iface == "lo":
                continue
            try:
                with open(os.path.join(self._root, iface, "operstate")) as f:
                    if f.read().strip() == "up":
                        return True
            except OSError:
                continue
        return False

    def watch(self, callback: Callable[[bool], None]) -> Unwatch:
        return _Poller(self._timers, "connectivity", self._interval_ms,
                       self.is_connected, callback).start()


# ---- lock state ----

class StaticLockStateSource(LockStateSource):
    def __init__(self, showing: bool = False):
        self._showing = showing

    def watch(self, callback: Callable[[bool], None]) -> Unwatch:
        callback(self._showing)
        return _noop


class LoginctlLockSource(LockStateSource):
    """Reads the logind ``LockedHint`` of the current session.

    ``loginctl`` runs synchronously on the event loop, so a slow logind stalls
    ticks for up to ``LOGINCTL_TIMEOUT_S``. The default poll interval is
    ``LOCK_POLL_MS``.
    """

    def __init__(self, timers: TimerSlots, interval_ms: float = LOCK_POLL_MS,
                 session_id: Optional[str] = None):
        self._timers = timers
        self._interval_ms = interval_ms
        self._session_id = session_id or os.environ.get("XDG_SESSION_ID", "")
        self._log = logging.getLogger(__name__)

    def is_locked(self) -> bool:
        if not self._session_id:
            return False
        try:
            result = subprocess.run(
                ["loginctl", "show-session", self._session_id, "-p", "LockedHint", "--value"],
                check=False,
                text=True,
                capture_output=True,
                timeout=LOGINCTL_TIMEOUT_S,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            self._log.debug("loginctl unavailable: %s", exc)
            return False
        if result.returncode != 0:
            self._log.debug("loginctl exited with %d: %s", result.returncode, result.stderr.strip())
            return False
        return result.stdout.strip() == "yes"

    def watch(self, callback: Callable[[bool], None]) -> Unwatch:
        return _Poller(self._timers, "lockstate", self._interval_ms,
                       self.is_locked, callback).start()


# ---- tint ----

class StaticTintSource(TintSource):
    def __init__(self, color: Any, static: bool = False):
        self._color = color
        self._static = static

    def watch(self, callback: Callable[[Any, bool], None]) -> Unwatch:
        callback(self._color, self._static)
        return _noop


# ---- config ----

class StaticConfigSource(ConfigSource):
    """Fixed settings, e.g. built from CLI flags."""

    def __init__(self, values: Mapping[str, Any]):
        self._values = dict(values)

    def watch(self, callback: Callable[[str, Any], None]) -> Unwatch:
        for key, value in self._values.items():
            callback(key, value)
        return _noop


class JsonFileConfigSource(ConfigSource):
    """Settings from a JSON object file, re-read whenever its mtime changes.

    Only keys whose value differs from the previous read are delivered. A
    key removed from the file is delivered again with its value from
    ``defaults`` (None when absent there, which the config parses as its own
    default). Missing or malformed files keep the last good values.
    """

    def __init__(self, path: str, timers: TimerSlots,
                 interval_ms: float = DEFAULT_POLL_MS,
                 defaults: Optional[Mapping[str, Any]] = None):
        self._path = path
        self._defaults = dict(defaults or {})
        self._timers = timers
        self._interval_ms = interval_ms
        self._values: dict[str, Any] = {}
        self._mtime: Optional[float] = None
        self._callback: Optional[Callable[[str, Any], None]] = None
        self._log = logging.getLogger(__name__)

    def read(self) -> Optional[dict[str, Any]]:
        try:
            with open(self._path) as f:
                data = json.load(f)
        except FileNotFoundError:
            self._log.warning("Config file %s not found", self._path)
            return None
        except (OSError, json.JSONDecodeError) as exc:
            self._log.warning("Ignoring unreadable config file %s: %s", self._path, exc)
            return None
        if not isinstance(data, dict):
            self._log.warning("Config file %s must hold a JSON object", self._path)
            return None
        return data

    def _current_mtime(self) -> Optional[float]:
        try:
            return os.stat(self._path).st_mtime
        except OSError:
            return None

    def reload(self) -> None:
        """Deliver keys that changed since the last successful read."""
        data = self.read()
        if data is None:
            return
        changed = {k: v for k, v in data.items()
                   if k not in self._values or self._values[k] != v}
        for key in sorted(self._values.keys() - data.keys()):
            changed[key] = self._defaults.get(key)
        self._values = dict(data)
        if self._callback is None:
            return
        for key, value in changed.items():
            self._log.debug("Config %s -> %r", key, value)
            self._callback(key, value)

    def _check(self) -> Optional[float]:
        mtime = self._current_mtime()
        if mtime is not None and mtime != self._mtime:
            self._mtime = mtime
            self.reload()
        return self._mtime

    def watch(self, callback: Callable[[str, Any], None]) -> Unwatch:
        self._callback = callback
        self._values = {}
        self._mtime = None
        poller = _Poller(self._timers, "configfile", self._interval_ms,
                         self._check, lambda _mtime: None)
        unwatch_poller = poller.start()

        def unwatch() -> None:
            unwatch_poller()
            self._callback = None

        return unwatch
