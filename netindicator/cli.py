"""Terminal network traffic indicator (``python -m netindicator``)."""

from __future__ import annotations

import argparse
import sys
from argparse import ArgumentParser, Namespace
from typing import Any

from netindicator.config import KEY_AUTOHIDE, KEY_ENABLED, KEY_UNIT_TYPE
from netindicator.controller import IndicatorController
from netindicator.counters import ProcNetDevSource, parse_excludes
from netindicator.formatting import UnitMode
from netindicator.log import configure_root
from netindicator.render import RenderSink, TerminalSink
from netindicator.sampler import RateSampler
from netindicator.sources import (
    LOCK_POLL_MS,
    ConfigSource,
    JsonFileConfigSource,
    LoginctlLockSource,
    StaticConfigSource,
    StaticTintSource,
    SysfsConnectivitySource,
)
from netindicator.timers import EventLoop, TimerSlots

UNIT_CHOICES = {"bytes": UnitMode.BYTES, "bits": UnitMode.BITS}


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="netindicator",
        description="Network traffic indicator for the terminal",
    )
    parser.add_argument("--interval", type=float, default=2.0,
                        help="Sampling interval in seconds (default: 2.0)")
    parser.add_argument(
        "--enabled",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Show the indicator (default: on)",
    )
    parser.add_argument(
        "--autohide",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Hide while both directions stay under 10 KB/s (default: off)",
    )
    parser.add_argument("--unit", choices=sorted(UNIT_CHOICES), default="bytes",
                        help="Show bytes/s or bits/s (default: bytes)")
    parser.add_argument("--interface", default=None,
                        help="Count a single NIC only (e.g. enp0s31f6)")
    parser.add_argument("--exclude", default="",
                        help="Comma-separated NICs to skip (e.g. virbr0,tailscale0)")
    parser.add_argument("--config", default=None, metavar="FILE",
                        help="JSON file with networktraffic.* keys, re-read on change")
    parser.add_argument("--color", default=None,
                        help="Text color, any plotext color name (e.g. cyan)")
    parser.add_argument("--poll", type=float, default=1.0,
                        help="Seconds between connectivity/config checks; lock state is "
                             "checked at most every 5 s (default: 1.0)")
    parser.add_argument("--log-level", default="WARNING",
                        help="Log level for stderr diagnostics (default: WARNING)")
    return parser


def config_values(args: Namespace) -> dict[str, Any]:
    """Translate CLI flags into config key/value pairs."""
    return {
        KEY_ENABLED: 1 if args.enabled else 0,
        KEY_AUTOHIDE: 1 if args.autohide else 0,
        KEY_UNIT_TYPE: int(UNIT_CHOICES[args.unit]),
    }


class _ChainedConfigSource(ConfigSource):
    """CLI values first, then the file's values and its later edits."""

    def __init__(self, *sources: ConfigSource):
        self._sources = sources

    def watch(self, callback):
        unwatches = [source.watch(callback) for source in self._sources]

        def unwatch() -> None:
            for fn in unwatches:
                fn()

        return unwatch


def build_controller(args: Namespace, loop: EventLoop, sink: RenderSink) -> IndicatorController:
    interval_ms = max(0.5, args.interval) * 1000.0
    poll_ms = max(0.1, args.poll) * 1000.0
    source_timers = TimerSlots(loop.call_later, loop.cancel)

    counters = ProcNetDevSource(interface=args.interface,
                                exclude=parse_excludes(args.exclude),
                                clock=loop.now_ms)

    config_source: ConfigSource = StaticConfigSource(config_values(args))
    if args.config:
        config_source = _ChainedConfigSource(
            config_source,
            JsonFileConfigSource(args.config, source_timers, poll_ms,
                                 defaults=config_values(args)),
        )

    return IndicatorController(
        sampler=RateSampler(counters, min_interval_ms=interval_ms),
        sink=sink,
        timers=TimerSlots(loop.call_later, loop.cancel),
        config_source=config_source,
        connectivity=SysfsConnectivitySource(source_timers, poll_ms),
        tint_source=StaticTintSource(args.color, static=True) if args.color else None,
        lock_source=LoginctlLockSource(source_timers, max(poll_ms, LOCK_POLL_MS)),
    )


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_root(args.log_level)

    loop = EventLoop()
    sink = TerminalSink()
    controller = build_controller(args, loop, sink)

    sink.open()
    try:
        controller.attach()
        loop.run()
    except KeyboardInterrupt:
        pass
    finally:
        controller.detach()
        loop.stop()
        sink.close()
        print("\nExiting...", file=sys.stdout)


if __name__ == "__main__":
    main()
