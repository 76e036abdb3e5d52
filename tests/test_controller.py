from netindicator.config import KEY_AUTOHIDE, KEY_ENABLED, KEY_UNIT_TYPE, Config
from netindicator.controller import IndicatorController
from netindicator.formatting import UnitMode
from netindicator.modes import DisplayMode
from netindicator.sampler import RateSampler
from netindicator.sources import StaticConfigSource, StaticTintSource
from netindicator.timers import TimerSlots


class _RecordingSource:
    def __init__(self, *initial):
        self.initial = initial
        self.callback = None
        self.unwatched = False

    def watch(self, callback):
        self.callback = callback
        if self.initial:
            callback(*self.initial)

        def unwatch():
            self.unwatched = True

        return unwatch


def _attached(make_controller, scheduler, **config):
    controller = make_controller(Config(**config))
    controller.attach()
    scheduler.advance(0)
    return controller


def test_attach_renders_immediately(make_controller, sink):
    controller = make_controller(Config(enabled=True))
    controller.attach()
    assert sink.calls == [
        ("text", "0", "KB/s"),
        ("visible", True),
        ("icon", DisplayMode.IDLE),
    ]
    assert controller.attached


def test_downstream_traffic_end_to_end(make_controller, scheduler, counters, sink):
    controller = _attached(make_controller, scheduler, enabled=True)
    sink.clear()

    counters.rx = 2_000_000
    scheduler.advance(2000)

    assert sink.calls == [
        ("text", "1", "MB/s"),
        ("icon", DisplayMode.DOWNSTREAM_ONLY),
    ]
    assert controller.visible
    assert controller.icon is DisplayMode.DOWNSTREAM_ONLY
    assert controller.text == ("1", "MB/s")


def test_same_inputs_emit_nothing_new(make_controller, scheduler, counters, sink):
    _attached(make_controller, scheduler, enabled=True)
    counters.rx = 2_000_000
    scheduler.advance(2000)
    sink.clear()

    counters.rx = 4_000_000
    scheduler.advance(2000)

    assert sink.calls == []


def test_ticks_reschedule_themselves(make_controller, scheduler, counters, sink):
    _attached(make_controller, scheduler, enabled=True)
    for step in range(1, 4):
        counters.tx = step * 30_000
        scheduler.advance(2000)
    assert ("text", "15.0", "KB/s") in sink.calls
    assert scheduler.pending_count() == 1


def test_upload_shows_upstream_in_bits(make_controller, scheduler, counters, sink):
    _attached(make_controller, scheduler, enabled=True, unit_mode=UnitMode.BITS)
    sink.clear()

    counters.tx = 250_000
    counters.rx = 1000
    scheduler.advance(2000)

    assert sink.calls == [
        ("text", "1", "Mb/s"),
        ("icon", DisplayMode.UPSTREAM_ONLY),
    ]


def test_autohide_hides_low_traffic(make_controller, scheduler, counters, sink):
    controller = _attached(make_controller, scheduler, enabled=True, auto_hide=True)
    assert sink.calls == [("visible", False)]
    assert not controller.visible

    counters.rx = 40_000
    scheduler.advance(2000)
    assert controller.visible
    assert controller.text == ("20.0", "KB/s")

    sink.clear()
    counters.rx = 41_000
    scheduler.advance(2000)
    assert sink.calls == [("visible", False)]
    assert controller.text == ("20.0", "KB/s")


def test_config_changes_are_debounced(make_controller, scheduler, sink):
    controller = _attached(make_controller, scheduler, enabled=True)
    assert controller.visible

    for _ in range(3):
        scheduler.advance(100)
        controller.on_config_changed(KEY_AUTOHIDE, "1")

    scheduler.advance(999)
    assert controller.visible
    assert scheduler.pending_count() == 2

    scheduler.advance(1)
    assert not controller.visible
    assert scheduler.pending_count() == 1


def test_unknown_key_is_ignored(make_controller, scheduler):
    controller = _attached(make_controller, scheduler, enabled=True)
    before = scheduler.pending_count()
    controller.on_config_changed("networktraffic.colour", "1")
    assert scheduler.pending_count() == before
    assert controller.config == Config(enabled=True)


def test_enabling_starts_ticking(make_controller, scheduler, counters, sink):
    controller = _attached(make_controller, scheduler)
    assert sink.calls == [("visible", False)]
    assert scheduler.pending_count() == 0

    counters.rx = 5000
    controller.on_config_changed(KEY_ENABLED, "1")
    scheduler.advance(0)
    assert controller.visible
    assert controller.text == ("0", "KB/s")

    counters.rx = 25_000
    scheduler.advance(2000)
    assert controller.text == ("10.0", "KB/s")


def test_disabling_stops_ticking(make_controller, scheduler, sink):
    controller = _attached(make_controller, scheduler, enabled=True)
    controller.on_config_changed(KEY_ENABLED, 0)
    scheduler.advance(1000)
    assert not controller.visible
    assert scheduler.pending_count() == 0


def test_unit_change_applies_on_refresh(make_controller, scheduler, sink):
    controller = _attached(make_controller, scheduler, enabled=True)
    controller.on_config_changed(KEY_UNIT_TYPE, "1")
    scheduler.advance(1000)
    assert controller.text == ("0", "Kb/s")


def test_connectivity_loss_hides_immediately(make_controller, scheduler, sink):
    controller = _attached(make_controller, scheduler, enabled=True)
    sink.clear()

    controller.on_connectivity_changed(False)
    assert sink.calls == [("visible", False)]

    controller.on_connectivity_changed(True)
    assert sink.calls[-1] == ("visible", True)


def test_lock_screen_hides_and_restores(make_controller, scheduler, sink):
    controller = _attached(make_controller, scheduler, enabled=True)
    sink.clear()

    controller.on_lock_state_changed(True)
    controller.on_lock_state_changed(True)
    controller.on_lock_state_changed(False)

    assert sink.calls == [("visible", False), ("visible", True)]


def test_tint_waits_until_visible(make_controller, scheduler, counters, sink):
    controller = _attached(make_controller, scheduler, enabled=True, auto_hide=True)
    controller.on_tint_changed("cyan")
    controller.on_tint_changed("red")
    assert ("tint", "cyan") not in sink.calls
    assert ("tint", "red") not in sink.calls

    counters.rx = 100_000
    scheduler.advance(2000)

    visible_at = sink.calls.index(("visible", True))
    assert sink.calls[visible_at + 1] == ("tint", "red")
    assert ("tint", "cyan") not in sink.calls


def test_tint_applies_directly_while_visible(make_controller, scheduler, sink):
    controller = _attached(make_controller, scheduler, enabled=True)
    sink.clear()
    controller.on_tint_changed("green")
    controller.on_tint_changed("green")
    assert sink.calls == [("tint", "green")]


def test_pinned_tint_ignores_theme_changes(make_controller, scheduler, sink):
    controller = make_controller(Config(enabled=True),
                                 tint_source=StaticTintSource("cyan", static=True))
    controller.attach()
    scheduler.advance(0)
    controller.on_tint_changed("black")
    assert ("tint", "cyan") in sink.calls
    assert ("tint", "black") not in sink.calls

    sink.clear()
    controller.on_tint_changed("magenta", static=True)
    assert sink.calls == [("tint", "magenta")]


def test_detach_releases_the_tint_pin(make_controller, scheduler, sink):
    controller = _attached(make_controller, scheduler, enabled=True)
    controller.on_tint_changed("cyan", static=True)
    controller.detach()
    controller.attach()
    sink.clear()
    controller.on_tint_changed("black")
    assert sink.calls == [("tint", "black")]


def test_sources_are_watched_on_attach(make_controller, scheduler, sink):
    connectivity = _RecordingSource(False)
    lock = _RecordingSource(False)
    controller = make_controller(
        config_source=StaticConfigSource({KEY_ENABLED: "1"}),
        connectivity=connectivity,
        tint_source=StaticTintSource("yellow"),
        lock_source=lock,
    )
    controller.attach()
    assert controller.config.enabled
    assert not controller.visible

    connectivity.callback(True)
    assert controller.visible
    assert ("tint", "yellow") in sink.calls

    controller.detach()
    assert connectivity.unwatched and lock.unwatched


def test_detach_cancels_timers_and_is_idempotent(make_controller, scheduler, counters, sink):
    controller = _attached(make_controller, scheduler, enabled=True)
    controller.on_config_changed(KEY_AUTOHIDE, "0")
    assert scheduler.pending_count() == 2

    controller.detach()
    controller.detach()
    assert not controller.attached
    assert scheduler.pending_count() == 0

    sink.clear()
    counters.rx = 1_000_000
    controller.on_tick()
    scheduler.advance(10_000)
    assert sink.calls == []


def test_detach_cancels_every_pending_kind(scheduler, counters, sink):
    timers = TimerSlots(scheduler.call_later, scheduler.cancel)
    controller = IndicatorController(
        sampler=RateSampler(counters, min_interval_ms=2000),
        sink=sink,
        timers=timers,
        config=Config(enabled=True),
    )
    controller.attach()
    controller.on_config_changed(KEY_UNIT_TYPE, "1")
    assert timers.pending("tick") and timers.pending("refresh")

    controller.detach()
    assert not timers.pending("tick")
    assert not timers.pending("refresh")
    assert scheduler.pending_count() == 0


def test_reattach_starts_from_fresh_state(make_controller, scheduler, counters, sink):
    controller = _attached(make_controller, scheduler, enabled=True)
    counters.rx = 2_000_000
    scheduler.advance(2000)
    controller.detach()
    sink.clear()

    controller.attach()
    assert sink.calls == [
        ("text", "0", "KB/s"),
        ("visible", True),
        ("icon", DisplayMode.IDLE),
    ]
