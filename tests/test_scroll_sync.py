import asyncio

from SplitMark.config import SyncConfig
from SplitMark.scroll_sync import Pane, PaneMode, ScrollSynchronizer


class FakeTimer:
    def __init__(self, when, callback, args):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manual clock standing in for the event loop."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def call_later(self, delay, callback, *args):
        timer = FakeTimer(self.now + delay, callback, args)
        self.timers.append(timer)
        return timer

    def pending(self):
        return [timer for timer in self.timers if not timer.cancelled]

    def advance(self, seconds):
        self.now += seconds
        while True:
            due = sorted((t for t in self.pending() if t.when <= self.now + 1e-9), key=lambda t: t.when)
            if not due:
                return
            timer = due[0]
            self.timers.remove(timer)
            timer.callback(*timer.args)


class RecordingTarget:
    def __init__(self):
        self.calls = []

    def scroll_to_index(self, index, align="start", behavior="auto"):
        self.calls.append((index, align, behavior))


def _mounted(config=None):
    scheduler = FakeScheduler()
    sync = ScrollSynchronizer(config, scheduler)
    left, right = RecordingTarget(), RecordingTarget()
    sync.attach(Pane.LEFT, left)
    sync.attach(Pane.RIGHT, right)
    return sync, scheduler, left, right


def test_active_pane_scroll_syncs_other_pane_after_debounce():
    sync, scheduler, left, right = _mounted()
    assert not sync.range_changed(Pane.LEFT, 3)
    sync.pointer_enter(Pane.LEFT)
    assert sync.range_changed(Pane.LEFT, 7)

    scheduler.advance(0.049)
    assert right.calls == []
    scheduler.advance(0.002)
    assert right.calls == [(7, "start", "auto")]
    assert left.calls == []
    assert sync.mode(Pane.RIGHT) is PaneMode.PROGRAMMATIC


def test_programmatic_scroll_does_not_echo_back():
    sync, scheduler, left, right = _mounted()
    sync.pointer_enter(Pane.LEFT)
    sync.range_changed(Pane.LEFT, 7)
    scheduler.advance(0.05)

    assert not sync.range_changed(Pane.RIGHT, 7)
    sync.pointer_enter(Pane.RIGHT)
    assert not sync.range_changed(Pane.RIGHT, 8)
    scheduler.advance(0.05)
    assert left.calls == []
    assert sync.top_index(Pane.RIGHT) == 8


def test_guard_releases_programmatic_mode():
    sync, scheduler, _, _ = _mounted()
    sync.pointer_enter(Pane.LEFT)
    sync.range_changed(Pane.LEFT, 4)
    scheduler.advance(0.05)
    assert sync.mode(Pane.RIGHT) is PaneMode.PROGRAMMATIC
    scheduler.advance(0.099)
    assert sync.mode(Pane.RIGHT) is PaneMode.PROGRAMMATIC
    scheduler.advance(0.002)
    assert sync.mode(Pane.RIGHT) is PaneMode.IDLE
    assert sync.mode(Pane.LEFT) is PaneMode.USER_SCROLLING


def test_repeated_index_is_not_resynced():
    sync, scheduler, _, right = _mounted()
    sync.pointer_enter(Pane.LEFT)
    assert sync.range_changed(Pane.LEFT, 2)
    scheduler.advance(0.2)
    assert not sync.range_changed(Pane.LEFT, 2)
    scheduler.advance(0.2)
    assert right.calls == [(2, "start", "auto")]


def test_burst_of_changes_is_coalesced_to_last_index():
    sync, scheduler, _, right = _mounted()
    sync.pointer_enter(Pane.LEFT)
    for index in range(1, 6):
        sync.range_changed(Pane.LEFT, index)
        scheduler.advance(0.01)
    scheduler.advance(0.05)
    assert right.calls == [(5, "start", "auto")]


def test_inactive_pane_only_records_index():
    sync, scheduler, left, right = _mounted()
    assert not sync.range_changed(Pane.RIGHT, 9)
    scheduler.advance(1)
    assert sync.top_index(Pane.RIGHT) == 9
    assert left.calls == right.calls == []


def test_switching_pane_cancels_pending_sync():
    sync, scheduler, left, right = _mounted()
    sync.pointer_enter(Pane.LEFT)
    sync.range_changed(Pane.LEFT, 5)
    sync.pointer_enter(Pane.RIGHT)
    scheduler.advance(1)
    assert right.calls == []
    assert left.calls == []
    assert sync.mode(Pane.LEFT) is PaneMode.IDLE
    assert sync.mode(Pane.RIGHT) is PaneMode.USER_SCROLLING


def test_sync_to_unmounted_pane_is_a_no_op():
    scheduler = FakeScheduler()
    sync = ScrollSynchronizer(scheduler=scheduler)
    sync.pointer_enter("left")
    sync.range_changed("left", 3)
    scheduler.advance(1)
    assert sync.mode("right") is PaneMode.IDLE
    assert scheduler.pending() == []


def test_config_controls_delays_and_alignment():
    config = SyncConfig(debounce_ms=10, guard_ms=20, align="center", behavior="smooth")
    sync, scheduler, _, right = _mounted(config)
    sync.pointer_enter(Pane.LEFT)
    sync.range_changed(Pane.LEFT, 1)
    scheduler.advance(0.011)
    assert right.calls == [(1, "center", "smooth")]
    scheduler.advance(0.021)
    assert sync.mode(Pane.RIGHT) is PaneMode.IDLE


def test_reset_forgets_indices_and_timers():
    sync, scheduler, _, right = _mounted()
    sync.pointer_enter(Pane.LEFT)
    sync.range_changed(Pane.LEFT, 6)
    sync.reset()
    scheduler.advance(1)
    assert right.calls == []
    assert sync.top_index(Pane.LEFT) == 0
    assert sync.mode(Pane.LEFT) is PaneMode.USER_SCROLLING
    assert sync.range_changed(Pane.LEFT, 6)


def test_close_cancels_everything():
    sync, scheduler, _, _ = _mounted()
    sync.pointer_enter(Pane.LEFT)
    sync.range_changed(Pane.LEFT, 6)
    scheduler.advance(0.05)
    sync.range_changed(Pane.LEFT, 7)
    sync.close()
    assert scheduler.pending() == []


def test_runs_on_asyncio_loop():
    async def scenario():
        sync = ScrollSynchronizer(SyncConfig(debounce_ms=1, guard_ms=1))
        right = RecordingTarget()
        sync.attach(Pane.RIGHT, right)
        sync.pointer_enter(Pane.LEFT)
        sync.range_changed(Pane.LEFT, 12)
        await asyncio.sleep(0.05)
        return right.calls, sync.mode(Pane.RIGHT)

    calls, mode = asyncio.run(scenario())
    assert calls == [(12, "start", "auto")]
    assert mode is PaneMode.IDLE
