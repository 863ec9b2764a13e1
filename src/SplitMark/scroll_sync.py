"""Keep the editor pane and the preview pane scrolled to the same block.

Both panes are virtualized lists over the same blocks. Their rows have
different heights (a formula is one source line but a tall rendering), so
the panes are aligned on the index of the topmost visible block rather than
on pixel offsets.

The pane under the pointer is the active one. When its topmost index
changes, a short debounce timer is (re)started; when it fires, the other
pane is put in programmatic mode and told to scroll to the same index.
Range changes reported by a pane in programmatic mode only refresh its
cached index, so a programmatic scroll never triggers a sync back. A guard
timer returns the pane to normal once the scroll has settled.

Every event runs on the event loop; timers come from a scheduler with an
``asyncio``-style ``call_later``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Protocol

from .config import SyncConfig

logger = logging.getLogger(__name__)


class Pane(Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def other(self) -> "Pane":
        return Pane.RIGHT if self is Pane.LEFT else Pane.LEFT


class PaneMode(Enum):
    IDLE = "idle"
    USER_SCROLLING = "userScrolling"
    PROGRAMMATIC = "programmaticScrolling"


class ScrollTarget(Protocol):
    def scroll_to_index(self, index: int, align: str = "start", behavior: str = "auto") -> None: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


@dataclass
class PaneState:
    mode: PaneMode = PaneMode.IDLE
    top_index: int = 0
    target: ScrollTarget | None = None
    guard: TimerHandle | None = None


@dataclass
class SynchronizerState:
    panes: Dict[Pane, PaneState] = field(default_factory=lambda: {pane: PaneState() for pane in Pane})
    active: Pane | None = None
    debounce: TimerHandle | None = None

    def __getitem__(self, pane: Pane) -> PaneState:
        return self.panes[pane]


class _LoopScheduler:
    """Schedules on the running asyncio loop at call time."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback, *args)


class ScrollSynchronizer:
    def __init__(self, config: SyncConfig | None = None, scheduler: Scheduler | None = None) -> None:
        self.config = config or SyncConfig()
        self.state = SynchronizerState()
        self._scheduler: Scheduler = scheduler or _LoopScheduler()

    def attach(self, pane: Pane | str, target: ScrollTarget) -> None:
        self.state[Pane(pane)].target = target

    def detach(self, pane: Pane | str) -> None:
        pane_state = self.state[Pane(pane)]
        pane_state.target = None
        self._cancel_guard(pane_state)
        pane_state.mode = PaneMode.IDLE

    def mode(self, pane: Pane | str) -> PaneMode:
        return self.state[Pane(pane)].mode

    def top_index(self, pane: Pane | str) -> int:
        return self.state[Pane(pane)].top_index

    def pointer_enter(self, pane: Pane | str) -> None:
        """The pointer entered ``pane``'s scroll surface; it becomes the active pane."""
        pane = Pane(pane)
        previous = self.state.active
        if previous is pane:
            return
        self.state.active = pane
        # A sync scheduled by the previous pane would scroll the one now under the pointer.
        self._cancel_debounce()
        if previous is not None and self.state[previous].mode is PaneMode.USER_SCROLLING:
            self.state[previous].mode = PaneMode.IDLE
        if self.state[pane].mode is not PaneMode.PROGRAMMATIC:
            self.state[pane].mode = PaneMode.USER_SCROLLING
        logger.debug("Active pane: %s", pane.value)

    def range_changed(self, pane: Pane | str, start_index: int, end_index: int | None = None) -> bool:
        """Record ``pane``'s topmost visible index; return True when a sync was scheduled."""
        pane = Pane(pane)
        pane_state = self.state[pane]
        if start_index == pane_state.top_index:
            return False
        pane_state.top_index = start_index

        if self.state.active is not pane or pane_state.mode is PaneMode.PROGRAMMATIC:
            return False

        self._cancel_debounce()
        self.state.debounce = self._scheduler.call_later(self.config.debounce_delay, self._sync, pane)
        return True

    def reset(self) -> None:
        """Forget cached indices and pending timers, e.g. after the blocks were reloaded."""
        self._cancel_debounce()
        for pane, pane_state in self.state.panes.items():
            self._cancel_guard(pane_state)
            pane_state.top_index = 0
            pane_state.mode = PaneMode.USER_SCROLLING if self.state.active is pane else PaneMode.IDLE

    def close(self) -> None:
        self._cancel_debounce()
        for pane_state in self.state.panes.values():
            self._cancel_guard(pane_state)

    def _sync(self, source: Pane) -> None:
        self.state.debounce = None
        target_pane = source.other
        target_state = self.state[target_pane]
        index = self.state[source].top_index
        if target_state.target is None:
            logger.debug("Pane %s is not mounted, skipping sync to %d", target_pane.value, index)
            return

        target_state.mode = PaneMode.PROGRAMMATIC
        self._cancel_guard(target_state)
        target_state.guard = self._scheduler.call_later(self.config.guard_delay, self._release, target_pane)
        logger.debug("Syncing %s pane to block %d", target_pane.value, index)
        target_state.target.scroll_to_index(index, align=self.config.align, behavior=self.config.behavior)

    def _release(self, pane: Pane) -> None:
        pane_state = self.state[pane]
        pane_state.guard = None
        pane_state.mode = PaneMode.USER_SCROLLING if self.state.active is pane else PaneMode.IDLE

    def _cancel_debounce(self) -> None:
        if self.state.debounce is not None:
            self.state.debounce.cancel()
            self.state.debounce = None

    @staticmethod
    def _cancel_guard(pane_state: PaneState) -> None:
        if pane_state.guard is not None:
            pane_state.guard.cancel()
            pane_state.guard = None
