"""Shared fakes: a simulated clock and a recording overlay presenter."""

from __future__ import annotations

import heapq
import itertools
from pathlib import Path
from typing import Callable, Optional
from unittest.mock import patch

import pytest


class FakeTimers:
    """TimerService on a simulated clock. Equal due times fire in arm order."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, Callable[[], None]]] = []
        self._live: set[int] = set()
        self._ids = itertools.count(1)
        self.delays: dict[int, float] = {}

    def arm_once(self, delay_seconds: float, callback: Callable[[], None]) -> int:
        handle = next(self._ids)
        heapq.heappush(self._queue, (self.now + delay_seconds, handle, callback))
        self._live.add(handle)
        self.delays[handle] = delay_seconds
        return handle

    def cancel(self, handle: int) -> None:
        self._live.discard(handle)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, handle, callback = heapq.heappop(self._queue)
            if handle not in self._live:
                continue
            self._live.discard(handle)
            self.now = due
            callback()
        self.now = target

    @property
    def live(self) -> int:
        return len(self._live)


class LeakyTimers(FakeTimers):
    """A scheduler that loses cancellations, so cancelled callbacks still run."""

    def cancel(self, handle: int) -> None:
        pass


class FakeOverlay:
    def __init__(
        self,
        remaining: int,
        on_snooze: Callable[[], None],
        on_skip: Callable[[], None],
    ) -> None:
        self.initial = remaining
        self.remaining = remaining
        self.updates: list[int] = []
        self.on_snooze = on_snooze
        self.on_skip = on_skip
        self.hide_calls = 0

    @property
    def hidden(self) -> bool:
        return self.hide_calls > 0


class RecordingPresenter:
    def __init__(self) -> None:
        self.shown: list[FakeOverlay] = []

    def show(self, initial_remaining, on_snooze, on_skip) -> FakeOverlay:
        overlay = FakeOverlay(initial_remaining, on_snooze, on_skip)
        self.shown.append(overlay)
        return overlay

    def update(self, handle: FakeOverlay, remaining: int) -> None:
        handle.updates.append(remaining)
        handle.remaining = remaining

    def hide(self, handle: FakeOverlay) -> None:
        handle.hide_calls += 1

    @property
    def visible(self) -> list[FakeOverlay]:
        return [o for o in self.shown if not o.hidden]

    @property
    def current(self) -> Optional[FakeOverlay]:
        visible = self.visible
        return visible[-1] if visible else None


@pytest.fixture
def timers() -> FakeTimers:
    return FakeTimers()


@pytest.fixture
def leaky_timers() -> LeakyTimers:
    return LeakyTimers()


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture
def config_paths(tmp_path: Path):
    """Redirect the settings dir/file to tmp_path."""
    cfg_dir = tmp_path / "config"
    cfg_file = cfg_dir / "settings.json"
    with (
        patch("wellbeing.config._CONFIG_DIR", cfg_dir),
        patch("wellbeing.config._CONFIG_FILE", cfg_file),
    ):
        yield cfg_file
