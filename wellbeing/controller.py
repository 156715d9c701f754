"""Break reminder state machine.

The controller cycles Idle -> Waiting -> OnBreak -> Waiting ... and is driven
only by events passed to :meth:`ReminderController.handle_event`. Timers and
the overlay are reached through the injected :class:`TimerService` and
:class:`OverlayPresenter`, so the state machine runs without any UI toolkit.

Each break is guarded twice: a per-second countdown tick that updates the
display, and a fallback timer armed for the full duration that always ends the
break. The tick may end the break early when it reaches zero but is never the
only way out.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Hashable, Optional

from wellbeing.contracts import OverlayPresenter, TimerService
from wellbeing.models import (
    BreakEndedFallback,
    CountdownTick,
    DurationChanged,
    EnabledChanged,
    IntervalChanged,
    IntervalTimerFired,
    ReminderEvent,
    ReminderSettings,
    ReminderState,
    SessionMode,
    SessionResumed,
    SessionSuspended,
    SnoozeDurationChanged,
    SnoozeTimerFired,
    TimerPurpose,
    UserSkip,
    UserSnooze,
)

if TYPE_CHECKING:
    from wellbeing.config import SettingsStore
    from wellbeing.session import SessionMonitor

log = logging.getLogger(__name__)

_BREAK_TIMERS = (TimerPurpose.COUNTDOWN, TimerPurpose.BREAK_END, TimerPurpose.SNOOZE)

_TIMER_EVENTS: dict[TimerPurpose, Callable[[], ReminderEvent]] = {
    TimerPurpose.INTERVAL: IntervalTimerFired,
    TimerPurpose.BREAK_END: BreakEndedFallback,
    TimerPurpose.COUNTDOWN: CountdownTick,
    TimerPurpose.SNOOZE: SnoozeTimerFired,
}


@dataclass(frozen=True)
class _ArmedTimer:
    handle: Hashable
    token: int
    delay: int


class ReminderController:
    """Owns one recurring break cycle for the lifetime of the process."""

    def __init__(
        self,
        timers: TimerService,
        presenter: OverlayPresenter,
        settings: Optional[ReminderSettings] = None,
        *,
        session_mode: SessionMode = SessionMode.ACTIVE,
        store: Optional[SettingsStore] = None,
        monitor: Optional[SessionMonitor] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if settings is None:
            settings = store.settings if store is not None else ReminderSettings()
        if monitor is not None:
            session_mode = monitor.mode

        self._timers = timers
        self._presenter = presenter
        self._settings = settings.model_copy()
        self._session_mode = session_mode
        self._logger = logger or log

        self._alive = True
        self._state = ReminderState.IDLE
        self._snoozing = False
        self._remaining = 0
        self._handles: dict[TimerPurpose, _ArmedTimer] = {}
        self._tokens = itertools.count(1)
        self._overlay: Any = None
        self._break_id = 0

        self._store = store
        self._store_handler: Optional[int] = None
        if store is not None:
            self._store_handler = store.connect(None, self._on_setting_changed)
        self._monitor = monitor
        self._monitor_handler: Optional[int] = None
        if monitor is not None:
            self._monitor_handler = monitor.connect(self._on_session_mode)

        if self._session_mode is SessionMode.ACTIVE and self._settings.enabled:
            self._arm_interval()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> ReminderState:
        return self._state

    @property
    def remaining(self) -> int:
        """Seconds left in the current break (0 outside a break)."""
        return self._remaining if self._state is ReminderState.ON_BREAK else 0

    @property
    def is_snoozing(self) -> bool:
        return self._snoozing

    @property
    def is_alive(self) -> bool:
        return self._alive

    @property
    def session_mode(self) -> SessionMode:
        return self._session_mode

    @property
    def settings(self) -> ReminderSettings:
        return self._settings.model_copy()

    @property
    def overlay(self) -> Any:
        return self._overlay

    def armed_timers(self) -> dict[TimerPurpose, int]:
        """Purpose -> delay in seconds of every armed timer."""
        return {purpose: armed.delay for purpose, armed in self._handles.items()}

    # ------------------------------------------------------------------
    # Event dispatch
    # ------------------------------------------------------------------

    def handle_event(self, event: ReminderEvent) -> None:
        """Apply one event. Events rejected by the current state are ignored."""
        if not self._alive:
            return
        handler = self._HANDLERS.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported reminder event: {type(event).__name__}")
        if not handler(self, event):
            self._logger.debug(
                "Ignored %s in state=%s snoozing=%s",
                type(event).__name__,
                self._state.value,
                self._snoozing,
            )

    def _on_session_suspended(self, event: SessionSuspended) -> bool:
        self._session_mode = SessionMode.SUSPENDED
        if self._state is ReminderState.IDLE:
            return False
        self._go_idle()
        self._logger.info("Session suspended: reminders paused")
        return True

    def _on_session_resumed(self, event: SessionResumed) -> bool:
        self._session_mode = SessionMode.ACTIVE
        if self._state is not ReminderState.IDLE or not self._settings.enabled:
            return False
        self._arm_interval()
        self._logger.info("Session resumed: next break in %ss", self._settings.break_interval)
        return True

    def _on_enabled_changed(self, event: EnabledChanged) -> bool:
        self._settings.enabled = event.enabled
        if event.enabled:
            if (
                self._state is not ReminderState.IDLE
                or self._session_mode is not SessionMode.ACTIVE
            ):
                return False
            self._arm_interval()
            self._logger.info("Reminders enabled: next break in %ss", self._settings.break_interval)
            return True

        if self._state is ReminderState.IDLE:
            return False
        self._go_idle()
        self._logger.info("Reminders disabled")
        return True

    def _on_interval_changed(self, event: IntervalChanged) -> bool:
        self._settings.break_interval = event.seconds
        # While snoozing or on break the new value applies when the interval is next armed.
        if self._state is not ReminderState.WAITING or self._snoozing:
            return False
        self._arm_interval()
        return True

    def _on_duration_changed(self, event: DurationChanged) -> bool:
        self._settings.break_duration = event.seconds
        if self._state is not ReminderState.ON_BREAK:
            return False
        self._logger.info("Break duration changed to %ss: restarting break", event.seconds)
        self._close_break()
        self._start_break()
        return True

    def _on_snooze_duration_changed(self, event: SnoozeDurationChanged) -> bool:
        self._settings.snooze_duration = event.seconds
        return True

    def _on_interval_fired(self, event: IntervalTimerFired) -> bool:
        if self._state is not ReminderState.WAITING or self._snoozing:
            return False
        self._start_break()
        return True

    def _on_snooze_fired(self, event: SnoozeTimerFired) -> bool:
        if self._state is not ReminderState.WAITING or not self._snoozing:
            return False
        self._start_break()
        return True

    def _on_countdown_tick(self, event: CountdownTick) -> bool:
        if self._state is not ReminderState.ON_BREAK:
            return False
        self._remaining = max(0, self._remaining - 1)
        self._presenter.update(self._overlay, self._remaining)
        if self._remaining <= 0:
            self._finish_break("Break finished")
        else:
            self._arm(TimerPurpose.COUNTDOWN, 1)
        return True

    def _on_break_end(self, event: BreakEndedFallback) -> bool:
        if self._state is not ReminderState.ON_BREAK:
            return False
        self._finish_break("Break finished")
        return True

    def _on_skip(self, event: UserSkip) -> bool:
        if self._state is not ReminderState.ON_BREAK:
            return False
        self._finish_break("Break skipped")
        return True

    def _on_snooze(self, event: UserSnooze) -> bool:
        if self._state is not ReminderState.ON_BREAK:
            return False
        self._close_break()
        self._state = ReminderState.WAITING
        self._snoozing = True
        self._arm(TimerPurpose.SNOOZE, self._settings.snooze_duration)
        self._logger.info("Break snoozed for %ss", self._settings.snooze_duration)
        return True

    _HANDLERS: dict[type, Callable[[ReminderController, Any], bool]] = {
        SessionSuspended: _on_session_suspended,
        SessionResumed: _on_session_resumed,
        EnabledChanged: _on_enabled_changed,
        IntervalChanged: _on_interval_changed,
        DurationChanged: _on_duration_changed,
        SnoozeDurationChanged: _on_snooze_duration_changed,
        IntervalTimerFired: _on_interval_fired,
        SnoozeTimerFired: _on_snooze_fired,
        CountdownTick: _on_countdown_tick,
        BreakEndedFallback: _on_break_end,
        UserSkip: _on_skip,
        UserSnooze: _on_snooze,
    }

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _arm_interval(self) -> None:
        self._cancel(TimerPurpose.SNOOZE)
        self._snoozing = False
        self._state = ReminderState.WAITING
        self._arm(TimerPurpose.INTERVAL, self._settings.break_interval)

    def _start_break(self) -> None:
        self._cancel(TimerPurpose.INTERVAL)
        self._cancel(TimerPurpose.SNOOZE)
        self._snoozing = False

        duration = self._settings.break_duration
        self._remaining = duration
        self._break_id += 1
        break_id = self._break_id
        self._overlay = self._presenter.show(
            duration,
            lambda: self._from_overlay(break_id, UserSnooze()),
            lambda: self._from_overlay(break_id, UserSkip()),
        )
        self._state = ReminderState.ON_BREAK
        self._arm(TimerPurpose.COUNTDOWN, 1)
        self._arm(TimerPurpose.BREAK_END, duration)
        self._logger.info("Break started: duration=%ss", duration)

    def _close_break(self) -> None:
        for purpose in _BREAK_TIMERS:
            self._cancel(purpose)
        self._hide_overlay()

    def _finish_break(self, reason: str) -> None:
        self._close_break()
        self._arm_interval()
        self._logger.info("%s: next break in %ss", reason, self._settings.break_interval)

    def _go_idle(self) -> None:
        for purpose in list(self._handles):
            self._cancel(purpose)
        self._hide_overlay()
        self._snoozing = False
        self._remaining = 0
        self._state = ReminderState.IDLE

    def _hide_overlay(self) -> None:
        overlay, self._overlay = self._overlay, None
        if overlay is not None:
            self._presenter.hide(overlay)

    def _from_overlay(self, break_id: int, event: ReminderEvent) -> None:
        # Buttons of an overlay that is still fading out belong to an older break.
        if break_id != self._break_id:
            return
        self.handle_event(event)

    # ------------------------------------------------------------------
    # Timer lifecycle
    # ------------------------------------------------------------------

    def _arm(self, purpose: TimerPurpose, delay: int) -> None:
        self._cancel(purpose)
        token = next(self._tokens)
        handle = self._timers.arm_once(delay, lambda: self._on_timer(purpose, token))
        self._handles[purpose] = _ArmedTimer(handle=handle, token=token, delay=delay)

    def _cancel(self, purpose: TimerPurpose) -> None:
        armed = self._handles.pop(purpose, None)
        if armed is not None:
            self._timers.cancel(armed.handle)

    def _on_timer(self, purpose: TimerPurpose, token: int) -> None:
        if not self._alive:
            return
        armed = self._handles.get(purpose)
        if armed is None or armed.token != token:
            self._logger.debug("Dropped stale %s timer", purpose.value)
            return
        del self._handles[purpose]
        self.handle_event(_TIMER_EVENTS[purpose]())

    # ------------------------------------------------------------------
    # Host signal adapters
    # ------------------------------------------------------------------

    def _on_setting_changed(self, key: str, value: Any) -> None:
        if not self._alive:
            return
        if key == "enabled":
            self.handle_event(EnabledChanged(enabled=value))
        elif key == "break-interval":
            self.handle_event(IntervalChanged(seconds=value))
        elif key == "break-duration":
            self.handle_event(DurationChanged(seconds=value))
        elif key == "snooze-duration":
            self.handle_event(SnoozeDurationChanged(seconds=value))

    def _on_session_mode(self, mode: SessionMode) -> None:
        if not self._alive:
            return
        if mode is SessionMode.ACTIVE:
            self.handle_event(SessionResumed())
        else:
            self.handle_event(SessionSuspended())

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def destroy(self) -> None:
        """Cancel every timer, hide the overlay and drop subscriptions."""
        if not self._alive:
            return
        self._alive = False
        if self._store is not None and self._store_handler is not None:
            self._store.disconnect(self._store_handler)
            self._store_handler = None
        if self._monitor is not None and self._monitor_handler is not None:
            self._monitor.disconnect(self._monitor_handler)
            self._monitor_handler = None
        self._go_idle()
        self._logger.info("Reminder controller destroyed")
