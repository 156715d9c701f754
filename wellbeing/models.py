"""Pydantic models for settings, controller state and controller events."""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

INTERVAL_MIN, INTERVAL_MAX = 10, 7200
DURATION_MIN, DURATION_MAX = 5, 900
SNOOZE_MIN, SNOOZE_MAX = 5, 1800


class SessionMode(str, enum.Enum):
    """Whether the desktop session lets timers run."""

    ACTIVE = "active"
    SUSPENDED = "suspended"  # lock screen, greeter, suspend


class ReminderState(str, enum.Enum):
    """Controller lifecycle states."""

    IDLE = "idle"
    WAITING = "waiting"
    ON_BREAK = "on-break"


class TimerPurpose(str, enum.Enum):
    """The logical timers owned by the reminder controller."""

    INTERVAL = "interval"
    BREAK_END = "break-end"
    COUNTDOWN = "countdown"
    SNOOZE = "snooze"


class ReminderSettings(BaseModel):
    """User settings (persisted to ~/.config/wellbeing/settings.json)."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    enabled: bool = False
    break_interval: int = Field(
        default=1200, ge=INTERVAL_MIN, le=INTERVAL_MAX, alias="break-interval"
    )
    break_duration: int = Field(
        default=20, ge=DURATION_MIN, le=DURATION_MAX, alias="break-duration"
    )
    snooze_duration: int = Field(
        default=300, ge=SNOOZE_MIN, le=SNOOZE_MAX, alias="snooze-duration"
    )


# Persisted key -> model attribute
SETTING_KEYS: dict[str, str] = {
    "enabled": "enabled",
    "break-interval": "break_interval",
    "break-duration": "break_duration",
    "snooze-duration": "snooze_duration",
}


class AutostartStatus(BaseModel):
    """Current state of autostart configuration."""

    systemd_enabled: bool = False
    xdg_enabled: bool = False
    service_path: Optional[str] = None
    desktop_entry_path: Optional[str] = None


# ---------------------------------------------------------------------------
# Controller events
# ---------------------------------------------------------------------------


class ReminderEvent(BaseModel):
    """Base class for everything the controller reacts to."""

    model_config = ConfigDict(frozen=True)


class SessionSuspended(ReminderEvent):
    """The session left user mode (locked, suspended)."""


class SessionResumed(ReminderEvent):
    """The session returned to user mode."""


class EnabledChanged(ReminderEvent):
    enabled: bool


class IntervalChanged(ReminderEvent):
    seconds: int = Field(ge=INTERVAL_MIN, le=INTERVAL_MAX)


class DurationChanged(ReminderEvent):
    seconds: int = Field(ge=DURATION_MIN, le=DURATION_MAX)


class SnoozeDurationChanged(ReminderEvent):
    seconds: int = Field(ge=SNOOZE_MIN, le=SNOOZE_MAX)


class IntervalTimerFired(ReminderEvent):
    pass


class CountdownTick(ReminderEvent):
    pass


class BreakEndedFallback(ReminderEvent):
    pass


class SnoozeTimerFired(ReminderEvent):
    pass


class UserSkip(ReminderEvent):
    pass


class UserSnooze(ReminderEvent):
    pass
