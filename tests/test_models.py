"""Tests for Pydantic models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from wellbeing.models import (
    AutostartStatus,
    DurationChanged,
    EnabledChanged,
    IntervalChanged,
    ReminderSettings,
    ReminderState,
    SessionMode,
    SnoozeDurationChanged,
    TimerPurpose,
)


class TestEnums:
    def test_values(self) -> None:
        assert ReminderState.IDLE.value == "idle"
        assert ReminderState.ON_BREAK.value == "on-break"
        assert SessionMode("suspended") is SessionMode.SUSPENDED
        assert {p.value for p in TimerPurpose} == {
            "interval",
            "break-end",
            "countdown",
            "snooze",
        }


class TestReminderSettings:
    def test_defaults(self) -> None:
        s = ReminderSettings()
        assert not s.enabled
        assert s.break_interval == 1200
        assert s.break_duration == 20
        assert s.snooze_duration == 300

    def test_aliases(self) -> None:
        s = ReminderSettings.model_validate({"break-interval": 60, "snooze-duration": 10})
        assert s.break_interval == 60
        assert s.snooze_duration == 10
        dumped = s.model_dump(by_alias=True)
        assert set(dumped) == {"enabled", "break-interval", "break-duration", "snooze-duration"}

    @pytest.mark.parametrize(
        "field,value",
        [
            ("break_interval", 9),
            ("break_interval", 7201),
            ("break_duration", 4),
            ("break_duration", 901),
            ("snooze_duration", 4),
            ("snooze_duration", 1801),
        ],
    )
    def test_out_of_bounds(self, field: str, value: int) -> None:
        with pytest.raises(ValidationError):
            ReminderSettings(**{field: value})

    @pytest.mark.parametrize(
        "field,value",
        [
            ("break_interval", 10),
            ("break_interval", 7200),
            ("break_duration", 5),
            ("break_duration", 900),
            ("snooze_duration", 5),
            ("snooze_duration", 1800),
        ],
    )
    def test_bounds_inclusive(self, field: str, value: int) -> None:
        assert getattr(ReminderSettings(**{field: value}), field) == value

    def test_assignment_validated(self) -> None:
        s = ReminderSettings()
        with pytest.raises(ValidationError):
            s.break_duration = 0


class TestEvents:
    def test_frozen(self) -> None:
        event = EnabledChanged(enabled=True)
        with pytest.raises(ValidationError):
            event.enabled = False  # type: ignore[misc]

    def test_change_events_validate_bounds(self) -> None:
        with pytest.raises(ValidationError):
            IntervalChanged(seconds=5)
        with pytest.raises(ValidationError):
            DurationChanged(seconds=1000)
        with pytest.raises(ValidationError):
            SnoozeDurationChanged(seconds=1)

    def test_equality(self) -> None:
        assert IntervalChanged(seconds=60) == IntervalChanged(seconds=60)


class TestAutostartStatus:
    def test_defaults(self) -> None:
        s = AutostartStatus()
        assert not s.systemd_enabled
        assert not s.xdg_enabled
        assert s.service_path is None
