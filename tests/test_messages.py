"""Tests for overlay text."""

from __future__ import annotations

from pathlib import Path

import pytest

from wellbeing.messages import (
    DEFAULT_BREAK_MESSAGE,
    _MESSAGES,
    format_duration,
    format_remaining,
    get_break_message,
    load_messages,
    parse_bullets,
)


class TestFormatRemaining:
    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (5, "5 seconds remaining"),
            (1, "1 second remaining"),
            (0, "0 seconds remaining"),
            (59, "59 seconds remaining"),
            (60, "1 minute remaining"),
            (61, "1 minute 1 second remaining"),
            (62, "1 minute 2 seconds remaining"),
            (120, "2 minutes remaining"),
            (125, "2 minutes 5 seconds remaining"),
            (900, "15 minutes remaining"),
        ],
    )
    def test_examples(self, seconds: int, expected: str) -> None:
        assert format_remaining(seconds) == expected

    def test_duration_has_no_suffix(self) -> None:
        assert format_duration(7200) == "120 minutes"


class TestBreakMessage:
    def test_message_from_list(self) -> None:
        assert get_break_message() in _MESSAGES

    def test_messages_not_empty(self) -> None:
        assert _MESSAGES
        assert all(m.strip() for m in _MESSAGES)

    def test_default_message(self) -> None:
        assert DEFAULT_BREAK_MESSAGE == "Time to hydrate, stretch, or take a quick walk."


class TestLoadMessages:
    def test_packaged_file_ships_with_module(self) -> None:
        packaged = Path(__file__).resolve().parent.parent / "wellbeing" / "break_messages.md"
        messages = load_messages(packaged)
        assert messages[0] == DEFAULT_BREAK_MESSAGE
        assert len(messages) > 1

    def test_user_file_wins(self, tmp_path: Path) -> None:
        user = tmp_path / "break_messages.md"
        user.write_text("# Mine\n\n- Drink water\n- Stretch\n", encoding="utf-8")
        packaged = tmp_path / "packaged.md"
        packaged.write_text("- Packaged prompt\n", encoding="utf-8")
        assert load_messages(user, packaged) == ["Drink water", "Stretch"]

    def test_user_file_without_bullets_falls_through(self, tmp_path: Path) -> None:
        user = tmp_path / "break_messages.md"
        user.write_text("Just prose, no list.\n", encoding="utf-8")
        packaged = tmp_path / "packaged.md"
        packaged.write_text("- Packaged prompt\n", encoding="utf-8")
        assert load_messages(user, packaged) == ["Packaged prompt"]

    def test_nothing_readable(self, tmp_path: Path) -> None:
        assert load_messages(tmp_path / "a.md", tmp_path / "b.md") == [DEFAULT_BREAK_MESSAGE]

    def test_parse_bullets(self) -> None:
        lines = ["# Title", "-", "- ", "  -  Walk  ", "-not a bullet", "- Walk", "- Breathe"]
        assert parse_bullets(lines) == ["Walk", "Breathe"]

    def test_explicit_list(self) -> None:
        assert get_break_message(["Only one"]) == "Only one"
