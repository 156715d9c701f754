"""Tests for session lock detection."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from wellbeing.models import SessionMode
from wellbeing.session import (
    MAX_PENDING_POLLS,
    LockedHintQuery,
    SessionMonitor,
    parse_locked_hint,
)


def _proc(stdout: str = "", returncode: int = 0, running: bool = False) -> MagicMock:
    proc = MagicMock()
    proc.poll.return_value = None if running else returncode
    proc.returncode = returncode
    proc.communicate.return_value = (stdout, None)
    return proc


class TestParseLockedHint:
    def test_locked(self) -> None:
        assert parse_locked_hint(0, "yes\n") is SessionMode.SUSPENDED

    def test_unlocked(self) -> None:
        assert parse_locked_hint(0, "no\n") is SessionMode.ACTIVE

    def test_error(self) -> None:
        assert parse_locked_hint(1, "yes\n") is SessionMode.ACTIVE


class TestLockedHintQuery:
    def test_no_session_id_is_active(self) -> None:
        with patch.dict("os.environ", {}, clear=True), patch("subprocess.Popen") as popen:
            query = LockedHintQuery()
            assert query() is SessionMode.ACTIVE
            assert query() is SessionMode.ACTIVE
            popen.assert_not_called()

    def test_answer_is_collected_on_next_call(self) -> None:
        with (
            patch.dict("os.environ", {"XDG_SESSION_ID": "3"}),
            patch("subprocess.Popen", side_effect=[_proc("yes\n"), _proc("no\n"), _proc()]) as popen,
        ):
            query = LockedHintQuery()
            assert query() is SessionMode.ACTIVE
            args = popen.call_args[0][0]
            assert args[:3] == ["loginctl", "show-session", "3"]
            assert query() is SessionMode.SUSPENDED
            assert query() is SessionMode.ACTIVE
            assert popen.call_count == 3

    def test_never_waits_for_a_running_query(self) -> None:
        running = _proc(running=True)
        with (
            patch.dict("os.environ", {"XDG_SESSION_ID": "3"}),
            patch("subprocess.Popen", return_value=running) as popen,
        ):
            query = LockedHintQuery()
            query()
            assert query() is SessionMode.ACTIVE
            running.communicate.assert_not_called()
            running.wait.assert_not_called()
            assert popen.call_count == 1

    def test_hung_query_is_killed(self) -> None:
        hung = _proc(running=True)
        with (
            patch.dict("os.environ", {"XDG_SESSION_ID": "3"}),
            patch("subprocess.Popen", side_effect=[hung, _proc("no\n")]) as popen,
        ):
            query = LockedHintQuery()
            for _ in range(MAX_PENDING_POLLS + 1):
                assert query() is SessionMode.ACTIVE
            hung.kill.assert_called_once()
            assert popen.call_count == 2

    def test_loginctl_missing(self) -> None:
        with (
            patch.dict("os.environ", {"XDG_SESSION_ID": "3"}),
            patch("subprocess.Popen", side_effect=FileNotFoundError),
        ):
            query = LockedHintQuery()
            assert query() is SessionMode.ACTIVE
            assert query() is SessionMode.ACTIVE

    def test_close_kills_pending(self) -> None:
        running = _proc(running=True)
        with (
            patch.dict("os.environ", {"XDG_SESSION_ID": "3"}),
            patch("subprocess.Popen", return_value=running),
        ):
            query = LockedHintQuery()
            query()
            query.close()
            query.close()
            running.kill.assert_called_once()


class TestSessionMonitor:
    def test_set_mode_notifies_on_change_only(self) -> None:
        monitor = SessionMonitor()
        callback = MagicMock()
        monitor.connect(callback)

        monitor.set_mode(SessionMode.ACTIVE)
        callback.assert_not_called()

        monitor.set_mode(SessionMode.SUSPENDED)
        callback.assert_called_once_with(SessionMode.SUSPENDED)
        assert monitor.mode is SessionMode.SUSPENDED

    def test_disconnect(self) -> None:
        monitor = SessionMonitor()
        callback = MagicMock()
        handler_id = monitor.connect(callback)
        monitor.disconnect(handler_id)
        monitor.set_mode(SessionMode.SUSPENDED)
        callback.assert_not_called()

    def test_polling(self, timers) -> None:
        modes = iter([SessionMode.ACTIVE, SessionMode.SUSPENDED, SessionMode.ACTIVE])
        monitor = SessionMonitor(probe=lambda: next(modes))
        seen: list[SessionMode] = []
        monitor.connect(seen.append)

        monitor.start(timers, interval=5)
        assert monitor.mode is SessionMode.ACTIVE
        timers.advance(5)
        assert monitor.mode is SessionMode.SUSPENDED
        timers.advance(5)
        assert seen == [SessionMode.SUSPENDED, SessionMode.ACTIVE]

    def test_stop_cancels_polling(self, timers) -> None:
        probe = MagicMock(return_value=SessionMode.ACTIVE)
        monitor = SessionMonitor(probe=probe)
        monitor.start(timers, interval=5)
        monitor.stop()
        timers.advance(60)
        assert probe.call_count == 1
        assert timers.live == 0

    def test_stop_closes_default_query(self, timers) -> None:
        running = _proc(running=True)
        with (
            patch.dict("os.environ", {"XDG_SESSION_ID": "3"}),
            patch("subprocess.Popen", return_value=running),
        ):
            monitor = SessionMonitor()
            monitor.start(timers, interval=5)
            monitor.stop()
        running.kill.assert_called_once()
        assert monitor.mode is SessionMode.ACTIVE
