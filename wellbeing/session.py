"""Session lock detection: user mode vs. lock screen."""

from __future__ import annotations

import itertools
import logging
import os
import subprocess
from typing import Callable, Optional

from wellbeing.contracts import TimerService
from wellbeing.models import SessionMode

log = logging.getLogger(__name__)

POLL_INTERVAL = 5  # seconds between lock checks
MAX_PENDING_POLLS = 3  # a loginctl still running after this many polls is killed

SessionCallback = Callable[[SessionMode], None]


def _session_id() -> Optional[str]:
    return os.environ.get("XDG_SESSION_ID")


def parse_locked_hint(returncode: int, stdout: str) -> SessionMode:
    if returncode == 0 and stdout.strip().lower() == "yes":
        return SessionMode.SUSPENDED
    return SessionMode.ACTIVE


class LockedHintQuery:
    """Asks logind whether the session is locked without waiting for it.

    Each call collects the answer of the ``loginctl`` started by the previous
    call, if it has exited, and starts the next one. The answer therefore lags
    one poll behind. Anything that prevents an answer (no loginctl, no session
    id, a hung query) counts as an active session so that reminders keep
    working outside systemd.
    """

    def __init__(self) -> None:
        self._proc: Optional[subprocess.Popen] = None
        self._pending_polls = 0
        self._last = SessionMode.ACTIVE

    def __call__(self) -> SessionMode:
        proc = self._proc
        if proc is not None:
            if proc.poll() is None:
                self._pending_polls += 1
                if self._pending_polls < MAX_PENDING_POLLS:
                    return self._last
                log.warning("loginctl did not answer, assuming an active session")
                self.close()
                self._last = SessionMode.ACTIVE
            else:
                stdout, _ = proc.communicate()
                self._proc = None
                self._last = parse_locked_hint(proc.returncode, stdout or "")
        self._proc = self._spawn()
        self._pending_polls = 0
        return self._last

    def close(self) -> None:
        """Kill a query still in flight."""
        if self._proc is None:
            return
        proc, self._proc = self._proc, None
        if proc.poll() is None:
            proc.kill()
        proc.communicate()

    @staticmethod
    def _spawn() -> Optional[subprocess.Popen]:
        session_id = _session_id()
        if not session_id:
            return None
        try:
            return subprocess.Popen(
                ["loginctl", "show-session", session_id, "-p", "LockedHint", "--value"],
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
            )
        except FileNotFoundError:
            return None


class SessionMonitor:
    """Publishes session mode changes to subscribers.

    ``start()`` polls a :class:`LockedHintQuery` on the host's timer service;
    hosts without logind can drive the signal with :meth:`set_mode`.
    """

    def __init__(
        self,
        mode: SessionMode = SessionMode.ACTIVE,
        *,
        probe: Optional[Callable[[], SessionMode]] = None,
    ) -> None:
        self._mode = mode
        self._query = LockedHintQuery() if probe is None else None
        self._probe = probe or self._query
        self._handlers: dict[int, SessionCallback] = {}
        self._ids = itertools.count(1)
        self._timers: Optional[TimerService] = None
        self._poll_handle: object = None

    @property
    def mode(self) -> SessionMode:
        return self._mode

    def connect(self, callback: SessionCallback) -> int:
        handler_id = next(self._ids)
        self._handlers[handler_id] = callback
        return handler_id

    def disconnect(self, handler_id: int) -> None:
        self._handlers.pop(handler_id, None)

    def set_mode(self, mode: SessionMode) -> None:
        if mode is self._mode:
            return
        log.info("Session mode changed: %s -> %s", self._mode.value, mode.value)
        self._mode = mode
        for callback in list(self._handlers.values()):
            callback(mode)

    def poll(self) -> SessionMode:
        """Check once and publish any change."""
        self.set_mode(self._probe())
        return self._mode

    def start(self, timers: TimerService, interval: float = POLL_INTERVAL) -> None:
        """Check now, then every ``interval`` seconds until :meth:`stop`."""
        self.stop()
        self._timers = timers

        def _tick() -> None:
            self.poll()
            self._poll_handle = timers.arm_once(interval, _tick)

        self.poll()
        self._poll_handle = timers.arm_once(interval, _tick)

    def stop(self) -> None:
        if self._timers is not None and self._poll_handle is not None:
            self._timers.cancel(self._poll_handle)
        self._timers = None
        self._poll_handle = None
        if self._query is not None:
            self._query.close()
