"""One-shot timers on the tkinter event loop."""

from __future__ import annotations

import itertools
import tkinter as tk
from typing import Callable


class TkTimerService:
    """``TimerService`` backed by ``after`` / ``after_cancel``.

    Handles are plain integers owned by this service, so cancelling a handle
    whose callback already ran (or was cancelled) is a no-op.
    """

    def __init__(self, widget: tk.Misc) -> None:
        self._widget = widget
        self._pending: dict[int, str] = {}
        self._ids = itertools.count(1)

    def arm_once(self, delay_seconds: float, callback: Callable[[], None]) -> int:
        handle = next(self._ids)

        def _fire() -> None:
            if self._pending.pop(handle, None) is None:
                return
            callback()

        self._pending[handle] = self._widget.after(int(delay_seconds * 1000), _fire)
        return handle

    def cancel(self, handle: int) -> None:
        after_id = self._pending.pop(handle, None)
        if after_id is not None:
            self._widget.after_cancel(after_id)

    def cancel_all(self) -> None:
        for handle in list(self._pending):
            self.cancel(handle)

    @property
    def pending(self) -> int:
        return len(self._pending)
