"""Protocols describing the presentation environment the controller runs in."""

from __future__ import annotations

from typing import Any, Callable, Hashable, Protocol


class TimerService(Protocol):
    """One-shot timers on the host's event loop."""

    def arm_once(self, delay_seconds: float, callback: Callable[[], None]) -> Hashable:
        """Run ``callback`` once after ``delay_seconds``; return a handle."""
        ...

    def cancel(self, handle: Hashable) -> None:
        """Cancel a handle. No-op for fired or already cancelled handles."""
        ...


class OverlayPresenter(Protocol):
    """Full-screen break overlay. Owns every visual and input concern."""

    def show(
        self,
        initial_remaining: int,
        on_snooze: Callable[[], None],
        on_skip: Callable[[], None],
    ) -> Any:
        ...

    def update(self, handle: Any, remaining: int) -> None:
        ...

    def hide(self, handle: Any) -> None:
        """Request removal. Idempotent; must not block on fade-out."""
        ...
