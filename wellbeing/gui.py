"""Tkinter host: break overlay, control window and preferences dialog."""

from __future__ import annotations

import logging
import tkinter as tk
from tkinter import messagebox, ttk
from typing import Any, Callable, Optional

from PIL import Image, ImageDraw, ImageTk
from pydantic import ValidationError

from wellbeing.config import SettingsStore
from wellbeing.controller import ReminderController
from wellbeing.messages import (
    KEYBOARD_HINT,
    format_duration,
    format_remaining,
    get_break_message,
)
from wellbeing.models import (
    DURATION_MAX,
    DURATION_MIN,
    INTERVAL_MAX,
    INTERVAL_MIN,
    SNOOZE_MAX,
    SNOOZE_MIN,
    ReminderState,
    SessionMode,
)
from wellbeing.session import SessionMonitor
from wellbeing.timers import TkTimerService

log = logging.getLogger(__name__)

_BG = "#2b2b2b"
_FG = "#e0e0e0"
_ACCENT = "#6a9fb5"
_OVERLAY_BG = "#1e1e1e"
_OVERLAY_ALPHA = 0.95

_FADE_IN_MS = 500
_FADE_OUT_MS = 300
_FADE_STEP_MS = 20


# ----------------------------------------------------------------------
# Break overlay
# ----------------------------------------------------------------------


class _Overlay:
    """One full-screen break window. Torn down at most once."""

    def __init__(
        self,
        root: tk.Tk,
        remaining: int,
        on_snooze: Callable[[], None],
        on_skip: Callable[[], None],
    ) -> None:
        self._root = root
        self.closing = False
        self._fade_job: Optional[str] = None

        win = tk.Toplevel(root)
        win.overrideredirect(True)
        win.attributes("-topmost", True)
        win.configure(bg=_OVERLAY_BG, cursor="arrow")
        sw = root.winfo_screenwidth()
        sh = root.winfo_screenheight()
        win.geometry(f"{sw}x{sh}+0+0")
        self.window = win

        box = tk.Frame(win, bg=_OVERLAY_BG)
        box.place(relx=0.5, rely=0.5, anchor="center")

        tk.Label(
            box,
            text=get_break_message(),
            bg=_OVERLAY_BG,
            fg=_FG,
            font=("sans-serif", 28, "bold"),
            wraplength=int(sw * 0.7),
        ).pack(pady=(0, 24))

        self._countdown = tk.Label(
            box,
            text=format_remaining(remaining),
            bg=_OVERLAY_BG,
            fg="#e8c547",
            font=("sans-serif", 20),
        )
        self._countdown.pack(pady=(0, 32))

        buttons = tk.Frame(box, bg=_OVERLAY_BG)
        buttons.pack(fill="x", pady=(0, 24))
        for text, command in (("Snooze", on_snooze), ("Skip Break", on_skip)):
            tk.Button(
                buttons,
                text=text,
                command=command,
                bg="#3a3a3a",
                fg=_FG,
                activebackground=_ACCENT,
                activeforeground="#fff",
                relief="flat",
                font=("sans-serif", 14),
                padx=24,
                pady=10,
            ).pack(side="left", expand=True, fill="x", padx=8)

        tk.Label(
            box,
            text=KEYBOARD_HINT,
            bg=_OVERLAY_BG,
            fg="#8a8a8a",
            font=("sans-serif", 11, "italic"),
        ).pack()

        win.bind("<Escape>", lambda _e: on_skip())
        win.bind("<space>", lambda _e: on_snooze())

        # Tk refuses a grab until the window is viewable.
        self._grabbed = False
        win.bind("<Map>", self._on_map)

        self._set_alpha(0.0)
        win.lift()
        self._fade(0.0, _OVERLAY_ALPHA, _FADE_IN_MS)

    def _on_map(self, _event: Any = None) -> None:
        if self.closing or self._grabbed:
            return
        self._grabbed = True
        self.window.lift()
        self.window.focus_force()
        try:
            self.window.grab_set()
        except tk.TclError:
            log.debug("Input grab unavailable for break overlay")

    def set_remaining(self, remaining: int) -> None:
        if self.closing:
            return
        self._countdown.configure(text=format_remaining(remaining))

    def close(self) -> None:
        """Fade out, then destroy. Repeated calls are ignored."""
        if self.closing:
            return
        self.closing = True
        self.window.unbind("<Escape>")
        self.window.unbind("<space>")
        self.window.unbind("<Map>")
        try:
            self.window.grab_release()
        except tk.TclError:
            pass
        self._fade(self._get_alpha(), 0.0, _FADE_OUT_MS, on_done=self._destroy)

    def _destroy(self) -> None:
        self._fade_job = None
        try:
            self.window.destroy()
        except tk.TclError:
            # Root already gone at shutdown.
            pass

    def _fade(
        self,
        start: float,
        end: float,
        duration_ms: int,
        on_done: Optional[Callable[[], None]] = None,
    ) -> None:
        if self._fade_job is not None:
            self._root.after_cancel(self._fade_job)
            self._fade_job = None
        steps = max(1, duration_ms // _FADE_STEP_MS)

        def _step(i: int) -> None:
            self._set_alpha(start + (end - start) * i / steps)
            if i < steps:
                self._fade_job = self._root.after(_FADE_STEP_MS, _step, i + 1)
            else:
                self._fade_job = None
                if on_done is not None:
                    on_done()

        _step(1)

    def _set_alpha(self, value: float) -> None:
        try:
            self.window.attributes("-alpha", value)
        except tk.TclError:
            pass

    def _get_alpha(self) -> float:
        try:
            return float(self.window.attributes("-alpha"))
        except (tk.TclError, ValueError):
            return _OVERLAY_ALPHA


class TkOverlayPresenter:
    """``OverlayPresenter`` that opens a topmost full-screen ``Toplevel``."""

    def __init__(self, root: tk.Tk) -> None:
        self._root = root

    def show(
        self,
        initial_remaining: int,
        on_snooze: Callable[[], None],
        on_skip: Callable[[], None],
    ) -> _Overlay:
        return _Overlay(self._root, initial_remaining, on_snooze, on_skip)

    def update(self, handle: Any, remaining: int) -> None:
        handle.set_remaining(remaining)

    def hide(self, handle: Any) -> None:
        handle.close()


# ----------------------------------------------------------------------
# Control window
# ----------------------------------------------------------------------


class WellbeingApp:
    """Small control window: enabled toggle, status line, preferences."""

    def __init__(self, store: SettingsStore) -> None:
        self.root = tk.Tk()
        self.root.title("Wellbeing")
        self.root.geometry("320x170")
        self.root.resizable(False, False)
        self.root.configure(bg=_BG)

        self.store = store
        self._icons = self._build_icons()

        self._style = ttk.Style()
        self._style.theme_use("clam")
        self._configure_styles()

        self.timers = TkTimerService(self.root)
        self.monitor = SessionMonitor()
        self.monitor.start(self.timers)
        self.controller = ReminderController(
            self.timers,
            TkOverlayPresenter(self.root),
            store=store,
            monitor=self.monitor,
        )
        store.watch(self.timers)

        self._enabled_var = tk.BooleanVar(value=store.get("enabled"))
        self._enabled_handler = store.connect("enabled", self._on_enabled_setting)
        self._status_job: Optional[str] = None

        self._build_ui()
        self._update_icon()
        self._refresh_status()
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

    # ------------------------------------------------------------------
    # App icon
    # ------------------------------------------------------------------

    def _build_icons(self) -> dict[bool, ImageTk.PhotoImage]:
        """Draw the leaf icon at full strength (enabled) and dimmed (disabled)."""
        size = 64
        img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
        draw = ImageDraw.Draw(img)
        draw.ellipse([2, 2, size - 3, size - 3], fill=_ACCENT)
        draw.ellipse([18, 14, 46, 50], fill="white")
        draw.line([22, 46, 42, 18], fill=_ACCENT, width=3)

        dimmed = img.copy()
        dimmed.putalpha(dimmed.getchannel("A").point(lambda a: a // 2))
        return {True: ImageTk.PhotoImage(img), False: ImageTk.PhotoImage(dimmed)}

    def _update_icon(self) -> None:
        self.root.wm_iconphoto(True, self._icons[bool(self.store.get("enabled"))])

    def _configure_styles(self) -> None:
        """Configure ttk styles for a dark, calming theme."""
        self._style.configure("TFrame", background=_BG)
        self._style.configure(
            "TLabel", background=_BG, foreground=_FG, font=("sans-serif", 10)
        )
        self._style.configure(
            "Title.TLabel",
            background=_BG,
            foreground=_ACCENT,
            font=("sans-serif", 14, "bold"),
        )
        self._style.configure(
            "Status.TLabel",
            background=_BG,
            foreground="#b5b5b5",
            font=("sans-serif", 10, "italic"),
            wraplength=290,
        )
        self._style.configure(
            "TCheckbutton", background=_BG, foreground=_FG, font=("sans-serif", 10)
        )
        self._style.configure("TButton", font=("sans-serif", 9))

    def _build_ui(self) -> None:
        pad = {"padx": 12, "pady": 4}
        frame = ttk.Frame(self.root)
        frame.pack(fill="both", expand=True, pady=8)

        ttk.Label(frame, text="Wellbeing", style="Title.TLabel").pack(anchor="w", **pad)
        ttk.Checkbutton(
            frame,
            text="Enabled",
            variable=self._enabled_var,
            command=self._on_toggle,
        ).pack(anchor="w", **pad)
        self._status_label = ttk.Label(frame, text="", style="Status.TLabel")
        self._status_label.pack(anchor="w", **pad)
        ttk.Button(frame, text="Preferences", command=self._on_preferences).pack(
            anchor="e", **pad
        )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def _status_text(self) -> str:
        ctl = self.controller
        if ctl.state is ReminderState.ON_BREAK:
            return f"On break: {format_remaining(ctl.remaining)}"
        if ctl.state is ReminderState.WAITING:
            if ctl.is_snoozing:
                return f"Break snoozed for {format_duration(ctl.settings.snooze_duration)}"
            return f"Next break every {format_duration(ctl.settings.break_interval)}"
        if ctl.session_mode is SessionMode.SUSPENDED:
            return "Paused while the session is locked"
        return "Reminders are off"

    def _refresh_status(self) -> None:
        self._status_label.configure(text=self._status_text())
        self._status_job = self.root.after(1000, self._refresh_status)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _on_toggle(self) -> None:
        self.store.set("enabled", self._enabled_var.get())

    def _on_enabled_setting(self, key: str, value: Any) -> None:
        self._enabled_var.set(bool(value))
        self._update_icon()

    def _on_preferences(self) -> None:
        PreferencesDialog(self.root, self.store)

    def _on_close(self) -> None:
        self.controller.destroy()
        self.monitor.stop()
        self.store.unwatch()
        self.store.disconnect(self._enabled_handler)
        if self._status_job is not None:
            self.root.after_cancel(self._status_job)
        self.timers.cancel_all()
        self.root.destroy()

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Start the tkinter main loop."""
        self.root.mainloop()


class PreferencesDialog:
    """Break interval, break duration and snooze duration, in seconds."""

    _ROWS: tuple[tuple[str, str, str, int, int], ...] = (
        ("break-interval", "Break Interval", "Time between breaks in seconds", INTERVAL_MIN, INTERVAL_MAX),
        ("break-duration", "Break Duration", "Duration of break in seconds", DURATION_MIN, DURATION_MAX),
        ("snooze-duration", "Snooze Duration", "Duration to snooze break in seconds", SNOOZE_MIN, SNOOZE_MAX),
    )

    def __init__(self, parent: tk.Misc, store: SettingsStore) -> None:
        self.store = store
        win = tk.Toplevel(parent)
        win.title("Preferences")
        win.configure(bg=_BG)
        win.resizable(False, False)
        win.transient(parent)
        self.window = win

        frame = ttk.Frame(win)
        frame.pack(fill="both", expand=True, padx=12, pady=12)
        ttk.Label(frame, text="Break Settings", style="Title.TLabel").grid(
            row=0, column=0, columnspan=2, sticky="w", pady=(0, 8)
        )

        self._vars: dict[str, tk.StringVar] = {}
        for i, (key, title, subtitle, low, high) in enumerate(self._ROWS, start=1):
            var = tk.StringVar(value=str(store.get(key)))
            self._vars[key] = var
            ttk.Label(frame, text=f"{title}\n{subtitle}").grid(
                row=i, column=0, sticky="w", pady=4
            )
            ttk.Spinbox(
                frame, from_=low, to=high, increment=5, textvariable=var, width=7
            ).grid(row=i, column=1, sticky="e", padx=(12, 0))

        buttons = ttk.Frame(frame)
        buttons.grid(row=len(self._ROWS) + 1, column=0, columnspan=2, sticky="e", pady=(8, 0))
        ttk.Button(buttons, text="Cancel", command=win.destroy).pack(side="right")
        ttk.Button(buttons, text="Save", command=self._on_save).pack(side="right", padx=6)

    def _on_save(self) -> None:
        try:
            values = {key: int(var.get()) for key, var in self._vars.items()}
            self.store.update(values)
        except ValueError as exc:
            # pydantic.ValidationError is a ValueError subclass
            detail = _first_error(exc)
            messagebox.showwarning("Preferences", detail, parent=self.window)
            return
        self.window.destroy()


def _first_error(exc: ValueError) -> str:
    if isinstance(exc, ValidationError):
        err = exc.errors()[0]
        field = ".".join(str(part) for part in err["loc"]) or "value"
        return f"{field}: {err['msg']}"
    return "Please enter whole numbers of seconds."


def run_gui(store: Optional[SettingsStore] = None) -> None:
    """Entry point for the GUI (called from CLI). Raises ConfigurationMissing."""
    if store is None:
        store = SettingsStore.open()
    app = WellbeingApp(store)
    log.info("Wellbeing started: enabled=%s", store.get("enabled"))
    app.run()
