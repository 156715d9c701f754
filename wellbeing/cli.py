"""Wellbeing CLI -- launch the break reminder and edit its preferences."""

from __future__ import annotations

import logging
from typing import Any, Optional

import typer
from pydantic import ValidationError

from wellbeing import display
from wellbeing.config import ConfigurationMissing, SettingsStore

app = typer.Typer(
    name="wellbeing",
    help="Take regular breaks: a full-screen reminder with snooze and skip.",
    no_args_is_help=True,
)


def _store() -> SettingsStore:
    """Open the settings store, exiting with status 1 if the schema is missing."""
    try:
        return SettingsStore.open()
    except ConfigurationMissing as exc:
        display.print_warning(str(exc))
        raise typer.Exit(1)


def _apply(store: SettingsStore, values: dict[str, Any]) -> list[str]:
    try:
        return store.update(values)
    except ValidationError as exc:
        for err in exc.errors():
            field = ".".join(str(part) for part in err["loc"])
            display.print_warning(f"{field}: {err['msg']}")
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Reminder
# ---------------------------------------------------------------------------


@app.command()
def run(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every transition"),
) -> None:
    """Start the break reminder (control window + overlay)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = _store()

    from wellbeing.gui import run_gui

    run_gui(store)


@app.command()
def enable() -> None:
    """Turn break reminders on."""
    _apply(_store(), {"enabled": True})
    display.print_success("Break reminders enabled.")


@app.command()
def disable() -> None:
    """Turn break reminders off."""
    _apply(_store(), {"enabled": False})
    display.print_success("Break reminders disabled.")


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------


@app.command()
def prefs(
    interval: Optional[int] = typer.Option(
        None, "--interval", "-i", help="Time between breaks in seconds (10-7200)"
    ),
    duration: Optional[int] = typer.Option(
        None, "--duration", "-d", help="Duration of break in seconds (5-900)"
    ),
    snooze: Optional[int] = typer.Option(
        None, "--snooze", "-s", help="Duration to snooze break in seconds (5-1800)"
    ),
    reset: bool = typer.Option(False, "--reset", help="Restore the default preferences"),
    show: bool = typer.Option(False, "--show", help="Show current preferences"),
) -> None:
    """Show or change break interval, break duration and snooze duration."""
    store = _store()

    values: dict[str, Any] = {}
    if interval is not None:
        values["break-interval"] = interval
    if duration is not None:
        values["break-duration"] = duration
    if snooze is not None:
        values["snooze-duration"] = snooze

    if reset:
        store.reset()
        display.print_success("Reset preferences to defaults.")
    elif values:
        changed = _apply(store, values)
        if changed:
            display.print_success(f"Updated: {', '.join(changed)}")
        else:
            display.print_info("Nothing changed.")
    elif not show:
        display.print_info("Use --interval, --duration, --snooze, --reset, or --show.")
        return

    display.print_settings(store.settings)


# ---------------------------------------------------------------------------
# Autostart
# ---------------------------------------------------------------------------


@app.command()
def autostart(
    enable: bool = typer.Option(False, "--enable", help="Start the reminder on login"),
    disable: bool = typer.Option(False, "--disable", help="Disable autostart"),
    show_status: bool = typer.Option(False, "--status", help="Show autostart status"),
) -> None:
    """Manage autostart on login."""
    from wellbeing.autostart import disable_autostart, enable_autostart, get_autostart_status

    if enable:
        result = enable_autostart()
        if result.systemd_enabled or result.xdg_enabled:
            display.print_success("Autostart enabled.")
        else:
            display.print_warning("Could not enable autostart.")
            raise typer.Exit(1)
    elif disable:
        disable_autostart()
        display.print_success("Autostart disabled.")
    elif show_status:
        result = get_autostart_status()
        display.print_info(f"Systemd service: {'enabled' if result.systemd_enabled else 'not found'}")
        display.print_info(f"XDG autostart: {'enabled' if result.xdg_enabled else 'not found'}")
        if result.service_path:
            display.print_info(f"  Service: {result.service_path}")
        if result.desktop_entry_path:
            display.print_info(f"  Desktop entry: {result.desktop_entry_path}")
    else:
        display.print_info("Use --enable, --disable, or --status.")
