"""Launch at login: systemd user service + XDG autostart desktop entry."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional

from wellbeing.models import AutostartStatus

log = logging.getLogger(__name__)

_SERVICE_NAME = "wellbeing.service"
_DESKTOP_ENTRY_NAME = "wellbeing.desktop"


def _systemd_dir() -> Path:
    """Return the systemd user unit directory."""
    return Path.home() / ".config" / "systemd" / "user"


def _xdg_autostart_dir() -> Path:
    """Return the XDG autostart directory."""
    return Path.home() / ".config" / "autostart"


def _find_wellbeing_bin() -> Optional[str]:
    return shutil.which("wellbeing")


def _service_path() -> Path:
    return _systemd_dir() / _SERVICE_NAME


def _desktop_entry_path() -> Path:
    return _xdg_autostart_dir() / _DESKTOP_ENTRY_NAME


def service_unit(bin_path: str) -> str:
    """Text of the systemd user unit that runs the reminder with the desktop."""
    return f"""\
[Unit]
Description=Wellbeing break reminder
PartOf=graphical-session.target
After=graphical-session.target

[Service]
Type=simple
ExecStart={bin_path} run
Restart=on-failure
RestartSec=5

[Install]
WantedBy=graphical-session.target
"""


def desktop_entry(bin_path: str) -> str:
    """Text of the XDG autostart entry."""
    return f"""\
[Desktop Entry]
Type=Application
Name=Wellbeing
Comment=Reminds you to take regular breaks
Exec={bin_path} run
Terminal=false
Categories=Utility;
X-GNOME-Autostart-enabled=true
"""


def _systemctl(*args: str, check: bool) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["systemctl", "--user", *args],
        check=check,
        capture_output=True,
        text=True,
    )


def enable_autostart() -> AutostartStatus:
    """Install and enable the systemd service and the XDG autostart entry."""
    bin_path = _find_wellbeing_bin()
    if bin_path is None:
        log.warning("wellbeing executable not found on PATH; autostart not installed")
        return AutostartStatus()

    result = AutostartStatus()

    svc_path = _service_path()
    try:
        svc_path.parent.mkdir(parents=True, exist_ok=True)
        svc_path.write_text(service_unit(bin_path))
        _systemctl("daemon-reload", check=True)
        _systemctl("enable", _SERVICE_NAME, check=True)
        result.systemd_enabled = True
        result.service_path = str(svc_path)
    except (subprocess.CalledProcessError, FileNotFoundError, OSError) as exc:
        log.warning("systemd autostart unavailable: %s", exc)

    entry_path = _desktop_entry_path()
    try:
        entry_path.parent.mkdir(parents=True, exist_ok=True)
        entry_path.write_text(desktop_entry(bin_path))
        result.xdg_enabled = True
        result.desktop_entry_path = str(entry_path)
    except OSError as exc:
        log.warning("XDG autostart entry not written: %s", exc)

    return result


def disable_autostart() -> None:
    """Remove the systemd service and the XDG autostart entry."""
    try:
        _systemctl("disable", _SERVICE_NAME, check=False)
    except FileNotFoundError:
        log.debug("systemctl not available")

    svc = _service_path()
    if svc.exists():
        svc.unlink()
        try:
            _systemctl("daemon-reload", check=False)
        except FileNotFoundError:
            pass

    entry = _desktop_entry_path()
    if entry.exists():
        entry.unlink()


def get_autostart_status() -> AutostartStatus:
    """Check the current state of autostart configuration."""
    result = AutostartStatus()

    svc = _service_path()
    if svc.exists():
        result.service_path = str(svc)
        try:
            proc = _systemctl("is-enabled", _SERVICE_NAME, check=False)
            result.systemd_enabled = proc.returncode == 0
        except FileNotFoundError:
            pass

    entry = _desktop_entry_path()
    if entry.exists():
        result.xdg_enabled = True
        result.desktop_entry_path = str(entry)

    return result
