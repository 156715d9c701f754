"""Settings storage: packaged schema defaults, the user's JSON file, change notifications."""

from __future__ import annotations

import itertools
import json
import logging
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from pydantic import ValidationError

from wellbeing.contracts import TimerService
from wellbeing.models import SETTING_KEYS, ReminderSettings

log = logging.getLogger(__name__)

_SCHEMA_FILE = Path(__file__).resolve().parent / "schemas" / "settings.defaults.json"
_CONFIG_DIR = Path.home() / ".config" / "wellbeing"
_CONFIG_FILE = _CONFIG_DIR / "settings.json"

# Seconds between checks for writes made by another process
WATCH_INTERVAL = 2

SettingsCallback = Callable[[str, Any], None]


class ConfigurationMissing(RuntimeError):
    """The settings schema shipped with the package cannot be loaded."""


def _attr(key: str) -> str:
    try:
        return SETTING_KEYS[key]
    except KeyError:
        raise KeyError(f"Unknown setting '{key}'") from None


def load_defaults(schema_file: Optional[Path] = None) -> ReminderSettings:
    """Read the packaged schema defaults. Raises ConfigurationMissing."""
    path = schema_file or _SCHEMA_FILE
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ReminderSettings.model_validate(data)
    except FileNotFoundError:
        raise ConfigurationMissing(f"Settings schema {path} could not be found") from None
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise ConfigurationMissing(f"Settings schema {path} is unreadable: {exc}") from exc


def _read_user_file(defaults: ReminderSettings) -> Optional[ReminderSettings]:
    """The user's file merged over ``defaults``, or None if absent or unreadable."""
    if not _CONFIG_FILE.exists():
        return None
    try:
        data = json.loads(_CONFIG_FILE.read_text())
        if not isinstance(data, dict):
            raise TypeError("top-level value is not an object")
        merged = {**defaults.model_dump(by_alias=True), **data}
        return ReminderSettings.model_validate(merged)
    except (json.JSONDecodeError, ValidationError, TypeError, OSError) as exc:
        log.warning("Ignoring unreadable settings file %s: %s", _CONFIG_FILE, exc)
        return None


def _file_stamp() -> Optional[tuple[int, int]]:
    try:
        st = _CONFIG_FILE.stat()
    except OSError:
        return None
    return st.st_mtime_ns, st.st_size


def load_settings(schema_file: Optional[Path] = None) -> ReminderSettings:
    """Load the user's settings on top of the schema defaults."""
    defaults = load_defaults(schema_file)
    settings = _read_user_file(defaults)
    return defaults if settings is None else settings


def save_settings(settings: ReminderSettings) -> Path:
    """Write settings to disk. Returns the settings file path."""
    _CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    _CONFIG_FILE.write_text(settings.model_dump_json(by_alias=True, indent=2))
    return _CONFIG_FILE


class SettingsStore:
    """In-memory settings with validation, persistence and per-key change signals.

    Keys are the persisted names (``break-interval`` and so on). Callbacks
    receive ``(key, new_value)`` after the change has been saved. Writes that
    fail validation raise ``pydantic.ValidationError`` and change nothing.

    A persistent store re-reads the settings file before every write, so
    keys another process saved are kept. A running app also calls
    :meth:`watch` to pick up those writes as they happen.
    """

    def __init__(
        self,
        settings: ReminderSettings,
        *,
        persist: bool = True,
        schema_file: Optional[Path] = None,
    ) -> None:
        self._settings = settings.model_copy()
        self._persist = persist
        self._schema_file = schema_file
        self._handlers: dict[int, tuple[Optional[str], SettingsCallback]] = {}
        self._ids = itertools.count(1)
        self._stamp = _file_stamp() if persist else None
        self._timers: Optional[TimerService] = None
        self._watch_handle: Any = None

    @classmethod
    def open(cls, schema_file: Optional[Path] = None) -> SettingsStore:
        """Load persisted settings. Raises ConfigurationMissing."""
        return cls(load_settings(schema_file), schema_file=schema_file)

    @property
    def settings(self) -> ReminderSettings:
        return self._settings.model_copy()

    @property
    def watching(self) -> bool:
        return self._watch_handle is not None

    def get(self, key: str) -> Any:
        return getattr(self._settings, _attr(key))

    def set(self, key: str, value: Any) -> bool:
        """Set one key. Returns True if the stored value changed."""
        return bool(self.update({key: value}))

    def update(self, values: Mapping[str, Any]) -> list[str]:
        """Apply several keys at once. Returns the keys whose value changed."""
        if self._persist:
            self.reload()
        data = self._settings.model_dump()
        for key, value in values.items():
            data[_attr(key)] = value
        return self._commit(ReminderSettings.model_validate(data), save=self._persist)

    def reload(self) -> list[str]:
        """Adopt what is currently in the settings file.

        Fires the usual notifications for keys that differ. A missing or
        unreadable file leaves the current values alone.
        """
        self._stamp = _file_stamp()
        if self._stamp is None:
            return []
        on_disk = _read_user_file(load_defaults(self._schema_file))
        if on_disk is None:
            return []
        changed = self._commit(on_disk, save=False)
        if changed:
            log.info("Settings changed on disk: %s", ", ".join(changed))
        return changed

    def reset(self) -> list[str]:
        """Restore the schema defaults."""
        defaults = load_defaults(self._schema_file)
        return self.update(defaults.model_dump(by_alias=True))

    def watch(self, timers: TimerService, interval: float = WATCH_INTERVAL) -> None:
        """Poll the settings file for writes made by other processes."""
        self.unwatch()
        self._timers = timers

        def _tick() -> None:
            self._watch_handle = None
            if _file_stamp() != self._stamp:
                self.reload()
            if self._timers is timers:
                self._watch_handle = timers.arm_once(interval, _tick)

        self._watch_handle = timers.arm_once(interval, _tick)

    def unwatch(self) -> None:
        if self._timers is not None and self._watch_handle is not None:
            self._timers.cancel(self._watch_handle)
        self._timers = None
        self._watch_handle = None

    def connect(self, key: Optional[str], callback: SettingsCallback) -> int:
        """Subscribe to changes of ``key`` (or of every key when None)."""
        if key is not None:
            _attr(key)
        handler_id = next(self._ids)
        self._handlers[handler_id] = (key, callback)
        return handler_id

    def disconnect(self, handler_id: int) -> None:
        self._handlers.pop(handler_id, None)

    def _commit(self, candidate: ReminderSettings, *, save: bool) -> list[str]:
        changed = [
            key
            for key, attr in SETTING_KEYS.items()
            if getattr(candidate, attr) != getattr(self._settings, attr)
        ]
        if not changed:
            return []

        self._settings = candidate
        if save:
            save_settings(self._settings)
            self._stamp = _file_stamp()
        for key in changed:
            self._emit(key)
        return changed

    def _emit(self, key: str) -> None:
        value = self.get(key)
        for wanted, callback in list(self._handlers.values()):
            if wanted is None or wanted == key:
                callback(key, value)
