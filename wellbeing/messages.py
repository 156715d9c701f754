"""Text shown on the break overlay.

Prompts come from ``~/.config/wellbeing/break_messages.md`` when the user
has one, otherwise from the ``break_messages.md`` shipped in the package.
Each non-empty ``- `` bullet is one prompt.
"""

from __future__ import annotations

import logging
import random
import re
from pathlib import Path
from typing import Iterable, Optional

log = logging.getLogger(__name__)

DEFAULT_BREAK_MESSAGE = "Time to hydrate, stretch, or take a quick walk."
KEYBOARD_HINT = "Press Space to snooze, Esc to skip break"

_PACKAGED_FILE = Path(__file__).resolve().parent / "break_messages.md"
_USER_FILE = Path.home() / ".config" / "wellbeing" / "break_messages.md"

_BULLET = re.compile(r"^\s*-\s+(?P<text>\S.*?)\s*$")


def parse_bullets(lines: Iterable[str]) -> list[str]:
    """Bullet texts in order, without duplicates."""
    found = (m.group("text") for m in map(_BULLET.match, lines) if m)
    return list(dict.fromkeys(found))


def load_messages(*sources: Path) -> list[str]:
    """Prompts from the first source holding at least one bullet."""
    for path in sources or (_USER_FILE, _PACKAGED_FILE):
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            continue
        except OSError as exc:
            log.warning("Cannot read break messages from %s: %s", path, exc)
            continue
        messages = parse_bullets(text.splitlines())
        if messages:
            return messages
    return [DEFAULT_BREAK_MESSAGE]


_MESSAGES: list[str] = load_messages()


def get_break_message(messages: Optional[list[str]] = None) -> str:
    """Return a prompt for the break overlay."""
    return random.choice(messages or _MESSAGES)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_duration(seconds: int) -> str:
    """``125`` -> ``2 minutes 5 seconds``; the seconds part is dropped when zero."""
    if seconds >= 60:
        minutes, secs = divmod(seconds, 60)
        text = _plural(minutes, "minute")
        if secs > 0:
            text += " " + _plural(secs, "second")
        return text
    return _plural(seconds, "second")


def format_remaining(seconds: int) -> str:
    """Countdown label for the break overlay."""
    return format_duration(seconds) + " remaining"
