"""User preferences: loading, saving and the helpers the settings dialog needs."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Optional

from .store import SettingsStore

# Qt mouse button flag values
QT_LEFT_BUTTON = 0x00000001
QT_RIGHT_BUTTON = 0x00000002
QT_MIDDLE_BUTTON = 0x00000004
QT_BACK_BUTTON = 0x00000008
QT_FORWARD_BUTTON = 0x00000010
QT_TASK_BUTTON = 0x00000020
QT_EXTRA_BUTTON4 = 0x00000040
QT_EXTRA_BUTTON24 = 0x08000000

ALERT_STYLE = "background-color: #DD0000;"
IDLE_STYLE = "background-color: #FFFFFF;"

_BUTTON_NAMES = {
    1: "Left",
    2: "Middle",
    3: "Right",
    4: "Scroll up",
    5: "Scroll down",
}

_QT_TO_X11 = {
    QT_LEFT_BUTTON: 1,
    QT_MIDDLE_BUTTON: 2,
    QT_RIGHT_BUTTON: 3,
    QT_BACK_BUTTON: 8,
    QT_FORWARD_BUTTON: 9,
    QT_TASK_BUTTON: 10,
}


def mouse_button_name(button: int) -> str:
    """Return a readable name for an X11 button number."""
    return _BUTTON_NAMES.get(button, f"Button {button}")


def qt_to_x11_button(button: int) -> int:
    """Convert a Qt mouse button flag to its X11 button number (0 if unknown)."""
    if button in _QT_TO_X11:
        return _QT_TO_X11[button]
    if button >= QT_EXTRA_BUTTON4:
        index = 0
        code = QT_EXTRA_BUTTON4
        while code < button and code <= QT_EXTRA_BUTTON24:
            code <<= 1
            index += 1
        if code == button:
            return 11 + index
    return 0


def threshold_label(threshold: int) -> str:
    return f"{threshold} dB"


def wait_time_label(milliseconds: int) -> str:
    """Return the wait time in seconds, truncated to hundredths."""
    seconds = math.floor(milliseconds / 10) / 100
    return f"{seconds:g} second(s)"


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _as_pair(value: object, default: tuple[int, int]) -> tuple[int, int]:
    try:
        first, second = value  # type: ignore[misc]
        return (int(first), int(second))
    except (TypeError, ValueError):
        return default


@dataclass
class Preferences:
    """Everything the settings dialog edits, with the built-in defaults."""

    speed: int = 30
    thickness: int = 4
    continuous: bool = False
    double_click: bool = False
    hide_pointer: bool = False
    mode: int = 0
    mouse_button: int = 1
    color: str = "255,0,0"
    audio_threshold: int = 0
    wait_time: int = 1000
    keycode: int = 65
    keysym: str = "ESPACIO"
    confirm_on_exit: bool = True
    minimized: bool = False
    hidden: bool = False
    systray: bool = True
    size: tuple[int, int] = (770, 670)
    pos: tuple[int, int] = (0, 0)

    def load(self, store: SettingsStore) -> None:
        """Fill every field from ``store``, keeping defaults for missing keys."""
        main = "Main"
        self.speed = int(store.value(main, "speed", 30))
        self.thickness = int(store.value(main, "thickness", 4))
        self.continuous = _as_bool(store.value(main, "continuous", 0))
        self.double_click = _as_bool(store.value(main, "click", 0))
        self.hide_pointer = _as_bool(store.value(main, "hide", 0))
        self.mode = int(store.value(main, "mode", 0))
        self.mouse_button = int(store.value(main, "mouseButton", 1))
        self.color = str(store.value(main, "color", "255,0,0"))
        self.audio_threshold = int(store.value(main, "audioThreshold", 0))
        self.wait_time = int(store.value(main, "waitTime", 1000))
        self.keycode = int(store.value(main, "keycode", 65))
        self.keysym = str(store.value(main, "keysym", "ESPACIO"))
        self.confirm_on_exit = _as_bool(store.value(main, "confirmOnExit", 1))

        self.minimized = _as_bool(store.value("mainWidget", "minimized", 0))
        self.hidden = _as_bool(store.value("mainWidget", "hidden", 0))
        self.systray = _as_bool(store.value("mainWidget", "systray", 1))

        self.size = _as_pair(store.value("confWidget", "size"), (770, 670))
        self.pos = _as_pair(store.value("confWidget", "pos"), (0, 0))

    def save(self, store: SettingsStore) -> None:
        """Write every field to ``store`` and sync it to disk."""
        main = "Main"
        store.set_value(main, "speed", self.speed)
        store.set_value(main, "thickness", self.thickness)
        store.set_value(main, "continuous", int(self.continuous))
        store.set_value(main, "mode", self.mode)
        store.set_value(main, "click", int(self.double_click))
        store.set_value(main, "hide", int(self.hide_pointer))
        store.set_value(main, "color", self.color)
        store.set_value(main, "audioThreshold", self.audio_threshold)
        store.set_value(main, "waitTime", self.wait_time)
        store.set_value(main, "keycode", int(self.keycode))
        store.set_value(main, "keysym", self.keysym)
        store.set_value(main, "mouseButton", self.mouse_button)
        store.set_value(main, "confirmOnExit", int(self.confirm_on_exit))

        store.set_value("mainWidget", "minimized", int(self.minimized))
        store.set_value("mainWidget", "hidden", int(self.hidden))
        store.set_value("mainWidget", "systray", int(self.systray))

        store.set_value("confWidget", "size", tuple(self.size))
        store.set_value("confWidget", "pos", tuple(self.pos))
        store.sync()

    def color_style(self) -> str:
        """Style sheet for the button that shows the line colour."""
        return f"QPushButton {{ background-color: rgb({self.color}); border: 1px solid black; }}"

    def set_minimized(self, value: bool) -> None:
        """Start minimized; this excludes starting hidden."""
        self.minimized = bool(value)
        if self.minimized:
            self.hidden = False

    def set_hidden(self, value: bool) -> None:
        """Start hidden; this excludes starting minimized."""
        self.hidden = bool(value)
        if self.hidden:
            self.minimized = False


class AudioIndicator:
    """Shows when the audio level crosses the threshold, holding the alert a while."""

    def __init__(self, threshold: int = 0, wait_time: int = 1000) -> None:
        self.threshold = threshold
        self.wait_time = wait_time
        self.level: Optional[float] = None
        self.style = IDLE_STYLE
        self._waiting_until: Optional[float] = None

    @property
    def waiting(self) -> bool:
        return self._waiting_until is not None

    def update(self, level: float, now: Optional[float] = None) -> Optional[str]:
        """Record ``level``; return the new style if it changed to one, else None.

        ``now`` is a time in seconds; the alert is held for ``wait_time`` ms.
        """
        if now is None:
            now = time.monotonic()
        if self._waiting_until is not None and now >= self._waiting_until:
            self._waiting_until = None
        self.level = level

        if level > self.threshold:
            if self._waiting_until is None:
                self.style = ALERT_STYLE
                self._waiting_until = now + self.wait_time / 1000
                return self.style
            return None
        if self._waiting_until is None:
            self.style = IDLE_STYLE
            return self.style
        return None