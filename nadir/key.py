"""Readable names for common X11 keycodes."""

from __future__ import annotations

from typing import Optional

KEY_NAMES = {
    9: "ESCAPE",
    22: "BACKSPACE",
    36: "ENTER",
    37: "CONTROL LEFT",
    50: "SHIFT LEFT",
    62: "SHIFT RIGHT",
    64: "ALT LEFT",
    65: "SPACE",
    66: "CAPS LOCK",
    67: "F1",
    68: "F2",
    69: "F3",
    70: "F4",
    71: "F5",
    72: "F6",
    73: "F7",
    74: "F8",
    75: "F9",
    76: "F10",
    95: "F11",
    96: "F12",
    105: "CONTROL RIGHT",
    107: "PRINT SCREEN",
    108: "ALT GR",
    110: "HOME",
    111: "UP",
    112: "PAGE UP",
    113: "LEFT",
    114: "RIGHT",
    115: "END",
    116: "DOWN",
    117: "PAGE DOWN",
    118: "INSERT",
    119: "DELETE",
    135: "MENU",
    165: "SUPER",
}


def key_name(keycode: int, default: Optional[str] = None) -> Optional[str]:
    """Return the name of ``keycode``, or ``default`` for keys without one."""
    return KEY_NAMES.get(keycode, default)