"""Keyboard monitoring and synthetic input through a display backend."""

from __future__ import annotations

import abc
import enum
import logging
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

KEY_PRESS_TIME = 250  # milliseconds a synthetic key or click is held
KEY_PRESS_TIME2 = 100  # milliseconds between the halves of a double click
KEYSYM_STRLEN = 64
KEYMAP_BYTES = 32

KEY_PRESS_MASK = 1
NO_EVENT_MASK = 0

# Keysym table columns
SHIFT_INDEX = 1
MODE_INDEX = 2
MODESHIFT_INDEX = 3
ISO3_INDEX = 4
ISO3SHIFT_INDEX = 4

# Rows of the modifier mapping
SHIFT_MAP_INDEX = 0
LOCK_MAP_INDEX = 1
CONTROL_MAP_INDEX = 2
MOD3_MAP_INDEX = 5
MOD5_MAP_INDEX = 7


class Modifier(enum.IntEnum):
    """Modifier reported as held down.

    LOCK and MODE share one value, so a locked key is looked up in the
    mode column and then upper-cased.
    """

    NONE = 0
    SHIFT = 1
    CONTROL = 3
    ISO3 = 4
    LOCK = 5
    MODE = 5


_CONVERT_TABLE = (
    ("return", ""), ("escape", "^["), ("delete", "^H"),
    ("shift", ""), ("control", ""), ("tab", "\t"),
    ("space", " "), ("exclam", "!"), ("quotedbl", '"'),
    ("numbersign", "#"), ("dollar", "$"), ("percent", "%"),
    ("ampersand", "&"), ("apostrophe", "'"), ("parenleft", "("),
    ("parenright", ")"), ("asterisk", "*"), ("plus", "+"),
    ("comma", ","), ("minus", "-"), ("period", "."),
    ("slash", "/"), ("colon", ":"), ("semicolon", ";"),
    ("less", "<"), ("equal", "="), ("greater", ">"),
    ("question", "?"), ("at", "@"), ("bracketleft", "["),
    ("backslash", "\\"), ("bracketright", "]"), ("asciicircum", "^"),
    ("underscore", "_"), ("grave", "`"), ("braceleft", "{"),
    ("bar", "|"), ("braceright", "}"), ("asciitilde", "~"),
    ("odiaeresis", "ö"), ("udiaeresis", "ü"), ("adiaeresis", "ä"),
)


def bit(keys: bytes, index: int) -> bool:
    """Return whether bit ``index`` is set in the keymap ``keys``."""
    return bool(keys[index // 8] & (1 << (index % 8)))


def str_to_char(name: str) -> Optional[str]:
    """Return the character a keysym name stands for, or None if it has none.

    Names are matched case-insensitively by prefix, in table order.
    """
    lowered = name.lower()
    for prefix, replacement in _CONVERT_TABLE:
        if lowered.startswith(prefix):
            return replacement
    return None


class KeyboardBackend(abc.ABC):
    """Connection to the display server used by :class:`Keyboard`."""

    @abc.abstractmethod
    def open(self) -> bool:
        """Connect to the display; return False if that is not possible."""

    @abc.abstractmethod
    def close(self) -> None:
        """Close the connection."""

    @abc.abstractmethod
    def root_window(self) -> int:
        """Return the root window of the default screen."""

    @abc.abstractmethod
    def query_tree(self, window: int) -> Optional[Sequence[int]]:
        """Return the children of ``window``, or None if the query fails."""

    @abc.abstractmethod
    def select_input(self, window: int, mask: int) -> None:
        """Select the events of ``mask`` on ``window``."""

    @abc.abstractmethod
    def flush(self) -> None:
        """Send queued requests to the server."""

    @abc.abstractmethod
    def query_keymap(self) -> bytes:
        """Return the 32-byte bit vector of keys currently held down."""

    @abc.abstractmethod
    def fake_motion(self, x: int, y: int, delay: int) -> None:
        """Move the pointer to ``(x, y)`` on the default screen."""

    @abc.abstractmethod
    def fake_key(self, keycode: int, pressed: bool, delay: int) -> None:
        """Send a synthetic key press or release."""

    @abc.abstractmethod
    def fake_button(self, button: int, pressed: bool, delay: int) -> None:
        """Send a synthetic pointer button press or release."""

    @abc.abstractmethod
    def keycode_to_keysym(self, keycode: int, index: int) -> Optional[str]:
        """Return the keysym name in column ``index`` of ``keycode``, or None."""

    @abc.abstractmethod
    def modifier_mapping(self) -> Sequence[Sequence[int]]:
        """Return the eight modifier rows of keycodes (0 for an empty slot)."""


class Keyboard:
    """Watches a trigger key and synthesizes pointer and key events."""

    def __init__(self, backend: KeyboardBackend, key_code: int = 65) -> None:
        self.backend = backend
        self.key_code = key_code
        self.escape_code = 9
        self.print_up = False
        self._open = False
        self._saved = bytes(KEYMAP_BYTES)
        self._modmap: Optional[Sequence[Sequence[int]]] = None

    def __enter__(self) -> "Keyboard":
        if not self.start():
            raise RuntimeError("cannot open display")
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    @property
    def is_open(self) -> bool:
        return self._open

    def start(self) -> bool:
        """Open the display and record the current key state."""
        self._open = bool(self.backend.open())
        if not self._open:
            return False
        self._saved = bytes(self.backend.query_keymap())
        return True

    def stop(self) -> None:
        """Close the display if it is open."""
        if self._open:
            self.backend.close()
            self._open = False

    def _select_all(self, window: int, mask: int) -> None:
        children = self.backend.query_tree(window)
        if children is None:
            logger.warning("Can't query window tree...")
            return
        if not children:
            return
        self.backend.select_input(window, mask)
        for child in children:
            self.backend.select_input(child, mask)
            self._select_all(child, mask)

    def snoop(self) -> None:
        """Listen for key presses on every window."""
        self._select_all(self.backend.root_window(), KEY_PRESS_MASK)

    def no_snoop(self) -> None:
        """Stop listening for key events on every window."""
        self._select_all(self.backend.root_window(), NO_EVENT_MASK)

    def flush(self) -> None:
        self.backend.flush()

    def grab_key_event(self) -> bool:
        """Return True if the trigger key changed to pressed since the last call."""
        keys = bytes(self.backend.query_keymap())
        triggered = any(
            idx == self.key_code and (bit(keys, idx) or self.print_up)
            for idx in range(KEYMAP_BYTES * 8)
            if bit(keys, idx) != bit(self._saved, idx)
        )
        self._saved = keys
        return triggered

    def move(self, x: int, y: int) -> None:
        """Move the pointer to ``(x, y)``."""
        self.backend.fake_motion(x, y, 10)

    def key(self, code: int) -> None:
        """Press and release the key ``code``."""
        self.backend.fake_key(code, True, 0)
        self.backend.fake_key(code, False, KEY_PRESS_TIME)

    def release_pressed_keys(self) -> None:
        """Send a release for every key currently held down."""
        if not self._open:
            return
        pressed = self.backend.query_keymap()
        for idx in range(KEYMAP_BYTES * 8):
            if bit(pressed, idx):
                self.backend.fake_key(idx, False, 0)

    def click(self) -> None:
        self.release_pressed_keys()
        self.backend.fake_button(1, True, 0)
        self.backend.fake_button(1, False, KEY_PRESS_TIME)

    def double_click(self) -> None:
        self.release_pressed_keys()
        for pressed in (True, False, True, False):
            self.backend.fake_button(1, pressed, KEY_PRESS_TIME2)

    def right_click(self) -> None:
        self.release_pressed_keys()
        self.backend.fake_button(3, True, 0)
        self.backend.fake_button(3, False, KEY_PRESS_TIME)

    def drag(self) -> None:
        """Press the left button and keep it down."""
        self.release_pressed_keys()
        self.backend.fake_button(1, True, 0)

    def drop(self) -> None:
        """Release the left button."""
        self.release_pressed_keys()
        self.backend.fake_button(1, False, KEY_PRESS_TIME)

    def key_modifiers(self, keys: bytes) -> Modifier:
        """Return the modifier held down in the keymap ``keys``."""
        if self._modmap is None:
            self._modmap = [list(row) for row in self.backend.modifier_mapping()]
        modmap = self._modmap
        width = max((len(row) for row in modmap), default=0)
        order = (
            (CONTROL_MAP_INDEX, Modifier.CONTROL),
            (SHIFT_MAP_INDEX, Modifier.SHIFT),
            (LOCK_MAP_INDEX, Modifier.LOCK),
            (MOD3_MAP_INDEX, Modifier.ISO3),
            (MOD5_MAP_INDEX, Modifier.MODE),
        )
        for idx in range(width):
            for row, modifier in order:
                codes = modmap[row] if row < len(modmap) else ()
                code = codes[idx] if idx < len(codes) else 0
                if code and bit(keys, code):
                    return modifier
        return Modifier.NONE

    def keycode_to_str(self, code: int, down: bool, modifier: int) -> str:
        """Return a printable form of the key ``code`` under ``modifier``."""
        if modifier == Modifier.SHIFT:
            index = SHIFT_INDEX
        elif modifier == Modifier.ISO3:
            index = ISO3_INDEX
        elif modifier == Modifier.MODE:
            index = MODE_INDEX
        else:
            index = 0

        name = self.backend.keycode_to_keysym(code, index)
        if name is None:
            return ""
        if name == "ISO_Level3_Shift":
            name = self.backend.keycode_to_keysym(code, ISO3_INDEX)
            if name is None:
                return ""

        text = name[:KEYSYM_STRLEN]
        if len(text) > 1:
            replacement = str_to_char(text)
            if replacement is None:
                if text == "Caps_Lock":
                    return ""
                return f"({'+' if down else '-'}{name})"
            text = replacement
        if not text:
            return ""
        if modifier == Modifier.CONTROL:
            return "^" + text[0].upper()
        if modifier == Modifier.LOCK:
            return text[0].upper() + text[1:]
        return text