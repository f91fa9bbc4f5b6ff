"""Watching one pointer button through a display backend."""

from __future__ import annotations

import abc
import time
from dataclasses import dataclass
from typing import Iterable

_BUTTON_MASKS = {1: 1 << 8, 2: 1 << 9, 3: 1 << 10, 4: 1 << 11, 5: 1 << 12}
_RELEASE_POLL_SECONDS = 0.001


def button_mask(code: int) -> int:
    """Return the pointer state mask bit for button ``code`` (0 if it has none)."""
    return _BUTTON_MASKS.get(code, 0)


@dataclass(frozen=True)
class ButtonEvent:
    """A pointer button press or release."""

    button: int
    pressed: bool


class MouseBackend(abc.ABC):
    """Connection to the display server used by :class:`Mouse`."""

    @abc.abstractmethod
    def open(self) -> bool:
        """Connect to the display; return False if that is not possible."""

    @abc.abstractmethod
    def close(self) -> None:
        """Close the connection."""

    @abc.abstractmethod
    def grab_button(self, button: int) -> None:
        """Grab ``button`` on the root window for any modifier."""

    @abc.abstractmethod
    def ungrab_button(self, button: int) -> None:
        """Release the grab of ``button`` on the root window."""

    @abc.abstractmethod
    def ungrab_pointer(self) -> None:
        """Release any active pointer grab."""

    @abc.abstractmethod
    def sync(self) -> None:
        """Wait until the server has processed all requests."""

    @abc.abstractmethod
    def pending_events(self) -> Iterable[ButtonEvent]:
        """Return and consume the queued button events."""

    @abc.abstractmethod
    def pointer_mask(self) -> int:
        """Return the current pointer state mask."""

    @abc.abstractmethod
    def button_count(self) -> int:
        """Return the number of pointer buttons."""


class Mouse:
    """Detects presses of a chosen pointer button."""

    def __init__(self, backend: MouseBackend, button_code: int = 1) -> None:
        self.backend = backend
        self._button_code = button_code
        self._open = False
        self.grabbed = False
        self.last_down = False

    def __enter__(self) -> "Mouse":
        if not self.start():
            raise RuntimeError("cannot open display")
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    @property
    def button_code(self) -> int:
        """Button currently watched (0 for none)."""
        return self._button_code

    @property
    def is_open(self) -> bool:
        return self._open

    def start(self) -> bool:
        """Open the display; the button is grabbed by set_button_code()."""
        self._open = bool(self.backend.open())
        self.grabbed = False
        return self._open

    def stop(self) -> None:
        """Release the grab and close the display."""
        self._ungrab_button()
        if self._open:
            self.backend.close()
            self._open = False

    def grab_button_event(self) -> bool:
        """Return True if the watched button was newly pressed."""
        triggered = self._process_button_events()
        if not triggered and self._open and self._button_code > 0:
            down = self._is_button_down()
            triggered = down and not self.last_down
            self.last_down = down
        return triggered

    def _process_button_events(self) -> bool:
        if not self._open or self._button_code <= 0:
            return False
        triggered = False
        for event in self.backend.pending_events():
            if event.button != self._button_code:
                continue
            if event.pressed:
                triggered = not self.last_down
                self.last_down = True
            else:
                self.last_down = False
        return triggered

    def _is_button_down(self) -> bool:
        if not self._open or self._button_code <= 0:
            return False
        return bool(self.backend.pointer_mask() & button_mask(self._button_code))

    def _ungrab_button(self) -> None:
        if self.grabbed and self._button_code > 0 and self._open:
            self.backend.ungrab_button(self._button_code)
            self.backend.ungrab_pointer()
            self.backend.sync()
            self.grabbed = False

    def ungrab_pointer(self) -> None:
        """Release any pointer grab, keeping the button grab."""
        if self._open:
            self.backend.ungrab_pointer()
            self.backend.sync()

    def wait_for_release(self) -> None:
        """Block until the watched button is no longer held down."""
        if not self._open or self._button_code <= 0:
            return
        while True:
            self._process_button_events()
            if not self._is_button_down():
                break
            time.sleep(_RELEASE_POLL_SECONDS)
        self.last_down = False

    def set_button_code(self, code: int) -> None:
        """Watch button ``code`` instead (0 to watch none)."""
        if code == self._button_code:
            return
        self._ungrab_button()
        self._button_code = code
        self.last_down = False
        if code > 0 and self._open:
            self.backend.grab_button(code)
            self.backend.sync()
            self.grabbed = True

    def button_count(self) -> int:
        """Number of pointer buttons; the display must be open."""
        if not self._open:
            raise RuntimeError("display is not open")
        return self.backend.button_count()