"""Scanning line that sweeps across the screen to pick a pointer position."""

from __future__ import annotations

import enum
from typing import Optional, Protocol

from .store import SettingsStore

STEP = 2
DEFAULT_SPEED = 30
DEFAULT_THICKNESS = 4
DEFAULT_ESCAPE = 9
DEFAULT_COLOR = "255,0,0"


class _Restartable(Protocol):
    def start(self) -> bool: ...

    def stop(self) -> None: ...


class LineType(enum.Enum):
    HORIZONTAL = 0
    VERTICAL = 1


class ScanLine:
    """A line that moves ``STEP`` pixels on every tick and wraps at the screen edge.

    A horizontal line moves down the screen; a vertical line moves across it.
    Each time the line wraps, the keyboard connection is reopened.
    """

    def __init__(
        self,
        line_type: LineType = LineType.HORIZONTAL,
        keyboard: Optional[_Restartable] = None,
        store: Optional[SettingsStore] = None,
        screen_size: tuple[int, int] = (0, 0),
    ) -> None:
        self.store = store if store is not None else SettingsStore()
        self.keyboard = keyboard
        self.line_type = line_type
        self.step = STEP
        self.scanning = False
        self.visible = False
        self.load_settings()

        self.screen_width, self.screen_height = screen_size
        self.x = 0
        self.y = 0
        if line_type is LineType.HORIZONTAL:
            self.length = self.screen_width
            self._x_limit = 0
            self._y_limit = self.screen_height - self.thickness
        else:
            self.length = self.screen_height
            self._x_limit = self.screen_width - self.thickness
            self._y_limit = 0
        self._resize()

    def load_settings(self) -> None:
        """Read speed, thickness, escape key and colour from the store."""
        self.speed = int(self.store.value("Main", "speed", DEFAULT_SPEED))
        self.thickness = int(self.store.value("Main", "thickness", DEFAULT_THICKNESS))
        self.escape_code = int(self.store.value("Main", "escape", DEFAULT_ESCAPE))
        self.color = str(self.store.value("Main", "color", DEFAULT_COLOR))

    def background_color(self) -> str:
        """Style sheet that paints the line in its colour."""
        return f"QWidget {{ background-color: rgb({self.color}) }};"

    def _resize(self) -> None:
        if self.line_type is LineType.HORIZONTAL:
            self.width, self.height = self.length, self.thickness
        else:
            self.width, self.height = self.thickness, self.length

    @property
    def interval(self) -> int:
        """Milliseconds between ticks while scanning."""
        return self.speed

    def start_scan(self) -> None:
        """Reload settings, return to the origin and start moving."""
        self.load_settings()
        self._resize()
        self.x = 0
        self.y = 0
        self.scanning = True
        self.show()

    def stop_scan(self) -> None:
        """Stop moving; the line stays where it is."""
        self.scanning = False

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def _restart_keyboard(self) -> None:
        if self.keyboard is not None:
            self.keyboard.stop()
            self.keyboard.start()

    def tick(self) -> None:
        """Advance the line one step, wrapping to the origin at the far edge."""
        if self.line_type is LineType.HORIZONTAL:
            if self.y < self._y_limit - self.thickness:
                self.y += self.step
            else:
                self._restart_keyboard()
                self.y = 0
        else:
            if self.x < self._x_limit - self.thickness:
                self.x += self.step
            else:
                self._restart_keyboard()
                self.x = 0

    def geometry(self) -> tuple[int, int, int, int]:
        """Return ``(x, y, width, height)`` of the line."""
        return (self.x, self.y, self.width, self.height)