"""The scanning state machine: a trigger starts a horizontal line, then a
vertical line, and a third trigger performs a pointer action where they cross."""

from __future__ import annotations

import enum
import threading
import time
from typing import Any, Optional

from .scanline import ScanLine
from .store import SettingsStore

DEFAULT_SIZE = (770, 67)
DEFAULT_POS = (0, 0)


class State(enum.Enum):
    STOP = 0
    SCAN1 = 1
    SCAN2 = 2
    EVENT = 3


class Mode(enum.IntEnum):
    KEY = 0
    MIC = 1
    MOUSE = 2


class MouseEvent(enum.Enum):
    LEFT = 0
    DOUBLE = 1
    RIGHT = 2
    DRAG = 3
    DROP = 4


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _pair(value: Any, default: tuple[int, int]) -> tuple[int, int]:
    try:
        first, second = value
        return (int(first), int(second))
    except (TypeError, ValueError):
        return default


class Scanner:
    """Drives the scan lines from key, mouse or microphone triggers.

    ``timer_running`` tells the caller to call grab_event() every ``speed``
    milliseconds; microphone levels arrive through mic_event().
    """

    def __init__(
        self,
        keyboard,
        mouse,
        microphone,
        h_line: ScanLine,
        v_line: ScanLine,
        store: Optional[SettingsStore] = None,
        screen_size: tuple[int, int] = (0, 0),
    ) -> None:
        self.lock = threading.RLock()
        self.keyboard = keyboard
        self.mouse = mouse
        self.microphone = microphone
        self.h_line = h_line
        self.v_line = v_line
        self.store = store if store is not None else SettingsStore()
        self.screen_width, self.screen_height = screen_size

        self.state = State.STOP
        self.mode = Mode.KEY
        self.default_event = MouseEvent.LEFT
        self.mouse_event = MouseEvent.LEFT
        self.checked_event: Optional[MouseEvent] = MouseEvent.LEFT
        self.timer_running = False
        self._waiting_until: Optional[float] = None

        if microphone is not None:
            microphone.on_event = self.mic_event

        self.load_settings()
        self.tray_visible = self.show_tray_icon
        self.scan()
        if self.hide_pointer:
            self.keyboard.move(self.screen_width, self.screen_height)

    @property
    def waiting(self) -> bool:
        return self._waiting_until is not None

    def load_settings(self) -> None:
        """Read every scanning option from the store."""
        with self.lock:
            store = self.store
            self.size = _pair(store.value("mainWidget", "size"), DEFAULT_SIZE)
            self.pos = _pair(store.value("mainWidget", "pos"), DEFAULT_POS)
            self.show_tray_icon = _flag(store.value("mainWidget", "systray", 1))

            self.speed = int(store.value("Main", "speed", 30))
            self.set_mode(int(store.value("Main", "mode", 0)))
            self.continuous = _flag(store.value("Main", "continuous", 0))
            self.escape_code = int(store.value("Main", "escape", 9))
            self.hide_pointer = _flag(store.value("Main", "hide", 0))
            self.set_default_event(int(store.value("Main", "click", 0)))
            self.checked_event = self.default_event
            self.threshold = float(int(store.value("Main", "audioThreshold", 0)))
            self.wait_time = int(store.value("Main", "waitTime", 1000))
            self.confirm_on_exit = _flag(store.value("Main", "confirmOnExit", 1))
            mouse_button = int(store.value("Main", "mouseButton", 1))

            if self.mouse is not None:
                self.mouse.set_button_code(mouse_button if self.mode is Mode.MOUSE else 0)
            self.keyboard.escape_code = self.escape_code
            self.h_line.load_settings()
            self.v_line.load_settings()
            self.force_closing = False

    def reload_settings(self) -> None:
        """Apply changed settings, restarting the scan unless staying in microphone mode."""
        with self.lock:
            old_mode = self.mode
            self.load_settings()
            if not (old_mode == self.mode == Mode.MIC):
                self.stop()
                self.scan()
            if old_mode != self.mode and self.mode != Mode.MIC and self.microphone is not None:
                self.microphone.capture(False)
            self.tray_visible = self.show_tray_icon

    def set_mode(self, value: int) -> None:
        """Select the trigger by number; unknown numbers are ignored."""
        try:
            self.mode = Mode(value)
        except ValueError:
            pass

    def set_default_event(self, value: int) -> None:
        """0 makes a single click the default action, anything else a double click."""
        self.default_event = MouseEvent.LEFT if value == 0 else MouseEvent.DOUBLE
        self.mouse_event = self.default_event

    def select_event(self, event: MouseEvent) -> None:
        """Choose the action for the next event; a drop cannot be chosen directly."""
        event = MouseEvent(event)
        if event is MouseEvent.DROP:
            raise ValueError("a drop follows a drag and cannot be selected")
        with self.lock:
            self.mouse_event = event
            self.checked_event = event

    def _check_default_event_button(self) -> None:
        if self.default_event in (MouseEvent.LEFT, MouseEvent.DOUBLE):
            self.checked_event = self.default_event
        else:
            self.checked_event = None

    def scan(self) -> None:
        """Arm the scan, waiting for the first trigger."""
        with self.lock:
            self.state = State.SCAN1
            if self.mode is Mode.MIC and self.microphone is not None:
                self.microphone.capture(True)
            self.timer_running = True

    def stop(self) -> None:
        """Stop listening for the current trigger."""
        with self.lock:
            if self.mode is Mode.MIC:
                if self.microphone is not None:
                    self.microphone.capture(False)
            else:
                self.timer_running = False

    def grab_event(self) -> bool:
        """Poll the key or mouse trigger; advance the scan and return True on a press."""
        with self.lock:
            pressed = False
            if self.mode is Mode.KEY:
                pressed = bool(self.keyboard.grab_key_event())
            elif self.mode is Mode.MOUSE and self.mouse is not None:
                pressed = bool(self.mouse.grab_button_event())
            if pressed:
                self.change_state()
            return pressed

    def mic_event(self, level: float, now: Optional[float] = None) -> bool:
        """Advance the scan when ``level`` exceeds the threshold, then hold off for wait_time ms."""
        with self.lock:
            if self.mode is not Mode.MIC:
                return False
            if now is None:
                now = time.monotonic()
            if self._waiting_until is not None and now >= self._waiting_until:
                self._waiting_until = None
            if level > self.threshold and self._waiting_until is None:
                self.change_state()
                self._waiting_until = now + self.wait_time / 1000
                return True
            return False

    def end_wait(self) -> None:
        """Accept microphone triggers again."""
        with self.lock:
            self._waiting_until = None

    def change_state(self) -> None:
        """Move the scan one step forward."""
        with self.lock:
            if self.state is State.STOP:
                self.state = State.SCAN1
            elif self.state is State.SCAN1:
                self.keyboard.snoop()
                self.h_line.start_scan()
                self.h_line.show()
                self.state = State.SCAN2
            elif self.state is State.SCAN2:
                self.h_line.stop_scan()
                self.v_line.start_scan()
                self.v_line.show()
                self.state = State.EVENT
            else:
                self.keyboard.no_snoop()
                self.h_line.hide()
                self.v_line.hide()
                self.keyboard.move(self.v_line.x, self.h_line.y)
                self.do_event()
                if self.mouse_event is MouseEvent.DROP:
                    # The button stays pressed after a drag; wait for the user
                    # to start the next scan to choose where to drop.
                    self.state = State.SCAN1
                    self.keyboard.snoop()
                else:
                    self.state = State.SCAN1 if self.continuous else State.STOP
                    self.keyboard.snoop()
                    self.change_state()

    def do_event(self) -> None:
        """Perform the selected pointer action at the current pointer position."""
        with self.lock:
            mouse_mode = self.mode is Mode.MOUSE and self.mouse is not None
            old_button = 0
            if mouse_mode:
                old_button = self.mouse.button_code
                self.mouse.wait_for_release()
                self.mouse.set_button_code(0)

            event = self.mouse_event
            if event is MouseEvent.LEFT:
                self.keyboard.click()
            elif event is MouseEvent.DOUBLE:
                self.keyboard.double_click()
            elif event is MouseEvent.RIGHT:
                self.keyboard.right_click()
                self.mouse_event = self.default_event
                self._check_default_event_button()
            elif event is MouseEvent.DRAG:
                self.keyboard.drag()
                if mouse_mode:
                    self.mouse.ungrab_pointer()
                self.mouse_event = MouseEvent.DROP
            else:
                self.keyboard.drop()
                if mouse_mode:
                    self.mouse.ungrab_pointer()
                self.mouse_event = self.default_event
                self._check_default_event_button()

            self.keyboard.flush()
            if mouse_mode:
                self.mouse.set_button_code(old_button)
            if self.hide_pointer:
                self.keyboard.move(self.screen_width, self.screen_height)