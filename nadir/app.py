"""Command that runs the screen scanner on an X display."""

from __future__ import annotations

import argparse
import logging
import os
import re
import shutil
import subprocess
import time
from typing import Any, Optional, Sequence

from .controller import Scanner
from .keyboard import Keyboard, KeyboardBackend
from .microphone import Microphone
from .mouse import ButtonEvent, Mouse, MouseBackend, button_mask
from .scanline import LineType, ScanLine
from .settings import SettingsData
from .store import SettingsStore

logger = logging.getLogger(__name__)

KEYBOARD_DEVICE = "Virtual core keyboard"
POINTER_DEVICE = "Virtual core pointer"
_MODIFIER_ROWS = ("shift", "lock", "control", "mod1", "mod2", "mod3", "mod4", "mod5")
_LOOP_SECONDS = 0.001
_TOOL_TIMEOUT = 5


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def startup_visibility(store: SettingsStore) -> str:
    """Return how the window starts: "minimized", "hidden" or "shown"."""
    if _flag(store.value("mainWidget", "minimized", False)):
        return "minimized"
    if _flag(store.value("mainWidget", "hidden", False)):
        return "hidden"
    return "shown"


def _run_tool(*command: str) -> Optional[str]:
    try:
        result = subprocess.run(
            command, capture_output=True, text=True, check=True, timeout=_TOOL_TIMEOUT
        )
    except (OSError, subprocess.SubprocessError):
        return None
    return result.stdout


def _keymap_from_state(text: str) -> bytes:
    keymap = bytearray(32)
    for match in re.finditer(r"key\[(\d+)\]=down", text):
        code = int(match.group(1))
        if code < 256:
            keymap[code // 8] |= 1 << (code % 8)
    return bytes(keymap)


def _pointer_mask_from_state(text: str) -> int:
    mask = 0
    for match in re.finditer(r"button\[(\d+)\]=down", text):
        mask |= button_mask(int(match.group(1)))
    return mask


def _button_count_from_state(text: str) -> int:
    return len(re.findall(r"button\[\d+\]=", text))


def _parse_keysym_table(text: str) -> dict[int, list[str]]:
    table = {}
    for line in text.splitlines():
        match = re.match(r"\s*keycode\s+(\d+)\s*=\s*(.*)", line)
        if match:
            table[int(match.group(1))] = match.group(2).split()
    return table


def _parse_modifier_map(text: str) -> list[list[int]]:
    rows: dict[str, list[int]] = {name: [] for name in _MODIFIER_ROWS}
    for line in text.splitlines():
        parts = line.split(None, 1)
        if parts and parts[0] in rows:
            rest = parts[1] if len(parts) > 1 else ""
            rows[parts[0]] = [int(code, 16) for code in re.findall(r"\((0x[0-9a-fA-F]+)\)", rest)]
    return [rows[name] for name in _MODIFIER_ROWS]


def _parse_window_id(text: str) -> int:
    match = re.search(r"Window id:\s*(0x[0-9a-fA-F]+)", text)
    return int(match.group(1), 16) if match else 0


def _parse_children(text: str) -> list[int]:
    return [int(wid, 16) for wid in re.findall(r"^\s+(0x[0-9a-fA-F]+)\s", text, re.MULTILINE)]


class _ToolConnection:
    """Display access through the xdotool, xinput and xmodmap programs."""

    opened = False

    def open(self) -> bool:
        self.opened = bool(os.environ.get("DISPLAY")) and all(
            shutil.which(tool) for tool in ("xdotool", "xinput")
        )
        return self.opened

    def close(self) -> None:
        self.opened = False

    @staticmethod
    def _state(device: str) -> str:
        return _run_tool("xinput", "query-state", device) or ""


class _ToolKeyboardBackend(_ToolConnection, KeyboardBackend):
    def __init__(self) -> None:
        self._keysyms: Optional[dict[int, list[str]]] = None
        self._children: dict[int, Optional[list[int]]] = {}
        self._selected: dict[int, int] = {}
        self._pending: Optional[subprocess.Popen] = None

    def close(self) -> None:
        self.flush()
        self._children.clear()
        self._selected.clear()
        self._keysyms = None
        super().close()

    def root_window(self) -> int:
        return _parse_window_id(_run_tool("xwininfo", "-root") or "")

    def query_tree(self, window: int) -> Optional[Sequence[int]]:
        if window not in self._children:
            target = ("-root",) if window == 0 else ("-id", hex(window))
            output = _run_tool("xwininfo", "-children", *target)
            if output is None:
                self._children[window] = None if shutil.which("xwininfo") else []
            else:
                self._children[window] = _parse_children(output)
        return self._children[window]

    def select_input(self, window: int, mask: int) -> None:
        if mask:
            self._selected[window] = mask
        else:
            self._selected.pop(window, None)

    def flush(self) -> None:
        if self._pending is not None:
            try:
                self._pending.wait(timeout=_TOOL_TIMEOUT)
            except subprocess.TimeoutExpired:
                self._pending.kill()
            self._pending = None

    def _send(self, delay: int, *command: str) -> None:
        """Run one xdotool command after the previous one has finished."""
        self.flush()
        try:
            self._pending = subprocess.Popen(
                ("xdotool", "sleep", f"{delay / 1000:g}", *command),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError:
            self._pending = None

    def query_keymap(self) -> bytes:
        return _keymap_from_state(self._state(KEYBOARD_DEVICE))

    def fake_motion(self, x: int, y: int, delay: int) -> None:
        self._send(delay, "mousemove", str(x), str(y))

    def fake_key(self, keycode: int, pressed: bool, delay: int) -> None:
        keysym = self.keycode_to_keysym(keycode, 0)
        if keysym is None:
            return
        self._send(delay, "keydown" if pressed else "keyup", keysym)

    def fake_button(self, button: int, pressed: bool, delay: int) -> None:
        self._send(delay, "mousedown" if pressed else "mouseup", str(button))

    def keycode_to_keysym(self, keycode: int, index: int) -> Optional[str]:
        if self._keysyms is None:
            self._keysyms = _parse_keysym_table(_run_tool("xmodmap", "-pke") or "")
        columns = self._keysyms.get(keycode, [])
        if index < len(columns) and columns[index] != "NoSymbol":
            return columns[index]
        return None

    def modifier_mapping(self) -> Sequence[Sequence[int]]:
        return _parse_modifier_map(_run_tool("xmodmap", "-pm") or "")


class _ToolMouseBackend(_ToolConnection, MouseBackend):
    def __init__(self) -> None:
        self._grabbed: set[int] = set()
        self._pointer_grabbed = False
        self._last_state = ""

    def close(self) -> None:
        self._grabbed.clear()
        self._pointer_grabbed = False
        self._last_state = ""
        super().close()

    def grab_button(self, button: int) -> None:
        self._grabbed.add(button)
        self._pointer_grabbed = True

    def ungrab_button(self, button: int) -> None:
        self._grabbed.discard(button)
        if not self._grabbed:
            self._pointer_grabbed = False

    def ungrab_pointer(self) -> None:
        self._pointer_grabbed = False

    def sync(self) -> None:
        self._last_state = self._state(POINTER_DEVICE)

    def pending_events(self) -> list[ButtonEvent]:
        return []

    def pointer_mask(self) -> int:
        self._last_state = self._state(POINTER_DEVICE)
        return _pointer_mask_from_state(self._last_state)

    def button_count(self) -> int:
        if not self._last_state:
            self.sync()
        return _button_count_from_state(self._last_state)


def _screen_size() -> tuple[int, int]:
    output = _run_tool("xdotool", "getdisplaygeometry") or ""
    numbers = [int(n) for n in output.split()[:2] if n.isdigit()]
    return (numbers[0], numbers[1]) if len(numbers) == 2 else (0, 0)


def _run(scanner: Scanner, lines: Sequence[ScanLine]) -> None:
    next_grab = 0.0
    next_tick = {id(line): 0.0 for line in lines}
    while True:
        now = time.monotonic()
        with scanner.lock:
            if scanner.timer_running and now >= next_grab:
                scanner.grab_event()
                next_grab = now + scanner.speed / 1000
            for line in lines:
                if line.scanning and now >= next_tick[id(line)]:
                    line.tick()
                    next_tick[id(line)] = now + line.interval / 1000
        time.sleep(_LOOP_SECONDS)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the scanner until interrupted; return the exit status."""
    parser = argparse.ArgumentParser(prog="nadir", description="Multimodal screen scanner.")
    parser.add_argument("--config", help="settings file to use")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    store = SettingsStore(args.config)
    keyboard = Keyboard(_ToolKeyboardBackend(), int(store.value("Main", "keycode", 65)))
    mouse = Mouse(_ToolMouseBackend(), int(store.value("Main", "mouseButton", 1)))
    if not keyboard.start() or not mouse.start():
        logger.error("cannot open the display")
        keyboard.stop()
        mouse.stop()
        return 1

    screen = _screen_size()
    microphone = Microphone(SettingsData())
    h_line = ScanLine(LineType.HORIZONTAL, keyboard, store, screen)
    v_line = ScanLine(LineType.VERTICAL, keyboard, store, screen)
    try:
        scanner = Scanner(keyboard, mouse, microphone, h_line, v_line, store, screen)
        logger.info("scanner started (%s)", startup_visibility(store))
        _run(scanner, (h_line, v_line))
    except KeyboardInterrupt:
        pass
    finally:
        microphone.capture(False)
        mouse.stop()
        keyboard.stop()
    return 0