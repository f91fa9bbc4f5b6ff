import pytest

from nadir.scanline import STEP, LineType, ScanLine
from nadir.store import SettingsStore


class FakeKeyboard:
    def __init__(self):
        self.starts = 0
        self.stops = 0

    def start(self):
        self.starts += 1
        return True

    def stop(self):
        self.stops += 1


@pytest.fixture
def store(tmp_path):
    return SettingsStore(tmp_path / "settings.json")


def test_defaults_from_empty_store(store):
    line = ScanLine(LineType.HORIZONTAL, FakeKeyboard(), store, (100, 50))
    assert line.speed == 30
    assert line.thickness == 4
    assert line.escape_code == 9
    assert line.color == "255,0,0"


def test_background_color_contains_color(store):
    store.set_value("Main", "color", "1,2,3")
    line = ScanLine(LineType.VERTICAL, FakeKeyboard(), store, (100, 50))
    style = line.background_color()
    assert "rgb(1,2,3)" in style
    assert style.startswith("QWidget { background-color: rgb(")


def test_horizontal_geometry(store):
    line = ScanLine(LineType.HORIZONTAL, FakeKeyboard(), store, (100, 50))
    assert line.geometry() == (0, 0, 100, line.thickness)


def test_vertical_geometry(store):
    line = ScanLine(LineType.VERTICAL, FakeKeyboard(), store, (100, 50))
    assert line.geometry() == (0, 0, line.thickness, 50)


def test_horizontal_tick_moves_down_by_step(store):
    line = ScanLine(LineType.HORIZONTAL, FakeKeyboard(), store, (100, 50))
    line.tick()
    assert line.y == STEP
    assert line.x == 0


def test_vertical_tick_moves_right_by_step(store):
    line = ScanLine(LineType.VERTICAL, FakeKeyboard(), store, (100, 50))
    line.tick()
    line.tick()
    assert line.x == 2 * STEP
    assert line.y == 0


@pytest.mark.parametrize("line_type,axis,extent", [
    (LineType.HORIZONTAL, "y", 50),
    (LineType.VERTICAL, "x", 100),
])
def test_wraps_and_restarts_keyboard(store, line_type, axis, extent):
    kbd = FakeKeyboard()
    line = ScanLine(line_type, kbd, store, (100, 50))
    positions = []
    for _ in range(200):
        line.tick()
        positions.append(getattr(line, axis))
    assert max(positions) < extent
    wraps = sum(1 for a, b in zip(positions, positions[1:]) if b == 0 and a > 0)
    assert wraps >= 1
    assert kbd.stops == kbd.starts
    assert kbd.starts == positions.count(0)


def test_start_scan_resets_and_shows(store):
    line = ScanLine(LineType.HORIZONTAL, FakeKeyboard(), store, (100, 50))
    for _ in range(3):
        line.tick()
    line.start_scan()
    assert (line.x, line.y) == (0, 0)
    assert line.visible is True
    assert line.scanning is True
    line.stop_scan()
    assert line.scanning is False


def test_start_scan_reloads_thickness(store):
    line = ScanLine(LineType.VERTICAL, FakeKeyboard(), store, (100, 50))
    store.set_value("Main", "thickness", 7)
    store.set_value("Main", "speed", 15)
    line.start_scan()
    assert line.geometry()[2] == 7
    assert line.interval == 15


def test_hide_after_show(store):
    line = ScanLine(LineType.HORIZONTAL, FakeKeyboard(), store, (100, 50))
    line.show()
    line.hide()
    assert line.visible is False