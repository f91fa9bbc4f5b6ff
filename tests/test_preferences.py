import pytest

from nadir.preferences import (
    ALERT_STYLE,
    IDLE_STYLE,
    QT_BACK_BUTTON,
    QT_EXTRA_BUTTON4,
    QT_FORWARD_BUTTON,
    QT_LEFT_BUTTON,
    QT_MIDDLE_BUTTON,
    QT_RIGHT_BUTTON,
    QT_TASK_BUTTON,
    AudioIndicator,
    Preferences,
    mouse_button_name,
    qt_to_x11_button,
    threshold_label,
    wait_time_label,
)
from nadir.store import SettingsStore


@pytest.fixture
def store(tmp_path):
    return SettingsStore(tmp_path / "settings.json")


@pytest.mark.parametrize("button,name", [
    (1, "Left"), (2, "Middle"), (3, "Right"), (4, "Scroll up"), (5, "Scroll down"),
])
def test_mouse_button_names(button, name):
    assert mouse_button_name(button) == name


def test_mouse_button_name_other():
    assert mouse_button_name(9).startswith("Button ")
    assert mouse_button_name(9).endswith("9")


@pytest.mark.parametrize("qt,x11", [
    (QT_LEFT_BUTTON, 1), (QT_MIDDLE_BUTTON, 2), (QT_RIGHT_BUTTON, 3),
    (QT_BACK_BUTTON, 8), (QT_FORWARD_BUTTON, 9), (QT_TASK_BUTTON, 10),
    (QT_EXTRA_BUTTON4, 11),
])
def test_qt_to_x11_button(qt, x11):
    assert qt_to_x11_button(qt) == x11


def test_extra_buttons_are_consecutive():
    first = qt_to_x11_button(QT_EXTRA_BUTTON4)
    assert qt_to_x11_button(QT_EXTRA_BUTTON4 << 1) == first + 1
    assert qt_to_x11_button(QT_EXTRA_BUTTON4 << 2) == first + 2


@pytest.mark.parametrize("qt", [0, QT_EXTRA_BUTTON4 | QT_TASK_BUTTON, (QT_EXTRA_BUTTON4 << 1) + 1])
def test_qt_to_x11_button_unknown(qt):
    assert qt_to_x11_button(qt) == 0


def test_threshold_label():
    assert threshold_label(-10) == "-10 dB"


def test_wait_time_label():
    assert wait_time_label(1000) == "1 second(s)"
    assert wait_time_label(1500) == "1.5 second(s)"
    assert wait_time_label(1009) == wait_time_label(1000)


def test_load_defaults(store):
    prefs = Preferences(speed=1, keysym="x")
    prefs.load(store)
    assert prefs == Preferences()
    assert prefs.keysym == "ESPACIO"
    assert prefs.size == (770, 670)


def test_save_load_round_trip(store, tmp_path):
    prefs = Preferences(
        speed=50, thickness=6, continuous=True, double_click=True, hide_pointer=True,
        mode=2, mouse_button=3, color="0,128,255", audio_threshold=-12, wait_time=500,
        keycode=36, keysym="ENTER", confirm_on_exit=False, minimized=True,
        hidden=False, systray=False, size=(400, 300), pos=(10, 20),
    )
    prefs.save(store)
    loaded = Preferences()
    loaded.load(SettingsStore(tmp_path / "settings.json"))
    assert loaded == prefs


def test_save_writes_integer_flags(store):
    Preferences(double_click=True, continuous=False).save(store)
    assert store.value("Main", "click") == 1
    assert store.value("Main", "continuous") == 0
    assert store.value("mainWidget", "systray") == 1


def test_color_style_contains_color():
    style = Preferences(color="1,2,3").color_style()
    assert "rgb(1,2,3)" in style
    assert style.startswith("QPushButton {")


def test_minimized_and_hidden_exclusive():
    prefs = Preferences()
    prefs.set_hidden(True)
    prefs.set_minimized(True)
    assert (prefs.minimized, prefs.hidden) == (True, False)
    prefs.set_hidden(True)
    assert (prefs.minimized, prefs.hidden) == (False, True)
    prefs.set_hidden(False)
    assert (prefs.minimized, prefs.hidden) == (False, False)


def test_audio_indicator_sequence():
    ind = AudioIndicator(threshold=-10, wait_time=1000)
    assert ind.update(-20, now=0.0) == IDLE_STYLE
    assert ind.update(0, now=0.1) == ALERT_STYLE
    assert ind.waiting is True
    assert ind.update(-20, now=0.5) is None
    assert ind.update(0, now=0.6) is None
    assert ind.style == ALERT_STYLE
    assert ind.update(-20, now=1.1) == IDLE_STYLE
    assert ind.waiting is False


def test_audio_indicator_level_equal_threshold_is_idle():
    ind = AudioIndicator(threshold=-5, wait_time=100)
    assert ind.update(-5, now=0.0) == IDLE_STYLE
    assert ind.level == -5