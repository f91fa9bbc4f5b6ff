import logging
import time

from nadir.capture import CaptureError
from nadir.microphone import Microphone
from nadir.settings import SettingsData


class CountingSource:
    instances = []

    def __init__(self, settings):
        self.opened = 0
        CountingSource.instances.append(self)

    def open(self):
        self.opened += 1

    def read(self, size):
        time.sleep(0.001)
        return bytes(size)

    def close(self):
        pass


class BrokenSource(CountingSource):
    def open(self):
        raise CaptureError("no device")


def _wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_jack_mode_levels_reported():
    events = []
    mic = Microphone(SettingsData(enable_jack=True), events.append)
    assert mic.alsa_capture is None
    mic.frame_writer.process([[1.0] * 4, [0.0] * 4])
    levels = mic.poll()
    assert levels[1] == -85
    assert levels[0] > 0
    assert events == levels


def test_poll_without_data_gives_floor():
    settings = SettingsData(enable_jack=True, meter_range=40)
    mic = Microphone(settings)
    assert mic.poll() == [-40, -40]


def test_capture_on_and_off():
    CountingSource.instances = []
    settings = SettingsData(alsa_periodsize=4)
    mic = Microphone(settings, None, CountingSource)
    assert mic.is_capturing() is False
    mic.capture(True)
    mic.capture(True)
    assert mic.is_capturing() is True
    assert mic.alsa_capture.is_running() is True
    mic.capture(False)
    assert mic.is_capturing() is False
    assert mic.alsa_capture.is_running() is False
    assert mic.ring_buffer.fill_rate() == 0
    assert CountingSource.instances[0].opened == 1


def test_controlled_stop_does_not_warn(caplog):
    settings = SettingsData(alsa_periodsize=4)
    mic = Microphone(settings, None, CountingSource)
    with caplog.at_level(logging.WARNING, logger="nadir.microphone"):
        mic.capture(True)
        mic.capture(False)
    assert "ALSA capture failed!" not in caplog.text


def test_stop_while_capturing_warns(caplog):
    mic = Microphone(SettingsData(enable_jack=True))
    mic.capture(True)
    with caplog.at_level(logging.WARNING, logger="nadir.microphone"):
        mic.stop()
    for meter in mic.meters:
        meter.stop()
    assert mic.is_capturing() is False
    assert "ALSA capture failed!" in caplog.text


def test_failed_capture_clears_capturing(caplog):
    settings = SettingsData(alsa_periodsize=4)
    mic = Microphone(settings, None, BrokenSource)
    with caplog.at_level(logging.WARNING):
        mic.capture(True)
        ended = _wait_until(lambda: not mic.alsa_capture.is_running())
    for meter in mic.meters:
        meter.stop()
    assert ended is True
    assert mic.is_capturing() is False
    assert "ALSA capture failed!" in caplog.text