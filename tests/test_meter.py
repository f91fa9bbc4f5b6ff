import struct
import threading

import pytest

from nadir.meter import METER_OVER, METER_OVER32, Meter, level_to_db
from nadir.ringbuffer import RingBuffer


def test_full_scale_is_zero_db():
    assert level_to_db(METER_OVER, 2, -85) == pytest.approx(0.0)
    assert level_to_db(METER_OVER32, 4, -85) == pytest.approx(0.0)


def test_silence_gives_minimum():
    assert level_to_db(0, 2, -85) == -85


def test_tiny_level_clamped_to_minimum():
    assert level_to_db(1, 2, -40) == -40


def test_level_is_monotonic():
    assert level_to_db(1000, 2, -85) < level_to_db(10000, 2, -85) < level_to_db(30000, 2, -85)


def test_update_reports_level():
    rb = RingBuffer(64, 1, False)
    seen = []
    meter = Meter(rb, 0, 2, -85, seen.append)
    assert meter.db() == -85
    rb.write(struct.pack("<h", METER_OVER))
    meter.update()
    assert seen == [pytest.approx(0.0)]
    assert meter.db() == pytest.approx(0.0)


def test_global_max_held_then_reset():
    rb = RingBuffer(64, 1, False)
    meter = Meter(rb, 0, 2, -85, None)
    rb.write(struct.pack("<h", 1234))
    meter.update()
    assert meter.global_max == 1234
    for _ in range(20):
        meter.update()
    assert meter.global_max == 1234
    meter.update()
    assert meter.global_max == 0


def test_reset_global_max():
    rb = RingBuffer(64, 1, False)
    meter = Meter(rb, 0, 2, -85, None)
    rb.write(struct.pack("<h", 500))
    meter.update()
    meter.reset_global_max()
    assert meter.global_max == 0


def test_start_and_stop_run_updates():
    rb = RingBuffer(64, 1, False)
    rb.write(struct.pack("<h", METER_OVER))
    got = threading.Event()
    levels = []

    def on_update(value):
        levels.append(value)
        got.set()

    meter = Meter(rb, 0, 2, -85, on_update)
    meter.start()
    assert got.wait(5)
    meter.stop()
    assert levels[0] == pytest.approx(0.0)
    assert meter.global_max == METER_OVER
    assert rb.read_max(0) == 0