"""Peak level meter reading a ring buffer channel and reporting decibels."""

from __future__ import annotations

import enum
import math
import threading
from typing import Callable, Optional

from .ringbuffer import RingBuffer

METER_OVER = 32000
METER_OVER32 = 2097152000
CAPTURE_TIME = 50  # milliseconds between updates
GLOBAL_MAX_HOLD = 20


class TickType(enum.Enum):
    UP = 0
    DOWN = 1


def level_to_db(level: int, sample_size: int, min_db: float) -> float:
    """Convert a peak sample value to dB relative to full scale, floored at ``min_db``."""
    over = METER_OVER if sample_size == 2 else METER_OVER32
    if level <= 0:
        return float(min_db)
    return max(float(min_db), 20.0 * math.log10(level / over))


class Meter:
    """Polls a ring buffer channel and reports its level through ``on_update``."""

    def __init__(
        self,
        ring_buffer: RingBuffer,
        channel: int,
        sample_size: int,
        min_db: float,
        on_update: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.ring_buffer = ring_buffer
        self.channel = channel
        self.sample_size = sample_size
        self.min_db = min_db
        self.on_update = on_update
        self.global_max = 0
        self._global_max_reset_count = 0
        self._db = float(min_db)
        self._thread: Optional[threading.Thread] = None
        self._stopped = threading.Event()

    def db(self) -> float:
        """Most recently measured level in dB."""
        return self._db

    def update(self) -> None:
        """Read the channel peak, update the held maximum and report the level."""
        if self._global_max_reset_count > GLOBAL_MAX_HOLD:
            self.reset_global_max()
        current = self.ring_buffer.read_max(self.channel)
        if current > self.global_max:
            self.global_max = current
            self._global_max_reset_count = 0
        self._global_max_reset_count += 1
        if current < 0:
            return
        self._db = level_to_db(current, self.sample_size, self.min_db)
        if self.on_update is not None:
            self.on_update(self._db)

    def reset_global_max(self) -> None:
        self._global_max_reset_count = 0
        self.global_max = 0

    def start(self) -> None:
        """Begin updating every CAPTURE_TIME milliseconds in the background."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self._stopped,), daemon=True)
        self._thread.start()

    def _run(self, stopped: threading.Event) -> None:
        while not stopped.wait(CAPTURE_TIME / 1000):
            self.update()

    def stop(self) -> None:
        """Stop background updates."""
        self._stopped.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join()