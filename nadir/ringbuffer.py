"""Thread-safe byte ring buffer for interleaved audio frames."""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)

WAKE_FRAMES = 4096
WAIT_SECONDS = 1.0


class RingBufferError(ValueError):
    """Raised for a ring buffer that cannot be built."""


class RingBuffer:
    """One thread writes, another reads; a third may read per-channel peaks."""

    def __init__(self, size: int, channels: int, enable_32bit: bool = False) -> None:
        self.sample_size = 4 if enable_32bit else 2
        self.channels = channels
        self.size = size
        frame = self.sample_size * channels
        if frame <= 0 or size <= 0 or size % frame != 0:
            raise RingBufferError(f"Ringbuf size must be multiple of frame size ({frame})")
        self._buf = bytearray(size)
        self._lock = threading.Lock()
        self._data_ready = threading.Condition(self._lock)
        self.reset()

    @property
    def frame_size(self) -> int:
        return self.sample_size * self.channels

    def reset(self) -> None:
        """Empty the buffer and clear peaks and counters."""
        with self._lock:
            self._max = [0] * self.channels
            self._frame_counter = 0
            self._fill_rate = 0
            self._fill_rate_max = 0
            self._read_ofs = 0
            self._write_ofs = 0

    def write(self, data: bytes) -> None:
        """Append ``data`` at the write position, wrapping around the end."""
        view = memoryview(bytes(data))
        with self._lock:
            old = self._write_ofs
            pos = old
            offset = 0
            while offset < len(view):
                chunk = min(len(view) - offset, self.size - pos)
                self._buf[pos:pos + chunk] = view[offset:offset + chunk]
                offset += chunk
                pos = (pos + chunk) % self.size
            new = (old + len(view)) % self.size
            self._write_ofs = new
            self._update_max(old, new)

            written = (new - old) % self.size
            self._fill_rate += written
            self._fill_rate_max = max(self._fill_rate_max, self._fill_rate)

            self._frame_counter += written // self.frame_size
            if self._frame_counter >= WAKE_FRAMES:
                self._data_ready.notify()
                self._frame_counter = 0

    def _update_max(self, start: int, end: int) -> None:
        frame = self.frame_size
        if start % frame or end % frame:
            logger.warning("Internal error: not even frames written!")
            start -= start % frame
            end -= end % frame
        peaks = [0] * self.channels
        ss = self.sample_size
        while start != end:
            for channel in range(self.channels):
                at = start + channel * ss
                sample = int.from_bytes(self._buf[at:at + ss], "little", signed=True)
                peaks[channel] = max(peaks[channel], abs(sample))
            start = (start + frame) % self.size
        self._max = [max(old, new) for old, new in zip(self._max, peaks)]

    def read(self, size: int | None = None, wait_if_empty: bool = False) -> bytes:
        """Remove and return up to ``size`` bytes (all available if None).

        With ``wait_if_empty`` an empty buffer is waited on for up to a second.
        """
        with self._lock:
            if wait_if_empty and self._fill_rate == 0:
                self._data_ready.wait(WAIT_SECONDS)
            count = min(self._fill_rate, self.size)
            if size is not None:
                count = min(count, max(size, 0))
            start = self._read_ofs
            end = start + count
            if end <= self.size:
                out = bytes(self._buf[start:end])
            else:
                out = bytes(self._buf[start:]) + bytes(self._buf[:end - self.size])
            self._read_ofs = end % self.size
            self._fill_rate -= count
            return out

    def discard(self) -> None:
        """Drop all unread data."""
        with self._lock:
            self._fill_rate_max = 0
            self._read_ofs = (self._read_ofs + self._fill_rate) % self.size
            self._fill_rate = 0

    def read_max(self, channel: int) -> int:
        """Return the peak absolute sample of ``channel`` and reset it."""
        with self._lock:
            peak = self._max[channel]
            self._max[channel] = 0
            return peak

    def fill_rate(self) -> int:
        """Number of unread bytes."""
        return self._fill_rate

    def fill_rate_max(self) -> int:
        """Highest fill rate seen since the last reset or discard."""
        return self._fill_rate_max