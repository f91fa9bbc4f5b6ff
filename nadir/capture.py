"""Audio capture into a ring buffer, from an external recorder or a frame callback."""

from __future__ import annotations

import logging
import subprocess
import threading
from typing import Callable, Optional, Protocol, Sequence

from .ringbuffer import RingBuffer
from .settings import SettingsData

logger = logging.getLogger(__name__)

SCALE_16 = 32767.0
SCALE_32 = 2147483647.0


class CaptureError(RuntimeError):
    """Raised when audio cannot be opened or read."""


class AudioSource(Protocol):
    def open(self) -> None: ...

    def read(self, size: int) -> bytes: ...

    def close(self) -> None: ...


class ArecordSource:
    """Raw interleaved PCM read from the ``arecord`` program."""

    def __init__(self, device: str, rate: int, channels: int, sample_size: int) -> None:
        self.device = device
        self.rate = rate
        self.channels = channels
        self.sample_size = sample_size
        self._proc: Optional[subprocess.Popen] = None

    def __enter__(self) -> "ArecordSource":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _command(self) -> list[str]:
        sample_format = "S16_LE" if self.sample_size == 2 else "S32_LE"
        return [
            "arecord",
            "-q",
            "-D", self.device,
            "-t", "raw",
            "-f", sample_format,
            "-r", str(self.rate),
            "-c", str(self.channels),
        ]

    def open(self) -> None:
        """Start the recorder; raises CaptureError if it cannot be started."""
        if self._proc is not None:
            return
        try:
            self._proc = subprocess.Popen(
                self._command(), stdout=subprocess.PIPE, stderr=subprocess.PIPE
            )
        except OSError as err:
            raise CaptureError(f"Error opening PCM device {self.device} ({err})") from err

    def read(self, size: int) -> bytes:
        """Return exactly ``size`` bytes; raises CaptureError at end of stream."""
        if self._proc is None or self._proc.stdout is None:
            raise CaptureError("capture source is not open")
        chunks = []
        remaining = size
        while remaining > 0:
            chunk = self._proc.stdout.read(remaining)
            if not chunk:
                message = b""
                if self._proc.stderr is not None:
                    message = self._proc.stderr.read() or b""
                detail = message.decode(errors="replace").strip() or "end of stream"
                raise CaptureError(f"Error reading PCM device {self.device} ({detail})")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def close(self) -> None:
        """Stop the recorder if it is running."""
        proc, self._proc = self._proc, None
        if proc is None:
            return
        if proc.poll() is None:
            proc.terminate()
            try:
                proc.wait(timeout=2)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()
        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()


class Capture:
    """Copies periods of audio from a source into a ring buffer on a thread."""

    def __init__(
        self,
        settings: SettingsData,
        ring_buffer: RingBuffer,
        source: Optional[AudioSource] = None,
    ) -> None:
        self.ring_buffer = ring_buffer
        self.period_bytes = settings.alsa_periodsize * settings.frame_size()
        self.source: AudioSource = source if source is not None else ArecordSource(
            settings.alsa_pcm_name, settings.rate, settings.channels, settings.sample_size()
        )
        self.on_finished: Optional[Callable[[], None]] = None
        self._stop_requested = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run(self) -> None:
        """Capture on the calling thread until stop() is called."""
        self._stop_requested.clear()
        self._capture()

    def _capture(self) -> None:
        try:
            self.source.open()
        except CaptureError as err:
            logger.warning("%s", err)
            logger.warning("Could not open PCM for capture.")
            return
        try:
            self.ring_buffer.reset()
            while not self._stop_requested.is_set():
                data = self.source.read(self.period_bytes)
                if data:
                    self.ring_buffer.write(data)
        except CaptureError as err:
            logger.warning("%s", err)
        finally:
            self.source.close()

    def _thread_main(self) -> None:
        try:
            self._capture()
        finally:
            if self.on_finished is not None:
                self.on_finished()

    def start(self) -> None:
        """Capture on a background thread."""
        if self.is_running():
            return
        self._stop_requested.clear()
        self._thread = threading.Thread(target=self._thread_main, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Ask capture to end and wait for the thread to finish."""
        self._stop_requested.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


def encode_samples(channel_data: Sequence[Sequence[float]], sample_size: int) -> bytes:
    """Interleave per-channel float samples as little-endian signed integers."""
    if sample_size == 2:
        scale, mask = SCALE_16, 0xFFFF
    else:
        scale, mask = SCALE_32, 0xFFFFFFFF
    out = bytearray()
    for frame in zip(*channel_data):
        for sample in frame:
            out += (int(scale * sample) & mask).to_bytes(sample_size, "little")
    return bytes(out)


class FrameWriter:
    """Writes blocks of per-channel float samples into a ring buffer."""

    def __init__(self, settings: SettingsData, ring_buffer: RingBuffer) -> None:
        self.channels = settings.channels
        self.sample_size = settings.sample_size()
        self.frame_size = self.channels * self.sample_size
        self.ring_buffer = ring_buffer

    def process(self, channel_data: Sequence[Sequence[float]]) -> int:
        """Encode one sequence per channel and store it; return the frames written."""
        if len(channel_data) != self.channels:
            raise ValueError(f"expected {self.channels} channels, got {len(channel_data)}")
        data = encode_samples(channel_data, self.sample_size)
        self.ring_buffer.write(data)
        return len(data) // self.frame_size