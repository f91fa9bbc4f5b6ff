"""Microphone level monitoring: capture, ring buffer and per-channel meters."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .capture import AudioSource, Capture, FrameWriter
from .meter import Meter
from .ringbuffer import RingBuffer
from .settings import SettingsData

logger = logging.getLogger(__name__)


class Microphone:
    """Captures audio and reports each measured level in dB through ``on_event``."""

    def __init__(
        self,
        settings: SettingsData,
        on_event: Optional[Callable[[float], None]] = None,
        source_factory: Optional[Callable[[SettingsData], AudioSource]] = None,
    ) -> None:
        self.settings = settings
        self.on_event = on_event
        self.jack_mode = settings.enable_jack
        self.ring_buffer = RingBuffer(
            settings.ring_buf_size, settings.channels, settings.enable_32bit
        )
        self._lock = threading.Lock()
        self._capturing = False

        self.frame_writer: Optional[FrameWriter] = None
        self.alsa_capture: Optional[Capture] = None
        if self.jack_mode:
            self.frame_writer = FrameWriter(settings, self.ring_buffer)
            self.ring_buffer.reset()

        self.meters = [
            Meter(
                self.ring_buffer,
                channel,
                settings.sample_size(),
                -settings.meter_range,
                self._report,
            )
            for channel in range(settings.channels)
        ]

        if not self.jack_mode:
            source = source_factory(settings) if source_factory is not None else None
            self.alsa_capture = Capture(settings, self.ring_buffer, source)
            self.alsa_capture.on_finished = self.stop

    def _report(self, level: float) -> None:
        if self.on_event is not None:
            self.on_event(level)

    def capture(self, on: bool) -> None:
        """Start or stop capturing and metering."""
        if on:
            with self._lock:
                if self._capturing:
                    return
                self._capturing = True
            if self.alsa_capture is not None and not self.alsa_capture.is_running():
                self.alsa_capture.start()
            for meter in self.meters:
                meter.start()
            return

        with self._lock:
            if not self._capturing:
                return
            self._capturing = False
        # capturing is already off, so the finished callback does not report a failure
        if self.alsa_capture is not None:
            self.alsa_capture.stop()
        self.ring_buffer.reset()
        for meter in self.meters:
            meter.reset_global_max()
            meter.stop()

    def is_capturing(self) -> bool:
        return self._capturing

    def stop(self) -> None:
        """Mark capture as ended; warns if it ended while still wanted."""
        with self._lock:
            if self._capturing:
                logger.warning("ALSA capture failed!")
            self._capturing = False

    def poll(self) -> list[float]:
        """Update every meter once and return their levels in dB."""
        levels = []
        for meter in self.meters:
            meter.update()
            levels.append(meter.db())
        return levels