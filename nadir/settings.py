"""Audio capture settings with command-line parsing and validation."""

from __future__ import annotations

import getopt
import logging
import re
from dataclasses import dataclass, fields

from .store import APPLICATION_NAME

logger = logging.getLogger(__name__)

SHRT_MAX = 32767
INT_MAX = 2147483647

ABOUT_MESSAGE = f"{APPLICATION_NAME}\n"

_SHORT_OPTIONS = "jhvid:b:f:p:m:n:r:c:e:s:"
_LONG_OPTIONS = {
    "help": "h",
    "version": "v",
    "device": "d",
    "buffersize": "b",
    "channels": "c",
    "fragments": "f",
    "meterrange": "e",
    "periodsize": "p",
    "midiChannel": "m",
    "midiNote": "n",
    "jack": "j",
    "rate": "r",
    "32bit": "i",
    "split": "s",
}
_WITH_ARGUMENT = set("dbcfepmnrs")


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def check_range(name: str, value: int, minval: int, maxval: int) -> int:
    """Clamp ``value`` into ``[minval, maxval]``, warning when it changes."""
    if value < minval:
        logger.warning("Changed %s to %d (valid range is %d to %d)", name, minval, minval, maxval)
        return minval
    if value > maxval:
        logger.warning("Changed %s to %d (valid range is %d to %d)", name, maxval, minval, maxval)
        return maxval
    return value


@dataclass
class SettingsData:
    """Capture parameters; defaults match the built-in configuration."""

    ring_buf_size: int = 1048576
    rate: int = 44100
    channels: int = 2
    enable_jack: bool = False
    enable_32bit: bool = False
    midi_channel: int = 15
    midi_note: int = 21
    meter_range: int = 85
    split_mb: int = 2000
    alsa_periods: int = 2
    alsa_periodsize: int = 2048
    alsa_pcm_name: str = "default"

    def set_default(self) -> None:
        """Restore every setting to its default."""
        for field in fields(self):
            setattr(self, field.name, field.default)

    def sample_size(self) -> int:
        return 4 if self.enable_32bit else 2

    def frame_size(self) -> int:
        return self.channels * self.sample_size()

    def validate(self) -> None:
        """Clamp settings into their valid ranges."""
        self.channels = check_range("channels", self.channels, 1, SHRT_MAX)
        frame = self.frame_size()
        self.ring_buf_size = check_range("buffersize", self.ring_buf_size, 4096 * frame, INT_MAX // 2)
        remainder = self.ring_buf_size % frame
        if remainder:
            self.ring_buf_size += frame - remainder
            logger.warning(
                "Changed buffersize to %d (must be multiple of frame size)", self.ring_buf_size
            )
        self.midi_channel = check_range("midiChannel", self.midi_channel, 0, 15)
        self.midi_note = check_range("midiNote", self.midi_note, 0, 127)
        self.meter_range = check_range("meterrange", self.meter_range, 12, 192)
        self.split_mb = check_range("split", self.split_mb, 1, 4095)

    def parse_cmdline(self, argv: list[str]) -> bool:
        """Apply options from ``argv`` (program name excluded).

        Returns False when the program should exit (help or version shown).
        Raises ValueError on an unknown option or a missing argument.
        """
        long_opts = [
            name + ("=" if letter in _WITH_ARGUMENT else "") for name, letter in _LONG_OPTIONS.items()
        ]
        try:
            options, _ = getopt.gnu_getopt(list(argv), _SHORT_OPTIONS, long_opts)
        except getopt.GetoptError as err:
            raise ValueError(str(err)) from err

        for opt, arg in options:
            letter = _LONG_OPTIONS[opt[2:]] if opt.startswith("--") else opt[1:]
            if letter == "d":
                self.alsa_pcm_name = arg
            elif letter == "b":
                self.ring_buf_size = _atoi(arg)
            elif letter == "c":
                self.channels = _atoi(arg)
            elif letter == "e":
                self.meter_range = _atoi(arg)
            elif letter == "f":
                self.alsa_periods = _atoi(arg)
            elif letter == "p":
                self.alsa_periodsize = _atoi(arg)
            elif letter == "m":
                self.midi_channel = _atoi(arg) - 1
            elif letter == "s":
                self.split_mb = _atoi(arg)
            elif letter == "r":
                self.rate = _atoi(arg)
            elif letter == "j":
                self.enable_jack = True
            elif letter == "i":
                self.enable_32bit = True
            elif letter == "n":
                self.midi_note = _atoi(arg)
            elif letter == "v":
                print(ABOUT_MESSAGE, end="")
                return False
            elif letter == "h":
                print(help_text(), end="")
                return False
        self.validate()
        return True


def help_text() -> str:
    """Return the command-line help listing with default values."""
    d = SettingsData()
    return (
        f"{ABOUT_MESSAGE}\n"
        "General options:\n"
        "--32bit                     Use 32 Bit format\n"
        f"--buffersize <bytes>        Size of ringbuffer [{d.ring_buf_size}]\n"
        f"--channels <num>            Channels [{d.channels + 1}]\n"
        "--jack                      Enable JACK mode\n"
        f"--meterrange <dB>           Dynamic range of peak meter [{d.meter_range}]\n"
        f"--midiChannel <num>         MIDI Channel [{d.midi_channel}]\n"
        f"--midiNote <num>            MIDI Note [{d.midi_note}]\n"
        f"--split <MB>                Maximum size of wave file [{d.split_mb}]\n\n"
        "ALSA specific options:\n"
        f"--device <ALSA device>      ALSA Capture device [{d.alsa_pcm_name}]\n"
        f"--fragments <num>           Number of fragments [{d.alsa_periods}]\n"
        f"--periodsize <frames>       Periodsize [{d.alsa_periodsize}]\n"
        f"--rate <num>                Sample rate [{d.rate}]\n\n"
        "Standard options:\n"
        "--help                      Print possible command-line options and exit\n"
        "--version                   Print version information and exit\n\n"
    )