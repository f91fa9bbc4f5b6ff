import pytest

from nadir.settings import SettingsData, check_range, help_text


def test_defaults():
    s = SettingsData()
    assert s.ring_buf_size == 1048576
    assert s.rate == 44100
    assert s.alsa_periodsize == 2048
    assert s.alsa_pcm_name == "default"
    assert s.sample_size() == 2
    assert s.frame_size() == 2 * s.channels


def test_set_default_restores_values():
    s = SettingsData(rate=8000, channels=5, enable_jack=True)
    s.set_default()
    assert s == SettingsData()


def test_32bit_sample_size():
    s = SettingsData()
    assert s.parse_cmdline(["--32bit"]) is True
    assert s.sample_size() == 4
    assert s.frame_size() == 4 * s.channels


def test_short_options():
    s = SettingsData()
    assert s.parse_cmdline(["-c", "4", "-r", "48000", "-d", "hw:1", "-j"]) is True
    assert s.channels == 4
    assert s.rate == 48000
    assert s.alsa_pcm_name == "hw:1"
    assert s.enable_jack is True


def test_long_options():
    s = SettingsData()
    s.parse_cmdline(["--fragments", "3", "--periodsize=512", "--midiNote", "60"])
    assert s.alsa_periods == 3
    assert s.alsa_periodsize == 512
    assert s.midi_note == 60


def test_midi_channel_is_one_based_on_command_line():
    s = SettingsData()
    s.parse_cmdline(["-m", "1"])
    assert s.midi_channel == 0


def test_numeric_prefix_is_parsed():
    s = SettingsData()
    s.parse_cmdline(["--meterrange", "40dB"])
    assert s.meter_range == 40


def test_values_are_clamped():
    s = SettingsData()
    s.parse_cmdline(["-e", "5", "-n", "200", "-s", "0"])
    assert s.meter_range == 12
    assert s.midi_note == 127
    assert s.split_mb == 1


def test_buffer_size_rounded_to_frame_size():
    s = SettingsData(channels=3)
    requested = 4096 * 6 + 1
    s.ring_buf_size = requested
    s.validate()
    assert s.ring_buf_size % s.frame_size() == 0
    assert s.ring_buf_size >= requested


def test_buffer_size_minimum():
    s = SettingsData()
    s.parse_cmdline(["-b", "10"])
    assert s.ring_buf_size == 4096 * s.frame_size()


def test_help_stops_and_prints(capsys):
    assert SettingsData().parse_cmdline(["--help"]) is False
    out = capsys.readouterr().out
    assert "--periodsize <frames>       Periodsize [2048]" in out
    assert out == help_text()


def test_unknown_option_raises():
    with pytest.raises(ValueError):
        SettingsData().parse_cmdline(["--bogus"])


def test_check_range():
    assert check_range("x", 5, 1, 10) == 5
    assert check_range("x", -3, 1, 10) == 1
    assert check_range("x", 99, 1, 10) == 10