# nadir

nadir is a screen scanner for people who can operate only a single switch.
The first activation starts a horizontal line sweeping down the screen; the
next stops it and starts a vertical line sweeping across; the third stops that
one too. The pointer moves to where the two lines cross and the chosen action
is performed: a left click, a double click, a right click, or a drag whose drop
is made at the end of the following scan.

The switch can be any of these (the `mode` setting):

- `0`: a key on the keyboard (keycode 65, the space bar, by default),
- `1`: a sound picked up by the microphone that rises above a threshold in dB,
- `2`: a mouse button (button 1 by default).

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Running

```
nadir
nadir --config path/to/settings.json
```

The `nadir` command runs the scan loop until it is interrupted with Ctrl-C.
It needs an X display (`DISPLAY` set) and drives it through external
programs: `xdotool` and `xinput` must be installed; `xmodmap` and `xwininfo`
are used for key names, modifiers and the window tree; microphone mode records
through `arecord`. If the display cannot be used the command exits with
status 1.

## Settings

Preferences live in a JSON file, by default `nadir/nadir.json` under
`$XDG_CONFIG_HOME` (or `~/.config`); `nadir.store.default_path()` returns the
location and `--config` chooses another file. Values are grouped:

- `Main`: `speed` (ms per step, 30), `thickness` (4), `color` (`"255,0,0"`),
  `mode` (0), `continuous` (0), `click` (0 for a single click as default
  action, 1 for a double click), `hide` (move the pointer to the screen corner
  after each action), `keycode` (65), `keysym`, `mouseButton` (1),
  `audioThreshold` (0 dB), `waitTime` (1000 ms hold-off after a sound
  trigger), `escape` (9), `confirmOnExit` (1);
- `mainWidget`: `minimized`, `hidden`, `systray`, `size`, `pos`;
- `confWidget`: `size`, `pos`.

`nadir.preferences.Preferences` loads and saves all of these with their
defaults through `nadir.store.SettingsStore`.

## Using it as a library

- `nadir.store.SettingsStore` – grouped key/value settings with `value()`,
  `set_value()` and `sync()`.
- `nadir.settings.SettingsData` – audio capture parameters (device, rate,
  channels, 32-bit samples, ring buffer size, meter range …) with
  `validate()` and `parse_cmdline(argv)`, which accepts options such as
  `--device`, `--rate`, `--channels`, `--32bit`, `--buffersize` and
  `--meterrange`; `nadir.settings.help_text()` lists them with their
  defaults. The `nadir` command itself does not take these options; it uses
  the defaults.
- `nadir.ringbuffer.RingBuffer` – thread-safe byte ring buffer for
  interleaved frames that keeps a peak level per channel (`read_max()`).
- `nadir.meter.Meter` and `nadir.meter.level_to_db()` – turn channel peaks
  into decibel readings, polling every 50 ms when started.
- `nadir.capture.Capture`, `ArecordSource`, `FrameWriter` and
  `encode_samples()` – fill a ring buffer from a recorder process or from
  blocks of float samples.
- `nadir.microphone.Microphone` – capture plus one meter per channel,
  reporting each level to a callback.
- `nadir.key.key_name()` – readable names for common X11 keycodes.
- `nadir.keyboard.Keyboard` and `nadir.mouse.Mouse` – watch the switch and
  send synthetic pointer and key events through a `KeyboardBackend` or
  `MouseBackend` you supply.
- `nadir.scanline.ScanLine` – position and size of a sweeping line, advanced
  by `tick()`.
- `nadir.controller.Scanner` – the scan state machine that ties these
  together and performs the selected `MouseEvent`.
- `nadir.preferences.AudioIndicator`, `mouse_button_name()`,
  `qt_to_x11_button()`, `threshold_label()` and `wait_time_label()` – helpers
  for a settings screen.

## What it does not do

nadir has no graphical interface: the scan lines are tracked but not drawn on
screen, and there is no control panel window, settings dialog or system tray
icon. Settings are changed by editing the settings file or through
`Preferences`. The built-in display access uses polling through the tools
named above, so it does not grab mouse buttons or keys from other
applications, and there is no JACK audio connection; `FrameWriter` accepts
sample blocks from whatever source you connect to it.