# fmvoice

Tools for working with DX7-style FM synthesizer voice data in plain Python,
with no dependencies outside the standard library.

## Modules

- `fmvoice.sysex` — 32-voice cartridges and single-voice dumps.
  `Cartridge` holds a 4104-byte bulk dump. `Cartridge.load(data)` and
  `Cartridge.load_file(path)` return a `LoadStatus` (`OK`, `BAD_CHECKSUM`
  or `NOT_SYSEX`; in the last case the bytes are taken as raw voice data).
  `pack_program` and `unpack_program` convert between the 128-byte packed
  form and the 155-byte edit form, `program_names()` lists the 32 names,
  `voice_sysex()` returns the full dump with header and checksum, and
  `save_voice_file(path)` writes it out. Helper functions:
  `sysex_checksum`, `export_program` (163-byte single-voice dump) and
  `normalize_program_name`.
- `fmvoice.voice` — `Voice`, the program being edited: 155 program bytes
  plus the packed operator-switch byte, the `op_switch` string, master
  tune, the init voice (`reset_to_init`), loading from a cartridge or a
  raw dump, an operator clipboard (`copy_to_clipboard`,
  `paste_op_from_clipboard`, `paste_env_from_clipboard`),
  `set_dx_value`, which changes one byte and returns the 7-byte
  parameter-change message, `program_sysex` and `store_to_cartridge`.
- `fmvoice.params` — `ParameterSet`, the ordered list of host parameters
  (filter cutoff, resonance and output, master tune, global voice
  parameters and every operator parameter), each mapped to a host value
  between 0.0 and 1.0 with its display text. Parameter classes include
  `DxParameter`, `LabelParameter`, `TransposeParameter`,
  `SwitchParameter`, `OpModeParameter`, `BreakpointParameter`,
  `TuneParameter`, `OpSwitchParameter` and `FloatParameter`. Set
  `ParameterSet.sysex_listener` to a callable to receive each
  parameter-change message, addressed to `ParameterSet.channel`.
- `fmvoice.fx` — `FilterFx`, the output stage: a DC blocker, gain and a
  four-pole resonant low-pass filter, bypassed when `ui_cutoff` is 1.0.
  Call `init(sample_rate)` before `process(samples)`, which returns a new
  list of samples.
- `fmvoice.state` — `PluginState`, a dataclass saved with `to_xml()` and
  restored with `PluginState.from_xml(text)`. Cartridge and program bytes
  are stored base64-encoded; tuning text and modulation settings are kept
  as plain strings.

## Installing

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Example

```python
from fmvoice.fx import FilterFx
from fmvoice.params import ParameterSet
from fmvoice.sysex import Cartridge, LoadStatus
from fmvoice.voice import Voice

cart = Cartridge()
status = cart.load_file("bank.syx")
if status is LoadStatus.OK:
    print(cart.program_names())

voice = Voice()
voice.load_program(cart, 0)
message = voice.set_dx_value(134, 4, channel=0)  # change the algorithm
dump = voice.program_sysex(channel=0)             # 163-byte single-voice dump

fx = FilterFx()
fx.init(44100)
params = ParameterSet(voice, fx)
params.find("ALGORITHM").host_value = 0.5
print(params.text(params.names().index("ALGORITHM")))

fx.ui_cutoff = 0.5
out = fx.process([0.0, 0.5, -0.5, 0.25])
```

## What it does not do

This package handles voice data, parameters, the output filter and the
saved state. It does not generate sound: there is no FM engine, no voice
allocation and no MIDI input or output. Messages from `set_dx_value`
and `program_sysex` are returned as bytes for the caller to send. There is
no user interface, no preferences file and no command-line tool. Tuning
files and modulation settings are stored in `PluginState` as text but not
interpreted.