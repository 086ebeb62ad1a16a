"""Host-automatable parameters mapped onto the voice data and the output filter."""

from __future__ import annotations

import abc
from collections.abc import Callable, Iterator, Sequence
from typing import Any, Optional

from fmvoice.voice import OP_SWITCH_OFFSET, Voice

LFO_WAVE_LABELS = ("TRIANGE", "SAW DOWN", "SAW UP", "SQUARE", "SINE", "S&HOLD")
KEY_SCALE_LABELS = ("-LN", "-EX", "+EX", "+LN")
BREAKPOINT_NAMES = ("A", "A#", "B", "C", "C#", "D", "D#", "E", "F", "F#", "G", "G#")


class Parameter(abc.ABC):
    """A named value the host sees in the range 0.0 to 1.0."""

    def __init__(self, label: str) -> None:
        self.label = label
        self.index = -1
        self.parent: Optional[ParameterSet] = None

    @property
    @abc.abstractmethod
    def host_value(self) -> float:
        """The value normalized to 0.0..1.0."""

    @host_value.setter
    @abc.abstractmethod
    def host_value(self, value: float) -> None:
        ...

    @abc.abstractmethod
    def display(self) -> str:
        """Text shown to the user for the current value."""

    @property
    def _channel(self) -> int:
        return self.parent.channel if self.parent is not None else 0

    def _emit(self, message: Optional[bytes]) -> None:
        if message is None or self.parent is None:
            return
        listener = self.parent.sysex_listener
        if listener is not None:
            listener(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.label!r})"


class FloatParameter(Parameter):
    """A parameter stored as a float attribute of another object."""

    def __init__(self, label: str, target: Any, attribute: str) -> None:
        super().__init__(label)
        self._target = target
        self._attribute = attribute

    @property
    def host_value(self) -> float:
        return float(getattr(self._target, self._attribute))

    @host_value.setter
    def host_value(self, value: float) -> None:
        setattr(self._target, self._attribute, float(value))

    def display(self) -> str:
        return str(getattr(self._target, self._attribute))


class DxParameter(Parameter):
    """A parameter stored as one byte of the unpacked program data.

    ``steps`` is the largest raw value; a negative ``offset`` keeps the value
    in the parameter itself instead of the voice.
    """

    def __init__(
        self,
        label: str,
        steps: int,
        offset: int = -1,
        voice: Optional[Voice] = None,
        display_offset: int = 0,
    ) -> None:
        super().__init__(label)
        if offset >= 0 and voice is None:
            raise ValueError("a parameter with an offset needs a voice")
        self.steps = steps
        self.offset = offset
        self.voice = voice
        self.display_offset = display_offset
        self._value = 0

    @property
    def value(self) -> int:
        """The raw program value."""
        if self.offset >= 0 and self.voice is not None:
            self._value = self.voice.data[self.offset]
        return self._value

    @value.setter
    def value(self, value: int) -> None:
        self._value = value
        if self.offset >= 0 and self.voice is not None:
            self._emit(self.voice.set_dx_value(self.offset, value, self._channel))

    @property
    def host_value(self) -> float:
        return self.value / self.steps

    @host_value.setter
    def host_value(self, value: float) -> None:
        self.value = round(value * self.steps)

    def display(self) -> str:
        return str(self.value + self.display_offset)


class LabelParameter(DxParameter):
    """A program value shown by name."""

    def __init__(
        self,
        label: str,
        steps: int,
        offset: int,
        voice: Optional[Voice],
        labels: Sequence[str],
    ) -> None:
        super().__init__(label, steps, offset, voice, 0)
        self.labels = tuple(labels)

    def display(self) -> str:
        value = self.value
        return self.labels[value] if 0 <= value < len(self.labels) else ""


class TransposeParameter(DxParameter):
    """Transposition in semitones around middle C (raw 24)."""

    def display(self) -> str:
        return str(self.value - 24)


class SwitchParameter(DxParameter):
    """An on/off program value."""

    def display(self) -> str:
        return "ON" if self.value else "OFF"


class OpModeParameter(DxParameter):
    """Operator frequency mode: ratio or fixed."""

    def display(self) -> str:
        return "FIXED" if self.value else "RATIO"


class BreakpointParameter(DxParameter):
    """Keyboard level-scaling break point shown as a note name."""

    def display(self) -> str:
        value = self.value
        return f"{BREAKPOINT_NAMES[value % 12]}{(value + 9) // 12 - 1}"


class TuneParameter(Parameter):
    """Master tuning of the voice, centred at 0.5."""

    def __init__(self, label: str, voice: Voice) -> None:
        super().__init__(label)
        self.voice = voice

    @property
    def host_value(self) -> float:
        tune = int(self.voice.master_tune / (1.0 / 12))
        tune = (tune >> 11) + 0x2000
        return tune / 0x4000

    @host_value.setter
    def host_value(self, value: float) -> None:
        tune = int(value * 0x4000 - 0x2000)
        self.voice.master_tune = float(tune << 11) * (1.0 / 12)

    def display(self) -> str:
        return str(self.host_value * 2 - 1)


class OpSwitchParameter(Parameter):
    """Turns one operator on or off; ``op_index`` is its position in ``op_switch``."""

    def __init__(self, label: str, voice: Voice, op_index: int) -> None:
        super().__init__(label)
        if not 0 <= op_index < len(voice.op_switch):
            raise IndexError(f"operator {op_index} outside the switch string")
        self.voice = voice
        self.op_index = op_index

    @property
    def is_on(self) -> bool:
        """Whether the operator is switched on."""
        return self.voice.op_switch[self.op_index] != "0"

    @property
    def host_value(self) -> float:
        return 1.0 if self.is_on else 0.0

    @host_value.setter
    def host_value(self, value: float) -> None:
        state = "0" if value == 0 else "1"
        switches = self.voice.op_switch
        self.voice.op_switch = (
            switches[: self.op_index] + state + switches[self.op_index + 1 :]
        )
        self._emit(self.voice.set_dx_value(OP_SWITCH_OFFSET, -1, self._channel))

    def display(self) -> str:
        return f"{self.label} {'ON' if self.is_on else 'OFF'}"


class ParameterSet:
    """The ordered list of parameters exposed to the host.

    ``fx`` must have the float attributes ``ui_cutoff``, ``ui_reso`` and
    ``ui_gain``. When ``sysex_listener`` is set it receives every
    parameter-change message, addressed to ``channel``.
    """

    def __init__(self, voice: Voice, fx: Any) -> None:
        self.voice = voice
        self.fx = fx
        self.channel = 0
        self.sysex_listener: Optional[Callable[[bytes], None]] = None
        self.force_refresh_ui = False
        self._params: list[Parameter] = list(self._build(voice, fx))
        for position, param in enumerate(self._params):
            param.index = position
            param.parent = self

    @staticmethod
    def _build(voice: Voice, fx: Any) -> Iterator[Parameter]:
        yield FloatParameter("Cutoff", fx, "ui_cutoff")
        yield FloatParameter("Resonance", fx, "ui_reso")
        yield FloatParameter("Output", fx, "ui_gain")
        yield TuneParameter("MASTER TUNE ADJ", voice)
        yield DxParameter("ALGORITHM", 31, 134, voice, 1)
        yield DxParameter("FEEDBACK", 7, 135, voice)
        yield SwitchParameter("OSC KEY SYNC", 1, 136, voice)
        yield DxParameter("LFO SPEED", 99, 137, voice)
        yield DxParameter("LFO DELAY", 99, 138, voice)
        yield DxParameter("LFO PM DEPTH", 99, 139, voice)
        yield DxParameter("LFO AM DEPTH", 99, 140, voice)
        yield SwitchParameter("LFO KEY SYNC", 1, 141, voice)
        yield LabelParameter("LFO WAVE", 5, 142, voice, LFO_WAVE_LABELS)
        yield TransposeParameter("TRANSPOSE", 48, 144, voice)
        yield DxParameter("P MODE SENS.", 7, 143, voice)
        for step in range(4):
            yield DxParameter(f"PITCH EG RATE {step + 1}", 99, 126 + step, voice)
        for step in range(4):
            yield DxParameter(f"PITCH EG LEVEL {step + 1}", 99, 130 + step, voice)

        for op in range(6):
            # operator 6 comes first in the program data
            base = (5 - op) * 21
            name = f"OP{op + 1}"
            for step in range(4):
                yield DxParameter(f"{name} EG RATE {step + 1}", 99, base + step, voice)
            for step in range(4):
                yield DxParameter(
                    f"{name} EG LEVEL {step + 1}", 99, base + step + 4, voice
                )
            yield DxParameter(f"{name} OUTPUT LEVEL", 99, base + 16, voice)
            yield OpModeParameter(f"{name} MODE", 1, base + 17, voice)
            yield DxParameter(f"{name} F COARSE", 31, base + 18, voice)
            yield DxParameter(f"{name} F FINE", 99, base + 19, voice)
            yield DxParameter(f"{name} OSC DETUNE", 14, base + 20, voice, -7)
            yield BreakpointParameter(f"{name} BREAK POINT", 99, base + 8, voice)
            yield DxParameter(f"{name} L SCALE DEPTH", 99, base + 9, voice)
            yield DxParameter(f"{name} R SCALE DEPTH", 99, base + 10, voice)
            yield LabelParameter(
                f"{name} L KEY SCALE", 3, base + 11, voice, KEY_SCALE_LABELS
            )
            yield LabelParameter(
                f"{name} R KEY SCALE", 3, base + 12, voice, KEY_SCALE_LABELS
            )
            yield DxParameter(f"{name} RATE SCALING", 7, base + 13, voice)
            yield DxParameter(f"{name} A MOD SENS.", 3, base + 14, voice)
            yield DxParameter(f"{name} KEY VELOCITY", 7, base + 15, voice)
            yield OpSwitchParameter(f"{name} SWITCH", voice, 5 - op)

    def __len__(self) -> int:
        return len(self._params)

    def __getitem__(self, index: int) -> Parameter:
        return self._params[index]

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._params)

    def names(self) -> list[str]:
        """Labels of all parameters, in host order."""
        return [param.label for param in self._params]

    def find(self, label: str) -> Parameter:
        """Return the parameter with ``label``; raises KeyError if there is none."""
        for param in self._params:
            if param.label == label:
                return param
        raise KeyError(label)

    def host_value(self, index: int) -> float:
        """The normalized value of parameter ``index``."""
        return self._params[index].host_value

    def set_host_value(self, index: int, value: float) -> None:
        """Set parameter ``index`` from a normalized host value."""
        param = self._params[index]
        self.force_refresh_ui = True
        param.host_value = value

    def text(self, index: int) -> str:
        """Display text of parameter ``index``."""
        return self._params[index].display()