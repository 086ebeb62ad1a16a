"""Saving and restoring the plugin state as an XML document."""

from __future__ import annotations

import base64
import binascii
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

ROOT_TAG = "dexedState"
BLOB_TAG = "dexedBlob"
TUNING_TAG = "dexedTuning"
MIDI_CC_TAG = "midiCC"
DEFAULT_OP_SWITCH = "111111"
PROGRAM_BYTES = 161
_BINARY_PREFIX = "base64:"
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _int_attr(element: ET.Element, name: str, default: int) -> int:
    raw = element.get(name)
    if raw is None:
        return default
    match = _LEADING_INT.match(raw)
    return int(match.group(1)) if match else 0


def _float_attr(element: ET.Element, name: str, default: float = 0.0) -> float:
    raw = element.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return 0.0


def _encode(data: bytes) -> str:
    return _BINARY_PREFIX + base64.b64encode(data).decode("ascii")


def _decode(text: Optional[str]) -> Optional[bytes]:
    if not text or not text.startswith(_BINARY_PREFIX):
        return None
    try:
        return base64.b64decode(text[len(_BINARY_PREFIX):], validate=True)
    except (binascii.Error, ValueError):
        return None


def _child_text(parent: ET.Element, tag: str) -> str:
    child = parent.find(tag)
    if child is None or not child.text:
        return ""
    return child.text if len(child.text) > 1 else ""


@dataclass
class PluginState:
    """Everything the host stores for one plugin instance.

    ``sysex`` is the 4104-byte cartridge dump and ``program`` the 161 bytes
    of the voice being edited; both are None when the state carried no
    voice data. ``midi_cc`` maps controller numbers to parameter labels.
    The modulation configurations are kept as opaque strings.
    """

    cutoff: float = 1.0
    reso: float = 0.0
    gain: float = 1.0
    current_program: int = 0
    mono_mode: bool = False
    engine_type: int = 1
    master_tune: float = 0.0
    op_switch: str = DEFAULT_OP_SWITCH
    transpose12_as_scale: bool = True
    mpe_enabled: bool = False
    mpe_pitch_bend_range: int = 24
    wheel_mod: str = ""
    foot_mod: str = ""
    breath_mod: str = ""
    aftertouch_mod: str = ""
    scl_data: str = ""
    kbm_data: str = ""
    active_file_cartridge: Optional[str] = None
    sysex: Optional[bytes] = None
    program: Optional[bytes] = None
    midi_cc: dict[int, str] = field(default_factory=dict)

    def to_xml(self) -> str:
        """Serialize the state to an XML document."""
        root = ET.Element(ROOT_TAG)
        blob = ET.SubElement(root, BLOB_TAG)

        root.set("cutoff", repr(float(self.cutoff)))
        root.set("reso", repr(float(self.reso)))
        root.set("gain", repr(float(self.gain)))
        root.set("currentProgram", str(int(self.current_program)))
        root.set("monoMode", "1" if self.mono_mode else "0")
        root.set("engineType", str(int(self.engine_type)))
        root.set("masterTune", repr(float(self.master_tune)))
        root.set("opSwitch", self.op_switch)
        root.set("transpose12AsScale", "1" if self.transpose12_as_scale else "0")
        root.set("mpeEnabled", "1" if self.mpe_enabled else "0")
        root.set("mpePitchBendRange", str(int(self.mpe_pitch_bend_range)))
        root.set("wheelMod", self.wheel_mod)
        root.set("footMod", self.foot_mod)
        root.set("breathMod", self.breath_mod)
        root.set("aftertouchMod", self.aftertouch_mod)

        if len(self.scl_data) > 1 or len(self.kbm_data) > 1:
            tuning = ET.SubElement(root, TUNING_TAG)
            ET.SubElement(tuning, "scl").text = self.scl_data
            ET.SubElement(tuning, "kbm").text = self.kbm_data

        if self.active_file_cartridge and Path(self.active_file_cartridge).exists():
            root.set("activeFileCartridge", str(self.active_file_cartridge))

        if self.sysex is not None:
            blob.set("sysex", _encode(self.sysex))
        if self.program is not None:
            blob.set("program", _encode(self.program[:PROGRAM_BYTES]))

        cc_parent = ET.SubElement(root, MIDI_CC_TAG)
        for cc, target in self.midi_cc.items():
            mapping = ET.SubElement(cc_parent, "mapping")
            mapping.set("cc", str(cc))
            mapping.set("target", target)

        return ET.tostring(root, encoding="unicode")

    @classmethod
    def from_xml(cls, text: str) -> "PluginState":
        """Read a state document; raises ValueError if it is not XML."""
        try:
            root = ET.fromstring(text)
        except ET.ParseError as exc:
            raise ValueError(f"unknown state format: {exc}") from exc

        op_switch = root.get("opSwitch", "")
        cartridge = root.get("activeFileCartridge")
        state = cls(
            cutoff=_float_attr(root, "cutoff"),
            reso=_float_attr(root, "reso"),
            gain=_float_attr(root, "gain"),
            current_program=_int_attr(root, "currentProgram", 0),
            op_switch=op_switch if len(op_switch) == 6 else DEFAULT_OP_SWITCH,
            wheel_mod=root.get("wheelMod", ""),
            foot_mod=root.get("footMod", ""),
            breath_mod=root.get("breathMod", ""),
            aftertouch_mod=root.get("aftertouchMod", ""),
            engine_type=_int_attr(root, "engineType", 1),
            mono_mode=_int_attr(root, "monoMode", 0) != 0,
            master_tune=_int_attr(root, "masterTune", 0),
            transpose12_as_scale=_int_attr(root, "transpose12AsScale", 1) != 0,
            mpe_pitch_bend_range=_int_attr(root, "mpePitchBendRange", 24),
            mpe_enabled=_int_attr(root, "mpeEnabled", 0) != 0,
            active_file_cartridge=(
                cartridge if cartridge and Path(cartridge).exists() else None
            ),
        )

        tuning = root.find(TUNING_TAG)
        if tuning is not None:
            state.scl_data = _child_text(tuning, "scl")
            state.kbm_data = _child_text(tuning, "kbm")

        blob = root.find(BLOB_TAG)
        if blob is None:
            return state
        sysex = _decode(blob.get("sysex"))
        program = _decode(blob.get("program"))
        if sysex is None or program is None:
            return state
        if len(program) < PROGRAM_BYTES:
            raise ValueError(
                f"program blob holds {len(program)} bytes, needs {PROGRAM_BYTES}"
            )
        state.sysex = sysex
        state.program = program[:PROGRAM_BYTES]

        cc_parent = root.find(MIDI_CC_TAG)
        if cc_parent is not None:
            for mapping in cc_parent:
                cc = _int_attr(mapping, "cc", -1)
                target = mapping.get("target", "")
                if target and cc != -1:
                    state.midi_cc[cc] = target
        return state