"""DX7 system-exclusive data: checksums, single-voice dumps and 32-voice cartridges."""

from __future__ import annotations

import enum
from collections.abc import Sequence
from os import PathLike
from pathlib import Path
from typing import Union

VOICE_HEADER = bytes((0xF0, 0x43, 0x00, 0x09, 0x20, 0x00))
SINGLE_VOICE_HEADER = bytes((0xF0, 0x43, 0x00, 0x00, 0x01, 0x1B))
SYSEX_END = 0xF7
SYSEX_START = 0xF0
SYSEX_SIZE = 4104
VOICE_DATA_SIZE = 4096
PACKED_PROGRAM_SIZE = 128
PROGRAM_SIZE = 155
PROGRAM_COUNT = 32
NAME_LENGTH = 10
MAX_READ = 65535

_NAME_SUBSTITUTIONS = {92: "Y", 126: ">", 127: "<"}

PathType = Union[str, "PathLike[str]"]


class LoadStatus(enum.IntEnum):
    """Outcome of reading sysex data into a cartridge."""

    OK = 0
    BAD_CHECKSUM = 1
    NOT_SYSEX = 2


def sysex_checksum(data: Sequence[int]) -> int:
    """Return the 7-bit two's-complement checksum of ``data``."""
    return -sum(data) & 0x7F


def export_program(program: Sequence[int]) -> bytes:
    """Wrap an unpacked 155-byte program into a 163-byte single-voice dump."""
    if len(program) < PROGRAM_SIZE:
        raise ValueError(f"a program needs {PROGRAM_SIZE} bytes, got {len(program)}")
    body = bytes(value & 0xFF for value in program[:PROGRAM_SIZE])
    return SINGLE_VOICE_HEADER + body + bytes((sysex_checksum(body), SYSEX_END))


def normalize_program_name(raw: Sequence[int]) -> str:
    """Turn the 10 raw name bytes of a program into printable text."""
    chars = []
    for value in raw[:NAME_LENGTH]:
        code = value & 0x7F
        if code in _NAME_SUBSTITUTIONS:
            chars.append(_NAME_SUBSTITUTIONS[code])
        elif code < 32:
            chars.append(" ")
        else:
            chars.append(chr(code))
    return "".join(chars)


def _normalize_parameter(value: int, maximum: int) -> int:
    """Bring an out-of-range parameter from corrupted data back into range."""
    if 0 <= value <= maximum:
        return value
    return int(abs(value) / 255 * maximum)


def _check_index(index: int) -> None:
    if not 0 <= index < PROGRAM_COUNT:
        raise IndexError(f"program index {index} outside 0..{PROGRAM_COUNT - 1}")


class Cartridge:
    """A bank of 32 packed DX7 voices held as a 4104-byte bulk dump."""

    def __init__(self) -> None:
        self._voice = bytearray(SYSEX_SIZE)

    def copy(self) -> "Cartridge":
        """Return an independent copy of this cartridge."""
        other = Cartridge()
        other._voice[:] = self._voice
        return other

    def _set_header(self) -> None:
        self._voice[:6] = VOICE_HEADER
        self._voice[4102] = sysex_checksum(self._voice[6:4102])
        self._voice[4103] = SYSEX_END

    def load(self, data: bytes) -> LoadStatus:
        """Read a sysex stream, or raw bytes, into the cartridge."""
        data = bytes(data)
        if len(data) < VOICE_DATA_SIZE:
            self._voice[6 : 6 + len(data)] = data
            return LoadStatus.NOT_SYSEX
        if data[0] != SYSEX_START:
            self._voice[6:4102] = data[:VOICE_DATA_SIZE]
            return LoadStatus.NOT_SYSEX

        data = data[:MAX_READ]
        if len(data) >= SYSEX_SIZE and data.find(SYSEX_END) == SYSEX_SIZE - 1:
            self._voice[:] = data[:SYSEX_SIZE]
            if sysex_checksum(data[6:4102]) == data[4102]:
                return LoadStatus.OK
            return LoadStatus.BAD_CHECKSUM

        self._voice[6:4102] = data[:VOICE_DATA_SIZE]
        return LoadStatus.NOT_SYSEX

    def load_file(self, path: PathType) -> LoadStatus:
        """Read a sysex file; raises OSError if unreadable and ValueError if empty."""
        with open(path, "rb") as stream:
            data = stream.read(MAX_READ)
        if not data:
            raise ValueError(f"{path}: file is empty")
        return self.load(data)

    def save_voice_file(self, path: PathType) -> None:
        """Write the cartridge to ``path``.

        A missing, short or non-sysex file is replaced by the cartridge. In a
        longer sysex file whose first message is not a voice bulk dump, the
        first 4104 bytes are overwritten and the rest kept; if it is a voice
        bulk dump, the file is replaced by the cartridge alone.
        """
        self._set_header()
        target = Path(path)
        if not target.is_file():
            target.write_bytes(self._voice)
            return

        with open(target, "rb") as stream:
            existing = bytearray(stream.read(MAX_READ))

        if len(existing) <= SYSEX_SIZE or existing[0] != SYSEX_START:
            target.write_bytes(self._voice)
        elif existing[:6] != VOICE_HEADER:
            existing[:SYSEX_SIZE] = self._voice
            target.write_bytes(existing)
        elif SYSEX_END in existing:
            target.write_bytes(self._voice)
        else:
            raise ValueError(f"{target}: unterminated sysex message")

    def voice_sysex(self) -> bytes:
        """Return the complete bulk dump with header, checksum and end byte."""
        self._set_header()
        return bytes(self._voice)

    def raw_voice(self) -> bytes:
        """Return the 4096 bytes of packed voice data."""
        return bytes(self._voice[6:4102])

    def program_names(self) -> list[str]:
        """Return the normalized names of the 32 programs."""
        raw = self.raw_voice()
        return [
            normalize_program_name(raw[start + 118 : start + 128])
            for start in range(0, VOICE_DATA_SIZE, PACKED_PROGRAM_SIZE)
        ]

    def pack_program(
        self, program: Sequence[int], index: int, name: str, op_switch: str
    ) -> None:
        """Pack an unpacked program into slot ``index`` under ``name``.

        Operators switched off in ``op_switch`` ('0' per operator) are stored
        with an output level of zero.
        """
        _check_index(index)
        src = [value & 0xFF for value in program]
        base = 6 + index * PACKED_PROGRAM_SIZE
        bulk = bytearray(PACKED_PROGRAM_SIZE)

        for op in range(6):
            pp, up = op * 17, op * 21
            bulk[pp : pp + 11] = bytes(src[up : up + 11])
            bulk[pp + 11] = (src[up + 11] & 0x03) | ((src[up + 12] & 0x03) << 2)
            bulk[pp + 12] = ((src[up + 13] & 0x07) | ((src[up + 20] & 0x0F) << 3)) & 0xFF
            bulk[pp + 13] = (src[up + 14] & 0x03) | ((src[up + 15] & 0x07) << 2)
            bulk[pp + 14] = 0 if op_switch[op] == "0" else src[up + 16]
            bulk[pp + 15] = ((src[up + 17] & 0x01) | ((src[up + 18] & 0x1F) << 1)) & 0xFF
            bulk[pp + 16] = src[up + 19]

        bulk[102:111] = bytes(src[126:135])
        bulk[111] = (src[135] & 0x07) | ((src[136] & 0x01) << 3)
        bulk[112:116] = bytes(src[137:141])
        bulk[116] = (src[141] & 0x01) | ((src[142] & 0x07) << 1) | ((src[143] & 0x07) << 4)
        bulk[117] = src[144]

        ended = False
        for position in range(NAME_LENGTH):
            code = ord(name[position]) if position < len(name) else 0
            if code == 0:
                ended = True
            if ended or code < 32 or code > 127:
                code = 32
            bulk[118 + position] = code

        self._voice[base : base + PACKED_PROGRAM_SIZE] = bulk

    def unpack_program(self, index: int) -> bytes:
        """Return the 155-byte unpacked form of program ``index``."""
        _check_index(index)
        start = 6 + index * PACKED_PROGRAM_SIZE
        bulk = self._voice[start : start + PACKED_PROGRAM_SIZE]
        out = bytearray(PROGRAM_SIZE)

        for op in range(6):
            pp, up = op * 17, op * 21
            out[up : up + 11] = bulk[pp : pp + 11]
            curves = bulk[pp + 11] & 0x0F
            out[up + 11] = curves & 3
            out[up + 12] = (curves >> 2) & 3
            detune_rs = bulk[pp + 12] & 0x7F
            out[up + 13] = detune_rs & 7
            kvs_ams = bulk[pp + 13] & 0x1F
            out[up + 14] = kvs_ams & 3
            out[up + 15] = (kvs_ams >> 2) & 7
            out[up + 16] = bulk[pp + 14] & 0x7F
            coarse_mode = bulk[pp + 15] & 0x3F
            out[up + 17] = coarse_mode & 1
            out[up + 18] = (coarse_mode >> 1) & 0x1F
            out[up + 19] = bulk[pp + 16] & 0x7F
            out[up + 20] = (detune_rs >> 3) & 0x7F

        for offset in range(8):
            out[126 + offset] = _normalize_parameter(bulk[102 + offset] & 0x7F, 99)
        out[134] = _normalize_parameter(bulk[110] & 0x1F, 31)

        sync_feedback = bulk[111] & 0x0F
        out[135] = sync_feedback & 7
        out[136] = sync_feedback >> 3
        for offset in range(4):
            out[137 + offset] = bulk[112 + offset] & 0x7F
        lfo = bulk[116] & 0x7F
        out[141] = lfo & 1
        out[142] = (lfo >> 1) & 7
        out[143] = lfo >> 4
        out[144] = bulk[117] & 0x7F
        for offset in range(NAME_LENGTH):
            out[145 + offset] = bulk[118 + offset] & 0x7F

        return bytes(out)