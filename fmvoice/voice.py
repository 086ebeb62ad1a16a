"""The voice being edited: unpacked program data, operator switches and clipboard."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from fmvoice.sysex import (
    NAME_LENGTH,
    PROGRAM_COUNT,
    PROGRAM_SIZE,
    Cartridge,
    export_program,
    normalize_program_name,
    sysex_checksum,
)

VOICE_DATA_SIZE = 161
OP_SWITCH_OFFSET = 155
TRANSPOSE_OFFSET = 144
OPERATOR_COUNT = 6
OPERATOR_SIZE = 21
ENVELOPE_SIZE = 8
ALL_OPERATORS_ON = 0x3F

INIT_VOICE = bytes(
    (
        99, 99, 99, 99, 99, 99, 99, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1, 0, 7,
        99, 99, 99, 99, 99, 99, 99, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1, 0, 7,
        99, 99, 99, 99, 99, 99, 99, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1, 0, 7,
        99, 99, 99, 99, 99, 99, 99, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1, 0, 7,
        99, 99, 99, 99, 99, 99, 99, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1, 0, 7,
        99, 99, 99, 99, 99, 99, 99, 0, 0, 0, 0, 0, 0, 0, 0, 0, 99, 0, 1, 0, 7,
        99, 99, 99, 99, 50, 50, 50, 50, 0, 0, 1, 35, 0, 0, 0, 1, 0, 3, 24,
        73, 78, 73, 84, 32, 86, 79, 73, 67, 69,
    )
)


def _check_operator(op: int) -> None:
    if not 0 <= op < OPERATOR_COUNT:
        raise IndexError(f"operator {op} outside 0..{OPERATOR_COUNT - 1}")


def _check_channel(channel: int) -> None:
    if not 0 <= channel < 16:
        raise ValueError(f"midi channel {channel} outside 0..15")


class Voice:
    """An unpacked DX7 program together with its operator on/off switches.

    ``data`` holds the 155 unpacked program bytes followed by the packed
    operator switch byte at offset 155. ``op_switch`` has one character per
    operator, in sysex order, '1' for on and '0' for off.
    """

    def __init__(self) -> None:
        self.data = bytearray(VOICE_DATA_SIZE)
        self.op_switch = "111111"
        self.master_tune = 0.0
        self.current_program = 0
        self.refresh_voice = False
        self.transpose_changed = False
        self._clipboard: Optional[bytes] = None
        self._clipboard_op = -1
        self.reset_to_init()

    @property
    def name(self) -> str:
        """The printable name stored in the program data."""
        return normalize_program_name(self.data[145:155])

    def reset_to_init(self) -> None:
        """Replace the program with the initial voice and switch all operators on."""
        self.data[:PROGRAM_SIZE] = INIT_VOICE
        self.unpack_op_switch(ALL_OPERATORS_ON)
        self.refresh_voice = True

    def pack_op_switch(self) -> int:
        """Store the operator switches as a bit field at offset 155 and return it."""
        value = sum(
            1 << position
            for position, state in enumerate(self.op_switch)
            if state == "1"
        )
        self.data[OP_SWITCH_OFFSET] = value
        return value

    def unpack_op_switch(self, value: int) -> None:
        """Set the operator switches from a 6-bit field."""
        self.op_switch = "".join(
            str((value >> position) & 1) for position in range(OPERATOR_COUNT)
        )

    def load_from_sysex(self, raw: Sequence[int]) -> bool:
        """Load 155 program bytes; return whether the trailing checksum matches.

        A missing or wrong checksum is normal for data taken from a cartridge,
        so the program is loaded either way.
        """
        if len(raw) < PROGRAM_SIZE:
            raise ValueError(f"a program needs {PROGRAM_SIZE} bytes, got {len(raw)}")
        body = bytes(value & 0xFF for value in raw[:PROGRAM_SIZE])
        self.data[:PROGRAM_SIZE] = body
        self.unpack_op_switch(ALL_OPERATORS_ON)
        self.refresh_voice = True
        return len(raw) > PROGRAM_SIZE and sysex_checksum(body) == raw[PROGRAM_SIZE]

    def load_program(self, cartridge: Cartridge, index: int) -> None:
        """Unpack program ``index`` of ``cartridge`` into this voice."""
        index = min(index, PROGRAM_COUNT - 1)
        self.data[:PROGRAM_SIZE] = cartridge.unpack_program(index)
        self.unpack_op_switch(ALL_OPERATORS_ON)
        self.current_program = index
        self.refresh_voice = True

    def copy_to_clipboard(self, source_op: int) -> None:
        """Remember the whole voice and which operator was copied."""
        _check_operator(source_op)
        self._clipboard = bytes(self.data)
        self._clipboard_op = source_op

    def _paste(self, dest_op: int, length: int) -> None:
        _check_operator(dest_op)
        if self._clipboard is None:
            raise LookupError("the clipboard is empty")
        src = self._clipboard_op * OPERATOR_SIZE
        dst = dest_op * OPERATOR_SIZE
        self.data[dst : dst + length] = self._clipboard[src : src + length]
        self.refresh_voice = True

    def paste_op_from_clipboard(self, dest_op: int) -> None:
        """Copy every parameter of the clipboard operator onto ``dest_op``."""
        self._paste(dest_op, OPERATOR_SIZE)

    def paste_env_from_clipboard(self, dest_op: int) -> None:
        """Copy the envelope rates and levels of the clipboard operator onto ``dest_op``."""
        self._paste(dest_op, ENVELOPE_SIZE)

    def has_clipboard_content(self) -> bool:
        """Whether an operator has been copied."""
        return self._clipboard_op != -1

    def set_dx_value(self, offset: int, value: int, channel: int = 0) -> Optional[bytes]:
        """Change one program byte and return the parameter-change message for it.

        Returns None when the offset is negative or the value is unchanged.
        Offset 155 repacks the operator switches and ignores ``value``.
        """
        if offset < 0:
            return None
        _check_channel(channel)
        if offset == OP_SWITCH_OFFSET:
            value = self.pack_op_switch()
        elif offset >= OP_SWITCH_OFFSET:
            raise IndexError(f"offset {offset} outside the program data")
        elif self.data[offset] != value:
            self.data[offset] = value & 0xFF
        else:
            return None

        self.refresh_voice = True
        if offset == TRANSPOSE_OFFSET:
            self.transpose_changed = True

        return bytes(
            (
                0xF0,
                0x43,
                0x10 | channel,
                1 if offset > 127 else 0,
                offset & 0x7F,
                value & 0xFF,
                0xF7,
            )
        )

    def program_sysex(self, channel: int = 0) -> bytes:
        """Return the single-voice dump of this program for ``channel``."""
        _check_channel(channel)
        self.pack_op_switch()
        raw = bytearray(export_program(self.data))
        raw[2] |= channel
        return bytes(raw)

    def store_to_cartridge(self, cartridge: Cartridge, index: int, name: str) -> None:
        """Pack this voice into slot ``index`` of ``cartridge`` under ``name``."""
        cartridge.pack_program(self.data, index, name[:NAME_LENGTH], self.op_switch)