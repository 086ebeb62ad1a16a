"""DX7-style FM voice data: sysex cartridges, voice editing, parameters, output filter and state."""

__version__ = "0.1.0"
__all__ = ["sysex", "voice", "params", "fx", "state"]