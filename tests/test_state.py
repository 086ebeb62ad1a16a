import xml.etree.ElementTree as ET

import pytest

from fmvoice.state import PluginState
from fmvoice.sysex import Cartridge
from fmvoice.voice import Voice


def _voice_state(**changes):
    voice = Voice()
    voice.pack_op_switch()
    state = PluginState(
        sysex=Cartridge().voice_sysex(),
        program=bytes(voice.data),
        **changes,
    )
    return state, voice


def test_default_round_trip():
    state = PluginState()
    assert PluginState.from_xml(state.to_xml()) == state


def test_full_round_trip():
    state, _ = _voice_state(
        cutoff=0.25,
        reso=0.75,
        gain=0.5,
        current_program=7,
        mono_mode=True,
        engine_type=2,
        master_tune=-300.0,
        op_switch="101010",
        transpose12_as_scale=False,
        mpe_enabled=True,
        mpe_pitch_bend_range=48,
        wheel_mod="wheel",
        foot_mod="foot",
        breath_mod="breath",
        aftertouch_mod="at",
        scl_data="! scale\nline",
        kbm_data="! map\nline",
        midi_cc={1: "ALGORITHM", 74: "Cutoff"},
    )
    assert PluginState.from_xml(state.to_xml()) == state


def test_document_structure():
    state, _ = _voice_state()
    root = ET.fromstring(state.to_xml())
    assert root.tag == "dexedState"
    assert root.find("dexedBlob") is not None
    assert root.get("opSwitch") == "111111"


def test_program_and_cartridge_survive():
    state, voice = _voice_state()
    loaded = PluginState.from_xml(state.to_xml())
    cart = Cartridge()
    cart.load(loaded.sysex)
    assert cart.voice_sysex() == state.sysex
    assert loaded.program == bytes(voice.data)
    assert loaded.program[145:155] == b"INIT VOICE"


def test_missing_attributes_take_defaults():
    state = PluginState.from_xml("<dexedState/>")
    assert state.engine_type == 1
    assert state.mpe_pitch_bend_range == 24
    assert state.transpose12_as_scale is True
    assert state.mpe_enabled is False
    assert state.op_switch == "111111"
    assert state.sysex is None and state.program is None


@pytest.mark.parametrize("value", ["", "10101", "1010101"])
def test_bad_op_switch_falls_back(value):
    state = PluginState.from_xml(f'<dexedState opSwitch="{value}"/>')
    assert state.op_switch == "111111"


def test_master_tune_read_as_integer():
    state = PluginState.from_xml('<dexedState masterTune="12.7"/>')
    assert state.master_tune == 12


def test_short_tuning_is_not_written():
    state = PluginState(scl_data="x", kbm_data="")
    root = ET.fromstring(state.to_xml())
    assert root.find("dexedTuning") is None
    assert PluginState.from_xml(state.to_xml()).scl_data == ""


def test_invalid_xml_raises():
    with pytest.raises(ValueError):
        PluginState.from_xml("not xml at all <")


def test_short_program_blob_raises():
    state, _ = _voice_state()
    state.program = bytes(10)
    with pytest.raises(ValueError):
        PluginState.from_xml(state.to_xml())


def test_midi_cc_without_blob_is_ignored():
    text = (
        '<dexedState><midiCC><mapping cc="3" target="ALGORITHM"/></midiCC>'
        "</dexedState>"
    )
    assert PluginState.from_xml(text).midi_cc == {}


def test_incomplete_midi_cc_mappings_dropped():
    state, _ = _voice_state(midi_cc={5: "FEEDBACK"})
    root = ET.fromstring(state.to_xml())
    cc_parent = root.find("midiCC")
    ET.SubElement(cc_parent, "mapping", {"cc": "9", "target": ""})
    ET.SubElement(cc_parent, "mapping", {"target": "LFO SPEED"})
    loaded = PluginState.from_xml(ET.tostring(root, encoding="unicode"))
    assert loaded.midi_cc == {5: "FEEDBACK"}


def test_active_cartridge_kept_only_if_present(tmp_path):
    existing = tmp_path / "bank.syx"
    existing.write_bytes(b"\xf0\xf7")
    kept = PluginState(active_file_cartridge=str(existing))
    assert PluginState.from_xml(kept.to_xml()).active_file_cartridge == str(existing)

    missing = PluginState(active_file_cartridge=str(tmp_path / "gone.syx"))
    assert PluginState.from_xml(missing.to_xml()).active_file_cartridge is None