from types import SimpleNamespace

import pytest

from fmvoice.params import (
    BreakpointParameter,
    DxParameter,
    FloatParameter,
    ParameterSet,
)
from fmvoice.voice import Voice


@pytest.fixture
def voice():
    return Voice()


@pytest.fixture
def fx():
    return SimpleNamespace(ui_cutoff=1.0, ui_reso=0.0, ui_gain=1.0)


@pytest.fixture
def params(voice, fx):
    return ParameterSet(voice, fx)


def _index(params, label):
    return params.names().index(label)


def test_parameter_count(params):
    assert len(params) == 155


def test_first_names(params):
    assert params.names()[:5] == [
        "Cutoff",
        "Resonance",
        "Output",
        "MASTER TUNE ADJ",
        "ALGORITHM",
    ]
    assert params.names()[-1] == "OP6 SWITCH"


def test_indexes_match_positions(params):
    assert [param.index for param in params] == list(range(len(params)))
    assert all(param.parent is params for param in params)


def test_names_are_unique(params):
    names = params.names()
    assert len(set(names)) == len(names)


def test_find_and_missing(params):
    assert params.find("FEEDBACK").label == "FEEDBACK"
    with pytest.raises(KeyError):
        params.find("NO SUCH")


def test_getitem_out_of_range(params):
    assert params[len(params) - 1].label == "OP6 SWITCH"
    with pytest.raises(IndexError):
        params[len(params)]


def test_float_parameter_round_trip(params, fx):
    index = _index(params, "Cutoff")
    params.set_host_value(index, 0.25)
    assert fx.ui_cutoff == 0.25
    assert params.host_value(index) == 0.25
    assert params.text(index) == "0.25"
    assert params.force_refresh_ui is True


def test_float_parameter_standalone():
    target = SimpleNamespace(level=0.5)
    param = FloatParameter("Level", target, "level")
    param.host_value = 0.75
    assert target.level == 0.75
    assert param.display() == "0.75"


def test_dx_parameter_extremes(params, voice):
    index = _index(params, "LFO SPEED")
    params.set_host_value(index, 1.0)
    assert voice.data[137] == 99
    assert params.host_value(index) == 1.0
    params.set_host_value(index, 0.0)
    assert voice.data[137] == 0
    assert params.text(index) == "0"


def test_dx_parameter_host_value_is_value_over_steps(params, voice):
    param = params.find("FEEDBACK")
    voice.data[135] = 3
    assert param.value == 3
    assert param.host_value == pytest.approx(3 / 7)


def test_algorithm_display_is_one_based(params, voice):
    param = params.find("ALGORITHM")
    param.value = 4
    assert voice.data[134] == 4
    assert param.display() == str(4 + 1)


def test_sysex_message_sent(params):
    sent = []
    params.sysex_listener = sent.append
    params.channel = 3
    params.set_host_value(_index(params, "LFO SPEED"), 1.0)
    assert len(sent) == 1
    message = sent[0]
    assert message[0] == 0xF0 and message[-1] == 0xF7
    assert message[1] == 0x43
    assert message[2] == 0x10 | 3
    assert message[3] == 1
    assert message[4] == 137 & 0x7F
    assert message[5] == 99


def test_unchanged_value_sends_nothing(params, voice):
    sent = []
    params.sysex_listener = sent.append
    param = params.find("LFO DELAY")
    param.value = voice.data[138]
    assert sent == []


def test_transpose_display(params, voice):
    param = params.find("TRANSPOSE")
    param.value = 24
    assert param.display() == "0"
    param.host_value = 0.0
    assert param.display() == "-24"
    assert voice.transpose_changed is True


def test_switch_display(params):
    param = params.find("OSC KEY SYNC")
    param.host_value = 1.0
    assert param.display() == "ON"
    param.host_value = 0.0
    assert param.display() == "OFF"


def test_op_mode_display(params):
    param = params.find("OP3 MODE")
    param.value = 1
    assert param.display() == "FIXED"
    param.value = 0
    assert param.display() == "RATIO"


def test_label_parameters(params):
    wave = params.find("LFO WAVE")
    wave.host_value = 1.0
    assert wave.display() == "S&HOLD"
    curve = params.find("OP2 L KEY SCALE")
    curve.value = 0
    assert curve.display() == "-LN"
    curve.value = 3
    assert curve.display() == "+LN"


def test_breakpoint_display():
    param = BreakpointParameter("BREAK POINT", 99)
    param.value = 39
    assert param.display() == "C3"


def test_detune_display(params, voice):
    param = params.find("OP4 OSC DETUNE")
    param.value = 7
    assert param.display() == "0"
    param.host_value = 0.0
    assert param.display() == "-7"


def test_operator_order(params, voice):
    assert params.find("OP1 OUTPUT LEVEL").value == voice.data[5 * 21 + 16]
    params.find("OP6 OUTPUT LEVEL").value = 42
    assert voice.data[16] == 42


def test_op_switch(params, voice):
    sent = []
    params.sysex_listener = sent.append
    param = params.find("OP1 SWITCH")
    assert param.host_value == 1.0
    assert param.display() == "OP1 SWITCH ON"
    param.host_value = 0.0
    assert voice.op_switch[5] == "0"
    assert voice.data[155] & (1 << 5) == 0
    assert param.display() == "OP1 SWITCH OFF"
    assert sent[-1][3] == 1
    assert sent[-1][4] == 155 & 0x7F
    assert sent[-1][5] == voice.data[155]
    param.host_value = 1.0
    assert voice.op_switch == "111111"


def test_tune_default_and_round_trip(params, voice):
    param = params.find("MASTER TUNE ADJ")
    assert param.host_value == 0.5
    assert param.display() == "0.0"
    param.host_value = 0.75
    assert voice.master_tune > 0
    assert param.host_value == pytest.approx(0.75, abs=1 / 0x4000)
    param.host_value = 0.5
    assert voice.master_tune == 0


def test_standalone_dx_parameter_keeps_value(voice):
    before = bytes(voice.data)
    param = DxParameter("LOOSE", 10)
    param.host_value = 0.5
    assert param.value == 5
    assert bytes(voice.data) == before


def test_offset_without_voice_rejected():
    with pytest.raises(ValueError):
        DxParameter("BROKEN", 10, 3)