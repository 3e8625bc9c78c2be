from __future__ import annotations

import pytest

from spineml_codegen.assembler import CodeStream, ThresholdStream
from spineml_codegen.entities import (
    EventOut,
    ImpulseOut,
    OnCondition,
    OnEvent,
    OnImpulse,
    StateAssignment,
    TimeDerivative,
)
from spineml_codegen.errors import ConfigurationError, UnsupportedFeatureError
from spineml_codegen.handlers import (
    ConditionHandler,
    EventHandler,
    ImpulseHandler,
    NullHandler,
    TimeDerivativeHandler,
    UnsupportedHandler,
)


def _flush(stream: CodeStream, multiple: bool = False, regime_id: int = 0) -> str:
    stream.on_regime_end(multiple, regime_id)
    return stream.getvalue()


def test_condition_handler_writes_assignments_and_switch() -> None:
    stream = CodeStream()
    threshold = ThresholdStream(True)
    handler = ConditionHandler(stream, True, threshold=threshold)
    node = OnCondition(
        target_regime="refractory",
        trigger="V > Vt",
        state_assignments=(StateAssignment("V", "Vr"),),
        event_outs=(EventOut("spike"),),
    )

    handler.on_object(node, 0, 1)

    assert _flush(stream, True, 0) == (
        "if(_regimeID == 0) {\n"
        "    if(V > Vt) {\n"
        "        V = Vr;\n"
        "        _regimeID = 1;\n"
        "    }\n"
        "}\n"
    )
    assert threshold.getvalue() == "(_regimeID == 0 && (V > Vt))"


def test_condition_handler_only_thresholds_spike_port() -> None:
    threshold = ThresholdStream(False)
    handler = ConditionHandler(CodeStream(), False, threshold=threshold, spike_port="spike")
    handler.on_object(OnCondition(target_regime="r", trigger="a > b", event_outs=(EventOut("other"),)), 0, 0)
    assert threshold.getvalue() == ""


def test_single_regime_transition_must_target_itself() -> None:
    handler = ConditionHandler(CodeStream(), False, url="probe.xml")
    node = OnCondition(target_regime="elsewhere", trigger="x > 0")
    with pytest.raises(ConfigurationError, match="single-regime model which doesn't target itself"):
        handler.on_object(node, 0, 1)


def test_single_regime_transition_has_no_regime_assignment() -> None:
    stream = CodeStream()
    ConditionHandler(stream, False).on_object(
        OnCondition(target_regime="r", trigger="x > 0", state_assignments=(StateAssignment("x", "0"),)),
        0,
        0,
    )
    assert _flush(stream) == "if(x > 0) {\n    x = 0;\n}\n"


def test_event_handler_forwards_impulses_unindented() -> None:
    stream = CodeStream()
    node = OnEvent(
        target_regime="default",
        src_port="spike",
        state_assignments=(StateAssignment("last", "t"),),
        impulse_outs=(ImpulseOut("w"),),
    )
    EventHandler(stream, False).on_object(node, 0, 0)
    assert _flush(stream) == "last = t;\n$(addtoinSyn) = w;\n$(updatelinsyn);\n"


def test_impulse_handler_consumes_input() -> None:
    stream = CodeStream()
    node = OnImpulse(target_regime="r", src_port="in", state_assignments=(StateAssignment("g", "g + in"),))
    ImpulseHandler(stream, False).on_object(node, 0, 0)
    assert _flush(stream) == "if($(inSyn) != 0) {\n    g = g + in;\n    $(inSyn) = 0;\n}\n"


def test_time_derivative_handler_writes_euler_step() -> None:
    stream = CodeStream()
    TimeDerivativeHandler(stream).on_object(TimeDerivative("v", "(a - v) / tau"), 2, 2)
    assert _flush(stream) == "v += DT * ((a - v) / tau);\n"


def test_unsupported_handler_raises() -> None:
    handler = UnsupportedHandler("neuron_body", "OnImpulse", "probe.xml")
    with pytest.raises(UnsupportedFeatureError, match="OnImpulse nodes are not supported in neuron_body"):
        handler.on_object(OnImpulse(target_regime="r"), 0, 0)


def test_null_handler_emits_nothing() -> None:
    assert NullHandler().on_object(OnEvent(target_regime="r"), 0, 0) is None
