"""Core dataclasses describing a SpineML component class."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


NEURON_BODY = "neuron_body"
POSTSYNAPTIC = "postsynaptic"
WEIGHT_UPDATE = "weight_update"
COMPONENT_KINDS = (NEURON_BODY, POSTSYNAPTIC, WEIGHT_UPDATE)


@dataclass(frozen=True)
class StateAssignment:
    variable: str
    expression: str

    def as_statement(self) -> str:
        return f"{self.variable} = {self.expression};"


@dataclass(frozen=True)
class EventOut:
    port: str


@dataclass(frozen=True)
class ImpulseOut:
    port: str


@dataclass(frozen=True)
class OnCondition:
    """Internal transition fired when ``trigger`` evaluates true."""

    target_regime: str
    trigger: str
    state_assignments: Tuple[StateAssignment, ...] = ()
    event_outs: Tuple[EventOut, ...] = ()
    impulse_outs: Tuple[ImpulseOut, ...] = ()

    def emits_event(self, port: str) -> bool:
        return any(out.port == port for out in self.event_outs)


@dataclass(frozen=True)
class OnEvent:
    """Transition fired by an inbound spike-like event on ``src_port``."""

    target_regime: str
    src_port: str = ""
    state_assignments: Tuple[StateAssignment, ...] = ()
    event_outs: Tuple[EventOut, ...] = ()
    impulse_outs: Tuple[ImpulseOut, ...] = ()


@dataclass(frozen=True)
class OnImpulse:
    """Transition fired by an inbound weighted impulse on ``src_port``."""

    target_regime: str
    src_port: str = ""
    state_assignments: Tuple[StateAssignment, ...] = ()
    event_outs: Tuple[EventOut, ...] = ()
    impulse_outs: Tuple[ImpulseOut, ...] = ()


@dataclass(frozen=True)
class TimeDerivative:
    variable: str
    expression: str


@dataclass(frozen=True)
class Regime:
    name: str
    on_conditions: Tuple[OnCondition, ...] = ()
    on_events: Tuple[OnEvent, ...] = ()
    on_impulses: Tuple[OnImpulse, ...] = ()
    time_derivatives: Tuple[TimeDerivative, ...] = ()

    def transitions(self):
        yield from self.on_conditions
        yield from self.on_events
        yield from self.on_impulses


@dataclass(frozen=True)
class Dynamics:
    regimes: Tuple[Regime, ...] = ()
    state_variables: Tuple[str, ...] = ()
    initial_regime: Optional[str] = None


@dataclass(frozen=True)
class ComponentClass:
    """Immutable representation of a SpineML ``ComponentClass`` node."""

    name: str
    kind: str
    dynamics: Dynamics
    url: str = "<memory>"
    parameters: Tuple[str, ...] = ()
    analogue_receive_ports: Tuple[str, ...] = ()
    analogue_send_ports: Tuple[str, ...] = ()
    analogue_reduce_ports: Tuple[str, ...] = ()
    event_send_ports: Tuple[str, ...] = ()
    event_receive_ports: Tuple[str, ...] = ()
    impulse_send_ports: Tuple[str, ...] = ()
    impulse_receive_ports: Tuple[str, ...] = ()
    provenance: Dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    @property
    def regimes(self) -> Tuple[Regime, ...]:
        return self.dynamics.regimes

    @property
    def state_variables(self) -> Tuple[str, ...]:
        return self.dynamics.state_variables


__all__ = [
    "COMPONENT_KINDS",
    "NEURON_BODY",
    "POSTSYNAPTIC",
    "WEIGHT_UPDATE",
    "ComponentClass",
    "Dynamics",
    "EventOut",
    "ImpulseOut",
    "OnCondition",
    "OnEvent",
    "OnImpulse",
    "Regime",
    "StateAssignment",
    "TimeDerivative",
]
