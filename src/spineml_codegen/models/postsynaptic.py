"""Postsynaptic components: impulse decay and neuron input code."""

from __future__ import annotations

from typing import Dict, Mapping

from ..assembler import CodeStream
from ..entities import POSTSYNAPTIC
from ..errors import ConfigurationError, UnsupportedFeatureError
from ..handlers import (
    ConditionHandler,
    ImpulseHandler,
    ObjectHandlers,
    TimeDerivativeHandler,
    UnsupportedHandler,
)
from ..reader import HybridAutomaton, find_analogue_receive_port_names
from .base import SpineMLModel


class SpineMLPostsynapticModel(SpineMLModel):
    """Postsynaptic model translated into ``decay_code`` and ``apply_input_code``.

    Impulses arriving on an impulse receive port are read from the
    accumulated synaptic input and handled inside the decay code; the single
    analogue send port is added to the neuron's input current.
    """

    kind = POSTSYNAPTIC
    code_blocks = ("decay_code",)

    def _validate(self) -> None:
        send_ports = self.component.analogue_send_ports
        if not send_ports:
            raise ConfigurationError(f"{self.url}: postsynaptic component has no AnalogSendPort")
        if len(send_ports) > 1:
            raise UnsupportedFeatureError(
                f"{self.url}: postsynaptic components with more than one AnalogSendPort are not supported"
            )
        if len(self.component.impulse_receive_ports) > 1:
            raise UnsupportedFeatureError(
                f"{self.url}: postsynaptic components with more than one ImpulseReceivePort are not supported"
            )

    def _handlers(self, automaton: HybridAutomaton, streams: Mapping[str, CodeStream]) -> ObjectHandlers:
        decay_code = streams["decay_code"]
        return ObjectHandlers(
            condition=ConditionHandler(
                decay_code,
                automaton.multiple_regimes,
                url=self.url,
                regime_variable=self.options.regime_variable,
            ),
            event=UnsupportedHandler(self.kind, "OnEvent", self.url),
            impulse=ImpulseHandler(
                decay_code,
                automaton.multiple_regimes,
                input_variable=self.options.postsynaptic_input_variable,
                url=self.url,
                regime_variable=self.options.regime_variable,
            ),
            time_derivative=TimeDerivativeHandler(decay_code),
        )

    def _extra_code(self, automaton: HybridAutomaton) -> Dict[str, str]:
        port = self.component.analogue_send_ports[0]
        return {"apply_input_code": f"$({self.options.neuron_input_variable}) += {port};\n"}

    def _port_names(self) -> Dict[str, str]:
        ports = {port: self.options.postsynaptic_input_variable for port in self.component.impulse_receive_ports}
        renamed = find_analogue_receive_port_names(self.component, self.options.postsynaptic_port_suffix)
        ports.update(zip(self.component.analogue_receive_ports, renamed))
        return ports

    @property
    def decay_code(self) -> str:
        return self.code["decay_code"]

    @property
    def apply_input_code(self) -> str:
        return self.code["apply_input_code"]


__all__ = ["SpineMLPostsynapticModel"]
