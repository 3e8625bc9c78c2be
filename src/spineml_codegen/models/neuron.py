"""Neuron body components: simulation and spike-threshold code."""

from __future__ import annotations

from typing import Dict, Mapping

from ..assembler import CodeStream, ThresholdStream
from ..entities import NEURON_BODY
from ..handlers import ConditionHandler, ObjectHandlers, TimeDerivativeHandler, UnsupportedHandler
from ..reader import HybridAutomaton
from .base import SpineMLModel


class SpineMLNeuronModel(SpineMLModel):
    """Neuron body translated into ``sim_code`` and ``threshold_condition_code``.

    Conditions emitting an event on the spike port also contribute a
    regime-guarded disjunct to the threshold condition.  Analogue inputs are
    read from the neuron's summed synaptic input.
    """

    kind = NEURON_BODY
    code_blocks = ("sim_code",)

    def _handlers(self, automaton: HybridAutomaton, streams: Mapping[str, CodeStream]) -> ObjectHandlers:
        sim_code = streams["sim_code"]
        self._threshold = ThresholdStream(automaton.multiple_regimes, self.options.regime_variable)
        return ObjectHandlers(
            condition=ConditionHandler(
                sim_code,
                automaton.multiple_regimes,
                threshold=self._threshold,
                spike_port=self.options.spike_port,
                url=self.url,
                regime_variable=self.options.regime_variable,
            ),
            event=UnsupportedHandler(self.kind, "OnEvent", self.url),
            impulse=UnsupportedHandler(self.kind, "OnImpulse", self.url),
            time_derivative=TimeDerivativeHandler(sim_code),
        )

    def _extra_code(self, automaton: HybridAutomaton) -> Dict[str, str]:
        threshold = self._threshold.getvalue()
        if not threshold:
            self.log.warning("neuron '%s' never emits on port '%s'; it will not spike", self.name, self.options.spike_port)
        return {"threshold_condition_code": threshold}

    def _port_names(self) -> Dict[str, str]:
        ports = self.component.analogue_receive_ports + self.component.analogue_reduce_ports
        return {port: self.options.neuron_input_variable for port in ports}

    @property
    def sim_code(self) -> str:
        return self.code["sim_code"]

    @property
    def threshold_condition_code(self) -> str:
        return self.code["threshold_condition_code"]


__all__ = ["SpineMLNeuronModel"]
