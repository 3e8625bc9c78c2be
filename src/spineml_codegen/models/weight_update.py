"""Weight update components: presynaptic spike and continuous synapse code."""

from __future__ import annotations

from typing import Dict, Mapping

from ..assembler import CodeStream
from ..entities import WEIGHT_UPDATE
from ..handlers import (
    ConditionHandler,
    EventHandler,
    ObjectHandlers,
    TimeDerivativeHandler,
    UnsupportedHandler,
)
from ..reader import HybridAutomaton, find_analogue_receive_port_names
from .base import SpineMLModel


class SpineMLWeightUpdateModel(SpineMLModel):
    """Weight update translated into ``sim_code`` and ``synapse_dynamics_code``.

    ``sim_code`` runs for every presynaptic spike and forwards impulses to the
    postsynaptic model; conditions and time derivatives run every timestep.
    """

    kind = WEIGHT_UPDATE
    code_blocks = ("sim_code", "synapse_dynamics_code")

    def _handlers(self, automaton: HybridAutomaton, streams: Mapping[str, CodeStream]) -> ObjectHandlers:
        sim_code = streams["sim_code"]
        dynamics_code = streams["synapse_dynamics_code"]
        return ObjectHandlers(
            condition=ConditionHandler(
                dynamics_code,
                automaton.multiple_regimes,
                url=self.url,
                regime_variable=self.options.regime_variable,
            ),
            event=EventHandler(
                sim_code,
                automaton.multiple_regimes,
                url=self.url,
                regime_variable=self.options.regime_variable,
            ),
            impulse=UnsupportedHandler(self.kind, "OnImpulse", self.url),
            time_derivative=TimeDerivativeHandler(dynamics_code),
        )

    def _port_names(self) -> Dict[str, str]:
        renamed = find_analogue_receive_port_names(self.component, self.options.weight_update_port_suffix)
        return dict(zip(self.component.analogue_receive_ports, renamed))

    @property
    def sim_code(self) -> str:
        return self.code["sim_code"]

    @property
    def synapse_dynamics_code(self) -> str:
        return self.code["synapse_dynamics_code"]


__all__ = ["SpineMLWeightUpdateModel"]
