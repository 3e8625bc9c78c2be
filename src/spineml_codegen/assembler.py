"""Regime-driven traversal and per-regime code accumulation."""

from __future__ import annotations

import logging
import textwrap
from typing import List, Optional, Sequence

from .handlers import INDENT, ObjectHandlers
from .reader import HybridAutomaton

LOGGER = logging.getLogger(__name__)


class CodeStream:
    """Accumulates one block of generated code, regime by regime.

    Handlers append statements for the regime currently being traversed;
    :meth:`on_regime_end` moves them into the finalized output, wrapped in a
    guard on the regime variable when the component has several regimes.
    """

    def __init__(self, regime_variable: str = "_regimeID"):
        self.regime_variable = regime_variable
        self._current: List[str] = []
        self._output: List[str] = []
        self._first_non_empty_regime = True

    def write(self, text: str) -> None:
        self._current.append(text)

    def write_lines(self, lines: Sequence[str]) -> None:
        for line in lines:
            self._current.append(line + "\n")

    @property
    def pending(self) -> bool:
        return bool(self._current)

    def on_regime_end(self, multiple_regimes: bool, regime_id: int) -> None:
        if not self._current:
            return

        body = "".join(self._current)
        if multiple_regimes:
            prefix = "" if self._first_non_empty_regime else "else "
            self._first_non_empty_regime = False
            self._output.append(f"{prefix}if({self.regime_variable} == {regime_id}) {{\n")
            self._output.append(textwrap.indent(body, INDENT))
            self._output.append("}\n")
        else:
            self._output.append(body)
        self._current = []

    def getvalue(self) -> str:
        return "".join(self._output)

    def __str__(self) -> str:
        return self.getvalue()


class ThresholdStream:
    """OR-combination of spike-emitting trigger conditions."""

    def __init__(self, multiple_regimes: bool, regime_variable: str = "_regimeID"):
        self.multiple_regimes = multiple_regimes
        self.regime_variable = regime_variable
        self._terms: List[str] = []

    def add(self, trigger: str, regime_id: int) -> None:
        if self.multiple_regimes:
            self._terms.append(f"({self.regime_variable} == {regime_id} && ({trigger}))")
        else:
            self._terms.append(f"({trigger})")

    def getvalue(self) -> str:
        return " || ".join(self._terms)

    def __str__(self) -> str:
        return self.getvalue()


def generate_model_code(
    automaton: HybridAutomaton,
    handlers: ObjectHandlers,
    streams: Sequence[CodeStream],
    *,
    logger: Optional[logging.Logger] = None,
) -> bool:
    """Walk every regime in document order, dispatching nodes to ``handlers``.

    Returns whether the component has multiple regimes.
    """

    log = logger or LOGGER
    regime_ids = automaton.regime_ids
    multiple_regimes = regime_ids.multiple_regimes

    for regime in automaton.component.regimes:
        current = regime_ids[regime.name]
        log.debug("regime name:%s, id:%d", regime.name, current)

        for condition in regime.on_conditions:
            handlers.condition.on_object(condition, current, regime_ids.resolve(condition.target_regime, regime.name))

        for event in regime.on_events:
            handlers.event.on_object(event, current, regime_ids.resolve(event.target_regime, regime.name))

        for impulse in regime.on_impulses:
            handlers.impulse.on_object(impulse, current, regime_ids.resolve(impulse.target_regime, regime.name))

        # Derivatives never leave the regime
        for derivative in regime.time_derivatives:
            handlers.time_derivative.on_object(derivative, current, current)

        for stream in streams:
            stream.on_regime_end(multiple_regimes, current)

    return multiple_regimes


__all__ = ["CodeStream", "INDENT", "ThresholdStream", "generate_model_code"]
