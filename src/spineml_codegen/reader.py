"""Hybrid-automaton reader: regime IDs and parameter/variable classification."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .config import DEFAULT_OPTIONS, TranslationOptions
from .entities import ComponentClass
from .errors import ConfigurationError, ModelReferenceError

LOGGER = logging.getLogger(__name__)

Var = Tuple[str, str]


class RegimeIDTable(Mapping[str, int]):
    """Read-only mapping from regime name to dense integer ID.

    IDs follow document order.  The table is built once per component by
    :func:`build_regime_ids` and shared by every handler that emits
    regime-conditioned code.
    """

    def __init__(self, names: Iterable[str], url: str = "<memory>"):
        self.url = url
        self._ids: Dict[str, int] = {}
        for name in names:
            if name in self._ids:
                raise ConfigurationError(f"{url}: regime '{name}' is declared more than once")
            self._ids[name] = len(self._ids)

    def __getitem__(self, key: str) -> int:  # type: ignore[override]
        return self._ids[key]

    def __iter__(self) -> Iterator[str]:  # type: ignore[override]
        return iter(self._ids)

    def __len__(self) -> int:  # type: ignore[override]
        return len(self._ids)

    def __repr__(self) -> str:
        return f"RegimeIDTable({self._ids!r})"

    @property
    def multiple_regimes(self) -> bool:
        return len(self._ids) > 1

    def resolve(self, name: str, source: Optional[str] = None) -> int:
        """Return the ID of ``name`` or raise :class:`ModelReferenceError`."""

        try:
            return self._ids[name]
        except KeyError:
            origin = f" (referenced from regime '{source}')" if source else ""
            raise ModelReferenceError(f"{self.url}: unknown target regime '{name}'{origin}") from None


@dataclass(frozen=True)
class VariableClassification:
    param_names: Tuple[str, ...]
    vars: Tuple[Var, ...]
    multiple_regimes: bool

    @property
    def var_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.vars)


@dataclass(frozen=True)
class HybridAutomaton:
    """Everything the per-kind assemblers need from the reader."""

    component: ComponentClass
    regime_ids: RegimeIDTable
    classification: VariableClassification
    initial_regime_id: int = 0

    @property
    def multiple_regimes(self) -> bool:
        return self.classification.multiple_regimes


def build_regime_ids(component: ComponentClass) -> RegimeIDTable:
    return RegimeIDTable((regime.name for regime in component.regimes), component.url)


def find_model_variables(
    component: ComponentClass,
    variable_params: Iterable[str],
    multiple_regimes: bool,
    options: TranslationOptions = DEFAULT_OPTIONS,
) -> Tuple[Tuple[str, ...], Tuple[Var, ...]]:
    """Split declared parameters into free parameters and model variables.

    Names the caller marks variable and all state variables become variables
    (lexically ordered); remaining parameters stay free parameters in
    declaration order.  The regime variable is appended last when the
    component has more than one regime.
    """

    variables = set(variable_params)
    variables.update(component.state_variables)

    param_names: List[str] = []
    for name in component.parameters:
        if name not in variables and name not in param_names:
            param_names.append(name)

    vars_: List[Var] = [(name, options.scalar_type) for name in sorted(variables)]
    if multiple_regimes:
        vars_.append((options.regime_variable, options.regime_variable_type))
    return tuple(param_names), tuple(vars_)


def find_analogue_receive_port_names(component: ComponentClass, suffix: str = "") -> Tuple[str, ...]:
    return tuple(name + suffix for name in component.analogue_receive_ports)


def _check_transition_targets(component: ComponentClass, regime_ids: RegimeIDTable) -> None:
    for regime in component.regimes:
        for transition in regime.transitions():
            regime_ids.resolve(transition.target_regime, regime.name)


def _initial_regime_id(component: ComponentClass, regime_ids: RegimeIDTable) -> int:
    initial = component.dynamics.initial_regime
    if initial is None:
        return 0
    if initial not in regime_ids:
        raise ModelReferenceError(f"{component.url}: unknown initial regime '{initial}'")
    return regime_ids[initial]


def read_hybrid_automaton(
    component: ComponentClass,
    variable_params: Iterable[str] = (),
    options: TranslationOptions = DEFAULT_OPTIONS,
    *,
    logger: Optional[logging.Logger] = None,
) -> HybridAutomaton:
    """Build the regime table and variable classification for ``component``."""

    log = logger or LOGGER
    log.info("Model name:%s", component.name)

    regime_ids = build_regime_ids(component)
    if not regime_ids:
        log.warning("component '%s' (%s) declares no regimes; no code will be generated", component.name, component.url)
    _check_transition_targets(component, regime_ids)
    initial_regime_id = _initial_regime_id(component, regime_ids)

    param_names, vars_ = find_model_variables(component, variable_params, regime_ids.multiple_regimes, options)
    for name in param_names:
        log.debug("parameter %s", name)
    for name, var_type in vars_:
        log.debug("variable %s:%s", name, var_type)

    return HybridAutomaton(
        component=component,
        regime_ids=regime_ids,
        classification=VariableClassification(
            param_names=param_names,
            vars=vars_,
            multiple_regimes=regime_ids.multiple_regimes,
        ),
        initial_regime_id=initial_regime_id,
    )


__all__ = [
    "HybridAutomaton",
    "RegimeIDTable",
    "VariableClassification",
    "build_regime_ids",
    "find_analogue_receive_port_names",
    "find_model_variables",
    "read_hybrid_automaton",
]
