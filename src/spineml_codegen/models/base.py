"""Shared machinery for the per-kind SpineML model translators."""

from __future__ import annotations

import logging
from typing import ClassVar, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from ..assembler import CodeStream, generate_model_code
from ..config import DEFAULT_OPTIONS, TranslationOptions
from ..entities import ComponentClass
from ..errors import ConfigurationError
from ..handlers import ObjectHandlers
from ..reader import HybridAutomaton, read_hybrid_automaton
from ..substitution import find_tokens, substitute_model_variables
from ..values import ParamValues, VarValues

LOGGER = logging.getLogger(__name__)


class SpineMLModel:
    """A component class translated into token-annotated GeNN code.

    Subclasses choose the code blocks they generate, the handler used for each
    node role and how analogue ports are renamed; reading, traversal and
    substitution are shared.
    """

    kind: ClassVar[str] = ""
    code_blocks: ClassVar[Tuple[str, ...]] = ()

    def __init__(
        self,
        component: ComponentClass,
        variable_params: Iterable[str] = (),
        *,
        options: TranslationOptions = DEFAULT_OPTIONS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if component.kind != self.kind:
            raise ConfigurationError(
                f"{component.url}: expected a {self.kind} component, got '{component.kind}'"
            )
        self.component = component
        self.options = options
        self.variable_params = frozenset(variable_params)
        self.log = logger or LOGGER
        self._validate()

        automaton = read_hybrid_automaton(component, self.variable_params, options, logger=self.log)
        self.regime_ids = automaton.regime_ids
        self.initial_regime_id = automaton.initial_regime_id
        self.param_names: Tuple[str, ...] = automaton.classification.param_names
        self.vars: Tuple[Tuple[str, str], ...] = automaton.classification.vars

        streams = {name: CodeStream(options.regime_variable) for name in self.code_blocks}
        handlers = self._handlers(automaton, streams)
        self.multiple_regimes = generate_model_code(automaton, handlers, list(streams.values()), logger=self.log)

        raw = {name: stream.getvalue() for name, stream in streams.items()}
        raw.update(self._extra_code(automaton))
        self.code: Dict[str, str] = substitute_model_variables(
            self.param_names,
            self.vars,
            raw,
            self._port_names(),
            logger=self.log,
        )
        for name, text in self.code.items():
            self.log.debug("%s:\n%s", name.upper(), text)

    # --- hooks ---------------------------------------------------------------------

    def _validate(self) -> None:
        """Reject components the kind cannot translate before any code is emitted."""

    def _handlers(self, automaton: HybridAutomaton, streams: Mapping[str, CodeStream]) -> ObjectHandlers:
        raise NotImplementedError

    def _extra_code(self, automaton: HybridAutomaton) -> Dict[str, str]:
        return {}

    def _port_names(self) -> Dict[str, str]:
        return {}

    # --- accessors -----------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.component.name

    @property
    def url(self) -> str:
        return self.component.url

    @property
    def provenance(self) -> Dict[str, str]:
        return dict(self.component.provenance)

    @property
    def var_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.vars)

    def get_param_names(self) -> List[str]:
        return list(self.param_names)

    def get_vars(self) -> List[Tuple[str, str]]:
        return list(self.vars)

    def param_values(self, values: Mapping[str, float]) -> ParamValues:
        return ParamValues(values, self)

    def var_values(self, values: Mapping[str, float]) -> VarValues:
        return VarValues(values, self)

    def variables_frame(self) -> pd.DataFrame:
        """Tabulate parameters and variables in the order GeNN receives them."""

        rows = [
            {"name": name, "role": "parameter", "type": self.options.scalar_type}
            for name in self.param_names
        ]
        rows.extend({"name": name, "role": "variable", "type": var_type} for name, var_type in self.vars)
        frame = pd.DataFrame(rows, columns=["name", "role", "type"])
        frame.attrs["model"] = self.name
        frame.attrs["kind"] = self.kind
        return frame

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "kind": self.kind,
            "url": self.url,
            "param_names": list(self.param_names),
            "vars": [list(var) for var in self.vars],
            "multiple_regimes": self.multiple_regimes,
            "regime_ids": dict(self.regime_ids),
            "code": dict(self.code),
            "tokens": {name: list(find_tokens(text)) for name, text in self.code.items()},
            "provenance": self.provenance,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, url={self.url!r})"


__all__ = ["SpineMLModel"]
