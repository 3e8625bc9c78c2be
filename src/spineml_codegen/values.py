"""Value resolvers: sparse name/value maps to order-stable vectors."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, Mapping

import numpy as np

if TYPE_CHECKING:
    from .models.base import SpineMLModel


def resolve(names: Iterable[str], values: Mapping[str, float], default: float = 0.0) -> np.ndarray:
    """Return ``values`` laid out in ``names`` order, ``default`` where missing.

    Keys of ``values`` that are not in ``names`` are ignored; callers may pass
    the full property list of a population.
    """

    return np.array([float(values.get(name, default)) for name in names], dtype=float)


class _ModelValues(Mapping[str, float]):
    """Mapping-like wrapper around the sparse values supplied for one model."""

    def __init__(self, values: Mapping[str, float], model: "SpineMLModel"):
        # Converted to float only for declared names, in resolve()
        self._values: Dict[str, float] = dict(values)
        self.model = model

    def __getitem__(self, key: str) -> float:  # type: ignore[override]
        return self._values[key]

    def __iter__(self) -> Iterator[str]:  # type: ignore[override]
        return iter(self._values)

    def __len__(self) -> int:  # type: ignore[override]
        return len(self._values)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._values!r}, model={self.model.name!r})"

    @abstractmethod
    def get_values(self) -> np.ndarray:
        """Return the values in the model's declared order."""


class ParamValues(_ModelValues):
    """Values of the model's free parameters, in declaration order."""

    def get_values(self) -> np.ndarray:
        return resolve(self.model.param_names, self._values)


class VarValues(_ModelValues):
    """Initial values of the model's variables, in variable order.

    The regime variable starts in the component's initial regime unless a
    value is supplied explicitly.
    """

    def get_values(self) -> np.ndarray:
        values = dict(self._values)
        if self.model.multiple_regimes:
            values.setdefault(self.model.options.regime_variable, float(self.model.initial_regime_id))
        return resolve((name for name, _ in self.model.vars), values)


__all__ = ["ParamValues", "VarValues", "resolve"]
