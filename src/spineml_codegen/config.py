"""Translation options shared by every model kind."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from .errors import ConfigurationError


@dataclass(frozen=True)
class TranslationOptions:
    """Names and types the generated code is written against.

    Instances are hashable so they can form part of the model cache key.
    """

    scalar_type: str = "scalar"
    regime_variable: str = "_regimeID"
    regime_variable_type: str = "unsigned int"
    spike_port: str = "spike"
    neuron_input_variable: str = "Isyn"
    postsynaptic_input_variable: str = "inSyn"
    postsynaptic_port_suffix: str = ""
    weight_update_port_suffix: str = "_post"
    dt: float = 0.1

    def __post_init__(self) -> None:
        if not math.isfinite(self.dt) or self.dt <= 0.0:
            raise ConfigurationError(f"timestep dt must be a positive finite number, got {self.dt}")

    def with_overrides(self, **overrides) -> "TranslationOptions":
        """Return a copy with any non-``None`` override applied."""

        return replace(self, **{key: value for key, value in overrides.items() if value is not None})


DEFAULT_OPTIONS = TranslationOptions()


__all__ = ["DEFAULT_OPTIONS", "TranslationOptions"]
