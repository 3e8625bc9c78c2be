"""Per-kind translators for SpineML component classes."""

from .base import SpineMLModel
from .neuron import SpineMLNeuronModel
from .postsynaptic import SpineMLPostsynapticModel
from .registry import MODEL_REGISTRY, clear_model_cache, create_model, get_create_model
from .weight_update import SpineMLWeightUpdateModel

__all__ = [
    "MODEL_REGISTRY",
    "SpineMLModel",
    "SpineMLNeuronModel",
    "SpineMLPostsynapticModel",
    "SpineMLWeightUpdateModel",
    "clear_model_cache",
    "create_model",
    "get_create_model",
]
