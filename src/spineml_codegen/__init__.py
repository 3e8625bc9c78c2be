"""Translate SpineML hybrid-automaton components into GeNN model code."""

from .component import load_component_class, parse_component_class
from .config import DEFAULT_OPTIONS, TranslationOptions
from .errors import ConfigurationError, ModelReferenceError, SpineMLError, UnsupportedFeatureError
from .models import (
    MODEL_REGISTRY,
    SpineMLModel,
    SpineMLNeuronModel,
    SpineMLPostsynapticModel,
    SpineMLWeightUpdateModel,
    create_model,
    get_create_model,
)
from .network import NetworkDescription, load_network
from .reader import RegimeIDTable, VariableClassification, read_hybrid_automaton
from .substitution import substitute_model_variables, wrap_and_replace_variable_names, wrap_variable_names
from .values import ParamValues, VarValues, resolve

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DEFAULT_OPTIONS",
    "MODEL_REGISTRY",
    "ModelReferenceError",
    "NetworkDescription",
    "ParamValues",
    "RegimeIDTable",
    "SpineMLError",
    "SpineMLModel",
    "SpineMLNeuronModel",
    "SpineMLPostsynapticModel",
    "SpineMLWeightUpdateModel",
    "TranslationOptions",
    "UnsupportedFeatureError",
    "VarValues",
    "VariableClassification",
    "create_model",
    "get_create_model",
    "load_component_class",
    "load_network",
    "parse_component_class",
    "read_hybrid_automaton",
    "resolve",
    "substitute_model_variables",
    "wrap_and_replace_variable_names",
    "wrap_variable_names",
]
