"""Domain-specific exceptions for the SpineML translator."""

from __future__ import annotations


class SpineMLError(RuntimeError):
    """Base class for translation errors."""


class ConfigurationError(SpineMLError):
    """Raised when a component or network document is malformed or of the wrong kind."""


class ModelReferenceError(SpineMLError):
    """Raised when a regime, population or other named entity cannot be found."""


class UnsupportedFeatureError(SpineMLError):
    """Raised when a construct has no translation policy."""


__all__ = [
    "SpineMLError",
    "ConfigurationError",
    "ModelReferenceError",
    "UnsupportedFeatureError",
]
