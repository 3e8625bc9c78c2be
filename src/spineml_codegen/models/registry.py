"""Model kind registry and the memoised model factory."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Optional, Type, Union

from ..component import load_component_class
from ..config import DEFAULT_OPTIONS, TranslationOptions
from ..entities import NEURON_BODY, POSTSYNAPTIC, WEIGHT_UPDATE, ComponentClass
from ..errors import ConfigurationError
from .base import SpineMLModel
from .neuron import SpineMLNeuronModel
from .postsynaptic import SpineMLPostsynapticModel
from .weight_update import SpineMLWeightUpdateModel

LOGGER = logging.getLogger(__name__)

MODEL_REGISTRY: Dict[str, Type[SpineMLModel]] = {
    NEURON_BODY: SpineMLNeuronModel,
    POSTSYNAPTIC: SpineMLPostsynapticModel,
    WEIGHT_UPDATE: SpineMLWeightUpdateModel,
}


def create_model(
    component: ComponentClass,
    variable_params: Iterable[str] = (),
    *,
    options: TranslationOptions = DEFAULT_OPTIONS,
    logger: Optional[logging.Logger] = None,
) -> SpineMLModel:
    """Translate ``component`` with the model class registered for its kind."""

    model_cls = MODEL_REGISTRY.get(component.kind)
    if model_cls is None:
        raise ConfigurationError(f"{component.url}: no translator registered for '{component.kind}' components")
    return model_cls(component, variable_params, options=options, logger=logger)


@lru_cache(maxsize=None)
def _get_create_model(
    kind: str,
    url: str,
    variable_params: FrozenSet[str],
    options: TranslationOptions,
) -> SpineMLModel:
    LOGGER.info("Creating new %s model from %s", kind, url)
    component = load_component_class(url, expected_kind=kind)
    return create_model(component, variable_params, options=options)


def get_create_model(
    kind: str,
    url: Union[Path, str],
    variable_params: Iterable[str] = (),
    options: TranslationOptions = DEFAULT_OPTIONS,
) -> SpineMLModel:
    """Return the translated model for ``(kind, url, variable_params, options)``.

    Identical keys share one instance, so every population or projection that
    references the same component with the same variable parameters sees the
    same regime IDs and variable ordering.
    """

    return _get_create_model(kind, str(Path(url).resolve()), frozenset(variable_params), options)


def clear_model_cache() -> None:
    _get_create_model.cache_clear()


__all__ = ["MODEL_REGISTRY", "clear_model_cache", "create_model", "get_create_model"]
