"""Reading low-level SpineML networks into translated populations and projections.

Each population and projection references component documents by URL and
supplies property values.  Properties with a ``FixedValue`` are treated as
fixed parameters; every other property must vary per neuron or synapse and so
becomes a model variable.  Models are created through the memoised factory,
so one (URL, variable-parameter set) pair is only ever translated once.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple, Type, TypeVar, Union

import numpy as np
import pandas as pd
from lxml import etree
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .component import first_child, iter_children, local_name, parse_xml
from .config import DEFAULT_OPTIONS, TranslationOptions
from .entities import NEURON_BODY, POSTSYNAPTIC, WEIGHT_UPDATE
from .errors import ConfigurationError, ModelReferenceError, UnsupportedFeatureError
from .models import (
    SpineMLModel,
    SpineMLNeuronModel,
    SpineMLPostsynapticModel,
    SpineMLWeightUpdateModel,
    get_create_model,
)

LOGGER = logging.getLogger(__name__)

SPIKE_SOURCE_URL = "SpikeSource"
CONNECTOR_KINDS = (
    "OneToOneConnection",
    "AllToAllConnection",
    "FixedProbabilityConnection",
    "ConnectionList",
)

_UNSAFE_CHARACTERS = re.compile(r"[^A-Za-z0-9_]")


class _NonBlankNode(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, str_min_length=1)


class NeuronNode(_NonBlankNode):
    name: str
    size: int = Field(ge=0)
    url: str


class ComponentNode(_NonBlankNode):
    url: str


class ProjectionNode(_NonBlankNode):
    dst_population: str


class PropertyNode(_NonBlankNode):
    name: str


class FixedValueNode(BaseModel):
    value: float

    @field_validator("value")
    def finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError(f"fixed value {value} is not finite")
        return value


_Node = TypeVar("_Node", bound=BaseModel)


def _validate_node(node: etree._Element, schema: Type[_Node], url: str) -> _Node:
    try:
        return schema.model_validate(dict(node.attrib))
    except ValidationError as exc:
        raise ConfigurationError(
            f"{url}: invalid '{local_name(node)}' node (line {node.sourceline}): {exc}"
        ) from exc


@dataclass(frozen=True)
class ModelParams:
    """Key identifying one translated model: its URL and variable parameters."""

    url: str
    variable_params: FrozenSet[str] = frozenset()


@dataclass
class NeuronPopulation:
    name: str
    size: int
    model: Optional[SpineMLNeuronModel]
    param_values: np.ndarray = field(default_factory=lambda: np.zeros(0))
    var_values: np.ndarray = field(default_factory=lambda: np.zeros(0))

    @property
    def is_spike_source(self) -> bool:
        return self.model is None


@dataclass
class Projection:
    name: str
    source: str
    target: str
    connector: str
    delay_steps: int
    global_g: bool
    weight_update: SpineMLWeightUpdateModel
    postsynaptic: SpineMLPostsynapticModel
    weight_update_param_values: np.ndarray
    weight_update_var_values: np.ndarray
    postsynaptic_param_values: np.ndarray
    postsynaptic_var_values: np.ndarray


@dataclass
class NetworkDescription:
    name: str
    path: Path
    dt: float
    populations: Dict[str, NeuronPopulation] = field(default_factory=dict)
    projections: List[Projection] = field(default_factory=list)

    def models(self) -> List[SpineMLModel]:
        """Distinct translated models, in order of first reference."""

        seen: Dict[int, SpineMLModel] = {}
        for population in self.populations.values():
            if population.model is not None:
                seen.setdefault(id(population.model), population.model)
        for projection in self.projections:
            seen.setdefault(id(projection.weight_update), projection.weight_update)
            seen.setdefault(id(projection.postsynaptic), projection.postsynaptic)
        return list(seen.values())

    def to_frame(self) -> pd.DataFrame:
        rows: List[Dict[str, object]] = []
        for population in self.populations.values():
            rows.append(
                {
                    "type": "population",
                    "name": population.name,
                    "size": population.size,
                    "source": "",
                    "target": "",
                    "model": SPIKE_SOURCE_URL if population.model is None else population.model.name,
                    "postsynaptic_model": "",
                    "connector": "",
                    "delay_steps": np.nan,
                    "global_g": np.nan,
                }
            )
        for projection in self.projections:
            rows.append(
                {
                    "type": "projection",
                    "name": projection.name,
                    "size": np.nan,
                    "source": projection.source,
                    "target": projection.target,
                    "model": projection.weight_update.name,
                    "postsynaptic_model": projection.postsynaptic.name,
                    "connector": projection.connector,
                    "delay_steps": projection.delay_steps,
                    "global_g": projection.global_g,
                }
            )
        frame = pd.DataFrame(rows)
        frame.attrs["network"] = self.name
        frame.attrs["dt"] = self.dt
        return frame


def get_safe_name(name: str) -> str:
    """Return ``name`` with every character that cannot appear in an identifier replaced."""

    return _UNSAFE_CHARACTERS.sub("_", name)


def read_model_properties(
    base_path: Path,
    node: etree._Element,
    url: str = "<memory>",
) -> Tuple[ModelParams, Dict[str, float]]:
    """Split a model node's properties into fixed values and variable parameters."""

    component = _validate_node(node, ComponentNode, url)
    variable_params = set()
    fixed_values: Dict[str, float] = {}
    for prop in iter_children(node, "Property"):
        name = _validate_node(prop, PropertyNode, url).name
        fixed_value = first_child(prop, "FixedValue")
        if fixed_value is not None:
            fixed_values[name] = _validate_node(fixed_value, FixedValueNode, url).value
        else:
            variable_params.add(name)

    model_url = str((base_path / component.url).resolve())
    return ModelParams(url=model_url, variable_params=frozenset(variable_params)), fixed_values


def read_delay_steps(node: etree._Element, dt: float, url: str = "<memory>") -> int:
    """Return the connector's delay in whole timesteps."""

    if not math.isfinite(dt) or dt <= 0.0:
        raise ConfigurationError(f"{url}: timestep dt must be a positive finite number, got {dt}")
    delay = first_child(node, "Delay")
    if delay is None:
        raise ConfigurationError(f"{url}: connector '{local_name(node)}' has no 'Delay' node")
    fixed_value = first_child(delay, "FixedValue")
    if fixed_value is None:
        raise UnsupportedFeatureError(f"{url}: only projections with a single fixed delay value are supported")
    delay_ms = _validate_node(fixed_value, FixedValueNode, url).value
    if delay_ms < 0.0:
        raise ConfigurationError(f"{url}: negative delay {delay_ms}")
    # Halves round up
    return int(math.floor(delay_ms / dt + 0.5))


def find_connector(synapse: etree._Element, url: str = "<memory>") -> Tuple[str, etree._Element]:
    for kind in CONNECTOR_KINDS:
        connector = first_child(synapse, kind)
        if connector is not None:
            return kind, connector
    raise UnsupportedFeatureError(f"{url}: no supported connection type found for projection")


def get_neuron_pop_size(name: str, sizes: Mapping[str, int]) -> int:
    try:
        return sizes[name]
    except KeyError:
        raise ModelReferenceError(f"Cannot find neuron population:{name}") from None


def _required_child(node: etree._Element, name: str, url: str) -> etree._Element:
    child = first_child(node, name)
    if child is None:
        raise ConfigurationError(f"{url}: '{local_name(node)}' node has no '{name}' node")
    return child


def _read_population(
    node: etree._Element,
    base_path: Path,
    url: str,
    options: TranslationOptions,
    log: logging.Logger,
) -> NeuronPopulation:
    neuron = _required_child(node, "Neuron", url)
    attributes = _validate_node(neuron, NeuronNode, url)
    name = get_safe_name(attributes.name)
    log.info("Population %s consisting of %d neurons", name, attributes.size)

    if attributes.url == SPIKE_SOURCE_URL:
        return NeuronPopulation(name=name, size=attributes.size, model=None)

    params, fixed_values = read_model_properties(base_path, neuron, url)
    model = get_create_model(NEURON_BODY, params.url, params.variable_params, options)
    return NeuronPopulation(
        name=name,
        size=attributes.size,
        model=model,
        param_values=model.param_values(fixed_values).get_values(),
        var_values=model.var_values(fixed_values).get_values(),
    )


def _read_projection(
    node: etree._Element,
    source: str,
    sizes: Mapping[str, int],
    base_path: Path,
    url: str,
    options: TranslationOptions,
    log: logging.Logger,
) -> Projection:
    target = get_safe_name(_validate_node(node, ProjectionNode, url).dst_population)
    get_neuron_pop_size(target, sizes)
    log.info("Projection from population:%s->%s", source, target)

    synapse = _required_child(node, "Synapse", url)
    weight_update_node = _required_child(synapse, "WeightUpdate", url)
    postsynapse_node = _required_child(synapse, "PostSynapse", url)

    wu_params, wu_fixed = read_model_properties(base_path, weight_update_node, url)
    weight_update = get_create_model(WEIGHT_UPDATE, wu_params.url, wu_params.variable_params, options)

    ps_params, ps_fixed = read_model_properties(base_path, postsynapse_node, url)
    postsynaptic = get_create_model(POSTSYNAPTIC, ps_params.url, ps_params.variable_params, options)

    connector, connector_node = find_connector(synapse, url)
    return Projection(
        name=f"{source}_{target}",
        source=source,
        target=target,
        connector=connector,
        delay_steps=read_delay_steps(connector_node, options.dt, url),
        # A single global weight suffices when nothing varies per synapse
        global_g=not wu_params.variable_params,
        weight_update=weight_update,
        postsynaptic=postsynaptic,
        weight_update_param_values=weight_update.param_values(wu_fixed).get_values(),
        weight_update_var_values=weight_update.var_values(wu_fixed).get_values(),
        postsynaptic_param_values=postsynaptic.param_values(ps_fixed).get_values(),
        postsynaptic_var_values=postsynaptic.var_values(ps_fixed).get_values(),
    )


def load_network(
    path: Union[Path, str],
    *,
    options: TranslationOptions = DEFAULT_OPTIONS,
    logger: Optional[logging.Logger] = None,
) -> NetworkDescription:
    """Translate every model referenced by the network document at ``path``."""

    log = logger or LOGGER
    network_path = Path(path)
    url = str(network_path)
    try:
        data = network_path.read_bytes()
    except OSError as exc:
        raise ConfigurationError(f"Unable to load XML file:{url}, error:{exc}") from exc

    root = parse_xml(data, url)
    if local_name(root) != "SpineML":
        raise ConfigurationError(f"XML file:{url} is not a low-level SpineML network - it has no root SpineML node")

    base_path = network_path.resolve().parent
    network = NetworkDescription(name=network_path.stem, path=network_path, dt=options.dt)

    population_nodes = list(iter_children(root, "Population"))
    for node in population_nodes:
        population = _read_population(node, base_path, url, options, log)
        if population.name in network.populations:
            raise ConfigurationError(f"{url}: population '{population.name}' is declared more than once")
        network.populations[population.name] = population

    sizes = {name: population.size for name, population in network.populations.items()}
    for node in population_nodes:
        neuron = _required_child(node, "Neuron", url)
        source = get_safe_name(_validate_node(neuron, NeuronNode, url).name)
        get_neuron_pop_size(source, sizes)
        for projection in iter_children(node, "Projection"):
            network.projections.append(_read_projection(projection, source, sizes, base_path, url, options, log))

    log.info(
        "network '%s': %d populations, %d projections, %d distinct models",
        network.name,
        len(network.populations),
        len(network.projections),
        len(network.models()),
    )
    return network


__all__ = [
    "CONNECTOR_KINDS",
    "ModelParams",
    "NetworkDescription",
    "NeuronPopulation",
    "Projection",
    "SPIKE_SOURCE_URL",
    "find_connector",
    "get_neuron_pop_size",
    "get_safe_name",
    "load_network",
    "read_delay_steps",
    "read_model_properties",
]
