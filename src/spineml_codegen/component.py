"""Loading SpineML component documents into :class:`ComponentClass` entities."""

from __future__ import annotations

import hashlib
import logging
from functools import lru_cache
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from lxml import etree

from .entities import (
    COMPONENT_KINDS,
    ComponentClass,
    Dynamics,
    EventOut,
    ImpulseOut,
    OnCondition,
    OnEvent,
    OnImpulse,
    Regime,
    StateAssignment,
    TimeDerivative,
)
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


def local_name(node: etree._Element) -> str:
    """Return the tag of ``node`` without namespace URI or prefix."""

    return etree.QName(node).localname


def iter_children(node: etree._Element, name: str) -> Iterator[etree._Element]:
    # Comments and processing instructions have non-string tags
    for child in node:
        if isinstance(child.tag, str) and local_name(child) == name:
            yield child


def first_child(node: etree._Element, name: str) -> Optional[etree._Element]:
    return next(iter_children(node, name), None)


def _math_inline(node: Optional[etree._Element]) -> str:
    if node is None:
        return ""
    math = first_child(node, "MathInline")
    if math is None or math.text is None:
        return ""
    return math.text.strip()


def _required_attribute(node: etree._Element, attribute: str, url: str) -> str:
    value = node.get(attribute)
    if not value:
        raise ConfigurationError(
            f"{url}: '{local_name(node)}' node (line {node.sourceline}) has no '{attribute}' attribute"
        )
    return value


def _names(node: etree._Element, name: str, url: str) -> Tuple[str, ...]:
    return tuple(_required_attribute(child, "name", url) for child in iter_children(node, name))


def _state_assignments(node: etree._Element, url: str) -> Tuple[StateAssignment, ...]:
    assignments: List[StateAssignment] = []
    for child in iter_children(node, "StateAssignment"):
        variable = _required_attribute(child, "variable", url)
        expression = _math_inline(child)
        if not expression:
            raise ConfigurationError(f"{url}: state assignment to '{variable}' has no MathInline expression")
        assignments.append(StateAssignment(variable=variable, expression=expression))
    return tuple(assignments)


def _outputs(node: etree._Element, url: str) -> Tuple[Tuple[EventOut, ...], Tuple[ImpulseOut, ...]]:
    events = tuple(EventOut(_required_attribute(child, "port", url)) for child in iter_children(node, "EventOut"))
    impulses = tuple(ImpulseOut(_required_attribute(child, "port", url)) for child in iter_children(node, "ImpulseOut"))
    return events, impulses


def _read_condition(node: etree._Element, url: str) -> OnCondition:
    target = _required_attribute(node, "target_regime", url)
    trigger = _math_inline(first_child(node, "Trigger"))
    if not trigger:
        raise ConfigurationError(f"{url}: no trigger condition for transition to regime '{target}'")
    event_outs, impulse_outs = _outputs(node, url)
    return OnCondition(
        target_regime=target,
        trigger=trigger,
        state_assignments=_state_assignments(node, url),
        event_outs=event_outs,
        impulse_outs=impulse_outs,
    )


def _read_event(node: etree._Element, url: str) -> OnEvent:
    event_outs, impulse_outs = _outputs(node, url)
    return OnEvent(
        target_regime=_required_attribute(node, "target_regime", url),
        src_port=node.get("src_port", ""),
        state_assignments=_state_assignments(node, url),
        event_outs=event_outs,
        impulse_outs=impulse_outs,
    )


def _read_impulse(node: etree._Element, url: str) -> OnImpulse:
    event_outs, impulse_outs = _outputs(node, url)
    return OnImpulse(
        target_regime=_required_attribute(node, "target_regime", url),
        src_port=node.get("src_port", ""),
        state_assignments=_state_assignments(node, url),
        event_outs=event_outs,
        impulse_outs=impulse_outs,
    )


def _read_time_derivative(node: etree._Element, url: str) -> TimeDerivative:
    variable = _required_attribute(node, "variable", url)
    expression = _math_inline(node)
    if not expression:
        raise ConfigurationError(f"{url}: time derivative of '{variable}' has no MathInline expression")
    return TimeDerivative(variable=variable, expression=expression)


def _read_regime(node: etree._Element, url: str) -> Regime:
    return Regime(
        name=_required_attribute(node, "name", url),
        on_conditions=tuple(_read_condition(child, url) for child in iter_children(node, "OnCondition")),
        on_events=tuple(_read_event(child, url) for child in iter_children(node, "OnEvent")),
        on_impulses=tuple(_read_impulse(child, url) for child in iter_children(node, "OnImpulse")),
        time_derivatives=tuple(
            _read_time_derivative(child, url) for child in iter_children(node, "TimeDerivative")
        ),
    )


def _read_dynamics(component: etree._Element, url: str) -> Dynamics:
    dynamics = first_child(component, "Dynamics")
    if dynamics is None:
        raise ConfigurationError(f"{url}: component class has no 'Dynamics' node")
    return Dynamics(
        regimes=tuple(_read_regime(child, url) for child in iter_children(dynamics, "Regime")),
        state_variables=_names(dynamics, "StateVariable", url),
        initial_regime=dynamics.get("initial_regime") or None,
    )


def read_component_class(
    root: etree._Element,
    url: str = "<memory>",
    *,
    expected_kind: Optional[str] = None,
) -> ComponentClass:
    """Build a :class:`ComponentClass` from the root node of a component document."""

    if local_name(root) != "SpineML":
        raise ConfigurationError(f"XML file:{url} is not a SpineML component - it has no root SpineML node")
    component = first_child(root, "ComponentClass")
    if component is None:
        raise ConfigurationError(f"XML file:{url} has no ComponentClass node")

    kind = component.get("type", "")
    if kind not in COMPONENT_KINDS:
        raise ConfigurationError(f"XML file:{url} has a ComponentClass of unknown type '{kind}'")
    if expected_kind is not None and kind != expected_kind:
        raise ConfigurationError(
            f"XML file:{url} is not a SpineML {expected_kind} component - its ComponentClass is of type '{kind}'"
        )

    name = _required_attribute(component, "name", url)
    return ComponentClass(
        name=name,
        kind=kind,
        dynamics=_read_dynamics(component, url),
        url=url,
        parameters=_names(component, "Parameter", url),
        analogue_receive_ports=_names(component, "AnalogReceivePort", url),
        analogue_send_ports=_names(component, "AnalogSendPort", url),
        analogue_reduce_ports=_names(component, "AnalogReducePort", url),
        event_send_ports=_names(component, "EventSendPort", url),
        event_receive_ports=_names(component, "EventReceivePort", url),
        impulse_send_ports=_names(component, "ImpulseSendPort", url),
        impulse_receive_ports=_names(component, "ImpulseReceivePort", url),
    )


def parse_xml(data: Union[str, bytes], url: str = "<memory>") -> etree._Element:
    if isinstance(data, str):
        data = data.encode("utf8")
    try:
        return etree.fromstring(data)
    except etree.XMLSyntaxError as exc:
        raise ConfigurationError(f"Unable to parse XML file:{url}, error:{exc}") from exc


def parse_component_class(
    data: Union[str, bytes],
    url: str = "<memory>",
    *,
    expected_kind: Optional[str] = None,
) -> ComponentClass:
    """Parse component XML held in memory."""

    component = read_component_class(parse_xml(data, url), url, expected_kind=expected_kind)
    if isinstance(data, str):
        data = data.encode("utf8")
    component.provenance["sha256"] = hashlib.sha256(data).hexdigest()
    return component


@lru_cache(maxsize=None)
def _load_component_class(path: str, expected_kind: Optional[str]) -> ComponentClass:
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise ConfigurationError(f"Could not open file:{path}, error:{exc}") from exc
    component = parse_component_class(data, path, expected_kind=expected_kind)
    component.provenance["source"] = path
    logger.debug("loaded component '%s' (%s) from %s", component.name, component.kind, path)
    return component


def load_component_class(path: Union[Path, str], *, expected_kind: Optional[str] = None) -> ComponentClass:
    """Load (and memoise) the component class stored at ``path``."""

    return _load_component_class(str(Path(path).resolve()), expected_kind)


__all__ = [
    "first_child",
    "iter_children",
    "load_component_class",
    "local_name",
    "parse_component_class",
    "parse_xml",
    "read_component_class",
]
