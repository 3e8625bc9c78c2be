"""Object handlers: per-role code emission policies used by the traversal.

The traversal in :mod:`spineml_codegen.assembler` is written once against the
:class:`ObjectHandler` protocol.  Each model kind bundles one handler per role
(condition, event, impulse, time derivative) in an :class:`ObjectHandlers`;
handlers only ever append to the streams they were constructed with.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Protocol, Union

from .entities import OnCondition, OnEvent, OnImpulse, TimeDerivative
from .errors import ConfigurationError, UnsupportedFeatureError

if TYPE_CHECKING:
    from .assembler import CodeStream, ThresholdStream

INDENT = "    "

Transition = Union[OnCondition, OnEvent, OnImpulse]
Node = Union[OnCondition, OnEvent, OnImpulse, TimeDerivative]


class ObjectHandler(Protocol):
    """Emission policy for a single node role."""

    def on_object(self, node: Node, current_regime_id: int, target_regime_id: int) -> None:
        ...


@dataclass(frozen=True)
class ObjectHandlers:
    condition: ObjectHandler
    event: ObjectHandler
    impulse: ObjectHandler
    time_derivative: ObjectHandler


class NullHandler:
    """Emits nothing."""

    def on_object(self, node: Node, current_regime_id: int, target_regime_id: int) -> None:
        return None


@dataclass(frozen=True)
class UnsupportedHandler:
    """Rejects a role the model kind has no translation policy for."""

    kind: str
    role: str
    url: str = "<memory>"

    def on_object(self, node: Node, current_regime_id: int, target_regime_id: int) -> None:
        raise UnsupportedFeatureError(
            f"{self.url}: {self.role} nodes are not supported in {self.kind} components "
            f"(found in regime {current_regime_id})"
        )


class TransitionHandler:
    """Shared state-assignment and regime-switch emission."""

    def __init__(
        self,
        stream: "CodeStream",
        multiple_regimes: bool,
        *,
        url: str = "<memory>",
        regime_variable: str = "_regimeID",
    ):
        self.stream = stream
        self.multiple_regimes = multiple_regimes
        self.url = url
        self.regime_variable = regime_variable

    def transition_statements(self, node: Transition, current_regime_id: int, target_regime_id: int) -> List[str]:
        if not self.multiple_regimes and target_regime_id != current_regime_id:
            raise ConfigurationError(
                f"{self.url}: transition to '{node.target_regime}' found in single-regime model "
                "which doesn't target itself"
            )
        statements = [assignment.as_statement() for assignment in node.state_assignments]
        if self.multiple_regimes:
            statements.append(f"{self.regime_variable} = {target_regime_id};")
        return statements


class ConditionHandler(TransitionHandler):
    """Writes ``if(trigger) { ... }`` blocks and collects spike thresholds."""

    def __init__(
        self,
        stream: "CodeStream",
        multiple_regimes: bool,
        *,
        threshold: Optional["ThresholdStream"] = None,
        spike_port: str = "spike",
        url: str = "<memory>",
        regime_variable: str = "_regimeID",
    ):
        super().__init__(stream, multiple_regimes, url=url, regime_variable=regime_variable)
        self.threshold = threshold
        self.spike_port = spike_port

    def on_object(self, node: OnCondition, current_regime_id: int, target_regime_id: int) -> None:
        statements = self.transition_statements(node, current_regime_id, target_regime_id)
        self.stream.write_lines([f"if({node.trigger}) {{", *(INDENT + s for s in statements), "}"])

        if self.threshold is not None and node.emits_event(self.spike_port):
            self.threshold.add(node.trigger, current_regime_id)


class EventHandler(TransitionHandler):
    """Weight-update response to a presynaptic event.

    Every ``ImpulseOut`` forwards its port value to the postsynaptic model.
    """

    def on_object(self, node: OnEvent, current_regime_id: int, target_regime_id: int) -> None:
        statements = self.transition_statements(node, current_regime_id, target_regime_id)
        for impulse in node.impulse_outs:
            statements.append(f"$(addtoinSyn) = {impulse.port};")
            statements.append("$(updatelinsyn);")
        self.stream.write_lines(statements)


class ImpulseHandler(TransitionHandler):
    """Postsynaptic response to the impulses accumulated since the last step."""

    def __init__(
        self,
        stream: "CodeStream",
        multiple_regimes: bool,
        *,
        input_variable: str = "inSyn",
        url: str = "<memory>",
        regime_variable: str = "_regimeID",
    ):
        super().__init__(stream, multiple_regimes, url=url, regime_variable=regime_variable)
        self.input_variable = input_variable

    def on_object(self, node: OnImpulse, current_regime_id: int, target_regime_id: int) -> None:
        token = f"$({self.input_variable})"
        statements = self.transition_statements(node, current_regime_id, target_regime_id)
        statements.append(f"{token} = 0;")
        self.stream.write_lines([f"if({token} != 0) {{", *(INDENT + s for s in statements), "}"])


class TimeDerivativeHandler:
    """Forward-Euler update of one state variable."""

    def __init__(self, stream: "CodeStream"):
        self.stream = stream

    def on_object(self, node: TimeDerivative, current_regime_id: int, target_regime_id: int) -> None:
        # TODO: pick an exact integrator for linear derivatives instead of Euler
        self.stream.write_lines([f"{node.variable} += DT * ({node.expression});"])


__all__ = [
    "ConditionHandler",
    "EventHandler",
    "ImpulseHandler",
    "NullHandler",
    "ObjectHandler",
    "ObjectHandlers",
    "TimeDerivativeHandler",
    "TransitionHandler",
    "UnsupportedHandler",
]
