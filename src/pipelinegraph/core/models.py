"""pipelinegraph.core.models

In-memory document model for pipeline (graph component) specifications.

Documents are immutable trees of frozen dataclasses. Edits build new trees and
reuse every untouched subtree (structural sharing); dict and list fields are
never mutated after construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .arguments import ArgumentValue, TaskOutputArgument


@dataclass(frozen=True)
class InputSpec:
    name: str
    type: Any = None
    description: Optional[str] = None
    default: Optional[str] = None
    optional: bool = False
    annotations: Dict[str, Any] = field(default_factory=dict)
    # Wire keys not modelled above, carried through load/dump unchanged.
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OutputSpec:
    name: str
    type: Any = None
    description: Optional[str] = None
    annotations: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ContainerImplementation:
    """Container implementation; kept opaque (image, command, args, env...)."""

    container: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ComponentReference:
    """Locates a component by name/digest/url or carries it inline.

    `spec` is None until the reference is hydrated by a resolver.
    """

    name: Optional[str] = None
    digest: Optional[str] = None
    tag: Optional[str] = None
    url: Optional[str] = None
    spec: Optional["ComponentSpec"] = None
    text: Optional[str] = None

    @property
    def is_hydrated(self) -> bool:
        return self.spec is not None


@dataclass(frozen=True)
class TaskSpec:
    component_ref: ComponentReference
    arguments: Dict[str, ArgumentValue] = field(default_factory=dict)
    annotations: Dict[str, Any] = field(default_factory=dict)
    is_enabled: Optional[Dict[str, Any]] = None
    execution_options: Optional[Dict[str, Any]] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class GraphSpec:
    tasks: Dict[str, TaskSpec] = field(default_factory=dict)
    output_values: Dict[str, TaskOutputArgument] = field(default_factory=dict)


@dataclass(frozen=True)
class GraphImplementation:
    graph: GraphSpec = field(default_factory=GraphSpec)


Implementation = Union[ContainerImplementation, GraphImplementation]


@dataclass(frozen=True)
class ComponentSpec:
    """A component: typed inputs/outputs plus a container or graph implementation.

    A pipeline is a component whose implementation is a graph.
    """

    implementation: Implementation
    name: Optional[str] = None
    description: Optional[str] = None
    inputs: List[InputSpec] = field(default_factory=list)
    outputs: List[OutputSpec] = field(default_factory=list)
    annotations: Dict[str, Any] = field(default_factory=dict)
    # `metadata` keys other than `annotations`, and unknown top-level keys.
    metadata: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_graph(self) -> bool:
        return isinstance(self.implementation, GraphImplementation)

    @property
    def graph(self) -> Optional[GraphSpec]:
        impl = self.implementation
        return impl.graph if isinstance(impl, GraphImplementation) else None

    def input_names(self) -> List[str]:
        return [i.name for i in self.inputs]

    def output_names(self) -> List[str]:
        return [o.name for o in self.outputs]

    def find_input(self, name: str) -> Optional[InputSpec]:
        for i in self.inputs:
            if i.name == name:
                return i
        return None

    def find_output(self, name: str) -> Optional[OutputSpec]:
        for o in self.outputs:
            if o.name == name:
                return o
        return None


# The root document edited by the session.
PipelineSpec = ComponentSpec


def new_graph_pipeline(name: Optional[str] = None, *, annotations: Optional[Dict[str, Any]] = None) -> ComponentSpec:
    """Return an empty graph pipeline (no inputs, outputs or tasks)."""
    return ComponentSpec(
        implementation=GraphImplementation(graph=GraphSpec()),
        name=name,
        annotations=dict(annotations or {}),
    )
