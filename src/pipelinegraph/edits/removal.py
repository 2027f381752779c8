"""Deleting tasks and graph ports, with reference cascades.

Every removal first clears the references that point at the entity being
removed and only then drops the entity itself, so the returned document never
contains a dangling reference.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List

from ..core.arguments import references_graph_input, references_task
from ..core.errors import StructuralViolation, edit_operation
from ..core.ids import (
    NODE_KIND_INPUT,
    NODE_KIND_OUTPUT,
    NODE_KIND_TASK,
    node_id_to_input_name,
    node_id_to_output_name,
    node_id_to_task_id,
    node_kind,
)
from ..core.models import ComponentSpec, GraphSpec, TaskSpec
from ._graph import require_graph, require_task, with_graph


def _tasks_without_references(graph: GraphSpec, predicate) -> Dict[str, TaskSpec]:
    """Return the task map with every argument matching `predicate` cleared.

    Tasks without a matching argument are reused as-is.
    """
    tasks: Dict[str, TaskSpec] = {}
    for task_id, task in graph.tasks.items():
        kept = {name: arg for name, arg in task.arguments.items() if not predicate(arg)}
        tasks[task_id] = task if len(kept) == len(task.arguments) else replace(task, arguments=kept)
    return tasks


def apply_remove_task(spec: ComponentSpec, task_id: str) -> ComponentSpec:
    graph = require_graph(spec)
    require_task(graph, task_id)

    # 1) consumers of this task's outputs
    tasks = _tasks_without_references(graph, lambda arg: references_task(arg, task_id))
    # 2) graph outputs fed by this task
    output_values = {name: ref for name, ref in graph.output_values.items() if ref.task_id != task_id}
    # 3) the task itself
    tasks.pop(task_id, None)

    return with_graph(spec, replace(graph, tasks=tasks, output_values=output_values))


def apply_remove_component_input(spec: ComponentSpec, input_name: str) -> ComponentSpec:
    if spec.find_input(input_name) is None:
        raise StructuralViolation("unknown_input", f"Graph input '{input_name}' does not exist", ref_id=input_name)

    out = spec
    graph = spec.graph
    if graph is not None:
        tasks = _tasks_without_references(graph, lambda arg: references_graph_input(arg, input_name))
        if any(tasks[tid] is not graph.tasks[tid] for tid in tasks):
            out = with_graph(spec, replace(graph, tasks=tasks))

    inputs = [i for i in spec.inputs if i.name != input_name]
    return replace(out, inputs=inputs)


def apply_remove_component_output(spec: ComponentSpec, output_name: str) -> ComponentSpec:
    if spec.find_output(output_name) is None:
        raise StructuralViolation("unknown_output", f"Graph output '{output_name}' does not exist", ref_id=output_name)

    out = spec
    graph = spec.graph
    # Only outputValues can reference a graph output.
    if graph is not None and output_name in graph.output_values:
        output_values = {k: v for k, v in graph.output_values.items() if k != output_name}
        out = with_graph(spec, replace(graph, output_values=output_values))

    outputs = [o for o in spec.outputs if o.name != output_name]
    return replace(out, outputs=outputs)


def apply_remove_node(spec: ComponentSpec, node_id: str) -> ComponentSpec:
    kind = node_kind(node_id)
    if kind == NODE_KIND_TASK:
        return apply_remove_task(spec, node_id_to_task_id(node_id))
    if kind == NODE_KIND_INPUT:
        return apply_remove_component_input(spec, node_id_to_input_name(node_id))
    if kind == NODE_KIND_OUTPUT:
        return apply_remove_component_output(spec, node_id_to_output_name(node_id))
    raise StructuralViolation("unknown_node", f"Unrecognized node id '{node_id}'", ref_id=node_id)


@edit_operation
def remove_task(spec: ComponentSpec, task_id: str) -> ComponentSpec:
    """Delete a task and every argument / graph output referencing it."""
    return apply_remove_task(spec, task_id)


@edit_operation
def remove_component_input(spec: ComponentSpec, input_name: str) -> ComponentSpec:
    """Delete a graph input after clearing every task argument that forwards it."""
    return apply_remove_component_input(spec, input_name)


@edit_operation
def remove_component_output(spec: ComponentSpec, output_name: str) -> ComponentSpec:
    """Delete a graph output and its output value."""
    return apply_remove_component_output(spec, output_name)


@edit_operation
def remove_node(spec: ComponentSpec, node_id: str) -> ComponentSpec:
    return apply_remove_node(spec, node_id)


@edit_operation
def remove_nodes(spec: ComponentSpec, node_ids: Iterable[str]):
    """Delete several nodes; either all removals apply or none do."""
    removed: List[str] = []
    out = spec
    for node_id in dict.fromkeys(node_ids):
        out = apply_remove_node(out, node_id)
        removed.append(node_id)
    return out, {"removed": removed}
