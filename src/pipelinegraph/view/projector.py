"""Pipeline document -> view graph projection.

`project()` is a pure, total function: the same document always yields the same
nodes and edges with the same ids, so re-rendering after an edit is diff-free
for everything the edit did not touch. Edges are never stored; they are derived
from task arguments and graph output values on every call.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from ..core.annotations import STATUS_ANNOTATION, decode_position
from ..core.arguments import GraphInputArgument, LiteralArgument, TaskOutputArgument
from ..core.ids import (
    input_name_to_handle_id,
    input_name_to_node_id,
    output_name_to_handle_id,
    output_name_to_node_id,
    task_id_to_node_id,
)
from ..core.models import ComponentSpec, GraphSpec, TaskSpec
from .models import NodeType, ViewEdge, ViewGraph, ViewNode


def task_edge_id(source_task_id: str, output_name: str, task_id: str, input_name: str) -> str:
    return f"{source_task_id}_{output_name}-{task_id}_{input_name}"


def graph_input_edge_id(graph_input_name: str, task_id: str, input_name: str) -> str:
    return f"Input_{graph_input_name}-{task_id}_{input_name}"


def graph_output_edge_id(source_task_id: str, output_name: str, graph_output_name: str) -> str:
    return f"{source_task_id}_{output_name}-Output_{graph_output_name}"


def _task_node(task_id: str, task: TaskSpec, selected: frozenset) -> ViewNode:
    node_id = task_id_to_node_id(task_id)
    ref = task.component_ref
    data: Dict[str, Any] = {
        "task_id": task_id,
        "task_spec": task,
        "component_name": ref.spec.name if ref.spec is not None else ref.name,
        "hydrated": ref.is_hydrated,
    }
    status = task.annotations.get(STATUS_ANNOTATION)
    if isinstance(status, str) and status:
        data["status"] = status
    return ViewNode(
        id=node_id,
        type=NodeType.TASK.value,
        position=decode_position(task.annotations),
        data=data,
        selected=node_id in selected,
    )


def project_nodes(spec: ComponentSpec, selected: Iterable[str] = ()) -> List[ViewNode]:
    graph = spec.graph
    if graph is None:
        return []
    sel = frozenset(selected)

    nodes = [_task_node(task_id, task, sel) for task_id, task in graph.tasks.items()]
    for inp in spec.inputs:
        node_id = input_name_to_node_id(inp.name)
        nodes.append(
            ViewNode(
                id=node_id,
                type=NodeType.INPUT.value,
                position=decode_position(inp.annotations),
                data={"input_name": inp.name, "input_spec": inp},
                selected=node_id in sel,
            )
        )
    for out in spec.outputs:
        node_id = output_name_to_node_id(out.name)
        nodes.append(
            ViewNode(
                id=node_id,
                type=NodeType.OUTPUT.value,
                position=decode_position(out.annotations),
                data={"output_name": out.name, "output_spec": out},
                selected=node_id in sel,
            )
        )
    return nodes


def _edges_for_task(task_id: str, task: TaskSpec) -> List[ViewEdge]:
    edges: List[ViewEdge] = []
    target = task_id_to_node_id(task_id)
    for input_name, argument in task.arguments.items():
        target_handle = input_name_to_handle_id(input_name)
        if isinstance(argument, LiteralArgument):
            continue
        if isinstance(argument, TaskOutputArgument):
            edges.append(
                ViewEdge(
                    id=task_edge_id(argument.task_id, argument.output_name, task_id, input_name),
                    source=task_id_to_node_id(argument.task_id),
                    source_handle=output_name_to_handle_id(argument.output_name),
                    target=target,
                    target_handle=target_handle,
                )
            )
        elif isinstance(argument, GraphInputArgument):
            edges.append(
                ViewEdge(
                    id=graph_input_edge_id(argument.input_name, task_id, input_name),
                    source=input_name_to_node_id(argument.input_name),
                    source_handle=None,
                    target=target,
                    target_handle=target_handle,
                )
            )
    return edges


def project_edges(spec: ComponentSpec) -> List[ViewEdge]:
    graph = spec.graph
    if graph is None:
        return []
    return _task_edges(graph) + _output_edges(graph)


def _task_edges(graph: GraphSpec) -> List[ViewEdge]:
    edges: List[ViewEdge] = []
    for task_id, task in graph.tasks.items():
        edges.extend(_edges_for_task(task_id, task))
    return edges


def _output_edges(graph: GraphSpec) -> List[ViewEdge]:
    edges: List[ViewEdge] = []
    for output_name, ref in graph.output_values.items():
        edges.append(
            ViewEdge(
                id=graph_output_edge_id(ref.task_id, ref.output_name, output_name),
                source=task_id_to_node_id(ref.task_id),
                source_handle=output_name_to_handle_id(ref.output_name),
                target=output_name_to_node_id(output_name),
                target_handle=None,
            )
        )
    return edges


def project(spec: ComponentSpec, selected: Iterable[str] = ()) -> ViewGraph:
    """Derive the full view graph for a pipeline document.

    Non-graph implementations project to an empty graph.
    """
    return ViewGraph(nodes=project_nodes(spec, selected), edges=project_edges(spec))
