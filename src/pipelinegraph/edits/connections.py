"""Connecting and disconnecting ports; single-slot argument writes.

A connection goes from a task output handle or a graph input node to a task
input handle or a graph output node. Graph input -> graph output has no
representation in the document format and is rejected.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional

from ..core.arguments import (
    ArgumentValue,
    GraphInputArgument,
    TaskOutputArgument,
    classify_argument,
)
from ..core.errors import InvalidArgumentError, StructuralViolation, edit_operation
from ..core.ids import (
    NODE_KIND_INPUT,
    NODE_KIND_OUTPUT,
    NODE_KIND_TASK,
    handle_id_to_input_name,
    handle_id_to_output_name,
    node_id_to_input_name,
    node_id_to_output_name,
    node_id_to_task_id,
    node_kind,
)
from ..core.models import ComponentSpec, GraphSpec, TaskSpec
from ..view.models import load_connection, load_view_edge
from ._graph import downstream_task_ids, require_graph, require_task, with_graph, with_task


def _check_task_output(graph: GraphSpec, task_id: str, output_name: str) -> None:
    source = require_task(graph, task_id)
    spec = source.component_ref.spec
    if spec is not None and spec.find_output(output_name) is None:
        raise StructuralViolation(
            "unknown_port",
            f"Task '{task_id}' has no output '{output_name}'",
            ref_id=task_id,
        )


def _check_task_input(task_id: str, task: TaskSpec, input_name: str) -> None:
    spec = task.component_ref.spec
    if spec is not None and spec.find_input(input_name) is None:
        raise StructuralViolation(
            "unknown_port",
            f"Task '{task_id}' has no input '{input_name}'",
            ref_id=task_id,
        )


def _coerce_value(value: Any) -> ArgumentValue:
    try:
        return classify_argument(value)
    except InvalidArgumentError as e:
        raise StructuralViolation("invalid_argument", str(e)) from e


def apply_task_argument(
    spec: ComponentSpec,
    task_id: str,
    input_name: str,
    value: Optional[Any] = None,
) -> ComponentSpec:
    graph = require_graph(spec)
    task = require_task(graph, task_id)

    if value is None:
        if input_name not in task.arguments:
            return spec
        arguments = {k: v for k, v in task.arguments.items() if k != input_name}
        return with_graph(spec, with_task(graph, task_id, replace(task, arguments=arguments)))

    argument = _coerce_value(value)
    if isinstance(argument, TaskOutputArgument):
        _check_task_output(graph, argument.task_id, argument.output_name)
        # task_id -> source would close a cycle if source already consumes task_id.
        if argument.task_id == task_id or argument.task_id in downstream_task_ids(graph, task_id):
            raise StructuralViolation(
                "would_create_cycle",
                f"Connecting '{argument.task_id}' to '{task_id}' would create a cycle",
                ref_id=task_id,
            )
    elif isinstance(argument, GraphInputArgument):
        if spec.find_input(argument.input_name) is None:
            raise StructuralViolation(
                "unknown_input",
                f"Graph input '{argument.input_name}' does not exist",
                ref_id=argument.input_name,
            )

    if task.arguments.get(input_name) == argument:
        return spec

    arguments = dict(task.arguments)
    arguments[input_name] = argument
    return with_graph(spec, with_task(graph, task_id, replace(task, arguments=arguments)))


def apply_graph_output_value(
    spec: ComponentSpec,
    output_name: str,
    value: Optional[Any] = None,
) -> ComponentSpec:
    graph = require_graph(spec)

    if value is None:
        if output_name not in graph.output_values:
            return spec
        output_values = {k: v for k, v in graph.output_values.items() if k != output_name}
        return with_graph(spec, replace(graph, output_values=output_values))

    if spec.find_output(output_name) is None:
        raise StructuralViolation(
            "unknown_output",
            f"Graph output '{output_name}' does not exist",
            ref_id=output_name,
        )
    argument = _coerce_value(value)
    if not isinstance(argument, TaskOutputArgument):
        raise StructuralViolation(
            "unrepresentable_connection",
            f"Graph output '{output_name}' can only take a task output",
            ref_id=output_name,
        )
    _check_task_output(graph, argument.task_id, argument.output_name)

    if graph.output_values.get(output_name) == argument:
        return spec
    output_values = dict(graph.output_values)
    output_values[output_name] = argument
    return with_graph(spec, replace(graph, output_values=output_values))


def apply_connection(
    spec: ComponentSpec,
    source: str,
    source_handle: Optional[str],
    target: str,
    target_handle: Optional[str],
) -> ComponentSpec:
    graph = require_graph(spec)

    source_kind = node_kind(source)
    argument: ArgumentValue
    if source_kind == NODE_KIND_TASK:
        output_name = handle_id_to_output_name(source_handle)
        if output_name is None:
            raise StructuralViolation(
                "invalid_source",
                f"Connection must start at an output handle (got '{source_handle}')",
                ref_id=source,
            )
        source_task_id = node_id_to_task_id(source)
        require_task(graph, source_task_id)
        argument = TaskOutputArgument(task_id=source_task_id, output_name=output_name)
    elif source_kind == NODE_KIND_INPUT:
        input_name = node_id_to_input_name(source)
        if spec.find_input(input_name) is None:
            raise StructuralViolation("unknown_input", f"Graph input '{input_name}' does not exist", ref_id=source)
        argument = GraphInputArgument(input_name=input_name)
    else:
        raise StructuralViolation("invalid_source", f"'{source}' cannot be a connection source", ref_id=source)

    target_kind = node_kind(target)
    if target_kind == NODE_KIND_TASK:
        input_name = handle_id_to_input_name(target_handle)
        if input_name is None:
            raise StructuralViolation(
                "invalid_target",
                f"Connection must end at an input handle (got '{target_handle}')",
                ref_id=target,
            )
        task_id = node_id_to_task_id(target)
        task = require_task(graph, task_id)
        _check_task_input(task_id, task, input_name)
        return apply_task_argument(spec, task_id, input_name, argument)

    if target_kind == NODE_KIND_OUTPUT:
        if isinstance(argument, GraphInputArgument):
            raise StructuralViolation(
                "unrepresentable_connection",
                "Cannot connect a graph input directly to a graph output",
                ref_id=target,
            )
        return apply_graph_output_value(spec, node_id_to_output_name(target), argument)

    raise StructuralViolation("invalid_target", f"'{target}' cannot be a connection target", ref_id=target)


@edit_operation
def set_task_argument(
    spec: ComponentSpec,
    task_id: str,
    input_name: str,
    value: Optional[Any] = None,
) -> ComponentSpec:
    """Replace one argument slot of one task (`value=None` clears it back to the default)."""
    return apply_task_argument(spec, task_id, input_name, value)


@edit_operation
def set_graph_output_value(spec: ComponentSpec, output_name: str, value: Optional[Any] = None) -> ComponentSpec:
    """Point a graph output at a task output (`value=None` removes the entry)."""
    return apply_graph_output_value(spec, output_name, value)


@edit_operation
def connect(
    spec: ComponentSpec,
    source: str,
    source_handle: Optional[str],
    target: str,
    target_handle: Optional[str],
) -> ComponentSpec:
    return apply_connection(spec, source, source_handle, target, target_handle)


@edit_operation
def connect_edge(spec: ComponentSpec, connection: Any) -> ComponentSpec:
    """`connect` taking a `Connection` or a rendering-layer connection dict."""
    conn = load_connection(connection)
    if conn is None:
        raise StructuralViolation("malformed_event", f"Malformed connection: {connection!r}")
    return apply_connection(spec, conn.source, conn.source_handle, conn.target, conn.target_handle)


def apply_disconnect(spec: ComponentSpec, edge: Any) -> ComponentSpec:
    view_edge = load_view_edge(edge)
    if view_edge is None:
        raise StructuralViolation("malformed_event", f"Malformed edge: {edge!r}")

    input_name = handle_id_to_input_name(view_edge.target_handle)
    if input_name is not None:
        return apply_task_argument(spec, node_id_to_task_id(view_edge.target), input_name, None)

    if node_kind(view_edge.target) == NODE_KIND_OUTPUT:
        return apply_graph_output_value(spec, node_id_to_output_name(view_edge.target), None)

    raise StructuralViolation(
        "invalid_target",
        f"Edge '{view_edge.id}' does not end at a task input or graph output",
        ref_id=view_edge.id,
    )


@edit_operation
def disconnect(spec: ComponentSpec, edge: Any) -> ComponentSpec:
    """Remove the reference an edge was derived from."""
    return apply_disconnect(spec, edge)

