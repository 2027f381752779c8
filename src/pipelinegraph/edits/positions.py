"""Persisting node positions into `editor.position` annotations."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping

from ..core.annotations import POSITION_ANNOTATION, coerce_position, set_position
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
from ..core.models import ComponentSpec
from ._graph import require_graph, require_task, with_graph, with_task


def apply_position(spec: ComponentSpec, node_id: str, position: Any) -> ComponentSpec:
    pos = coerce_position(position)
    if pos is None:
        raise StructuralViolation("invalid_position", f"Malformed position {position!r}", ref_id=node_id)

    kind = node_kind(node_id)
    if kind == NODE_KIND_TASK:
        graph = require_graph(spec)
        task_id = node_id_to_task_id(node_id)
        task = require_task(graph, task_id)
        annotations = set_position(task.annotations, pos)
        if annotations.get(POSITION_ANNOTATION) == task.annotations.get(POSITION_ANNOTATION):
            return spec
        return with_graph(spec, with_task(graph, task_id, replace(task, annotations=annotations)))

    if kind == NODE_KIND_INPUT:
        name = node_id_to_input_name(node_id)
        ports = list(spec.inputs)
        field_name = "inputs"
    elif kind == NODE_KIND_OUTPUT:
        name = node_id_to_output_name(node_id)
        ports = list(spec.outputs)
        field_name = "outputs"
    else:
        raise StructuralViolation("unknown_node", f"Unrecognized node id '{node_id}'", ref_id=node_id)

    for index, port in enumerate(ports):
        if port.name != name:
            continue
        annotations = set_position(port.annotations, pos)
        if annotations.get(POSITION_ANNOTATION) == port.annotations.get(POSITION_ANNOTATION):
            return spec
        ports[index] = replace(port, annotations=annotations)
        return replace(spec, **{field_name: ports})

    raise StructuralViolation("unknown_node", f"Node '{node_id}' does not exist", ref_id=node_id)


@edit_operation
def update_positions(spec: ComponentSpec, node_id: str, position: Any) -> ComponentSpec:
    """Write a node's position, keeping every other annotation."""
    return apply_position(spec, node_id, position)


@edit_operation
def update_positions_many(spec: ComponentSpec, positions: Mapping[str, Any]) -> ComponentSpec:
    """Write several positions at once (drag of a multi-selection); all or nothing."""
    out = spec
    for node_id, position in positions.items():
        out = apply_position(out, node_id, position)
    return out
