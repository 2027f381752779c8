"""Renaming graph inputs and outputs.

A rename is only committed when the new name is free in the same list; every
reference to the old name moves with it in the same document.
"""

from __future__ import annotations

from dataclasses import replace

from ..core.arguments import GraphInputArgument
from ..core.errors import StructuralViolation, edit_operation
from ..core.ids import NODE_KIND_INPUT, NODE_KIND_OUTPUT
from ..core.models import ComponentSpec


def _rename_input(spec: ComponentSpec, old: str, new: str) -> ComponentSpec:
    inputs = [replace(i, name=new) if i.name == old else i for i in spec.inputs]
    out = replace(spec, inputs=inputs)

    graph = spec.graph
    if graph is None:
        return out

    tasks = {}
    changed = False
    for task_id, task in graph.tasks.items():
        arguments = {}
        touched = False
        for name, arg in task.arguments.items():
            if isinstance(arg, GraphInputArgument) and arg.input_name == old:
                arg = replace(arg, input_name=new)
                touched = True
            arguments[name] = arg
        tasks[task_id] = replace(task, arguments=arguments) if touched else task
        changed = changed or touched

    if not changed:
        return out
    return replace(out, implementation=replace(spec.implementation, graph=replace(graph, tasks=tasks)))


def _rename_output(spec: ComponentSpec, old: str, new: str) -> ComponentSpec:
    outputs = [replace(o, name=new) if o.name == old else o for o in spec.outputs]
    out = replace(spec, outputs=outputs)

    graph = spec.graph
    if graph is None or old not in graph.output_values:
        return out

    # Rebuild in place order so the renamed entry keeps its position.
    output_values = {(new if k == old else k): v for k, v in graph.output_values.items()}
    return replace(out, implementation=replace(spec.implementation, graph=replace(graph, output_values=output_values)))


def apply_rename_port(spec: ComponentSpec, old_name: str, new_name: str, kind: str) -> ComponentSpec:
    kind_s = str(kind or "").strip().lower()
    if kind_s == NODE_KIND_INPUT:
        names = spec.input_names()
    elif kind_s == NODE_KIND_OUTPUT:
        names = spec.output_names()
    else:
        raise StructuralViolation("invalid_port_kind", f"Port kind must be 'input' or 'output' (got '{kind}')")

    if old_name not in names:
        raise StructuralViolation("unknown_port", f"No {kind_s} named '{old_name}'", ref_id=old_name)
    if not isinstance(new_name, str) or not new_name.strip():
        raise StructuralViolation("invalid_name", "Port name must be a non-empty string", ref_id=old_name)
    if new_name == old_name:
        return spec
    if new_name in names:
        raise StructuralViolation("duplicate_name", f"An {kind_s} named '{new_name}' already exists", ref_id=new_name)

    if kind_s == NODE_KIND_INPUT:
        return _rename_input(spec, old_name, new_name)
    return _rename_output(spec, old_name, new_name)


@edit_operation
def rename_port(spec: ComponentSpec, old_name: str, new_name: str, kind: str) -> ComponentSpec:
    """Rename a graph input (`kind="input"`) or output (`kind="output"`) and its references."""
    return apply_rename_port(spec, old_name, new_name, kind)
