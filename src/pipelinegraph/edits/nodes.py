"""Creating nodes: drop, duplicate, replace a task's component, add-and-connect.

Duplication is subgraph-aware: a copied task whose argument points at another
task of the same selection is rewired to that task's copy; references into the
rest of the graph are kept as they are.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..core.annotations import ORIGIN, Position, coerce_position, decode_position, set_position
from ..core.arguments import TaskOutputArgument
from ..core.config import DEFAULT_DUPLICATE_OFFSET, DEFAULT_NODE_WIDTH
from ..core.errors import MissingSpec, StructuralViolation, edit_operation
from ..core.ids import (
    NODE_KIND_INPUT,
    NODE_KIND_OUTPUT,
    NODE_KIND_TASK,
    handle_id_to_input_name,
    handle_id_to_output_name,
    input_name_to_handle_id,
    input_name_to_node_id,
    make_unique_name,
    node_id_to_input_name,
    node_id_to_output_name,
    node_id_to_task_id,
    node_kind,
    output_name_to_handle_id,
    output_name_to_node_id,
    task_id_to_node_id,
    unique_input_name,
    unique_output_name,
    unique_task_id,
)
from ..core.models import ComponentReference, ComponentSpec, InputSpec, OutputSpec, TaskSpec
from ..view.models import NodeType
from ._graph import require_graph, require_task, with_graph, with_task
from .connections import apply_connection


def _node_type(kind: Any) -> str:
    if isinstance(kind, NodeType):
        return kind.value
    return str(kind or "").strip().lower()


def _task_from_payload(payload: Any) -> TaskSpec:
    if isinstance(payload, TaskSpec):
        return payload
    if isinstance(payload, ComponentReference):
        return TaskSpec(component_ref=payload)
    if isinstance(payload, ComponentSpec):
        return TaskSpec(component_ref=ComponentReference(name=payload.name, spec=payload))
    raise StructuralViolation("missing_payload", "Dropping a task needs a TaskSpec or ComponentReference")


def _task_base_name(task: TaskSpec) -> str:
    ref = task.component_ref
    if ref.spec is not None and ref.spec.name:
        return ref.spec.name
    return ref.name or "Task"


def _drop_task(spec: ComponentSpec, position: Position, payload: Any) -> Tuple[ComponentSpec, str]:
    graph = require_graph(spec)
    task = _task_from_payload(payload)
    task_id = unique_task_id(graph, _task_base_name(task))
    task = replace(task, annotations=set_position(task.annotations, position))
    return with_graph(spec, with_task(graph, task_id, task)), task_id


def apply_drop_new_node(
    spec: ComponentSpec,
    kind: Any,
    position: Any,
    payload: Any = None,
) -> Tuple[ComponentSpec, str]:
    """Insert a new node; returns the new document and the new node id."""
    pos = coerce_position(position) or ORIGIN
    node_type = _node_type(kind)

    if node_type == NODE_KIND_TASK:
        out, task_id = _drop_task(spec, pos, payload)
        return out, task_id_to_node_id(task_id)

    base = payload.strip() if isinstance(payload, str) and payload.strip() else None
    if node_type == NODE_KIND_INPUT:
        name = unique_input_name(spec, base or "Input")
        inp = InputSpec(name=name, annotations=set_position({}, pos))
        return replace(spec, inputs=list(spec.inputs) + [inp]), input_name_to_node_id(name)

    if node_type == NODE_KIND_OUTPUT:
        name = unique_output_name(spec, base or "Output")
        out_spec = OutputSpec(name=name, annotations=set_position({}, pos))
        return replace(spec, outputs=list(spec.outputs) + [out_spec]), output_name_to_node_id(name)

    raise StructuralViolation("unknown_node_type", f"Cannot drop a node of type '{kind}'", ref_id=str(kind))


@edit_operation
def drop_new_node(spec: ComponentSpec, kind: Any, position: Any, payload: Any = None):
    """Add a task, graph input or graph output at `position`.

    Task ids derive from the component name ("Task" if unknown); port names
    default to "Input"/"Output". Names are made unique with a numeric suffix.
    """
    out, node_id = apply_drop_new_node(spec, kind, position, payload)
    return out, {"node_id": node_id}


@edit_operation
def duplicate_nodes(
    spec: ComponentSpec,
    node_ids: Iterable[str],
    selected: bool = True,
    offset: float = DEFAULT_DUPLICATE_OFFSET,
):
    """Copy the selected tasks under fresh ids, offset by `offset` pixels.

    Non-task nodes in the selection are ignored.
    Details: `task_id_map` (old -> new), `node_id_map`, and `selection`
    (originals deselected, copies selected) when `selected` is true.
    """
    graph = require_graph(spec)

    old_ids: List[str] = []
    for node_id in dict.fromkeys(node_ids):
        if node_kind(node_id) != NODE_KIND_TASK:
            continue
        task_id = node_id_to_task_id(node_id)
        require_task(graph, task_id)
        old_ids.append(task_id)

    if not old_ids:
        return spec, {"task_id_map": {}, "node_id_map": {}, "selection": {}}

    taken = set(graph.tasks)
    task_id_map: Dict[str, str] = {}
    for old in old_ids:
        new = make_unique_name(old, taken)
        taken.add(new)
        task_id_map[old] = new

    tasks = dict(graph.tasks)
    for old, new in task_id_map.items():
        original = graph.tasks[old]
        arguments = {}
        for name, arg in original.arguments.items():
            # Only references into the duplicated set follow the copy.
            if isinstance(arg, TaskOutputArgument) and arg.task_id in task_id_map:
                arg = replace(arg, task_id=task_id_map[arg.task_id])
            arguments[name] = arg
        position = decode_position(original.annotations).offset(offset, offset)
        tasks[new] = replace(
            original,
            arguments=arguments,
            annotations=set_position(original.annotations, position),
        )

    node_id_map = {task_id_to_node_id(o): task_id_to_node_id(n) for o, n in task_id_map.items()}
    selection: Dict[str, bool] = {}
    if selected:
        for old_node, new_node in node_id_map.items():
            selection[old_node] = False
            selection[new_node] = True

    out = with_graph(spec, replace(graph, tasks=tasks))
    return out, {"task_id_map": task_id_map, "node_id_map": node_id_map, "selection": selection}


@edit_operation
def replace_task_component(spec: ComponentSpec, task_id: str, component_ref: ComponentReference):
    """Swap the component a task runs, keeping the wiring that still fits.

    Arguments for inputs the new component lacks are dropped (reported as
    `lost_inputs`); downstream references to outputs it lacks are cleared.
    """
    graph = require_graph(spec)
    task = require_task(graph, task_id)
    new_spec = component_ref.spec
    if new_spec is None:
        raise MissingSpec("unhydrated_component", "Replacement component is not loaded", ref_id=task_id)

    new_inputs = set(new_spec.input_names())
    new_outputs = set(new_spec.output_names())

    old_spec = task.component_ref.spec
    old_input_names = old_spec.input_names() if old_spec is not None else list(task.arguments)
    lost_inputs = [name for name in old_input_names if name not in new_inputs]

    arguments = {name: arg for name, arg in task.arguments.items() if name in new_inputs}
    tasks: Dict[str, Any] = {}
    for tid, other in graph.tasks.items():
        if tid == task_id:
            tasks[tid] = replace(task, component_ref=component_ref, arguments=arguments)
            continue
        kept = {
            name: arg
            for name, arg in other.arguments.items()
            if not (isinstance(arg, TaskOutputArgument) and arg.task_id == task_id and arg.output_name not in new_outputs)
        }
        tasks[tid] = other if len(kept) == len(other.arguments) else replace(other, arguments=kept)

    output_values = {
        name: ref
        for name, ref in graph.output_values.items()
        if not (ref.task_id == task_id and ref.output_name not in new_outputs)
    }
    out = with_graph(spec, replace(graph, tasks=tasks, output_values=output_values))
    return out, {"lost_inputs": lost_inputs}


def _port_type(spec: Optional[ComponentSpec], name: str, *, output: bool) -> Any:
    if spec is None:
        return None
    port = spec.find_output(name) if output else spec.find_input(name)
    return port.type if port is not None else None


@edit_operation
def add_and_connect_node(
    spec: ComponentSpec,
    component_ref: ComponentReference,
    from_node_id: str,
    from_handle: Optional[str],
    position: Any,
    node_width: float = DEFAULT_NODE_WIDTH,
):
    """Drop a new task and wire it to the handle the user dragged from.

    The first port of the new component whose type equals the originating
    port's type is connected. Untyped or unmatched ports leave the new task
    unconnected. Details: `node_id`, `connected`.
    """
    graph = require_graph(spec)
    if component_ref.spec is None:
        raise MissingSpec("unhydrated_component", "Component to add is not loaded", ref_id=component_ref.name)

    kind = node_kind(from_node_id)
    # from_is_source: the originating handle produces a value the new task consumes.
    if kind == NODE_KIND_TASK:
        source_task = require_task(graph, node_id_to_task_id(from_node_id))
        output_name = handle_id_to_output_name(from_handle)
        input_name = handle_id_to_input_name(from_handle)
        if output_name is not None:
            from_is_source = True
            connection_type = _port_type(source_task.component_ref.spec, output_name, output=True)
        elif input_name is not None:
            from_is_source = False
            connection_type = _port_type(source_task.component_ref.spec, input_name, output=False)
        else:
            raise StructuralViolation("invalid_handle", f"Unrecognized handle '{from_handle}'", ref_id=from_node_id)
    elif kind == NODE_KIND_INPUT:
        from_is_source = True
        connection_type = _port_type(spec, node_id_to_input_name(from_node_id), output=False)
    elif kind == NODE_KIND_OUTPUT:
        from_is_source = False
        connection_type = _port_type(spec, node_id_to_output_name(from_node_id), output=True)
    else:
        raise StructuralViolation("unknown_node", f"Unrecognized node id '{from_node_id}'", ref_id=from_node_id)

    pos = coerce_position(position) or ORIGIN
    if not from_is_source:
        pos = pos.offset(-node_width, 0)

    out, task_id = _drop_task(spec, pos, component_ref)
    node_id = task_id_to_node_id(task_id)
    details: Dict[str, Any] = {"node_id": node_id, "connected": False}
    if connection_type is None:
        return out, details

    new_spec = component_ref.spec
    ports = new_spec.inputs if from_is_source else new_spec.outputs
    match = next((p.name for p in ports if p.type == connection_type), None)
    if match is None:
        return out, details

    if from_is_source:
        out = apply_connection(out, from_node_id, from_handle, node_id, input_name_to_handle_id(match))
    else:
        out = apply_connection(out, node_id, output_name_to_handle_id(match), from_node_id, from_handle)
    details["connected"] = True
    return out, details
