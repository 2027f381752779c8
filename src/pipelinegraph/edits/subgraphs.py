"""Nested graphs: collapsing a selection into a subgraph task, editing by path.

A subgraph is a task whose (hydrated) component is itself a graph component.
Nested graphs are addressed by a path of task ids from the root document,
optionally starting with `"root"`:

    ["root", "Preprocess", "Clean"]  # task "Clean" inside task "Preprocess"

Writing a nested graph back keeps the parent consistent: renamed inputs and
outputs (same count, different name at the same position) are followed by the
subgraph task's arguments and by the parent's references to its outputs;
removed ones are cleared the same way a task removal clears them.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from ..core.annotations import Position, decode_position, set_position
from ..core.arguments import ArgumentValue, GraphInputArgument, TaskOutputArgument
from ..core.errors import EditError, EditResult, StructuralViolation, edit_operation
from ..core.ids import (
    NODE_KIND_INPUT,
    NODE_KIND_OUTPUT,
    NODE_KIND_TASK,
    make_unique_name,
    node_id_to_input_name,
    node_id_to_output_name,
    node_id_to_task_id,
    node_kind,
    task_id_to_node_id,
)
from ..core.models import ComponentReference, ComponentSpec, GraphImplementation, GraphSpec, InputSpec, OutputSpec, TaskSpec
from ..logging import get_logger
from ..serialization import PIPELINE_EDITOR_SDK, SDK_ANNOTATION
from ._graph import downstream_task_ids, require_graph, require_task, with_graph

logger = get_logger(__name__)

ROOT_PATH_ID = "root"
SUBGRAPH_NAME = "Generated Subgraph"
FLOW_DIRECTION_ANNOTATION = "editor.flow-direction"

# Layout of the generated subgraph's input/output nodes, relative to its tasks.
_INPUT_X = -150.0
_OUTPUT_MARGIN = 50.0
_IO_SPACING = 80.0

SubgraphPath = Union[str, Sequence[str]]


def is_subgraph(task: TaskSpec) -> bool:
    spec = task.component_ref.spec
    return spec is not None and spec.is_graph


def subgraph_task_count(task: TaskSpec) -> int:
    if not is_subgraph(task):
        return 0
    return len(task.component_ref.spec.graph.tasks)


def subgraph_description(task: TaskSpec) -> str:
    """"3 tasks", "1 task", "Empty subgraph"; empty string for non-subgraph tasks."""
    if not is_subgraph(task):
        return ""
    count = subgraph_task_count(task)
    if count == 0:
        return "Empty subgraph"
    return f"{count} task" if count == 1 else f"{count} tasks"


def _normalize_path(path: SubgraphPath) -> List[str]:
    parts = [path] if isinstance(path, str) else list(path or [])
    if parts and parts[0] == ROOT_PATH_ID:
        parts = parts[1:]
    return parts


def _nested_spec(graph: GraphSpec, task_id: str) -> ComponentSpec:
    task = require_task(graph, task_id)
    if not is_subgraph(task):
        raise StructuralViolation("not_a_subgraph", f"Task '{task_id}' is not a subgraph", ref_id=task_id)
    return task.component_ref.spec


def get_subgraph_spec(spec: ComponentSpec, path: SubgraphPath) -> ComponentSpec:
    """Return the component spec of the nested graph at `path` (the root for an empty path).

    Raises:
        StructuralViolation: a path segment is missing or is not a subgraph task
    """
    current = spec
    for task_id in _normalize_path(path):
        current = _nested_spec(require_graph(current), task_id)
    return current


def _positional_renames(old: List[str], new: List[str]) -> Dict[str, str]:
    if len(old) != len(new):
        return {}
    return {o: n for o, n in zip(old, new) if o != n}


def _follow_output(ref: TaskOutputArgument, task_id: str, renames: Dict[str, str], kept: Set[str]):
    """Rewrite a reference to one of `task_id`'s outputs; None when that output is gone."""
    if ref.task_id != task_id:
        return ref
    name = renames.get(ref.output_name, ref.output_name)
    if name not in kept:
        return None
    return ref if name == ref.output_name else replace(ref, output_name=name)


def _put_subgraph(parent: ComponentSpec, task_id: str, new_nested: ComponentSpec) -> ComponentSpec:
    graph = require_graph(parent)
    task = graph.tasks[task_id]
    old_nested = task.component_ref.spec

    input_renames = _positional_renames(old_nested.input_names(), new_nested.input_names())
    output_renames = _positional_renames(old_nested.output_names(), new_nested.output_names())
    inputs = set(new_nested.input_names())
    outputs = set(new_nested.output_names())

    arguments: Dict[str, ArgumentValue] = {}
    for name, arg in task.arguments.items():
        name = input_renames.get(name, name)
        if name in inputs:
            arguments[name] = arg
    # The fetched text and digest describe the previous content.
    component_ref = replace(task.component_ref, spec=new_nested, text=None, digest=None)

    tasks: Dict[str, TaskSpec] = {}
    for tid, other in graph.tasks.items():
        if tid == task_id:
            tasks[tid] = replace(task, component_ref=component_ref, arguments=arguments)
            continue
        rewritten: Dict[str, ArgumentValue] = {}
        for name, arg in other.arguments.items():
            if isinstance(arg, TaskOutputArgument):
                arg = _follow_output(arg, task_id, output_renames, outputs)
                if arg is None:
                    continue
            rewritten[name] = arg
        same = rewritten.keys() == other.arguments.keys() and all(
            rewritten[k] is other.arguments[k] for k in rewritten
        )
        tasks[tid] = other if same else replace(other, arguments=rewritten)

    output_values: Dict[str, TaskOutputArgument] = {}
    for name, ref in graph.output_values.items():
        followed = _follow_output(ref, task_id, output_renames, outputs)
        if followed is not None:
            output_values[name] = followed

    return with_graph(parent, replace(graph, tasks=tasks, output_values=output_values))


def apply_replace_subgraph(spec: ComponentSpec, path: SubgraphPath, new_nested: ComponentSpec) -> ComponentSpec:
    parts = _normalize_path(path)
    if not parts:
        return new_nested
    graph = require_graph(spec)
    nested = _nested_spec(graph, parts[0])
    updated = apply_replace_subgraph(nested, parts[1:], new_nested)
    if updated is nested:
        return spec
    return _put_subgraph(spec, parts[0], updated)


@edit_operation
def replace_subgraph_spec(spec: ComponentSpec, path: SubgraphPath, new_nested: ComponentSpec):
    """Swap in a new component spec for the nested graph at `path`, cascading into every parent level."""
    return apply_replace_subgraph(spec, path, new_nested)


def edit_subgraph(
    spec: ComponentSpec,
    path: SubgraphPath,
    operation: Callable[..., EditResult],
    *args: Any,
    **kwargs: Any,
) -> EditResult:
    """Run an edit operation against the nested graph at `path`.

    The operation sees the nested component spec as its document; on success
    the change is written back up to the root. The returned `spec` is always a
    root document. Selection details are dropped: they name nodes of the
    nested level, not of the root view.
    """
    try:
        nested = get_subgraph_spec(spec, path)
    except EditError as e:
        logger.debug("Rejected subgraph edit", code=e.code, ref_id=e.ref_id, reason=e.message)
        return EditResult(spec=spec, error=e)

    result = operation(nested, *args, **kwargs)
    details = {k: v for k, v in result.details.items() if k != "selection"}
    if not result.ok or not result.changed:
        return EditResult(spec=spec, error=result.error, details=details)

    out = apply_replace_subgraph(spec, path, result.spec)
    return EditResult(spec=out, changed=out is not spec, details=details)


# ----------------------------------------------------------------------
# Collapsing a selection
# ----------------------------------------------------------------------


def _output_type(graph: GraphSpec, task_id: str, output_name: str) -> Any:
    source = graph.tasks.get(task_id)
    nested = source.component_ref.spec if source is not None else None
    port = nested.find_output(output_name) if nested is not None else None
    return port.type if port is not None else None


class _Boundary:
    """Nested ports created for values crossing the selection boundary, one per distinct source."""

    def __init__(self):
        self.inputs: List[InputSpec] = []
        self.outputs: List[OutputSpec] = []
        self.arguments: Dict[str, ArgumentValue] = {}
        self.output_values: Dict[str, TaskOutputArgument] = {}
        self._input_by_source: Dict[Tuple[str, ...], str] = {}
        self._output_by_source: Dict[Tuple[str, str], str] = {}

    def input_for(self, key: Tuple[str, ...], preferred: str, source: ArgumentValue, port_type: Any) -> str:
        name = self._input_by_source.get(key)
        if name is None:
            name = make_unique_name(preferred, [i.name for i in self.inputs])
            self._input_by_source[key] = name
            self.inputs.append(InputSpec(name=name, type=port_type))
            self.arguments[name] = source
        return name

    def output_for(self, task_id: str, output_name: str, preferred: str, port_type: Any) -> str:
        key = (task_id, output_name)
        name = self._output_by_source.get(key)
        if name is None:
            name = make_unique_name(preferred, [o.name for o in self.outputs])
            self._output_by_source[key] = name
            self.outputs.append(OutputSpec(name=name, type=port_type))
            self.output_values[name] = TaskOutputArgument(task_id=task_id, output_name=output_name)
        return name

    def outer_name(self, ref: TaskOutputArgument) -> str:
        return self._output_by_source[(ref.task_id, ref.output_name)]


def _io_positions(count: int, x: float, height: float) -> List[Position]:
    start = max(0.0, height / 2 - (count - 1) * _IO_SPACING / 2)
    return [Position(x, start + i * _IO_SPACING) for i in range(count)]


def _read_selection(spec: ComponentSpec, graph: GraphSpec, node_ids: Iterable[str]):
    task_ids: List[str] = []
    input_names: Set[str] = set()
    output_names: Set[str] = set()
    positions: List[Position] = []
    for node_id in dict.fromkeys(node_ids):
        kind = node_kind(node_id)
        if kind == NODE_KIND_TASK:
            task_id = node_id_to_task_id(node_id)
            task_ids.append(task_id)
            positions.append(decode_position(require_task(graph, task_id).annotations))
        elif kind == NODE_KIND_INPUT:
            name = node_id_to_input_name(node_id)
            inp = spec.find_input(name)
            if inp is None:
                raise StructuralViolation("unknown_input", f"Graph input '{name}' does not exist", ref_id=name)
            input_names.add(name)
            positions.append(decode_position(inp.annotations))
        elif kind == NODE_KIND_OUTPUT:
            name = node_id_to_output_name(node_id)
            out = spec.find_output(name)
            if out is None:
                raise StructuralViolation("unknown_output", f"Graph output '{name}' does not exist", ref_id=name)
            output_names.add(name)
            positions.append(decode_position(out.annotations))
        else:
            raise StructuralViolation("unknown_node", f"Unrecognized node id '{node_id}'", ref_id=str(node_id))
    return task_ids, input_names, output_names, positions


def _check_convex(graph: GraphSpec, selected: Set[str]) -> None:
    # A task outside the selection that both consumes from it and feeds it
    # would depend on the subgraph task and vice versa.
    outside: Set[str] = set()
    for task_id in selected:
        outside |= downstream_task_ids(graph, task_id) - selected
    for task_id in outside:
        if downstream_task_ids(graph, task_id) & selected:
            raise StructuralViolation(
                "would_create_cycle",
                f"Task '{task_id}' lies between selected tasks; the subgraph would depend on itself",
                ref_id=task_id,
            )


@edit_operation
def create_subgraph_from_nodes(spec: ComponentSpec, node_ids: Iterable[str], name: Optional[str] = None):
    """Collapse the selected tasks into one task running a generated graph component.

    Values flowing into the selection become inputs of the nested graph (the
    new task passes the original sources as arguments); outputs consumed
    outside the selection become its outputs and the consumers are rewired to
    the new task. Selected graph input/output nodes stay in the parent and only
    lend their names to the nested ports. Details: `task_id`, `node_id`,
    `selection`.
    """
    graph = require_graph(spec)
    task_ids, input_names, output_names, positions = _read_selection(spec, graph, node_ids)
    if not task_ids:
        raise StructuralViolation("empty_selection", "Select at least one task to create a subgraph")
    selected = set(task_ids)
    _check_convex(graph, selected)

    min_x = min(p.x for p in positions)
    min_y = min(p.y for p in positions)
    width = max(p.x for p in positions) - min_x
    height = max(p.y for p in positions) - min_y

    boundary = _Boundary()
    nested_tasks: Dict[str, TaskSpec] = {}
    for task_id in task_ids:
        task = graph.tasks[task_id]
        arguments: Dict[str, ArgumentValue] = {}
        for arg_name, arg in task.arguments.items():
            if isinstance(arg, TaskOutputArgument) and arg.task_id not in selected:
                port_type = arg.type if arg.type is not None else _output_type(graph, arg.task_id, arg.output_name)
                inner = boundary.input_for(("task", arg.task_id, arg.output_name), arg_name, arg, port_type)
                arg = GraphInputArgument(input_name=inner, type=port_type)
            elif isinstance(arg, GraphInputArgument):
                source = spec.find_input(arg.input_name)
                port_type = arg.type if arg.type is not None else (source.type if source is not None else None)
                preferred = arg.input_name if arg.input_name in input_names else arg_name
                inner = boundary.input_for(("input", arg.input_name), preferred, arg, port_type)
                arg = GraphInputArgument(input_name=inner, type=port_type)
            arguments[arg_name] = arg
        pos = decode_position(task.annotations)
        nested_tasks[task_id] = replace(
            task,
            arguments=arguments,
            annotations=set_position(task.annotations, Position(pos.x - min_x, pos.y - min_y)),
        )

    def _expose(ref: TaskOutputArgument, preferred: str) -> None:
        boundary.output_for(ref.task_id, ref.output_name, preferred, _output_type(graph, ref.task_id, ref.output_name))

    # Selected output nodes name their port first; other consumers reuse it.
    for out_name, ref in graph.output_values.items():
        if ref.task_id in selected and out_name in output_names:
            _expose(ref, out_name)
    for task_id, task in graph.tasks.items():
        if task_id in selected:
            continue
        for arg in task.arguments.values():
            if isinstance(arg, TaskOutputArgument) and arg.task_id in selected:
                _expose(arg, arg.output_name)
    for ref in graph.output_values.values():
        if ref.task_id in selected:
            _expose(ref, ref.output_name)

    inputs = [
        replace(inp, annotations=set_position({}, p))
        for inp, p in zip(boundary.inputs, _io_positions(len(boundary.inputs), _INPUT_X, height))
    ]
    outputs = [
        replace(out, annotations=set_position({}, p))
        for out, p in zip(boundary.outputs, _io_positions(len(boundary.outputs), width + _OUTPUT_MARGIN, height))
    ]
    component_name = name or SUBGRAPH_NAME
    nested = ComponentSpec(
        implementation=GraphImplementation(graph=GraphSpec(tasks=nested_tasks, output_values=dict(boundary.output_values))),
        name=component_name,
        inputs=inputs,
        outputs=outputs,
        annotations={SDK_ANNOTATION: PIPELINE_EDITOR_SDK, FLOW_DIRECTION_ANNOTATION: "left-to-right"},
    )

    new_id = make_unique_name(component_name, [t for t in graph.tasks if t not in selected])
    center = Position(min_x + width / 2, min_y + height / 2)
    subgraph_task = TaskSpec(
        component_ref=ComponentReference(name=component_name, spec=nested),
        arguments=dict(boundary.arguments),
        annotations=set_position({}, center),
    )

    def _rewire(ref: TaskOutputArgument) -> TaskOutputArgument:
        if ref.task_id not in selected:
            return ref
        return TaskOutputArgument(task_id=new_id, output_name=boundary.outer_name(ref), type=ref.type)

    tasks: Dict[str, TaskSpec] = {}
    for task_id, task in graph.tasks.items():
        if task_id in selected:
            continue
        if any(isinstance(a, TaskOutputArgument) and a.task_id in selected for a in task.arguments.values()):
            task = replace(
                task,
                arguments={
                    k: _rewire(a) if isinstance(a, TaskOutputArgument) else a for k, a in task.arguments.items()
                },
            )
        tasks[task_id] = task
    tasks[new_id] = subgraph_task
    output_values = {k: _rewire(ref) for k, ref in graph.output_values.items()}

    node_id = task_id_to_node_id(new_id)
    selection = {task_id_to_node_id(t): False for t in task_ids}
    selection[node_id] = True
    out = with_graph(spec, replace(graph, tasks=tasks, output_values=output_values))
    return out, {"task_id": new_id, "node_id": node_id, "selection": selection}
