"""pipelinegraph.core.ids

View identifiers <-> document names, and collision-free name generation.

View node ids are the document name with a kind prefix:
`task_<taskId>`, `input_<inputName>`, `output_<outputName>`.
Handles on task nodes use the same `input_`/`output_` prefixes for the
component's input/output names.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .models import ComponentSpec, GraphSpec

TASK_PREFIX = "task_"
INPUT_PREFIX = "input_"
OUTPUT_PREFIX = "output_"

NODE_KIND_TASK = "task"
NODE_KIND_INPUT = "input"
NODE_KIND_OUTPUT = "output"


def _strip(prefix: str, value: str) -> str:
    return value[len(prefix):] if value.startswith(prefix) else value


def task_id_to_node_id(task_id: str) -> str:
    return f"{TASK_PREFIX}{task_id}"


def input_name_to_node_id(input_name: str) -> str:
    return f"{INPUT_PREFIX}{input_name}"


def output_name_to_node_id(output_name: str) -> str:
    return f"{OUTPUT_PREFIX}{output_name}"


def node_id_to_task_id(node_id: str) -> str:
    return _strip(TASK_PREFIX, node_id)


def node_id_to_input_name(node_id: str) -> str:
    return _strip(INPUT_PREFIX, node_id)


def node_id_to_output_name(node_id: str) -> str:
    return _strip(OUTPUT_PREFIX, node_id)


def node_kind(node_id: str) -> Optional[str]:
    """Return "task", "input" or "output" from the id prefix (None if unrecognized)."""
    if not isinstance(node_id, str):
        return None
    if node_id.startswith(TASK_PREFIX):
        return NODE_KIND_TASK
    if node_id.startswith(INPUT_PREFIX):
        return NODE_KIND_INPUT
    if node_id.startswith(OUTPUT_PREFIX):
        return NODE_KIND_OUTPUT
    return None


def input_name_to_handle_id(input_name: str) -> str:
    return f"{INPUT_PREFIX}{input_name}"


def output_name_to_handle_id(output_name: str) -> str:
    return f"{OUTPUT_PREFIX}{output_name}"


def handle_id_to_input_name(handle_id: Optional[str]) -> Optional[str]:
    if isinstance(handle_id, str) and handle_id.startswith(INPUT_PREFIX):
        return handle_id[len(INPUT_PREFIX):]
    return None


def handle_id_to_output_name(handle_id: Optional[str]) -> Optional[str]:
    if isinstance(handle_id, str) and handle_id.startswith(OUTPUT_PREFIX):
        return handle_id[len(OUTPUT_PREFIX):]
    return None


def make_unique_name(candidate: str, existing: Iterable[str]) -> str:
    """Return `candidate`, or `"candidate 2"`, `"candidate 3"`, ... whichever is free first."""
    taken = set(existing)
    name = candidate
    index = 1
    while name in taken:
        index += 1
        name = f"{candidate} {index}"
    return name


def unique_task_id(graph: GraphSpec, base: str = "Task") -> str:
    return make_unique_name(base, graph.tasks.keys())


def unique_input_name(spec: ComponentSpec, base: str = "Input") -> str:
    return make_unique_name(base, spec.input_names())


def unique_output_name(spec: ComponentSpec, base: str = "Output") -> str:
    return make_unique_name(base, spec.output_names())
