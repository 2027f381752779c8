"""pipelinegraph.core.arguments

Task argument values and their classification.

An argument slot holds exactly one of:
- a literal string,
- a reference to another task's output (`{"taskOutput": {"taskId", "outputName"}}`),
- a reference to a graph-level input (`{"graphInput": {"inputName"}}`).

A missing slot means "use the component input's default".
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from .errors import InvalidArgumentError


class ArgumentKind(str, Enum):
    LITERAL = "literal"
    TASK_OUTPUT = "task_output"
    GRAPH_INPUT = "graph_input"


@dataclass(frozen=True)
class LiteralArgument:
    value: str


@dataclass(frozen=True)
class TaskOutputArgument:
    task_id: str
    output_name: str
    type: Any = None


@dataclass(frozen=True)
class GraphInputArgument:
    input_name: str
    type: Any = None


ArgumentValue = Union[LiteralArgument, TaskOutputArgument, GraphInputArgument]


def make_literal(value: str) -> LiteralArgument:
    return LiteralArgument(value=str(value))


def make_task_output_ref(task_id: str, output_name: str) -> TaskOutputArgument:
    return TaskOutputArgument(task_id=str(task_id), output_name=str(output_name))


def make_graph_input_ref(input_name: str) -> GraphInputArgument:
    return GraphInputArgument(input_name=str(input_name))


def argument_kind(value: ArgumentValue) -> ArgumentKind:
    if isinstance(value, LiteralArgument):
        return ArgumentKind.LITERAL
    if isinstance(value, TaskOutputArgument):
        return ArgumentKind.TASK_OUTPUT
    if isinstance(value, GraphInputArgument):
        return ArgumentKind.GRAPH_INPUT
    raise InvalidArgumentError(f"Not an argument value: {value!r}")


def _parse_task_output(raw: Any) -> TaskOutputArgument:
    if not isinstance(raw, dict):
        raise InvalidArgumentError("taskOutput must be an object")
    task_id = raw.get("taskId")
    output_name = raw.get("outputName")
    if not isinstance(task_id, str) or not task_id:
        raise InvalidArgumentError("taskOutput.taskId must be a non-empty string")
    if not isinstance(output_name, str) or not output_name:
        raise InvalidArgumentError("taskOutput.outputName must be a non-empty string")
    return TaskOutputArgument(task_id=task_id, output_name=output_name, type=raw.get("type"))


def _parse_graph_input(raw: Any) -> GraphInputArgument:
    if not isinstance(raw, dict):
        raise InvalidArgumentError("graphInput must be an object")
    input_name = raw.get("inputName")
    if not isinstance(input_name, str) or not input_name:
        raise InvalidArgumentError("graphInput.inputName must be a non-empty string")
    return GraphInputArgument(input_name=input_name, type=raw.get("type"))


def classify_argument(raw: Any) -> ArgumentValue:
    """Classify a wire-format argument into a typed `ArgumentValue`.

    Raises `InvalidArgumentError` for objects carrying neither (or both)
    `taskOutput` and `graphInput`, and for unsupported value types.
    """
    if isinstance(raw, (LiteralArgument, TaskOutputArgument, GraphInputArgument)):
        return raw
    if isinstance(raw, str):
        return LiteralArgument(value=raw)
    # YAML documents may carry unquoted scalars; keep their JSON spelling.
    if isinstance(raw, (bool, int, float)):
        return LiteralArgument(value=json.dumps(raw))
    if isinstance(raw, dict):
        has_task_output = "taskOutput" in raw
        has_graph_input = "graphInput" in raw
        if has_task_output and has_graph_input:
            raise InvalidArgumentError("Argument has both 'taskOutput' and 'graphInput'")
        if has_task_output:
            return _parse_task_output(raw["taskOutput"])
        if has_graph_input:
            return _parse_graph_input(raw["graphInput"])
        raise InvalidArgumentError(f"Argument object has neither 'taskOutput' nor 'graphInput': {sorted(raw)!r}")
    raise InvalidArgumentError(f"Unsupported argument value type: {type(raw).__name__}")


def argument_to_dict(value: ArgumentValue) -> Union[str, Dict[str, Any]]:
    """Inverse of `classify_argument` (wire format)."""
    kind = argument_kind(value)
    if kind is ArgumentKind.LITERAL:
        return value.value  # type: ignore[union-attr]
    if kind is ArgumentKind.TASK_OUTPUT:
        body: Dict[str, Any] = {"taskId": value.task_id, "outputName": value.output_name}  # type: ignore[union-attr]
        if value.type is not None:
            body["type"] = value.type
        return {"taskOutput": body}
    body = {"inputName": value.input_name}  # type: ignore[union-attr]
    if value.type is not None:
        body["type"] = value.type
    return {"graphInput": body}


def references_task(value: Optional[ArgumentValue], task_id: str) -> bool:
    return isinstance(value, TaskOutputArgument) and value.task_id == task_id


def references_graph_input(value: Optional[ArgumentValue], input_name: str) -> bool:
    return isinstance(value, GraphInputArgument) and value.input_name == input_name
