from __future__ import annotations

import pytest

from pipelinegraph.core.arguments import GraphInputArgument, TaskOutputArgument
from pipelinegraph.core.models import (
    ComponentReference,
    ComponentSpec,
    GraphImplementation,
    GraphSpec,
    InputSpec,
    OutputSpec,
    TaskSpec,
)
from pipelinegraph.edits import rename_port


def _pipeline() -> ComponentSpec:
    def task(**arguments) -> TaskSpec:
        return TaskSpec(component_ref=ComponentReference(name="C"), arguments=dict(arguments))

    tasks = {
        "T1": task(a=GraphInputArgument(input_name="data")),
        "T2": task(b=GraphInputArgument(input_name="data"), c=TaskOutputArgument(task_id="T1", output_name="out")),
        "T3": task(d=GraphInputArgument(input_name="config")),
    }
    graph = GraphSpec(
        tasks=tasks,
        output_values={
            "first": TaskOutputArgument(task_id="T1", output_name="out"),
            "second": TaskOutputArgument(task_id="T2", output_name="out"),
            "third": TaskOutputArgument(task_id="T3", output_name="out"),
        },
    )
    return ComponentSpec(
        implementation=GraphImplementation(graph=graph),
        inputs=[InputSpec(name="data"), InputSpec(name="config")],
        outputs=[OutputSpec(name="first"), OutputSpec(name="second"), OutputSpec(name="third")],
    )


@pytest.mark.basic
def test_rename_input_updates_every_reference_to_it() -> None:
    spec = _pipeline()
    result = rename_port(spec, "data", "dataset", "input")

    assert result.ok
    tasks = result.spec.graph.tasks
    assert tasks["T1"].arguments["a"] == GraphInputArgument(input_name="dataset")
    assert tasks["T2"].arguments["b"] == GraphInputArgument(input_name="dataset")
    assert tasks["T2"].arguments["c"] == TaskOutputArgument(task_id="T1", output_name="out")
    assert tasks["T3"] is spec.graph.tasks["T3"]
    assert result.spec.input_names() == ["dataset", "config"]
    assert not any(
        isinstance(arg, GraphInputArgument) and arg.input_name == "data"
        for t in tasks.values()
        for arg in t.arguments.values()
    )


def test_rename_output_moves_output_value_key_in_place() -> None:
    spec = _pipeline()
    result = rename_port(spec, "second", "metrics", "output")

    assert result.ok
    assert result.spec.output_names() == ["first", "metrics", "third"]
    assert list(result.spec.graph.output_values) == ["first", "metrics", "third"]
    assert result.spec.graph.output_values["metrics"] == TaskOutputArgument(task_id="T2", output_name="out")
    assert result.spec.graph.tasks is spec.graph.tasks


@pytest.mark.basic
def test_rename_port_rejects_collisions_and_bad_names() -> None:
    spec = _pipeline()

    collision = rename_port(spec, "data", "config", "input")
    assert collision.error is not None
    assert collision.error.code == "duplicate_name"
    assert collision.spec is spec

    unknown = rename_port(spec, "nope", "x", "input")
    assert unknown.error is not None and unknown.error.code == "unknown_port"

    empty = rename_port(spec, "data", "  ", "input")
    assert empty.error is not None and empty.error.code == "invalid_name"

    kind = rename_port(spec, "data", "x", "task")
    assert kind.error is not None and kind.error.code == "invalid_port_kind"

    # Inputs and outputs are separate name lists.
    cross = rename_port(spec, "data", "first", "input")
    assert cross.ok


def test_rename_port_to_same_name_is_a_no_op() -> None:
    spec = _pipeline()
    result = rename_port(spec, "config", "config", "input")
    assert result.ok
    assert result.changed is False
    assert result.spec is spec
