from __future__ import annotations

import json

import pytest

from pipelinegraph.core.annotations import POSITION_ANNOTATION, STATUS_ANNOTATION, Position
from pipelinegraph.core.models import (
    ComponentReference,
    ComponentSpec,
    GraphImplementation,
    GraphSpec,
    InputSpec,
    OutputSpec,
    TaskSpec,
)
from pipelinegraph.edits import update_positions, update_positions_many
from pipelinegraph.view import project


def _pipeline() -> ComponentSpec:
    task = TaskSpec(
        component_ref=ComponentReference(name="Train"),
        annotations={STATUS_ANNOTATION: "Running", "cache": "off", POSITION_ANNOTATION: '{"x":1,"y":1}'},
    )
    return ComponentSpec(
        implementation=GraphImplementation(graph=GraphSpec(tasks={"T1": task, "T2": TaskSpec(component_ref=ComponentReference())})),
        inputs=[InputSpec(name="data", annotations={"note": "keep"})],
        outputs=[OutputSpec(name="result")],
    )


@pytest.mark.basic
def test_moved_node_projects_at_new_position() -> None:
    spec = _pipeline()
    for node_id in ("task_T1", "input_data", "output_result"):
        result = update_positions(spec, node_id, {"x": 250, "y": -40.5})
        assert result.ok
        assert result.changed
        node = project(result.spec).node(node_id)
        assert node is not None
        assert node.position == Position(250, -40.5)


def test_update_positions_keeps_unrelated_annotations() -> None:
    spec = _pipeline()
    out = update_positions(spec, "task_T1", Position(5, 6)).spec
    annotations = out.graph.tasks["T1"].annotations
    assert annotations[STATUS_ANNOTATION] == "Running"
    assert annotations["cache"] == "off"
    assert json.loads(annotations[POSITION_ANNOTATION]) == {"x": 5, "y": 6}
    assert out.graph.tasks["T2"] is spec.graph.tasks["T2"]

    out = update_positions(spec, "input_data", Position(5, 6)).spec
    assert out.inputs[0].annotations["note"] == "keep"
    assert out.graph is spec.graph


def test_update_positions_same_position_is_a_no_op() -> None:
    spec = update_positions(_pipeline(), "task_T1", (7, 8)).spec
    again = update_positions(spec, "task_T1", (7, 8))
    assert again.ok
    assert again.changed is False
    assert again.spec is spec


def test_update_positions_rejects_bad_input() -> None:
    spec = _pipeline()

    malformed = update_positions(spec, "task_T1", {"x": "left"})
    assert malformed.error is not None and malformed.error.code == "invalid_position"
    assert malformed.spec is spec

    missing = update_positions(spec, "input_nope", (0, 0))
    assert missing.error is not None and missing.error.code == "unknown_node"

    missing_task = update_positions(spec, "task_nope", (0, 0))
    assert missing_task.error is not None and missing_task.error.code == "unknown_task"


def test_update_positions_many_is_all_or_nothing() -> None:
    spec = _pipeline()
    moved = update_positions_many(spec, {"task_T1": (10, 10), "task_T2": (20, 20)})
    view = project(moved.spec)
    assert view.node("task_T1").position == Position(10, 10)
    assert view.node("task_T2").position == Position(20, 20)

    failed = update_positions_many(spec, {"task_T1": (10, 10), "output_nope": (0, 0)})
    assert not failed.ok
    assert failed.spec is spec
