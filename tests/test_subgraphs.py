from __future__ import annotations

import pytest

from pipelinegraph.core.annotations import POSITION_ANNOTATION, Position, decode_position, encode_position
from pipelinegraph.core.arguments import GraphInputArgument, LiteralArgument, TaskOutputArgument
from pipelinegraph.core.models import (
    ComponentReference,
    ComponentSpec,
    ContainerImplementation,
    GraphImplementation,
    GraphSpec,
    InputSpec,
    OutputSpec,
    TaskSpec,
)
from pipelinegraph.edits import (
    create_subgraph_from_nodes,
    edit_subgraph,
    get_subgraph_spec,
    remove_component_input,
    rename_port,
    replace_subgraph_spec,
    set_task_argument,
    subgraph_description,
)
from pipelinegraph.session import EditingSession
from pipelinegraph.validation import is_valid


def _at(x: float, y: float) -> dict:
    return {POSITION_ANNOTATION: encode_position({"x": x, "y": y})}


def _train_component() -> ComponentSpec:
    return ComponentSpec(
        implementation=ContainerImplementation(container={"image": "python:3.11"}),
        name="Train",
        inputs=[InputSpec(name="x"), InputSpec(name="lr")],
        outputs=[OutputSpec(name="model", type="Model")],
    )


def _pipeline() -> ComponentSpec:
    """data -> A -> B -> C, B also feeds the graph output `final`; D is unrelated."""
    tasks = {
        "A": TaskSpec(
            component_ref=ComponentReference(name="Load"),
            arguments={"path": GraphInputArgument(input_name="data")},
            annotations=_at(100, 50),
        ),
        "B": TaskSpec(
            component_ref=ComponentReference(name="Train", spec=_train_component()),
            arguments={"x": TaskOutputArgument(task_id="A", output_name="out"), "lr": LiteralArgument(value="0.1")},
            annotations=_at(400, 50),
        ),
        "C": TaskSpec(
            component_ref=ComponentReference(name="Deploy"),
            arguments={"m": TaskOutputArgument(task_id="B", output_name="model")},
            annotations=_at(700, 50),
        ),
        "D": TaskSpec(component_ref=ComponentReference(name="Other")),
    }
    return ComponentSpec(
        implementation=GraphImplementation(
            graph=GraphSpec(tasks=tasks, output_values={"final": TaskOutputArgument(task_id="B", output_name="model")})
        ),
        name="Pipeline",
        inputs=[InputSpec(name="data", type="CSV", annotations=_at(-100, 50))],
        outputs=[OutputSpec(name="final")],
    )


@pytest.mark.basic
def test_collapsing_tasks_and_their_input_node() -> None:
    spec = _pipeline()
    result = create_subgraph_from_nodes(spec, ["task_A", "task_B", "input_data"])

    assert result.ok and result.changed
    assert result.details["task_id"] == "Generated Subgraph"
    out = result.spec
    graph = out.graph
    assert list(graph.tasks) == ["C", "D", "Generated Subgraph"]
    assert graph.tasks["C"].arguments == {"m": TaskOutputArgument(task_id="Generated Subgraph", output_name="model")}
    assert graph.output_values == {"final": TaskOutputArgument(task_id="Generated Subgraph", output_name="model")}
    assert out.input_names() == ["data"]

    subgraph_task = graph.tasks["Generated Subgraph"]
    assert subgraph_task.arguments == {"data": GraphInputArgument(input_name="data")}
    assert decode_position(subgraph_task.annotations) == Position(150, 50)

    nested = subgraph_task.component_ref.spec
    assert nested.input_names() == ["data"]
    assert nested.find_input("data").type == "CSV"
    assert nested.output_names() == ["model"]
    assert nested.find_output("model").type == "Model"
    assert list(nested.graph.tasks) == ["A", "B"]
    assert nested.graph.tasks["A"].arguments == {"path": GraphInputArgument(input_name="data", type="CSV")}
    assert nested.graph.tasks["B"].arguments == spec.graph.tasks["B"].arguments
    assert decode_position(nested.graph.tasks["A"].annotations) == Position(200, 0)
    assert decode_position(nested.find_input("data").annotations) == Position(-150, 0)
    assert decode_position(nested.find_output("model").annotations) == Position(550, 0)

    assert is_valid(out)
    assert is_valid(nested)
    assert subgraph_description(subgraph_task) == "2 tasks"
    assert subgraph_description(graph.tasks["C"]) == ""


def test_external_sources_become_nested_inputs_and_output_nodes_name_ports() -> None:
    spec = _pipeline()
    result = create_subgraph_from_nodes(spec, ["task_B", "output_final"], name="Training")

    assert result.ok
    graph = result.spec.graph
    assert list(graph.tasks) == ["A", "C", "D", "Training"]

    task = graph.tasks["Training"]
    assert task.arguments == {"x": TaskOutputArgument(task_id="A", output_name="out")}
    nested = task.component_ref.spec
    assert nested.name == "Training"
    assert nested.input_names() == ["x"]
    assert nested.output_names() == ["final"]
    assert nested.graph.output_values == {"final": TaskOutputArgument(task_id="B", output_name="model")}
    assert nested.graph.tasks["B"].arguments["x"] == GraphInputArgument(input_name="x")

    # Both the graph output and C read the same port.
    assert graph.tasks["C"].arguments["m"] == TaskOutputArgument(task_id="Training", output_name="final")
    assert graph.output_values["final"] == TaskOutputArgument(task_id="Training", output_name="final")
    assert result.spec.output_names() == ["final"]


def test_collapse_rejections_leave_the_document_untouched() -> None:
    spec = _pipeline()

    around = create_subgraph_from_nodes(spec, ["task_A", "task_C"])
    assert around.error is not None and around.error.code == "would_create_cycle"
    assert around.error.ref_id == "B"
    assert around.spec is spec

    empty = create_subgraph_from_nodes(spec, ["input_data"])
    assert empty.error is not None and empty.error.code == "empty_selection"

    unknown = create_subgraph_from_nodes(spec, ["task_A", "task_nope"])
    assert unknown.error is not None and unknown.error.code == "unknown_task"
    assert unknown.spec is spec


@pytest.mark.basic
def test_edit_inside_a_subgraph_writes_back_to_the_root() -> None:
    spec = create_subgraph_from_nodes(_pipeline(), ["task_A", "task_B"]).spec
    path = ["root", "Generated Subgraph"]

    result = edit_subgraph(spec, path, set_task_argument, "B", "lr", "0.5")

    assert result.ok and result.changed
    nested = get_subgraph_spec(result.spec, path)
    assert nested.graph.tasks["B"].arguments["lr"] == LiteralArgument(value="0.5")
    assert get_subgraph_spec(spec, path).graph.tasks["B"].arguments["lr"] == LiteralArgument(value="0.1")
    assert result.spec.graph.tasks["C"] is spec.graph.tasks["C"]
    assert get_subgraph_spec(result.spec, []) is result.spec


def test_renaming_a_nested_output_follows_into_the_parent() -> None:
    spec = create_subgraph_from_nodes(_pipeline(), ["task_A", "task_B"]).spec

    result = edit_subgraph(spec, ["Generated Subgraph"], rename_port, "model", "trained", "output")

    assert result.ok
    graph = result.spec.graph
    assert graph.tasks["C"].arguments["m"] == TaskOutputArgument(task_id="Generated Subgraph", output_name="trained")
    assert graph.output_values["final"].output_name == "trained"
    assert is_valid(result.spec)


def test_removing_a_nested_input_drops_the_parent_argument() -> None:
    spec = create_subgraph_from_nodes(_pipeline(), ["task_A", "task_B"]).spec
    assert spec.graph.tasks["Generated Subgraph"].arguments == {"data": GraphInputArgument(input_name="data")}

    result = edit_subgraph(spec, ["Generated Subgraph"], remove_component_input, "data")

    assert result.ok
    task = result.spec.graph.tasks["Generated Subgraph"]
    assert task.arguments == {}
    assert task.component_ref.spec.graph.tasks["A"].arguments == {}
    assert is_valid(result.spec)


def test_nested_paths_two_levels_deep() -> None:
    inner = create_subgraph_from_nodes(_pipeline(), ["task_A", "task_B"]).spec
    outer = create_subgraph_from_nodes(inner, ["task_Generated Subgraph", "task_C"], name="Outer").spec
    path = ["root", "Outer", "Generated Subgraph"]

    assert list(get_subgraph_spec(outer, path).graph.tasks) == ["A", "B"]

    result = edit_subgraph(outer, path, set_task_argument, "B", "lr", None)
    assert result.ok
    assert "lr" not in get_subgraph_spec(result.spec, path).graph.tasks["B"].arguments


def test_bad_paths_are_reported() -> None:
    spec = create_subgraph_from_nodes(_pipeline(), ["task_A", "task_B"]).spec

    not_nested = edit_subgraph(spec, ["C"], set_task_argument, "X", "y", "1")
    assert not_nested.error is not None and not_nested.error.code == "not_a_subgraph"
    assert not_nested.spec is spec

    missing = replace_subgraph_spec(spec, ["nope"], spec)
    assert missing.error is not None and missing.error.code == "unknown_task"

    nested_failure = edit_subgraph(spec, ["Generated Subgraph"], set_task_argument, "nope", "y", "1")
    assert nested_failure.error is not None and nested_failure.error.code == "unknown_task"
    assert nested_failure.spec is spec


def test_session_collapse_selects_the_new_task_and_undoes() -> None:
    session = EditingSession(_pipeline())
    original = session.spec

    result = session.apply(create_subgraph_from_nodes, ["task_A", "task_B"])

    assert result.ok
    assert session.selected == frozenset({"task_Generated Subgraph"})
    assert session.view().node("task_Generated Subgraph") is not None
    assert session.undo()
    assert session.spec is original
