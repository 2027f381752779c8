from __future__ import annotations

import pytest

from pipelinegraph.core.annotations import Position, decode_position
from pipelinegraph.core.arguments import GraphInputArgument, LiteralArgument, TaskOutputArgument
from pipelinegraph.core.errors import InvalidArgumentError
from pipelinegraph.core.models import ContainerImplementation
from pipelinegraph.serialization import (
    PIPELINE_EDITOR_SDK,
    SerializationError,
    component_spec_from_dict,
    component_spec_to_dict,
    default_pipeline,
    dump_pipeline_yaml,
    load_pipeline_yaml,
)
from pipelinegraph.view import project

PIPELINE_YAML = """
name: Training pipeline
description: Loads data and trains a model
metadata:
  annotations:
    sdk: https://cloud-pipelines.net/pipeline-editor/
inputs:
  - name: initialData
    type: CSV
    annotations:
      editor.position: '{"x": -200, "y": 0}'
  - {name: epochs, type: Integer, default: "10", optional: true}
outputs:
  - {name: finalResult, type: Model}
implementation:
  graph:
    tasks:
      Train:
        componentRef:
          name: Train
          url: https://example.com/components/train.yaml
          spec:
            name: Train
            inputs:
              - {name: data, type: CSV}
              - {name: epochs, type: Integer}
              - {name: seed}
            outputs:
              - {name: model, type: Model}
            implementation:
              container:
                image: python:3.11
                command: [python, train.py]
        arguments:
          data: {graphInput: {inputName: initialData}}
          epochs: {graphInput: {inputName: epochs}}
          seed: 42
        annotations:
          editor.position: '{"x": 100, "y": 20}'
        isEnabled: {constantValue: "true"}
        executionOptions: {cachingStrategy: {maxCacheStaleness: P0D}}
    outputValues:
      finalResult: {taskOutput: {taskId: Train, outputName: model}}
"""


@pytest.mark.basic
def test_load_pipeline_yaml_builds_typed_document() -> None:
    spec = load_pipeline_yaml(PIPELINE_YAML)

    assert spec.name == "Training pipeline"
    assert spec.annotations == {"sdk": PIPELINE_EDITOR_SDK}
    assert spec.input_names() == ["initialData", "epochs"]
    assert spec.find_input("epochs").default == "10"
    assert spec.find_input("epochs").optional is True

    task = spec.graph.tasks["Train"]
    assert task.component_ref.is_hydrated
    assert isinstance(task.component_ref.spec.implementation, ContainerImplementation)
    assert task.arguments == {
        "data": GraphInputArgument(input_name="initialData"),
        "epochs": GraphInputArgument(input_name="epochs"),
        "seed": LiteralArgument(value="42"),
    }
    assert task.is_enabled == {"constantValue": "true"}
    assert task.execution_options == {"cachingStrategy": {"maxCacheStaleness": "P0D"}}
    assert decode_position(task.annotations) == Position(100, 20)
    assert spec.graph.output_values == {"finalResult": TaskOutputArgument(task_id="Train", output_name="model")}

    edge_ids = {e.id for e in project(spec).edges}
    assert edge_ids == {"Input_initialData-Train_data", "Input_epochs-Train_epochs", "Train_model-Output_finalResult"}


def test_yaml_dump_reloads_to_the_same_document() -> None:
    spec = load_pipeline_yaml(PIPELINE_YAML)
    text = dump_pipeline_yaml(spec)

    assert text.startswith("name: Training pipeline")
    assert load_pipeline_yaml(text) == spec
    assert project(load_pipeline_yaml(text)) == project(spec)


def test_to_dict_uses_wire_keys() -> None:
    raw = component_spec_to_dict(load_pipeline_yaml(PIPELINE_YAML))
    task = raw["implementation"]["graph"]["tasks"]["Train"]
    assert set(task) == {"componentRef", "arguments", "annotations", "isEnabled", "executionOptions"}
    assert task["arguments"]["seed"] == "42"
    assert raw["implementation"]["graph"]["outputValues"] == {
        "finalResult": {"taskOutput": {"taskId": "Train", "outputName": "model"}}
    }
    assert raw["metadata"] == {"annotations": {"sdk": PIPELINE_EDITOR_SDK}}


def test_implementation_needs_exactly_one_kind() -> None:
    with pytest.raises(SerializationError):
        component_spec_from_dict({"name": "x", "implementation": {"graph": {}, "container": {}}})
    with pytest.raises(SerializationError):
        component_spec_from_dict({"name": "x", "implementation": {}})
    with pytest.raises(SerializationError):
        component_spec_from_dict({"name": "x"})
    with pytest.raises(SerializationError):
        load_pipeline_yaml("- just\n- a list\n")
    with pytest.raises(SerializationError):
        load_pipeline_yaml("name: [unclosed")


def test_format_errors_in_arguments_and_output_values() -> None:
    bad_argument = {
        "implementation": {"graph": {"tasks": {"T": {"componentRef": {}, "arguments": {"x": {"weird": 1}}}}}},
    }
    with pytest.raises(InvalidArgumentError):
        component_spec_from_dict(bad_argument)

    bad_output = {
        "outputs": [{"name": "o"}],
        "implementation": {"graph": {"tasks": {}, "outputValues": {"o": {"graphInput": {"inputName": "i"}}}}},
    }
    with pytest.raises(SerializationError):
        component_spec_from_dict(bad_output)


def test_default_pipeline_is_an_empty_graph() -> None:
    spec = default_pipeline("My pipeline")
    assert spec.is_graph
    assert spec.graph.tasks == {}
    assert spec.graph.output_values == {}
    assert component_spec_to_dict(spec) == {
        "name": "My pipeline",
        "metadata": {"annotations": {"sdk": PIPELINE_EDITOR_SDK}},
        "implementation": {"graph": {"tasks": {}, "outputValues": {}}},
    }


def test_unmodelled_keys_survive_a_round_trip() -> None:
    raw = {
        "name": "Vendor pipeline",
        "version": "2",
        "metadata": {"annotations": {"sdk": PIPELINE_EDITOR_SDK}, "labels": {"team": "ml"}},
        "inputs": [{"name": "data", "type": "CSV", "x-ui": {"widget": "file"}}],
        "outputs": [{"name": "model", "x-ui": {"hidden": True}}],
        "implementation": {
            "graph": {
                "tasks": {"T": {"componentRef": {"name": "T"}, "cachingKey": "abc"}},
                "outputValues": {},
            }
        },
    }
    spec = component_spec_from_dict(raw)

    assert spec.extra == {"version": "2"}
    assert spec.metadata == {"labels": {"team": "ml"}}
    assert spec.find_input("data").extra == {"x-ui": {"widget": "file"}}
    assert spec.find_output("model").extra == {"x-ui": {"hidden": True}}
    assert spec.graph.tasks["T"].extra == {"cachingKey": "abc"}

    assert component_spec_to_dict(spec) == raw
    assert load_pipeline_yaml(dump_pipeline_yaml(spec)) == spec
