from __future__ import annotations

import pytest

from pipelinegraph.core.ids import (
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
)


@pytest.mark.basic
def test_node_ids_round_trip_through_names() -> None:
    for node_id in ("task_Train model", "task_T1"):
        assert task_id_to_node_id(node_id_to_task_id(node_id)) == node_id
    assert input_name_to_node_id(node_id_to_input_name("input_initialData")) == "input_initialData"
    assert output_name_to_node_id(node_id_to_output_name("output_finalResult")) == "output_finalResult"

    assert node_kind("task_T1") == "task"
    assert node_kind("input_data") == "input"
    assert node_kind("output_result") == "output"
    assert node_kind("edge_1") is None


def test_handle_ids_only_decode_their_own_prefix() -> None:
    assert handle_id_to_input_name(input_name_to_handle_id("x")) == "x"
    assert handle_id_to_output_name(output_name_to_handle_id("out")) == "out"
    assert handle_id_to_input_name("output_out") is None
    assert handle_id_to_output_name("input_x") is None
    assert handle_id_to_input_name(None) is None


@pytest.mark.basic
def test_make_unique_name_appends_increasing_suffix() -> None:
    assert make_unique_name("Train", []) == "Train"
    assert make_unique_name("Train", ["Train"]) == "Train 2"
    assert make_unique_name("Train", ["Train", "Train 2"]) == "Train 3"
    # First free suffix wins.
    assert make_unique_name("Train", ["Train", "Train 3"]) == "Train 2"
