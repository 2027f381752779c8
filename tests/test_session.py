from __future__ import annotations

import pytest

from pipelinegraph.core.config import EditorConfig
from pipelinegraph.core.models import ComponentReference, new_graph_pipeline
from pipelinegraph.edits import connect, drop_new_node, duplicate_nodes, remove_node, update_positions
from pipelinegraph.session import EditingSession


def _session(**config) -> EditingSession:
    spec = new_graph_pipeline("P")
    spec = drop_new_node(spec, "task", (0, 0), ComponentReference(name="A")).spec
    spec = drop_new_node(spec, "task", (300, 0), ComponentReference(name="B")).spec
    return EditingSession(spec, EditorConfig(**config))


@pytest.mark.basic
def test_successful_edit_replaces_document_and_can_be_undone() -> None:
    session = _session()
    before = session.spec

    result = session.apply(update_positions, "task_A", (50, 50))
    assert result.ok
    assert session.spec is result.spec
    assert session.spec is not before
    assert session.can_undo
    assert not session.can_redo

    assert session.undo() is True
    assert session.spec is before
    assert session.can_redo

    assert session.redo() is True
    assert session.spec is result.spec
    assert session.redo() is False


@pytest.mark.basic
def test_rejected_and_no_op_edits_leave_the_session_untouched() -> None:
    session = _session()
    before = session.spec

    rejected = session.apply(connect, "input_x", None, "output_y", None)
    assert not rejected.ok
    assert session.spec is before
    assert not session.can_undo

    noop = session.apply(update_positions, "task_A", (0, 0))
    assert noop.ok and not noop.changed
    assert not session.can_undo


def test_new_edit_clears_redo_stack() -> None:
    session = _session()
    session.apply(update_positions, "task_A", (1, 1))
    session.undo()
    assert session.can_redo
    session.apply(update_positions, "task_B", (2, 2))
    assert not session.can_redo


def test_history_is_bounded() -> None:
    session = _session(history_limit=2)
    for i in range(1, 6):
        session.apply(update_positions, "task_A", (i, i))

    assert session.undo() is True
    assert session.undo() is True
    assert session.undo() is False
    assert session.view().node("task_A").position.x == 3


def test_selection_follows_duplicate_details_and_pruned_on_removal() -> None:
    session = _session()
    session.select(["task_A", "task_missing"])
    assert session.selected == frozenset({"task_A"})

    session.apply(duplicate_nodes, sorted(session.selected))
    assert session.selected == frozenset({"task_A 2"})
    assert session.view().node("task_A 2").selected is True
    assert session.view().node("task_A").selected is False

    session.apply(remove_node, "task_A 2")
    assert session.selected == frozenset()


def test_replace_records_history_and_resets_selection() -> None:
    session = _session()
    session.select(["task_A"])
    loaded = new_graph_pipeline("Loaded")

    session.replace(loaded)
    assert session.spec is loaded
    assert session.selected == frozenset()
    assert session.undo() is True
    assert session.spec.name == "P"

    session.clear_history()
    session.replace(new_graph_pipeline("Other"), record_history=False)
    assert not session.can_undo
