"""Structural edit operations: `(spec, intent...) -> EditResult`.

Every operation is pure. On success `EditResult.spec` is a new document (or the
same object when nothing changed); on failure it is the untouched input and
`EditResult.error` says which invariant the intent would have broken.
"""

from .connections import connect, connect_edge, disconnect, set_graph_output_value, set_task_argument
from .nodes import add_and_connect_node, drop_new_node, duplicate_nodes, replace_task_component
from .ports import rename_port
from .positions import update_positions, update_positions_many
from .removal import remove_component_input, remove_component_output, remove_node, remove_nodes, remove_task
from .subgraphs import (
    ROOT_PATH_ID,
    create_subgraph_from_nodes,
    edit_subgraph,
    get_subgraph_spec,
    is_subgraph,
    replace_subgraph_spec,
    subgraph_description,
    subgraph_task_count,
)

__all__ = [
    "connect",
    "connect_edge",
    "disconnect",
    "set_graph_output_value",
    "set_task_argument",
    "add_and_connect_node",
    "drop_new_node",
    "duplicate_nodes",
    "replace_task_component",
    "rename_port",
    "update_positions",
    "update_positions_many",
    "remove_component_input",
    "remove_component_output",
    "remove_node",
    "remove_nodes",
    "remove_task",
    "ROOT_PATH_ID",
    "create_subgraph_from_nodes",
    "edit_subgraph",
    "get_subgraph_spec",
    "is_subgraph",
    "replace_subgraph_spec",
    "subgraph_description",
    "subgraph_task_count",
]
