"""View-side models and the document -> view projection.

`ViewAdapter` lives in `pipelinegraph.view.adapter` (it depends on the edit
layer, which itself depends on these models).
"""

from .models import Connection, NodeType, ViewEdge, ViewGraph, ViewNode, load_connection, load_view_edge
from .projector import graph_input_edge_id, graph_output_edge_id, project, project_edges, project_nodes, task_edge_id

__all__ = [
    "Connection",
    "NodeType",
    "ViewEdge",
    "ViewGraph",
    "ViewNode",
    "load_connection",
    "load_view_edge",
    "graph_input_edge_id",
    "graph_output_edge_id",
    "project",
    "project_edges",
    "project_nodes",
    "task_edge_id",
]
