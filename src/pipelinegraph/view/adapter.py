"""Rendering-layer event handling.

The adapter receives plain-data change events from the node/edge canvas
(`{"type": "position", "id": ..., "position": {...}, "dragging": ...}`,
`{"type": "remove", "id": ...}`, connection dicts, drops...) and turns each
into an edit applied through the session. It never mutates documents itself
and never raises for a malformed event: such events come back as an
`EditResult` carrying a `malformed_event` violation.

Node positions are only committed when a drag ends (`dragging` false); while a
drag is in progress the latest position is kept as a transient overlay used by
`render()`.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from ..core.annotations import coerce_position
from ..core.config import EditorConfig
from ..core.errors import EditResult, StructuralViolation
from ..core.ids import TASK_PREFIX, node_id_to_task_id
from ..edits import (
    connect_edge,
    create_subgraph_from_nodes,
    disconnect,
    drop_new_node,
    duplicate_nodes,
    remove_nodes,
    set_task_argument,
    update_positions,
)
from ..logging import get_logger
from ..serialization import input_spec_to_dict, output_spec_to_dict, task_spec_to_dict
from ..session import EditingSession
from ..status import is_task_locked
from .models import NodeType, ViewNode, load_view_edge

logger = get_logger(__name__)


def _change_id(change: Dict[str, Any]) -> str:
    return str(change.get("id") or "").strip()


class ViewAdapter:
    def __init__(self, session: EditingSession, config: Optional[EditorConfig] = None):
        self._session = session
        self._config = config or session.config
        self._dragging: Dict[str, Any] = {}
        self._selected_edges: set[str] = set()

    @property
    def session(self) -> EditingSession:
        return self._session

    def _noop(self) -> EditResult:
        return EditResult(spec=self._session.spec)

    def _malformed(self, event: Any, reason: str) -> EditResult:
        logger.debug("Malformed view event", reason=reason, payload=repr(event))
        return EditResult(
            spec=self._session.spec,
            error=StructuralViolation("malformed_event", f"{reason}: {event!r}"),
        )

    def _lock_violation(self, task_id: str) -> Optional[EditResult]:
        """Tasks with an execution status are read-only while the lock policy is on."""
        if not self._config.lock_tasks_with_status:
            return None
        graph = self._session.spec.graph
        task = graph.tasks.get(task_id) if graph is not None else None
        if task is None or not is_task_locked(task):
            return None
        return EditResult(
            spec=self._session.spec,
            error=StructuralViolation("task_locked", f"Task '{task_id}' has an execution status", ref_id=task_id),
        )

    def _target_lock(self, target: Any) -> Optional[EditResult]:
        if isinstance(target, str) and target.startswith(TASK_PREFIX):
            return self._lock_violation(node_id_to_task_id(target))
        return None

    def _disconnect(self, edge: Any) -> EditResult:
        parsed = load_view_edge(edge)
        locked = self._target_lock(parsed.target) if parsed is not None else None
        if locked is not None:
            return locked
        return self._session.apply(disconnect, edge)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _node_dict(self, node: ViewNode) -> Dict[str, Any]:
        out = node.to_dict()
        data = dict(node.data)
        if node.type == NodeType.TASK.value and "task_spec" in data:
            data["task_spec"] = task_spec_to_dict(data["task_spec"])
        elif node.type == NodeType.INPUT.value and "input_spec" in data:
            data["input_spec"] = input_spec_to_dict(data["input_spec"])
        elif node.type == NodeType.OUTPUT.value and "output_spec" in data:
            data["output_spec"] = output_spec_to_dict(data["output_spec"])
        out["data"] = data
        transient = self._dragging.get(node.id)
        if transient is not None:
            out["position"] = transient.to_dict()
        return out

    def render(self) -> Dict[str, Any]:
        """JSON-safe `{nodes, edges}` for the canvas."""
        view = self._session.view()
        edge_ids = {e.id for e in view.edges}
        self._selected_edges &= edge_ids
        edges = []
        for e in view.edges:
            item = e.to_dict()
            item["selected"] = e.id in self._selected_edges
            edges.append(item)
        return {"nodes": [self._node_dict(n) for n in view.nodes], "edges": edges}

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_connect(self, connection: Any) -> EditResult:
        if not isinstance(connection, dict) or not connection.get("source") or not connection.get("target"):
            return self._malformed(connection, "Connection needs source and target")
        locked = self._target_lock(str(connection["target"]).strip())
        if locked is not None:
            return locked
        return self._session.apply(connect_edge, connection)

    def _on_position(self, change: Dict[str, Any]) -> EditResult:
        node_id = _change_id(change)
        raw = change.get("position")
        position = coerce_position(raw) if raw is not None else self._dragging.get(node_id)
        if not node_id or position is None:
            return self._malformed(change, "Position change needs id and position")
        if change.get("dragging"):
            self._dragging[node_id] = position
            return self._noop()
        self._dragging.pop(node_id, None)
        return self._session.apply(update_positions, node_id, position)

    def on_nodes_change(self, changes: Iterable[Any]) -> List[EditResult]:
        """Apply canvas node changes in order; removals in one batch are applied together."""
        results: List[EditResult] = []
        removed: List[str] = []
        selected = set(self._session.selected)
        selection_touched = False

        for change in changes or []:
            if not isinstance(change, dict):
                results.append(self._malformed(change, "Node change must be an object"))
                continue
            kind = str(change.get("type") or "").strip()
            node_id = _change_id(change)
            if kind == "position":
                results.append(self._on_position(change))
            elif kind == "select":
                if not node_id:
                    results.append(self._malformed(change, "Select change needs id"))
                    continue
                if change.get("selected"):
                    selected.add(node_id)
                else:
                    selected.discard(node_id)
                selection_touched = True
            elif kind == "remove":
                if not node_id:
                    results.append(self._malformed(change, "Remove change needs id"))
                    continue
                removed.append(node_id)
            # Other change kinds (dimensions, replace) have no document effect.

        if selection_touched:
            self._session.select(selected)
        if removed:
            for node_id in removed:
                self._dragging.pop(node_id, None)
            results.append(self._session.apply(remove_nodes, removed))
        return results

    def on_edges_change(self, changes: Iterable[Any]) -> List[EditResult]:
        results: List[EditResult] = []
        view = self._session.view()
        for change in changes or []:
            if not isinstance(change, dict):
                results.append(self._malformed(change, "Edge change must be an object"))
                continue
            kind = str(change.get("type") or "").strip()
            edge_id = _change_id(change)
            if not edge_id:
                results.append(self._malformed(change, "Edge change needs id"))
                continue
            if kind == "select":
                if change.get("selected"):
                    self._selected_edges.add(edge_id)
                else:
                    self._selected_edges.discard(edge_id)
            elif kind == "remove":
                edge = view.edge(edge_id)
                if edge is None:
                    results.append(
                        EditResult(
                            spec=self._session.spec,
                            error=StructuralViolation("unknown_edge", f"Edge '{edge_id}' does not exist", ref_id=edge_id),
                        )
                    )
                    continue
                result = self._disconnect(edge)
                if result.ok:
                    self._selected_edges.discard(edge_id)
                results.append(result)
        return results

    def on_delete(self, nodes: Iterable[Any] = (), edges: Iterable[Any] = ()) -> List[EditResult]:
        """Delete a mixed selection: edges first, then nodes."""
        results: List[EditResult] = []
        for edge in edges or []:
            results.append(self._disconnect(edge))

        node_ids: List[str] = []
        for node in nodes or []:
            node_id = node if isinstance(node, str) else (node.get("id") if isinstance(node, dict) else None)
            if not isinstance(node_id, str) or not node_id.strip():
                results.append(self._malformed(node, "Deleted node needs an id"))
                continue
            node_ids.append(node_id.strip())
        if node_ids:
            results.append(self._session.apply(remove_nodes, node_ids))
        return results

    def on_selection_change(self, node_ids: Iterable[str]) -> EditResult:
        self._session.select(n for n in node_ids or [] if isinstance(n, str))
        return self._noop()

    def on_drop(self, kind: Any, position: Any, payload: Any = None) -> EditResult:
        if coerce_position(position) is None:
            return self._malformed(position, "Drop needs a position")
        result = self._session.apply(drop_new_node, kind, position, payload)
        if result.ok and result.changed:
            self._session.select([result.details["node_id"]])
        return result

    def on_duplicate_selected(self) -> EditResult:
        selected = self._session.selected
        ordered = [n.id for n in self._session.view().nodes if n.id in selected]
        return self._session.apply(
            duplicate_nodes,
            ordered,
            selected=True,
            offset=float(self._config.duplicate_offset),
        )

    def on_create_subgraph_from_selection(self, name: Optional[str] = None) -> EditResult:
        """Collapse the selected nodes into one subgraph task."""
        selected = self._session.selected
        ordered = [n.id for n in self._session.view().nodes if n.id in selected]
        return self._session.apply(create_subgraph_from_nodes, ordered, name=name)

    def set_task_argument(self, task_id: str, input_name: str, value: Any = None) -> EditResult:
        """Argument edit from the task details panel."""
        locked = self._lock_violation(task_id)
        if locked is not None:
            return locked
        return self._session.apply(set_task_argument, task_id, input_name, value)
