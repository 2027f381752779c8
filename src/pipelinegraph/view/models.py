"""Node/edge models exchanged with the rendering layer.

These are derived values: the projector rebuilds them from the pipeline
document after every edit. Parsing helpers are intentionally permissive:
- unknown/extra fields are ignored,
- camelCase (rendering framework) and snake_case keys are both accepted,
- malformed entries come back as None rather than raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..core.annotations import ORIGIN, Position


class NodeType(str, Enum):
    TASK = "task"
    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class ViewNode:
    id: str
    type: str
    position: Position = ORIGIN
    data: Dict[str, Any] = field(default_factory=dict)
    selected: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "position": self.position.to_dict(),
            "data": dict(self.data),
            "selected": self.selected,
        }


@dataclass(frozen=True)
class ViewEdge:
    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "sourceHandle": self.source_handle,
            "target": self.target,
            "targetHandle": self.target_handle,
        }


@dataclass(frozen=True)
class ViewGraph:
    nodes: List[ViewNode] = field(default_factory=list)
    edges: List[ViewEdge] = field(default_factory=list)

    def node(self, node_id: str) -> Optional[ViewNode]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def edge(self, edge_id: str) -> Optional[ViewEdge]:
        for e in self.edges:
            if e.id == edge_id:
                return e
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


@dataclass(frozen=True)
class Connection:
    """A user-drawn connection between two handles (not yet an edge)."""

    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None


def _opt_handle(raw: Dict[str, Any], *keys: str) -> Optional[str]:
    for k in keys:
        v = raw.get(k)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return None


def load_connection(raw: Any) -> Optional[Connection]:
    """Parse a connection event (`{source, sourceHandle, target, targetHandle}`); None if malformed."""
    if isinstance(raw, Connection):
        return raw
    if isinstance(raw, ViewEdge):
        return Connection(
            source=raw.source,
            target=raw.target,
            source_handle=raw.source_handle,
            target_handle=raw.target_handle,
        )
    if not isinstance(raw, dict):
        return None
    src = str(raw.get("source") or "").strip()
    tgt = str(raw.get("target") or "").strip()
    if not src or not tgt:
        return None
    return Connection(
        source=src,
        target=tgt,
        source_handle=_opt_handle(raw, "sourceHandle", "source_handle"),
        target_handle=_opt_handle(raw, "targetHandle", "target_handle"),
    )


def load_view_edge(raw: Any) -> Optional[ViewEdge]:
    """Parse an edge as sent back by the rendering layer; None if malformed."""
    if isinstance(raw, ViewEdge):
        return raw
    conn = load_connection(raw)
    if conn is None:
        return None
    eid = str(raw.get("id") or "").strip() if isinstance(raw, dict) else ""
    return ViewEdge(
        id=eid or f"{conn.source}-{conn.target}",
        source=conn.source,
        target=conn.target,
        source_handle=conn.source_handle,
        target_handle=conn.target_handle,
    )
