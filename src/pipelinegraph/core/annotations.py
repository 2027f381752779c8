"""pipelinegraph.core.annotations

Typed access to the flat string-keyed annotation bags carried by tasks and ports.

Editor metadata is stored wire-compatibly as JSON text inside the bag
(`"editor.position": "{\"x\": 10, \"y\": 20}"`). Reads never raise: malformed
values decode to defaults. Writes return a new bag and keep every other key.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..logging import get_logger

logger = get_logger(__name__)

POSITION_ANNOTATION = "editor.position"
STATUS_ANNOTATION = "status"


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0

    def offset(self, dx: float, dy: float) -> "Position":
        return Position(x=self.x + dx, y=self.y + dy)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


ORIGIN = Position(0.0, 0.0)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def coerce_position(raw: Any) -> Optional[Position]:
    """Accept a Position, a `{"x", "y"}` mapping or an `(x, y)` pair; None if malformed."""
    if isinstance(raw, Position):
        return raw
    if isinstance(raw, Mapping):
        x, y = raw.get("x"), raw.get("y")
        if _is_number(x) and _is_number(y):
            return Position(x=x, y=y)
        return None
    if isinstance(raw, (tuple, list)) and len(raw) == 2 and all(_is_number(v) for v in raw):
        return Position(x=raw[0], y=raw[1])
    return None


def _position_object(annotations: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    raw = (annotations or {}).get(POSITION_ANNOTATION)
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.debug("Malformed position annotation", value=raw)
            return {}
        if isinstance(parsed, dict):
            return parsed
    logger.debug("Malformed position annotation", value=raw)
    return {}


def encode_position(position: Any) -> str:
    p = coerce_position(position) or ORIGIN
    return json.dumps({"x": p.x, "y": p.y}, separators=(",", ":"))


def decode_position(annotations: Optional[Mapping[str, Any]]) -> Position:
    """Read `editor.position`; the origin when missing or malformed."""
    p = coerce_position(_position_object(annotations))
    return p if p is not None else ORIGIN


def set_position(annotations: Optional[Mapping[str, Any]], position: Any) -> Dict[str, Any]:
    """Return a copy of the bag with the position written in.

    Extra keys already stored in the position object are kept.
    """
    p = coerce_position(position) or ORIGIN
    merged = _position_object(annotations)
    merged["x"] = p.x
    merged["y"] = p.y
    out = dict(annotations or {})
    out[POSITION_ANNOTATION] = json.dumps(merged, separators=(",", ":"))
    return out


def set_annotation(annotations: Optional[Mapping[str, Any]], key: str, value: Any) -> Dict[str, Any]:
    out = dict(annotations or {})
    out[key] = value
    return out


def remove_annotation(annotations: Optional[Mapping[str, Any]], key: str) -> Dict[str, Any]:
    out = dict(annotations or {})
    out.pop(key, None)
    return out
