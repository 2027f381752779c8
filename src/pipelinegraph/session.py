"""pipelinegraph.session

The editing session: sole owner and writer of the pipeline document.

Every user gesture becomes one `apply()` call. A successful edit replaces the
whole document (the previous one goes to the undo stack); a rejected edit leaves
the session untouched. The view is always re-derived with `view()`.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional

from .core.config import EditorConfig
from .core.errors import EditResult
from .core.ids import input_name_to_node_id, output_name_to_node_id, task_id_to_node_id
from .core.models import ComponentSpec
from .logging import get_logger
from .view.models import ViewGraph
from .view.projector import project

logger = get_logger(__name__)


def _existing_node_ids(spec: ComponentSpec) -> set:
    ids = {input_name_to_node_id(n) for n in spec.input_names()}
    ids |= {output_name_to_node_id(n) for n in spec.output_names()}
    graph = spec.graph
    if graph is not None:
        ids |= {task_id_to_node_id(t) for t in graph.tasks}
    return ids


class EditingSession:
    """Single-writer holder of the current document, its history and the selection."""

    def __init__(self, spec: ComponentSpec, config: Optional[EditorConfig] = None):
        self._config = config or EditorConfig()
        self._spec = spec
        self._undo: List[ComponentSpec] = []
        self._redo: List[ComponentSpec] = []
        self._selected: frozenset = frozenset()

    @property
    def config(self) -> EditorConfig:
        return self._config

    @property
    def spec(self) -> ComponentSpec:
        return self._spec

    @property
    def selected(self) -> frozenset:
        return self._selected

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def view(self) -> ViewGraph:
        return project(self._spec, self._selected)

    def select(self, node_ids: Iterable[str]) -> None:
        self._selected = frozenset(node_ids) & _existing_node_ids(self._spec)

    def apply(self, operation: Callable[..., EditResult], *args: Any, **kwargs: Any) -> EditResult:
        """Run an edit operation against the current document and commit its result."""
        result = operation(self._spec, *args, **kwargs)
        if not result.ok or not result.changed:
            return result
        self._commit(result.spec)

        selection = result.details.get("selection")
        if isinstance(selection, dict) and selection:
            chosen = {nid for nid, on in selection.items() if on}
            dropped = {nid for nid, on in selection.items() if not on}
            self._selected = frozenset((self._selected - dropped) | chosen)
        self._prune_selection()
        return result

    def replace(self, spec: ComponentSpec, *, record_history: bool = True) -> None:
        """Swap in an externally loaded document (import, status overlay, hydration)."""
        if spec is self._spec:
            return
        if record_history:
            self._commit(spec)
        else:
            self._spec = spec
        self._selected = frozenset()

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._push(self._redo, self._spec)
        self._spec = self._undo.pop()
        self._prune_selection()
        logger.debug("Undo", undo_depth=len(self._undo), redo_depth=len(self._redo))
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._push(self._undo, self._spec)
        self._spec = self._redo.pop()
        self._prune_selection()
        logger.debug("Redo", undo_depth=len(self._undo), redo_depth=len(self._redo))
        return True

    def clear_history(self) -> None:
        self._undo.clear()
        self._redo.clear()

    def _commit(self, spec: ComponentSpec) -> None:
        self._push(self._undo, self._spec)
        self._redo.clear()
        self._spec = spec

    def _push(self, stack: List[ComponentSpec], spec: ComponentSpec) -> None:
        limit = int(self._config.history_limit)
        if limit <= 0:
            return
        stack.append(spec)
        if len(stack) > limit:
            del stack[: len(stack) - limit]

    def _prune_selection(self) -> None:
        self._selected = self._selected & _existing_node_ids(self._spec)
