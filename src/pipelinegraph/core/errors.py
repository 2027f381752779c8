"""pipelinegraph.core.errors

Error taxonomy for document edits, and the result value edit operations return.

Edit helpers raise `EditError` subclasses internally; the `edit_operation`
decorator turns them into an `EditResult` carrying the original document, so
callers (view code) always receive a document they can render.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from ..logging import get_logger

logger = get_logger(__name__)


class EditError(ValueError):
    """Base class for rejected edits.

    Attributes:
        code: machine-readable reason ("duplicate_name", "unknown_task", ...)
        ref_id: the node/task/port identifier the failure is about (if any)
    """

    kind = "edit_error"

    def __init__(self, code: str, message: str, *, ref_id: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.ref_id = ref_id

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "code": self.code, "message": self.message, "ref_id": self.ref_id}


class StructuralViolation(EditError):
    """The edit would break the document (dangling reference, duplicate name, unrepresentable edge)."""

    kind = "structural_violation"


class MissingSpec(EditError):
    """The edit needs a component's declared ports but the reference is not hydrated."""

    kind = "missing_spec"


class InvalidArgumentError(ValueError):
    """An argument value is neither a literal nor a recognized reference object."""


@dataclass(frozen=True)
class EditResult:
    """Outcome of an edit operation.

    `spec` is always renderable: the new document on success, the untouched
    input document on failure. `changed` is False when the operation was a
    no-op (the input object is returned as-is).
    """

    spec: Any
    error: Optional[EditError] = None
    changed: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None


def edit_operation(fn: Callable[..., Any]) -> Callable[..., EditResult]:
    """Wrap an edit function `(spec, ...) -> spec | (spec, details)` into an `EditResult` producer.

    EditErrors are caught and reported with the original document.
    """

    @functools.wraps(fn)
    def wrapper(spec: Any, *args: Any, **kwargs: Any) -> EditResult:
        try:
            out = fn(spec, *args, **kwargs)
        except EditError as e:
            logger.debug(
                "Rejected edit",
                operation=fn.__name__,
                kind=e.kind,
                code=e.code,
                ref_id=e.ref_id,
                reason=e.message,
            )
            return EditResult(spec=spec, error=e, changed=False)

        details: Dict[str, Any] = {}
        if isinstance(out, tuple):
            out, details = out
        return EditResult(spec=out, error=None, changed=out is not spec, details=dict(details or {}))

    return wrapper
