"""pipelinegraph.validation

Structural checks over a pipeline document, plus the boundary protocol for an
external (schema) validator.

`validate_pipeline` reports; it never raises and never modifies the document.
Edit operations keep these invariants on their own; the validator exists for
imported documents and for tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .core.arguments import GraphInputArgument, TaskOutputArgument
from .core.models import ComponentSpec, GraphSpec
from .logging import get_logger

logger = get_logger(__name__)

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
    ref_id: Optional[str] = None
    severity: str = SEVERITY_ERROR


def _duplicates(names: List[str]) -> List[str]:
    seen: set[str] = set()
    dupes: List[str] = []
    for n in names:
        if n in seen and n not in dupes:
            dupes.append(n)
        seen.add(n)
    return dupes


def _find_cycle_members(graph: GraphSpec) -> List[str]:
    """Return task ids that sit on a dependency cycle (empty when acyclic)."""
    deps: Dict[str, List[str]] = {}
    for tid, task in graph.tasks.items():
        deps[tid] = [a.task_id for a in task.arguments.values() if isinstance(a, TaskOutputArgument) and a.task_id in graph.tasks]

    white, grey, black = 0, 1, 2
    color = {tid: white for tid in deps}
    on_cycle: List[str] = []

    for root in deps:
        if color[root] != white:
            continue
        stack: List[tuple[str, int]] = [(root, 0)]
        path: List[str] = []
        while stack:
            node, idx = stack.pop()
            if idx == 0:
                color[node] = grey
                path.append(node)
            children = deps[node]
            if idx < len(children):
                stack.append((node, idx + 1))
                child = children[idx]
                if color[child] == white:
                    stack.append((child, 0))
                elif color[child] == grey:
                    for member in path[path.index(child):]:
                        if member not in on_cycle:
                            on_cycle.append(member)
            else:
                color[node] = black
                path.pop()
    return on_cycle


def validate_pipeline(spec: ComponentSpec) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []

    for name in _duplicates(spec.input_names()):
        issues.append(ValidationIssue("duplicate_input", f"Duplicate input name '{name}'", ref_id=name))
    for name in _duplicates(spec.output_names()):
        issues.append(ValidationIssue("duplicate_output", f"Duplicate output name '{name}'", ref_id=name))

    graph = spec.graph
    if graph is None:
        return issues

    declared_inputs = set(spec.input_names())
    declared_outputs = set(spec.output_names())

    for task_id, task in graph.tasks.items():
        component = task.component_ref.spec
        for arg_name, arg in task.arguments.items():
            if component is not None and component.find_input(arg_name) is None:
                issues.append(
                    ValidationIssue("unknown_port", f"Task '{task_id}' has no input '{arg_name}'", ref_id=task_id)
                )
            if isinstance(arg, TaskOutputArgument):
                source = graph.tasks.get(arg.task_id)
                if source is None:
                    issues.append(
                        ValidationIssue(
                            "dangling_task_reference",
                            f"Task '{task_id}' argument '{arg_name}' references missing task '{arg.task_id}'",
                            ref_id=task_id,
                        )
                    )
                elif source.component_ref.spec is not None and source.component_ref.spec.find_output(arg.output_name) is None:
                    issues.append(
                        ValidationIssue(
                            "unknown_port",
                            f"Task '{arg.task_id}' has no output '{arg.output_name}'",
                            ref_id=arg.task_id,
                        )
                    )
            elif isinstance(arg, GraphInputArgument) and arg.input_name not in declared_inputs:
                issues.append(
                    ValidationIssue(
                        "dangling_input_reference",
                        f"Task '{task_id}' argument '{arg_name}' references missing input '{arg.input_name}'",
                        ref_id=task_id,
                    )
                )

        if component is not None:
            for inp in component.inputs:
                if inp.name not in task.arguments and inp.default is None and not inp.optional:
                    issues.append(
                        ValidationIssue(
                            "unsatisfied_input",
                            f"Task '{task_id}' input '{inp.name}' has no argument and no default",
                            ref_id=task_id,
                            severity=SEVERITY_WARNING,
                        )
                    )

    for output_name, ref in graph.output_values.items():
        if output_name not in declared_outputs:
            issues.append(
                ValidationIssue("undeclared_output", f"Output value for undeclared output '{output_name}'", ref_id=output_name)
            )
        if ref.task_id not in graph.tasks:
            issues.append(
                ValidationIssue(
                    "dangling_task_reference",
                    f"Output '{output_name}' references missing task '{ref.task_id}'",
                    ref_id=output_name,
                )
            )

    for task_id in _find_cycle_members(graph):
        issues.append(ValidationIssue("cycle", f"Task '{task_id}' is part of a dependency cycle", ref_id=task_id))

    return issues


def is_valid(spec: ComponentSpec) -> bool:
    """True when the document has no error-severity issues."""
    return not any(i.severity == SEVERITY_ERROR for i in validate_pipeline(spec))


@dataclass(frozen=True)
class ValidationReport:
    ok: bool
    messages: List[str] = field(default_factory=list)


@runtime_checkable
class ExternalValidator(Protocol):
    """Opaque schema validator supplied by the host."""

    def validate(self, spec: ComponentSpec) -> ValidationReport: ...


def run_external_validator(validator: Any, spec: ComponentSpec) -> ValidationReport:
    """Call a host validator; a crash is reported as a failed validation."""
    try:
        report = validator.validate(spec)
    except Exception as e:
        logger.warning("External validator failed", error=str(e))
        return ValidationReport(ok=False, messages=[f"Validator error: {e}"])
    if not isinstance(report, ValidationReport):
        return ValidationReport(ok=False, messages=["Validator returned an unexpected result"])
    return report
