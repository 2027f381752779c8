"""Shared helpers for edit operations (raise `EditError`, never mutate)."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Set

from ..core.arguments import TaskOutputArgument
from ..core.errors import StructuralViolation
from ..core.models import ComponentSpec, GraphImplementation, GraphSpec, TaskSpec


def require_graph(spec: ComponentSpec) -> GraphSpec:
    graph = spec.graph
    if graph is None:
        raise StructuralViolation("not_a_graph", "Pipeline implementation is not a graph", ref_id=spec.name)
    return graph


def require_task(graph: GraphSpec, task_id: str) -> TaskSpec:
    task = graph.tasks.get(task_id)
    if task is None:
        raise StructuralViolation("unknown_task", f"Task '{task_id}' does not exist", ref_id=task_id)
    return task


def with_graph(spec: ComponentSpec, graph: GraphSpec) -> ComponentSpec:
    if spec.graph is graph:
        return spec
    return replace(spec, implementation=GraphImplementation(graph=graph))


def with_task(graph: GraphSpec, task_id: str, task: TaskSpec) -> GraphSpec:
    """Replace (or append) one task, keeping the task order."""
    if graph.tasks.get(task_id) is task:
        return graph
    tasks = dict(graph.tasks)
    tasks[task_id] = task
    return replace(graph, tasks=tasks)


def downstream_task_ids(graph: GraphSpec, task_id: str) -> Set[str]:
    """All tasks that (transitively) consume an output of `task_id`."""
    consumers: Dict[str, Set[str]] = {}
    for tid, task in graph.tasks.items():
        for arg in task.arguments.values():
            if isinstance(arg, TaskOutputArgument):
                consumers.setdefault(arg.task_id, set()).add(tid)

    seen: Set[str] = set()
    stack = [task_id]
    while stack:
        current = stack.pop()
        for nxt in consumers.get(current, ()):
            if nxt not in seen:
                seen.add(nxt)
                stack.append(nxt)
    return seen
