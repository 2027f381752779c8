"""pipelinegraph.status

Overlay of execution-backend task statuses onto task annotations.

Status strings are opaque (display only). A task carrying a status is treated
as locked by the view adapter's editing policy; the document model itself does
not restrict it.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Mapping, Optional

from .core.annotations import STATUS_ANNOTATION, remove_annotation, set_annotation
from .core.models import ComponentSpec, TaskSpec


def task_status(task: TaskSpec) -> Optional[str]:
    value = task.annotations.get(STATUS_ANNOTATION)
    return value if isinstance(value, str) and value else None


def is_task_locked(task: TaskSpec) -> bool:
    return task_status(task) is not None


def apply_task_statuses(spec: ComponentSpec, statuses: Mapping[str, str]) -> ComponentSpec:
    """Write `annotations["status"]` for each known task id; unknown ids are ignored.

    Returns the same document when no status changes.
    """
    graph = spec.graph
    if graph is None or not statuses:
        return spec

    tasks = dict(graph.tasks)
    changed = False
    for task_id, status in statuses.items():
        task = tasks.get(task_id)
        if task is None or not isinstance(status, str):
            continue
        if task.annotations.get(STATUS_ANNOTATION) == status:
            continue
        tasks[task_id] = replace(task, annotations=set_annotation(task.annotations, STATUS_ANNOTATION, status))
        changed = True

    if not changed:
        return spec
    return replace(spec, implementation=replace(spec.implementation, graph=replace(graph, tasks=tasks)))


def clear_task_statuses(spec: ComponentSpec) -> ComponentSpec:
    graph = spec.graph
    if graph is None:
        return spec
    tasks = {
        tid: (replace(t, annotations=remove_annotation(t.annotations, STATUS_ANNOTATION)) if STATUS_ANNOTATION in t.annotations else t)
        for tid, t in graph.tasks.items()
    }
    if all(tasks[tid] is graph.tasks[tid] for tid in tasks):
        return spec
    return replace(spec, implementation=replace(spec.implementation, graph=replace(graph, tasks=tasks)))
