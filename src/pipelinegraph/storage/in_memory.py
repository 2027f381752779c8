"""pipelinegraph.storage.in_memory

In-memory pipeline store (testing/dev).
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from .base import PipelineEntry, PipelineStore, _utc_now_iso, normalize_pipeline_name
from ..core.models import ComponentSpec


class InMemoryPipelineStore(PipelineStore):
    def __init__(self):
        self._pipelines: Dict[str, Tuple[ComponentSpec, str]] = {}

    def save(self, name: str, spec: ComponentSpec) -> PipelineEntry:
        key = normalize_pipeline_name(name)
        # Documents are immutable; storing the object itself is safe.
        saved_at = _utc_now_iso()
        self._pipelines[key] = (spec, saved_at)
        return PipelineEntry(name=key, saved_at=saved_at)

    def load(self, name: str) -> Optional[ComponentSpec]:
        item = self._pipelines.get(normalize_pipeline_name(name))
        return item[0] if item is not None else None

    def list(self) -> List[PipelineEntry]:
        entries = [PipelineEntry(name=k, saved_at=v[1]) for k, v in self._pipelines.items()]
        return sorted(entries, key=lambda e: e.saved_at, reverse=True)

    def delete(self, name: str) -> bool:
        return self._pipelines.pop(normalize_pipeline_name(name), None) is not None
