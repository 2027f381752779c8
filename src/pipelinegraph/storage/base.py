"""pipelinegraph.storage.base

Keyed pipeline persistence (the editor's "My pipelines" list).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from ..core.models import ComponentSpec


class PipelineStoreError(ValueError):
    """Invalid pipeline name or unreadable stored document."""


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_pipeline_name(name: str) -> str:
    s = str(name or "").strip()
    if not s:
        raise PipelineStoreError("Pipeline name must be a non-empty string")
    return s


@dataclass(frozen=True)
class PipelineEntry:
    name: str
    saved_at: str


class PipelineStore(ABC):
    @abstractmethod
    def save(self, name: str, spec: ComponentSpec) -> PipelineEntry: ...

    @abstractmethod
    def load(self, name: str) -> Optional[ComponentSpec]: ...

    @abstractmethod
    def list(self) -> List[PipelineEntry]:
        """Stored pipelines, most recently saved first."""

    @abstractmethod
    def delete(self, name: str) -> bool: ...
