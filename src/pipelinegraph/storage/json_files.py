"""pipelinegraph.storage.json_files

File-based pipeline store: one JSON file per pipeline holding the wire-format
document plus its name and save time.
"""

from __future__ import annotations

import hashlib
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from .base import PipelineEntry, PipelineStore, PipelineStoreError, _utc_now_iso, normalize_pipeline_name
from ..core.models import ComponentSpec
from ..logging import get_logger
from ..serialization import SerializationError, component_spec_from_dict, component_spec_to_dict

logger = get_logger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


class JsonFilePipelineStore(PipelineStore):
    def __init__(self, base_dir: str | Path):
        self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)

    def _path(self, name: str) -> Path:
        # Distinct names may sanitize to the same stem; the hash keeps files apart.
        stem = _UNSAFE.sub("_", name).strip("._")[:64] or "pipeline"
        suffix = hashlib.sha256(name.encode("utf-8")).hexdigest()[:12]
        return self._base / f"pipeline_{stem}_{suffix}.json"

    def _read(self, path: Path) -> Dict[str, Any]:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict) or not isinstance(data.get("spec"), dict):
            raise PipelineStoreError(f"Stored pipeline file is malformed: {path.name}")
        return data

    def save(self, name: str, spec: ComponentSpec) -> PipelineEntry:
        key = normalize_pipeline_name(name)
        saved_at = _utc_now_iso()
        payload = {"name": key, "saved_at": saved_at, "spec": component_spec_to_dict(spec)}
        p = self._path(key)
        tmp = p.with_suffix(".json.tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        tmp.replace(p)
        logger.debug("Saved pipeline", name=key, path=str(p))
        return PipelineEntry(name=key, saved_at=saved_at)

    def load(self, name: str) -> Optional[ComponentSpec]:
        p = self._path(normalize_pipeline_name(name))
        if not p.exists():
            return None
        data = self._read(p)
        try:
            return component_spec_from_dict(data["spec"])
        except SerializationError as e:
            raise PipelineStoreError(f"Stored pipeline '{name}' is not a valid document: {e}") from e

    def list(self) -> List[PipelineEntry]:
        entries: List[PipelineEntry] = []
        for p in self._base.glob("pipeline_*.json"):
            try:
                data = self._read(p)
            except (OSError, ValueError) as e:
                logger.warning("Skipping unreadable pipeline file", path=str(p), error=str(e))
                continue
            entries.append(PipelineEntry(name=str(data.get("name") or p.stem), saved_at=str(data.get("saved_at") or "")))
        return sorted(entries, key=lambda e: e.saved_at, reverse=True)

    def delete(self, name: str) -> bool:
        p = self._path(normalize_pipeline_name(name))
        if not p.exists():
            return False
        p.unlink()
        logger.debug("Deleted pipeline", name=name)
        return True
