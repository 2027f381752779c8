"""pipelinegraph.components

Component resolution: turning a `ComponentReference` (inline text, URL, digest)
into a hydrated reference whose `spec` carries the component's declared ports.

Resolution is a boundary concern: the edit layer never fetches anything, it only
reads `ComponentReference.spec` when it is present.
"""

from __future__ import annotations

import hashlib
from dataclasses import replace
from typing import Dict, Optional, Protocol, Tuple, runtime_checkable

from .core.config import EditorConfig
from .core.errors import InvalidArgumentError
from .core.models import ComponentReference, ComponentSpec
from .logging import get_logger
from .serialization import SerializationError, load_pipeline_yaml

logger = get_logger(__name__)


class ComponentResolutionError(RuntimeError):
    """A component reference could not be turned into a component spec."""


@runtime_checkable
class ComponentResolver(Protocol):
    def resolve(self, ref: ComponentReference) -> ComponentReference: ...


class TextSender(Protocol):
    def get_text(self, url: str, *, timeout: float) -> str: ...


def component_digest(text: str) -> str:
    """sha256 hex digest of the component text (UTF-8)."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class HttpxSender:
    """Default URL fetcher based on httpx (sync)."""

    def __init__(self):
        import httpx

        self._httpx = httpx

    def get_text(self, url: str, *, timeout: float) -> str:
        resp = self._httpx.get(url, timeout=timeout, follow_redirects=True)
        resp.raise_for_status()
        return resp.text


def _parse_component_text(text: str, where: str) -> ComponentSpec:
    try:
        return load_pipeline_yaml(text)
    except (SerializationError, InvalidArgumentError) as e:
        raise ComponentResolutionError(f"Invalid component text ({where}): {e}") from e


class CachingComponentResolver:
    """Resolves references from inline text or URL, caching by url and digest.

    Attributes:
        config: EditorConfig (HTTP timeout)
        sender: URL fetcher; defaults to an httpx-based sender created on first use
    """

    def __init__(self, config: Optional[EditorConfig] = None, sender: Optional[TextSender] = None):
        self._config = config or EditorConfig()
        self._sender = sender
        self._by_url: Dict[str, Tuple[str, ComponentSpec]] = {}
        self._by_digest: Dict[str, Tuple[str, ComponentSpec]] = {}

    def _get_sender(self) -> TextSender:
        if self._sender is None:
            self._sender = HttpxSender()
        return self._sender

    def _remember(self, text: str, spec: ComponentSpec, url: Optional[str]) -> str:
        digest = component_digest(text)
        self._by_digest[digest] = (text, spec)
        if url:
            self._by_url[url] = (text, spec)
        return digest

    def _fetch(self, url: str) -> str:
        try:
            return self._get_sender().get_text(url, timeout=float(self._config.http_timeout_s))
        except Exception as e:
            logger.warning("Component fetch failed", url=url, error=str(e))
            raise ComponentResolutionError(f"Failed to fetch component from {url}: {e}") from e

    def _hydrated(self, ref: ComponentReference, text: str, spec: ComponentSpec, digest: str) -> ComponentReference:
        return replace(ref, spec=spec, text=text, digest=ref.digest or digest, name=ref.name or spec.name)

    def resolve(self, ref: ComponentReference) -> ComponentReference:
        if ref.spec is not None:
            return ref

        if ref.digest and ref.digest in self._by_digest:
            text, spec = self._by_digest[ref.digest]
            return self._hydrated(ref, text, spec, ref.digest)

        if ref.text is not None:
            spec = _parse_component_text(ref.text, ref.name or "inline")
            digest = self._remember(ref.text, spec, ref.url)
            return self._hydrated(ref, ref.text, spec, digest)

        if ref.url:
            cached = self._by_url.get(ref.url)
            if cached is not None:
                text, spec = cached
                return self._hydrated(ref, text, spec, component_digest(text))
            text = self._fetch(ref.url)
            spec = _parse_component_text(text, ref.url)
            digest = self._remember(text, spec, ref.url)
            logger.debug("Fetched component", url=ref.url, digest=digest)
            return self._hydrated(ref, text, spec, digest)

        raise ComponentResolutionError(f"Component reference '{ref.name or ''}' has no text, url or known digest")

    def clear(self) -> None:
        self._by_url.clear()
        self._by_digest.clear()


def hydrate_pipeline(spec: ComponentSpec, resolver: ComponentResolver) -> ComponentSpec:
    """Hydrate every task's component reference.

    A reference that fails to resolve stays unhydrated; port validation is then
    skipped for that task and its node renders without declared ports.
    """
    graph = spec.graph
    if graph is None:
        return spec

    tasks = {}
    changed = False
    for task_id, task in graph.tasks.items():
        if task.component_ref.spec is not None:
            tasks[task_id] = task
            continue
        try:
            ref = resolver.resolve(task.component_ref)
        except ComponentResolutionError as e:
            logger.warning("Leaving component unhydrated", task_id=task_id, error=str(e))
            tasks[task_id] = task
            continue
        tasks[task_id] = replace(task, component_ref=ref)
        changed = True

    if not changed:
        return spec
    return replace(spec, implementation=replace(spec.implementation, graph=replace(graph, tasks=tasks)))
