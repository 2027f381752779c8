from __future__ import annotations

import hashlib
from typing import Dict, List

import pytest

from pipelinegraph.components import (
    CachingComponentResolver,
    ComponentResolutionError,
    component_digest,
    hydrate_pipeline,
)
from pipelinegraph.core.config import EditorConfig
from pipelinegraph.core.models import ComponentReference, new_graph_pipeline
from pipelinegraph.edits import connect, drop_new_node

TRAIN_YAML = """
name: Train
inputs:
  - {name: data, type: CSV}
outputs:
  - {name: model, type: Model}
implementation:
  container:
    image: python:3.11
"""

TRAIN_URL = "https://example.com/components/train.yaml"


class FakeSender:
    def __init__(self, pages: Dict[str, str]):
        self.pages = dict(pages)
        self.calls: List[tuple] = []

    def get_text(self, url: str, *, timeout: float) -> str:
        self.calls.append((url, timeout))
        if url not in self.pages:
            raise RuntimeError(f"404 for {url}")
        return self.pages[url]


def test_component_digest_is_sha256_of_text() -> None:
    assert component_digest(TRAIN_YAML) == hashlib.sha256(TRAIN_YAML.encode("utf-8")).hexdigest()


@pytest.mark.basic
def test_resolve_url_fetches_once_and_caches() -> None:
    sender = FakeSender({TRAIN_URL: TRAIN_YAML})
    resolver = CachingComponentResolver(EditorConfig(http_timeout_s=3), sender=sender)

    ref = resolver.resolve(ComponentReference(url=TRAIN_URL))
    assert ref.is_hydrated
    assert ref.name == "Train"
    assert ref.spec.input_names() == ["data"]
    assert ref.digest == component_digest(TRAIN_YAML)
    assert ref.text == TRAIN_YAML

    again = resolver.resolve(ComponentReference(url=TRAIN_URL))
    assert again.spec == ref.spec
    assert sender.calls == [(TRAIN_URL, 3.0)]

    # Known digests resolve without text or url.
    by_digest = resolver.resolve(ComponentReference(digest=ref.digest))
    assert by_digest.spec == ref.spec
    assert len(sender.calls) == 1


def test_resolve_inline_text_and_pass_through_hydrated_refs() -> None:
    sender = FakeSender({})
    resolver = CachingComponentResolver(sender=sender)

    ref = resolver.resolve(ComponentReference(text=TRAIN_YAML))
    assert ref.spec.output_names() == ["model"]
    assert sender.calls == []

    assert resolver.resolve(ref) is ref


def test_resolution_failures_raise_component_resolution_error() -> None:
    resolver = CachingComponentResolver(sender=FakeSender({"https://example.com/bad.yaml": "name: [broken"}))

    with pytest.raises(ComponentResolutionError):
        resolver.resolve(ComponentReference(url="https://example.com/missing.yaml"))
    with pytest.raises(ComponentResolutionError):
        resolver.resolve(ComponentReference(url="https://example.com/bad.yaml"))
    with pytest.raises(ComponentResolutionError):
        resolver.resolve(ComponentReference(text="name: no implementation"))
    with pytest.raises(ComponentResolutionError):
        resolver.resolve(ComponentReference(name="nothing to go on"))


def test_hydrate_pipeline_leaves_failing_references_unhydrated() -> None:
    spec = new_graph_pipeline("P")
    spec = drop_new_node(spec, "task", (0, 0), ComponentReference(name="Train", url=TRAIN_URL)).spec
    spec = drop_new_node(spec, "task", (300, 0), ComponentReference(name="Gone", url="https://example.com/gone.yaml")).spec

    hydrated = hydrate_pipeline(spec, CachingComponentResolver(sender=FakeSender({TRAIN_URL: TRAIN_YAML})))
    tasks = hydrated.graph.tasks
    assert tasks["Train"].component_ref.is_hydrated
    assert not tasks["Gone"].component_ref.is_hydrated
    assert tasks["Gone"] is spec.graph.tasks["Gone"]

    # Port checks now apply to the hydrated task only.
    assert connect(hydrated, "task_Gone", "output_x", "task_Train", "input_nope").error.code == "unknown_port"
    assert connect(hydrated, "task_Train", "output_model", "task_Gone", "input_anything").ok

    # Nothing left to hydrate: same document back.
    assert hydrate_pipeline(hydrated, CachingComponentResolver(sender=FakeSender({}))) is hydrated
