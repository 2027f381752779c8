from __future__ import annotations

import json

import pytest

from pipelinegraph.core.config import DEFAULT_HISTORY_LIMIT, EditorConfig
from pipelinegraph.logging import configure_logging, get_logger


@pytest.mark.basic
def test_from_dict_accepts_camel_and_snake_case() -> None:
    config = EditorConfig.from_dict(
        {
            "componentLibraryUrl": " https://example.com/library.yaml ",
            "component_feed_urls": ["https://a.example/feed", "", 3],
            "oauthClientId": "client-1",
            "historyLimit": "20",
            "duplicate_offset": 15,
            "lockTasksWithStatus": False,
            "somethingElse": True,
        }
    )
    assert config.component_library_url == "https://example.com/library.yaml"
    assert config.component_feed_urls == ["https://a.example/feed"]
    assert config.oauth_client_id == "client-1"
    assert config.history_limit == 20
    assert config.duplicate_offset == 15.0
    assert config.lock_tasks_with_status is False


def test_invalid_values_fall_back_to_defaults() -> None:
    config = EditorConfig.from_dict({"historyLimit": "many", "http_timeout_s": None, "defaultNodeWidth": "wide"})
    assert config == EditorConfig()
    assert EditorConfig.from_dict(None) == EditorConfig()
    assert EditorConfig.from_dict({"history_limit": -5}).history_limit == 0
    assert EditorConfig().history_limit == DEFAULT_HISTORY_LIMIT


def test_to_dict_and_overrides() -> None:
    config = EditorConfig(component_feed_urls=["https://a.example/feed"])
    raw = config.to_dict()
    json.dumps(raw)
    assert EditorConfig.from_dict(raw) == config

    changed = config.with_overrides(http_timeout_s=3.0)
    assert changed.http_timeout_s == 3.0
    assert config.http_timeout_s == 10.0


def test_configure_logging_accepts_level_names_and_numbers() -> None:
    configure_logging("debug")
    configure_logging(20)
    configure_logging("not-a-level")
    get_logger("pipelinegraph.tests").info("configured", level="INFO")


@pytest.mark.basic
def test_public_exports_resolve() -> None:
    import pipelinegraph
    import pipelinegraph.edits
    import pipelinegraph.view

    for module in (pipelinegraph, pipelinegraph.edits, pipelinegraph.view):
        missing = [name for name in module.__all__ if not hasattr(module, name)]
        assert missing == [], module.__name__
