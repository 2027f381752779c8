"""pipelinegraph.core.config

Editor configuration (feed URLs, library locations, client ids, editing limits).

The configuration is an explicit value: hosts build one at startup and pass it
to the session, the view adapter and the component resolver. Nothing in the
package reads process-wide globals or environment variables.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Optional

DEFAULT_HISTORY_LIMIT = 50
DEFAULT_DUPLICATE_OFFSET = 10.0
# Width of a task node card; used to place nodes created from an input handle
# to the left of the handle they connect to.
DEFAULT_NODE_WIDTH = 300.0


def _opt_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _float_or(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _int_or(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class EditorConfig:
    """Settings for an editing session and its collaborators.

    Attributes:
        component_library_url: URL of the component library index (optional)
        component_feed_urls: Additional component feed URLs
        pipeline_store_dir: Directory used by file-based pipeline stores
        oauth_client_id: Client id handed to the (external) auth layer
        http_timeout_s: Timeout for component fetches over HTTP
        history_limit: Maximum number of undo (and redo) entries
        duplicate_offset: Pixel offset applied to duplicated nodes
        default_node_width: Task node width used for placement heuristics
        lock_tasks_with_status: Refuse argument edits on tasks carrying an
            execution status annotation

    Example:
        >>> config = EditorConfig(history_limit=10)
        >>> config.with_overrides(http_timeout_s=3).http_timeout_s
        3
    """

    component_library_url: Optional[str] = None
    component_feed_urls: List[str] = field(default_factory=list)
    pipeline_store_dir: Optional[str] = None
    oauth_client_id: Optional[str] = None

    http_timeout_s: float = 10.0

    history_limit: int = DEFAULT_HISTORY_LIMIT
    duplicate_offset: float = DEFAULT_DUPLICATE_OFFSET
    default_node_width: float = DEFAULT_NODE_WIDTH
    lock_tasks_with_status: bool = True

    @classmethod
    def from_dict(cls, raw: Any) -> "EditorConfig":
        """Build a config from a JSON-like dict (snake_case or camelCase keys).

        Unknown keys are ignored; invalid values fall back to defaults.
        """
        if not isinstance(raw, dict):
            return cls()

        def pick(*keys: str) -> Any:
            for k in keys:
                if k in raw:
                    return raw[k]
            return None

        feeds_raw = pick("component_feed_urls", "componentFeedUrls")
        feeds: list[str] = []
        if isinstance(feeds_raw, list):
            for it in feeds_raw:
                if isinstance(it, str) and it.strip():
                    feeds.append(it.strip())

        lock_raw = pick("lock_tasks_with_status", "lockTasksWithStatus")

        return cls(
            component_library_url=_opt_str(pick("component_library_url", "componentLibraryUrl")),
            component_feed_urls=feeds,
            pipeline_store_dir=_opt_str(pick("pipeline_store_dir", "pipelineStoreDir")),
            oauth_client_id=_opt_str(pick("oauth_client_id", "oauthClientId")),
            http_timeout_s=_float_or(pick("http_timeout_s", "httpTimeoutS"), 10.0),
            history_limit=max(0, _int_or(pick("history_limit", "historyLimit"), DEFAULT_HISTORY_LIMIT)),
            duplicate_offset=_float_or(pick("duplicate_offset", "duplicateOffset"), DEFAULT_DUPLICATE_OFFSET),
            default_node_width=_float_or(pick("default_node_width", "defaultNodeWidth"), DEFAULT_NODE_WIDTH),
            lock_tasks_with_status=bool(lock_raw) if isinstance(lock_raw, bool) else True,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def with_overrides(self, **overrides: Any) -> "EditorConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)
