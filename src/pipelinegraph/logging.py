"""pipelinegraph.logging

Structured logging helpers (structlog).

Library modules obtain a logger with `get_logger(__name__)` and log key/value
events (`logger.debug("Rejected edit", code=..., ref_id=...)`). Hosts decide
the output format; `configure_logging` is a convenience for scripts and tests.
"""

from __future__ import annotations

import logging
from typing import Any, Union

import structlog


def get_logger(name: str) -> Any:
    """Return a structlog logger bound to `name`."""
    return structlog.get_logger(name)


def configure_logging(level: Union[int, str] = "INFO") -> None:
    """Configure structlog's default pipeline with a minimum level.

    Accepts a stdlib level number or name ("DEBUG", "info", ...). Unknown names
    fall back to INFO.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        level_no = resolved if isinstance(resolved, int) else logging.INFO
    else:
        level_no = int(level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_no),
        cache_logger_on_first_use=False,
    )
