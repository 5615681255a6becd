# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""structlog + stdlib bridge. Interactive CLI: ConsoleRenderer, pipelines: JSONRenderer.

Leaf module, no menumap imports. Safe to call early in startup.
"""

from __future__ import annotations

import contextlib
import logging
import sys
from collections.abc import Iterator
from typing import Any

import structlog


# Third-party loggers that flood DEBUG/INFO during a crawl.
NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "playwright")


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(json_output: bool, stream) -> Any:
    if json_output:
        return structlog.processors.JSONRenderer()
    isatty = getattr(stream, "isatty", None)
    return structlog.dev.ConsoleRenderer(colors=bool(isatty and isatty()))


def configure(*, json_output: bool = False, level: str = "INFO") -> None:
    """Route stdlib and structlog records through one stderr handler.

    Args:
        json_output: JSON lines (``--json-logs``) instead of console output.
            Console output is colored only when stderr is a terminal.
        level: Root logger level; unknown names fall back to INFO.
            Loggers in :data:`NOISY_LOGGERS` stay at WARNING unless *level* is DEBUG.
    """
    root_level = getattr(logging, level.upper(), None)
    if not isinstance(root_level, int):
        root_level = logging.INFO
    shared = _shared_processors()
    stream = sys.stderr

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_output, stream),
        ],
        foreign_pre_chain=shared,
    )

    # stdout carries JSON results in the CLI
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(root_level)

    noisy_level = logging.NOTSET if root_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


@contextlib.contextmanager
def log_context(**fields: str) -> Iterator[None]:
    """Bind *fields* (e.g. operation, target) to every log record emitted inside.

    Works with plain ``logging.getLogger`` loggers once :func:`configure` has
    installed the ``merge_contextvars`` processor; otherwise the binding is inert.
    """
    with structlog.contextvars.bound_contextvars(**fields):
        yield
