"""Shared utility functions used across ws3270 modules.

Provides:
  - ws3270_dir(): resolve config directory from WS3270_DIR env var.
  - task_done_callback(): log unhandled exceptions from background asyncio tasks.
"""

import asyncio
import os
from pathlib import Path

import structlog

logger = structlog.get_logger()

WS3270_DIR_ENV = "WS3270_DIR"


def ws3270_dir() -> Path:
    """Resolve config directory from WS3270_DIR env var or default ~/.ws3270."""
    raw = os.environ.get(WS3270_DIR_ENV, "")
    return Path(raw) if raw else Path.home() / ".ws3270"


def task_done_callback(task: asyncio.Task[None]) -> None:
    """Log unhandled exceptions from background asyncio tasks.

    Attach to any fire-and-forget task via ``task.add_done_callback(task_done_callback)``.
    Suppresses CancelledError (normal shutdown).
    """
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Background task %s failed", task.get_name(), exc_info=exc)
