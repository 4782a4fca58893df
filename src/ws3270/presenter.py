"""Presentation-layer contract consumed by the session engine.

The engine never reads from the presentation surface; it only reports what
changed after each mutation. Coordinates passed to ``render_cells_changed``
are 0-based (row index, range of column indices).

Implementations:
  - NullPresenter: discards everything (replay, tests).
  - LogPresenter: reports rendering events through structlog (CLI ``run``).
"""

from typing import Any, Protocol, runtime_checkable

import structlog

from .protocol import Cursor

logger = structlog.get_logger()


@runtime_checkable
class Presenter(Protocol):
    """Rendering sink notified after every state mutation."""

    def render_cells_changed(self, row: int, columns: range) -> None: ...

    def render_cursor_moved(self, cursor: Cursor) -> None: ...

    def render_status_field_changed(self, field: str, text: str) -> None: ...

    def attach(self) -> None: ...

    def detach(self) -> None: ...

    def passthrough(self, indication: Any) -> None: ...


class NullPresenter:
    """Presenter that ignores every notification."""

    def render_cells_changed(self, row: int, columns: range) -> None:
        pass

    def render_cursor_moved(self, cursor: Cursor) -> None:
        pass

    def render_status_field_changed(self, field: str, text: str) -> None:
        pass

    def attach(self) -> None:
        pass

    def detach(self) -> None:
        pass

    def passthrough(self, indication: Any) -> None:
        pass


class LogPresenter:
    """Presenter that logs each notification; tracks whether it is attached."""

    def __init__(self) -> None:
        self.attached = False

    def render_cells_changed(self, row: int, columns: range) -> None:
        logger.debug("cells changed: row=%d cols=%d..%d", row, columns.start, columns.stop)

    def render_cursor_moved(self, cursor: Cursor) -> None:
        if cursor.enabled:
            logger.debug("cursor at %s/%s", cursor.row, cursor.column)
        else:
            logger.debug("cursor disabled")

    def render_status_field_changed(self, field: str, text: str) -> None:
        logger.debug("status %s=%r", field, text)

    def attach(self) -> None:
        if not self.attached:
            logger.info("Display attached")
        self.attached = True

    def detach(self) -> None:
        if self.attached:
            logger.info("Display detached")
        self.attached = False

    def passthrough(self, indication: Any) -> None:
        logger.debug("passthrough: %r", indication)
