"""Shared fixtures: a recording presenter and structlog routed to stdlib."""

from typing import Any

import pytest
import structlog

from ws3270.dispatcher import IndicationDispatcher
from ws3270.protocol import Cursor


class RecordingPresenter:
    """Presenter fake that keeps every call for later assertions."""

    def __init__(self) -> None:
        self.cells: list[tuple[int, range]] = []
        self.cursors: list[Cursor] = []
        self.status: list[tuple[str, str]] = []
        self.passed: list[Any] = []
        self.events: list[str] = []

    def render_cells_changed(self, row: int, columns: range) -> None:
        self.cells.append((row, columns))

    def render_cursor_moved(self, cursor: Cursor) -> None:
        self.cursors.append(cursor)

    def render_status_field_changed(self, field: str, text: str) -> None:
        self.status.append((field, text))

    def attach(self) -> None:
        self.events.append("attach")

    def detach(self) -> None:
        self.events.append("detach")

    def passthrough(self, indication: Any) -> None:
        self.passed.append(indication)


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture
def dispatcher(presenter: RecordingPresenter) -> IndicationDispatcher:
    return IndicationDispatcher.for_presenter(presenter)


@pytest.fixture
def structlog_to_stdlib():
    """Configure structlog to route through stdlib logging so caplog works."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()
