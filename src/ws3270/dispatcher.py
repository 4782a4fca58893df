"""Indication dispatcher — routes decoded indications to the session state.

Receives one decoded indication at a time and applies it:
  - Initialize: each nested indication is dispatched in order, recursively.
  - ScreenMode: resize the screen buffer.
  - ScreenUpdate: patch the screen buffer (and the cursor position field).
  - Erase: clear the screen, optionally with new defaults and size.
  - ConnectionChange: update the connection glyph.
  - OiaUpdate: update one status field.
  - Anything else goes to the presenter's passthrough sink unchanged.

The screen buffer and the status strip are only ever mutated from here.

Key class: IndicationDispatcher.
"""

import structlog

from .presenter import NullPresenter, Presenter
from .protocol import (
    ConnectionChange,
    Erase,
    Indication,
    Initialize,
    OiaUpdate,
    ScreenMode,
    ScreenUpdate,
)
from .screen_buffer import ScreenBuffer
from .status import StatusIndicators

logger = structlog.get_logger()


class IndicationDispatcher:
    """Applies indications to a ScreenBuffer and a StatusIndicators."""

    def __init__(
        self,
        buffer: ScreenBuffer,
        status: StatusIndicators,
        presenter: Presenter | None = None,
    ) -> None:
        self.buffer = buffer
        self.status = status
        self._presenter: Presenter = presenter or NullPresenter()

    @classmethod
    def for_presenter(cls, presenter: Presenter) -> "IndicationDispatcher":
        """Build a dispatcher with a fresh buffer and status strip sharing *presenter*."""
        return cls(
            ScreenBuffer(presenter=presenter),
            StatusIndicators(presenter=presenter),
            presenter,
        )

    def dispatch(self, indication: Indication) -> None:
        """Apply one indication. ScreenBoundsError propagates to the caller."""
        match indication:
            case Initialize(indications=nested):
                for item in nested:
                    self.dispatch(item)
            case ScreenMode(rows=rows, columns=columns):
                self.buffer.resize(rows, columns)
                self.status.set_position(self.buffer.cursor)
            case ScreenUpdate(cursor=cursor):
                self.buffer.apply_screen_update(indication)
                if cursor is not None:
                    self.status.set_position(cursor)
            case Erase():
                self.buffer.erase(
                    foreground=indication.fg,
                    background=indication.bg,
                    rows=indication.logical_rows,
                    columns=indication.logical_cols,
                )
            case ConnectionChange(state=state):
                self.status.set_connection_state(state)
            case OiaUpdate():
                self.status.apply_oia(indication)
            case _:
                logger.debug("Passing through %r", indication)
                self._presenter.passthrough(indication)
