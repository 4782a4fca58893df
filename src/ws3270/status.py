"""Operator information area (status strip) state.

Each field holds its rendered text and is updated independently; a field
keeps its last value until the host changes it again. OIA indications name
the field they target, and unknown names are ignored so newer hosts do not
break older clients.

Key class: StatusIndicators. Rendered field names, in strip order, are
listed in FIELD_ORDER.
"""

from collections.abc import Callable

import structlog

from .presenter import NullPresenter, Presenter
from .protocol import Cursor, OiaUpdate

logger = structlog.get_logger()

FIELD_ORDER: tuple[str, ...] = (
    "not-undera",
    "connection",
    "lock",
    "compose",
    "typeahead",
    "reverse-input",
    "insert",
    "printer",
    "screen-trace",
    "script",
    "lu",
    "timing",
    "position",
)

CONNECTION_GLYPHS: dict[str, str] = {
    "not-connected": " ",
    "reconnecting": "~",
    "resolving": "?",
    "tcp-pending": "-",
    "tls-pending": "=",
    "telnet-pending": "t",
    "connected-nvt": "n",
    "connected-nvt-charmode": "C",
    "connected-3270": "3",
    "connected-unbound": "!",
    "connected-e-nvt": "N",
    "connected-sscp": "S",
    "connected-tn3270e": "E",
}

READY_LABEL = "READY"
COMPOSE_IDLE = " " * 7
TIMING_IDLE = " " * 6

_LOCK_WIDTH = 35
_COMPOSE_WIDTH = 10
_LU_WIDTH = 8
_TIMING_WIDTH = 7


class StatusIndicators:
    """Rendered text for every status-strip field."""

    def __init__(self, presenter: Presenter | None = None) -> None:
        self._presenter: Presenter = presenter or NullPresenter()
        self._fields: dict[str, str] = {name: " " for name in FIELD_ORDER}
        self._fields["reverse-input"] = ">"
        self._oia_handlers: dict[str, Callable[[OiaUpdate], None]] = {
            "compose": self._on_compose,
            "insert": self._on_insert,
            "lock": self._on_lock,
            "lu": self._on_lu,
            "not-undera": self._on_not_undera,
            "reverse-input": self._on_reverse_input,
            "screen-trace": self._on_screen_trace,
            "script": self._on_script,
            "timing": self._on_timing,
            "typeahead": self._on_typeahead,
        }

    def __getitem__(self, name: str) -> str:
        return self._fields[name]

    @property
    def fields(self) -> dict[str, str]:
        return dict(self._fields)

    def _set(self, name: str, text: str) -> None:
        self._fields[name] = text
        self._presenter.render_status_field_changed(name, text)

    def set_connection_state(self, state: str) -> bool:
        """Show the glyph for a connection state. Returns False if unknown."""
        glyph = CONNECTION_GLYPHS.get(state)
        if glyph is None:
            logger.debug("Ignoring unknown connection state %r", state)
            return False
        self._set("connection", glyph)
        return True

    def set_position(self, cursor: Cursor) -> None:
        """Show the cursor as column/row; a disabled cursor leaves it alone."""
        if cursor.enabled and cursor.row is not None and cursor.column is not None:
            self._set("position", f"{cursor.column:03d}/{cursor.row:03d}")

    def apply_oia(self, update: OiaUpdate) -> bool:
        """Route an OIA update to its field. Returns False for unknown fields."""
        handler = self._oia_handlers.get(update.field)
        if handler is None:
            logger.debug("Ignoring unknown OIA field %r", update.field)
            return False
        handler(update)
        return True

    def _on_compose(self, update: OiaUpdate) -> None:
        if not update.value:
            self._set("compose", COMPOSE_IDLE)
            return
        if update.char is None:
            logger.warning("Compose active without a character: %r", update)
            return
        marker = "G" if update.type == "ge" else " "
        self._set("compose", f"{marker}{update.char}")

    def _on_insert(self, update: OiaUpdate) -> None:
        self._set("insert", "^" if update.value else " ")

    def _on_lock(self, update: OiaUpdate) -> None:
        self._set("lock", str(update.value) if update.value else READY_LABEL)

    def _on_lu(self, update: OiaUpdate) -> None:
        self._set("lu", str(update.value) if update.value else " ")
        self._set("printer", "P" if update.lu else " ")

    def _on_not_undera(self, update: OiaUpdate) -> None:
        self._set("not-undera", "B" if update.value else " ")

    def _on_reverse_input(self, update: OiaUpdate) -> None:
        self._set("reverse-input", "<" if update.value else ">")

    def _on_screen_trace(self, update: OiaUpdate) -> None:
        count = update.value if isinstance(update.value, int) else 0
        self._set("screen-trace", "t" if count > 0 else " ")

    def _on_script(self, update: OiaUpdate) -> None:
        self._set("script", "s" if update.value else " ")

    def _on_timing(self, update: OiaUpdate) -> None:
        self._set("timing", str(update.value) if update.value else TIMING_IDLE)

    def _on_typeahead(self, update: OiaUpdate) -> None:
        self._set("typeahead", "T" if update.value else " ")

    def render_line(self) -> str:
        """Format the whole strip as one line of text."""
        f = self._fields
        flags = "".join(
            f[name]
            for name in (
                "typeahead",
                "reverse-input",
                "insert",
                "printer",
                "screen-trace",
                "script",
            )
        )
        return (
            f" {f['not-undera']}{f['connection']}{f['lock']:<{_LOCK_WIDTH}}"
            f" {f['compose']:<{_COMPOSE_WIDTH}}{flags}"
            f" {f['lu']:<{_LU_WIDTH}} {f['timing']:<{_TIMING_WIDTH}} {f['position']}"
        )
