"""Wire model and codec for the JSON indication/operation protocol.

Inbound messages are JSON objects tagged by their first key
(``{"screen": {...}}``, ``{"oia": {...}}``, ...). The decoder turns them into
frozen dataclasses so the rest of the engine never touches raw dicts:

  - Initialize: a batch of nested indications (same variant space).
  - ScreenMode / ScreenUpdate / Erase: screen buffer traffic.
  - ConnectionChange / OiaUpdate: status strip traffic.
  - Passthrough: every other tag, forwarded untouched to the presenter.

Outbound traffic is a single ``run`` operation carrying a list of actions,
produced by ``encode_run()``.

Key function: decode_indication().
"""

import json
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

import structlog

logger = structlog.get_logger()


class DecodeError(ValueError):
    """Raised when inbound text is not a well-formed tagged indication."""


class Color(Enum):
    """The sixteen 3270 host colors, valued by their wire names."""

    NEUTRAL_BLACK = "neutralBlack"
    BLUE = "blue"
    RED = "red"
    PINK = "pink"
    GREEN = "green"
    TURQUOISE = "turquoise"
    YELLOW = "yellow"
    NEUTRAL_WHITE = "neutralWhite"
    BLACK = "black"
    DEEP_BLUE = "deepBlue"
    ORANGE = "orange"
    PURPLE = "purple"
    PALE_GREEN = "paleGreen"
    PALE_TURQUOISE = "paleTurquoise"
    GRAY = "gray"
    WHITE = "white"


class Rendition(Enum):
    """Graphic rendition flags. Declaration order is the canonical wire order."""

    UNDERLINE = "underline"
    BLINK = "blink"
    HIGHLIGHT = "highlight"
    SELECTABLE = "selectable"
    REVERSE = "reverse"
    WIDE = "wide"
    ORDER = "order"
    PRIVATE_USE = "private-use"
    NO_COPY = "no-copy"
    WRAP = "wrap"


# Both spellings clear every flag
_EMPTY_RENDITION_SPECS = frozenset({"none", "default"})


def parse_renditions(spec: str) -> frozenset[Rendition]:
    """Parse a comma-joined rendition spec. Unknown flag names are ignored."""
    if spec in _EMPTY_RENDITION_SPECS:
        return frozenset()
    flags: set[Rendition] = set()
    for name in spec.split(","):
        name = name.strip()
        if not name:
            continue
        try:
            flags.add(Rendition(name))
        except ValueError:
            logger.debug("Ignoring unknown rendition flag %r", name)
    return frozenset(flags)


def format_renditions(flags: frozenset[Rendition]) -> str:
    """Inverse of parse_renditions(); the empty set formats as ``"none"``."""
    if not flags:
        return "none"
    return ",".join(flag.value for flag in Rendition if flag in flags)


# ── Data model ───────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Cursor:
    """Cursor location in 1-based protocol coordinates, or disabled."""

    enabled: bool
    row: int | None = None
    column: int | None = None

    @classmethod
    def disabled(cls) -> "Cursor":
        return cls(enabled=False)

    @classmethod
    def at(cls, row: int, column: int) -> "Cursor":
        return cls(enabled=True, row=row, column=column)


@dataclass(frozen=True, slots=True)
class Change:
    """One span of cells within a row, starting at a 1-based column.

    Exactly one of ``count`` (attribute-only repaint) or ``text`` (new
    characters) is set. ``gr`` is the raw rendition spec: ``None`` leaves
    renditions untouched, anything else replaces them.
    """

    column: int
    count: int | None = None
    text: str | None = None
    fg: Color | None = None
    bg: Color | None = None
    gr: str | None = None

    @property
    def length(self) -> int:
        if self.text is not None:
            return len(self.text)
        return self.count or 0

    @property
    def renditions(self) -> frozenset[Rendition] | None:
        if self.gr is None:
            return None
        return parse_renditions(self.gr)


@dataclass(frozen=True, slots=True)
class RowChanges:
    row: int
    changes: tuple[Change, ...] = ()


@dataclass(frozen=True, slots=True)
class ScreenUpdate:
    """Incremental screen change (the ``screen`` indication)."""

    cursor: Cursor | None = None
    rows: tuple[RowChanges, ...] = ()


@dataclass(frozen=True, slots=True)
class ScreenMode:
    model: int
    rows: int
    columns: int
    color: bool = False
    oversize: bool = False
    extended: bool = False


@dataclass(frozen=True, slots=True)
class Erase:
    fg: Color | None = None
    bg: Color | None = None
    logical_rows: int | None = None
    logical_cols: int | None = None


@dataclass(frozen=True, slots=True)
class ConnectionChange:
    # Kept as the raw wire string so unknown states survive decoding
    state: str
    host: str | None = None
    cause: str | None = None


@dataclass(frozen=True, slots=True)
class OiaUpdate:
    """Change to one status-strip field.

    The payload keys vary by field: ``value`` for all of them, plus ``char``
    and ``type`` for compose and ``lu`` (printer LU) for lu.
    """

    field: str
    value: Any = None
    char: str | None = None
    type: str | None = None
    lu: str | None = None


@dataclass(frozen=True, slots=True)
class Initialize:
    indications: tuple["Indication", ...] = ()


@dataclass(frozen=True, slots=True)
class Passthrough:
    """Any indication the engine does not model (bell, popup, ft, stats, ...)."""

    tag: str
    payload: Any = None


Indication = Union[
    Initialize,
    ScreenMode,
    ScreenUpdate,
    Erase,
    ConnectionChange,
    OiaUpdate,
    Passthrough,
]


@dataclass(frozen=True, slots=True)
class Action:
    """One outbound command with string arguments."""

    action: str
    args: tuple[str, ...] = ()

    def to_wire(self) -> dict[str, Any]:
        return {"action": self.action, "args": list(self.args)}


# ── Decoding ─────────────────────────────────────────────────────────────


def _expect_object(payload: Any, variant: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise DecodeError(f"{variant}: expected an object, got {type(payload).__name__}")
    return payload


def _optional_int(obj: dict[str, Any], key: str, variant: str) -> int | None:
    value = obj.get(key)
    if value is None:
        return None
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"{variant}: field {key!r} must be an integer, got {value!r}")
    return value


def _require_int(obj: dict[str, Any], key: str, variant: str) -> int:
    value = _optional_int(obj, key, variant)
    if value is None:
        raise DecodeError(f"{variant}: missing integer field {key!r}")
    return value


def _get_str(obj: dict[str, Any], key: str, variant: str) -> str | None:
    value = obj.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise DecodeError(f"{variant}: field {key!r} must be a string, got {value!r}")
    return value


def _get_color(obj: dict[str, Any], key: str) -> Color | None:
    name = obj.get(key)
    if name is None:
        return None
    try:
        return Color(name)
    except ValueError:
        logger.debug("Ignoring unknown color %r", name)
        return None


def _parse_cursor(payload: Any) -> Cursor:
    obj = _expect_object(payload, "cursor")
    if not obj.get("enabled"):
        return Cursor.disabled()
    row = _require_int(obj, "row", "cursor")
    column = _require_int(obj, "column", "cursor")
    return Cursor.at(row, column)


def _parse_change(payload: Any) -> Change:
    obj = _expect_object(payload, "change")
    column = _require_int(obj, "column", "change")
    text = _get_str(obj, "text", "change")
    count = _optional_int(obj, "count", "change")
    if (text is None) == (count is None):
        raise DecodeError("change: exactly one of 'count' or 'text' is required")
    if count is not None and count < 0:
        raise DecodeError(f"change: negative count {count}")
    return Change(
        column=column,
        count=count,
        text=text,
        fg=_get_color(obj, "fg"),
        bg=_get_color(obj, "bg"),
        gr=_get_str(obj, "gr", "change"),
    )


def _parse_row(payload: Any) -> RowChanges:
    obj = _expect_object(payload, "row")
    row = _require_int(obj, "row", "row")
    changes = obj.get("changes") or []
    if not isinstance(changes, list):
        raise DecodeError("row: 'changes' must be a list")
    return RowChanges(row=row, changes=tuple(_parse_change(c) for c in changes))


def _parse_screen(payload: Any) -> ScreenUpdate:
    obj = _expect_object(payload, "screen")
    cursor = obj.get("cursor")
    rows = obj.get("rows") or []
    if not isinstance(rows, list):
        raise DecodeError("screen: 'rows' must be a list")
    return ScreenUpdate(
        cursor=_parse_cursor(cursor) if cursor is not None else None,
        rows=tuple(_parse_row(r) for r in rows),
    )


def _parse_screen_mode(payload: Any) -> ScreenMode:
    obj = _expect_object(payload, "screen-mode")
    rows = _require_int(obj, "rows", "screen-mode")
    columns = _require_int(obj, "columns", "screen-mode")
    if rows < 0 or columns < 0:
        raise DecodeError(f"screen-mode: negative dimensions {rows}x{columns}")
    return ScreenMode(
        model=_optional_int(obj, "model", "screen-mode") or 0,
        rows=rows,
        columns=columns,
        color=bool(obj.get("color", False)),
        oversize=bool(obj.get("oversize", False)),
        extended=bool(obj.get("extended", False)),
    )


def _parse_erase(payload: Any) -> Erase:
    obj = _expect_object(payload, "erase")
    # Both snake_case and kebab-case spellings appear on the wire
    rows = _optional_int(obj, "logical_rows", "erase")
    if rows is None:
        rows = _optional_int(obj, "logical-rows", "erase")
    cols = _optional_int(obj, "logical_cols", "erase")
    if cols is None:
        cols = _optional_int(obj, "logical-cols", "erase")
    return Erase(
        fg=_get_color(obj, "fg"),
        bg=_get_color(obj, "bg"),
        logical_rows=rows,
        logical_cols=cols,
    )


def _parse_connection(payload: Any) -> ConnectionChange:
    obj = _expect_object(payload, "connection")
    state = _get_str(obj, "state", "connection")
    if state is None:
        raise DecodeError("connection: missing 'state'")
    return ConnectionChange(
        state=state,
        host=_get_str(obj, "host", "connection"),
        cause=_get_str(obj, "cause", "connection"),
    )


def _parse_oia(payload: Any) -> OiaUpdate:
    obj = _expect_object(payload, "oia")
    field = _get_str(obj, "field", "oia")
    if field is None:
        raise DecodeError("oia: missing 'field'")
    return OiaUpdate(
        field=field,
        value=obj.get("value"),
        char=_get_str(obj, "char", "oia"),
        type=_get_str(obj, "type", "oia"),
        lu=_get_str(obj, "lu", "oia"),
    )


def _parse_initialize(payload: Any) -> Initialize:
    if not isinstance(payload, list):
        raise DecodeError("initialize: expected a list of indications")
    return Initialize(indications=tuple(parse_indication(item) for item in payload))


_PARSERS = {
    "initialize": _parse_initialize,
    "screen-mode": _parse_screen_mode,
    "screen": _parse_screen,
    "erase": _parse_erase,
    "connection": _parse_connection,
    "oia": _parse_oia,
}


def parse_indication(raw: Any) -> Indication:
    """Convert an already-parsed JSON value into an indication.

    Raises DecodeError for anything that is not a non-empty object, or for a
    modeled variant whose payload is structurally wrong. Unmodeled tags are
    wrapped in Passthrough.
    """
    if not isinstance(raw, dict) or not raw:
        raise DecodeError(f"Indication must be a non-empty object, got {raw!r:.80}")
    tag, payload = next(iter(raw.items()))
    parser = _PARSERS.get(tag)
    if parser is None:
        return Passthrough(tag=tag, payload=payload)
    return parser(payload)


def decode_indication(text: str) -> Indication:
    """Decode one inbound text message."""
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON: {e}") from e
    return parse_indication(raw)


# ── Encoding ─────────────────────────────────────────────────────────────


def encode_run(actions: Sequence[Action]) -> str:
    """Serialize a batch of actions as one ``run`` operation."""
    return json.dumps({"run": {"actions": [a.to_wire() for a in actions]}})
