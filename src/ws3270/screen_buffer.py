"""3270 screen buffer — a grid of attributed cells patched by host updates.

Holds the logical screen the host describes through ``screen-mode``,
``erase`` and ``screen`` indications. Rows and columns are 1-based in
protocol messages and 0-based in the grid; presenter notifications use the
0-based form.

An update that references anything outside the grid is rejected as a whole
before a single cell changes (see ScreenBoundsError).

Key class: ScreenBuffer — resize, apply updates, erase, read cells and lines.
"""

import itertools
from dataclasses import dataclass, field

import structlog

from .presenter import NullPresenter, Presenter
from .protocol import (
    Change,
    Color,
    Cursor,
    Rendition,
    RowChanges,
    ScreenUpdate,
    format_renditions,
)

logger = structlog.get_logger()

DEFAULT_ROWS = 24
DEFAULT_COLUMNS = 80


class ScreenBoundsError(IndexError):
    """A screen update references rows, columns or a cursor outside the grid.

    Signals that the host and the buffer disagree about the screen layout;
    the update is rejected unapplied.
    """


@dataclass(slots=True)
class Cell:
    """One character position with its display attributes."""

    character: str = " "
    foreground: Color = Color.NEUTRAL_WHITE
    background: Color = Color.NEUTRAL_BLACK
    renditions: frozenset[Rendition] = field(default_factory=frozenset)


class ScreenBuffer:
    """Character grid plus cursor, mutated in place for a whole session."""

    def __init__(
        self,
        rows: int = DEFAULT_ROWS,
        columns: int = DEFAULT_COLUMNS,
        presenter: Presenter | None = None,
    ) -> None:
        self._presenter: Presenter = presenter or NullPresenter()
        self.default_foreground = Color.NEUTRAL_WHITE
        self.default_background = Color.NEUTRAL_BLACK
        self.cursor = Cursor.at(1, 1)
        self._rows = 0
        self._columns = 0
        self._grid: list[list[Cell]] = []
        self._build(rows, columns)

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def columns(self) -> int:
        return self._columns

    def cell(self, row: int, column: int) -> Cell:
        """Return the cell at 1-based protocol coordinates."""
        if not (1 <= row <= self._rows and 1 <= column <= self._columns):
            raise ScreenBoundsError(
                f"cell {row}/{column} outside {self._rows}x{self._columns} screen"
            )
        return self._grid[row - 1][column - 1]

    def _new_cell(self) -> Cell:
        return Cell(
            foreground=self.default_foreground,
            background=self.default_background,
        )

    def _build(self, rows: int, columns: int) -> None:
        if rows < 0 or columns < 0:
            raise ValueError(f"invalid screen size {rows}x{columns}")
        self._rows = rows
        self._columns = columns
        self._grid = [[self._new_cell() for _ in range(columns)] for _ in range(rows)]

    def _redraw_all(self) -> None:
        full = range(self._columns)
        for row in range(self._rows):
            self._presenter.render_cells_changed(row, full)
        self._presenter.render_cursor_moved(self.cursor)

    def resize(self, rows: int, columns: int) -> None:
        """Discard the grid and rebuild it blank with the current defaults.

        The cursor is kept as-is, even if it now lies outside the grid.
        """
        self._build(rows, columns)
        logger.debug("Screen resized to %dx%d", rows, columns)
        self._redraw_all()

    def erase(
        self,
        foreground: Color | None = None,
        background: Color | None = None,
        rows: int | None = None,
        columns: int | None = None,
    ) -> None:
        """Clear the screen, optionally changing default colors and size.

        New defaults only affect cells created from now on. A missing
        dimension keeps its current value.
        """
        if foreground is not None:
            self.default_foreground = foreground
        if background is not None:
            self.default_background = background
        self.resize(
            rows if rows is not None else self._rows,
            columns if columns is not None else self._columns,
        )

    def _check_bounds(self, update: ScreenUpdate) -> None:
        for row_changes in update.rows:
            if not 1 <= row_changes.row <= self._rows:
                raise ScreenBoundsError(
                    f"row {row_changes.row} outside 1..{self._rows}"
                )
            for change in row_changes.changes:
                end = change.column - 1 + change.length
                if change.column < 1 or change.column > self._columns or end > self._columns:
                    raise ScreenBoundsError(
                        f"row {row_changes.row}: columns {change.column}..{end} "
                        f"outside 1..{self._columns}"
                    )
        cursor = update.cursor
        if cursor is not None and cursor.enabled:
            if (
                cursor.row is None
                or cursor.column is None
                or not 1 <= cursor.row <= self._rows
                or not 1 <= cursor.column <= self._columns
            ):
                raise ScreenBoundsError(
                    f"cursor {cursor.row}/{cursor.column} outside "
                    f"{self._rows}x{self._columns} screen"
                )

    def _apply_change(self, row_index: int, change: Change) -> None:
        start = change.column - 1
        count = change.length
        renditions = change.renditions
        line = self._grid[row_index]
        for offset in range(count):
            cell = line[start + offset]
            if change.fg is not None:
                cell.foreground = change.fg
            if change.bg is not None:
                cell.background = change.bg
            if renditions is not None:
                cell.renditions = renditions
            # Count-only changes repaint attributes and keep the characters
            if change.text is not None:
                cell.character = change.text[offset]
        if count:
            self._presenter.render_cells_changed(row_index, range(start, start + count))

    def apply_screen_update(self, update: ScreenUpdate) -> None:
        """Apply row changes in order, then replace the cursor if one is given.

        Later changes win where spans overlap. Raises ScreenBoundsError,
        leaving the buffer untouched, if anything falls outside the grid.
        """
        self._check_bounds(update)
        for row_changes in update.rows:
            for change in row_changes.changes:
                self._apply_change(row_changes.row - 1, change)
        if update.cursor is not None:
            self.cursor = update.cursor
            self._presenter.render_cursor_moved(self.cursor)

    def snapshot(self) -> ScreenUpdate:
        """Describe the whole grid as one update.

        Each row becomes one text change per run of identically attributed
        cells, with colors and renditions always spelled out. Applying the
        result to a blank buffer of the same size reproduces this one.
        """
        rows: list[RowChanges] = []
        for index, line in enumerate(self._grid):
            changes: list[Change] = []
            column = 1
            for (fg, bg, gr), run in itertools.groupby(
                line, key=lambda c: (c.foreground, c.background, c.renditions)
            ):
                text = "".join(c.character for c in run)
                changes.append(
                    Change(column=column, text=text, fg=fg, bg=bg, gr=format_renditions(gr))
                )
                column += len(text)
            rows.append(RowChanges(row=index + 1, changes=tuple(changes)))
        return ScreenUpdate(cursor=self.cursor, rows=tuple(rows))

    @property
    def display(self) -> list[str]:
        """Row texts with trailing whitespace stripped."""
        return ["".join(c.character for c in line).rstrip() for line in self._grid]

    def get_line(self, row: int) -> str:
        """Get a single row's text by 0-based index ("" when out of range)."""
        if 0 <= row < self._rows:
            return "".join(c.character for c in self._grid[row]).rstrip()
        return ""
