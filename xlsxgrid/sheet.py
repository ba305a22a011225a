"""In-memory model of a worksheet: sheets, rows, columns and cells."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from .cellref import get_cell_id_from_coords, get_coords_from_cell_id

_CM_TO_POINTS = 28.3464567


class CellType(enum.Enum):
    """The kind of value a cell holds."""

    STRING = "string"
    STRING_FORMULA = "string_formula"
    NUMERIC = "numeric"
    BOOL = "bool"
    INLINE = "inline"
    ERROR = "error"
    DATE = "date"


@dataclass(eq=False)
class Cell:
    """A single cell of a row."""

    row: Row | None = None
    value: str = ""
    formula: str = ""
    cell_type: CellType = CellType.STRING
    hidden: bool = False
    hmerge: int = 0
    vmerge: int = 0
    num_fmt: str = ""
    date1904: bool = False
    data_validation: Any = None


@dataclass(eq=False)
class Col:
    """Properties of a column."""

    min: int = 0
    max: int = 0
    hidden: bool = False
    width: float = 0.0
    collapsed: bool = False
    outline_level: int = 0
    num_fmt: str = ""


@dataclass(eq=False)
class Row:
    """A row of cells belonging to a sheet."""

    sheet: Sheet | None = None
    cells: list[Cell] = field(default_factory=list)
    hidden: bool = False
    height: float = 0.0
    outline_level: int = 0
    is_custom: bool = False

    def set_height(self, height: float) -> None:
        """Set a custom height in points."""
        self.height = height
        self.is_custom = True

    def set_height_cm(self, height: float) -> None:
        """Set a custom height given in centimetres."""
        self.height = height * _CM_TO_POINTS
        self.is_custom = True

    def add_cell(self) -> Cell:
        """Append an empty cell, growing the sheet's columns as needed."""
        cell = Cell(row=self)
        self.cells.append(cell)
        if self.sheet is not None:
            self.sheet._maybe_add_col(len(self.cells))
        return cell


@dataclass
class Pane:
    """A split or frozen pane of a sheet view."""

    x_split: float = 0.0
    y_split: float = 0.0
    top_left_cell: str = ""
    active_pane: str = ""
    state: str = ""


@dataclass
class SheetView:
    """A view of a sheet, optionally with a pane."""

    pane: Pane | None = None


@dataclass
class SheetFormat:
    """Default dimensions and outline levels of a sheet."""

    default_col_width: float = 0.0
    default_row_height: float = 0.0
    outline_level_col: int = 0
    outline_level_row: int = 0


@dataclass
class AutoFilter:
    """The range covered by an auto filter."""

    top_left_cell: str = ""
    bottom_right_cell: str = ""


@dataclass(eq=False)
class Sheet:
    """A worksheet holding rows and columns."""

    name: str = ""
    rows: list[Row] = field(default_factory=list)
    cols: list[Col] = field(default_factory=list)
    max_row: int = 0
    max_col: int = 0
    hidden: bool = False
    selected: bool = False
    sheet_views: list[SheetView] = field(default_factory=list)
    sheet_format: SheetFormat = field(default_factory=SheetFormat)
    auto_filter: AutoFilter | None = None

    def add_row(self) -> Row:
        """Append a new row."""
        row = Row(sheet=self)
        self.rows.append(row)
        self.max_row = max(self.max_row, len(self.rows))
        return row

    def add_row_at_index(self, index: int) -> Row:
        """Insert a new row at ``index``."""
        if index < 0 or index > len(self.rows):
            raise IndexError("add_row_at_index: index out of bounds")
        row = Row(sheet=self)
        self.rows.insert(index, row)
        self.max_row = max(self.max_row, len(self.rows))
        return row

    def remove_row_at_index(self, index: int) -> None:
        """Remove the row at ``index``."""
        if index < 0 or index >= len(self.rows):
            raise IndexError("remove_row_at_index: index out of bounds")
        del self.rows[index]

    def _maybe_add_row(self, row_count: int) -> None:
        if row_count > self.max_row:
            self.rows.extend(Row(sheet=self) for _ in range(row_count - self.max_row))
            self.max_row = row_count

    def row(self, index: int) -> Row:
        """Return the row at ``index``, creating rows up to it."""
        if index < 0:
            raise IndexError("row index out of bounds")
        self._maybe_add_row(index + 1)
        return self.rows[index]

    def _maybe_add_col(self, cell_count: int) -> None:
        if cell_count > self.max_col:
            self.cols.extend(
                Col(min=number, max=number)
                for number in range(self.max_col + 1, cell_count + 1)
            )
            self.max_col = cell_count

    def col(self, index: int) -> Col:
        """Return the column at ``index``, creating columns up to it."""
        if index < 0:
            raise IndexError("column index out of bounds")
        self._maybe_add_col(index + 1)
        return self.cols[index]

    def cell(self, row: int, col: int) -> Cell:
        """Return the cell at zero-based ``(row, col)``, extending the sheet as needed."""
        if row < 0 or col < 0:
            raise IndexError("cell coordinates out of bounds")
        while len(self.rows) <= row:
            self.add_row()
        target = self.rows[row]
        while len(target.cells) <= col:
            target.add_cell()
        return target.cells[col]

    def set_col_width(self, start: int, end: int, width: float) -> None:
        """Set the width of columns ``start`` to ``end`` inclusive."""
        if start > end:
            raise ValueError(
                f"Could not set width for range {start}-{end}: "
                "startcol must be less than endcol."
            )
        self._maybe_add_col(end + 1)
        for column in self.cols[start : end + 1]:
            column.width = width

    def handle_merged(self) -> None:
        """Create the cells covered by merged cells."""
        merged = {
            get_cell_id_from_coords(c, r): cell
            for r, row in enumerate(self.rows)
            for c, cell in enumerate(row.cells)
            if cell.hmerge > 0 or cell.vmerge > 0
        }
        for key, cell in merged.items():
            main_col, main_row = get_coords_from_cell_id(key)
            for row_offset in range(cell.vmerge + 1):
                for col_offset in range(cell.hmerge + 1):
                    self.cell(main_row + row_offset, main_col + col_offset)