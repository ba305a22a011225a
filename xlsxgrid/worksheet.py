"""Reading worksheet parts into rows, columns and cells."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from xml.parsers import expat

from .cellref import (
    RANGE_CHAR,
    InvalidCellReference,
    get_coords_from_cell_id,
    get_max_min_from_dimension_ref,
    get_range_from_string,
)
from .formula import FormulaSpec, SharedFormula, formula_for_cell
from .reftable import RefTable
from .sheet import Cell, CellType, Col, Pane, Row, Sheet, SheetFormat, SheetView

NO_ROW_LIMIT = -1
SHEET_ENDING = b"</sheetData></worksheet>"

_TRIM = " \t\n\r"
_TRUE = {"1", "t", "T", "true", "TRUE", "True"}
_FALSE = {"0", "f", "F", "false", "FALSE", "False"}

_SIMPLE_TYPES = {
    "b": CellType.BOOL,
    "e": CellType.ERROR,
    "str": CellType.STRING_FORMULA,
    "d": CellType.DATE,
    "": CellType.NUMERIC,
    "n": CellType.NUMERIC,
}


@dataclass
class RawCell:
    """A ``<c>`` element as stored in a worksheet part."""

    r: str = ""
    s: int = 0
    t: str = ""
    v: str = ""
    f: FormulaSpec | None = None
    inline_text: str | None = None
    inline_runs: list[str] = field(default_factory=list)


@dataclass
class RawRow:
    """A ``<row>`` element as stored in a worksheet part."""

    r: int = 0
    spans: str = ""
    hidden: bool = False
    ht: str = ""
    custom_height: bool = False
    outline_level: int = 0
    cells: list[RawCell] = field(default_factory=list)


@dataclass
class RawCol:
    """A ``<col>`` element describing a range of columns."""

    min: int = 0
    max: int = 0
    hidden: bool = False
    width: float = 0.0
    custom_width: bool = False
    collapsed: bool = False
    outline_level: int = 0
    style: int = 0


@dataclass
class RawWorksheet:
    """The parts of a worksheet needed to build rows and columns."""

    dimension_ref: str = ""
    sheet_views: list[SheetView] = field(default_factory=list)
    sheet_format: SheetFormat = field(default_factory=SheetFormat)
    cols: list[RawCol] = field(default_factory=list)
    rows: list[RawRow] = field(default_factory=list)
    merge_cells: list[str] = field(default_factory=list)

    def merge_extent(self, cell_ref: str) -> tuple[int, int]:
        """Return the horizontal and vertical merge extent starting at ``cell_ref``."""
        for ref in self.merge_cells:
            parts = ref.split(RANGE_CHAR)
            if parts[0] != cell_ref or len(parts) < 2:
                continue
            minx, miny, maxx, maxy = get_max_min_from_dimension_ref(ref)
            return maxx - minx, maxy - miny
        return 0, 0


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in element if _local(child.tag) == name]


def _child(element: ET.Element, name: str) -> ET.Element | None:
    found = _children(element, name)
    return found[0] if found else None


def _text(element: ET.Element | None) -> str:
    return "" if element is None else "".join(element.itertext())


def _int(text: str) -> int:
    return int(text) if text else 0


def _float(text: str) -> float:
    return float(text) if text else 0.0


def _bool(text: str) -> bool:
    if not text:
        return False
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"invalid boolean attribute value {text!r}")


def _parse_cell(element: ET.Element) -> RawCell:
    f_el = _child(element, "f")
    spec = None
    if f_el is not None:
        spec = FormulaSpec(
            content=_text(f_el),
            t=f_el.get("t", ""),
            ref=f_el.get("ref", ""),
            si=_int(f_el.get("si", "")),
        )
    cell = RawCell(
        r=element.get("r", ""),
        s=_int(element.get("s", "")),
        t=element.get("t", ""),
        v=_text(_child(element, "v")),
        f=spec,
    )
    is_el = _child(element, "is")
    if is_el is not None:
        cell.inline_text = _text(_child(is_el, "t"))
        cell.inline_runs = [_text(_child(run, "t")) for run in _children(is_el, "r")]
    return cell


def _parse_row(element: ET.Element) -> RawRow:
    return RawRow(
        r=_int(element.get("r", "")),
        spans=element.get("spans", ""),
        hidden=_bool(element.get("hidden", "")),
        ht=element.get("ht", ""),
        custom_height=_bool(element.get("customHeight", "")),
        outline_level=_int(element.get("outlineLevel", "")),
        cells=[_parse_cell(c) for c in _children(element, "c")],
    )


def _parse_col(element: ET.Element) -> RawCol:
    return RawCol(
        min=_int(element.get("min", "")),
        max=_int(element.get("max", "")),
        hidden=_bool(element.get("hidden", "")),
        width=_float(element.get("width", "")),
        custom_width=_bool(element.get("customWidth", "")),
        collapsed=_bool(element.get("collapsed", "")),
        outline_level=_int(element.get("outlineLevel", "")),
        style=_int(element.get("style", "")),
    )


def parse_worksheet(data: str | bytes) -> RawWorksheet:
    """Parse the XML of a worksheet part."""
    root = ET.fromstring(data.lstrip())
    worksheet = RawWorksheet()
    dimension = _child(root, "dimension")
    if dimension is not None:
        worksheet.dimension_ref = dimension.get("ref", "")
    views = _child(root, "sheetViews")
    if views is not None:
        for view in _children(views, "sheetView"):
            pane_el = _child(view, "pane")
            pane = None
            if pane_el is not None:
                pane = Pane(
                    x_split=_float(pane_el.get("xSplit", "")),
                    y_split=_float(pane_el.get("ySplit", "")),
                    top_left_cell=pane_el.get("topLeftCell", ""),
                    active_pane=pane_el.get("activePane", ""),
                    state=pane_el.get("state", ""),
                )
            worksheet.sheet_views.append(SheetView(pane=pane))
    fmt = _child(root, "sheetFormatPr")
    if fmt is not None:
        worksheet.sheet_format = SheetFormat(
            default_col_width=_float(fmt.get("defaultColWidth", "")),
            default_row_height=_float(fmt.get("defaultRowHeight", "")),
            outline_level_col=_int(fmt.get("outlineLevelCol", "")),
            outline_level_row=_int(fmt.get("outlineLevelRow", "")),
        )
    cols = _child(root, "cols")
    if cols is not None:
        worksheet.cols = [_parse_col(c) for c in _children(cols, "col")]
    sheet_data = _child(root, "sheetData")
    if sheet_data is not None:
        worksheet.rows = [_parse_row(r) for r in _children(sheet_data, "row")]
    merges = _child(root, "mergeCells")
    if merges is not None:
        worksheet.merge_cells = [m.get("ref", "") for m in _children(merges, "mergeCell")]
    return worksheet


def calculate_max_min_from_worksheet(worksheet: RawWorksheet) -> tuple[int, int, int, int]:
    """Work out ``(minx, miny, maxx, maxy)`` from the cell references of a worksheet."""
    coords = [
        get_coords_from_cell_id(cell.r) for row in worksheet.rows for cell in row.cells
    ]
    if not coords:
        return 0, 0, 0, 0
    xs = [x for x, _ in coords]
    ys = [y for _, y in coords]
    return min(xs), min(ys), max(0, max(xs)), max(0, max(ys))


def _empty_row(sheet: Sheet | None) -> Row:
    return Row(sheet=sheet)


def make_row_from_span(spans: str, sheet: Sheet | None) -> Row:
    """Build a row of empty cells wide enough for the upper bound of ``spans``."""
    _, upper = get_range_from_string(spans)
    if upper < 0:
        raise InvalidCellReference(f"Invalid range {spans!r}")
    row = Row(sheet=sheet)
    row.cells = [Cell(row=row) for _ in range(upper)]
    return row


def make_row_from_raw(raw_row: RawRow, sheet: Sheet | None) -> Row:
    """Build a row of empty cells wide enough for the cells of ``raw_row``."""
    upper = -1
    for raw_cell in raw_row.cells:
        if raw_cell.r:
            try:
                x, _ = get_coords_from_cell_id(raw_cell.r)
            except InvalidCellReference as err:
                raise InvalidCellReference(f"Invalid Cell Coord, {raw_cell.r}") from err
            upper = max(upper, x)
        else:
            upper += 1
    upper += 1
    row = Row(sheet=sheet, outline_level=raw_row.outline_level)
    row.cells = [Cell(row=row) for _ in range(upper)]
    return row


def _inline_value(raw_cell: RawCell) -> str:
    if raw_cell.inline_text is None:
        return ""
    if raw_cell.inline_text:
        return raw_cell.inline_text.strip(_TRIM)
    return "".join(raw_cell.inline_runs)


def fill_cell_data(
    raw_cell: RawCell,
    ref_table: RefTable | None,
    shared_formulas: dict[int, SharedFormula],
    cell: Cell,
) -> None:
    """Set the value, type and formula of ``cell`` from ``raw_cell``."""
    value = raw_cell.v.strip(_TRIM)
    cell.formula = formula_for_cell(raw_cell.r, raw_cell.f, shared_formulas)
    kind = raw_cell.t
    if kind == "s":
        cell.cell_type = CellType.STRING
        if value:
            if ref_table is None:
                raise ValueError("shared string cell without a shared string table")
            cell.value = ref_table.resolve_shared_string(int(value))
    elif kind == "inlineStr":
        cell.cell_type = CellType.INLINE
        cell.value = _inline_value(raw_cell)
    elif kind in _SIMPLE_TYPES:
        cell.cell_type = _SIMPLE_TYPES[kind]
        cell.value = value
    else:
        raise ValueError("invalid cell type")


def _column_or_zero(cell_ref: str) -> int:
    try:
        return get_coords_from_cell_id(cell_ref)[0]
    except InvalidCellReference:
        return 0


def read_rows_from_sheet(
    worksheet: RawWorksheet,
    ref_table: RefTable | None,
    sheet: Sheet | None,
    row_limit: int = NO_ROW_LIMIT,
) -> tuple[list[Row], list[Col], int, int]:
    """Build rows and columns from a worksheet.

    Returns ``(rows, cols, col_count, row_count)``.
    """
    if not worksheet.rows:
        return [], [], 0, 0
    ref = worksheet.dimension_ref
    if ref and len(ref.split(RANGE_CHAR)) == 2 and row_limit == NO_ROW_LIMIT:
        min_col, _, max_col, max_row = get_max_min_from_dimension_ref(ref)
    else:
        min_col, _, max_col, max_row = calculate_max_min_from_worksheet(worksheet)

    row_count = max_row + 1
    col_count = max_col + 1
    rows: list[Row | None] = [None] * max(row_count, 0)
    cols = [Col() for _ in range(max(col_count, 0))]

    for raw_col in worksheet.cols:
        for number in range(raw_col.min, min(raw_col.max, col_count) + 1):
            if number < 1:
                raise InvalidCellReference(f"Invalid column range {raw_col.min}-{raw_col.max}")
            cols[number - 1] = Col(
                min=raw_col.min,
                max=raw_col.max,
                hidden=raw_col.hidden,
                width=raw_col.width,
                outline_level=raw_col.outline_level,
            )

    shared_formulas: dict[int, SharedFormula] = {}
    insert_row = 0
    for raw_row in worksheet.rows:
        target = raw_row.r - 1
        for index in range(insert_row, min(target, len(rows))):
            rows[index] = _empty_row(sheet)
        insert_row = max(insert_row, target)

        if raw_row.spans and raw_row.spans.count(RANGE_CHAR) == 1:
            row = make_row_from_span(raw_row.spans, sheet)
        else:
            row = make_row_from_raw(raw_row, sheet)
        row.hidden = raw_row.hidden
        try:
            row.height = float(raw_row.ht)
        except ValueError:
            pass
        row.is_custom = raw_row.custom_height
        row.outline_level = raw_row.outline_level

        insert_col = min_col
        for raw_cell in raw_row.cells:
            hmerge, vmerge = worksheet.merge_extent(raw_cell.r)
            x = _column_or_zero(raw_cell.r)
            for index in range(insert_col, min(x, len(row.cells))):
                row.cells[index] = Cell(row=row)
            insert_col = max(insert_col, x)
            if insert_col < len(row.cells):
                cell = row.cells[insert_col]
                cell.hmerge = hmerge
                cell.vmerge = vmerge
                fill_cell_data(raw_cell, ref_table, shared_formulas, cell)
                cell.hidden = raw_row.hidden or (
                    insert_col < len(cols) and cols[insert_col].hidden
                )
                insert_col += 1

        if insert_row < len(rows):
            rows[insert_row] = row
        insert_row += 1

    for index in range(insert_row, len(rows)):
        rows[index] = _empty_row(sheet)
    return [row for row in rows if row is not None], cols, col_count, row_count


class _RowLimitReached(Exception):
    pass


def truncate_sheet_xml(data: str | bytes, row_limit: int) -> bytes:
    """Cut a worksheet part after ``row_limit`` rows, closing the sheet data.

    Everything after the last kept row is dropped. If the part has no more
    rows than the limit it is returned unchanged.
    """
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    body = raw.lstrip()
    lead = len(raw) - len(body)
    parser = expat.ParserCreate()
    count = 0

    def on_end(name: str) -> None:
        nonlocal count
        if name.rsplit(":", 1)[-1] == "row":
            count += 1
            if count >= row_limit:
                raise _RowLimitReached(parser.CurrentByteIndex)

    parser.EndElementHandler = on_end
    try:
        parser.Parse(body, True)
    except _RowLimitReached as stop:
        close = body.index(b">", stop.args[0]) + 1
        return raw[: lead + close] + SHEET_ENDING
    except expat.ExpatError as err:
        raise ValueError(f"malformed worksheet XML: {err}") from err
    return raw