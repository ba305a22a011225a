import pytest

from xlsxgrid.sheet import CellType, Sheet


def test_add_cell():
    sheet = Sheet(name="MySheet")
    row = sheet.add_row()
    cell = row.add_cell()
    assert row.cells == [cell]
    assert cell.row is row
    assert cell.cell_type is CellType.STRING


def test_add_cell_grows_columns():
    sheet = Sheet()
    row = sheet.add_row()
    row.add_cell()
    row.add_cell()
    assert sheet.max_col == 2
    assert [(c.min, c.max) for c in sheet.cols] == [(1, 1), (2, 2)]


def test_add_row_updates_max_row():
    sheet = Sheet()
    first = sheet.add_row()
    sheet.add_row()
    assert sheet.max_row == 2
    assert first.sheet is sheet


def test_add_row_at_index():
    sheet = Sheet()
    first = sheet.add_row()
    second = sheet.add_row()
    inserted = sheet.add_row_at_index(1)
    assert sheet.rows == [first, inserted, second]
    assert sheet.max_row == 3
    with pytest.raises(IndexError):
        sheet.add_row_at_index(5)
    with pytest.raises(IndexError):
        sheet.add_row_at_index(-1)


def test_remove_row_at_index():
    sheet = Sheet()
    first = sheet.add_row()
    second = sheet.add_row()
    sheet.remove_row_at_index(0)
    assert sheet.rows == [second]
    assert first not in sheet.rows
    with pytest.raises(IndexError):
        sheet.remove_row_at_index(1)


def test_row_extends_sheet():
    sheet = Sheet()
    row = sheet.row(3)
    assert len(sheet.rows) == 4
    assert sheet.max_row == 4
    assert sheet.rows[3] is row


def test_col_extends_sheet():
    sheet = Sheet()
    col = sheet.col(2)
    assert len(sheet.cols) == 3
    assert (col.min, col.max) == (3, 3)


def test_cell_extends_rows_and_cells():
    sheet = Sheet()
    cell = sheet.cell(2, 3)
    assert len(sheet.rows) == 3
    assert len(sheet.rows[2].cells) == 4
    assert sheet.rows[2].cells[3] is cell
    assert sheet.cell(2, 3) is cell


def test_set_col_width():
    sheet = Sheet()
    sheet.set_col_width(1, 2, 12.5)
    assert [c.width for c in sheet.cols] == [0.0, 12.5, 12.5]
    with pytest.raises(ValueError):
        sheet.set_col_width(3, 1, 10.0)


def test_set_height():
    sheet = Sheet()
    row = sheet.add_row()
    row.set_height(20.0)
    assert row.height == 20.0
    assert row.is_custom
    row.set_height_cm(1.0)
    assert row.height == pytest.approx(28.3464567)


def test_handle_merged_creates_covered_cells():
    sheet = Sheet()
    origin = sheet.cell(0, 0)
    origin.hmerge = 2
    origin.vmerge = 1
    sheet.handle_merged()
    assert len(sheet.rows) == 2
    assert len(sheet.rows[0].cells) == 3
    assert len(sheet.rows[1].cells) == 3
    assert sheet.rows[0].cells[0] is origin