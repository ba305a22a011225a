# xlsxgrid

A small library with no dependencies outside the standard library. It reads
XLSX workbooks into plain Python objects: a workbook holds sheets, a sheet
holds rows and columns, and a row holds cells with their values, types,
formulas and merge extents.

## Installing

```
pip install xlsxgrid
```

## Reading a workbook

```python
from xlsxgrid.workbook import read_zip, XLSXReaderError

try:
    book = read_zip("report.xlsx", -1)   # -1 reads every row
except XLSXReaderError as exc:
    print("not a usable workbook:", exc)

for sheet in book.sheets:
    for row in sheet.rows:
        print([cell.value for cell in row.cells])
```

`read_zip` accepts a path, a binary file object, the raw bytes of a workbook
or an open `zipfile.ZipFile`. A positive `row_limit` reads only that many
rows from each sheet. The value `-1` is also available as
`xlsxgrid.worksheet.NO_ROW_LIMIT`. Any malformed content, such as a broken
archive, bad XML or an unreadable cell reference, is raised as
`XLSXReaderError`. An archive without `xl/_rels/workbook.xml.rels` or
without any worksheet part is rejected.

The returned `Workbook` has these members:

- `sheets`: the sheets in workbook order
- `sheets_by_name`: the same sheets, keyed by name
- `date1904`: whether the workbook uses the 1904 date system
- `defined_names`: one dict of attributes per defined name, with its text under `"value"`
- `shared_strings`: the `RefTable` of shared strings, or `None`

Each `Cell` carries `value` as text and `cell_type` as a `CellType`
(`STRING`, `INLINE`, `NUMERIC`, `BOOL`, `ERROR`, `DATE`, `STRING_FORMULA`).
It also has `formula`, `hidden` (set when its row or column is hidden),
`hmerge` and `vmerge`. Rows carry `hidden`, `height`, `is_custom` and
`outline_level`. Columns carry `min`, `max`, `hidden`, `width` and
`outline_level`. Sheets carry `hidden`, `sheet_views` with their panes, and
`sheet_format`.

## Lower-level worksheet reading

`xlsxgrid.worksheet` works on a single worksheet part:

- `parse_worksheet(xml)` returns a `RawWorksheet`.
- `read_rows_from_sheet(worksheet, ref_table, sheet, row_limit)` returns
  `(rows, cols, col_count, row_count)`. It fills in rows and cells that the
  file leaves out.
- `truncate_sheet_xml(xml, row_limit)` cuts a part after the given number of
  rows and closes the sheet data.

## Cell references

```python
from xlsxgrid.cellref import (
    col_index_to_letters, col_letters_to_index,
    get_coords_from_cell_id, get_cell_id_from_coords,
)

col_index_to_letters(26)          # "AA"
col_letters_to_index("AMI")       # 1022
get_coords_from_cell_id("B3")     # (1, 2)
get_cell_id_from_coords(2, 2)     # "C3"
```

Coordinates are zero based. `InvalidCellReference`, a subclass of
`ValueError`, is raised for references that cannot be parsed.

## Shared formulas

Shared formulas are expanded for each cell that uses them. Relative
references are shifted and `$`-fixed ones stay in place:

```python
from xlsxgrid.formula import shift_cell

shift_cell("A$1", 1, 1)           # "B$1"
```

`formula_for_cell` records the anchor of a shared formula and expands it
for the other cells that share it.

## Building sheets in memory

```python
from xlsxgrid.sheet import Sheet

sheet = Sheet(name="Data")
row = sheet.add_row()
cell = row.add_cell()
sheet.set_col_width(0, 2, 12.5)
sheet.cell(4, 3)                  # grows the sheet to reach row 5, column D
```

`add_row_at_index` and `remove_row_at_index` raise `IndexError` for
positions outside the sheet. `handle_merged` creates the cells covered by
merged cells.

## Shared strings and relationships

```python
from xlsxgrid.reftable import RefTable

table = RefTable()
index = table.add_string("Foo")
table.resolve_shared_string(index)   # "Foo"
table.to_sst_xml()                   # XML of a shared strings part
```

With `RefTable(is_write=True)`, adding a string a second time returns its
existing index. `RefTable.from_sst(xml)` reads a shared strings part.

In `xlsxgrid.workbook`, `make_workbook_rels_xml` serialises workbook
relationships and `read_workbook_relations` reads them back.

## What it does not do

xlsxgrid reads workbooks; it does not save them. The package can produce
the XML of a shared strings part and of workbook relationships, but it does
not write worksheet parts or assemble an archive. Styles, themes and number
formats are not read, and cell values stay as text: no conversion to
numbers or dates is done.

## Running the tests

```
pip install -e ".[test]"
pytest
```