import io
import zipfile

import pytest

from xlsxgrid.workbook import (
    Workbook,
    XLSXReaderError,
    make_workbook_rels_xml,
    read_workbook_relations,
    read_zip,
)

MAIN = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
RELS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
WS_TYPE = RELS + "/worksheet"


def _zip(files):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def _rels(entries):
    body = "".join(
        f'<Relationship Id="{rid}" Target="{target}" Type="{kind}"/>'
        for rid, target, kind in entries
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
        f"{body}</Relationships>"
    )


def _workbook(sheets, extra="", pr=""):
    body = "".join(
        f'<sheet name="{name}" sheetId="{sid}" r:id="{rid}"{state}/>'
        for name, sid, rid, state in sheets
    )
    return (
        f'<?xml version="1.0" encoding="UTF-8"?><workbook xmlns="{MAIN}" xmlns:r="{RELS}">'
        f"{pr}<sheets>{body}</sheets>{extra}</workbook>"
    )


def _sheet(rows, dimension=""):
    dim = f'<dimension ref="{dimension}"/>' if dimension else ""
    return (
        f'<?xml version="1.0" encoding="UTF-8"?><worksheet xmlns="{MAIN}">{dim}'
        f"<sheetData>{rows}</sheetData></worksheet>"
    )


SST = (
    f'<?xml version="1.0" encoding="UTF-8"?><sst xmlns="{MAIN}">'
    "<si><t>Foo</t></si><si><t>Bar</t></si></sst>"
)


def test_workbook_rels_marshal():
    expected = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
        '<Relationship Id="rId1" Target="worksheets/sheet.xml" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/worksheet"></Relationship>'
        '<Relationship Id="rId2" Target="sharedStrings.xml" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/sharedStrings"></Relationship>'
        '<Relationship Id="rId3" Target="theme/theme1.xml" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/theme"></Relationship>'
        '<Relationship Id="rId4" Target="styles.xml" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/styles"></Relationship>'
        "</Relationships>"
    )
    assert make_workbook_rels_xml({"rId1": "worksheets/sheet.xml"}) == expected


def test_workbook_rels_bad_id():
    with pytest.raises(ValueError):
        make_workbook_rels_xml({"rIdx": "worksheets/sheet.xml"})


def test_workbook_rels_round_trip():
    xml = make_workbook_rels_xml({"rId1": "worksheets/sheet1.xml", "rId2": "worksheets/b.xml"})
    assert read_workbook_relations(xml) == {"rId1": "sheet1", "rId2": "b"}


def test_read_workbook_relations_filters_non_worksheets():
    data = _rels(
        [
            ("rId1", "worksheets/bob.xml", WS_TYPE),
            ("rId2", "styles.xml", RELS + "/styles"),
            ("rId3", "worksheets/odd.bin", WS_TYPE),
        ]
    )
    assert read_workbook_relations(data) == {"rId1": "bob"}


def test_no_workbook_rels():
    data = _zip({"xl/workbook.xml": _workbook([]), "xl/worksheets/sheet1.xml": _sheet("")})
    with pytest.raises(XLSXReaderError) as info:
        read_zip(data)
    assert str(info.value) == "xl/_rels/workbook.xml.rels not found in input xlsx."


def test_no_worksheets():
    data = _zip({"xl/_rels/workbook.xml.rels": _rels([]), "xl/workbook.xml": _workbook([])})
    with pytest.raises(XLSXReaderError) as info:
        read_zip(data)
    assert str(info.value) == "Input xlsx contains no worksheets."


def test_badly_named_worksheet_part_is_an_error():
    data = _zip(
        {
            "xl/_rels/workbook.xml.rels": _rels([]),
            "xl/workbook.xml": _workbook([]),
            "xl/worksheets.xml": "garbage",
        }
    )
    with pytest.raises(XLSXReaderError):
        read_zip(data)


def test_not_a_zip():
    with pytest.raises(XLSXReaderError):
        read_zip(b"this is not an archive")


def test_malformed_workbook_xml():
    data = _zip(
        {
            "xl/_rels/workbook.xml.rels": _rels([("rId1", "worksheets/sheet1.xml", WS_TYPE)]),
            "xl/workbook.xml": "<workbook><sheets>",
            "xl/worksheets/sheet1.xml": _sheet(""),
        }
    )
    with pytest.raises(XLSXReaderError):
        read_zip(data)


def test_inline_strings():
    rows = (
        '<row r="1"><c r="A1"><v>1</v></c>'
        '<c r="B1" t="inlineStr"><is><t>HL Retail - North America - Activity by Day - MTD</t></is></c></row>'
    )
    data = _zip(
        {
            "xl/_rels/workbook.xml.rels": _rels([("rId1", "worksheets/sheet1.xml", WS_TYPE)]),
            "xl/workbook.xml": _workbook([("Sheet1", 1, "rId1", "")]),
            "xl/worksheets/sheet1.xml": _sheet(rows),
        }
    )
    book = read_zip(data)
    assert book.sheets[0].rows[0].cells[1].value == (
        "HL Retail - North America - Activity by Day - MTD"
    )


def test_funny_worksheet_names():
    data = _zip(
        {
            "xl/_rels/workbook.xml.rels": _rels([("rId7", "worksheets/bob.xml", WS_TYPE)]),
            "xl/workbook.xml": _workbook([("Bob", 3, "rId7", "")]),
            "xl/sharedStrings.xml": (
                f'<sst xmlns="{MAIN}"><si><t>I am Bob</t></si></sst>'
            ),
            "xl/worksheets/bob.xml": _sheet('<row r="1"><c r="A1" t="s"><v>0</v></c></row>'),
        }
    )
    book = read_zip(data)
    assert isinstance(book, Workbook)
    assert book.sheets_by_name["Bob"].rows[0].cells[0].value == "I am Bob"
    assert book.sheets_by_name["Bob"].name == "Bob"


def test_workbook_settings_and_hidden_sheet(tmp_path):
    rows = '<row r="1"><c r="A1" t="s"><v>1</v></c></row>'
    data = _zip(
        {
            "xl/_rels/workbook.xml.rels": _rels(
                [
                    ("rId1", "worksheets/sheet1.xml", WS_TYPE),
                    ("rId2", "worksheets/sheet2.xml", WS_TYPE),
                ]
            ),
            "xl/workbook.xml": _workbook(
                [("One", 1, "rId1", ""), ("Two", 2, "rId2", ' state="hidden"')],
                extra='<definedNames><definedName name="area">One!$A$1</definedName></definedNames>',
                pr='<workbookPr date1904="1"/>',
            ),
            "xl/sharedStrings.xml": SST,
            "xl/worksheets/sheet1.xml": _sheet(rows),
            "xl/worksheets/sheet2.xml": _sheet(rows),
        }
    )
    path = tmp_path / "book.xlsx"
    path.write_bytes(data)
    book = read_zip(str(path))
    assert [sheet.name for sheet in book.sheets] == ["One", "Two"]
    assert book.sheets[0].hidden is False
    assert book.sheets[1].hidden is True
    assert book.date1904 is True
    assert book.sheets[0].rows[0].cells[0].date1904 is True
    assert book.sheets[0].rows[0].cells[0].value == "Bar"
    assert book.defined_names == [{"name": "area", "value": "One!$A$1"}]


def test_trailing_rows_are_never_missing():
    data = _zip(
        {
            "xl/_rels/workbook.xml.rels": _rels([("rId1", "worksheets/sheet1.xml", WS_TYPE)]),
            "xl/workbook.xml": _workbook([("S", 1, "rId1", "")]),
            "xl/worksheets/sheet1.xml": _sheet(
                '<row r="2"><c r="A2"><v>5</v></c></row>', dimension="A1:A5"
            ),
        }
    )
    sheet = read_zip(io.BytesIO(data)).sheets[0]
    assert len(sheet.rows) == 5
    assert all(row is not None for row in sheet.rows)
    assert sheet.rows[1].cells[0].value == "5"
    assert sheet.max_row == 5


def test_row_limit_truncates():
    rows = "".join(f'<row r="{n}"><c r="A{n}"><v>{n}</v></c></row>' for n in range(1, 4))
    data = _zip(
        {
            "xl/_rels/workbook.xml.rels": _rels([("rId1", "worksheets/sheet1.xml", WS_TYPE)]),
            "xl/workbook.xml": _workbook([("S", 1, "rId1", "")]),
            "xl/worksheets/sheet1.xml": _sheet(rows, dimension="A1:A3"),
        }
    )
    full = read_zip(data)
    limited = read_zip(data, row_limit=1)
    assert len(full.sheets[0].rows) == 3
    assert len(limited.sheets[0].rows) == 1
    assert limited.sheets[0].rows[0].cells[0].value == "1"


def test_sheet_without_part_is_skipped():
    data = _zip(
        {
            "xl/_rels/workbook.xml.rels": _rels([("rId1", "worksheets/sheet1.xml", WS_TYPE)]),
            "xl/workbook.xml": _workbook([("S", 1, "rId1", ""), ("Chart", 9, "rId9", "")]),
            "xl/worksheets/sheet1.xml": _sheet('<row r="1"><c r="A1"><v>1</v></c></row>'),
        }
    )
    book = read_zip(data)
    assert list(book.sheets_by_name) == ["S"]