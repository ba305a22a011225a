"""Reading whole workbooks from XLSX archives."""

from __future__ import annotations

import io
import posixpath
import xml.etree.ElementTree as ET
import zipfile
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import IO, Union

from .reftable import RefTable
from .sheet import Sheet
from .worksheet import NO_ROW_LIMIT, parse_worksheet, read_rows_from_sheet, truncate_sheet_xml

_XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'
_PACKAGE_RELS_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
_OFFICE_RELS_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
_REL_WORKSHEET = _OFFICE_RELS_NS + "/worksheet"
_REL_SHARED_STRINGS = _OFFICE_RELS_NS + "/sharedStrings"
_REL_THEME = _OFFICE_RELS_NS + "/theme"
_REL_STYLES = _OFFICE_RELS_NS + "/styles"

_SHARED_STRINGS_PART = "xl/sharedStrings.xml"
_WORKBOOK_PART = "xl/workbook.xml"
_WORKBOOK_RELS_PART = "xl/_rels/workbook.xml.rels"
_WORKSHEETS_PREFIX = "xl/worksheets"

_HIDDEN_STATES = {"hidden", "veryHidden"}
_TRUE = {"1", "t", "T", "true", "TRUE", "True"}

_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&#34;",
    "'": "&#39;",
    "\t": "&#x9;",
    "\n": "&#xA;",
    "\r": "&#xD;",
}

Source = Union[str, bytes, bytearray, memoryview, "zipfile.ZipFile", IO[bytes]]


class XLSXReaderError(Exception):
    """Raised when an XLSX archive cannot be read."""


@dataclass
class Workbook:
    """The sheets and workbook-wide settings read from an XLSX archive."""

    sheets: list[Sheet] = field(default_factory=list)
    sheets_by_name: dict[str, Sheet] = field(default_factory=dict)
    date1904: bool = False
    defined_names: list[dict[str, str]] = field(default_factory=list)
    shared_strings: RefTable | None = None


def _escape(text: str) -> str:
    return "".join(_ESCAPES.get(char, char) for char in text)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in element if _local(child.tag) == name]


def _child(element: ET.Element, name: str) -> ET.Element | None:
    found = _children(element, name)
    return found[0] if found else None


def _parse(data: bytes | str) -> ET.Element:
    return ET.fromstring(data.lstrip())


def make_workbook_rels_xml(rels: Mapping[str, str]) -> str:
    """Serialise worksheet relationships plus the fixed shared strings, theme and styles ones.

    Keys must have the form ``rId<n>``; each worksheet relationship is placed
    at position ``n``.
    """
    slots: list[tuple[str, str, str]] = [("", "", "")] * (len(rels) + 3)
    for rel_id, target in rels.items():
        try:
            index = int(rel_id[3:])
        except ValueError as err:
            raise ValueError(f"invalid relationship id {rel_id!r}") from err
        if not 1 <= index <= len(slots):
            raise ValueError(f"relationship id {rel_id!r} out of range")
        slots[index - 1] = (rel_id, target, _REL_WORKSHEET)
    count = len(rels)
    for offset, (target, kind) in enumerate(
        [
            ("sharedStrings.xml", _REL_SHARED_STRINGS),
            ("theme/theme1.xml", _REL_THEME),
            ("styles.xml", _REL_STYLES),
        ],
        start=1,
    ):
        slots[count + offset - 1] = (f"rId{count + offset}", target, kind)
    body = "".join(
        f'<Relationship Id="{_escape(rel_id)}" Target="{_escape(target)}" '
        f'Type="{_escape(kind)}"></Relationship>'
        for rel_id, target, kind in slots
    )
    return f'{_XML_HEADER}<Relationships xmlns="{_PACKAGE_RELS_NS}">{body}</Relationships>'


def read_workbook_relations(data: bytes | str) -> dict[str, str]:
    """Map worksheet relationship ids to the base names of their worksheet parts."""
    root = _parse(data)
    result: dict[str, str] = {}
    for rel in _children(root, "Relationship"):
        target = rel.get("Target", "")
        if target.endswith(".xml") and rel.get("Type", "") == _REL_WORKSHEET:
            filename = posixpath.basename(target)
            result[rel.get("Id", "")] = filename.replace(".xml", "", 1)
    return result


@contextmanager
def _archive(source: Source) -> Iterator[zipfile.ZipFile]:
    if isinstance(source, zipfile.ZipFile):
        yield source
        return
    if isinstance(source, (bytes, bytearray, memoryview)):
        source = io.BytesIO(bytes(source))
    with zipfile.ZipFile(source) as archive:
        yield archive


def _relationship_id(sheet_el: ET.Element) -> str:
    rel_id = sheet_el.get(f"{{{_OFFICE_RELS_NS}}}id")
    if rel_id is not None:
        return rel_id
    for key, value in sheet_el.attrib.items():
        if _local(key) == "id":
            return value
    return ""


def _worksheet_key(
    sheet_el: ET.Element, worksheets: Mapping[str, str], rels: Mapping[str, str]
) -> str | None:
    name = rels.get(_relationship_id(sheet_el))
    if name is not None and name in worksheets:
        return name
    fallback = "sheet" + sheet_el.get("sheetId", "")
    return fallback if fallback in worksheets else None


def _read_sheet(
    archive: zipfile.ZipFile,
    part: str,
    sheet_el: ET.Element,
    ref_table: RefTable | None,
    date1904: bool,
    row_limit: int,
) -> Sheet:
    data = archive.read(part)
    if row_limit != NO_ROW_LIMIT:
        data = truncate_sheet_xml(data, row_limit)
    raw = parse_worksheet(data)
    sheet = Sheet(name=sheet_el.get("name", ""))
    rows, cols, max_col, max_row = read_rows_from_sheet(raw, ref_table, sheet, row_limit)
    for row in rows:
        for cell in row.cells:
            cell.date1904 = date1904
    sheet.rows = rows
    sheet.cols = cols
    sheet.max_col = max_col
    sheet.max_row = max_row
    sheet.hidden = sheet_el.get("state", "") in _HIDDEN_STATES
    sheet.sheet_views = raw.sheet_views
    sheet.sheet_format = raw.sheet_format
    return sheet


def _read(archive: zipfile.ZipFile, row_limit: int) -> Workbook:
    names = {info.filename for info in archive.infolist()}
    worksheets = {
        name[14:-4]: name
        for name in names
        if len(name) > 17 and name.startswith(_WORKSHEETS_PREFIX)
    }
    if _WORKBOOK_RELS_PART not in names:
        raise XLSXReaderError("xl/_rels/workbook.xml.rels not found in input xlsx.")
    rels = read_workbook_relations(archive.read(_WORKBOOK_RELS_PART))
    if not worksheets:
        raise XLSXReaderError("Input xlsx contains no worksheets.")
    book = Workbook()
    if _SHARED_STRINGS_PART in names:
        book.shared_strings = RefTable.from_sst(archive.read(_SHARED_STRINGS_PART))
    if _WORKBOOK_PART not in names:
        raise XLSXReaderError("xl/workbook.xml not found in input xlsx.")
    root = _parse(archive.read(_WORKBOOK_PART))

    pr = _child(root, "workbookPr")
    book.date1904 = pr is not None and pr.get("date1904", "") in _TRUE
    names_el = _child(root, "definedNames")
    if names_el is not None:
        book.defined_names = [
            {**dn.attrib, "value": "".join(dn.itertext())}
            for dn in _children(names_el, "definedName")
        ]

    sheets_el = _child(root, "sheets")
    for sheet_el in [] if sheets_el is None else _children(sheets_el, "sheet"):
        key = _worksheet_key(sheet_el, worksheets, rels)
        if key is None:
            continue
        sheet = _read_sheet(
            archive, worksheets[key], sheet_el, book.shared_strings, book.date1904, row_limit
        )
        book.sheets.append(sheet)
        book.sheets_by_name[sheet.name] = sheet
    return book


def read_zip(source: Source, row_limit: int = NO_ROW_LIMIT) -> Workbook:
    """Read a workbook from a path, bytes, binary file or open ``ZipFile``.

    ``row_limit`` caps the rows read from each sheet; ``NO_ROW_LIMIT`` reads all.
    Any malformed content is reported as :class:`XLSXReaderError`.
    """
    try:
        with _archive(source) as archive:
            return _read(archive, row_limit)
    except XLSXReaderError:
        raise
    except (
        zipfile.BadZipFile,
        ET.ParseError,
        ValueError,
        KeyError,
        IndexError,
        EOFError,
    ) as err:
        raise XLSXReaderError(str(err) or type(err).__name__) from err