"""Shared string table of a workbook."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

_MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
_XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'

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


def _escape(text: str) -> str:
    return "".join(_ESCAPES.get(char, char) for char in text)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in element if _local(child.tag) == name]


def _text_of(element: ET.Element) -> str:
    return "".join(child.text or "" for child in _children(element, "t"))


@dataclass
class RefTable:
    """Strings referenced by numeric index from worksheet cells.

    When ``is_write`` is true, adding a string that is already present
    returns its existing index instead of storing it again.
    """

    is_write: bool = False
    _strings: list[str] = field(default_factory=list, repr=False)
    _known: dict[str, int] = field(default_factory=dict, repr=False)

    def add_string(self, text: str) -> int:
        """Add a string and return its index."""
        if self.is_write and text in self._known:
            return self._known[text]
        self._strings.append(text)
        index = len(self._strings) - 1
        self._known[text] = index
        return index

    def resolve_shared_string(self, index: int) -> str:
        """Return the string stored at ``index``."""
        if index < 0:
            raise IndexError(f"shared string index {index} out of range")
        return self._strings[index]

    def __len__(self) -> int:
        return len(self._strings)

    @classmethod
    def from_sst(cls, data: str | bytes) -> "RefTable":
        """Build a table from the XML of a shared strings part."""
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        root = ET.fromstring(data.lstrip())
        table = cls(is_write=False)
        for si in _children(root, "si"):
            runs = _children(si, "r")
            if runs:
                table.add_string("".join(_text_of(run) for run in runs))
            else:
                table.add_string(_text_of(si))
        return table

    def to_sst_xml(self) -> str:
        """Serialise the table as a shared strings part."""
        count = len(self._strings)
        items = "".join(f"<si><t>{_escape(text)}</t></si>" for text in self._strings)
        return (
            f'{_XML_HEADER}<sst xmlns="{_MAIN_NS}" count="{count}" '
            f'uniqueCount="{count}">{items}</sst>'
        )