"""Conversion between spreadsheet cell names and zero-based coordinates."""

from __future__ import annotations

import re

FIXED_REF_CHAR = "$"
RANGE_CHAR = ":"

_INTEGER = re.compile(r"[+-]?[0-9]+", re.ASCII)


class InvalidCellReference(ValueError):
    """Raised when a cell name, range or dimension reference cannot be parsed."""


def _to_int(text: str, what: str, source: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise InvalidCellReference(f"Invalid {what} {source!r}")
    return int(text)


def col_letters_to_index(letters: str) -> int:
    """Convert column letters such as ``"AB"`` to a zero-based column index."""
    total = 0
    multiplier = 1
    for position, char in enumerate(reversed(letters)):
        value = 0 if position == 0 else 1
        if "A" <= char <= "Z":
            value += ord(char) - ord("A")
        elif "a" <= char <= "z":
            value += ord(char) - ord("a")
        total += value * multiplier
        multiplier *= 26
    return total


def largest_denominator(numerator: int, multiple: int, base: int, power: int) -> tuple[int, int]:
    """Return the largest ``multiple * base**k`` that fits into ``numerator``, with its power."""
    if base < 2:
        raise ValueError("base must be at least 2")
    if multiple <= 0:
        raise ValueError("multiple must be positive")
    magnitude = abs(numerator)
    if magnitude < multiple:
        return 1, power
    best, best_power = multiple, power
    while magnitude >= best * base:
        best *= base
        best_power += 1
    return best, best_power


def format_column_name(parts: list[int]) -> str:
    """Turn smooshed base-26 digits into column letters."""
    if not parts:
        return ""
    *leading, last = parts
    prefix = "".join(chr(part + 64) for part in leading if part > 0)
    return prefix + chr(last + 65)


def smoosh_base26(parts: list[int]) -> list[int]:
    """Remove zeros from all but the least significant base-26 digit."""
    result = list(parts)
    for i in range(len(result) - 2, 0, -1):
        if result[i] == 0 and result[i - 1] > 0:
            result[i - 1] -= 1
            result[i] = 26
    return result


def _int_to_base26(value: int) -> list[int]:
    denominator, _ = largest_denominator(value, 1, 26, 0)
    parts = []
    while denominator > 0:
        digit, value = divmod(value, denominator)
        parts.append(digit)
        denominator //= 26
    return parts


def col_index_to_letters(index: int) -> str:
    """Convert a zero-based column index to column letters."""
    if index < 0:
        raise InvalidCellReference(f"Negative column index {index}")
    return format_column_name(smoosh_base26(_int_to_base26(index)))


def row_index_to_string(row: int) -> str:
    """Convert a zero-based row index to its one-based textual form."""
    return str(row + 1)


def letters_only(text: str) -> str:
    """Keep only ASCII letters, upper-casing them."""
    return "".join(
        char.upper() for char in text if "A" <= char <= "Z" or "a" <= char <= "z"
    )


def digits_only(text: str) -> str:
    """Keep only ASCII digits."""
    return "".join(char for char in text if "0" <= char <= "9")


def get_coords_from_cell_id(cell_id: str) -> tuple[int, int]:
    """Return zero-based ``(x, y)`` for a cell name such as ``"B3"``."""
    digits = digits_only(cell_id)
    if not digits:
        raise InvalidCellReference(f"Invalid cell reference {cell_id!r}")
    y = int(digits) - 1
    x = col_letters_to_index(letters_only(cell_id))
    return x, y


def get_cell_id_from_coords_with_fixed(x: int, y: int, x_fixed: bool, y_fixed: bool) -> str:
    """Return the cell name for zero-based coordinates, optionally with ``$`` markers."""
    column = col_index_to_letters(x)
    if x_fixed:
        column = FIXED_REF_CHAR + column
    row = row_index_to_string(y)
    if y_fixed:
        row = FIXED_REF_CHAR + row
    return column + row


def get_cell_id_from_coords(x: int, y: int) -> str:
    """Return the cell name for zero-based coordinates."""
    return get_cell_id_from_coords_with_fixed(x, y, False, False)


def get_range_from_string(range_string: str) -> tuple[int, int]:
    """Parse a span such as ``"1:3"`` into its lower and upper bounds."""
    lower_text, sep, upper_text = range_string.partition(RANGE_CHAR)
    if not sep or not lower_text or not upper_text:
        raise InvalidCellReference(f"Invalid range {range_string!r}")
    lower = _to_int(lower_text, "range (not integer in lower bound)", range_string)
    upper = _to_int(upper_text, "range (not integer in upper bound)", range_string)
    return lower, upper


def get_max_min_from_dimension_ref(ref: str) -> tuple[int, int, int, int]:
    """Return ``(minx, miny, maxx, maxy)`` for a dimension such as ``"A1:B2"``."""
    parts = ref.split(RANGE_CHAR)
    if len(parts) < 2:
        raise InvalidCellReference(f"Invalid dimension reference {ref!r}")
    minx, miny = get_coords_from_cell_id(parts[0])
    maxx, maxy = get_coords_from_cell_id(parts[1])
    return minx, miny, maxx, maxy