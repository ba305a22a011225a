"""Formulas of worksheet cells, including expansion of shared formulas."""

from __future__ import annotations

from dataclasses import dataclass

from .cellref import (
    FIXED_REF_CHAR,
    InvalidCellReference,
    digits_only,
    get_cell_id_from_coords,
    get_coords_from_cell_id,
    letters_only,
)

_TRIM = " \t\n\r"


@dataclass(frozen=True)
class SharedFormula:
    """The anchor cell and text of a shared formula."""

    x: int = 0
    y: int = 0
    formula: str = ""


@dataclass
class FormulaSpec:
    """The ``<f>`` element of a cell: its text, type, anchor range and shared index."""

    content: str = ""
    t: str = ""
    ref: str = ""
    si: int = 0


def _coords_or_origin(cell_id: str) -> tuple[int, int]:
    try:
        return get_coords_from_cell_id(cell_id)
    except InvalidCellReference:
        return 0, 0


def shift_cell(cell_id: str, dx: int, dy: int) -> str:
    """Move a cell reference by ``dx`` columns and ``dy`` rows, keeping ``$``-fixed parts."""
    fx, fy = _coords_or_origin(cell_id)
    fixed_col = cell_id.find(FIXED_REF_CHAR) == 0
    fixed_row = cell_id.rfind(FIXED_REF_CHAR) > 0
    if not fixed_col:
        fx += dx
    if not fixed_row:
        fy += dy
    shifted = get_cell_id_from_coords(fx, fy)
    if not fixed_col and not fixed_row:
        return shifted
    column = letters_only(shifted)
    row = digits_only(shifted)
    return (
        (FIXED_REF_CHAR if fixed_col else "")
        + column
        + (FIXED_REF_CHAR if fixed_row else "")
        + row
    )


def _expand_shared(original: str, dx: int, dy: int) -> str:
    pieces: list[str] = []
    length = len(original)
    start = 0
    end = 0
    in_string = False
    while end < length:
        char = original[end]
        if char == '"':
            in_string = not in_string
        if in_string:
            end += 1
            continue
        if "A" <= char <= "Z" or char == "$":
            pieces.append(original[start:end])
            start = end
            end += 1
            found_number = False
            while end < length:
                inner = original[end]
                if "0" <= inner <= "9" or inner == "$":
                    found_number = True
                elif "A" <= inner <= "Z":
                    if found_number:
                        break
                else:
                    break
                end += 1
            if found_number:
                pieces.append(shift_cell(original[start:end], dx, dy))
                start = end
        end += 1
    if start < length:
        pieces.append(original[start:])
    return "".join(pieces)


def formula_for_cell(
    cell_ref: str,
    spec: FormulaSpec | None,
    shared_formulas: dict[int, SharedFormula],
) -> str:
    """Return the formula of the cell at ``cell_ref``.

    A shared formula with an anchor range is recorded in ``shared_formulas``;
    one without is expanded from the recorded anchor, shifted to this cell.
    """
    if spec is None:
        return ""
    if spec.t != "shared":
        return spec.content.strip(_TRIM)
    try:
        x, y = get_coords_from_cell_id(cell_ref)
    except InvalidCellReference:
        return spec.content.strip(_TRIM)
    if spec.ref:
        shared_formulas[spec.si] = SharedFormula(x, y, spec.content)
        return spec.content.strip(_TRIM)
    anchor = shared_formulas.get(spec.si, SharedFormula())
    result = _expand_shared(anchor.formula, x - anchor.x, y - anchor.y)
    return result.strip(_TRIM)