import pytest

from xlsxgrid.formula import FormulaSpec, SharedFormula, formula_for_cell, shift_cell

FORMULAS = [
    "A1",
    "$A1",
    "A$1",
    "$A$1",
    "A1+B1",
    "$A1+B1",
    "$A$1+B1",
    "A1+$B1",
    "A1+B$1",
    "A1+$B$1",
    "$A$1+$B$1",
    'IF(C23>=E$12,"Q4",IF(C23>=$D$12,"Q3",IF(C23>=C$12,"Q2","Q1")))',
    "SUM(D44:H44)*IM_A_DEFINED_NAME",
    "IM_A_DEFINED_NAME+SUM(D44:H44)*IM_A_DEFINED_NAME_ALSO",
    "SUM(D44:H44)*IM_A_DEFINED_NAME+A1",
    "AA1",
    "$AA1",
    "AA$1",
    "$AA$1",
]

EXPECTED = [
    "B2",
    "$A2",
    "B$1",
    "$A$1",
    "B2+C2",
    "$A2+C2",
    "$A$1+C2",
    "B2+$B2",
    "B2+C$1",
    "B2+$B$1",
    "$A$1+$B$1",
    'IF(D24>=F$12,"Q4",IF(D24>=$D$12,"Q3",IF(D24>=D$12,"Q2","Q1")))',
    "SUM(E45:I45)*IM_A_DEFINED_NAME",
    "IM_A_DEFINED_NAME+SUM(E45:I45)*IM_A_DEFINED_NAME_ALSO",
    "SUM(E45:I45)*IM_A_DEFINED_NAME+B2",
    "AB2",
    "$AA2",
    "AB$1",
    "$AA$1",
]


@pytest.mark.parametrize("index", range(len(FORMULAS)))
def test_shared_formulas_with_absolute_references(index):
    shared = {i: SharedFormula(2, 3, f) for i, f in enumerate(FORMULAS)}
    spec = FormulaSpec(content=FORMULAS[index], t="shared", si=index)
    assert formula_for_cell("D5", spec, shared) == EXPECTED[index]


def test_shared_formula_anchor_and_followers():
    shared = {}
    anchor = FormulaSpec(content="2*A1", t="shared", ref="A2:C2", si=0)
    assert formula_for_cell("A2", anchor, shared) == "2*A1"
    assert shared[0] == SharedFormula(0, 1, "2*A1")
    follower = FormulaSpec(t="shared", si=0)
    assert formula_for_cell("B2", follower, shared) == "2*B1"
    assert formula_for_cell("C2", follower, shared) == "2*C1"


def test_no_formula_gives_empty_string():
    assert formula_for_cell("A1", None, {}) == ""


def test_plain_formula_is_trimmed():
    assert formula_for_cell("E1", FormulaSpec(content="  10+20\n"), {}) == "10+20"


def test_shared_formula_with_bad_reference_keeps_content():
    spec = FormulaSpec(content="A1*2", t="shared", si=3)
    shared = {}
    assert formula_for_cell("", spec, shared) == "A1*2"
    assert shared == {}


@pytest.mark.parametrize(
    "cell_id, expected",
    [("A1", "B3"), ("$A1", "$A3"), ("A$1", "B$1"), ("$A$1", "$A$1"), ("Z9", "AA11")],
)
def test_shift_cell(cell_id, expected):
    assert shift_cell(cell_id, 1, 2) == expected