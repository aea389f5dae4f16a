import pytest

from form_config import COMPACT, RESIDENTIAL_STATUS_OPTIONS, WIDE, LayoutConstants, LayoutError, get_layout_constants
from layout import (
    CHECKBOX_LINE_HEIGHT,
    Node,
    cell_box_geometry,
    cell_row,
    checkbox_group,
    label_checkbox_row,
    label_field_row,
    label_field_rows,
)
from tokenizer import tokenize_row


def test_cell_geometry_total_width():
    assert cell_box_geometry(COMPACT, 20).total_row_width == 260
    assert cell_box_geometry(WIDE, 20).total_row_width == 460
    assert cell_box_geometry(COMPACT, 1).pitch == 13


def test_cell_geometry_rejects_zero_cells():
    with pytest.raises(LayoutError):
        cell_box_geometry(COMPACT, 0)


def test_compact_row_fits_fields_column():
    used = COMPACT.label_width + COMPACT.field_gap + cell_box_geometry(COMPACT, 20).total_row_width
    assert used <= COMPACT.fields_area_width


@pytest.mark.parametrize("override", [{"cell_width": 0}, {"cell_height": -4}, {"padding": 0}, {"label_width": 420}])
def test_malformed_constants_fail_fast(override):
    with pytest.raises(LayoutError):
        LayoutConstants(**override)


def test_zero_border_is_allowed():
    constants = LayoutConstants(border_width=0)
    assert cell_box_geometry(constants, 20).total_row_width == 200


def test_layout_variants():
    assert get_layout_constants("wide") is WIDE
    assert get_layout_constants(None).name == "compact"
    with pytest.raises(KeyError):
        get_layout_constants("poster")


def test_cell_row_children_share_the_pitch():
    row = cell_row(tokenize_row("HELLO", 20), COMPACT, key="greeting")
    assert row.width == 260
    assert len(row.children) == 20
    assert [c.x for c in row.children[:3]] == [0, 13, 26]
    assert all(c.width == 13 for c in row.children)
    assert row.texts() == ["HELLO"]


def test_label_field_row_keys_and_columns():
    row = label_field_row("Nationality:", tokenize_row("Indian", 20), COMPACT, key="field-nationality")
    label = row.find("field-nationality-label")
    cells = row.find("field-nationality-cells")
    assert label.width == COMPACT.label_width
    assert cells.x == COMPACT.label_width + COMPACT.field_gap
    assert row.height == COMPACT.cell_height
    assert cells.texts() == ["Indian"]


def test_long_label_is_clipped_to_the_row():
    label = "Ward / Circle / Special Range / Place, where assessed to income tax:" * 3
    row = label_field_row(label, tokenize_row("", 20), COMPACT, key="field")
    node = row.find("field-label")
    assert node.width == COMPACT.label_width
    assert node.height <= row.height


def test_multi_row_field_stacks_rows():
    rows = [tokenize_row("ROW", 20) for _ in range(3)]
    block = label_field_rows("Correspondence Address:", rows, COMPACT, key="addr")
    assert block.height == 3 * COMPACT.cell_height + 2 * COMPACT.multi_row_gap
    second = block.find("addr-cells-2")
    assert second.y == COMPACT.cell_height + COMPACT.multi_row_gap
    assert block.find("addr-label").y == 0


def checked_keys(node):
    return [n.key for n in node.walk() if n.kind == "checkbox" and n.checked]


@pytest.mark.parametrize(
    "selected, expected",
    [
        ("Resident", ["status-1"]),
        ("Non-Resident", ["status-2"]),
        ("Foreign National of Indian Origin", ["status-3"]),
    ],
)
def test_checkbox_group_is_exclusive(selected, expected):
    group = checkbox_group(RESIDENTIAL_STATUS_OPTIONS, selected, COMPACT, max_width=400, key="status")
    assert checked_keys(group) == expected


@pytest.mark.parametrize("selected", [None, "", "resident", "Unknown"])
def test_checkbox_group_without_exact_match_checks_nothing(selected):
    group = checkbox_group(RESIDENTIAL_STATUS_OPTIONS, selected, COMPACT, max_width=400, key="status")
    assert checked_keys(group) == []


def test_checkbox_group_wraps_to_width():
    narrow = checkbox_group(RESIDENTIAL_STATUS_OPTIONS, None, COMPACT, max_width=120)
    wide = checkbox_group(RESIDENTIAL_STATUS_OPTIONS, None, COMPACT, max_width=2000)
    assert wide.height == CHECKBOX_LINE_HEIGHT
    assert narrow.height > CHECKBOX_LINE_HEIGHT


def test_checkbox_row_stays_in_fields_column():
    row = label_checkbox_row("Residential Status:", RESIDENTIAL_STATUS_OPTIONS, "Resident", COMPACT, key="rs")
    assert row.width <= COMPACT.fields_area_width
    assert checked_keys(row) == ["rs-options-1"]


def test_subtrees_are_position_independent():
    row = label_field_row("Age:", tokenize_row("34", 20), COMPACT, key="age")
    moved = row.at(100, 200)
    assert moved.children == row.children
    assert (moved.x, moved.y) == (100, 200)
    assert isinstance(moved, Node)
