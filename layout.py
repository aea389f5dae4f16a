"""
Layout engine for the character-cell form.

Turns tokenized values into positioned ``Node`` trees inside the fixed
612-unit container. Child coordinates are relative to their parent, so the
same subtree can be placed anywhere without changing its contents.

Text is measured with reportlab's built-in Helvetica metrics, which are the
same metrics the PDF overlay draws with.
"""

from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Sequence, Tuple

from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth

from form_config import COLORS, LayoutConstants, LayoutError

LINE_HEIGHT_RATIO = 1.25

CHECKBOX_SIZE = 12
CHECKBOX_TEXT_GAP = 6
CHECKBOX_ITEM_GAP = 6
CHECKBOX_LINE_HEIGHT = 16


@dataclass(frozen=True)
class Style:
    font_size: float = 0
    bold: bool = False
    italic: bool = False
    color: str = COLORS["ink"]
    background: Optional[str] = None
    border_width: float = 0
    border_color: str = COLORS["ink"]
    border_style: str = "solid"  # solid | dashed
    border_sides: str = "all"  # all | top | bottom
    align: str = "left"  # left | center | right
    line_height: float = 0
    object_fit: str = "contain"  # contain | cover

    @property
    def font_name(self) -> str:
        if self.bold and self.italic:
            return "Helvetica-BoldOblique"
        if self.bold:
            return "Helvetica-Bold"
        if self.italic:
            return "Helvetica-Oblique"
        return "Helvetica"

    @property
    def effective_line_height(self) -> float:
        return self.line_height or self.font_size * LINE_HEIGHT_RATIO


@dataclass(frozen=True)
class Node:
    """One positioned visual element; ``x``/``y`` are relative to the parent."""

    kind: str  # box | text | cell | checkbox | image
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    key: str = ""
    lines: Tuple[str, ...] = ()
    style: Style = Style()
    src: Optional[str] = None
    checked: bool = False
    clip: bool = False
    children: Tuple["Node", ...] = ()

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def at(self, x: float, y: float) -> "Node":
        return replace(self, x=x, y=y)

    def walk(self) -> Iterator["Node"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, key: str) -> Optional["Node"]:
        for node in self.walk():
            if node.key == key:
                return node
        return None

    def texts(self) -> List[str]:
        """All text content in document order (cells are joined per row)."""
        out = []
        for node in self.walk():
            if node.kind == "text":
                out.extend(node.lines)
            elif node.kind == "box" and node.children and all(c.kind == "cell" for c in node.children):
                out.append("".join(c.text for c in node.children))
        return out


@dataclass(frozen=True)
class CellGeometry:
    cell_width: float
    cell_height: float
    border_width: float
    total_row_width: float

    @property
    def pitch(self) -> float:
        return self.cell_width + 2 * self.border_width


def cell_box_geometry(constants: LayoutConstants, cell_count: int) -> CellGeometry:
    if cell_count <= 0:
        raise LayoutError(f"cell_count must be positive, got {cell_count}")
    pitch = constants.cell_width + 2 * constants.border_width
    return CellGeometry(
        cell_width=constants.cell_width,
        cell_height=constants.cell_height,
        border_width=constants.border_width,
        total_row_width=cell_count * pitch,
    )


# ---------- text ----------

def text_width(text: str, style: Style) -> float:
    return stringWidth(text, style.font_name, style.font_size)


def wrap_text(text: str, width: float, style: Style) -> List[str]:
    if not text:
        return []
    return simpleSplit(text, style.font_name, style.font_size, width)


def text_node(
    text: str,
    width: float,
    style: Style,
    x: float = 0,
    y: float = 0,
    key: str = "",
    max_lines: Optional[int] = None,
) -> Node:
    """Paragraph wrapped to ``width``; lines past ``max_lines`` are clipped."""
    lines = wrap_text(text, width, style)
    if max_lines is not None:
        lines = lines[:max_lines]
    height = len(lines) * style.effective_line_height
    return Node("text", x=x, y=y, width=width, height=height, key=key, lines=tuple(lines), style=style, clip=True)


def inline_text(text: str, height: float, style: Style, x: float = 0, key: str = "") -> Node:
    """Single unwrapped line, vertically centred in a row of ``height``."""
    line_height = style.effective_line_height
    return Node(
        "text",
        x=x,
        y=(height - line_height) / 2,
        width=text_width(text, style),
        height=line_height,
        key=key,
        lines=(text,),
        style=style,
    )


def label_style(constants: LayoutConstants) -> Style:
    return Style(font_size=constants.label_font_size, bold=True)


def label_node(
    label: str, width: float, height: float, style: Style, key: str = "", valign: str = "middle"
) -> Node:
    """
    Fixed-width label column.

    The text wraps inside ``width`` and lines that do not fit ``height`` are
    dropped, never widening the column.
    """
    max_lines = max(1, int(height // style.effective_line_height))
    node = text_node(label, width, style, key=key, max_lines=max_lines)
    if valign == "top":
        return node
    return node.at(0, (height - node.height) / 2)


def rule(x: float, y: float, width: float, thickness: float, color: str, key: str = "") -> Node:
    return Node("box", x=x, y=y, width=width, height=thickness, key=key, style=Style(background=color))


# ---------- character cells ----------

def cell_style(constants: LayoutConstants) -> Style:
    return Style(
        font_size=constants.cell_font_size,
        bold=True,
        background=COLORS["page"],
        border_width=constants.border_width,
        border_color=COLORS["cell_border"],
        align="center",
        line_height=constants.cell_height,
    )


def cell_row(cells: Sequence[str], constants: LayoutConstants, x: float = 0, y: float = 0, key: str = "") -> Node:
    geometry = cell_box_geometry(constants, len(cells))
    style = cell_style(constants)
    children = tuple(
        Node(
            "cell",
            x=i * geometry.pitch,
            y=0,
            width=geometry.pitch,
            height=geometry.cell_height,
            lines=(char,) if char else (),
            style=style,
        )
        for i, char in enumerate(cells)
    )
    return Node(
        "box",
        x=x,
        y=y,
        width=geometry.total_row_width,
        height=geometry.cell_height,
        key=key,
        clip=True,
        children=children,
    )


def label_field_row(
    label: str,
    boxes: Sequence[str],
    constants: LayoutConstants,
    x: float = 0,
    y: float = 0,
    key: str = "",
    label_width: Optional[float] = None,
) -> Node:
    """Label column of fixed width followed by one row of character cells."""
    return label_field_rows(label, [boxes], constants, x=x, y=y, key=key, label_width=label_width)


def label_field_rows(
    label: str,
    rows: Sequence[Sequence[str]],
    constants: LayoutConstants,
    x: float = 0,
    y: float = 0,
    key: str = "",
    label_width: Optional[float] = None,
) -> Node:
    """Label column followed by stacked rows of character cells."""
    if not rows:
        raise LayoutError("a field needs at least one row of cells")
    label_width = constants.label_width if label_width is None else label_width
    cells_x = label_width + constants.field_gap

    cell_rows = []
    row_y = 0.0
    for i, cells in enumerate(rows):
        suffix = "-cells" if len(rows) == 1 else f"-cells-{i + 1}"
        cell_rows.append(cell_row(cells, constants, x=cells_x, y=row_y, key=f"{key}{suffix}"))
        row_y += constants.cell_height + constants.multi_row_gap
    height = row_y - constants.multi_row_gap

    valign = "top" if len(rows) > 1 else "middle"
    label = label_node(label, label_width, height, label_style(constants), key=f"{key}-label", valign=valign)
    width = cells_x + max(r.width for r in cell_rows)
    return Node("box", x=x, y=y, width=width, height=height, key=key, children=(label, *cell_rows))


# ---------- checkboxes ----------

def checkbox_group(
    options: Sequence[Tuple[str, str]],
    selected: Optional[str],
    constants: LayoutConstants,
    max_width: float,
    x: float = 0,
    y: float = 0,
    key: str = "",
) -> Node:
    """
    Mutually exclusive checkboxes flowing left to right, wrapping at ``max_width``.

    ``options`` holds ``(value, caption)`` pairs; an option is checked only when
    ``selected`` equals its value exactly.
    """
    style = label_style(constants)
    children = []
    cursor_x = 0.0
    line = 0
    widest = 0.0
    for index, (value, caption) in enumerate(options, start=1):
        item_width = CHECKBOX_SIZE + CHECKBOX_TEXT_GAP + text_width(caption, style)
        if cursor_x > 0 and cursor_x + item_width > max_width:
            line += 1
            cursor_x = 0.0
        top = line * CHECKBOX_LINE_HEIGHT
        checked = selected == value
        children.append(
            Node(
                "checkbox",
                x=cursor_x,
                y=top + (CHECKBOX_LINE_HEIGHT - CHECKBOX_SIZE) / 2,
                width=CHECKBOX_SIZE,
                height=CHECKBOX_SIZE,
                key=f"{key}-{index}",
                checked=checked,
                style=Style(
                    font_size=constants.label_font_size,
                    bold=True,
                    color=COLORS["page"],
                    background=COLORS["ink"] if checked else COLORS["page"],
                    border_width=1.5,
                    border_color=COLORS["ink"] if checked else COLORS["muted"],
                    align="center",
                    line_height=CHECKBOX_SIZE,
                ),
            )
        )
        caption_node = inline_text(caption, CHECKBOX_LINE_HEIGHT, style, x=cursor_x + CHECKBOX_SIZE + CHECKBOX_TEXT_GAP)
        children.append(caption_node.at(caption_node.x, top + caption_node.y))
        widest = max(widest, cursor_x + item_width)
        cursor_x += item_width + CHECKBOX_ITEM_GAP
    height = (line + 1) * CHECKBOX_LINE_HEIGHT
    return Node("box", x=x, y=y, width=widest, height=height, key=key, children=tuple(children))


def label_checkbox_row(
    label: str,
    options: Sequence[Tuple[str, str]],
    selected: Optional[str],
    constants: LayoutConstants,
    x: float = 0,
    y: float = 0,
    key: str = "",
) -> Node:
    group_x = constants.label_width + constants.field_gap
    group = checkbox_group(
        options,
        selected,
        constants,
        max_width=constants.fields_area_width - group_x,
        x=group_x,
        key=f"{key}-options",
    )
    height = max(constants.cell_height, group.height)
    group = group.at(group_x, (height - group.height) / 2)
    valign = "top" if group.height > constants.cell_height else "middle"
    label = label_node(label, constants.label_width, height, label_style(constants), key=f"{key}-label", valign=valign)
    return Node("box", x=x, y=y, width=group_x + group.width, height=height, key=key, children=(label, group))

