"""
Form compositor.

Assembles headers, field rows, checkbox groups, photo/signature slots and
section titles into one page-sized ``Node`` tree per designated page:

  - one block per present applicant (sole/first always, joint ones only
    when they have a name)
  - the apartment + declaration block

The signature footer is built once by ``compose_signature_footer`` and placed
on both the first applicant's page and the apartment page.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from form_config import (
    APARTMENT_FIELDS,
    APARTMENT_PAGE,
    APARTMENT_TITLE,
    APPLICANT_FIELDS,
    APPLICANT_PAGES,
    BRAND_LINES,
    CARPET_AREA_CELLS,
    CARPET_AREA_LABEL,
    CARPET_AREA_UNITS,
    COLORS,
    DECLARATION_CLOSING,
    DECLARATION_DATE_FIELD,
    DECLARATION_PLACE_FIELD,
    DECLARATION_TEXT,
    DECLARATION_TITLE,
    GST_NOTE,
    JOINT_HEADING,
    PHOTO_LABEL,
    PHOTO_PLACEHOLDER,
    PRICING_NOTES,
    PRICING_NOTES_TITLE,
    PRIMARY_HEADING,
    RESIDENTIAL_STATUS_OPTIONS,
    SIGNATURE_CAPTIONS,
    SIGNATURE_LABEL,
    TOTAL_PRICE_FIELD,
    UNIT_PRICE_FIELD,
    UNIT_TYPE_DISPLAY,
    LayoutConstants,
)
from layout import (
    Node,
    Style,
    inline_text,
    label_checkbox_row,
    label_field_row,
    label_field_rows,
    label_node,
    label_style,
    cell_row,
    rule,
    text_node,
    text_width,
)
from schemas import ApplicantRecord, FormDataset
from tokenizer import normalize_money, tokenize_multi_row, tokenize_row

logger = logging.getLogger(__name__)

HEADER_RULE = 2
SECTION_TITLE_HEIGHT = 26
BRAND_FONT_SIZE = 10
BRAND_BAR_WIDTH = 2
BRAND_BAR_GAP = 2
BRAND_BAR_HEIGHT = 36
BRAND_TEXT_GAP = 16

PHOTO_BORDER = 2
PHOTO_PADDING = 8
PHOTO_LABEL_HEIGHT = 12
PHOTO_LABEL_GAP = 6
PHOTO_ASPECT = 4 / 3  # height / width

SIGNATURE_BOX_WIDTH = 170
SIGNATURE_BOX_HEIGHT = 45
SIGNATURE_SLOT_GAP = 40
SIGNATURE_LABEL_HEIGHT = 14
FOOTER_MARGIN = 20
FOOTER_PADDING = 12

APARTMENT_ROW_GAP = 10
NOTE_FONT_SIZE = 10
NOTE_LINE_HEIGHT = 14
NOTE_INDENT = 12
UNIT_LABEL_GAP = 6


class SlotState(str, Enum):
    ABSENT = "absent"
    PRIMARY = "primary"
    JOINT = "joint"


def applicant_slot_state(index: int, applicant: Optional[ApplicantRecord]) -> SlotState:
    if index == 0:
        return SlotState.PRIMARY
    if applicant is None or not applicant.name:
        return SlotState.ABSENT
    return SlotState.JOINT


def active_applicant_count(dataset: FormDataset) -> int:
    return sum(
        1
        for index in APPLICANT_PAGES
        if applicant_slot_state(index, dataset.applicant(index)) is not SlotState.ABSENT
    )


@dataclass(frozen=True)
class PageLayout:
    page_number: int
    slot: str
    title: str
    root: Node


# ---------- shared chrome ----------

def _header(constants: LayoutConstants, heading: Optional[str]) -> Node:
    brand_style = Style(font_size=BRAND_FONT_SIZE, bold=True, line_height=BRAND_FONT_SIZE * 1.2)
    brand_width = max(text_width(line, brand_style) for line in BRAND_LINES)
    brand_x = constants.container_width - constants.padding - brand_width
    bars_width = 3 * BRAND_BAR_WIDTH + 2 * BRAND_BAR_GAP
    bars_x = brand_x - BRAND_TEXT_GAP - bars_width

    children = []
    if heading:
        heading_style = Style(font_size=constants.heading_font_size, bold=True)
        heading_width = bars_x - constants.padding - 24
        children.append(text_node(heading, heading_width, heading_style, x=constants.padding, key="heading", max_lines=1))
    for i in range(3):
        children.append(
            rule(bars_x + i * (BRAND_BAR_WIDTH + BRAND_BAR_GAP), 0, BRAND_BAR_WIDTH, BRAND_BAR_HEIGHT, COLORS["ink"])
        )
    for i, line in enumerate(BRAND_LINES):
        children.append(
            Node(
                "text",
                x=brand_x,
                y=i * brand_style.line_height,
                width=brand_width,
                height=brand_style.line_height,
                lines=(line,),
                style=Style(font_size=BRAND_FONT_SIZE, bold=True, align="right", line_height=brand_style.line_height),
            )
        )
    children.append(
        rule(constants.padding, constants.header_height - HEADER_RULE, constants.content_width, HEADER_RULE, COLORS["rule"])
    )
    return Node(
        "box",
        width=constants.container_width,
        height=constants.header_height,
        key="header",
        children=tuple(children),
    )


def _section_title(title: str, constants: LayoutConstants, x: float, y: float, width: float, key: str) -> Node:
    style = Style(font_size=constants.heading_font_size, bold=True)
    text = text_node(title, width, style, max_lines=1)
    return Node(
        "box",
        x=x,
        y=y,
        width=width,
        height=SECTION_TITLE_HEIGHT,
        key=key,
        children=(text, rule(0, SECTION_TITLE_HEIGHT - HEADER_RULE, width, HEADER_RULE, COLORS["faint"])),
    )


def _page_root(key: str, constants: LayoutConstants, children: List[Node], content_bottom: float) -> Node:
    return Node(
        "box",
        width=constants.container_width,
        height=content_bottom + constants.padding,
        key=key,
        style=Style(background=COLORS["page"]),
        clip=True,
        children=tuple(children),
    )


# ---------- applicant block ----------

def _applicant_value(applicant: ApplicantRecord, key: str) -> str:
    if key == "title_name":
        return f"{applicant.title or ''} {applicant.name or ''}".strip()
    return getattr(applicant, key) or ""


def _applicant_fields(applicant: ApplicantRecord, constants: LayoutConstants, y: float) -> Node:
    rows = []
    row_y = 0.0
    for spec in APPLICANT_FIELDS:
        key = f"field-{spec.key}"
        if spec.kind == "checkbox":
            row = label_checkbox_row(
                spec.label, RESIDENTIAL_STATUS_OPTIONS, applicant.residential_status, constants, y=row_y, key=key
            )
        elif spec.rows > 1:
            cells = tokenize_multi_row(_applicant_value(applicant, spec.key), spec.cells, spec.rows)
            row = label_field_rows(spec.label, cells, constants, y=row_y, key=key)
        else:
            cells = tokenize_row(_applicant_value(applicant, spec.key), spec.cells)
            row = label_field_row(spec.label, cells, constants, y=row_y, key=key)
        rows.append(row)
        row_y += row.height + constants.row_gap

    # the column clips cells that run past it (the wide variant does)
    return Node(
        "box",
        x=constants.padding,
        y=y,
        width=constants.fields_area_width,
        height=row_y - constants.row_gap,
        key="fields",
        clip=True,
        children=tuple(rows),
    )


def _photo_slot(applicant: ApplicantRecord, constants: LayoutConstants, y: float) -> Node:
    inset = PHOTO_BORDER + PHOTO_PADDING
    inner_width = constants.photo_width - 2 * inset
    frame_height = inner_width * PHOTO_ASPECT
    frame_y = inset + PHOTO_LABEL_HEIGHT + PHOTO_LABEL_GAP

    label = Node(
        "text",
        x=inset,
        y=inset,
        width=inner_width,
        height=PHOTO_LABEL_HEIGHT,
        lines=(PHOTO_LABEL,),
        style=Style(font_size=9, bold=True, align="center", line_height=PHOTO_LABEL_HEIGHT),
        clip=True,
    )
    if applicant.photograph:
        content = Node(
            "image",
            width=inner_width,
            height=frame_height,
            key="photo-image",
            src=applicant.photograph,
            lines=(PHOTO_PLACEHOLDER,),
            style=Style(font_size=8, color=COLORS["faint"], align="center", object_fit="cover"),
        )
    else:
        placeholder_style = Style(font_size=8, color=COLORS["faint"], align="center", line_height=frame_height)
        content = Node(
            "text",
            width=inner_width,
            height=frame_height,
            key="photo-placeholder",
            lines=(PHOTO_PLACEHOLDER,),
            style=placeholder_style,
        )
    frame = Node(
        "box",
        x=inset,
        y=frame_y,
        width=inner_width,
        height=frame_height,
        style=Style(background=COLORS["page"], border_width=1, border_color=COLORS["faint"]),
        clip=True,
        children=(content,),
    )
    return Node(
        "box",
        x=constants.photo_x,
        y=y,
        width=constants.photo_width,
        height=frame_y + frame_height + inset,
        key="photo",
        style=Style(background=COLORS["page"], border_width=PHOTO_BORDER, border_color=COLORS["cell_border"]),
        children=(label, frame),
    )


def _signature_slot(caption: str, signature: Optional[str], constants: LayoutConstants, key: str) -> Node:
    label = Node(
        "text",
        width=SIGNATURE_BOX_WIDTH,
        height=SIGNATURE_LABEL_HEIGHT,
        lines=(SIGNATURE_LABEL,),
        style=Style(font_size=constants.body_font_size, bold=True, line_height=SIGNATURE_LABEL_HEIGHT),
    )
    if signature:
        content = Node(
            "image",
            width=SIGNATURE_BOX_WIDTH,
            height=SIGNATURE_BOX_HEIGHT,
            key=f"{key}-image",
            src=signature,
            lines=(caption,),
            style=Style(font_size=9, color=COLORS["placeholder"], align="center"),
        )
    else:
        content = Node(
            "text",
            width=SIGNATURE_BOX_WIDTH,
            height=SIGNATURE_BOX_HEIGHT,
            key=f"{key}-placeholder",
            lines=(caption,),
            style=Style(font_size=9, color=COLORS["placeholder"], align="center", line_height=SIGNATURE_BOX_HEIGHT),
        )
    box = Node(
        "box",
        y=SIGNATURE_LABEL_HEIGHT + 4,
        width=SIGNATURE_BOX_WIDTH,
        height=SIGNATURE_BOX_HEIGHT,
        style=Style(
            background=COLORS["page"],
            border_width=1.5,
            border_color=COLORS["cell_border"],
            border_style="dashed",
        ),
        clip=True,
        children=(content,),
    )
    return Node(
        "box",
        width=SIGNATURE_BOX_WIDTH,
        height=box.y + box.height,
        key=key,
        children=(label, box),
    )


def compose_signature_footer(dataset: FormDataset, constants: LayoutConstants) -> Optional[Node]:
    """
    Signature slots of the first two applicants.

    Returns ``None`` (no footer, zero height) unless at least one of the two
    signatures is present. The node sits at (0, 0); callers move it with ``at``.
    """
    signatures = []
    for index in range(len(SIGNATURE_CAPTIONS)):
        applicant = dataset.applicant(index)
        signatures.append(applicant.signature if applicant else None)
    if not any(signatures):
        return None

    slots_y = FOOTER_MARGIN + 1 + FOOTER_PADDING
    children = [rule(0, FOOTER_MARGIN, constants.container_width, 1, COLORS["faint"])]
    x = constants.padding
    for index, (caption, signature) in enumerate(zip(SIGNATURE_CAPTIONS, signatures), start=1):
        slot = _signature_slot(caption, signature, constants, key=f"signature-{index}")
        children.append(slot.at(x, slots_y))
        x += SIGNATURE_BOX_WIDTH + SIGNATURE_SLOT_GAP
    height = slots_y + max(c.height for c in children[1:])
    return Node(
        "box",
        width=constants.container_width,
        height=height,
        key="signature-footer",
        children=tuple(children),
    )


def _applicant_heading(index: int, state: SlotState) -> str:
    if state is SlotState.PRIMARY:
        return f"{index + 1}. {PRIMARY_HEADING}:-"
    return f"{index + 1}. {JOINT_HEADING.format(index=index)}:-"


def compose_applicant_block(dataset: FormDataset, index: int, constants: LayoutConstants) -> Optional[Node]:
    applicant = dataset.applicant(index)
    state = applicant_slot_state(index, applicant)
    if state is SlotState.ABSENT:
        return None
    if applicant is None:
        # an empty first slot still renders as a blank form
        applicant = ApplicantRecord()

    y = constants.header_height + constants.section_gap
    fields = _applicant_fields(applicant, constants, y)
    photo = _photo_slot(applicant, constants, y)
    children = [_header(constants, _applicant_heading(index, state)), fields, photo]
    bottom = y + max(fields.height, photo.height)

    if state is SlotState.PRIMARY:
        footer = compose_signature_footer(dataset, constants)
        if footer is not None:
            children.append(footer.at(0, bottom))
            bottom += footer.height

    return _page_root(f"applicant-{index + 1}", constants, children, bottom)


# ---------- apartment / declaration block ----------

def _unit_type_display(dataset: FormDataset) -> str:
    unit_type = dataset.application.unit_type
    if unit_type is None:
        return ""
    return UNIT_TYPE_DISPLAY.get(unit_type.value, "")


def _carpet_area_row(dataset: FormDataset, constants: LayoutConstants, y: float) -> Node:
    unit_style = Style(font_size=constants.label_font_size)
    application = dataset.application
    height = constants.cell_height

    x = constants.apartment_label_width + constants.field_gap
    sqm = cell_row(tokenize_row(application.carpet_area_sqm, CARPET_AREA_CELLS), constants, x=x, key="carpet-area-sqm-cells")
    x += sqm.width + UNIT_LABEL_GAP
    sqm_unit = inline_text(CARPET_AREA_UNITS[0], height, unit_style, x=x)
    x += sqm_unit.width + UNIT_LABEL_GAP
    sqft = cell_row(tokenize_row(application.carpet_area_sqft, CARPET_AREA_CELLS), constants, x=x, key="carpet-area-sqft-cells")
    x += sqft.width + UNIT_LABEL_GAP
    sqft_unit = inline_text(CARPET_AREA_UNITS[1], height, unit_style, x=x)

    label = label_node(CARPET_AREA_LABEL, constants.apartment_label_width, height, label_style(constants), key="carpet-area-label")
    return Node(
        "box",
        x=constants.padding,
        y=y,
        width=sqft_unit.x + sqft_unit.width,
        height=height,
        key="field-carpet_area",
        children=(label, sqm, sqm_unit, sqft, sqft_unit),
    )


def compose_apartment_block(dataset: FormDataset, constants: LayoutConstants) -> Node:
    application = dataset.application
    children = [_header(constants, None)]
    x = constants.padding
    width = constants.content_width
    y = constants.header_height + constants.section_gap

    title = _section_title(APARTMENT_TITLE, constants, x, y, width, key="apartment-title")
    children.append(title)
    y += title.height + constants.section_gap

    def field_row(spec, value):
        nonlocal y
        row = label_field_row(
            spec.label,
            tokenize_row(value, spec.cells),
            constants,
            x=x,
            y=y,
            key=f"field-{spec.key}",
            label_width=constants.apartment_label_width,
        )
        children.append(row)
        y += row.height + APARTMENT_ROW_GAP

    values = {
        "tower": application.tower,
        "apartment_number": application.apartment_number,
        "unit_type": _unit_type_display(dataset),
        "floor": application.floor,
    }
    for spec in APARTMENT_FIELDS:
        field_row(spec, values[spec.key])

    carpet = _carpet_area_row(dataset, constants, y)
    children.append(carpet)
    y += carpet.height + APARTMENT_ROW_GAP

    field_row(UNIT_PRICE_FIELD, normalize_money(application.unit_price))

    note_style = Style(font_size=NOTE_FONT_SIZE, color=COLORS["muted"], line_height=NOTE_LINE_HEIGHT)
    gst = text_node(GST_NOTE, width, note_style, x=x, y=y, key="gst-note")
    children.append(gst)
    y += gst.height + APARTMENT_ROW_GAP

    field_row(TOTAL_PRICE_FIELD, normalize_money(application.total_price))
    y += constants.section_gap - APARTMENT_ROW_GAP

    notes_title = inline_text(PRICING_NOTES_TITLE, NOTE_LINE_HEIGHT, Style(font_size=constants.body_font_size, bold=True), x=x)
    children.append(notes_title.at(x, y + notes_title.y))
    y += NOTE_LINE_HEIGHT + 4
    for index, note in enumerate(PRICING_NOTES, start=1):
        node = text_node(note, width - NOTE_INDENT, note_style, x=x + NOTE_INDENT, y=y, key=f"pricing-note-{index}")
        children.append(node)
        y += node.height + 4

    # declaration section
    y += constants.section_gap
    children.append(rule(x, y, width, HEADER_RULE, COLORS["faint"], key="declaration-rule"))
    y += HEADER_RULE + constants.section_gap

    declaration_title = _section_title(DECLARATION_TITLE, constants, x, y, width, key="declaration-title")
    children.append(declaration_title)
    y += declaration_title.height + constants.section_gap

    body_style = Style(font_size=constants.body_font_size, color=COLORS["muted"], line_height=constants.body_font_size * 1.5)
    declaration = text_node(DECLARATION_TEXT, width, body_style, x=x, y=y, key="declaration-text")
    children.append(declaration)
    y += declaration.height + constants.section_gap

    closing = inline_text(DECLARATION_CLOSING, NOTE_LINE_HEIGHT, Style(font_size=constants.body_font_size, bold=True), x=x)
    children.append(closing.at(x, y + closing.y))
    y += NOTE_LINE_HEIGHT + 8

    date = label_field_row(
        DECLARATION_DATE_FIELD.label,
        tokenize_row(application.declaration_date, DECLARATION_DATE_FIELD.cells),
        constants,
        x=x,
        y=y,
        key="field-declaration_date",
        label_width=constants.short_label_width,
    )
    place = label_field_row(
        DECLARATION_PLACE_FIELD.label,
        tokenize_row(application.declaration_place, DECLARATION_PLACE_FIELD.cells),
        constants,
        x=x + date.width + constants.gap,
        y=y,
        key="field-declaration_place",
        label_width=constants.short_label_width,
    )
    children.extend([date, place])
    y += date.height

    footer = compose_signature_footer(dataset, constants)
    if footer is not None:
        children.append(footer.at(0, y))
        y += footer.height

    return _page_root("apartment", constants, children, y)


# ---------- page plan ----------

def compose_pages(dataset: FormDataset, constants: LayoutConstants) -> List[PageLayout]:
    """
    Layouts for the designated template pages, in page order.

    Absent joint applicants contribute no page at all.
    """
    active = active_applicant_count(dataset)
    if active != dataset.applicant_count:
        logger.info(
            "applicant_count hint is %d but %d applicant(s) have a name; rendering by name presence",
            dataset.applicant_count,
            active,
        )

    pages = []
    for index, page_number in sorted(APPLICANT_PAGES.items(), key=lambda item: item[1]):
        block = compose_applicant_block(dataset, index, constants)
        if block is None:
            continue
        pages.append(PageLayout(page_number, f"applicant-{index + 1}", f"Page {page_number} - Applicant {index + 1}", block))
    pages.append(
        PageLayout(
            APARTMENT_PAGE,
            "apartment",
            f"Page {APARTMENT_PAGE} - Apartment & Declaration",
            compose_apartment_block(dataset, constants),
        )
    )
    return pages
