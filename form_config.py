# form_config.py
"""
Layout constants and form definitions for the Monarch Residences
application form.

Everything the compositor places on a page comes from here: the named
layout variants, the ordered field tables, static legal text and the page
plan of the PDF template.
"""

from dataclasses import dataclass, fields
from typing import Dict, Optional, Tuple

import config


class LayoutError(ValueError):
    """Raised for layout configuration that yields zero or negative geometry."""


@dataclass(frozen=True)
class LayoutConstants:
    name: str = "compact"
    container_width: float = 612
    padding: float = 20
    gap: float = 16
    label_width: float = 155
    field_gap: float = 10
    cell_width: float = 10
    cell_height: float = 24
    border_width: float = 1.5
    photo_width: float = 130
    row_gap: float = 6
    multi_row_gap: float = 2
    header_height: float = 46
    section_gap: float = 12
    label_font_size: float = 9
    cell_font_size: float = 10
    heading_font_size: float = 14
    body_font_size: float = 11
    apartment_label_width: float = 160
    short_label_width: float = 40

    def __post_init__(self):
        for f in fields(self):
            if f.name == "name":
                continue
            value = getattr(self, f.name)
            # a zero border is a valid (borderless) cell
            if value < 0 or (value == 0 and f.name != "border_width"):
                raise LayoutError(f"{f.name} must be positive, got {value!r}")
        if self.fields_area_width <= self.label_width + self.field_gap:
            raise LayoutError(
                f"layout '{self.name}' leaves no room for cells: fields area is "
                f"{self.fields_area_width}px, label column needs {self.label_width + self.field_gap}px"
            )

    @property
    def content_width(self) -> float:
        return self.container_width - 2 * self.padding

    @property
    def fields_area_width(self) -> float:
        return self.content_width - self.photo_width - self.gap

    @property
    def photo_x(self) -> float:
        return self.container_width - self.padding - self.photo_width

    def as_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# 20 cells of (10 + 2 * 1.5)px = 260px, which fits the 261px box column.
COMPACT = LayoutConstants(name="compact")

# Cell size of the legacy document generator. 20 cells need 460px, so the
# fields column clips them at its right edge exactly like the paper preview did.
WIDE = LayoutConstants(name="wide", cell_width=20)

LAYOUT_VARIANTS: Dict[str, LayoutConstants] = {
    COMPACT.name: COMPACT,
    WIDE.name: WIDE,
}


def get_layout_constants(name: Optional[str] = None) -> LayoutConstants:
    """Return a named layout variant; ``None`` picks the configured default."""
    if name is None:
        name = config.LAYOUT_VARIANT
    try:
        return LAYOUT_VARIANTS[name]
    except KeyError:
        raise KeyError(f"Unknown layout variant '{name}'") from None


# ---------- Field tables ----------

@dataclass(frozen=True)
class FieldSpec:
    key: str
    label: str
    cells: int = 20
    rows: int = 1
    kind: str = "cells"  # "cells" | "checkbox"


APPLICANT_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec("title_name", "Mr./Mrs./Ms./M/s."),
    FieldSpec("relation", "Son/Wife/Daughter of."),
    FieldSpec("nationality", "Nationality:"),
    FieldSpec("age", "Age:"),
    FieldSpec("dob", "DOB:"),
    FieldSpec("profession", "Profession:"),
    FieldSpec("national_id", "Aadhar No.:"),
    FieldSpec("residential_status", "Residential Status:", kind="checkbox"),
    FieldSpec("tax_id", "Income Tax Permanent Account No.:"),
    FieldSpec("tax_ward", "Ward / Circle / Special Range / Place, where assessed to income tax:", rows=2),
    FieldSpec("correspondence_address", "Correspondence Address:", rows=3),
    FieldSpec("telephone", "Tel No.:"),
    FieldSpec("mobile", "Mobile:"),
    FieldSpec("email", "E-Mail ID:"),
)

# (stored value, checkbox caption)
RESIDENTIAL_STATUS_OPTIONS: Tuple[Tuple[str, str], ...] = (
    ("Resident", "Resident"),
    ("Non-Resident", "Non- Resident"),
    ("Foreign National of Indian Origin", "Foreign National of Indian Origin"),
)

APARTMENT_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec("tower", "Tower:", cells=15),
    FieldSpec("apartment_number", "Apartment No.:", cells=15),
    FieldSpec("unit_type", "Type:", cells=10),
    FieldSpec("floor", "Floor:", cells=15),
)

CARPET_AREA_LABEL = "Carpet Area:"
CARPET_AREA_CELLS = 10
CARPET_AREA_UNITS = ("square meter (", "square feet)")

UNIT_PRICE_FIELD = FieldSpec("unit_price", "Unit Price (in rupees):", cells=15)
TOTAL_PRICE_FIELD = FieldSpec("total_price", "Total Price (in rupees):", cells=15)
DECLARATION_DATE_FIELD = FieldSpec("declaration_date", "Date:", cells=10)
DECLARATION_PLACE_FIELD = FieldSpec("declaration_place", "Place:", cells=25)

UNIT_TYPE_DISPLAY = {
    "3bhk": "3 BHK",
    "4bhk": "4 BHK",
}


# ---------- Static text ----------

BRAND_LINES = ("SUNCITY'S", "MONARCH", "RESIDENCES")

PRIMARY_HEADING = "SOLE OR FIRST APPLICANT(S)"
JOINT_HEADING = "JOINT APPLICANT {index}"

PHOTO_LABEL = "AFFIX PHOTOGRAPH"
PHOTO_PLACEHOLDER = "Photo"

SIGNATURE_LABEL = "Signature:"
SIGNATURE_CAPTIONS = ("Sole/First Applicant", "Second Applicant, if any")

APARTMENT_TITLE = "4. DETAILS OF THE SAID APARTMENT AND ITS PRICING"

GST_NOTE = (
    "Applicable taxes and cesses payable by the Applicant(s) which are in addition to total "
    "unit price (this includes GST payable at rates as specified from time to time, which at "
    "present is 5%)"
)

PRICING_NOTES_TITLE = "*NOTE:"
PRICING_NOTES = (
    "1. The Total Price for the Said Apartment is based on the Carpet Area.",
    "2. The Promoter has taken the conversion factor of 10.764 sq.ft. per sqm. for the purpose "
    "of this Application (1 feet = 304.8 mm)",
)

DECLARATION_TITLE = "5. DECLARATION"
DECLARATION_TEXT = (
    "The Applicant(s) hereby declares that the above particulars / information given by the "
    "Applicant(s) are true and correct and nothing has been concealed therefrom."
)
DECLARATION_CLOSING = "Yours Faithfully"


# ---------- Colours ----------

COLORS = {
    "ink": "#111827",
    "rule": "#1f2937",
    "muted": "#374151",
    "faint": "#9ca3af",
    "cell_border": "#ef4444",
    "placeholder": "#6b7280",
    "page": "#ffffff",
}


# ---------- Page plan of the PDF template (1-based page numbers) ----------

APPLICANT_PAGES: Dict[int, int] = {0: 5, 1: 6, 2: 7}
APARTMENT_PAGE = 8
DESIGNATED_PAGES = tuple(sorted(APPLICANT_PAGES.values())) + (APARTMENT_PAGE,)
MAX_APPLICANTS = len(APPLICANT_PAGES)


def get_form_definition(variant: Optional[str] = None) -> Dict:
    constants = get_layout_constants(variant)
    return {
        "human_name": "Monarch Residences Application Form",
        "variant": constants.name,
        "constants": constants.as_dict(),
        "applicant_fields": [
            {"key": f.key, "label": f.label, "cells": f.cells, "rows": f.rows, "kind": f.kind}
            for f in APPLICANT_FIELDS
        ],
        "residential_status_options": [value for value, _ in RESIDENTIAL_STATUS_OPTIONS],
        "unit_types": sorted(UNIT_TYPE_DISPLAY),
        "designated_pages": list(DESIGNATED_PAGES),
    }
