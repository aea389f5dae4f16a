from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from images import is_data_url


# ---------- 1) Form data ----------

class ResidentialStatus(str, Enum):
    RESIDENT = "Resident"
    NON_RESIDENT = "Non-Resident"
    FOREIGN_NATIONAL_OF_INDIAN_ORIGIN = "Foreign National of Indian Origin"


class UnitType(str, Enum):
    BHK3 = "3bhk"
    BHK4 = "4bhk"


def _as_text(value: Any) -> str:
    # the form-collection side sends ages and phone numbers as numbers too
    if value is None:
        return ""
    return str(value)


class ApplicantRecord(BaseModel):
    title: str = ""
    name: str = ""
    relation: str = ""  # son/wife/daughter of
    nationality: str = ""
    age: str = ""
    dob: str = ""
    profession: str = ""
    national_id: str = ""  # Aadhaar
    residential_status: str = ""  # matched against ResidentialStatus values
    tax_id: str = ""  # PAN
    tax_ward: str = ""
    correspondence_address: str = ""
    telephone: str = ""
    mobile: str = ""
    email: str = ""
    photograph: Optional[str] = None  # base64 data:image URL
    signature: Optional[str] = None

    @field_validator(
        "title", "name", "relation", "nationality", "age", "dob", "profession", "national_id",
        "residential_status", "tax_id", "tax_ward", "correspondence_address", "telephone",
        "mobile", "email",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value):
        return _as_text(value)

    @field_validator("photograph", "signature", mode="before")
    @classmethod
    def _image_is_data_url(cls, value):
        if not value:
            return None
        if not isinstance(value, str) or not is_data_url(value):
            raise ValueError("images must be base64 data:image URLs")
        return value


class ApplicationRecord(BaseModel):
    tower: str = ""
    apartment_number: str = ""
    unit_type: Optional[UnitType] = None
    floor: str = ""
    carpet_area_sqm: str = ""
    carpet_area_sqft: str = ""
    unit_price: str = ""  # may carry "₹" and thousands separators
    total_price: str = ""
    declaration_date: str = ""
    declaration_place: str = ""

    @field_validator(
        "tower", "apartment_number", "floor", "carpet_area_sqm", "carpet_area_sqft",
        "unit_price", "total_price", "declaration_date", "declaration_place",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value):
        return _as_text(value)

    @field_validator("unit_type", mode="before")
    @classmethod
    def _normalize_unit_type(cls, value):
        if value is None or isinstance(value, UnitType):
            return value
        value = str(value).replace(" ", "").lower()
        return value or None


class FormDataset(BaseModel):
    applicants: List[ApplicantRecord] = Field(min_length=1, max_length=3)
    application: ApplicationRecord = Field(default_factory=ApplicationRecord)
    # display hint only; whether a block renders is decided by name presence
    applicant_count: int = Field(default=1, ge=1, le=3)

    def applicant(self, index: int) -> Optional[ApplicantRecord]:
        if 0 <= index < len(self.applicants):
            return self.applicants[index]
        return None


# ---------- 2) API responses ----------

class ApplicationCreated(BaseModel):
    id: str
    applicant_count: int
    active_applicants: int
    pages: List[int]
    warnings: List[str] = Field(default_factory=list)


class ApplicationSummary(BaseModel):
    id: str
    applicant_count: int
    unit_type: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ApplicationsList(BaseModel):
    items: List[ApplicationSummary]


class FormDataResponse(BaseModel):
    form_data: FormDataset
    applicant_count: int
    unit_type: Optional[str] = None


class PreviewPage(BaseModel):
    page_number: int
    slot: str
    title: str
    root: Dict[str, Any]


class PreviewResponse(BaseModel):
    container_width: float
    variant: str
    pages: List[PreviewPage]


class FieldDefinition(BaseModel):
    key: str
    label: str
    cells: int
    rows: int
    kind: str


class FormDefinition(BaseModel):
    human_name: str
    variant: str
    constants: Dict[str, Any]
    applicant_fields: List[FieldDefinition]
    residential_status_options: List[str]
    unit_types: List[str]
    designated_pages: List[int]
