import io
import os
import tempfile

import pytest

_TMP = tempfile.mkdtemp(prefix="monarch-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["GENERATED_DIR"] = os.path.join(_TMP, "generated")
os.environ["LAYOUT_VARIANT"] = "compact"

from PIL import Image  # noqa: E402
from pypdf import PdfWriter  # noqa: E402

from form_config import COMPACT  # noqa: E402
from images import to_data_url  # noqa: E402
from schemas import FormDataset  # noqa: E402


def make_template(path, pages=10, width=612, height=792):
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=width, height=height)
    with open(path, "wb") as f:
        writer.write(f)
    return str(path)


def png_data_url(size=(30, 40), color=(200, 30, 30)):
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return to_data_url(buf.getvalue(), "image/png")


@pytest.fixture
def constants():
    return COMPACT


@pytest.fixture
def dataset_dict():
    return {
        "applicants": [
            {
                "title": "Ms.",
                "name": "Asha Rao",
                "relation": "D/o K. Rao",
                "nationality": "Indian",
                "age": 34,
                "dob": "12/03/1990",
                "profession": "Architect",
                "national_id": "1234 5678 9012",
                "residential_status": "Resident",
                "tax_id": "ABCDE1234F",
                "tax_ward": "Ward 21, Bengaluru",
                "correspondence_address": "14 Lake View Road, Indiranagar, Bengaluru 560038",
                "telephone": "080-2525252",
                "mobile": "9876543210",
                "email": "asha@example.com",
            }
        ],
        "application": {
            "tower": "B",
            "apartment_number": "1204",
            "unit_type": "3bhk",
            "floor": "12",
            "carpet_area_sqm": "120",
            "carpet_area_sqft": "1291.68",
            "unit_price": "₹12,34,567",
            "total_price": "₹1,23,45,670",
            "declaration_date": "01/02/2025",
            "declaration_place": "Bengaluru",
        },
        "applicant_count": 1,
    }


@pytest.fixture
def dataset(dataset_dict):
    return FormDataset.model_validate(dataset_dict)


@pytest.fixture
def template_pdf(tmp_path):
    return make_template(tmp_path / "template.pdf")


@pytest.fixture
def client(template_pdf, tmp_path):
    from fastapi.testclient import TestClient

    import form_filler
    from db import init_db
    from main import app

    init_db()
    with TestClient(app) as c:
        # startup initialised the filler with the configured template; point it at the test one
        form_filler.init_pdf_filler(template_path=template_pdf, output_dir=tmp_path / "out")
        yield c
