# api.py
import logging
import os
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import FileResponse, HTMLResponse

from compositor import active_applicant_count
from form_config import DESIGNATED_PAGES, get_form_definition, get_layout_constants
from form_filler import TemplateError, get_pdf_filler
from renderers import DocumentRenderer, InteractiveRenderer, RenderSettings
from repository import (
    delete_application,
    get_application,
    list_applications,
    save_application,
    set_pdf_path,
)
from schemas import (
    ApplicationCreated,
    ApplicationsList,
    ApplicationSummary,
    FormDataResponse,
    FormDataset,
    FormDefinition,
    PreviewResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _constants(variant: Optional[str]):
    try:
        return get_layout_constants(variant)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=str(e.args[0]))


def _load(application_id: str):
    row = get_application(application_id)
    if not row:
        raise HTTPException(status_code=404, detail="Application not found")
    return row, FormDataset.model_validate(row["form_data"])


def _generate(dataset: FormDataset, application_id: str):
    try:
        result = get_pdf_filler().generate(dataset, application_id)
    except TemplateError as e:
        logger.error("PDF generation failed for %s: %s", application_id, e)
        raise HTTPException(status_code=500, detail=str(e))
    set_pdf_path(application_id, result.path)
    return result


# ===================== 1) Submit =====================
@router.post("/applications", response_model=ApplicationCreated)
def create_application(body: FormDataset) -> ApplicationCreated:
    """
    1. Save the form data to DB.
    2. Generate the filled PDF and remember where it was written.
    3. If generation fails, drop the saved row again.
    """
    new_id = save_application(body)
    logger.info("Saved application %s", new_id)
    try:
        result = _generate(body, new_id)
    except Exception:
        delete_application(new_id)
        raise
    return ApplicationCreated(
        id=new_id,
        applicant_count=body.applicant_count,
        active_applicants=active_applicant_count(body),
        pages=result.pages,
        warnings=result.warnings,
    )


# ===================== 2) List =====================
@router.get("/applications", response_model=ApplicationsList)
def recent_applications(limit: int = Query(50, ge=1, le=500)) -> ApplicationsList:
    rows = list_applications(limit=limit)
    return ApplicationsList(items=[ApplicationSummary.model_validate(r) for r in rows])


# ===================== 3) PDF =====================
@router.get("/applications/{application_id}")
def get_application_pdf(application_id: str):
    """
    Returns the filled PDF for an application.
    Regenerated from the stored form data when the file is gone.
    """
    row, dataset = _load(application_id)
    pdf_path = row.get("pdf_path")
    if not pdf_path or not os.path.exists(pdf_path):
        pdf_path = _generate(dataset, application_id).path

    return FileResponse(
        pdf_path,
        media_type="application/pdf",
        filename=f"application_{application_id}.pdf",
    )


@router.get("/applications/{application_id}/form-data", response_model=FormDataResponse)
def get_form_data(application_id: str) -> FormDataResponse:
    row, dataset = _load(application_id)
    return FormDataResponse(
        form_data=dataset,
        applicant_count=row["applicant_count"],
        unit_type=row.get("unit_type"),
    )


# ===================== 4) Previews =====================
@router.get("/applications/{application_id}/preview", response_model=PreviewResponse)
def preview_application(application_id: str, variant: Optional[str] = None) -> PreviewResponse:
    constants = _constants(variant)
    _, dataset = _load(application_id)
    return PreviewResponse.model_validate(InteractiveRenderer(constants).render(dataset))


@router.get("/applications/{application_id}/pages/{page_number}", response_class=HTMLResponse)
def application_page(application_id: str, page_number: int, variant: Optional[str] = None):
    """Standalone HTML document for one designated page."""
    constants = _constants(variant)
    _, dataset = _load(application_id)
    if page_number not in DESIGNATED_PAGES:
        raise HTTPException(status_code=404, detail=f"Page {page_number} is not a form page")

    pages = DocumentRenderer(constants, RenderSettings()).render_pages(dataset)
    page = next((p for p in pages if p.page_number == page_number), None)
    if page is None:
        raise HTTPException(status_code=404, detail=f"Page {page_number} is not used by this application")
    return HTMLResponse(page.html)


@router.get("/forms/definition", response_model=FormDefinition)
def form_definition(variant: Optional[str] = None):
    """Field table and layout constants of a layout variant."""
    _constants(variant)
    return get_form_definition(variant)
