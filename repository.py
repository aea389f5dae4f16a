# repository.py
from typing import Any, Dict, List, Optional, TypedDict

from db import SessionLocal
from models import Application
from schemas import FormDataset


class StoredApplication(TypedDict):
    id: str
    form_data: Dict[str, Any]
    pdf_path: Optional[str]
    applicant_count: int
    unit_type: Optional[str]
    created_at: Any
    updated_at: Any


def _to_dict(row: Application) -> StoredApplication:
    return {
        "id": row.id,
        "form_data": row.form_data,
        "pdf_path": row.pdf_path,
        "applicant_count": row.applicant_count,
        "unit_type": row.unit_type,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
    }


def save_application(dataset: FormDataset) -> str:
    db = SessionLocal()
    try:
        unit_type = dataset.application.unit_type
        obj = Application(
            form_data=dataset.model_dump(mode="json"),
            applicant_count=dataset.applicant_count,
            unit_type=unit_type.value if unit_type else None,
        )
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj.id
    finally:
        db.close()


def get_application(application_id: str) -> Optional[StoredApplication]:
    db = SessionLocal()
    try:
        row = db.get(Application, application_id)
        return _to_dict(row) if row else None
    finally:
        db.close()


def list_applications(limit: int = 50) -> List[StoredApplication]:
    db = SessionLocal()
    try:
        rows = db.query(Application).order_by(Application.created_at.desc()).limit(limit).all()
        return [_to_dict(r) for r in rows]
    finally:
        db.close()


def set_pdf_path(application_id: str, pdf_path: str) -> bool:
    db = SessionLocal()
    try:
        row = db.get(Application, application_id)
        if row is None:
            return False
        row.pdf_path = pdf_path
        db.commit()
        return True
    finally:
        db.close()


def delete_application(application_id: str) -> bool:
    db = SessionLocal()
    try:
        row = db.get(Application, application_id)
        if row is None:
            return False
        db.delete(row)
        db.commit()
        return True
    finally:
        db.close()
