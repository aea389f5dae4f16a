import uuid

from sqlalchemy import JSON, Column, Integer, String, TIMESTAMP, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


class Application(Base):
    __tablename__ = "applications"

    id = Column(String(32), primary_key=True, default=_new_id)
    form_data = Column(JSON, nullable=False)
    pdf_path = Column(String(500), nullable=True)
    applicant_count = Column(Integer, nullable=False, default=1)
    unit_type = Column(String(10), nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
